from __future__ import annotations

import os
from pathlib import Path

import pytest

from confenv import envfile
from confenv.environ import MemoryEnviron
from confenv.envfile import EnvAssignment, EnvFileLoader, load_env, parse_env_line
from confenv.errors import EnvFileError, InvalidEnvFormatError, OpenEnvFileError


def _write_env(directory: Path, name: str, text: str) -> Path:
    p = directory / name
    p.write_text(text, encoding="utf-8")
    return p


class _FailingEnv(MemoryEnviron):
    def set(self, key: str, value: str) -> None:
        raise RuntimeError(f"simulated error setting {key}")


def test_load_env_default_file_sets_process_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    # Register both keys so monkeypatch restores them after the test.
    monkeypatch.setenv("APP_NAME", "before")
    monkeypatch.setenv("APP_VERSION", "before")
    _write_env(tmp_path, ".env", "APP_NAME=TestApp\nAPP_VERSION=1.0\n")

    applied = load_env()

    assert os.environ["APP_NAME"] == "TestApp"
    assert os.environ["APP_VERSION"] == "1.0"
    assert applied == [EnvAssignment("APP_NAME", "TestApp"), EnvAssignment("APP_VERSION", "1.0")]


def test_comments_and_blank_lines_are_skipped(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, memory_env: MemoryEnviron
) -> None:
    monkeypatch.chdir(tmp_path)
    _write_env(
        tmp_path,
        ".env",
        "APP_NAME=TestApp\n# This is a comment\n\n   \n   # indented comment\nAPP_VERSION=1.0\n",
    )

    load_env(env=memory_env)

    assert memory_env.as_dict() == {"APP_NAME": "TestApp", "APP_VERSION": "1.0"}


def test_only_comments_changes_nothing(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, memory_env: MemoryEnviron
) -> None:
    monkeypatch.chdir(tmp_path)
    _write_env(tmp_path, ".env", "# nothing here\n\n#APP_NAME=TestApp\n")

    assert load_env(env=memory_env) == []
    assert len(memory_env) == 0


def test_multiple_files_apply_in_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, memory_env: MemoryEnviron
) -> None:
    monkeypatch.chdir(tmp_path)
    _write_env(tmp_path, ".env", "APP_NAME=TestApp\nAUTHOR=nobody\n")
    _write_env(tmp_path, ".env2", "AUTHOR=John Doe\n")

    EnvFileLoader(memory_env).load(".env", ".env2")

    assert memory_env.get("APP_NAME") == "TestApp"
    assert memory_env.get("AUTHOR") == "John Doe"


def test_values_are_trimmed_and_split_on_first_equals(tmp_path: Path, memory_env: MemoryEnviron) -> None:
    p = _write_env(tmp_path, "vars.env", "  URL = postgres://u:p@h/db?a=b  \nEMPTY=\r\nRAW=${NOT_EXPANDED}\n")

    EnvFileLoader(memory_env).load(p)

    assert memory_env.as_dict() == {
        "URL": "postgres://u:p@h/db?a=b",
        "EMPTY": "",
        "RAW": "${NOT_EXPANDED}",
    }


def test_invalid_line_aborts_and_keeps_earlier_lines(tmp_path: Path, memory_env: MemoryEnviron) -> None:
    p = _write_env(tmp_path, ".env", "APP_NAME=TestApp\nAPP_VERSION:1.0\nAUTHOR=John Doe\n")

    with pytest.raises(InvalidEnvFormatError) as ei:
        EnvFileLoader(memory_env).load(p)

    assert ei.value.line == "APP_VERSION:1.0"
    assert ei.value.lineno == 2
    assert ei.value.path == str(p)
    assert "invalid .env format on line 2: APP_VERSION:1.0" in str(ei.value)
    assert memory_env.as_dict() == {"APP_NAME": "TestApp"}


def test_invalid_first_line(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, memory_env: MemoryEnviron) -> None:
    monkeypatch.chdir(tmp_path)
    _write_env(tmp_path, ".env", "APP_NAME:TestApp\nAPP_VERSION:1.0\n")

    with pytest.raises(InvalidEnvFormatError) as ei:
        load_env(env=memory_env)

    assert "APP_NAME:TestApp" in str(ei.value)
    assert len(memory_env) == 0


def test_failure_stops_later_files(tmp_path: Path, memory_env: MemoryEnviron) -> None:
    first = _write_env(tmp_path, "first.env", "A=1\n")
    bad = _write_env(tmp_path, "bad.env", "B=2\nnot an assignment\n")
    last = _write_env(tmp_path, "last.env", "C=3\n")

    with pytest.raises(InvalidEnvFormatError):
        EnvFileLoader(memory_env).load(first, bad, last)

    assert memory_env.as_dict() == {"A": "1", "B": "2"}


def test_missing_file_is_open_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(OpenEnvFileError) as ei:
        load_env("nonexistentfile", env=MemoryEnviron())

    assert ei.value.path == "nonexistentfile"
    assert "error opening .env file: nonexistentfile" in str(ei.value)
    assert isinstance(ei.value.__cause__, FileNotFoundError)


def test_directory_is_open_error(tmp_path: Path) -> None:
    with pytest.raises(OpenEnvFileError):
        EnvFileLoader(MemoryEnviron()).load(tmp_path)


def test_undecodable_file_is_read_error(tmp_path: Path) -> None:
    p = tmp_path / ".env"
    p.write_bytes(b"A=\xff\xfe\n")

    with pytest.raises(EnvFileError) as ei:
        EnvFileLoader(MemoryEnviron()).load(p)

    assert not isinstance(ei.value, (OpenEnvFileError, InvalidEnvFormatError))
    assert isinstance(ei.value.__cause__, UnicodeDecodeError)


def test_setter_failure_propagates(tmp_path: Path) -> None:
    p = _write_env(tmp_path, ".env", "APP_NAME=TestApp\nAPP_VERSION=1.0\n")

    with pytest.raises(RuntimeError) as ei:
        EnvFileLoader(_FailingEnv()).load(p)

    assert "APP_NAME" in str(ei.value)


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("KEY=VALUE", EnvAssignment("KEY", "VALUE")),
        ("  KEY = VALUE  ", EnvAssignment("KEY", "VALUE")),
        ("KEY=VALUE\n", EnvAssignment("KEY", "VALUE")),
        ("app.name-v2=x", EnvAssignment("app.name-v2", "x")),
        ("KEY=", EnvAssignment("KEY", "")),
        ("KEY=a=b", EnvAssignment("KEY", "a=b")),
        ("KEY=value # not a comment", EnvAssignment("KEY", "value # not a comment")),
        ("", None),
        ("   \t", None),
        ("# comment", None),
        ("   # KEY=VALUE", None),
    ],
)
def test_parse_env_line_accepts(line: str, expected: EnvAssignment | None) -> None:
    assert parse_env_line(line) == expected


@pytest.mark.parametrize(
    "line",
    [
        "=value",
        "KEY",
        "KEY VALUE",
        "KEY:VALUE",
        "K Y=1",
        "KÉY=1",
        "export KEY=1",
    ],
)
def test_parse_env_line_rejects(line: str) -> None:
    with pytest.raises(InvalidEnvFormatError) as ei:
        parse_env_line(line)

    assert ei.value.line == line


@pytest.mark.parametrize(
    ("content", "env", "expected"),
    [
        (b"A=1\nB=2\n", MemoryEnviron(), None),
        (b"A=1\nbroken\n", MemoryEnviron(), InvalidEnvFormatError),
        (b"A=1\n", _FailingEnv(), RuntimeError),
        (b"A=\xff\n", MemoryEnviron(), EnvFileError),
    ],
)
def test_file_handle_released_on_every_exit(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    content: bytes,
    env: MemoryEnviron,
    expected: type[Exception] | None,
) -> None:
    p = tmp_path / ".env"
    p.write_bytes(content)

    opened = []
    real_open = open

    def recording_open(*args, **kwargs):
        fh = real_open(*args, **kwargs)
        opened.append(fh)
        return fh

    monkeypatch.setattr(envfile, "open", recording_open, raising=False)
    loader = EnvFileLoader(env)

    if expected is None:
        loader.load(p)
    else:
        with pytest.raises(expected):
            loader.load(p)

    assert len(opened) == 1
    assert opened[0].closed
