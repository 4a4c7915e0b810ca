"""Strict `.env` loader.

Syntax, one assignment per line:

    # comment
    KEY=VALUE

KEY is made of letters, digits, `_`, `.` and `-`. VALUE is everything after the
first `=`, with surrounding whitespace trimmed. Blank and comment lines are
skipped. Any other line that is not `KEY=VALUE` aborts the load: variables
applied before the bad line stay set, later lines and files are not read.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Iterator, TextIO

from confenv.environ import EnvStore, OsEnviron
from confenv.errors import EnvFileError, InvalidEnvFormatError, OpenEnvFileError


logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = ".env"

_ASSIGNMENT_RE = re.compile(r"\s*[\w.-]+\s*=.*", re.ASCII)


@dataclass(frozen=True, slots=True)
class EnvAssignment:
    key: str
    value: str


def parse_env_line(line: str) -> EnvAssignment | None:
    """Parse one line; None for blank and comment lines.

    Raises:
        InvalidEnvFormatError: the line is not a `KEY=VALUE` assignment.
    """

    line = line.rstrip("\r\n")
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    if not _ASSIGNMENT_RE.fullmatch(line):
        raise InvalidEnvFormatError(line)

    key, _, value = line.partition("=")
    return EnvAssignment(key=key.strip(), value=value.strip())


class EnvFileLoader:
    """Apply `.env` files to an environment store (default: the process env)."""

    def __init__(self, env: EnvStore | None = None) -> None:
        self._env = env if env is not None else OsEnviron()

    def load(self, *paths: str | os.PathLike[str]) -> list[EnvAssignment]:
        """Load files in order and return the applied assignments.

        Paths are relative to the working directory; defaults to ".env".
        The first failure aborts the whole call without rolling back.
        """

        applied: list[EnvAssignment] = []
        for path in paths or (DEFAULT_ENV_FILE,):
            applied.extend(self.load_file(path))
        return applied

    def load_file(self, path: str | os.PathLike[str]) -> list[EnvAssignment]:
        path = os.fspath(path)
        try:
            fh = open(path, encoding="utf-8")
        except OSError as exc:
            raise OpenEnvFileError(path) from exc

        applied: list[EnvAssignment] = []
        with fh:
            for lineno, line in _numbered_lines(fh, path):
                try:
                    assignment = parse_env_line(line)
                except InvalidEnvFormatError as exc:
                    raise InvalidEnvFormatError(exc.line, path=path, lineno=lineno) from None
                if assignment is None:
                    continue
                # Setter failures propagate as-is.
                self._env.set(assignment.key, assignment.value)
                applied.append(assignment)

        logger.info("env_file_loaded", extra={"env_file": path, "keys": [a.key for a in applied]})
        return applied


def _numbered_lines(fh: TextIO, path: str) -> Iterator[tuple[int, str]]:
    lineno = 0
    try:
        for lineno, line in enumerate(fh, start=1):
            yield lineno, line
    except (OSError, UnicodeDecodeError) as exc:
        raise EnvFileError(f"error reading .env file after line {lineno}", path=path) from exc


def load_env(*paths: str | os.PathLike[str], env: EnvStore | None = None) -> list[EnvAssignment]:
    """Shortcut for `EnvFileLoader(env).load(*paths)`."""

    return EnvFileLoader(env).load(*paths)
