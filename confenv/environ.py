"""Key/value views over the process environment.

Both the placeholder substitutor (reader) and the `.env` loader (writer) go
through an `EnvStore`, so tests can swap in `MemoryEnviron` instead of touching
`os.environ`.
"""

from __future__ import annotations

import os
from typing import Iterator, Mapping, Protocol


class EnvStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class OsEnviron:
    """The real process environment."""

    def get(self, key: str) -> str | None:
        return os.environ.get(key)

    def set(self, key: str, value: str) -> None:
        os.environ[key] = value


class MemoryEnviron:
    """Dict-backed store; never touches `os.environ`."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def as_dict(self) -> dict[str, str]:
        return dict(self._values)
