from __future__ import annotations

import re

from confenv.environ import EnvStore, OsEnviron
from confenv.errors import VariableNotFoundError


_ENV_PATTERN = re.compile(r"\$\{(\w+)\}", re.ASCII)


class EnvSubstitutor:
    """Replace `${NAME}` placeholders in raw config text.

    Pure text rewriting: runs before deserialization and knows nothing about
    the config format. Expansion is strict and all-or-nothing; an unset or
    empty variable raises VariableNotFoundError and no rewritten text is
    returned. Substituted values are inserted literally, never re-expanded.
    """

    def __init__(self, env: EnvStore | None = None) -> None:
        self._env = env if env is not None else OsEnviron()

    def substitute(self, text: str) -> str:
        def _replace(match: re.Match[str]) -> str:
            name = match.group(1)
            value = self._env.get(name)
            if value is None or value == "":
                raise VariableNotFoundError(name)
            return value

        return _ENV_PATTERN.sub(_replace, text)


def substitute(text: str, *, env: EnvStore | None = None) -> str:
    """Expand `${NAME}` placeholders from `env` (default: the process environment)."""

    return EnvSubstitutor(env).substitute(text)
