from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

from confenv.config.deserialize import Deserializer, yaml_deserializer
from confenv.config.locator import ALLOW_LIST, ExtensionPolicy, FileLocator
from confenv.config.substitute import EnvSubstitutor
from confenv.environ import EnvStore
from confenv.errors import FileReadError, UnmarshalError


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = "config"


@dataclass(frozen=True, slots=True)
class ConfigRequest:
    """One `load` call: what to look for, where, and what to fill."""

    name: str
    directories: tuple[str, ...]
    target: Any


class ConfigLoader:
    """Locate a config file, expand `${ENV_VAR}` placeholders and deserialize it.

    Args:
        deserializer: Callable `(content, target)`; defaults to YAML, which also
            accepts JSON documents.
        policy: Extension policy used to recognize config files.
        env: Store used to resolve placeholders; defaults to the process environment.
    """

    def __init__(
        self,
        deserializer: Deserializer | None = None,
        *,
        policy: ExtensionPolicy = ALLOW_LIST,
        env: EnvStore | None = None,
    ) -> None:
        self._deserialize = deserializer if deserializer is not None else yaml_deserializer
        self._locator = FileLocator(policy)
        self._substitutor = EnvSubstitutor(env)

    def load(self, target: Any, name: str, *directories: str | os.PathLike[str]) -> Any:
        """Populate `target` from the config file named `name`.

        Directories are searched in order (default: "config"). Returns `target`.

        Raises:
            ConfigError: the file is missing, unreadable or fails to deserialize.
            VariableNotFoundError: a placeholder references an unset or empty
                variable. Deliberately not a ConfigError.
        """

        request = ConfigRequest(
            name=name,
            directories=tuple(os.fspath(d) for d in directories) or (DEFAULT_CONFIG_DIR,),
            target=target,
        )

        content = self._locator.find_in(request.directories, request.name)
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FileReadError(request.name) from exc

        expanded = self._substitutor.substitute(text)

        try:
            self._deserialize(expanded.encode("utf-8"), request.target)
        except UnmarshalError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise UnmarshalError(str(exc)) from exc

        logger.info(
            "config_loaded",
            extra={"config_name": request.name, "config_dirs": list(request.directories)},
        )
        return request.target


def load_config(
    target: Any,
    name: str,
    *directories: str | os.PathLike[str],
    deserializer: Deserializer | None = None,
) -> Any:
    """Shortcut for `ConfigLoader(deserializer).load(target, name, *directories)`."""

    return ConfigLoader(deserializer).load(target, name, *directories)
