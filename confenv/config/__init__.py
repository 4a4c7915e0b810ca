"""Config file discovery, `${ENV_VAR}` expansion and deserialization.

- Files are found by logical name under a directory (default `config/`).
- Expansion is strict: missing or empty env values raise VariableNotFoundError.
- YAML is the default format; JSON documents load through it as well.
"""

from __future__ import annotations

from confenv.config.deserialize import Deserializer, json_deserializer, populate, yaml_deserializer
from confenv.config.loader import ConfigLoader, ConfigRequest, load_config
from confenv.config.locator import ALLOW_LIST, LEGACY_DENY_LIST, ExtensionPolicy, FileLocator
from confenv.config.substitute import EnvSubstitutor, substitute

__all__ = [
    "ALLOW_LIST",
    "ConfigLoader",
    "ConfigRequest",
    "Deserializer",
    "EnvSubstitutor",
    "ExtensionPolicy",
    "FileLocator",
    "LEGACY_DENY_LIST",
    "json_deserializer",
    "load_config",
    "populate",
    "substitute",
    "yaml_deserializer",
]
