"""Find config files by name, expand `${ENV_VAR}` placeholders, load `.env` files.

    from confenv import load_config, load_env

    load_env()                          # .env -> os.environ
    load_config(settings, "app")        # config/app.{yaml,yml,json} -> settings
"""

from __future__ import annotations

from confenv.config import (
    ALLOW_LIST,
    LEGACY_DENY_LIST,
    ConfigLoader,
    ExtensionPolicy,
    FileLocator,
    json_deserializer,
    load_config,
    substitute,
    yaml_deserializer,
)
from confenv.environ import EnvStore, MemoryEnviron, OsEnviron
from confenv.envfile import EnvAssignment, EnvFileLoader, load_env, parse_env_line
from confenv.errors import (
    ConfEnvError,
    ConfigError,
    DirectoryError,
    EnvFileError,
    FileReadError,
    InvalidEnvFormatError,
    OpenEnvFileError,
    UnmarshalError,
    UnsupportedExtensionError,
    VariableNotFoundError,
)

__all__ = [
    "ALLOW_LIST",
    "ConfEnvError",
    "ConfigError",
    "ConfigLoader",
    "DirectoryError",
    "EnvAssignment",
    "EnvFileError",
    "EnvFileLoader",
    "EnvStore",
    "ExtensionPolicy",
    "FileLocator",
    "FileReadError",
    "InvalidEnvFormatError",
    "LEGACY_DENY_LIST",
    "MemoryEnviron",
    "OpenEnvFileError",
    "OsEnviron",
    "UnmarshalError",
    "UnsupportedExtensionError",
    "VariableNotFoundError",
    "__version__",
    "json_deserializer",
    "load_config",
    "load_env",
    "parse_env_line",
    "substitute",
    "yaml_deserializer",
]

__version__ = "0.1.0"
