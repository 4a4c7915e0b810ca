from __future__ import annotations


class ConfEnvError(Exception):
    """Base exception for this project."""


class ConfigError(ConfEnvError):
    """Raised when a configuration file cannot be located, read or decoded."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(f"{message}: {path}" if path else message)
        self.message = message
        self.path = path


class DirectoryError(ConfigError):
    def __init__(self, directory: str):
        super().__init__("error opening directory", path=directory)


class UnsupportedExtensionError(ConfigError):
    """No entry with a recognized extension matched the requested name.

    Covers both "file absent" and "file present with the wrong extension".
    """

    def __init__(self, name: str):
        super().__init__(f"unsupported extension {name}")
        self.name = name


class FileReadError(ConfigError):
    def __init__(self, path: str):
        super().__init__("error reading file", path=path)


class UnmarshalError(ConfigError):
    def __init__(self, detail: str, *, path: str | None = None):
        super().__init__(f"error unmarshalling configuration: {detail}", path=path)
        self.detail = detail


class VariableNotFoundError(ConfEnvError, LookupError):
    """A `${NAME}` placeholder referenced an unset or empty variable.

    Not a ConfigError: `except ConfigError` does not swallow it, so a
    misconfigured environment stops startup unless caught explicitly.
    """

    def __init__(self, name: str):
        super().__init__(f"environment variable {name} not found")
        self.name = name


class EnvFileError(ConfEnvError):
    """Raised when a `.env` file cannot be loaded."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(f"{message}: {path}" if path else message)
        self.message = message
        self.path = path


class OpenEnvFileError(EnvFileError):
    def __init__(self, path: str):
        super().__init__("error opening .env file", path=path)


class InvalidEnvFormatError(EnvFileError):
    def __init__(self, line: str, *, path: str | None = None, lineno: int | None = None):
        where = f" {lineno}" if lineno is not None else ""
        super().__init__(f"invalid .env format on line{where}: {line}")
        self.line = line
        self.path = path
        self.lineno = lineno
