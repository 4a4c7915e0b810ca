from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable, Literal

from confenv.errors import DirectoryError, FileReadError, UnsupportedExtensionError


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExtensionPolicy:
    """Which file extensions the locator considers.

    - mode="allow": only the listed extensions are accepted.
    - mode="deny": every extension except the listed ones is accepted.

    Extensions are compared case-insensitively and without the leading dot.
    """

    mode: Literal["allow", "deny"]
    extensions: frozenset[str]

    @classmethod
    def allow(cls, *extensions: str) -> ExtensionPolicy:
        return cls("allow", frozenset(e.lower().lstrip(".") for e in extensions))

    @classmethod
    def deny(cls, *extensions: str) -> ExtensionPolicy:
        return cls("deny", frozenset(e.lower().lstrip(".") for e in extensions))

    def accepts(self, extension: str) -> bool:
        listed = extension.lower() in self.extensions
        return listed if self.mode == "allow" else not listed


ALLOW_LIST = ExtensionPolicy.allow("yaml", "yml", "json")
# Legacy behaviour: anything but source files living next to the configs.
LEGACY_DENY_LIST = ExtensionPolicy.deny("py", "pyc")


class FileLocator:
    """Find a config file by logical name inside a directory."""

    def __init__(self, policy: ExtensionPolicy = ALLOW_LIST) -> None:
        self.policy = policy

    def find(self, directory: str | os.PathLike[str], name: str) -> bytes:
        """Return the contents of the first entry matching `name`.

        Entries are visited in name-sorted order. An entry matches when the
        part before its first "." equals `name` case-insensitively and the
        remainder is accepted by the extension policy.

        Raises:
            DirectoryError: `directory` cannot be listed.
            FileReadError: the matching file cannot be read.
            UnsupportedExtensionError: no entry matched.
        """

        directory = os.fspath(directory)
        try:
            entries = sorted(os.listdir(directory))
        except OSError as exc:
            raise DirectoryError(directory) from exc

        wanted = name.casefold()
        for entry in entries:
            stem, sep, extension = entry.partition(".")
            if not sep:
                continue
            if not self.policy.accepts(extension):
                continue
            if stem.casefold() != wanted:
                continue

            path = os.path.join(directory, entry)
            try:
                with open(path, "rb") as fh:
                    content = fh.read()
            except OSError as exc:
                raise FileReadError(path) from exc

            logger.debug("config_file_located", extra={"config_name": name, "config_path": path})
            return content

        raise UnsupportedExtensionError(name)

    def find_in(self, directories: Iterable[str | os.PathLike[str]], name: str) -> bytes:
        """Search several directories in order; the first match wins.

        Directories that cannot be listed are skipped. If none of them could be
        listed, the first DirectoryError is raised; otherwise a miss raises
        UnsupportedExtensionError.
        """

        first_dir_error: DirectoryError | None = None
        listed_any = False
        for directory in directories:
            try:
                return self.find(directory, name)
            except DirectoryError as exc:
                if first_dir_error is None:
                    first_dir_error = exc
                logger.debug("config_dir_skipped", extra={"config_dir": os.fspath(directory)})
            except UnsupportedExtensionError:
                listed_any = True

        if not listed_any and first_dir_error is not None:
            raise first_dir_error
        raise UnsupportedExtensionError(name)
