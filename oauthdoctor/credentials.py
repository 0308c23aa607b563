"""
Credential store for Google Ads API client library configuration files.

This module reads and replaces the OAuth2 credential fields held in a client
library configuration file. Two formats are supported:

- YAML (``google-ads.yaml``), used by the Python and Ruby libraries
- Java properties (``ads.properties``), used by the Java library

Every read goes to the file, so a replaced value is never shadowed by a
stale in-memory copy.
"""

import logging
import re
import threading
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Dict

import yaml

from .exceptions import ConfigIOError

logger = logging.getLogger(__name__)


class CredentialField(str, Enum):
    """Credential fields the OAuth doctor reads or replaces."""

    CLIENT_ID = "client_id"
    CLIENT_SECRET = "client_secret"
    DEV_TOKEN = "developer_token"
    REFRESH_TOKEN = "refresh_token"
    LOGIN_CUSTOMER_ID = "login_customer_id"


# Fields this engine never writes
READ_ONLY_FIELDS = frozenset({CredentialField.LOGIN_CUSTOMER_ID})

# One lock per configuration file so concurrent sessions serialize writes
_write_locks: Dict[Path, threading.Lock] = {}
_write_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = path.resolve()
    with _write_locks_guard:
        return _write_locks.setdefault(key, threading.Lock())


class CredentialStore(ABC):
    """
    Credential store interface consumed by the diagnostic engine.

    Implementations must raise ConfigIOError on any read or write failure.
    """

    @abstractmethod
    def get(self, field: CredentialField) -> str:
        """Return the current value of a field ("" if unset)."""

    @abstractmethod
    def replace(self, field: CredentialField, value: str) -> None:
        """Replace a field with a new value and persist it."""

    @property
    def login_customer_id(self) -> str:
        """Login customer ID without dashes ("" if unset)."""
        return self.get(CredentialField.LOGIN_CUSTOMER_ID).replace("-", "").strip()

    def _check_writable(self, field: CredentialField) -> None:
        if field in READ_ONLY_FIELDS:
            raise ValueError(f"{field.value} is read-only for the OAuth doctor")


class FileCredentialStore(CredentialStore):
    """Shared file handling for on-disk configuration formats."""

    def __init__(self, config_file: str):
        """
        Initialize the store.

        Args:
            config_file: Path to the client library configuration file
        """
        self.config_file = Path(config_file).expanduser()

    def exists(self) -> bool:
        """Check whether the configuration file exists."""
        return self.config_file.exists()

    def _read_text(self) -> str:
        try:
            return self.config_file.read_text(encoding="utf-8")
        except (IOError, OSError) as e:
            logger.error(f"Failed to read {self.config_file}: {e}")
            raise ConfigIOError(f"Failed to read {self.config_file}: {e}") from e

    def _write_text(self, text: str) -> None:
        try:
            self.config_file.write_text(text, encoding="utf-8")
        except (IOError, OSError) as e:
            logger.error(f"Failed to write {self.config_file}: {e}")
            raise ConfigIOError(f"Failed to write {self.config_file}: {e}") from e

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.config_file)!r})"


class YamlCredentialStore(FileCredentialStore):
    """Credential store backed by a ``google-ads.yaml`` file."""

    def _load(self) -> dict:
        text = self._read_text()
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigIOError(f"Invalid YAML in {self.config_file}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigIOError(
                f"Expected a mapping at the top of {self.config_file}, "
                f"got {type(data).__name__}"
            )
        return data

    def get(self, field: CredentialField) -> str:
        value = self._load().get(field.value)
        return "" if value is None else str(value)

    def replace(self, field: CredentialField, value: str) -> None:
        """
        Replace a field and rewrite the YAML file.

        Raises:
            ConfigIOError: If the file cannot be read or written
            ValueError: If the field is read-only
        """
        self._check_writable(field)
        with _lock_for(self.config_file):
            data = self._load()
            data[field.value] = value
            self._write_text(yaml.safe_dump(data, sort_keys=False))
        logger.info(f"Replaced {field.value} in {self.config_file}")


class PropertiesCredentialStore(FileCredentialStore):
    """
    Credential store backed by a Java ``ads.properties`` file.

    Replacement rewrites the matching ``key=value`` line in place, keeping
    comments and every other line untouched.
    """

    KEYS = {
        CredentialField.CLIENT_ID: "api.googleads.clientId",
        CredentialField.CLIENT_SECRET: "api.googleads.clientSecret",
        CredentialField.DEV_TOKEN: "api.googleads.developerToken",
        CredentialField.REFRESH_TOKEN: "api.googleads.refreshToken",
        CredentialField.LOGIN_CUSTOMER_ID: "api.googleads.loginCustomerId",
    }

    def _line_pattern(self, field: CredentialField) -> "re.Pattern[str]":
        return re.compile(r"^\s*" + re.escape(self.KEYS[field]) + r"\s*[=:]")

    def get(self, field: CredentialField) -> str:
        pattern = self._line_pattern(field)
        for line in self._read_text().splitlines():
            if pattern.match(line):
                return re.split(r"[=:]", line, maxsplit=1)[1].strip()
        return ""

    def replace(self, field: CredentialField, value: str) -> None:
        """
        Replace a field and rewrite the properties file.

        Raises:
            ConfigIOError: If the file cannot be read or written
            ValueError: If the field is read-only
        """
        self._check_writable(field)
        key = self.KEYS[field]
        pattern = self._line_pattern(field)

        with _lock_for(self.config_file):
            lines = self._read_text().splitlines()
            replaced = False
            for i, line in enumerate(lines):
                if pattern.match(line):
                    lines[i] = f"{key}={value}"
                    replaced = True
            if not replaced:
                lines.append(f"{key}={value}")
            self._write_text("\n".join(lines) + "\n")
        logger.info(f"Replaced {key} in {self.config_file}")


def open_credential_store(config_file: str) -> FileCredentialStore:
    """
    Open the credential store matching a configuration file's format.

    Args:
        config_file: Path to ``google-ads.yaml`` or ``ads.properties``

    Returns:
        Credential store for the file

    Raises:
        ConfigIOError: If the file does not exist or its format is unknown
    """
    path = Path(config_file).expanduser()
    if not path.exists():
        raise ConfigIOError(f"Configuration file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return YamlCredentialStore(str(path))
    if suffix == ".properties":
        return PropertiesCredentialStore(str(path))

    raise ConfigIOError(
        f"Unsupported configuration file format: {path.name} "
        f"(expected .yaml, .yml or .properties)"
    )
