"""Shared fixtures for OAuth doctor tests."""

from typing import Dict, List, Optional, Tuple

import pytest

from oauthdoctor.config import DiagnosticConfig, FlowKind
from oauthdoctor.console import OperatorConsole
from oauthdoctor.credentials import CredentialField, CredentialStore
from oauthdoctor.exceptions import ConfigIOError


class RecordingStore(CredentialStore):
    """In-memory credential store that records every replacement."""

    def __init__(self, values: Optional[Dict[CredentialField, str]] = None, fail_writes: bool = False):
        self.values = dict(values or {})
        self.replacements: List[Tuple[CredentialField, str]] = []
        self.fail_writes = fail_writes

    def get(self, field: CredentialField) -> str:
        return self.values.get(field, "")

    def replace(self, field: CredentialField, value: str) -> None:
        self._check_writable(field)
        if self.fail_writes:
            raise ConfigIOError("disk full")
        self.replacements.append((field, value))
        self.values[field] = value


class ScriptedConsole(OperatorConsole):
    """Console that answers prompts from a script and records output."""

    def __init__(self, answers: Optional[List[str]] = None):
        self.answers = list(answers or [])
        self.prompts: List[str] = []
        self.messages: List[str] = []
        self.errors: List[str] = []

    def inform(self, message: str) -> None:
        self.messages.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def read_line(self, prompt: str) -> str:
        self.prompts.append(prompt)
        line = self.answers.pop(0) if self.answers else "\n"
        return line.rstrip("\r\n")

    @property
    def output(self) -> str:
        return "\n".join(self.messages + self.errors)


@pytest.fixture
def store() -> RecordingStore:
    """Credential store with a full set of credentials."""
    return RecordingStore(
        {
            CredentialField.CLIENT_ID: "old.apps.googleusercontent.com",
            CredentialField.CLIENT_SECRET: "old_secret",
            CredentialField.DEV_TOKEN: "old_dev_token",
            CredentialField.REFRESH_TOKEN: "old_refresh_token",
        }
    )


@pytest.fixture
def make_console():
    """Factory for scripted consoles."""
    return ScriptedConsole


@pytest.fixture
def config(store) -> DiagnosticConfig:
    """Installed-app diagnostic configuration backed by the recording store."""
    return DiagnosticConfig(
        store=store,
        customer_id="123-456-7890",
        flow=FlowKind.INSTALLED_APP,
        open_browser=False,
    )


@pytest.fixture
def web_config(store) -> DiagnosticConfig:
    """Web flow diagnostic configuration backed by the recording store."""
    return DiagnosticConfig(store=store, customer_id="1234567890", flow=FlowKind.WEB)
