"""
Diagnostic configuration for the OAuth doctor.

This module provides the settings for one diagnostic pass: which client
library configuration file to work on, which Google Ads account to probe,
which OAuth2 flow to simulate, and the fixed Google endpoints involved.
Tunables can be overridden from environment variables.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .credentials import CredentialStore

# The only scope the doctor ever requests
ADWORDS_SCOPE = "https://www.googleapis.com/auth/adwords"

# Google OAuth2 endpoints
AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"

# Google Ads API
ADS_API_BASE_URL = "https://googleads.googleapis.com"
DEFAULT_API_VERSION = "v21"

DEFAULT_REDIRECT_PORT = 8080
DEFAULT_TIMEOUT = 30


class FlowKind(str, Enum):
    """OAuth2 flows supported by the Google Ads API client libraries."""

    WEB = "web"
    INSTALLED_APP = "installed_app"


def normalize_customer_id(customer_id: str) -> str:
    """
    Strip whitespace and dashes from a customer ID.

    Args:
        customer_id: Customer ID as typed (e.g., "123-456-7890")

    Returns:
        Digits-only customer ID (e.g., "1234567890")
    """
    return customer_id.strip().replace("-", "")


@dataclass
class DiagnosticConfig:
    """
    Configuration for one diagnostic pass.

    Attributes:
        store: Credential store for the client library configuration file
        customer_id: Google Ads account ID to probe (dashes are stripped)
        flow: OAuth2 flow to simulate
        verbose: Log request and response details
        redirect_host: Loopback host for the installed-app redirect
        redirect_port: Loopback port for the installed-app redirect
        redirect_path: URL path for the installed-app redirect
        api_version: Google Ads API version used by the account probe
        timeout: Per-request network timeout in seconds
        open_browser: Open the consent page automatically
        callback_timeout: Seconds to wait for the consent redirect
    """

    store: "CredentialStore"
    customer_id: str
    flow: FlowKind = FlowKind.INSTALLED_APP
    verbose: bool = False

    redirect_host: str = "127.0.0.1"
    redirect_port: int = DEFAULT_REDIRECT_PORT
    redirect_path: str = "/oauth2callback"

    api_version: str = DEFAULT_API_VERSION
    timeout: int = DEFAULT_TIMEOUT

    open_browser: bool = True
    callback_timeout: int = 300

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.store is None:
            raise ConfigurationError("store cannot be empty")

        self.customer_id = normalize_customer_id(self.customer_id or "")
        if not self.customer_id:
            raise ConfigurationError("customer_id cannot be empty")
        if not self.customer_id.isdigit():
            raise ConfigurationError(
                f"customer_id must contain only digits and dashes, got {self.customer_id!r}"
            )

        try:
            self.flow = FlowKind(self.flow)
        except ValueError:
            valid = ", ".join(kind.value for kind in FlowKind)
            raise ConfigurationError(
                f"flow must be one of: {valid}, got {self.flow!r}"
            ) from None

        if not isinstance(self.redirect_port, int) or not (
            1 <= self.redirect_port <= 65535
        ):
            raise ConfigurationError(
                f"redirect_port must be between 1 and 65535, got {self.redirect_port}"
            )

        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")

        if self.callback_timeout <= 0:
            raise ConfigurationError("callback_timeout must be positive")

    @property
    def redirect_uri(self) -> str:
        """
        Loopback redirect URI registered for the installed-app flow.

        Returns:
            Complete redirect URI (e.g., http://127.0.0.1:8080/oauth2callback)
        """
        return f"http://{self.redirect_host}:{self.redirect_port}{self.redirect_path}"

    @property
    def account_url(self) -> str:
        """Customer-account endpoint probed to validate the credentials."""
        return f"{ADS_API_BASE_URL}/{self.api_version}/customers/{self.customer_id}"

    @classmethod
    def from_env(
        cls,
        store: "CredentialStore",
        customer_id: str,
        flow: FlowKind = FlowKind.INSTALLED_APP,
        verbose: bool = False,
        open_browser: bool = True,
    ) -> "DiagnosticConfig":
        """
        Build a configuration, reading tunables from environment variables.

        Optional environment variables:
            OAUTHDOCTOR_REDIRECT_PORT: Loopback redirect port (default: 8080)
            OAUTHDOCTOR_API_VERSION: Google Ads API version (default: v21)
            OAUTHDOCTOR_TIMEOUT: Network timeout in seconds (default: 30)

        Returns:
            DiagnosticConfig instance

        Raises:
            ConfigurationError: If an environment value is invalid
        """
        try:
            redirect_port = int(
                os.environ.get("OAUTHDOCTOR_REDIRECT_PORT", str(DEFAULT_REDIRECT_PORT))
            )
            timeout = int(os.environ.get("OAUTHDOCTOR_TIMEOUT", str(DEFAULT_TIMEOUT)))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric environment value: {e}") from e

        return cls(
            store=store,
            customer_id=customer_id,
            flow=flow,
            verbose=verbose,
            redirect_port=redirect_port,
            api_version=os.environ.get("OAUTHDOCTOR_API_VERSION", DEFAULT_API_VERSION),
            timeout=timeout,
            open_browser=open_browser,
        )
