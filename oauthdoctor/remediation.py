"""
Remediation engine for diagnosed OAuth2 failures.

Given a DiagnosticCode, tells the operator what went wrong and, for codes
that can be fixed in place, collects replacement values and writes them to
the client library configuration file. Exactly one action runs per code.
"""

import logging

from .classifier import DiagnosticCode
from .config import DiagnosticConfig
from .console import OperatorConsole
from .credentials import CredentialField
from .exceptions import ConfigIOError

logger = logging.getLogger(__name__)

OAUTH_SETUP_GUIDE = (
    "https://developers.google.com/google-ads/api/docs/oauth/cloud-project"
)
DEV_TOKEN_GUIDE = (
    "https://developers.google.com/google-ads/api/docs/get-started/dev-token"
)

MESSAGES = {
    DiagnosticCode.ACCESS_NOT_PERMITTED_FOR_MANAGER_ACCOUNT: (
        "ERROR: Your credentials are not sufficient to access a manager account.\n"
        "Please login with a Google Ads account with manager access."
    ),
    DiagnosticCode.GOOGLE_ADS_API_DISABLED: (
        "ERROR: The Google Ads API is not enabled for your Google Cloud project."
    ),
    DiagnosticCode.INVALID_CLIENT_INFO: (
        "ERROR: Your client ID and/or secret may be invalid."
    ),
    DiagnosticCode.INVALID_REFRESH_TOKEN: "ERROR: Your refresh token may be invalid.",
    DiagnosticCode.UNAUTHORIZED: "ERROR: Your refresh token may be invalid.",
    DiagnosticCode.MISSING_DEV_TOKEN: (
        "ERROR: Your developer token is missing in the configuration file."
    ),
    DiagnosticCode.UNAUTHENTICATED: (
        "ERROR: The login email may not have access to the given account."
    ),
    DiagnosticCode.INVALID_CUSTOMER_ID: "ERROR: Your customer ID is invalid.",
    DiagnosticCode.UNKNOWN_ERROR: (
        "ERROR: Your credentials are invalid but we cannot determine the exact "
        "error. Please verify your developer token, client ID, client secret "
        "and refresh token."
    ),
}


class RemediationEngine:
    """
    Executes the remediation policy for a diagnostic code.

    Example:
        engine = RemediationEngine(console)
        engine.remediate(DiagnosticCode.MISSING_DEV_TOKEN, config)
    """

    def __init__(self, console: OperatorConsole):
        """
        Initialize remediation engine.

        Args:
            console: Operator interaction capability
        """
        self.console = console

    def remediate(self, code: DiagnosticCode, config: DiagnosticConfig) -> None:
        """
        Run the remediation action for a diagnostic code.

        Args:
            code: Diagnosed root cause
            config: Diagnostic configuration (its store receives replacements)

        Raises:
            ConfigIOError: If writing a replacement value fails
        """
        logger.info(f"Remediating {code.value}")
        self.console.error(MESSAGES[code])

        if code is DiagnosticCode.GOOGLE_ADS_API_DISABLED:
            self.console.pause("Press <Enter> to continue after you enable Google Ads API")
        elif code is DiagnosticCode.INVALID_CLIENT_INFO:
            self._replace_cloud_credentials(config)
        elif code is DiagnosticCode.MISSING_DEV_TOKEN:
            self._replace_dev_token(config)

    def _replace_cloud_credentials(self, config: DiagnosticConfig) -> None:
        self.console.inform(
            "Follow this guide to set up your OAuth2 client ID and client secret: "
            + OAUTH_SETUP_GUIDE
        )
        client_id = self.console.read_line("New Client ID")
        client_secret = self.console.read_line("New Client Secret")

        self._replace(config, CredentialField.CLIENT_ID, client_id)
        self._replace(config, CredentialField.CLIENT_SECRET, client_secret)

    def _replace_dev_token(self, config: DiagnosticConfig) -> None:
        self.console.inform(
            "Please follow this guide to retrieve your developer token: "
            + DEV_TOKEN_GUIDE
        )
        self.console.inform(
            "Please enter a new Developer Token here and it will replace "
            "the one in your client library configuration file"
        )
        dev_token = self.console.read_line("New Developer Token")

        self._replace(config, CredentialField.DEV_TOKEN, dev_token)

    def _replace(self, config: DiagnosticConfig, field: CredentialField, value: str) -> None:
        try:
            config.store.replace(field, value)
        except ConfigIOError as e:
            self.console.error(f"ERROR: Could not update {field.value}: {e}")
            raise
