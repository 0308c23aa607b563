"""
Google Ads API account probe.

A token can be exchanged successfully yet still be rejected by the API
(wrong account, missing developer token, API disabled, ...). The probe issues
one authenticated request against the customer-account endpoint to check the
credentials end-to-end.
"""

import json
import logging

import requests

from .config import DiagnosticConfig
from .credentials import CredentialField
from .exceptions import ProviderAPIError, TransportError
from .token_exchanger import AuthorizedTransport

logger = logging.getLogger(__name__)


class AccountProbe:
    """
    Issues a single GET to ``/{version}/customers/{customer_id}``.

    Example:
        probe = AccountProbe(config)
        body = probe.get_account(transport)
    """

    def __init__(self, config: DiagnosticConfig):
        """
        Initialize account probe.

        Args:
            config: Diagnostic configuration
        """
        self.config = config

    def build_headers(self) -> dict:
        """
        Build the Google Ads specific request headers.

        Returns:
            Headers with developer-token and, when configured, login-customer-id
        """
        store = self.config.store
        headers = {"developer-token": store.get(CredentialField.DEV_TOKEN)}

        login_customer_id = store.login_customer_id
        if login_customer_id:
            headers["login-customer-id"] = login_customer_id

        return headers

    def get_account(self, transport: AuthorizedTransport) -> str:
        """
        Fetch the target customer account.

        Args:
            transport: Authenticated transport from the token exchanger

        Returns:
            Raw JSON response body

        Raises:
            ProviderAPIError: If the response carries a top-level "error" field
                              or an unsuccessful status; the text is the full body
            TransportError: On network failure
        """
        url = self.config.account_url
        logger.debug(f"GET {url}")

        try:
            response = transport.session.get(
                url,
                headers=self.build_headers(),
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Network error while probing account: {e}")
            raise TransportError(f"Network error while probing account: {e}") from e

        body = response.text
        logger.debug(f"Response: {response.status_code} {body}")

        if self._has_error_field(body) or not response.ok:
            raise ProviderAPIError(body, status_code=response.status_code)

        logger.info(f"Retrieved customer account {self.config.customer_id}")
        return body

    @staticmethod
    def _has_error_field(body: str) -> bool:
        try:
            parsed = json.loads(body)
        except ValueError:
            return False
        return isinstance(parsed, dict) and parsed.get("error") is not None
