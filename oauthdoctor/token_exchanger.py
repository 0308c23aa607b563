"""
Token exchanger for the OAuth doctor.

This module obtains an authenticated transport for the Google Ads API:
- Installed-app flow: authorization code → access/refresh tokens
- Web flow: stored refresh token → access token

Failures are raised with the provider's full response body in the error
text so the error classifier can inspect it. Nothing is persisted here.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from .config import ADWORDS_SCOPE, TOKEN_URL, DiagnosticConfig
from .credentials import CredentialField
from .exceptions import ProviderOAuthError, TransportError

logger = logging.getLogger(__name__)


@dataclass
class AuthorizedTransport:
    """
    Authenticated HTTP transport for Google APIs.

    Attributes:
        session: Session carrying the bearer Authorization header
        access_token: Short-lived access token
        refresh_token: Refresh token the access token was obtained with
                       ("" if the provider returned none)
        scope: Scopes granted by the provider
    """

    session: requests.Session
    access_token: str
    refresh_token: str
    scope: str = ""


class TokenExchanger:
    """
    Exchanges OAuth2 grants against Google's token endpoint.

    Client ID and client secret are read from the credential store on every
    call, so a replacement made by remediation is picked up by the next pass.
    """

    def __init__(self, config: DiagnosticConfig):
        """
        Initialize token exchanger.

        Args:
            config: Diagnostic configuration
        """
        self.config = config

    def exchange_code(self, authorization_code: str) -> AuthorizedTransport:
        """
        Exchange an authorization code for access and refresh tokens.

        Args:
            authorization_code: Code captured from the consent redirect

        Returns:
            AuthorizedTransport with the new tokens

        Raises:
            ValueError: If the authorization code is empty
            ProviderOAuthError: If the token endpoint rejects the code
            TransportError: On network failure
        """
        if not authorization_code:
            raise ValueError("authorization_code cannot be empty")

        logger.info("Exchanging authorization code for tokens")
        data = self._post_token_request(
            {
                "grant_type": "authorization_code",
                "code": authorization_code,
                "redirect_uri": self.config.redirect_uri,
                "scope": ADWORDS_SCOPE,
            }
        )
        return self._build_transport(data, fallback_refresh_token="")

    def from_refresh_token(self, refresh_token: Optional[str] = None) -> AuthorizedTransport:
        """
        Build an authenticated transport from an existing refresh token.

        Args:
            refresh_token: Refresh token to use (read from the store if omitted)

        Returns:
            AuthorizedTransport with a fresh access token

        Raises:
            TransportError: If no refresh token is set
            ProviderOAuthError: If the token endpoint rejects the refresh token
            TransportError: On network failure
        """
        if refresh_token is None:
            refresh_token = self.config.store.get(CredentialField.REFRESH_TOKEN)

        if not refresh_token:
            raise TransportError(
                "oauth2: token expired and refresh token is not set"
            )

        logger.info("Refreshing access token with the stored refresh token")
        data = self._post_token_request(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )
        return self._build_transport(data, fallback_refresh_token=refresh_token)

    def _post_token_request(self, grant: dict) -> dict:
        store = self.config.store
        payload = {
            "client_id": store.get(CredentialField.CLIENT_ID),
            "client_secret": store.get(CredentialField.CLIENT_SECRET),
            **grant,
        }

        try:
            response = requests.post(
                TOKEN_URL,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                data=payload,
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Network error during token request: {e}")
            raise TransportError(f"Network error during token request: {e}") from e

        logger.debug(f"Token endpoint response: {response.status_code} {response.text}")

        if response.status_code != 200:
            logger.error(
                f"Token request failed: {response.status_code} - {response.text}"
            )
            raise ProviderOAuthError(
                f"oauth2: cannot fetch token: {response.status_code}\n"
                f"Response: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderOAuthError(
                f"Invalid response from token endpoint: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    def _build_transport(self, data: dict, fallback_refresh_token: str) -> AuthorizedTransport:
        try:
            access_token = data["access_token"]
        except (KeyError, TypeError) as e:
            raise ProviderOAuthError(
                f"Invalid response from token endpoint: missing {e}"
            ) from e

        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"{data.get('token_type', 'Bearer')} {access_token}",
                "Accept": "application/json",
            }
        )

        logger.info("Successfully obtained an access token")
        return AuthorizedTransport(
            session=session,
            access_token=access_token,
            refresh_token=data.get("refresh_token", fallback_refresh_token),
            scope=data.get("scope", ""),
        )
