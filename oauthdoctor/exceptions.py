"""
Exception classes for the OAuth doctor.

This module defines the exception hierarchy for every failure a diagnostic
pass can run into. The text of each exception carries the raw provider
response (or transport failure string) so the error classifier can
pattern-match on it.
"""


class OAuthDoctorError(Exception):
    """Base exception for all OAuth doctor errors."""

    pass


class ConfigurationError(OAuthDoctorError):
    """Diagnostic configuration error (missing or invalid settings)."""

    pass


class AuthorizationError(OAuthDoctorError):
    """Consent flow failed before an authorization code was captured."""

    pass


class TransportError(OAuthDoctorError):
    """Network, DNS or TLS failure while talking to Google."""

    pass


class ProviderOAuthError(OAuthDoctorError):
    """The OAuth2 token endpoint rejected the request."""

    def __init__(self, message: str, status_code: int = 0, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ProviderAPIError(OAuthDoctorError):
    """
    The Google Ads API account endpoint returned an error body.

    The exception text is the full JSON response body, e.g.
    ``{"error": {"message": "...", "status": "PERMISSION_DENIED"}}``.
    """

    def __init__(self, body: str, status_code: int = 0):
        super().__init__(body)
        self.status_code = status_code
        self.body = body


class ConfigIOError(OAuthDoctorError):
    """Reading or writing the client library configuration file failed."""

    pass
