"""
Error classifier for OAuth2 and Google Ads API failures.

Maps any failure raised during a diagnostic pass onto exactly one
DiagnosticCode. Rules are checked in declaration order and the first match
wins, so more specific patterns must come before the general ones.
"""

import json
import logging
from enum import Enum
from typing import Optional, Tuple, Union

logger = logging.getLogger(__name__)


class DiagnosticCode(Enum):
    """
    Root causes the OAuth doctor can diagnose.

    Not comprehensive: these are the errors returned by the Google OAuth2
    endpoint and the Google Ads API for the AdWords scope.
    """

    ACCESS_NOT_PERMITTED_FOR_MANAGER_ACCOUNT = "AccessNotPermittedForManagerAccount"
    GOOGLE_ADS_API_DISABLED = "GoogleAdsAPIDisabled"
    INVALID_CLIENT_INFO = "InvalidClientInfo"
    INVALID_REFRESH_TOKEN = "InvalidRefreshToken"
    INVALID_CUSTOMER_ID = "InvalidCustomerID"
    MISSING_DEV_TOKEN = "MissingDevToken"
    UNAUTHENTICATED = "Unauthenticated"
    UNAUTHORIZED = "Unauthorized"
    UNKNOWN_ERROR = "UnknownError"


RawError = Union[BaseException, str, bytes]

# Order matters: first match wins.
CLASSIFICATION_RULES: Tuple[Tuple[str, DiagnosticCode], ...] = (
    # Client ID and/or secret is invalid
    ("invalid_client", DiagnosticCode.INVALID_CLIENT_INFO),
    # Refresh token was not issued for this client ID and secret
    ("unauthorized_client", DiagnosticCode.UNAUTHORIZED),
    # Refresh token is not valid for any user
    ("invalid_grant", DiagnosticCode.INVALID_REFRESH_TOKEN),
    ("refresh token is not set", DiagnosticCode.INVALID_REFRESH_TOKEN),
    # User has no permission on the Google Ads account
    ("USER_PERMISSION_DENIED", DiagnosticCode.INVALID_REFRESH_TOKEN),
    ('"PERMISSION_DENIED"', DiagnosticCode.GOOGLE_ADS_API_DISABLED),
    ("UNAUTHENTICATED", DiagnosticCode.UNAUTHENTICATED),
    (
        "CANNOT_BE_EXECUTED_BY_MANAGER_ACCOUNT",
        DiagnosticCode.ACCESS_NOT_PERMITTED_FOR_MANAGER_ACCOUNT,
    ),
    ("DEVELOPER_TOKEN_PARAMETER_MISSING", DiagnosticCode.MISSING_DEV_TOKEN),
    ("INVALID_CUSTOMER_ID", DiagnosticCode.INVALID_CUSTOMER_ID),
)


def error_text(raw: RawError) -> str:
    """Return the text of a raw error, whatever form it arrived in."""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return str(raw)


def classify(raw: RawError) -> DiagnosticCode:
    """
    Classify a raw error.

    Args:
        raw: Exception, response body or transport failure string

    Returns:
        The DiagnosticCode of the first matching rule, or UNKNOWN_ERROR
    """
    text = error_text(raw)
    for pattern, code in CLASSIFICATION_RULES:
        if pattern in text:
            logger.debug(f"Matched {pattern!r} -> {code.value}")
            return code
    return DiagnosticCode.UNKNOWN_ERROR


def extract_error_message(raw: RawError) -> Optional[str]:
    """
    Pull the human-readable message out of a JSON error body.

    Handles both the Google Ads API shape ``{"error": {"message": ...}}``
    and the token endpoint shape ``{"error": "...", "error_description": ...}``.
    The body may be embedded after a ``Response:`` prefix.

    Returns:
        The message, or None if the text holds no such JSON
    """
    text = error_text(raw).strip()
    if "Response:" in text:
        text = text.split("Response:", 1)[1].strip()

    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        return None

    if not isinstance(parsed, dict):
        return None

    error = parsed.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        return message if isinstance(message, str) else None

    description = parsed.get("error_description")
    return description if isinstance(description, str) else None
