"""
OAuth doctor for the Google Ads API client libraries.

This package diagnoses the OAuth2 flows (web and installed application)
used by a client library to obtain access tokens, classifies any failure
onto a small set of root causes and guides the operator through fixing
the client library configuration file.

Public API:
    DiagnosticConfig: Settings for one diagnostic pass
    FlowKind: Supported OAuth2 flows
    FlowOrchestrator: Runs a diagnostic pass
    DiagnosticCode: Diagnosable root causes
    classify: Map a raw error onto a DiagnosticCode
    RemediationEngine: Execute the fix for a DiagnosticCode
    open_credential_store: Open a client library configuration file

Exceptions:
    OAuthDoctorError: Base exception
    ConfigurationError: Invalid diagnostic configuration
    AuthorizationError: Consent flow failed
    TransportError: Network failure
    ProviderOAuthError: Token endpoint rejection
    ProviderAPIError: Google Ads API rejection
    ConfigIOError: Configuration file read/write failure
"""

from .account_probe import AccountProbe
from .classifier import DiagnosticCode, classify, extract_error_message
from .config import DiagnosticConfig, FlowKind
from .console import OperatorConsole, TerminalConsole
from .coordinator import DiagnosticResult, FlowOrchestrator, FlowState
from .credentials import (
    CredentialField,
    CredentialStore,
    PropertiesCredentialStore,
    YamlCredentialStore,
    open_credential_store,
)
from .exceptions import (
    AuthorizationError,
    ConfigIOError,
    ConfigurationError,
    OAuthDoctorError,
    ProviderAPIError,
    ProviderOAuthError,
    TransportError,
)
from .remediation import RemediationEngine
from .token_exchanger import AuthorizedTransport, TokenExchanger

__all__ = [
    # Configuration
    "DiagnosticConfig",
    "FlowKind",
    # Credential store
    "CredentialField",
    "CredentialStore",
    "YamlCredentialStore",
    "PropertiesCredentialStore",
    "open_credential_store",
    # Engine
    "TokenExchanger",
    "AuthorizedTransport",
    "AccountProbe",
    "DiagnosticCode",
    "classify",
    "extract_error_message",
    "RemediationEngine",
    "OperatorConsole",
    "TerminalConsole",
    "FlowOrchestrator",
    "FlowState",
    "DiagnosticResult",
    # Exceptions
    "OAuthDoctorError",
    "ConfigurationError",
    "AuthorizationError",
    "TransportError",
    "ProviderOAuthError",
    "ProviderAPIError",
    "ConfigIOError",
]
