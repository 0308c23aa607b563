"""
Flow orchestrator for a diagnostic pass.

This module drives one pass of the selected OAuth2 flow:

    Start -> Exchanging -> Probing -> Success
    Start -> Exchanging -> Failed
    Start -> Exchanging -> Probing -> Failed

On failure the error is classified and remediated, then the pass ends.
There is no retry loop: the operator re-runs the doctor after following the
suggested fix.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .account_probe import AccountProbe
from .auth_server import AuthorizationResult, run_authorization_flow
from .classifier import DiagnosticCode, classify, extract_error_message
from .config import DiagnosticConfig, FlowKind
from .console import OperatorConsole, TerminalConsole
from .credentials import CredentialField
from .exceptions import AuthorizationError, ConfigIOError, OAuthDoctorError
from .remediation import RemediationEngine
from .token_exchanger import AuthorizedTransport, TokenExchanger

logger = logging.getLogger(__name__)


class FlowState(Enum):
    """States of a diagnostic pass."""

    START = "start"
    EXCHANGING = "exchanging"
    PROBING = "probing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class DiagnosticResult:
    """
    Outcome of a diagnostic pass.

    Attributes:
        state: Terminal state (SUCCESS or FAILED)
        failed_at: State the pass was in when it failed (if failed)
        code: Diagnosed root cause (if failed)
        account: Raw account body from the probe (if successful)
        refresh_token_saved: Whether the new refresh token was persisted
    """

    state: FlowState
    failed_at: Optional[FlowState] = None
    code: Optional[DiagnosticCode] = None
    account: Optional[str] = None
    refresh_token_saved: bool = False

    @property
    def success(self) -> bool:
        return self.state is FlowState.SUCCESS


class FlowOrchestrator:
    """
    Runs one diagnostic pass for the configured flow.

    Example:
        orchestrator = FlowOrchestrator(config)
        result = orchestrator.run()
        if not result.success:
            print(result.code.value)
    """

    def __init__(
        self,
        config: DiagnosticConfig,
        console: Optional[OperatorConsole] = None,
        exchanger: Optional[TokenExchanger] = None,
        probe: Optional[AccountProbe] = None,
        engine: Optional[RemediationEngine] = None,
    ):
        """
        Initialize flow orchestrator.

        Args:
            config: Diagnostic configuration
            console: Operator console (terminal if not provided)
            exchanger: Token exchanger (created from config if not provided)
            probe: Account probe (created from config if not provided)
            engine: Remediation engine (created with the console if not provided)
        """
        self.config = config
        self.console = console or TerminalConsole()
        self.exchanger = exchanger or TokenExchanger(config)
        self.probe = probe or AccountProbe(config)
        self.engine = engine or RemediationEngine(self.console)
        self.state = FlowState.START

    def run(self) -> DiagnosticResult:
        """
        Run the diagnostic pass.

        Returns:
            DiagnosticResult describing the terminal state

        Raises:
            ConfigIOError: If a remediation or refresh-token write-back fails
        """
        self.state = FlowState.START
        logger.info(f"Diagnosing the {self.config.flow.value} flow")

        try:
            self.state = FlowState.EXCHANGING
            transport = self._authenticate()

            self.state = FlowState.PROBING
            account = self.probe.get_account(transport)
        except OAuthDoctorError as e:
            return self._fail(e)

        self.state = FlowState.SUCCESS
        self.console.inform(
            f"Your credentials can access Google Ads account {self.config.customer_id}."
        )
        if self.config.verbose:
            self.console.inform(account)

        saved = self._offer_refresh_token(transport)
        return DiagnosticResult(
            state=FlowState.SUCCESS, account=account, refresh_token_saved=saved
        )

    def _authenticate(self) -> AuthorizedTransport:
        if self.config.flow is FlowKind.WEB:
            return self.exchanger.from_refresh_token()

        result: AuthorizationResult = run_authorization_flow(
            self.config,
            open_browser=self.config.open_browser,
            timeout=self.config.callback_timeout,
        )
        if not result.success:
            raise AuthorizationError(f"{result.error}: {result.error_description}")

        return self.exchanger.exchange_code(result.authorization_code)

    def _fail(self, error: OAuthDoctorError) -> DiagnosticResult:
        failed_at = self.state
        self.state = FlowState.FAILED
        logger.debug(f"Pass failed while {failed_at.value}: {error}")

        message = extract_error_message(error)
        if message:
            self.console.inform(f"JSON response error: {message}")

        code = classify(error)
        self.engine.remediate(code, self.config)

        return DiagnosticResult(state=FlowState.FAILED, failed_at=failed_at, code=code)

    def _offer_refresh_token(self, transport: AuthorizedTransport) -> bool:
        new_token = transport.refresh_token
        if not new_token:
            self.console.inform(
                "Google did not return a refresh token. Remove this app's access at "
                "https://myaccount.google.com/permissions and run the doctor again "
                "to generate one."
            )
            return False

        store = self.config.store
        if self.config.flow is FlowKind.WEB and new_token == store.get(
            CredentialField.REFRESH_TOKEN
        ):
            return False

        self.console.inform(
            "Would you like to replace your refresh token in the client library "
            "config file with the new one generated?"
        )
        answer = self.console.read_line("Enter Y for Yes [Anything else is No]")

        if answer != "Y":
            self.console.inform("Refresh token is NOT replaced")
            return False

        try:
            store.replace(CredentialField.REFRESH_TOKEN, new_token)
        except ConfigIOError as e:
            self.console.error(f"ERROR: Could not update refresh_token: {e}")
            raise

        self.console.inform("Refresh token replaced")
        return True
