"""
Loopback redirect capture for the installed-app flow.

This module runs a short-lived local HTTP server that receives Google's
consent redirect and hands the authorization code back to the diagnostic
pass. The server shuts down after the first callback.
"""

import logging
import secrets
import socket
import threading
import webbrowser
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import click
from flask import Flask, Response, request
from werkzeug.serving import make_server

from .config import ADWORDS_SCOPE, AUTHORIZATION_URL, DiagnosticConfig
from .credentials import CredentialField

logger = logging.getLogger(__name__)

PAGE_TEMPLATE = """<html>
<head><title>{title}</title></head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 50px auto; padding: 20px;">
    <h1>{title}</h1>
    <p>{detail}</p>
    <p style="margin-top: 30px; color: #666;">You can close this window and return to the terminal.</p>
</body>
</html>"""


@dataclass
class AuthorizationResult:
    """
    Result of the consent redirect.

    Attributes:
        success: Whether an authorization code was received
        authorization_code: Authorization code from callback (if successful)
        error: OAuth error code from Google (if failed)
        error_description: Human-readable error description (if failed)
    """

    success: bool
    authorization_code: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


class OAuthCallbackServer:
    """
    Local HTTP server that captures the consent redirect.

    The server:
    1. Starts an HTTP listener on the loopback redirect port
    2. Generates the Google consent URL
    3. Waits for the redirect carrying ``code`` (or ``error``)
    4. Shuts down after receiving it
    """

    def __init__(self, config: DiagnosticConfig):
        """
        Initialize callback server.

        Args:
            config: Diagnostic configuration with the redirect settings
        """
        self.config = config
        self.app = Flask(__name__)
        self.app.logger.setLevel(logging.WARNING)
        self.httpd = None
        self.server: Optional[threading.Thread] = None
        self.result: Optional[AuthorizationResult] = None
        self.state = secrets.token_urlsafe(16)
        self._shutdown_event = threading.Event()

        self.app.add_url_rule(
            self.config.redirect_path,
            "oauth_callback",
            self._handle_callback,
            methods=["GET"],
        )

    def _finish(self, result: AuthorizationResult, status: int, title: str, detail: str) -> Response:
        self.result = result
        self._shutdown_event.set()
        return Response(
            PAGE_TEMPLATE.format(title=title, detail=detail),
            status=status,
            content_type="text/html",
        )

    def _handle_callback(self) -> Response:
        """Handle the consent redirect from Google."""
        logger.info("Received OAuth callback")

        error = request.args.get("error")
        if error:
            error_desc = request.args.get("error_description", error)
            logger.error(f"OAuth error: {error} - {error_desc}")
            return self._finish(
                AuthorizationResult(success=False, error=error, error_description=error_desc),
                400,
                "Authorization Failed",
                f"{error}: {error_desc}",
            )

        if request.args.get("state") != self.state:
            logger.error("OAuth callback state mismatch")
            return self._finish(
                AuthorizationResult(
                    success=False,
                    error="state_mismatch",
                    error_description="Callback state does not match the consent request",
                ),
                400,
                "Authorization Failed",
                "The callback did not come from this consent request.",
            )

        code = request.args.get("code")
        if not code:
            logger.error("No authorization code in callback")
            return self._finish(
                AuthorizationResult(
                    success=False,
                    error="missing_code",
                    error_description="No authorization code received",
                ),
                400,
                "Authorization Failed",
                "No authorization code received from Google.",
            )

        logger.info("Authorization code received successfully")
        return self._finish(
            AuthorizationResult(success=True, authorization_code=code),
            200,
            "Authorization Successful",
            "The OAuth doctor received your authorization code.",
        )

    def generate_authorization_url(self) -> str:
        """
        Generate the Google consent URL.

        Returns:
            Complete authorization URL requesting offline access to the AdWords scope
        """
        params = {
            "client_id": self.config.store.get(CredentialField.CLIENT_ID),
            "redirect_uri": self.config.redirect_uri,
            "response_type": "code",
            "scope": ADWORDS_SCOPE,
            "access_type": "offline",
            "prompt": "consent",
            "state": self.state,
        }
        url = f"{AUTHORIZATION_URL}?{urlencode(params)}"
        logger.debug(f"Generated authorization URL: {url}")
        return url

    def start(self) -> bool:
        """
        Bind the loopback port and serve callbacks in a background thread.

        The listening socket is created here rather than by Werkzeug, which
        exits the process when it cannot bind.

        Returns:
            True if the server is listening. False if the port could not be
            bound, in which case ``result`` holds a ``server_error``.
        """
        host = self.config.redirect_host
        port = self.config.redirect_port
        logger.info(f"Starting OAuth callback server on {host}:{port}")

        try:
            sock = socket.create_server((host, port))
        except OSError as e:
            logger.error(f"Could not listen on {host}:{port}: {e}")
            self.result = AuthorizationResult(
                success=False,
                error="server_error",
                error_description=f"Could not listen on {host}:{port}: {e}",
            )
            self._shutdown_event.set()
            return False

        # make_server duplicates the descriptor
        with sock:
            self.httpd = make_server(host, port, self.app, threaded=True, fd=sock.fileno())

        self.server = threading.Thread(target=self.httpd.serve_forever, daemon=True)
        self.server.start()
        return True

    def wait_for_callback(self, timeout: int = 300) -> AuthorizationResult:
        """
        Wait for the consent redirect.

        Args:
            timeout: Maximum seconds to wait (default: 300 = 5 minutes)

        Returns:
            AuthorizationResult with code or error
        """
        logger.info(f"Waiting for OAuth callback (timeout: {timeout}s)")

        if self._shutdown_event.wait(timeout=timeout):
            return self.result or AuthorizationResult(
                success=False,
                error="unknown",
                error_description="Server shutdown without result",
            )

        logger.warning(f"Timeout waiting for callback after {timeout}s")
        return AuthorizationResult(
            success=False,
            error="timeout",
            error_description=f"No callback received within {timeout} seconds. "
            f"Please ensure you completed the authorization in your browser.",
        )

    def stop(self) -> None:
        """Stop the callback server and release the port."""
        if self.server:
            logger.info("OAuth callback server shutting down")
            self._shutdown_event.set()
        if self.httpd:
            self.httpd.shutdown()
            self.httpd.server_close()
            self.httpd = None


def run_authorization_flow(
    config: DiagnosticConfig, open_browser: bool = True, timeout: int = 300
) -> AuthorizationResult:
    """
    Capture an authorization code through the browser consent page.

    Args:
        config: Diagnostic configuration
        open_browser: Whether to automatically open the browser
        timeout: Seconds to wait for the redirect

    Returns:
        AuthorizationResult with authorization code or error
    """
    server = OAuthCallbackServer(config)

    try:
        if not server.start():
            return server.result

        auth_url = server.generate_authorization_url()

        click.echo("\n" + "=" * 70)
        click.echo("GOOGLE ADS API OAUTH2 AUTHORIZATION")
        click.echo("=" * 70)
        click.echo("\nPlease authorize the application by visiting:")
        click.echo(f"\n  {auth_url}\n")

        if open_browser:
            try:
                webbrowser.open(auth_url)
            except Exception as e:
                logger.warning(f"Could not open browser automatically: {e}")
                click.echo("Please copy the URL above and paste it in your browser.")
        else:
            click.echo("Copy the URL above and paste it in your browser.")

        click.echo("\nWaiting for authorization...")
        click.echo("=" * 70 + "\n")

        result = server.wait_for_callback(timeout)

        if result.success:
            logger.info("Authorization flow completed successfully")
        else:
            logger.error(
                f"Authorization flow failed: {result.error} - {result.error_description}"
            )

        return result

    finally:
        server.stop()
