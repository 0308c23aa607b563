"""Tests for the loopback redirect capture."""

import dataclasses
import socket
from unittest import mock
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from oauthdoctor.auth_server import (
    AuthorizationResult,
    OAuthCallbackServer,
    run_authorization_flow,
)
from oauthdoctor.config import ADWORDS_SCOPE, AUTHORIZATION_URL


def free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def busy_port():
    """A loopback port with another listener already on it."""
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        sock.listen()
        yield sock.getsockname()[1]


@pytest.fixture
def live_server(config):
    """A callback server listening on a free loopback port."""
    server = OAuthCallbackServer(dataclasses.replace(config, redirect_port=free_port()))
    assert server.start() is True
    yield server
    server.stop()


class TestConsentUrl:
    """Tests for the consent URL sent to the operator's browser."""

    def test_requests_offline_adwords_access_with_forced_consent(self, config):
        """The URL forces the consent screen so Google issues a refresh token."""
        server = OAuthCallbackServer(config)
        url = server.generate_authorization_url()

        assert url.startswith(AUTHORIZATION_URL + "?")
        params = parse_qs(urlparse(url).query)
        assert params["client_id"] == ["old.apps.googleusercontent.com"]
        assert params["scope"] == [ADWORDS_SCOPE]
        assert params["response_type"] == ["code"]
        assert params["access_type"] == ["offline"]
        assert params["prompt"] == ["consent"]

    def test_redirects_to_loopback_host(self, config):
        """The redirect URI points at the local capture server, not an out-of-band page."""
        server = OAuthCallbackServer(dataclasses.replace(config, redirect_port=9090))
        params = parse_qs(urlparse(server.generate_authorization_url()).query)

        redirect = urlparse(params["redirect_uri"][0])
        assert redirect.scheme == "http"
        assert redirect.hostname == "127.0.0.1"
        assert redirect.port == 9090
        assert redirect.path == "/oauth2callback"

    def test_state_is_unique_per_server(self, config):
        """Each capture server carries its own state value."""
        first = OAuthCallbackServer(config)
        second = OAuthCallbackServer(config)

        assert first.state != second.state
        assert parse_qs(urlparse(first.generate_authorization_url()).query)["state"] == [
            first.state
        ]


class TestCallbackHandling:
    """Tests for the redirect handler."""

    def test_code_with_matching_state_is_captured(self, config):
        server = OAuthCallbackServer(config)

        with server.app.test_request_context(f"/oauth2callback?code=4/0Axyz&state={server.state}"):
            response = server._handle_callback()

        assert response.status_code == 200
        assert server.result == AuthorizationResult(success=True, authorization_code="4/0Axyz")

    def test_forged_state_is_rejected_even_with_a_code(self, config):
        """A code delivered with someone else's state is never used."""
        server = OAuthCallbackServer(config)

        with server.app.test_request_context("/oauth2callback?code=4/0Axyz&state=forged"):
            response = server._handle_callback()

        assert response.status_code == 400
        assert "did not come from this consent request" in response.get_data(as_text=True)
        assert server.result.success is False
        assert server.result.error == "state_mismatch"
        assert server.result.authorization_code is None

    def test_missing_state_is_rejected(self, config):
        server = OAuthCallbackServer(config)

        with server.app.test_request_context("/oauth2callback?code=4/0Axyz"):
            server._handle_callback()

        assert server.result.error == "state_mismatch"

    def test_denied_consent_is_reported(self, config):
        """An access_denied redirect ends the wait with Google's error."""
        server = OAuthCallbackServer(config)

        with server.app.test_request_context("/oauth2callback?error=access_denied"):
            response = server._handle_callback()

        assert response.status_code == 400
        assert server.result.error == "access_denied"
        assert server.result.error_description == "access_denied"
        assert server.wait_for_callback(timeout=1) is server.result

    def test_missing_code_is_reported(self, config):
        server = OAuthCallbackServer(config)

        with server.app.test_request_context(f"/oauth2callback?state={server.state}"):
            server._handle_callback()

        assert server.result.error == "missing_code"


class TestServerLifecycle:
    """Tests that bind real loopback sockets."""

    def test_callback_round_trip(self, live_server):
        """A browser redirect to the loopback URI hands the code to the waiter."""
        response = requests.get(
            live_server.config.redirect_uri,
            params={"code": "4/0Axyz", "state": live_server.state},
            timeout=5,
        )

        assert response.status_code == 200
        assert "Authorization Successful" in response.text
        result = live_server.wait_for_callback(timeout=5)
        assert result.success is True
        assert result.authorization_code == "4/0Axyz"

    def test_stop_releases_the_port(self, config):
        server = OAuthCallbackServer(dataclasses.replace(config, redirect_port=free_port()))
        assert server.start() is True
        server.stop()

        with socket.socket() as sock:
            sock.bind(("127.0.0.1", server.config.redirect_port))

    def test_busy_port_reports_server_error(self, config, busy_port):
        """A port held by another program fails right away instead of timing out."""
        server = OAuthCallbackServer(dataclasses.replace(config, redirect_port=busy_port))

        assert server.start() is False
        assert server.result.error == "server_error"
        assert f"127.0.0.1:{busy_port}" in server.result.error_description
        assert server.wait_for_callback(timeout=1).error == "server_error"
        server.stop()

    def test_no_callback_times_out(self, live_server):
        result = live_server.wait_for_callback(timeout=1)

        assert result.error == "timeout"
        assert "No callback received within 1 seconds" in result.error_description


class TestRunAuthorizationFlow:
    """Tests for run_authorization_flow."""

    @mock.patch("oauthdoctor.auth_server.webbrowser")
    def test_busy_port_skips_the_consent_url(self, mock_browser, config, busy_port, capsys):
        """Nothing is shown to the operator when the redirect port cannot be bound."""
        config = dataclasses.replace(config, redirect_port=busy_port)

        result = run_authorization_flow(config, open_browser=True, timeout=300)

        assert result.success is False
        assert result.error == "server_error"
        mock_browser.open.assert_not_called()
        assert AUTHORIZATION_URL not in capsys.readouterr().out

    @mock.patch("oauthdoctor.auth_server.webbrowser")
    @mock.patch.object(OAuthCallbackServer, "wait_for_callback")
    def test_banner_lists_consent_url_for_manual_copy(self, mock_wait, mock_browser, config, capsys):
        """Without a browser the operator is told to copy the consent URL."""
        mock_wait.return_value = AuthorizationResult(success=True, authorization_code="4/0Axyz")
        config = dataclasses.replace(config, redirect_port=free_port())

        result = run_authorization_flow(config, open_browser=False, timeout=300)

        assert result.authorization_code == "4/0Axyz"
        mock_wait.assert_called_once_with(300)
        mock_browser.open.assert_not_called()
        out = capsys.readouterr().out
        assert "GOOGLE ADS API OAUTH2 AUTHORIZATION" in out
        assert AUTHORIZATION_URL in out
        assert "prompt=consent" in out
        assert "Copy the URL above" in out

    @mock.patch("oauthdoctor.auth_server.webbrowser")
    @mock.patch.object(OAuthCallbackServer, "wait_for_callback")
    def test_browser_failure_falls_back_to_manual_copy(self, mock_wait, mock_browser, config, capsys):
        mock_wait.return_value = AuthorizationResult(success=False, error="timeout")
        mock_browser.open.side_effect = RuntimeError("no display")
        config = dataclasses.replace(config, redirect_port=free_port())

        result = run_authorization_flow(config, open_browser=True, timeout=1)

        assert result.error == "timeout"
        assert "Please copy the URL above" in capsys.readouterr().out
