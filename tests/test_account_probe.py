"""Tests for the account probe."""

from unittest import mock

import pytest
import requests

from oauthdoctor.account_probe import AccountProbe
from oauthdoctor.config import DEFAULT_API_VERSION
from oauthdoctor.credentials import CredentialField
from oauthdoctor.exceptions import ProviderAPIError, TransportError
from oauthdoctor.token_exchanger import AuthorizedTransport


@pytest.fixture
def transport():
    return AuthorizedTransport(session=mock.Mock(), access_token="a", refresh_token="r")


def respond(transport, status_code=200, text="{}"):
    response = mock.Mock(status_code=status_code, ok=status_code < 400, text=text)
    transport.session.get.return_value = response
    return response


class TestAccountProbe:
    """Tests for AccountProbe."""

    def test_get_account_success(self, config, transport):
        """A body without an error field is returned as-is."""
        body = '{"resourceName": "customers/1234567890", "id": "1234567890"}'
        respond(transport, text=body)

        assert AccountProbe(config).get_account(transport) == body

        call_args = transport.session.get.call_args
        assert call_args[0][0] == (
            f"https://googleads.googleapis.com/{DEFAULT_API_VERSION}/customers/1234567890"
        )
        assert call_args[1]["headers"] == {"developer-token": "old_dev_token"}
        assert call_args[1]["timeout"] == 30

    def test_login_customer_id_header(self, config, store, transport):
        """login-customer-id is sent without dashes when configured."""
        store.values[CredentialField.LOGIN_CUSTOMER_ID] = "999-888-7777"
        respond(transport)

        AccountProbe(config).get_account(transport)

        headers = transport.session.get.call_args[1]["headers"]
        assert headers["login-customer-id"] == "9998887777"

    def test_error_field_raises_with_full_body(self, config, transport):
        """A top-level error field fails with the full body."""
        body = '{"error": {"code": 401, "message": "no", "status": "UNAUTHENTICATED"}}'
        respond(transport, status_code=401, text=body)

        with pytest.raises(ProviderAPIError) as exc_info:
            AccountProbe(config).get_account(transport)

        assert str(exc_info.value) == body
        assert exc_info.value.status_code == 401

    def test_error_field_on_200_still_fails(self, config, transport):
        """The error field decides failure even on a 200 status."""
        respond(transport, text='{"error": {"message": "odd"}}')

        with pytest.raises(ProviderAPIError):
            AccountProbe(config).get_account(transport)

    def test_non_json_error_status_fails(self, config, transport):
        """An unsuccessful status without JSON still fails."""
        respond(transport, status_code=404, text="<html>Not Found</html>")

        with pytest.raises(ProviderAPIError, match="Not Found"):
            AccountProbe(config).get_account(transport)

    def test_network_error(self, config, transport):
        """Transport failures become TransportError."""
        transport.session.get.side_effect = requests.Timeout("read timed out")

        with pytest.raises(TransportError, match="read timed out"):
            AccountProbe(config).get_account(transport)
