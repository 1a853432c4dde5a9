"""
Tests for GalaChainClient: response interpretation, retry and transport errors.

HTTP is mocked at the requests.Session level; backoff uses a recording sleep.
"""

import asyncio

import pytest
import requests

from conftest import make_response
from services.exceptions import (
    ApiError,
    AuthError,
    NetworkError,
    NotRegisteredError,
    ParseError,
)
from services.galachain import (
    BALANCE_MAX_RETRIES,
    CHECK_MAX_RETRIES,
    REGISTER_MAX_RETRIES,
    GalaChainClient,
    parse_balance_records,
)

ADDRESS = "eth|5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
PUBLIC_KEY_HEX = "04" + "ab" * 64

REGISTERED = {"Status": 1, "Data": {"publicKey": "A" * 44, "signing": "ETH"}}


@pytest.fixture
def client(chain_config, http_session, fake_sleep):
    return GalaChainClient(chain_config, session=http_session, sleep=fake_sleep)


class TestClientInit:
    """Tests for client construction."""

    def test_sets_json_headers(self, client, http_session):
        assert http_session.headers["Content-Type"] == "application/json"
        assert "User-Agent" in http_session.headers

    def test_creates_session_when_omitted(self, chain_config):
        client = GalaChainClient(chain_config)
        assert isinstance(client.session, requests.Session)
        client.close()

    def test_close(self, client, http_session):
        client.close()
        http_session.close.assert_called_once()


class TestCheckRegistration:
    """Tests for the public key lookup."""

    def test_registered(self, client, http_session, chain_config):
        http_session.post.return_value = make_response(200, REGISTERED)

        assert client.check_registration(ADDRESS) is True
        http_session.post.assert_called_once_with(
            chain_config.public_key_url, json={"user": ADDRESS}, timeout=30.0
        )

    @pytest.mark.parametrize("status", [400, 404])
    def test_not_found_statuses(self, client, http_session, fake_sleep, status):
        http_session.post.return_value = make_response(status, {"message": "whatever"})

        assert client.check_registration(ADDRESS) is False
        assert http_session.post.call_count == 1
        assert fake_sleep.delays == []

    @pytest.mark.parametrize("data", [None, "", {}, []])
    def test_success_with_empty_data(self, client, http_session, data):
        http_session.post.return_value = make_response(200, {"Status": 1, "Data": data})
        assert client.check_registration(ADDRESS) is False

    def test_not_found_phrasing(self, client, http_session):
        http_session.post.return_value = make_response(
            409, text='{"Message": "No public key for user eth|abc"}'
        )
        assert client.check_registration(ADDRESS) is False

    def test_unexpected_status_code_in_body(self, client, http_session):
        http_session.post.return_value = make_response(200, {"Status": 0, "Message": "boom"})

        with pytest.raises(ApiError) as exc_info:
            client.check_registration(ADDRESS)
        assert http_session.post.call_count == 1
        assert not exc_info.value.retryable

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_errors(self, client, http_session, status):
        http_session.post.return_value = make_response(status, {"error": "denied"})

        with pytest.raises(AuthError) as exc_info:
            client.check_registration(ADDRESS)
        assert exc_info.value.status == status
        assert http_session.post.call_count == 1

    def test_invalid_json(self, client, http_session):
        http_session.post.return_value = make_response(200, text="<html>oops</html>")

        with pytest.raises(ParseError):
            client.check_registration(ADDRESS)
        assert http_session.post.call_count == 1

    def test_retries_then_succeeds(self, client, http_session, fake_sleep):
        http_session.post.side_effect = [
            make_response(500, text="upstream error"),
            make_response(503, text="unavailable"),
            make_response(200, REGISTERED),
        ]

        assert client.check_registration(ADDRESS) is True
        assert http_session.post.call_count == 3
        assert fake_sleep.delays == [1.0, 2.0]

    def test_exhausted_retries_surface_last_error(self, client, http_session, fake_sleep):
        http_session.post.return_value = make_response(503, text="unavailable")

        with pytest.raises(ApiError) as exc_info:
            client.check_registration(ADDRESS)
        assert exc_info.value.status == 503
        assert http_session.post.call_count == CHECK_MAX_RETRIES + 1
        assert fake_sleep.delays == [1.0, 2.0]

    def test_timeout(self, client, http_session):
        http_session.post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(NetworkError) as exc_info:
            client.check_registration(ADDRESS)
        assert exc_info.value.kind == NetworkError.TIMEOUT
        assert exc_info.value.is_timeout
        assert http_session.post.call_count == CHECK_MAX_RETRIES + 1

    def test_connection_refused(self, client, http_session):
        http_session.post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(NetworkError) as exc_info:
            client.check_registration(ADDRESS)
        assert exc_info.value.kind == NetworkError.CONNECTION
        assert not exc_info.value.is_timeout

    def test_network_error_then_success(self, client, http_session, fake_sleep):
        http_session.post.side_effect = [
            requests.ConnectionError("refused"),
            make_response(200, REGISTERED),
        ]
        assert client.check_registration(ADDRESS) is True
        assert fake_sleep.delays == [1.0]

    def test_async_form(self, client, http_session):
        http_session.post.return_value = make_response(200, REGISTERED)
        assert asyncio.run(client.check_registration_async(ADDRESS)) is True


class TestRegister:
    """Tests for public key registration."""

    def test_success(self, client, http_session, chain_config):
        http_session.post.return_value = make_response(201, {"ok": True})

        assert client.register(PUBLIC_KEY_HEX) is None
        http_session.post.assert_called_once_with(
            chain_config.registration_url, json={"publicKey": PUBLIC_KEY_HEX}, timeout=30.0
        )

    def test_client_error_not_retried(self, client, http_session, fake_sleep):
        http_session.post.return_value = make_response(400, text="bad key")

        with pytest.raises(ApiError) as exc_info:
            client.register(PUBLIC_KEY_HEX)
        assert exc_info.value.status == 400
        assert exc_info.value.body == "bad key"
        assert "HTTP 400" in str(exc_info.value)
        assert http_session.post.call_count == 1
        assert fake_sleep.delays == []

    def test_server_errors_retried(self, client, http_session, fake_sleep):
        http_session.post.return_value = make_response(502, text="bad gateway")

        with pytest.raises(ApiError):
            client.register(PUBLIC_KEY_HEX)
        assert http_session.post.call_count == REGISTER_MAX_RETRIES + 1
        assert fake_sleep.delays == [1.0, 2.0, 4.0]

    def test_fail_twice_then_succeed(self, client, http_session, fake_sleep):
        http_session.post.side_effect = [
            requests.ConnectionError("refused"),
            make_response(503, text="unavailable"),
            make_response(200, {}),
        ]
        assert client.register(PUBLIC_KEY_HEX) is None
        assert http_session.post.call_count == 3
        assert fake_sleep.delays == [1.0, 2.0]

    def test_rate_limit_retried(self, client, http_session, fake_sleep):
        http_session.post.side_effect = [
            make_response(429, text="slow down"),
            make_response(200, {}),
        ]
        client.register(PUBLIC_KEY_HEX)
        assert http_session.post.call_count == 2

    def test_forbidden(self, client, http_session):
        http_session.post.return_value = make_response(403, text="no")
        with pytest.raises(AuthError) as exc_info:
            client.register(PUBLIC_KEY_HEX)
        assert exc_info.value.status == 403
        assert exc_info.value.body == "no"
        assert http_session.post.call_count == 1


class TestGetBalance:
    """Tests for FetchBalances."""

    def test_request_payload(self, client, http_session, chain_config):
        http_session.post.return_value = make_response(200, {"Status": 1, "Data": []})

        client.get_balance(ADDRESS)

        http_session.post.assert_called_once_with(
            chain_config.balance_url,
            json={
                "owner": ADDRESS,
                "collection": "GALA",
                "category": "Unit",
                "type": "none",
                "additionalKey": "none",
                "instance": "0",
            },
            timeout=30.0,
        )

    def test_no_records(self, client, http_session):
        http_session.post.return_value = make_response(200, {"Status": 1, "Data": []})
        assert client.get_balance(ADDRESS) == (0.0, 0.0)

    def test_locked_holds_subtracted(self, client, http_session):
        http_session.post.return_value = make_response(200, {
            "Status": 1,
            "Data": [{
                "owner": ADDRESS,
                "collection": "GALA",
                "quantity": "100",
                "lockedHolds": [{"quantity": "30", "expires": 0}],
            }],
        })
        assert client.get_balance(ADDRESS) == (70.0, 30.0)

    def test_malformed_quantity(self, client, http_session):
        http_session.post.return_value = make_response(
            200, {"Status": 1, "Data": [{"quantity": "lots"}]}
        )
        with pytest.raises(ParseError):
            client.get_balance(ADDRESS)
        assert http_session.post.call_count == 1

    def test_error_status_in_body(self, client, http_session):
        http_session.post.return_value = make_response(200, {"Status": 0, "Message": "chaincode error"})
        with pytest.raises(ApiError, match="chaincode error"):
            client.get_balance(ADDRESS)

    @pytest.mark.parametrize("status,text", [
        (400, "User not registered"),
        (404, "UserProfile not found for eth|5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"),
    ])
    def test_unregistered_owner(self, client, http_session, fake_sleep, status, text):
        http_session.post.return_value = make_response(status, text=text)

        with pytest.raises(NotRegisteredError) as exc_info:
            client.get_balance(ADDRESS)
        assert exc_info.value.chain_address == ADDRESS
        assert http_session.post.call_count == 1
        assert fake_sleep.delays == []

    def test_other_client_errors_are_api_errors(self, client, http_session):
        http_session.post.return_value = make_response(404, text="Not Found")
        with pytest.raises(ApiError) as exc_info:
            client.get_balance(ADDRESS)
        assert exc_info.value.status == 404

    def test_fail_twice_then_succeed(self, client, http_session, fake_sleep):
        http_session.post.side_effect = [
            requests.Timeout("slow"),
            make_response(500, text="oops"),
            make_response(200, {"Status": 1, "Data": [{"quantity": "5"}]}),
        ]
        assert client.get_balance(ADDRESS) == (5.0, 0.0)
        assert http_session.post.call_count == 3
        assert fake_sleep.delays == [1.0, 2.0]

    def test_always_failing(self, client, http_session):
        http_session.post.side_effect = requests.ConnectionError("down")
        with pytest.raises(NetworkError):
            client.get_balance(ADDRESS)
        assert http_session.post.call_count == BALANCE_MAX_RETRIES + 1


class TestParseBalanceRecords:
    """Tests for reducing balance records."""

    def test_none(self):
        assert parse_balance_records(None) == (0.0, 0.0)

    def test_numeric_quantities(self):
        assert parse_balance_records([{"quantity": 12.5, "lockedHolds": []}]) == (12.5, 0.0)

    def test_decimal_strings(self):
        records = [{"quantity": "1.5", "lockedHolds": [{"quantity": "0.25"}, {"quantity": "0.25"}]}]
        assert parse_balance_records(records) == (1.0, 0.5)

    def test_missing_locked_holds(self):
        assert parse_balance_records([{"quantity": "3"}]) == (3.0, 0.0)

    @pytest.mark.parametrize("records", [
        {"quantity": "1"},
        ["not a record"],
        [{"quantity": None}],
        [{"quantity": True}],
        [{"quantity": "NaN"}],
        [{"quantity": "1", "lockedHolds": "none"}],
        [{"quantity": "1", "lockedHolds": [{"quantity": "x"}]}],
    ])
    def test_malformed(self, records):
        with pytest.raises(ParseError):
            parse_balance_records(records)
