"""Plaid API client tests.

Tests critical integration points:
- Credentials and Link configuration sent to Plaid
- 429 rate limit handling with exponential backoff
- Plaid error bodies surfaced as PlaidAPIError
- Transaction pagination
"""

import json

import pytest
import requests
import responses

from config import PlaidConfig, PlaidEnvironment
from errors import PlaidAPIError
from integrations import plaid_client as plaid_client_module
from integrations import price_client
from integrations.plaid_client import PlaidClient
from integrations.token_crypto import decrypt_token, encrypt_token

BASE_URL = "https://sandbox.plaid.com"


# ============================================================================
# TEST FIXTURES
# ============================================================================


@pytest.fixture
def plaid_client():
    config = PlaidConfig(client_id="client-123", secret="secret-456")
    return PlaidClient(config=config, retry_delay=0)


@pytest.fixture
def no_sleep(mocker):
    return mocker.patch.object(plaid_client_module.time, "sleep")


def request_body(call):
    return json.loads(call.request.body)


# ============================================================================
# CONFIGURATION
# ============================================================================


def test_base_url_follows_environment():
    config = PlaidConfig(
        client_id="id", secret="s", environment=PlaidEnvironment.PRODUCTION
    )
    assert PlaidClient(config=config).base_url == "https://production.plaid.com"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"client_id": "", "secret": "s"},
        {"client_id": "id", "secret": ""},
        {"client_id": "id", "secret": "s", "timeout": 0},
        {"client_id": "id", "secret": "s", "products": []},
    ],
)
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ValueError):
        PlaidConfig(**kwargs)


def test_load_config_rejects_unknown_environment(monkeypatch):
    from config import load_plaid_config

    monkeypatch.setenv("PLAID_ENV", "staging")
    with pytest.raises(ValueError, match="Invalid PLAID_ENV"):
        load_plaid_config()


# ============================================================================
# REQUESTS
# ============================================================================


def test_link_token_create(plaid_client, mock_responses):
    mock_responses.post(
        f"{BASE_URL}/link/token/create",
        json={"link_token": "link-sandbox-abc", "expiration": "2026-10-19T12:00:00Z"},
    )

    assert plaid_client.link_token_create(7) == "link-sandbox-abc"

    call = mock_responses.calls[0]
    assert call.request.headers["PLAID-CLIENT-ID"] == "client-123"
    assert call.request.headers["PLAID-SECRET"] == "secret-456"
    body = request_body(call)
    assert body["user"] == {"client_user_id": "7"}
    assert body["client_name"] == "Budget App"
    assert body["products"] == ["transactions", "investments"]
    assert body["country_codes"] == ["CA"]
    assert body["language"] == "en"


def test_public_token_exchange(plaid_client, mock_responses):
    mock_responses.post(
        f"{BASE_URL}/item/public_token/exchange",
        json={"access_token": "access-sandbox-1", "item_id": "item-1", "request_id": "r"},
    )

    result = plaid_client.item_public_token_exchange("public-sandbox-1")

    assert result == {"access_token": "access-sandbox-1", "item_id": "item-1"}
    assert request_body(mock_responses.calls[0]) == {"public_token": "public-sandbox-1"}


def test_transactions_get_paginates(plaid_client, mock_responses, mocker):
    mocker.patch.object(plaid_client_module, "TRANSACTIONS_PAGE_SIZE", 2)
    pages = [
        [{"transaction_id": "t1"}, {"transaction_id": "t2"}],
        [{"transaction_id": "t3"}],
    ]
    for page in pages:
        mock_responses.post(
            f"{BASE_URL}/transactions/get",
            json={"transactions": page, "total_transactions": 3},
        )

    transactions = plaid_client.transactions_get("access-1", "2026-09-01", "2026-09-30")

    assert [t["transaction_id"] for t in transactions] == ["t1", "t2", "t3"]
    first, second = (request_body(c) for c in mock_responses.calls)
    assert first["start_date"] == "2026-09-01"
    assert first["end_date"] == "2026-09-30"
    assert first["options"] == {"count": 2, "offset": 0}
    assert second["options"] == {"count": 2, "offset": 2}


def test_liabilities_missing_returns_empty(plaid_client, mock_responses):
    mock_responses.post(f"{BASE_URL}/liabilities/get", json={"accounts": []})
    assert plaid_client.liabilities_get("access-1") == {}


# ============================================================================
# ERROR HANDLING
# ============================================================================


def test_rate_limit_retries_with_backoff(mock_responses, no_sleep):
    client = PlaidClient(
        config=PlaidConfig(client_id="id", secret="s"), retry_delay=2
    )
    mock_responses.post(f"{BASE_URL}/accounts/get", status=429, json={})
    mock_responses.post(f"{BASE_URL}/accounts/get", status=429, json={})
    mock_responses.post(
        f"{BASE_URL}/accounts/get", json={"accounts": [{"account_id": "a1"}]}
    )

    accounts = client.accounts_get("access-1")

    assert accounts == [{"account_id": "a1"}]
    assert len(mock_responses.calls) == 3
    assert [c.args[0] for c in no_sleep.call_args_list] == [2, 4]


def test_rate_limit_gives_up_after_max_retries(plaid_client, mock_responses, no_sleep):
    for _ in range(3):
        mock_responses.post(
            f"{BASE_URL}/accounts/get",
            status=429,
            json={"error_code": "RATE_LIMIT_EXCEEDED", "error_message": "slow down"},
        )

    with pytest.raises(PlaidAPIError) as exc_info:
        plaid_client.accounts_get("access-1")

    assert exc_info.value.status_code == 429
    assert exc_info.value.to_dict()["retry"] is True


def test_plaid_error_body_is_surfaced(plaid_client, mock_responses):
    mock_responses.post(
        f"{BASE_URL}/item/public_token/exchange",
        status=400,
        json={
            "error_type": "INVALID_INPUT",
            "error_code": "INVALID_PUBLIC_TOKEN",
            "error_message": "provided public token is in an invalid format",
        },
    )

    with pytest.raises(PlaidAPIError) as exc_info:
        plaid_client.item_public_token_exchange("bad")

    error = exc_info.value
    assert error.status_code == 400
    assert error.error_code == "INVALID_PUBLIC_TOKEN"
    assert error.endpoint == "/item/public_token/exchange"
    assert error.to_dict()["retry"] is False


def test_network_error_wrapped(plaid_client, mock_responses):
    mock_responses.post(
        f"{BASE_URL}/accounts/get", body=requests.ConnectionError("refused")
    )

    with pytest.raises(PlaidAPIError, match="Plaid request failed"):
        plaid_client.accounts_get("access-1")


@pytest.mark.parametrize(
    "body",
    ["<html>Service Unavailable</html>", "[]"],
)
def test_malformed_success_body_wrapped(plaid_client, mock_responses, body):
    mock_responses.post(f"{BASE_URL}/transactions/get", status=200, body=body)

    with pytest.raises(PlaidAPIError, match="Invalid response from Plaid") as exc_info:
        plaid_client.transactions_get("access-1", "2026-09-01", "2026-09-30")

    assert exc_info.value.status_code == 200
    assert exc_info.value.endpoint == "/transactions/get"


def test_missing_link_token_wrapped(plaid_client, mock_responses):
    mock_responses.post(f"{BASE_URL}/link/token/create", json={"request_id": "r"})

    with pytest.raises(PlaidAPIError, match="missing link_token") as exc_info:
        plaid_client.link_token_create(7)

    assert exc_info.value.endpoint == "/link/token/create"


def test_missing_access_token_wrapped(plaid_client, mock_responses):
    mock_responses.post(
        f"{BASE_URL}/item/public_token/exchange", json={"item_id": "item-1"}
    )

    with pytest.raises(PlaidAPIError, match="missing access_token") as exc_info:
        plaid_client.item_public_token_exchange("public-sandbox-1")

    assert exc_info.value.endpoint == "/item/public_token/exchange"


# ============================================================================
# PRICES & TOKEN STORAGE
# ============================================================================


@responses.activate
def test_current_price():
    responses.get(
        price_client.YAHOO_CHART_URL.format(symbol="VFV.TO"),
        json={
            "chart": {
                "result": [{"meta": {"regularMarketPrice": 110.0, "previousClose": 100.0}}]
            }
        },
    )

    assert price_client.get_current_price("VFV.TO") == {
        "price": 110.0,
        "change": 10.0,
        "changePercent": "10.00%",
        "previousClose": 100.0,
    }


@responses.activate
def test_current_price_missing_data():
    responses.get(
        price_client.YAHOO_CHART_URL.format(symbol="NOPE"),
        json={"chart": {"result": None, "error": {"code": "Not Found"}}},
    )

    assert price_client.get_current_price("NOPE") is None


def test_token_encryption_roundtrip():
    encrypted = encrypt_token("access-sandbox-secret")

    assert encrypted != "access-sandbox-secret"
    assert decrypt_token(encrypted) == "access-sandbox-secret"


def test_token_passthrough_without_key(monkeypatch):
    monkeypatch.delenv("ENCRYPTION_KEY")

    assert encrypt_token("plain") == "plain"
    assert decrypt_token("plain") == "plain"
