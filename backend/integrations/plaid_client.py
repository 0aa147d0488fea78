"""
Plaid API Client

Wrapper for the Plaid REST endpoints used by the app: Link token creation,
public token exchange, transactions, accounts, investment holdings,
liabilities and Item removal.
"""

import time

import requests

from config import PlaidConfig, load_plaid_config
from errors import PlaidAPIError
from logging_config import get_logger, mask_token

logger = get_logger(__name__)

# Plaid caps transactions/get at 500 per page
TRANSACTIONS_PAGE_SIZE = 500
MAX_TRANSACTION_PAGES = 50


class PlaidClient:
    """Client for the Plaid API."""

    def __init__(self, config: PlaidConfig | None = None, retry_delay: float = 2):
        """
        Initialize Plaid API client.

        Args:
            config: Plaid configuration (loaded from the environment if omitted)
            retry_delay: Initial backoff in seconds when rate limited
        """
        self.config = config or load_plaid_config()
        self.base_url = self.config.base_url
        self.retry_delay = retry_delay
        self.headers = {
            "PLAID-CLIENT-ID": self.config.client_id,
            "PLAID-SECRET": self.config.secret,
            "Content-Type": "application/json",
        }

    def _post(self, endpoint: str, payload: dict) -> dict:
        """
        POST to a Plaid endpoint with automatic retry on rate limits.

        Args:
            endpoint: API endpoint path (e.g. /accounts/get)
            payload: JSON request body

        Returns:
            JSON response from API

        Raises:
            PlaidAPIError: After max retries or for non-retryable errors
        """
        url = f"{self.base_url}{endpoint}"
        max_retries = self.config.max_retries

        for attempt in range(max_retries):
            if attempt > 0:
                logger.info(f"Retry attempt {attempt + 1}/{max_retries} for {endpoint}")

            try:
                response = requests.post(
                    url, json=payload, headers=self.headers, timeout=self.config.timeout
                )
            except requests.RequestException as e:
                # Network errors, timeouts, etc.
                logger.error(f"Plaid request failed: POST {endpoint}: {e}")
                raise PlaidAPIError(
                    f"Plaid request failed: {e}", endpoint=endpoint
                ) from e

            if response.status_code == 429 and attempt < max_retries - 1:
                # Exponential backoff: 2s, 4s, 8s
                wait_time = self.retry_delay * (2**attempt)
                logger.warning(
                    f"Rate limited by Plaid on {endpoint}, retrying in {wait_time}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(wait_time)
                continue

            if response.status_code >= 400:
                raise self._error_from_response(response, endpoint)

            try:
                body = response.json()
            except ValueError as e:
                logger.error(f"Plaid returned a non-JSON body: POST {endpoint}")
                raise PlaidAPIError(
                    "Invalid response from Plaid",
                    status_code=response.status_code,
                    endpoint=endpoint,
                ) from e
            if not isinstance(body, dict):
                logger.error(f"Plaid returned a non-object body: POST {endpoint}")
                raise PlaidAPIError(
                    "Invalid response from Plaid",
                    status_code=response.status_code,
                    endpoint=endpoint,
                )
            return body

        raise PlaidAPIError(
            f"Failed after {max_retries} attempts", status_code=429, endpoint=endpoint
        )

    @staticmethod
    def _require(response: dict, key: str, endpoint: str):
        """Read a required field from a Plaid response body."""
        try:
            return response[key]
        except KeyError as e:
            logger.error(f"Plaid response missing '{key}': POST {endpoint}")
            raise PlaidAPIError(
                f"Invalid response from Plaid: missing {key}", endpoint=endpoint
            ) from e

    @staticmethod
    def _error_from_response(response, endpoint: str) -> PlaidAPIError:
        """Build a PlaidAPIError from Plaid's error body."""
        error_code = None
        message = f"Plaid API error ({response.status_code})"
        try:
            body = response.json()
            error_code = body.get("error_code")
            message = body.get("error_message") or message
        except ValueError:
            pass

        logger.error(
            f"Plaid API request failed: POST {endpoint} "
            f"status={response.status_code} error_code={error_code}"
        )
        return PlaidAPIError(
            message,
            status_code=response.status_code,
            error_code=error_code,
            endpoint=endpoint,
        )

    def link_token_create(self, user_id) -> str:
        """
        Create a Link token for the given user.

        Returns:
            The link_token string
        """
        payload = {
            "user": {"client_user_id": str(user_id)},
            "client_name": self.config.client_name,
            "products": self.config.products,
            "country_codes": self.config.country_codes,
            "language": self.config.language,
        }
        response = self._post("/link/token/create", payload)
        link_token = self._require(response, "link_token", "/link/token/create")
        logger.info(
            f"Link token created: {mask_token(link_token)}", extra={"user_id": user_id}
        )
        return link_token

    def item_public_token_exchange(self, public_token: str) -> dict:
        """
        Exchange a Link public token for a permanent access token.

        Returns:
            {"access_token": str, "item_id": str}
        """
        endpoint = "/item/public_token/exchange"
        response = self._post(endpoint, {"public_token": public_token})
        return {
            "access_token": self._require(response, "access_token", endpoint),
            "item_id": self._require(response, "item_id", endpoint),
        }

    def transactions_get(self, access_token: str, start_date: str, end_date: str) -> list[dict]:
        """
        Get transactions for an Item with automatic pagination.

        Args:
            access_token: Item access token
            start_date: Start date (YYYY-MM-DD)
            end_date: End date (YYYY-MM-DD)

        Returns:
            List of ALL transaction dictionaries in the window
        """
        transactions = []
        page = 0

        while page < MAX_TRANSACTION_PAGES:
            response = self._post(
                "/transactions/get",
                {
                    "access_token": access_token,
                    "start_date": start_date,
                    "end_date": end_date,
                    "options": {
                        "count": TRANSACTIONS_PAGE_SIZE,
                        "offset": len(transactions),
                    },
                },
            )
            batch = response.get("transactions", [])
            transactions.extend(batch)
            total = response.get("total_transactions", len(transactions))

            if not batch or len(transactions) >= total:
                break
            page += 1

        return transactions

    def accounts_get(self, access_token: str) -> list[dict]:
        """Get the accounts of an Item."""
        response = self._post("/accounts/get", {"access_token": access_token})
        return response.get("accounts", [])

    def investments_holdings_get(self, access_token: str) -> dict:
        """
        Get investment holdings for an Item.

        Returns:
            {"holdings": [...], "securities": [...], "accounts": [...]}
        """
        response = self._post(
            "/investments/holdings/get", {"access_token": access_token}
        )
        return {
            "holdings": response.get("holdings") or [],
            "securities": response.get("securities") or [],
            "accounts": response.get("accounts") or [],
        }

    def liabilities_get(self, access_token: str) -> dict:
        """
        Get liabilities (credit, mortgage, student) for an Item.

        Returns:
            {"credit": [...] | None, "mortgage": [...] | None, "student": [...] | None}
        """
        response = self._post("/liabilities/get", {"access_token": access_token})
        return response.get("liabilities") or {}

    def item_remove(self, access_token: str) -> None:
        """Remove an Item, invalidating its access token."""
        self._post("/item/remove", {"access_token": access_token})
