"""
Plaid Service - Business Logic

Orchestrates the Plaid bank integration: Link tokens, token exchange,
transaction sync with categorization, accounts, investment holdings,
liabilities and bank disconnection.

Every per-bank provider call is isolated: one failing bank is logged and
skipped, the others are still returned.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, date, datetime, timedelta

import requests
from cryptography.fernet import InvalidToken

from config import get_plaid_environment, load_ingestion_config
from database import banks as db_banks
from errors import PlaidAPIError, ValidationError
from integrations import price_client
from integrations.plaid_client import PlaidClient
from integrations.token_crypto import decrypt_token, encrypt_token
from logging_config import get_logger, mask_token
from services import reconciliation_service

logger = get_logger(__name__)

DEFAULT_INSTITUTION_NAME = "Connected Bank"
INVESTMENT_ACCOUNT_TYPE = "investment"
BROKERAGE_SUBTYPE = "brokerage"

# Errors that only affect a single bank
BANK_ERRORS = (PlaidAPIError, InvalidToken)


def get_client() -> PlaidClient:
    """Plaid client configured from the environment."""
    return PlaidClient()


def get_status(user_id) -> dict:
    """Integration status for the status endpoint."""
    return {
        "message": "Plaid integration ready",
        "user_id": user_id,
        "plaid_env": get_plaid_environment().value,
    }


# ============================================================================
# Link & token exchange
# ============================================================================


def create_link_token(user_id) -> str:
    """
    Create a Plaid Link token for the user.

    Returns:
        link_token string
    """
    logger.info("Creating link token", extra={"user_id": user_id})
    return get_client().link_token_create(user_id)


def exchange_public_token(user_id, public_token: str) -> dict:
    """
    Exchange a Link public token and store the resulting bank connection.

    Args:
        user_id: User ID
        public_token: Public token returned by Plaid Link

    Returns:
        Result dict for the frontend

    Raises:
        ValidationError: If public_token is missing
        PlaidAPIError: If Plaid rejects the exchange
    """
    if not isinstance(public_token, str) or not public_token.strip():
        raise ValidationError("public_token is required", field="public_token")

    logger.info(
        f"Exchanging public token {mask_token(public_token)}",
        extra={"user_id": user_id},
    )
    exchange = get_client().item_public_token_exchange(public_token)

    bank = db_banks.save_user_bank(
        user_id=user_id,
        item_id=exchange["item_id"],
        access_token=encrypt_token(exchange["access_token"]),
        institution_name=DEFAULT_INSTITUTION_NAME,
    )
    logger.info(
        f"Bank connection saved (item {exchange['item_id']})",
        extra={"user_id": user_id, "bank_id": bank["id"]},
    )

    return {
        "success": True,
        "message": "Bank connected successfully",
        "institution_name": bank["institution_name"],
        "bank_id": bank["id"],
    }


# ============================================================================
# Transactions
# ============================================================================


def _parse_date(value, field: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a date (YYYY-MM-DD)", field=field)


def resolve_date_range(start_date=None, end_date=None, lookback_days=None) -> tuple[str, str]:
    """
    Resolve the transaction window.

    Missing end_date defaults to today (UTC); missing start_date to
    lookback_days before today.

    Returns:
        (start_date, end_date) as YYYY-MM-DD strings
    """
    if lookback_days is None:
        lookback_days = load_ingestion_config().default_lookback_days

    today = datetime.now(UTC).date()
    end = _parse_date(end_date, "end_date") if end_date else today
    start = (
        _parse_date(start_date, "start_date")
        if start_date
        else today - timedelta(days=lookback_days)
    )

    if start > end:
        raise ValidationError("start_date must not be after end_date", field="start_date")

    return start.isoformat(), end.isoformat()


def _fetch_bank_transactions(client, bank, start_date, end_date) -> dict:
    access_token = decrypt_token(bank["access_token"])
    transactions = client.transactions_get(access_token, start_date, end_date)
    accounts = client.accounts_get(access_token)
    return {"transactions": transactions, "accounts": accounts}


def fetch_transactions(user_id, start_date=None, end_date=None) -> dict:
    """
    Fetch transactions from every linked bank and categorize them.

    Banks are fetched in parallel; a bank that fails is logged and left out.

    Args:
        user_id: User ID
        start_date: Window start (YYYY-MM-DD, optional)
        end_date: Window end (YYYY-MM-DD, optional)

    Returns:
        {
            "transactions": [...],
            "accounts": [...],
            "processing_summary": {"total", "auto_categorized", "manual_review_added"}
        }

    Raises:
        ValidationError: If a date is malformed
        PersistenceUnavailableError: If categorization state cannot be read
    """
    banks = db_banks.get_user_banks(user_id)
    if not banks:
        return {"transactions": [], "accounts": []}

    start_str, end_str = resolve_date_range(start_date, end_date)
    logger.info(
        f"Fetching transactions from {start_str} to {end_str}",
        extra={"user_id": user_id},
    )

    client = get_client()
    all_transactions = []
    all_accounts = []

    max_workers = min(load_ingestion_config().max_workers, len(banks))
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            (bank, executor.submit(_fetch_bank_transactions, client, bank, start_str, end_str))
            for bank in banks
        ]

        for bank, future in futures:
            try:
                result = future.result()
            except BANK_ERRORS as e:
                logger.error(
                    f"Error fetching transactions for bank {bank['id']}: {e}",
                    extra={"user_id": user_id, "bank_id": bank["id"]},
                )
                continue
            all_transactions.extend(result["transactions"])
            all_accounts.extend(result["accounts"])

    logger.info(
        f"Total transactions found: {len(all_transactions)}",
        extra={"user_id": user_id},
    )

    summary = reconciliation_service.process_transactions(user_id, all_transactions)

    return {
        "transactions": all_transactions,
        "accounts": all_accounts,
        "processing_summary": {"total": len(all_transactions), **summary.to_dict()},
    }


# ============================================================================
# Banks & accounts
# ============================================================================


def list_banks(user_id) -> list:
    """Connected banks, newest first (no access tokens)."""
    banks = db_banks.get_user_banks(user_id)
    logger.info(f"Found {len(banks)} connected banks", extra={"user_id": user_id})
    return [
        {
            "id": bank["id"],
            "institution_name": bank["institution_name"] or DEFAULT_INSTITUTION_NAME,
            "created_at": bank["created_at"].isoformat() if bank["created_at"] else None,
            "item_id": bank["item_id"],
        }
        for bank in banks
    ]


def get_accounts(user_id) -> dict:
    """
    Accounts across all banks, annotated with their bank.

    Returns:
        {"accounts", "banks", "total_accounts", "total_banks"}
    """
    banks = db_banks.get_user_banks(user_id)
    if not banks:
        return {"accounts": [], "banks": []}

    client = get_client()
    all_accounts = []
    bank_summary = []

    for bank in banks:
        try:
            accounts = client.accounts_get(decrypt_token(bank["access_token"]))
        except BANK_ERRORS as e:
            logger.error(
                f"Error fetching accounts for bank {bank['id']}: {e}",
                extra={"user_id": user_id, "bank_id": bank["id"]},
            )
            continue

        logger.debug(
            f"Found {len(accounts)} accounts for bank {bank['id']}",
            extra={"user_id": user_id, "bank_id": bank["id"]},
        )

        all_accounts.extend(
            {
                **account,
                "bank_id": bank["id"],
                "bank_name": bank["institution_name"],
                "item_id": bank["item_id"],
            }
            for account in accounts
        )
        bank_summary.append(
            {
                "bank_id": bank["id"],
                "bank_name": bank["institution_name"],
                "account_count": len(accounts),
                "item_id": bank["item_id"],
            }
        )

    return {
        "accounts": all_accounts,
        "banks": bank_summary,
        "total_accounts": len(all_accounts),
        "total_banks": len(banks),
    }


def is_investment_account(account: dict) -> bool:
    return (
        account.get("type") == INVESTMENT_ACCOUNT_TYPE
        or account.get("subtype") == BROKERAGE_SUBTYPE
    )


def get_holdings(user_id) -> dict:
    """
    Investment holdings across banks with investment accounts.

    Holdings are annotated with bank and account details; securities are
    de-duplicated by security_id.

    Returns:
        {"holdings", "securities", "total_holdings", "total_securities"}
    """
    banks = db_banks.get_user_banks(user_id)
    all_holdings = []
    all_securities = []
    seen_securities = set()

    client = get_client() if banks else None

    for bank in banks:
        try:
            access_token = decrypt_token(bank["access_token"])
            accounts = client.accounts_get(access_token)

            investment_accounts = [a for a in accounts if is_investment_account(a)]
            if not investment_accounts:
                logger.info(
                    f"No investment accounts found for bank {bank['id']}",
                    extra={"user_id": user_id, "bank_id": bank["id"]},
                )
                continue

            holdings_data = client.investments_holdings_get(access_token)
        except BANK_ERRORS as e:
            logger.error(
                f"Error fetching holdings for bank {bank['id']}: {e}",
                extra={"user_id": user_id, "bank_id": bank["id"]},
            )
            continue

        accounts_by_id = {a.get("account_id"): a for a in accounts}
        for holding in holdings_data["holdings"]:
            account = accounts_by_id.get(holding.get("account_id")) or {}
            all_holdings.append(
                {
                    **holding,
                    "bank_id": bank["id"],
                    "bank_name": bank["institution_name"],
                    "account_name": account.get("name") or "Unknown Account",
                    "account_type": account.get("type") or "Unknown",
                    "account_subtype": account.get("subtype") or "Unknown",
                }
            )

        for security in holdings_data["securities"]:
            security_id = security.get("security_id")
            if security_id in seen_securities:
                continue
            seen_securities.add(security_id)
            all_securities.append(security)

    logger.info(
        f"Holdings: {len(all_holdings)}, Securities: {len(all_securities)}",
        extra={"user_id": user_id},
    )

    return {
        "holdings": all_holdings,
        "securities": all_securities,
        "total_holdings": len(all_holdings),
        "total_securities": len(all_securities),
    }


def get_liabilities(user_id) -> dict:
    """
    Credit, mortgage and student loan liabilities merged across banks.

    Returns:
        {"credit": [...], "mortgage": [...], "student": [...]}
    """
    all_liabilities = {"credit": [], "mortgage": [], "student": []}
    banks = db_banks.get_user_banks(user_id)
    if not banks:
        return all_liabilities

    client = get_client()

    for bank in banks:
        try:
            liabilities = client.liabilities_get(decrypt_token(bank["access_token"]))
        except BANK_ERRORS as e:
            logger.error(
                f"Error fetching liabilities for bank {bank['id']}: {e}",
                extra={"user_id": user_id, "bank_id": bank["id"]},
            )
            continue

        for kind, entries in all_liabilities.items():
            entries.extend(
                {**entry, "bank_name": bank["institution_name"], "bank_id": bank["id"]}
                for entry in liabilities.get(kind) or []
            )

    logger.info(
        "Liabilities found: "
        + ", ".join(f"{kind}={len(entries)}" for kind, entries in all_liabilities.items()),
        extra={"user_id": user_id},
    )
    return all_liabilities


def disconnect_bank(user_id, bank_id) -> bool:
    """
    Remove a bank connection.

    The Plaid Item is removed first on a best-effort basis; the local row is
    deleted regardless.

    Returns:
        False if the bank does not exist for this user
    """
    bank = db_banks.get_user_bank(user_id, bank_id)
    if not bank:
        return False

    try:
        get_client().item_remove(decrypt_token(bank["access_token"]))
        logger.info(
            "Removed item from Plaid", extra={"user_id": user_id, "bank_id": bank_id}
        )
    except BANK_ERRORS as e:
        logger.warning(
            f"Could not remove from Plaid (item may already be removed): {e}",
            extra={"user_id": user_id, "bank_id": bank_id},
        )

    db_banks.delete_user_bank(user_id, bank_id)
    logger.info(
        f"Bank {bank_id} disconnected", extra={"user_id": user_id, "bank_id": bank_id}
    )
    return True


# ============================================================================
# Prices
# ============================================================================


def parse_symbols(symbols: str) -> list[str]:
    """Split a comma-separated symbol list, dropping blanks and repeats."""
    parsed = []
    for symbol in symbols.split(","):
        symbol = symbol.strip().upper()
        if symbol and symbol not in parsed:
            parsed.append(symbol)
    return parsed


def get_current_prices(symbols: str) -> dict:
    """
    Current prices for a comma-separated list of symbols.

    Symbols without data or whose lookup fails are omitted.
    """
    current_prices = {}
    for symbol in parse_symbols(symbols):
        try:
            price = price_client.get_current_price(symbol)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching price for {symbol}: {e}")
            continue
        if price:
            current_prices[symbol] = price
    return current_prices
