"""
Reconciliation Service - Transaction Categorization

Decides, for each provider transaction fetched during a sync, whether it is
already classified, can be auto-categorized from Plaid's primary category,
or must wait in the manual review queue.

Flow:
    raw transactions -> dedup against both tables -> classify
    -> idempotent inserts (auto + manual) -> counts

Ingestion never overwrites an existing categorization (ON CONFLICT DO
NOTHING) while categorize_transaction() always does. Re-syncing must not
clobber a category the user picked by hand.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from config import load_ingestion_config
from database import categorizations as db_categorizations
from errors import PersistenceUnavailableError, ValidationError
from logging_config import get_logger

logger = get_logger(__name__)

# Plaid personal_finance_category.primary codes clear enough to auto-categorize
AUTO_CATEGORIZE_PLAID_CATEGORIES = frozenset(
    {
        "INCOME",
        "PAYROLL",
        "DEPOSIT",
        "TRANSFER_IN",
        "TRANSFER_OUT",
        "BANK_FEES",
        "ATM_FEES",
        "INTEREST_EARNED",
        "INTEREST_CHARGED",
        "LOAN_PAYMENTS",
        "CREDIT_CARD_PAYMENT",
        "INSURANCE",
        "TAXES",
        "UTILITIES",
        "RENT_AND_UTILITIES",
        "MORTGAGE_AND_RENT",
    }
)

AUTO = "auto"
MANUAL = "manual"

MAX_CATEGORY_LENGTH = 100


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying one transaction."""

    decision: str
    category: str | None = None


@dataclass(frozen=True)
class ReconciliationSummary:
    """Records the engine attempted to place in each bucket."""

    auto_count: int = 0
    manual_count: int = 0

    def to_dict(self) -> dict:
        return {
            "auto_categorized": self.auto_count,
            "manual_review_added": self.manual_count,
        }


# ============================================================================
# Helper Functions
# ============================================================================


def get_transaction_id(transaction) -> str | None:
    """Return the provider transaction_id, or None if missing/malformed."""
    if not isinstance(transaction, dict):
        return None
    transaction_id = transaction.get("transaction_id")
    if not isinstance(transaction_id, str) or not transaction_id.strip():
        return None
    return transaction_id


def get_category_code(transaction: dict) -> str | None:
    """Plaid's personal_finance_category.primary, if present."""
    pfc = transaction.get("personal_finance_category")
    if not isinstance(pfc, dict):
        return None
    primary = pfc.get("primary")
    return primary if isinstance(primary, str) and primary else None


def display_category(code: str) -> str:
    """
    Convert a Plaid category code into a display name.

    Examples:
        TRANSFER_IN -> Transfer In
        ATM_FEES -> Atm Fees
    """
    words = code.replace("_", " ").lower().split(" ")
    return " ".join(word[:1].upper() + word[1:] for word in words)


def classify_transaction(transaction: dict) -> Classification:
    """
    Decide whether a transaction can be auto-categorized.

    Args:
        transaction: Provider transaction dict

    Returns:
        Classification(AUTO, display category) on a rule match,
        otherwise Classification(MANUAL)
    """
    code = get_category_code(transaction)
    if code and code in AUTO_CATEGORIZE_PLAID_CATEGORIES:
        return Classification(AUTO, display_category(code))
    return Classification(MANUAL)


# ============================================================================
# Dedup
# ============================================================================


def load_processed_ids(user_id) -> tuple[set, set]:
    """
    Load the user's categorized and queued transaction IDs.

    One query per table, both dispatched concurrently.

    Raises:
        PersistenceUnavailableError: If either lookup fails
    """
    with ThreadPoolExecutor(max_workers=2) as executor:
        categorized_future = executor.submit(
            db_categorizations.get_categorized_transaction_ids, user_id
        )
        review_future = executor.submit(
            db_categorizations.get_manual_review_transaction_ids, user_id
        )
        try:
            return categorized_future.result(), review_future.result()
        except SQLAlchemyError as e:
            logger.error(
                f"Could not load existing classifications: {e}",
                extra={"user_id": user_id},
            )
            raise PersistenceUnavailableError(
                "Transaction classifications are temporarily unavailable",
                user_id=user_id,
            ) from e


def filter_unprocessed(user_id, transactions) -> list[dict]:
    """
    Drop transactions that are already categorized or awaiting review.

    Records without a usable transaction_id are skipped, and repeated IDs
    within the batch keep their first occurrence.

    Args:
        user_id: Owner of the transactions
        transactions: Iterable of provider transaction dicts

    Returns:
        Transactions not yet seen, in input order
    """
    categorized_ids, review_ids = load_processed_ids(user_id)

    pending = []
    seen = set()
    skipped = 0

    for transaction in transactions:
        transaction_id = get_transaction_id(transaction)
        if transaction_id is None:
            skipped += 1
            continue
        if (
            transaction_id in seen
            or transaction_id in categorized_ids
            or transaction_id in review_ids
        ):
            continue
        seen.add(transaction_id)
        pending.append(transaction)

    if skipped:
        logger.warning(
            f"Skipped {skipped} transactions without a transaction_id",
            extra={"user_id": user_id},
        )

    return pending


# ============================================================================
# Ingestion
# ============================================================================


def _wait_all(futures: dict, user_id, kind: str) -> None:
    """Wait for every write; log failures without raising."""
    for future, transaction_id in futures.items():
        try:
            future.result()
        except Exception as e:
            logger.error(
                f"Failed to save {kind} for transaction {transaction_id}: {e}",
                extra={"user_id": user_id},
            )


def process_transactions(user_id, transactions, max_workers: int | None = None) -> ReconciliationSummary:
    """
    Auto-categorize clear transactions and queue the rest for manual review.

    Safe to run repeatedly on overlapping batches: already-processed
    transactions are filtered out and every insert is ON CONFLICT DO NOTHING.
    A failed insert is logged and does not stop the rest of the batch.

    Args:
        user_id: Owner of the transactions
        transactions: Provider transaction dicts
        max_workers: Thread pool size for the inserts (default from config)

    Returns:
        ReconciliationSummary with the number of transactions routed to each
        bucket (attempted, not necessarily persisted)

    Raises:
        PersistenceUnavailableError: If existing classifications cannot be loaded
    """
    transactions = list(transactions)
    if not transactions:
        return ReconciliationSummary()

    pending = filter_unprocessed(user_id, transactions)

    auto_transactions = []
    manual_transactions = []
    for transaction in pending:
        classification = classify_transaction(transaction)
        if classification.decision == AUTO:
            auto_transactions.append((transaction, classification.category))
        else:
            manual_transactions.append(transaction)

    if max_workers is None:
        max_workers = load_ingestion_config().max_workers

    if auto_transactions or manual_transactions:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            auto_futures = {
                executor.submit(
                    db_categorizations.insert_categorization_if_absent,
                    user_id,
                    transaction["transaction_id"],
                    category,
                    transaction,
                ): transaction["transaction_id"]
                for transaction, category in auto_transactions
            }
            manual_futures = {
                executor.submit(
                    db_categorizations.insert_manual_review_if_absent,
                    user_id,
                    transaction["transaction_id"],
                    transaction,
                ): transaction["transaction_id"]
                for transaction in manual_transactions
            }

            _wait_all(auto_futures, user_id, "categorization")
            _wait_all(manual_futures, user_id, "manual review entry")

    if auto_transactions:
        logger.info(
            f"Auto-categorized {len(auto_transactions)} transactions",
            extra={"user_id": user_id},
        )
    if manual_transactions:
        logger.info(
            f"Added {len(manual_transactions)} transactions for manual review",
            extra={"user_id": user_id},
        )

    return ReconciliationSummary(
        auto_count=len(auto_transactions), manual_count=len(manual_transactions)
    )


# ============================================================================
# Explicit categorization
# ============================================================================


def categorize_transaction(user_id, transaction_id, category, raw_data=None) -> dict:
    """
    Assign a category chosen by the user.

    Overwrites any existing categorization (category, data and timestamp) and
    removes the transaction from the manual review queue.

    Args:
        user_id: Owner of the transaction
        transaction_id: Provider transaction ID
        category: Category name
        raw_data: Provider transaction payload to keep alongside

    Returns:
        Stored categorization dict

    Raises:
        ValidationError: If transaction_id or category is missing/invalid
    """
    if not isinstance(transaction_id, str) or not transaction_id.strip():
        raise ValidationError("transaction_id is required", field="transaction_id")

    if not isinstance(category, str) or not category.strip():
        raise ValidationError("category is required", field="category")

    category = category.strip()
    if len(category) > MAX_CATEGORY_LENGTH:
        raise ValidationError(
            f"category must be at most {MAX_CATEGORY_LENGTH} characters",
            field="category",
        )

    categorization = db_categorizations.upsert_categorization(
        user_id, transaction_id, category, raw_data
    )

    logger.info(
        f'Categorized transaction {transaction_id} as "{category}" and removed from manual review',
        extra={"user_id": user_id},
    )
    return categorization


def get_manual_review(user_id) -> dict:
    """Transactions awaiting manual review, oldest first."""
    transactions = db_categorizations.get_manual_review_transactions(user_id)
    logger.info(
        f"Found {len(transactions)} transactions for manual review",
        extra={"user_id": user_id},
    )
    return {"transactions": transactions, "count": len(transactions)}


def get_categorizations(user_id) -> list:
    """All categorizations for a user."""
    return db_categorizations.get_categorizations(user_id)
