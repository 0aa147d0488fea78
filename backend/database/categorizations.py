"""
Transaction Classification - Database Operations

Handles transaction_categorizations and manual_review_transactions.

Conflict policy differs by caller:
- insert_*_if_absent: ON CONFLICT DO NOTHING (ingestion, first write wins)
- upsert_categorization: ON CONFLICT DO UPDATE (explicit user choice wins)
"""

from sqlalchemy import func

from .base import dialect_insert, get_session
from .models.plaid import ManualReviewTransaction, TransactionCategorization


def _categorization_to_dict(c):
    return {
        "id": c.id,
        "user_id": c.user_id,
        "transaction_id": c.transaction_id,
        "category": c.category,
        "source_data": c.source_data,
        "created_at": c.created_at.isoformat() if c.created_at else None,
    }


# ============================================================================
# EXISTING-ID LOOKUPS (one query per table)
# ============================================================================


def get_categorized_transaction_ids(user_id):
    """Get the set of transaction IDs the user has already categorized."""
    with get_session() as session:
        rows = session.query(TransactionCategorization.transaction_id).filter(
            TransactionCategorization.user_id == user_id
        )
        return {row.transaction_id for row in rows}


def get_manual_review_transaction_ids(user_id):
    """Get the set of transaction IDs waiting in the user's review queue."""
    with get_session() as session:
        rows = session.query(ManualReviewTransaction.transaction_id).filter(
            ManualReviewTransaction.user_id == user_id
        )
        return {row.transaction_id for row in rows}


# ============================================================================
# INGESTION WRITES (idempotent, never overwrite)
# ============================================================================


def insert_categorization_if_absent(user_id, transaction_id, category, source_data):
    """Insert a categorization unless one exists. Returns True if inserted."""
    with get_session() as session:
        stmt = (
            dialect_insert(TransactionCategorization)
            .values(
                user_id=user_id,
                transaction_id=transaction_id,
                category=category,
                source_data=source_data,
            )
            .on_conflict_do_nothing(index_elements=["user_id", "transaction_id"])
        )
        result = session.execute(stmt)
        session.commit()
        # rowcount is 1 if inserted, 0 if conflict (duplicate)
        return result.rowcount > 0


def insert_manual_review_if_absent(user_id, transaction_id, transaction_data):
    """Queue a transaction for manual review unless already queued."""
    with get_session() as session:
        stmt = (
            dialect_insert(ManualReviewTransaction)
            .values(
                user_id=user_id,
                transaction_id=transaction_id,
                transaction_data=transaction_data,
            )
            .on_conflict_do_nothing(index_elements=["user_id", "transaction_id"])
        )
        result = session.execute(stmt)
        session.commit()
        return result.rowcount > 0


# ============================================================================
# EXPLICIT CATEGORIZATION (overwrites)
# ============================================================================


def upsert_categorization(user_id, transaction_id, category, source_data):
    """Categorize a transaction and drop it from the review queue.

    Both statements commit together. Existing categorizations are overwritten
    and their created_at refreshed.
    """
    with get_session() as session:
        stmt = dialect_insert(TransactionCategorization).values(
            user_id=user_id,
            transaction_id=transaction_id,
            category=category,
            source_data=source_data,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "transaction_id"],
            set_={
                "category": stmt.excluded.category,
                "source_data": stmt.excluded.source_data,
                "created_at": func.now(),
            },
        )
        session.execute(stmt)

        session.query(ManualReviewTransaction).filter(
            ManualReviewTransaction.user_id == user_id,
            ManualReviewTransaction.transaction_id == transaction_id,
        ).delete()

        session.commit()

        categorization = (
            session.query(TransactionCategorization)
            .filter(
                TransactionCategorization.user_id == user_id,
                TransactionCategorization.transaction_id == transaction_id,
            )
            .one()
        )
        return _categorization_to_dict(categorization)


# ============================================================================
# LISTING
# ============================================================================


def get_categorizations(user_id):
    """Get all categorizations for a user."""
    with get_session() as session:
        rows = (
            session.query(TransactionCategorization)
            .filter(TransactionCategorization.user_id == user_id)
            .order_by(TransactionCategorization.id)
            .all()
        )
        return [_categorization_to_dict(c) for c in rows]


def get_manual_review_transactions(user_id):
    """Get queued transaction payloads, oldest first."""
    with get_session() as session:
        rows = (
            session.query(ManualReviewTransaction.transaction_data)
            .filter(ManualReviewTransaction.user_id == user_id)
            .order_by(
                ManualReviewTransaction.created_at.asc(),
                ManualReviewTransaction.id.asc(),
            )
            .all()
        )
        return [row.transaction_data for row in rows]
