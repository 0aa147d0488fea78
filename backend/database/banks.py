"""
Plaid Bank Connections - Database Operations

Handles the user_banks table: one row per linked Plaid Item.
Access tokens are stored as given (callers encrypt before saving).
"""

from sqlalchemy import func

from .base import dialect_insert, get_session
from .models.plaid import UserBank


def _bank_to_dict(bank):
    return {
        "id": bank.id,
        "user_id": bank.user_id,
        "item_id": bank.item_id,
        "access_token": bank.access_token,
        "institution_name": bank.institution_name,
        "created_at": bank.created_at,
        "updated_at": bank.updated_at,
    }


def save_user_bank(user_id, item_id, access_token, institution_name):
    """Save a bank connection (create, or refresh the access token)."""
    with get_session() as session:
        stmt = dialect_insert(UserBank).values(
            user_id=user_id,
            item_id=item_id,
            access_token=access_token,
            institution_name=institution_name,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "item_id"],
            set_={
                "access_token": stmt.excluded.access_token,
                "updated_at": func.now(),
            },
        )
        session.execute(stmt)
        session.commit()

        bank = (
            session.query(UserBank)
            .filter(UserBank.user_id == user_id, UserBank.item_id == item_id)
            .one()
        )
        return _bank_to_dict(bank)


def get_user_banks(user_id):
    """Get all bank connections for a user, newest first."""
    with get_session() as session:
        banks = (
            session.query(UserBank)
            .filter(UserBank.user_id == user_id)
            .order_by(UserBank.created_at.desc(), UserBank.id.desc())
            .all()
        )
        return [_bank_to_dict(b) for b in banks]


def get_user_bank(user_id, bank_id):
    """Get one bank connection owned by the user."""
    with get_session() as session:
        bank = (
            session.query(UserBank)
            .filter(UserBank.id == bank_id, UserBank.user_id == user_id)
            .first()
        )
        return _bank_to_dict(bank) if bank else None


def delete_user_bank(user_id, bank_id):
    """Delete a bank connection. Returns True if a row was removed."""
    with get_session() as session:
        deleted = (
            session.query(UserBank)
            .filter(UserBank.id == bank_id, UserBank.user_id == user_id)
            .delete()
        )
        session.commit()
        return deleted > 0
