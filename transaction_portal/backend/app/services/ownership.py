# backend/app/services/ownership.py
from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..auth import Principal
from ..models import Transaction


def can_access(transaction: Transaction, principal: Principal) -> bool:
    return principal.is_admin or transaction.agent_id == principal.user_id


def check_transaction_access(db: Session, *, transaction_id: str, principal: Principal) -> Transaction:
    """
    The one authorization gate for transaction-scoped operations.

    Missing rows and rows owned by another agent both come back as 404 so
    callers can't discover ids they don't own.
    """
    row = db.get(Transaction, str(transaction_id))
    if row is None or not can_access(row, principal):
        raise HTTPException(status_code=404, detail="Transaction not found")
    return row
