# backend/app/domain/audit.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..models import TransactionStatusHistory
from .enums import TransactionStatus


def default_status_note(status: TransactionStatus | str) -> str:
    return f"Status changed to {TransactionStatus(status).value}"


def record_status_change(
    db: Session,
    *,
    transaction_id: str,
    status: TransactionStatus | str,
    changed_by: Optional[str],
    notes: Optional[str] = None,
    changed_at: Optional[datetime] = None,
) -> TransactionStatusHistory:
    """
    Append one status-history row.

    - Does NOT commit (the caller commits it together with the status change).
    - Flushes, so a bad row fails here and takes the whole unit down with it.
    """
    row = TransactionStatusHistory(
        transaction_id=str(transaction_id),
        status=TransactionStatus(status).value,
        changed_by=changed_by,
        notes=notes,
        changed_at=changed_at or datetime.now(timezone.utc),
    )
    db.add(row)
    db.flush()
    return row
