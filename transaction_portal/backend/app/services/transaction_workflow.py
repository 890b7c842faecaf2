# backend/app/services/transaction_workflow.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..auth import Principal
from ..domain.audit import default_status_note, record_status_change
from ..domain.enums import AGENT_ALLOWED_STATUSES, TransactionStatus
from ..models import Transaction
from .ownership import check_transaction_access
from .persistence import atomic

# -----------------------------------------------------------------------------
# Transaction status workflow
# -----------------------------------------------------------------------------
#   draft -> pending_review -> pending_approval -> approved
#   rejected / closed / cancelled are administrative outcomes.
#
# Agents go through update_status() and may only ask for draft or
# pending_review; in practice the only move an agent can make is
# draft -> pending_review. Admins go through admin_update_status() with no
# target restriction. Every applied change appends exactly one history row
# in the same commit; a no-op (target == current) writes nothing.
# -----------------------------------------------------------------------------

log = logging.getLogger("portal.transactions")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _apply_status(
    db: Session,
    txn: Transaction,
    *,
    status: TransactionStatus,
    actor_id: str,
    history_note: str,
    review_notes: Optional[str] = None,
) -> Transaction:
    previous = txn.status
    now = _utcnow()
    with atomic(db, action="update transaction status"):
        txn.status = status.value
        txn.updated_at = now
        if review_notes is not None:
            txn.review_notes = review_notes
        db.flush()
        record_status_change(
            db,
            transaction_id=txn.id,
            status=status,
            changed_by=actor_id,
            notes=history_note,
            changed_at=now,
        )

    log.info(
        "transaction status changed %s -> %s",
        TransactionStatus(previous).value,
        status.value,
        extra={"transaction_id": txn.id, "status": status.value, "user_id": actor_id},
    )
    return txn


def update_status(
    db: Session,
    *,
    transaction_id: str,
    status: TransactionStatus | str,
    principal: Principal,
    notes: Optional[str] = None,
) -> Transaction:
    """
    Agent-facing transition.

    403 for a target outside the agent allow-list (checked before the row is
    even loaded), 404 from the access check, no-op when nothing changes,
    400 for any move other than draft -> pending_review.
    """
    target = TransactionStatus(status)
    if target not in AGENT_ALLOWED_STATUSES:
        raise HTTPException(status_code=403, detail="Status change not allowed")

    txn = check_transaction_access(db, transaction_id=transaction_id, principal=principal)
    current = TransactionStatus(txn.status)

    if current == target:
        return txn

    if target == TransactionStatus.PENDING_REVIEW and current != TransactionStatus.DRAFT:
        raise HTTPException(status_code=400, detail="Transaction cannot be submitted for review")

    if target == TransactionStatus.DRAFT:
        raise HTTPException(status_code=400, detail="Transaction cannot be moved back to draft")

    return _apply_status(
        db,
        txn,
        status=target,
        actor_id=principal.user_id,
        history_note=notes or default_status_note(target),
    )


def submit_for_review(db: Session, *, transaction_id: str, principal: Principal) -> Transaction:
    return update_status(
        db,
        transaction_id=transaction_id,
        status=TransactionStatus.PENDING_REVIEW,
        principal=principal,
        notes="Submitted for review",
    )


def admin_update_status(
    db: Session,
    *,
    transaction_id: str,
    status: TransactionStatus | str,
    principal: Principal,
    notes: Optional[str] = None,
    review_notes: Optional[str] = None,
) -> Transaction:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")

    target = TransactionStatus(status)
    txn = check_transaction_access(db, transaction_id=transaction_id, principal=principal)

    if TransactionStatus(txn.status) == target:
        return txn

    return _apply_status(
        db,
        txn,
        status=target,
        actor_id=principal.user_id,
        history_note=review_notes or notes or default_status_note(target),
        review_notes=review_notes or notes,
    )
