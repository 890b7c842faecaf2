# backend/app/services/dashboard_rollups.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from ..domain.enums import PENDING_STATUSES, TransactionStatus
from ..domain.money import to_cents
from ..models import Transaction


@dataclass(frozen=True)
class AgentRollup:
    total: int
    draft: int
    pending: int
    approved: int
    rejected: int
    total_commission: Decimal


@dataclass(frozen=True)
class AdminRollup:
    total: int
    pending_review: int
    pending_approval: int
    approved: int
    rejected: int
    total_value: Decimal
    total_commission: Decimal


def _status_counts(db: Session, *, agent_id: Optional[str] = None) -> dict[str, int]:
    q = select(Transaction.status, func.count()).group_by(Transaction.status)
    if agent_id is not None:
        q = q.where(Transaction.agent_id == agent_id)

    counts: dict[str, int] = {s.value: 0 for s in TransactionStatus}
    for status, n in db.execute(q).all():
        counts[TransactionStatus(status).value] = int(n or 0)
    return counts


def _approved_sum(db: Session, column: Any, *, agent_id: Optional[str] = None) -> Decimal:
    q = select(
        func.coalesce(
            func.sum(case((Transaction.status == TransactionStatus.APPROVED.value, column), else_=0)),
            0,
        )
    )
    if agent_id is not None:
        q = q.where(Transaction.agent_id == agent_id)
    return to_cents(Decimal(str(db.scalar(q) or 0)))


def agent_stats(db: Session, *, agent_id: str) -> AgentRollup:
    """
    Card numbers for one agent's dashboard. Commission only counts once a
    deal is approved.
    """
    counts = _status_counts(db, agent_id=agent_id)
    return AgentRollup(
        total=sum(counts.values()),
        draft=counts[TransactionStatus.DRAFT.value],
        pending=sum(counts[s.value] for s in PENDING_STATUSES),
        approved=counts[TransactionStatus.APPROVED.value],
        rejected=counts[TransactionStatus.REJECTED.value],
        total_commission=_approved_sum(db, Transaction.commission_value, agent_id=agent_id),
    )


def admin_stats(db: Session) -> AdminRollup:
    counts = _status_counts(db)
    return AdminRollup(
        total=sum(counts.values()),
        pending_review=counts[TransactionStatus.PENDING_REVIEW.value],
        pending_approval=counts[TransactionStatus.PENDING_APPROVAL.value],
        approved=counts[TransactionStatus.APPROVED.value],
        rejected=counts[TransactionStatus.REJECTED.value],
        total_value=_approved_sum(db, Transaction.total_price),
        total_commission=_approved_sum(db, Transaction.commission_value),
    )
