# backend/app/services/transactions.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy import delete, desc, func, or_, select
from sqlalchemy.orm import Session

from ..auth import Principal
from ..domain.audit import record_status_change
from ..domain.commission import compute_commission_value, price_basis
from ..domain.enums import CoBrokingType, CommissionType, TransactionStatus
from ..models import Transaction, TransactionDocument, TransactionStatusHistory
from ..schemas import (
    DocumentCreate,
    DocumentOut,
    RecentTransactionOut,
    StatusHistoryOut,
    TransactionCreate,
    TransactionDetailOut,
    TransactionFields,
    TransactionOut,
    TransactionUpdate,
)
from .ownership import check_transaction_access
from .persistence import atomic

log = logging.getLogger("portal.transactions")

SORT_COLUMNS = {
    "created_at": Transaction.created_at,
    "transaction_date": Transaction.transaction_date,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TransactionFilter:
    status: Optional[TransactionStatus] = None
    agent_id: Optional[str] = None
    search: Optional[str] = None
    sort: str = "created_at"


@dataclass(frozen=True)
class Page:
    limit: int
    offset: int = 0


def resolve_page(limit: Optional[int], offset: int, *, default_limit: int, max_limit: int) -> Page:
    """Missing limit -> default; oversized limit is clamped rather than rejected."""
    lim = default_limit if limit is None else limit
    return Page(limit=max(1, min(int(lim), max_limit)), offset=max(0, int(offset or 0)))


@dataclass
class TransactionListResult:
    items: list[Transaction] = field(default_factory=list)
    total_count: int = 0
    has_more: bool = False


# -----------------------------
# Row mapping
# -----------------------------
def _row_values(payload: TransactionFields) -> dict[str, Any]:
    data = payload.model_dump(exclude={"documents", "property_details"})
    data["property_details"] = payload.property_details.model_dump(mode="json", exclude_none=True)

    if payload.co_broking_type == CoBrokingType.DIRECT:
        data["co_broking_agent_name"] = None
        data["co_broking_agency_name"] = None
        data["co_broking_agent_ren"] = None

    if payload.commission_type == CommissionType.PERCENTAGE and payload.commission_value is None:
        basis = price_basis(
            payload.transaction_type,
            total_price=payload.total_price,
            annual_rent=payload.annual_rent,
        )
        data["commission_value"] = compute_commission_value(basis, payload.commission_percentage)

    return data


def _add_document(db: Session, *, transaction_id: str, doc: DocumentCreate, uploaded_by: str) -> TransactionDocument:
    row = TransactionDocument(
        transaction_id=transaction_id,
        document_name=doc.document_name,
        document_url=doc.document_url,
        document_type=doc.document_type.value if doc.document_type else None,
        uploaded_by=uploaded_by,
        uploaded_at=_utcnow(),
    )
    db.add(row)
    return row


# -----------------------------
# Create / edit
# -----------------------------
def create_transaction(db: Session, *, payload: TransactionCreate, principal: Principal) -> Transaction:
    """
    Transaction row, its initial draft history row and any document metadata
    land in one commit.
    """
    now = _utcnow()
    with atomic(db, action="create transaction"):
        txn = Transaction(
            agent_id=principal.user_id,
            status=TransactionStatus.DRAFT.value,
            created_at=now,
            updated_at=now,
            **_row_values(payload),
        )
        db.add(txn)
        db.flush()  # ensures txn.id exists

        record_status_change(
            db,
            transaction_id=txn.id,
            status=TransactionStatus.DRAFT,
            changed_by=principal.user_id,
            notes="Transaction created",
            changed_at=now,
        )

        for doc in payload.documents:
            _add_document(db, transaction_id=txn.id, doc=doc, uploaded_by=principal.user_id)

    log.info("transaction created", extra={"transaction_id": txn.id, "user_id": principal.user_id})
    return txn


def update_transaction(
    db: Session,
    *,
    transaction_id: str,
    payload: TransactionUpdate,
    principal: Principal,
) -> Transaction:
    txn = check_transaction_access(db, transaction_id=transaction_id, principal=principal)
    if TransactionStatus(txn.status) != TransactionStatus.DRAFT:
        raise HTTPException(status_code=400, detail="Only draft transactions can be edited")

    with atomic(db, action="update transaction"):
        for k, v in _row_values(payload).items():
            setattr(txn, k, v)
        txn.updated_at = _utcnow()

    return txn


def add_document(
    db: Session,
    *,
    transaction_id: str,
    payload: DocumentCreate,
    principal: Principal,
) -> TransactionDocument:
    txn = check_transaction_access(db, transaction_id=transaction_id, principal=principal)
    with atomic(db, action="attach document"):
        row = _add_document(db, transaction_id=txn.id, doc=payload, uploaded_by=principal.user_id)
    return row


# -----------------------------
# Read
# -----------------------------
def get_transaction_detail(db: Session, *, transaction_id: str, principal: Principal) -> TransactionDetailOut:
    txn = check_transaction_access(db, transaction_id=transaction_id, principal=principal)

    history = db.scalars(
        select(TransactionStatusHistory)
        .where(TransactionStatusHistory.transaction_id == txn.id)
        .order_by(desc(TransactionStatusHistory.changed_at))
    ).all()
    documents = db.scalars(
        select(TransactionDocument)
        .where(TransactionDocument.transaction_id == txn.id)
        .order_by(TransactionDocument.uploaded_at)
    ).all()

    base = TransactionOut.model_validate(txn).model_dump()
    return TransactionDetailOut(
        **base,
        history=[StatusHistoryOut.model_validate(h) for h in history],
        documents=[DocumentOut.model_validate(d) for d in documents],
    )


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _conditions(flt: TransactionFilter) -> list:
    conds = []
    if flt.status is not None:
        conds.append(Transaction.status == TransactionStatus(flt.status).value)
    if flt.agent_id:
        conds.append(Transaction.agent_id == flt.agent_id)
    if flt.search and flt.search.strip():
        pattern = _like_pattern(flt.search.strip())
        conds.append(
            or_(
                Transaction.client_name.ilike(pattern, escape="\\"),
                Transaction.client_email.ilike(pattern, escape="\\"),
                Transaction.property_details["name"].as_string().ilike(pattern, escape="\\"),
                Transaction.property_details["address"].as_string().ilike(pattern, escape="\\"),
            )
        )
    return conds


def _list(db: Session, *, flt: TransactionFilter, page: Page) -> TransactionListResult:
    conds = _conditions(flt)
    sort_col = SORT_COLUMNS.get(flt.sort, Transaction.created_at)

    q = select(Transaction).where(*conds).order_by(desc(sort_col), desc(Transaction.id))
    items = list(db.scalars(q.limit(page.limit).offset(page.offset)).all())

    total = int(db.scalar(select(func.count()).select_from(Transaction).where(*conds)) or 0)
    return TransactionListResult(
        items=items,
        total_count=total,
        has_more=page.offset + page.limit < total,
    )


def list_own_transactions(
    db: Session,
    *,
    principal: Principal,
    flt: TransactionFilter,
    page: Page,
) -> TransactionListResult:
    # agent_id in the filter is ignored: an agent only ever lists their own rows
    own = TransactionFilter(status=flt.status, agent_id=principal.user_id, search=flt.search, sort=flt.sort)
    return _list(db, flt=own, page=page)


def list_all_transactions(
    db: Session,
    *,
    principal: Principal,
    flt: TransactionFilter,
    page: Page,
) -> TransactionListResult:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return _list(db, flt=flt, page=page)


def list_recent_transactions(db: Session, *, principal: Principal, limit: int = 10) -> list[RecentTransactionOut]:
    rows = db.scalars(
        select(Transaction)
        .where(Transaction.agent_id == principal.user_id)
        .order_by(desc(Transaction.transaction_date), desc(Transaction.created_at))
        .limit(limit)
    ).all()

    out: list[RecentTransactionOut] = []
    for t in rows:
        details = t.property_details or {}
        out.append(
            RecentTransactionOut(
                id=t.id,
                property_name=str(details.get("name") or ""),
                client_name=t.client_name or "",
                transaction_date=t.transaction_date,
                status=t.status,
                market_type=t.market_type,
                transaction_type=t.transaction_type,
                total_price=t.total_price,
                commission_value=t.commission_value,
                property_type=details.get("type"),
                property_address=details.get("address"),
                client_email=t.client_email,
                client_phone=t.client_phone,
            )
        )
    return out


# -----------------------------
# Delete
# -----------------------------
def _purge_history(db: Session, transaction_id: str) -> None:
    db.execute(delete(TransactionStatusHistory).where(TransactionStatusHistory.transaction_id == transaction_id))


def _purge_documents(db: Session, transaction_id: str) -> None:
    db.execute(delete(TransactionDocument).where(TransactionDocument.transaction_id == transaction_id))


def delete_transaction(db: Session, *, transaction_id: str, principal: Principal) -> bool:
    """
    Agents may delete their own drafts; admins may delete anything.
    History, documents and the transaction row go in one commit.
    """
    txn = check_transaction_access(db, transaction_id=transaction_id, principal=principal)
    if not principal.is_admin and TransactionStatus(txn.status) != TransactionStatus.DRAFT:
        raise HTTPException(status_code=403, detail="Can only delete draft transactions")

    txn_id = txn.id
    with atomic(db, action="delete transaction"):
        _purge_history(db, txn_id)
        _purge_documents(db, txn_id)
        db.execute(delete(Transaction).where(Transaction.id == txn_id))

    db.expunge_all()
    log.info("transaction deleted", extra={"transaction_id": txn_id, "user_id": principal.user_id})
    return True
