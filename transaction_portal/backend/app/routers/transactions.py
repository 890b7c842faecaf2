# backend/app/routers/transactions.py
from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..domain.enums import TransactionStatus
from ..schemas import (
    AgentStatsOut,
    DeleteOut,
    DocumentCreate,
    DocumentOut,
    RecentTransactionOut,
    StatusUpdateIn,
    TransactionCreate,
    TransactionDetailOut,
    TransactionOut,
    TransactionPage,
    TransactionUpdate,
)
from ..services import transaction_workflow as workflow
from ..services import transactions as svc
from ..services.dashboard_rollups import agent_stats

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.post("", response_model=TransactionOut, status_code=201)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return svc.create_transaction(db, payload=payload, principal=p)


@router.get("/mine", response_model=TransactionPage)
def list_my_transactions(
    request: Request,
    status: Optional[TransactionStatus] = Query(default=None),
    search: Optional[str] = Query(default=None),
    sort: Literal["created_at", "transaction_date"] = Query(default="created_at"),
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    settings = request.app.state.settings
    page = svc.resolve_page(
        limit,
        offset,
        default_limit=settings.default_page_limit,
        max_limit=settings.max_page_limit,
    )
    res = svc.list_own_transactions(
        db,
        principal=p,
        flt=svc.TransactionFilter(status=status, search=search, sort=sort),
        page=page,
    )
    return TransactionPage(
        items=[TransactionOut.model_validate(t) for t in res.items],
        total_count=res.total_count,
        has_more=res.has_more,
    )


@router.get("/recent", response_model=list[RecentTransactionOut])
def recent_transactions(
    request: Request,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return svc.list_recent_transactions(db, principal=p, limit=request.app.state.settings.recent_limit)


@router.get("/stats", response_model=AgentStatsOut)
def my_stats(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    r = agent_stats(db, agent_id=p.user_id)
    return AgentStatsOut(
        total=r.total,
        draft=r.draft,
        pending=r.pending,
        approved=r.approved,
        rejected=r.rejected,
        total_commission=r.total_commission,
    )


@router.get("/{transaction_id}", response_model=TransactionDetailOut)
def get_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return svc.get_transaction_detail(db, transaction_id=transaction_id, principal=p)


@router.put("/{transaction_id}", response_model=TransactionOut)
def update_draft(
    transaction_id: str,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return svc.update_transaction(db, transaction_id=transaction_id, payload=payload, principal=p)


@router.post("/{transaction_id}/status", response_model=TransactionOut)
def update_status(
    transaction_id: str,
    payload: StatusUpdateIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return workflow.update_status(
        db,
        transaction_id=transaction_id,
        status=payload.status,
        principal=p,
        notes=payload.notes,
    )


@router.post("/{transaction_id}/submit", response_model=TransactionOut)
def submit_for_review(
    transaction_id: str,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return workflow.submit_for_review(db, transaction_id=transaction_id, principal=p)


@router.post("/{transaction_id}/documents", response_model=DocumentOut, status_code=201)
def attach_document(
    transaction_id: str,
    payload: DocumentCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return svc.add_document(db, transaction_id=transaction_id, payload=payload, principal=p)


@router.delete("/{transaction_id}", response_model=DeleteOut)
def delete_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return DeleteOut(success=svc.delete_transaction(db, transaction_id=transaction_id, principal=p))
