# backend/app/routers/admin.py
from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..auth import Principal, require_admin
from ..db import get_db
from ..domain.enums import TransactionStatus
from ..schemas import AdminStatsOut, AdminStatusUpdateIn, TransactionOut, TransactionPage
from ..services import transaction_workflow as workflow
from ..services import transactions as svc
from ..services.dashboard_rollups import admin_stats

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/transactions", response_model=TransactionPage)
def list_all_transactions(
    request: Request,
    status: Optional[TransactionStatus] = Query(default=None),
    agent_id: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    sort: Literal["created_at", "transaction_date"] = Query(default="created_at"),
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    settings = request.app.state.settings
    page = svc.resolve_page(
        limit,
        offset,
        default_limit=settings.admin_page_limit,
        max_limit=settings.max_page_limit,
    )
    res = svc.list_all_transactions(
        db,
        principal=p,
        flt=svc.TransactionFilter(status=status, agent_id=agent_id, search=search, sort=sort),
        page=page,
    )
    return TransactionPage(
        items=[TransactionOut.model_validate(t) for t in res.items],
        total_count=res.total_count,
        has_more=res.has_more,
    )


@router.post("/transactions/{transaction_id}/status", response_model=TransactionOut)
def admin_update_status(
    transaction_id: str,
    payload: AdminStatusUpdateIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    return workflow.admin_update_status(
        db,
        transaction_id=transaction_id,
        status=payload.status,
        principal=p,
        notes=payload.notes,
        review_notes=payload.review_notes,
    )


@router.get("/stats", response_model=AdminStatsOut)
def stats(db: Session = Depends(get_db), p: Principal = Depends(require_admin)):
    r = admin_stats(db)
    return AdminStatsOut(
        total=r.total,
        pending_review=r.pending_review,
        pending_approval=r.pending_approval,
        approved=r.approved,
        rejected=r.rejected,
        total_value=r.total_value,
        total_commission=r.total_commission,
    )
