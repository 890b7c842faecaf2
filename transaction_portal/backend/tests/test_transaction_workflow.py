# backend/tests/test_transaction_workflow.py
from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from app.domain.enums import TransactionStatus
from app.models import Transaction, TransactionDocument, TransactionStatusHistory
from app.services import transactions as svc
from app.services.ownership import check_transaction_access
from app.services.transaction_workflow import admin_update_status, submit_for_review, update_status


def _history(db, txn_id: str) -> list[TransactionStatusHistory]:
    return list(
        db.scalars(
            select(TransactionStatusHistory)
            .where(TransactionStatusHistory.transaction_id == txn_id)
            .order_by(TransactionStatusHistory.changed_at)
        ).all()
    )


def _count(db, model) -> int:
    return int(db.scalar(select(func.count()).select_from(model)) or 0)


def test_create_writes_draft_and_one_history_row(db_session, agent, make_txn):
    txn = make_txn(agent)

    assert txn.status == TransactionStatus.DRAFT.value
    assert txn.agent_id == agent.user_id
    assert txn.commission_value == Decimal("24000.00")

    h = _history(db_session, txn.id)
    assert len(h) == 1
    assert h[0].status == "draft"
    assert h[0].notes == "Transaction created"
    assert h[0].changed_by == agent.user_id


def test_create_stores_documents_in_same_commit(db_session, agent, make_txn):
    txn = make_txn(
        agent,
        documents=[
            {"document_name": "SPA.pdf", "document_url": "https://files.local/spa.pdf", "document_type": "spa"},
            {"document_name": "KYC.pdf", "document_url": "https://files.local/kyc.pdf"},
        ],
    )
    docs = db_session.scalars(
        select(TransactionDocument).where(TransactionDocument.transaction_id == txn.id)
    ).all()
    assert {d.document_name for d in docs} == {"SPA.pdf", "KYC.pdf"}
    assert all(d.uploaded_by == agent.user_id for d in docs)


def test_create_rolls_back_when_history_insert_fails(db_session, agent, make_payload, monkeypatch):
    def boom(*args, **kwargs):
        raise SQLAlchemyError("history insert failed")

    monkeypatch.setattr(svc, "record_status_change", boom)

    with pytest.raises(HTTPException) as ei:
        svc.create_transaction(db_session, payload=make_payload(), principal=agent)

    assert ei.value.status_code == 500
    assert ei.value.detail == "Failed to create transaction"
    assert _count(db_session, Transaction) == 0
    assert _count(db_session, TransactionStatusHistory) == 0


def test_direct_deal_drops_co_broking_names(db_session, agent, make_txn):
    txn = make_txn(agent, co_broking_type="direct", co_broking_agent_name="Bob", co_broking_agency_name="Acme")
    assert txn.co_broking_agent_name is None
    assert txn.co_broking_agency_name is None


@pytest.mark.parametrize("target", ["approved", "pending_approval", "rejected", "closed", "cancelled"])
def test_agent_cannot_request_admin_statuses(db_session, agent, make_txn, target):
    txn = make_txn(agent)

    with pytest.raises(HTTPException) as ei:
        update_status(db_session, transaction_id=txn.id, status=target, principal=agent)

    assert ei.value.status_code == 403
    db_session.refresh(txn)
    assert txn.status == "draft"
    assert len(_history(db_session, txn.id)) == 1


def test_forbidden_target_is_checked_before_lookup(db_session, agent):
    # even for an id that doesn't exist, a disallowed target is a 403, not a 404
    with pytest.raises(HTTPException) as ei:
        update_status(db_session, transaction_id="missing", status="approved", principal=agent)
    assert ei.value.status_code == 403


def test_same_status_is_a_noop(db_session, agent, make_txn):
    txn = make_txn(agent)
    before = txn.updated_at

    out = update_status(db_session, transaction_id=txn.id, status="draft", principal=agent)

    assert out.status == "draft"
    assert out.updated_at == before
    assert len(_history(db_session, txn.id)) == 1


def test_submit_for_review_appends_history(db_session, agent, make_txn):
    txn = make_txn(agent)

    out = submit_for_review(db_session, transaction_id=txn.id, principal=agent)

    assert out.status == "pending_review"
    h = _history(db_session, txn.id)
    assert [x.status for x in h] == ["draft", "pending_review"]
    assert h[-1].notes == "Submitted for review"


def test_update_status_default_note(db_session, agent, make_txn):
    txn = make_txn(agent)
    update_status(db_session, transaction_id=txn.id, status="pending_review", principal=agent)
    assert _history(db_session, txn.id)[-1].notes == "Status changed to pending_review"


def test_pending_review_only_from_draft(db_session, agent, admin, make_txn):
    txn = make_txn(agent)
    admin_update_status(db_session, transaction_id=txn.id, status="approved", principal=admin)

    with pytest.raises(HTTPException) as ei:
        update_status(db_session, transaction_id=txn.id, status="pending_review", principal=agent)

    assert ei.value.status_code == 400
    db_session.refresh(txn)
    assert txn.status == "approved"


def test_agent_cannot_move_back_to_draft(db_session, agent, make_txn):
    txn = make_txn(agent)
    submit_for_review(db_session, transaction_id=txn.id, principal=agent)

    with pytest.raises(HTTPException) as ei:
        update_status(db_session, transaction_id=txn.id, status="draft", principal=agent)
    assert ei.value.status_code == 400


def test_non_owner_gets_not_found(db_session, agent, other_agent, make_txn):
    txn = make_txn(agent)

    with pytest.raises(HTTPException) as ei:
        update_status(db_session, transaction_id=txn.id, status="pending_review", principal=other_agent)
    assert ei.value.status_code == 404

    with pytest.raises(HTTPException) as ei:
        svc.get_transaction_detail(db_session, transaction_id=txn.id, principal=other_agent)
    assert ei.value.status_code == 404


def test_access_for_owner_implies_access_for_admin(db_session, agent, admin, make_txn):
    txn = make_txn(agent)
    assert check_transaction_access(db_session, transaction_id=txn.id, principal=agent).id == txn.id
    assert check_transaction_access(db_session, transaction_id=txn.id, principal=admin).id == txn.id


def test_admin_update_requires_admin(db_session, agent, make_txn):
    txn = make_txn(agent)
    with pytest.raises(HTTPException) as ei:
        admin_update_status(db_session, transaction_id=txn.id, status="approved", principal=agent)
    assert ei.value.status_code == 403


def test_admin_review_note_wins_for_history(db_session, agent, admin, make_txn):
    txn = make_txn(agent)
    submit_for_review(db_session, transaction_id=txn.id, principal=agent)

    out = admin_update_status(
        db_session,
        transaction_id=txn.id,
        status="rejected",
        principal=admin,
        notes="internal",
        review_notes="Missing SPA",
    )

    assert out.status == "rejected"
    assert out.review_notes == "Missing SPA"
    h = _history(db_session, txn.id)[-1]
    assert h.notes == "Missing SPA"
    assert h.changed_by == admin.user_id


def test_admin_noop_writes_no_history(db_session, agent, admin, make_txn):
    txn = make_txn(agent)
    admin_update_status(db_session, transaction_id=txn.id, status="draft", principal=admin)
    assert len(_history(db_session, txn.id)) == 1


def test_detail_lists_history_newest_first(db_session, agent, admin, make_txn):
    txn = make_txn(agent)
    submit_for_review(db_session, transaction_id=txn.id, principal=agent)
    admin_update_status(db_session, transaction_id=txn.id, status="approved", principal=admin)

    detail = svc.get_transaction_detail(db_session, transaction_id=txn.id, principal=agent)
    assert [h.status.value for h in detail.history] == ["approved", "pending_review", "draft"]


def test_draft_edit_only_while_draft(db_session, agent, make_txn, make_payload):
    txn = make_txn(agent)

    out = svc.update_transaction(
        db_session,
        transaction_id=txn.id,
        payload=make_payload(client_name="Bob Lim"),
        principal=agent,
    )
    assert out.client_name == "Bob Lim"

    submit_for_review(db_session, transaction_id=txn.id, principal=agent)
    with pytest.raises(HTTPException) as ei:
        svc.update_transaction(db_session, transaction_id=txn.id, payload=make_payload(), principal=agent)
    assert ei.value.status_code == 400


def test_status_column_rejects_unknown_values(db_session, agent, make_txn):
    txn = make_txn(agent)
    with pytest.raises(ValueError):
        txn.status = "archived"
