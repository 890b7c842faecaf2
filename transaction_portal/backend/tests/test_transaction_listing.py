# backend/tests/test_transaction_listing.py
from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi import HTTPException

from app.domain.enums import TransactionStatus
from app.services import transactions as svc
from app.services.dashboard_rollups import admin_stats, agent_stats
from app.services.transaction_workflow import admin_update_status, submit_for_review


def _date(day: int) -> str:
    return f"2026-03-{day:02d}T09:00:00+00:00"


def test_own_listing_pages_and_has_more(db_session, agent, other_agent, make_txn):
    for i in range(12):
        make_txn(agent, transaction_date=_date(i + 1))
    make_txn(other_agent)

    first = svc.list_own_transactions(
        db_session, principal=agent, flt=svc.TransactionFilter(), page=svc.Page(limit=10)
    )
    assert len(first.items) == 10
    assert first.total_count == 12
    assert first.has_more is True
    assert all(t.agent_id == agent.user_id for t in first.items)

    rest = svc.list_own_transactions(
        db_session, principal=agent, flt=svc.TransactionFilter(), page=svc.Page(limit=10, offset=10)
    )
    assert len(rest.items) == 2
    assert rest.has_more is False


def test_own_listing_ignores_foreign_agent_filter(db_session, agent, other_agent, make_txn):
    make_txn(other_agent)
    res = svc.list_own_transactions(
        db_session,
        principal=agent,
        flt=svc.TransactionFilter(agent_id=other_agent.user_id),
        page=svc.Page(limit=10),
    )
    assert res.total_count == 0


def test_sort_by_transaction_date_desc(db_session, agent, make_txn):
    make_txn(agent, transaction_date=_date(5), client_name="middle")
    make_txn(agent, transaction_date=_date(20), client_name="latest")
    make_txn(agent, transaction_date=_date(1), client_name="earliest")

    res = svc.list_own_transactions(
        db_session,
        principal=agent,
        flt=svc.TransactionFilter(sort="transaction_date"),
        page=svc.Page(limit=10),
    )
    assert [t.client_name for t in res.items] == ["latest", "middle", "earliest"]


def test_status_filter(db_session, agent, make_txn):
    a = make_txn(agent)
    make_txn(agent)
    submit_for_review(db_session, transaction_id=a.id, principal=agent)

    res = svc.list_own_transactions(
        db_session,
        principal=agent,
        flt=svc.TransactionFilter(status=TransactionStatus.PENDING_REVIEW),
        page=svc.Page(limit=10),
    )
    assert [t.id for t in res.items] == [a.id]


def test_admin_search_is_case_insensitive(db_session, agent, other_agent, admin, make_txn):
    make_txn(agent, client_name="Alice Tan")
    make_txn(
        other_agent,
        client_name="Bob Lim",
        client_email="bob@example.com",
        property_details={"name": "Sunrise Towers", "type": "residential_apartment", "address": "8 Jalan Bukit"},
    )

    by_client = svc.list_all_transactions(
        db_session, principal=admin, flt=svc.TransactionFilter(search="alice"), page=svc.Page(limit=20)
    )
    assert [t.client_name for t in by_client.items] == ["Alice Tan"]

    by_property = svc.list_all_transactions(
        db_session, principal=admin, flt=svc.TransactionFilter(search="sunrise"), page=svc.Page(limit=20)
    )
    assert [t.client_name for t in by_property.items] == ["Bob Lim"]

    by_agent = svc.list_all_transactions(
        db_session,
        principal=admin,
        flt=svc.TransactionFilter(agent_id=other_agent.user_id),
        page=svc.Page(limit=20),
    )
    assert by_agent.total_count == 1


def test_agent_cannot_list_all(db_session, agent):
    with pytest.raises(HTTPException) as ei:
        svc.list_all_transactions(db_session, principal=agent, flt=svc.TransactionFilter(), page=svc.Page(limit=20))
    assert ei.value.status_code == 403


def test_resolve_page_defaults_and_clamps():
    assert svc.resolve_page(None, 0, default_limit=10, max_limit=100) == svc.Page(limit=10, offset=0)
    assert svc.resolve_page(500, 30, default_limit=20, max_limit=100) == svc.Page(limit=100, offset=30)


def test_recent_rows_are_flat_and_capped(db_session, agent, make_txn):
    for i in range(12):
        make_txn(agent, transaction_date=_date(i + 1))

    rows = svc.list_recent_transactions(db_session, principal=agent, limit=10)

    assert len(rows) == 10
    assert rows[0].transaction_date.day == 12
    assert rows[0].property_name == "Harbour View Residences"
    assert rows[0].property_address == "12 Jalan Pantai, Penang"


def test_agent_and_admin_stats(db_session, agent, other_agent, admin, make_txn):
    approved = make_txn(agent, total_price="500,000")  # 2% -> 10,000
    pending = make_txn(agent)
    make_txn(agent)
    rejected = make_txn(other_agent)
    other_approved = make_txn(other_agent, commission_type="fixed_amount", commission_value="7,500")

    submit_for_review(db_session, transaction_id=pending.id, principal=agent)
    admin_update_status(db_session, transaction_id=approved.id, status="approved", principal=admin)
    admin_update_status(db_session, transaction_id=rejected.id, status="rejected", principal=admin)
    admin_update_status(db_session, transaction_id=other_approved.id, status="approved", principal=admin)

    mine = agent_stats(db_session, agent_id=agent.user_id)
    assert (mine.total, mine.draft, mine.pending, mine.approved, mine.rejected) == (3, 1, 1, 1, 0)
    assert mine.total_commission == Decimal("10000.00")

    everyone = admin_stats(db_session)
    assert everyone.total == 5
    assert everyone.pending_review == 1
    assert everyone.approved == 2
    assert everyone.rejected == 1
    assert everyone.total_value == Decimal("1700000.00")
    assert everyone.total_commission == Decimal("17500.00")


def test_admin_search_treats_wildcards_literally(db_session, agent, admin, make_txn):
    make_txn(agent, client_name="Alice Tan")
    make_txn(agent, client_name="Ong_Wei")

    def names(search):
        res = svc.list_all_transactions(
            db_session, principal=admin, flt=svc.TransactionFilter(search=search), page=svc.Page(limit=20)
        )
        return [t.client_name for t in res.items]

    assert names("%") == []
    assert names("_") == ["Ong_Wei"]
    assert names("g_w") == ["Ong_Wei"]
