# backend/tests/conftest.py
from __future__ import annotations

from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from app.auth import Principal, ensure_user
from app.config import Settings
from app.db import Database
from app.main import create_app
from app.schemas import TransactionCreate
from app.services.transactions import create_transaction


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env="test",
        database_url="sqlite://",
        auto_create_schema=False,
        auth_mode="dev",
        jwt_secret="test-secret",
    )


@pytest.fixture
def database():
    d = Database("sqlite://")
    d.create_all()
    try:
        yield d
    finally:
        d.dispose()


@pytest.fixture
def db_session(database):
    db = database.session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(settings, database) -> TestClient:
    return TestClient(create_app(settings, database=database))


def _principal(db, user_id: str, role: str) -> Principal:
    p = Principal(user_id=user_id, role=role, email=f"{user_id}@portal.local")
    ensure_user(db, p)
    return p


@pytest.fixture
def agent(db_session) -> Principal:
    return _principal(db_session, "agent-1", "agent")


@pytest.fixture
def other_agent(db_session) -> Principal:
    return _principal(db_session, "agent-2", "agent")


@pytest.fixture
def admin(db_session) -> Principal:
    return _principal(db_session, "admin-1", "admin")


def headers_for(p: Principal) -> dict[str, str]:
    return {"X-User-Id": p.user_id, "X-User-Role": p.role, "X-User-Email": p.email or ""}


@pytest.fixture
def auth_headers() -> Callable[[Principal], dict[str, str]]:
    return headers_for


def payload_data(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "market_type": "primary",
        "transaction_type": "sale",
        "transaction_date": "2026-05-01T00:00:00+00:00",
        "property_details": {
            "name": "Harbour View Residences",
            "type": "residential_apartment",
            "address": "12 Jalan Pantai, Penang",
        },
        "client_name": "Alice Tan",
        "client_email": "alice@example.com",
        "total_price": "1,200,000",
        "commission_type": "percentage",
        "commission_percentage": "2",
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_payload_data() -> Callable[..., dict[str, Any]]:
    return payload_data


@pytest.fixture
def make_payload() -> Callable[..., TransactionCreate]:
    def _make(**overrides: Any) -> TransactionCreate:
        return TransactionCreate(**payload_data(**overrides))

    return _make


@pytest.fixture
def make_txn(db_session, make_payload):
    def _make(principal: Principal, **overrides: Any):
        return create_transaction(db_session, payload=make_payload(**overrides), principal=principal)

    return _make
