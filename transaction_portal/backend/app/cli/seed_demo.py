# backend/app/cli/seed_demo.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.auth import Principal, ensure_user
from app.db import Database
from app.domain.enums import Role
from app.domain.transaction_form import TransactionFormSequencer, TransactionFormValues
from app.schemas import TransactionCreate, TransactionOut
from app.services.transactions import create_transaction


@dataclass(frozen=True)
class SeedResult:
    agent_id: str
    admin_id: str
    transaction_id: Optional[str]


def _sample_values() -> TransactionFormValues:
    return TransactionFormValues(
        market_type="primary",
        transaction_type="sale",
        transaction_date=date.today().isoformat(),
        property_name="Harbour View Residences",
        property_type="residential_apartment",
        address="12 Jalan Pantai, Penang",
        property_developer="Harbour Development Sdn Bhd",
        property_project="Harbour View Phase 2",
        property_unit_number="A-12-03",
        total_price="1,200,000",
        client_name="Demo Buyer",
        client_email="buyer@demo.local",
        commission_type="percentage",
        commission_percentage="2",
    )


def _submit_through_form(db: Session, principal: Principal) -> str:
    def submitter(payload: TransactionCreate) -> dict[str, Any]:
        txn = create_transaction(db, payload=payload, principal=principal)
        return TransactionOut.model_validate(txn).model_dump(mode="json")

    form = TransactionFormSequencer(_sample_values(), submitter=submitter)
    # percentage mode: derive commission_value from the seeded price
    form.set_field("commission_percentage", form.values.commission_percentage)

    while not form.is_last_step:
        if not form.next():
            raise RuntimeError(f"sample form stuck at {form.current_step.id.value}: {form.errors}")

    result = form.submit()
    if not result.ok or not result.transaction:
        raise RuntimeError(f"sample transaction not created: {result.message}")
    return str(result.transaction["id"])


def seed_demo(
    database: Database,
    *,
    agent_id: str = "demo-agent",
    agent_email: str = "agent@demo.local",
    admin_id: str = "demo-admin",
    admin_email: str = "admin@demo.local",
    create_sample_transaction: bool = True,
) -> SeedResult:
    agent = Principal(user_id=agent_id, role=Role.AGENT.value, email=agent_email, name="Demo Agent")
    admin = Principal(user_id=admin_id, role=Role.ADMIN.value, email=admin_email, name="Demo Admin")

    db = database.session()
    try:
        ensure_user(db, agent)
        ensure_user(db, admin)

        txn_id = _submit_through_form(db, agent) if create_sample_transaction else None
        return SeedResult(agent_id=agent_id, admin_id=admin_id, transaction_id=txn_id)
    finally:
        db.close()
