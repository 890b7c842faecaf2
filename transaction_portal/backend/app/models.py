# backend/app/models.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from .db import Base
from .domain.enums import (
    ClientType,
    CoBrokingType,
    CommissionType,
    DocumentType,
    MarketType,
    Role,
    TransactionStatus,
    TransactionType,
    enum_values,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


def _enum(enum_cls, name: str) -> Enum:
    # Stored as VARCHAR + CHECK so sqlite and postgres behave the same.
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        values_callable=enum_values,
        length=32,
    )


# -----------------------------
# Identity (mirrors the external auth provider)
# -----------------------------
class AppUser(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    role: Mapped[str] = mapped_column(_enum(Role, "user_role"), nullable=False, default=Role.AGENT.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


# -----------------------------
# Core domain: Transactions
# -----------------------------
class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_agent_created", "agent_id", "created_at"),
        Index("ix_transactions_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    agent_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # Step 1: transaction type & date
    market_type: Mapped[Optional[str]] = mapped_column(_enum(MarketType, "market_type"), nullable=True)
    transaction_type: Mapped[Optional[str]] = mapped_column(_enum(TransactionType, "transaction_type"), nullable=True)
    transaction_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Step 2: property
    # {name, type, address, developer, project, unit_number, built_up_area, ...}
    property_details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # Step 3: client
    client_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    client_type: Mapped[Optional[str]] = mapped_column(_enum(ClientType, "client_type"), nullable=True)
    client_id_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Step 4: co-broking
    co_broking_type: Mapped[Optional[str]] = mapped_column(_enum(CoBrokingType, "co_broking_type"), nullable=True)
    co_broking_agent_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    co_broking_agency_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    co_broking_agent_ren: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Step 5: commission
    total_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2), nullable=True)
    annual_rent: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2), nullable=True)
    commission_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2), nullable=True)
    commission_type: Mapped[Optional[str]] = mapped_column(_enum(CommissionType, "commission_type"), nullable=True)
    commission_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)

    # Review
    status: Mapped[str] = mapped_column(
        _enum(TransactionStatus, "transaction_status"),
        nullable=False,
        default=TransactionStatus.DRAFT.value,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    review_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    history: Mapped[List["TransactionStatusHistory"]] = relationship(
        back_populates="transaction",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TransactionStatusHistory.changed_at",
    )
    documents: Mapped[List["TransactionDocument"]] = relationship(
        back_populates="transaction",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("status")
    def _validate_status(self, key: str, value: Any) -> str:
        return TransactionStatus(value).value


class TransactionStatusHistory(Base):
    __tablename__ = "transaction_status_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    transaction_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(_enum(TransactionStatus, "transaction_status"), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    changed_by: Mapped[Optional[str]] = mapped_column(String(64), ForeignKey("users.id"), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    transaction: Mapped["Transaction"] = relationship(back_populates="history")


class TransactionDocument(Base):
    __tablename__ = "transaction_documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    transaction_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    document_name: Mapped[str] = mapped_column(String(255), nullable=False)
    document_url: Mapped[str] = mapped_column(Text, nullable=False)
    document_type: Mapped[Optional[str]] = mapped_column(_enum(DocumentType, "document_type"), nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    uploaded_by: Mapped[Optional[str]] = mapped_column(String(64), ForeignKey("users.id"), nullable=True)

    transaction: Mapped["Transaction"] = relationship(back_populates="documents")
