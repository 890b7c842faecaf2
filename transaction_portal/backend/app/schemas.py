# backend/app/schemas.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .domain.enums import (
    ClientType,
    CoBrokingType,
    CommissionType,
    DocumentType,
    MarketType,
    PropertyType,
    Role,
    TransactionStatus,
    TransactionType,
)
from .domain.money import parse_decimal

MONEY_FIELDS = ("total_price", "annual_rent", "commission_value", "commission_percentage")


# -------------------- Identity --------------------

class PrincipalOut(BaseModel):
    user_id: str
    role: Role
    email: Optional[str] = None
    name: Optional[str] = None


# -------------------- Documents --------------------

class DocumentCreate(BaseModel):
    document_name: str = Field(min_length=1, max_length=255)
    document_url: str = Field(min_length=1)
    document_type: Optional[DocumentType] = None


class DocumentOut(DocumentCreate):
    id: str
    transaction_id: str
    uploaded_at: datetime
    uploaded_by: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


# -------------------- Transactions --------------------

class PropertyDetails(BaseModel):
    # free-form: unknown keys are kept as-is
    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1, max_length=255)
    type: PropertyType = PropertyType.OTHER
    address: Optional[str] = None
    developer: Optional[str] = None
    project: Optional[str] = None
    unit_number: Optional[str] = None
    built_up_area: Optional[str] = None
    land_area: Optional[str] = None
    bedrooms: Optional[str] = None
    bathrooms: Optional[str] = None
    car_parks: Optional[str] = None
    furnishing: Optional[str] = None


class TransactionFields(BaseModel):
    """Everything an agent fills in; shared by create and draft edit."""

    # Step 1: transaction type & date
    market_type: MarketType
    transaction_type: TransactionType
    transaction_date: datetime

    # Step 2: property
    property_details: PropertyDetails

    # Step 3: client
    client_name: str = Field(min_length=1, max_length=255)
    client_email: Optional[str] = Field(default=None, max_length=255)
    client_phone: Optional[str] = Field(default=None, max_length=50)
    client_type: ClientType = ClientType.BUYER
    client_id_number: Optional[str] = Field(default=None, max_length=100)

    # Step 4: co-broking
    co_broking_type: CoBrokingType = CoBrokingType.DIRECT
    co_broking_agent_name: Optional[str] = None
    co_broking_agency_name: Optional[str] = None
    co_broking_agent_ren: Optional[str] = None

    # Step 5: commission
    total_price: Optional[Decimal] = None
    annual_rent: Optional[Decimal] = None
    commission_value: Optional[Decimal] = None
    commission_type: CommissionType
    commission_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)

    notes: Optional[str] = None

    @field_validator("commission_type", mode="before")
    @classmethod
    def _normalize_commission_type(cls, v: Any) -> Any:
        return CommissionType.normalize(v)

    @field_validator(*MONEY_FIELDS, mode="before")
    @classmethod
    def _parse_money(cls, v: Any) -> Any:
        return parse_decimal(v)

    @field_validator("client_email")
    @classmethod
    def _check_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        local, _, domain = v.partition("@")
        if not local or "." not in domain:
            raise ValueError("Valid email is required")
        return v

    @model_validator(mode="after")
    def _check_consistency(self) -> "TransactionFields":
        if self.market_type == MarketType.PRIMARY and self.transaction_type != TransactionType.SALE:
            raise ValueError("primary market transactions must be sales")

        if self.co_broking_type == CoBrokingType.CO_BROKE:
            agent_name = (self.co_broking_agent_name or "").strip()
            agency_name = (self.co_broking_agency_name or "").strip()
            if not (agent_name and agency_name):
                raise ValueError("co-broking requires agent name and agency name")

        if self.commission_type == CommissionType.PERCENTAGE and self.commission_percentage is None:
            raise ValueError("commission_percentage is required for percentage commission")
        if self.commission_type == CommissionType.FIXED_AMOUNT and self.commission_value is None:
            raise ValueError("commission_value is required for fixed_amount commission")
        return self


class TransactionCreate(TransactionFields):
    documents: list[DocumentCreate] = Field(default_factory=list)


class TransactionUpdate(TransactionFields):
    pass


class StatusHistoryOut(BaseModel):
    id: str
    transaction_id: str
    status: TransactionStatus
    changed_at: datetime
    changed_by: Optional[str] = None
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class TransactionOut(BaseModel):
    id: str
    agent_id: str
    status: TransactionStatus
    created_at: datetime
    updated_at: datetime

    market_type: Optional[MarketType] = None
    transaction_type: Optional[TransactionType] = None
    transaction_date: Optional[datetime] = None
    property_details: Optional[dict[str, Any]] = None

    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    client_type: Optional[ClientType] = None
    client_id_number: Optional[str] = None

    co_broking_type: Optional[CoBrokingType] = None
    co_broking_agent_name: Optional[str] = None
    co_broking_agency_name: Optional[str] = None
    co_broking_agent_ren: Optional[str] = None

    total_price: Optional[Decimal] = None
    annual_rent: Optional[Decimal] = None
    commission_value: Optional[Decimal] = None
    commission_type: Optional[CommissionType] = None
    commission_percentage: Optional[Decimal] = None

    notes: Optional[str] = None
    review_notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TransactionDetailOut(TransactionOut):
    history: list[StatusHistoryOut] = Field(default_factory=list)
    documents: list[DocumentOut] = Field(default_factory=list)


class TransactionPage(BaseModel):
    items: list[TransactionOut]
    total_count: int
    has_more: bool


class RecentTransactionOut(BaseModel):
    id: str
    property_name: str
    client_name: str
    transaction_date: Optional[datetime] = None
    status: TransactionStatus
    market_type: Optional[MarketType] = None
    transaction_type: Optional[TransactionType] = None
    total_price: Optional[Decimal] = None
    commission_value: Optional[Decimal] = None
    property_type: Optional[str] = None
    property_address: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None


class StatusUpdateIn(BaseModel):
    status: TransactionStatus
    notes: Optional[str] = None


class AdminStatusUpdateIn(BaseModel):
    status: TransactionStatus
    notes: Optional[str] = None
    review_notes: Optional[str] = None


class DeleteOut(BaseModel):
    success: bool


# -------------------- Dashboard stats --------------------

class AgentStatsOut(BaseModel):
    total: int
    draft: int
    pending: int
    approved: int
    rejected: int
    total_commission: Decimal


class AdminStatsOut(BaseModel):
    total: int
    pending_review: int
    pending_approval: int
    approved: int
    rejected: int
    total_value: Decimal
    total_commission: Decimal


# -------------------- Transaction form --------------------

class FormStepOut(BaseModel):
    id: str
    title: str
    index: int


class FormStepListOut(BaseModel):
    market_type: MarketType
    steps: list[FormStepOut]
    commission_step_index: int


class FormValidateIn(BaseModel):
    step_id: str
    values: dict[str, Any] = Field(default_factory=dict)


class FormValidateOut(BaseModel):
    step_id: str
    valid: bool
    errors: dict[str, str] = Field(default_factory=dict)


class CommissionProfileIn(BaseModel):
    base_split: Decimal = Decimal("60")
    leadership_bonus: Decimal = Decimal("5")
    override_percentage: Decimal = Decimal("0")


class CommissionCalcIn(BaseModel):
    transaction_type: TransactionType = TransactionType.SALE
    commission_type: CommissionType = CommissionType.PERCENTAGE
    total_price: Optional[str] = None
    annual_rent: Optional[str] = None
    commission_percentage: Optional[str] = None
    commission_value: Optional[str] = None
    profile: CommissionProfileIn = Field(default_factory=CommissionProfileIn)

    @field_validator("commission_type", mode="before")
    @classmethod
    def _normalize_commission_type(cls, v: Any) -> Any:
        return CommissionType.normalize(v)


class CommissionBreakdownOut(BaseModel):
    total_commission: Decimal
    agent_base_commission: Decimal
    leadership_bonus: Decimal
    override_amount: Decimal
    agent_total_commission: Decimal
    company_commission: Decimal


class CommissionCalcOut(BaseModel):
    commission_value: str
    formatted: str
    breakdown: CommissionBreakdownOut
