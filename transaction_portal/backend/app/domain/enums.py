# backend/app/domain/enums.py
from __future__ import annotations

from enum import Enum
from typing import Any


class Role(str, Enum):
    AGENT = "agent"
    ADMIN = "admin"


class TransactionStatus(str, Enum):
    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    CLOSED = "closed"
    CANCELLED = "cancelled"


# Statuses an agent may ask for through the restricted endpoint.
AGENT_ALLOWED_STATUSES = frozenset({TransactionStatus.DRAFT, TransactionStatus.PENDING_REVIEW})

PENDING_STATUSES = frozenset({TransactionStatus.PENDING_REVIEW, TransactionStatus.PENDING_APPROVAL})


class MarketType(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class TransactionType(str, Enum):
    SALE = "sale"
    LEASE = "lease"


class PropertyType(str, Enum):
    RESIDENTIAL_VILLA = "residential_villa"
    RESIDENTIAL_APARTMENT = "residential_apartment"
    RESIDENTIAL_TOWNHOUSE = "residential_townhouse"
    COMMERCIAL_OFFICE = "commercial_office"
    COMMERCIAL_RETAIL = "commercial_retail"
    COMMERCIAL_WAREHOUSE = "commercial_warehouse"
    LAND_RESIDENTIAL = "land_residential"
    LAND_COMMERCIAL = "land_commercial"
    INDUSTRIAL_FACTORY = "industrial_factory"
    OTHER = "other"


class ClientType(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    TENANT = "tenant"
    LANDLORD = "landlord"


class CoBrokingType(str, Enum):
    DIRECT = "direct"
    CO_BROKE = "co_broke"


class CommissionType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"

    @classmethod
    def normalize(cls, value: Any) -> Any:
        """Map the legacy "fixed" label onto FIXED_AMOUNT; leave everything else alone."""
        if isinstance(value, str) and value.strip().lower() == "fixed":
            return cls.FIXED_AMOUNT.value
        return value


class DocumentType(str, Enum):
    AGREEMENT = "agreement"
    KYC = "kyc"
    PAYMENT_PROOF = "payment_proof"
    TITLE_DEED = "title_deed"
    SPA = "spa"
    MOI = "moi"
    OTHER = "other"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    return [m.value for m in enum_cls]
