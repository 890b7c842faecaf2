# backend/app/domain/transaction_form/values.py
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional


@dataclass
class DocumentDraft:
    document_name: str
    document_url: str
    document_type: Optional[str] = None


@dataclass
class TransactionFormValues:
    """
    In-progress form state. Text inputs stay as the strings the agent typed;
    they are only parsed into numbers/dates when the payload is built.
    """

    # Step 1: transaction type & date
    market_type: str = "secondary"
    transaction_type: str = ""
    transaction_date: str = ""

    # Property
    property_name: str = ""
    property_type: str = ""
    address: str = ""
    total_price: str = ""
    annual_rent: str = ""  # lease only
    property_developer: str = ""
    property_project: str = ""
    property_unit_number: str = ""
    selected_property: Optional[dict[str, Any]] = None  # primary market picker

    built_up_area: str = ""
    land_area: str = ""
    bedrooms: str = ""
    bathrooms: str = ""
    car_parks: str = ""
    furnishing: str = ""
    property_features: str = ""

    # Client
    client_name: str = ""
    client_email: str = ""
    client_phone: str = ""
    client_id_number: str = ""
    client_type: str = "buyer"
    client_acquisition_source: str = ""

    # Co-broking
    co_broking_enabled: bool = False
    co_broking_direction: str = "buyer"
    co_broking_agent_name: str = ""
    co_broking_agent_ren: str = ""
    co_broking_agency_name: str = ""
    co_broking_agent_contact: str = ""

    # Commission
    commission_value: str = ""
    commission_type: str = ""
    commission_percentage: str = ""

    # Documents & notes
    documents: list[DocumentDraft] = field(default_factory=list)
    notes: str = ""
    is_agency_listing: bool = False

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TransactionFormValues":
        unknown = set(data) - cls.field_names()
        if unknown:
            raise ValueError(f"unknown form field(s): {', '.join(sorted(unknown))}")

        kwargs = dict(data)
        if "documents" in kwargs:
            kwargs["documents"] = [
                d if isinstance(d, DocumentDraft) else DocumentDraft(**d) for d in (kwargs["documents"] or [])
            ]
        return cls(**kwargs)
