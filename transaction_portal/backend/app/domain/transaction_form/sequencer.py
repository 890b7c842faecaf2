# backend/app/domain/transaction_form/sequencer.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Optional

from ...clients.portal_api import PortalApiError, PortalClient
from ...schemas import DocumentCreate, TransactionCreate
from ..commission import (
    AgentCommissionProfile,
    CommissionBreakdown,
    commission_breakdown,
    compute_commission_value,
    price_basis,
)
from ..enums import CoBrokingType, CommissionType, MarketType, PropertyType, TransactionType
from ..money import format_plain, parse_decimal
from .steps import StepConfig, StepId, active_steps, get_commission_step_index, is_primary
from .validation import FieldErrors, step_errors, validate_step
from .values import TransactionFormValues

# -----------------------------------------------------------------------------
# Transaction form sequencer
# -----------------------------------------------------------------------------
# Owns one in-progress form: the values, the current step index into the
# active step list, and the per-field errors of the last failed advance.
#
#   - next() only advances past a step whose validator passes
#   - jumps (by id, or to the commission step) only go backward or stay put
#   - switching market type restarts at step 0 and clears the fields that
#     only make sense on the branch being left
#   - in percentage mode commission_value is derived, never typed
# -----------------------------------------------------------------------------

log = logging.getLogger("portal.form")

Submitter = Callable[[TransactionCreate], Any]

# Fields that feed the derived commission value.
COMMISSION_INPUTS = frozenset(
    {"total_price", "annual_rent", "commission_percentage", "transaction_type", "commission_type"}
)

PRIMARY_ONLY_FIELDS = ("selected_property", "property_developer", "property_project")
SECONDARY_ONLY_FIELDS = ("annual_rent",)


@dataclass(frozen=True)
class SubmitResult:
    ok: bool
    transaction: Optional[dict[str, Any]] = None
    message: Optional[str] = None


def _lenient_decimal(raw: Any) -> Optional[Decimal]:
    try:
        return parse_decimal(raw)
    except ValueError:
        return None


def _none_if_blank(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _parse_date(raw: str) -> datetime:
    s = (raw or "").strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class TransactionFormSequencer:
    def __init__(
        self,
        values: Optional[TransactionFormValues] = None,
        *,
        submitter: Optional[Submitter] = None,
    ) -> None:
        self.values = values or TransactionFormValues()
        self.values.commission_type = CommissionType.normalize(self.values.commission_type)
        self.current_index = 0
        self.errors: FieldErrors = {}
        self.submit_error: Optional[str] = None
        self._submitter = submitter
        self._in_flight = False

    # -------------------------
    # Step list
    # -------------------------
    @property
    def steps(self) -> list[StepConfig]:
        return active_steps(self.values)

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def current_step(self) -> StepConfig:
        return self.steps[self.current_index]

    @property
    def is_last_step(self) -> bool:
        return self.current_index == self.total_steps - 1

    @property
    def can_proceed(self) -> bool:
        return validate_step(self.current_step.id, self.values)

    @property
    def is_submitting(self) -> bool:
        return self._in_flight

    # -------------------------
    # Values
    # -------------------------
    def set_field(self, name: str, value: Any) -> None:
        if name not in TransactionFormValues.field_names():
            raise KeyError(f"unknown form field: {name}")

        if name == "market_type":
            self._change_market_type(value)
            return

        if name == "commission_type":
            value = CommissionType.normalize(value)

        setattr(self.values, name, value)
        if name in COMMISSION_INPUTS:
            self._recompute_commission()

    def update(self, **changes: Any) -> None:
        # market_type first so a branch switch doesn't wipe values set in the same call
        if "market_type" in changes:
            self.set_field("market_type", changes.pop("market_type"))
        for name, value in changes.items():
            self.set_field(name, value)

    def _change_market_type(self, market_type: str) -> None:
        previous = self.values.market_type
        self.values.market_type = market_type
        if market_type == previous:
            return

        self.current_index = 0
        self.errors = {}

        leaving = PRIMARY_ONLY_FIELDS if is_primary(previous) else SECONDARY_ONLY_FIELDS
        for name in leaving:
            setattr(self.values, name, None if name == "selected_property" else "")

        if is_primary(market_type):
            self.values.transaction_type = TransactionType.SALE.value

        log.debug("market type changed %s -> %s", previous, market_type)
        self._recompute_commission()

    def _recompute_commission(self) -> None:
        if self.values.commission_type != CommissionType.PERCENTAGE.value:
            return
        basis = price_basis(
            self.values.transaction_type,
            total_price=_lenient_decimal(self.values.total_price),
            annual_rent=_lenient_decimal(self.values.annual_rent),
        )
        value = compute_commission_value(basis, _lenient_decimal(self.values.commission_percentage))
        self.values.commission_value = format_plain(value)

    def breakdown(self, profile: Optional[AgentCommissionProfile] = None) -> Optional[CommissionBreakdown]:
        total = _lenient_decimal(self.values.commission_value)
        if total is None:
            return None
        return commission_breakdown(total, profile or AgentCommissionProfile())

    # -------------------------
    # Navigation
    # -------------------------
    def next(self) -> bool:
        errors = step_errors(self.current_step.id, self.values)
        if errors:
            self.errors = errors
            return False
        self.errors = {}
        if self.is_last_step:
            return False
        self.current_index += 1
        return True

    def previous(self) -> bool:
        self.errors = {}
        if self.current_index == 0:
            return False
        self.current_index -= 1
        return True

    def _go_back_to(self, index: int) -> bool:
        if index < 0 or index > self.current_index:
            return False
        self.current_index = index
        self.errors = {}
        return True

    def jump_to_step(self, step_id: StepId | str) -> bool:
        """Revisit an earlier step (or the current one). Forward jumps are refused."""
        target = StepId(step_id)
        for i, step in enumerate(self.steps):
            if step.id == target:
                return self._go_back_to(i)
        return False

    def navigate_to_commission_step(self) -> bool:
        return self._go_back_to(get_commission_step_index(self.values.market_type))

    def is_commission_step_complete(self) -> bool:
        return validate_step(StepId.COMMISSION, self.values)

    # -------------------------
    # Submission
    # -------------------------
    def build_payload(self) -> TransactionCreate:
        v = self.values
        co_broke = bool(v.co_broking_enabled)

        property_details = {
            "name": v.property_name,
            "type": v.property_type or PropertyType.OTHER.value,
            "address": v.address,
            "developer": v.property_developer,
            "project": v.property_project,
            "unit_number": v.property_unit_number,
            "built_up_area": v.built_up_area,
            "land_area": v.land_area,
            "bedrooms": v.bedrooms,
            "bathrooms": v.bathrooms,
            "car_parks": v.car_parks,
            "furnishing": v.furnishing,
            "features": v.property_features,
        }
        if v.selected_property:
            property_details["selected_property_id"] = v.selected_property.get("id")

        return TransactionCreate(
            market_type=v.market_type or MarketType.SECONDARY.value,
            transaction_type=v.transaction_type,
            transaction_date=_parse_date(v.transaction_date),
            property_details={k: val for k, val in property_details.items() if _none_if_blank(val) is not None},
            client_name=v.client_name,
            client_email=_none_if_blank(v.client_email),
            client_phone=_none_if_blank(v.client_phone),
            client_type=v.client_type or "buyer",
            client_id_number=_none_if_blank(v.client_id_number),
            co_broking_type=CoBrokingType.CO_BROKE.value if co_broke else CoBrokingType.DIRECT.value,
            co_broking_agent_name=_none_if_blank(v.co_broking_agent_name) if co_broke else None,
            co_broking_agency_name=_none_if_blank(v.co_broking_agency_name) if co_broke else None,
            co_broking_agent_ren=_none_if_blank(v.co_broking_agent_ren) if co_broke else None,
            total_price=_none_if_blank(v.total_price),
            annual_rent=_none_if_blank(v.annual_rent),
            commission_value=_none_if_blank(v.commission_value),
            commission_type=v.commission_type,
            commission_percentage=_none_if_blank(v.commission_percentage),
            notes=_none_if_blank(v.notes),
            documents=[
                DocumentCreate(
                    document_name=d.document_name,
                    document_url=d.document_url,
                    document_type=d.document_type,
                )
                for d in v.documents
            ],
        )

    def _default_submitter(self) -> Submitter:
        return PortalClient().create_transaction

    def submit(self) -> SubmitResult:
        """
        Send the form once. Success starts a fresh form; failure keeps every
        value so the agent can fix and retry.
        """
        if self._in_flight:
            return SubmitResult(ok=False, message="Submission already in progress")
        if not self.is_last_step:
            return SubmitResult(ok=False, message="Form can only be submitted from the review step")

        submitter = self._submitter or self._default_submitter()
        self._in_flight = True
        try:
            payload = self.build_payload()
            created = submitter(payload)
        except PortalApiError as e:
            self.submit_error = str(e.detail)
            log.warning("transaction submit rejected: %s", e)
            return SubmitResult(ok=False, message=self.submit_error)
        except ValueError as e:
            # pydantic ValidationError is a ValueError
            self.submit_error = str(e)
            log.warning("transaction form payload invalid: %s", e)
            return SubmitResult(ok=False, message=self.submit_error)
        finally:
            self._in_flight = False

        self.values = TransactionFormValues()
        self.current_index = 0
        self.errors = {}
        self.submit_error = None
        return SubmitResult(ok=True, transaction=created if isinstance(created, dict) else None)
