# backend/app/domain/transaction_form/validation.py
from __future__ import annotations

from typing import Any, Callable

from ..enums import CommissionType, MarketType, TransactionType
from .steps import StepId
from .values import TransactionFormValues

FieldErrors = dict[str, str]


def _blank(v: Any) -> bool:
    if v is None:
        return True
    if isinstance(v, str):
        return not v.strip()
    return False


def check_transaction_type(values: TransactionFormValues) -> FieldErrors:
    errors: FieldErrors = {}
    if _blank(values.market_type):
        errors["market_type"] = "Market type is required"
    if _blank(values.transaction_date):
        errors["transaction_date"] = "Transaction date is required"
    if errors:
        return errors

    if values.market_type == MarketType.PRIMARY.value:
        if values.transaction_type != TransactionType.SALE.value:
            errors["transaction_type"] = "Primary market transactions must be sales"
    elif values.market_type == MarketType.SECONDARY.value:
        if values.transaction_type not in (TransactionType.SALE.value, TransactionType.LEASE.value):
            errors["transaction_type"] = "Select sale or lease"
    else:
        errors["market_type"] = "Unknown market type"
    return errors


def check_property_selection(values: TransactionFormValues) -> FieldErrors:
    # A picked listing satisfies the step on its own; otherwise the manual
    # entry needs every identifying field.
    if values.selected_property:
        return {}

    required = {
        "property_name": "Property name is required",
        "property_type": "Property type is required",
        "address": "Address is required",
        "property_developer": "Developer is required",
        "property_project": "Project is required",
        "total_price": "Total price is required",
    }
    return {k: msg for k, msg in required.items() if _blank(getattr(values, k))}


def check_property_details(values: TransactionFormValues) -> FieldErrors:
    if _blank(values.property_name):
        return {"property_name": "Property name is required"}
    return {}


def check_client_information(values: TransactionFormValues) -> FieldErrors:
    if _blank(values.client_name):
        return {"client_name": "Client name is required"}
    return {}


def check_co_broking(values: TransactionFormValues) -> FieldErrors:
    if not values.co_broking_enabled:
        return {}
    errors: FieldErrors = {}
    if _blank(values.co_broking_agent_name):
        errors["co_broking_agent_name"] = "Co-broking agent name is required"
    if _blank(values.co_broking_agency_name):
        errors["co_broking_agency_name"] = "Co-broking agency name is required"
    return errors


def check_commission(values: TransactionFormValues) -> FieldErrors:
    kind = CommissionType.normalize(values.commission_type)
    if _blank(kind):
        return {"commission_type": "Commission type is required"}
    if kind == CommissionType.FIXED_AMOUNT.value:
        if _blank(values.commission_value):
            return {"commission_value": "Commission amount is required"}
        return {}
    if kind == CommissionType.PERCENTAGE.value:
        if _blank(values.commission_percentage):
            return {"commission_percentage": "Commission percentage is required"}
        return {}
    return {"commission_type": "Unknown commission type"}


def check_nothing(values: TransactionFormValues) -> FieldErrors:
    return {}


STEP_CHECKS: dict[StepId, Callable[[TransactionFormValues], FieldErrors]] = {
    StepId.TRANSACTION_TYPE: check_transaction_type,
    StepId.PROPERTY_SELECTION: check_property_selection,
    StepId.PROPERTY_DETAILS: check_property_details,
    StepId.CLIENT_INFORMATION: check_client_information,
    StepId.CO_BROKING: check_co_broking,
    StepId.COMMISSION: check_commission,
    StepId.DOCUMENTS: check_nothing,
    StepId.REVIEW: check_nothing,
}

_unchecked = set(StepId) - set(STEP_CHECKS)
if _unchecked:
    raise RuntimeError(f"form steps without a validator: {sorted(s.value for s in _unchecked)}")


def step_errors(step_id: StepId | str, values: TransactionFormValues) -> FieldErrors:
    return STEP_CHECKS[StepId(step_id)](values)


def validate_step(step_id: StepId | str, values: TransactionFormValues) -> bool:
    return not step_errors(step_id, values)
