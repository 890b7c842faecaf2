# backend/app/domain/transaction_form/steps.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..enums import MarketType
from .values import TransactionFormValues


class StepId(str, Enum):
    TRANSACTION_TYPE = "transaction-type"
    PROPERTY_SELECTION = "property-selection"
    PROPERTY_DETAILS = "property-details"
    CLIENT_INFORMATION = "client-information"
    CO_BROKING = "co-broking"
    COMMISSION = "commission"
    DOCUMENTS = "documents"
    REVIEW = "review"


STEP_TITLES: dict[StepId, str] = {
    StepId.TRANSACTION_TYPE: "Transaction Type",
    StepId.PROPERTY_SELECTION: "Property Selection",
    StepId.PROPERTY_DETAILS: "Property Details",
    StepId.CLIENT_INFORMATION: "Client Information",
    StepId.CO_BROKING: "Co-Broking",
    StepId.COMMISSION: "Commission",
    StepId.DOCUMENTS: "Documents",
    StepId.REVIEW: "Review & Submit",
}


def _always(values: TransactionFormValues) -> bool:
    return True


def is_primary(market_type: str | None) -> bool:
    return (market_type or "") == MarketType.PRIMARY.value


@dataclass(frozen=True)
class StepConfig:
    id: StepId
    is_applicable: Callable[[TransactionFormValues], bool] = _always

    @property
    def title(self) -> str:
        return STEP_TITLES[self.id]


BASE_STEPS: tuple[StepConfig, ...] = (StepConfig(StepId.TRANSACTION_TYPE),)

PRIMARY_MARKET_STEPS: tuple[StepConfig, ...] = (
    StepConfig(StepId.PROPERTY_SELECTION, is_applicable=lambda v: is_primary(v.market_type)),
    StepConfig(StepId.PROPERTY_DETAILS),
    StepConfig(StepId.CLIENT_INFORMATION),
    StepConfig(StepId.CO_BROKING),
    StepConfig(StepId.COMMISSION),
    StepConfig(StepId.DOCUMENTS),
    StepConfig(StepId.REVIEW),
)

SECONDARY_MARKET_STEPS: tuple[StepConfig, ...] = (
    StepConfig(StepId.PROPERTY_DETAILS),
    StepConfig(StepId.CLIENT_INFORMATION),
    StepConfig(StepId.CO_BROKING),
    StepConfig(StepId.COMMISSION),
    StepConfig(StepId.DOCUMENTS),
    StepConfig(StepId.REVIEW),
)


def get_steps_by_market_type(market_type: str | None) -> list[StepConfig]:
    """Anything that isn't "primary" gets the secondary flow."""
    market_steps = PRIMARY_MARKET_STEPS if is_primary(market_type) else SECONDARY_MARKET_STEPS
    return [*BASE_STEPS, *market_steps]


def active_steps(values: TransactionFormValues) -> list[StepConfig]:
    return [s for s in get_steps_by_market_type(values.market_type) if s.is_applicable(values)]


def get_step_index(step_id: StepId | str, market_type: str | None) -> int:
    target = StepId(step_id)
    for i, step in enumerate(get_steps_by_market_type(market_type)):
        if step.id == target:
            return i
    return -1


def get_commission_step_index(market_type: str | None) -> int:
    return get_step_index(StepId.COMMISSION, market_type)
