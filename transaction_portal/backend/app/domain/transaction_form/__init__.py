# backend/app/domain/transaction_form/__init__.py
from .values import DocumentDraft, TransactionFormValues
from .steps import (
    StepConfig,
    StepId,
    STEP_TITLES,
    active_steps,
    get_commission_step_index,
    get_step_index,
    get_steps_by_market_type,
)
from .validation import STEP_CHECKS, step_errors, validate_step
from .sequencer import SubmitResult, TransactionFormSequencer

__all__ = [
    "DocumentDraft",
    "TransactionFormValues",
    "StepConfig",
    "StepId",
    "STEP_TITLES",
    "active_steps",
    "get_commission_step_index",
    "get_step_index",
    "get_steps_by_market_type",
    "STEP_CHECKS",
    "step_errors",
    "validate_step",
    "SubmitResult",
    "TransactionFormSequencer",
]
