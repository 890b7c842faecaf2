# backend/app/routers/transaction_form.py
from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..auth import Principal, get_principal
from ..domain.commission import AgentCommissionProfile, commission_breakdown, compute_commission_value, price_basis
from ..domain.enums import CommissionType, MarketType
from ..domain.money import format_currency, format_plain, parse_decimal
from ..domain.transaction_form import (
    StepId,
    TransactionFormValues,
    get_commission_step_index,
    get_steps_by_market_type,
    step_errors,
)
from ..schemas import (
    CommissionBreakdownOut,
    CommissionCalcIn,
    CommissionCalcOut,
    FormStepListOut,
    FormStepOut,
    FormValidateIn,
    FormValidateOut,
)

router = APIRouter(prefix="/transaction-form", tags=["transaction-form"])


@router.get("/steps", response_model=FormStepListOut)
def steps(
    market_type: MarketType = Query(default=MarketType.SECONDARY),
    p: Principal = Depends(get_principal),
):
    items = get_steps_by_market_type(market_type.value)
    return FormStepListOut(
        market_type=market_type,
        steps=[FormStepOut(id=s.id.value, title=s.title, index=i) for i, s in enumerate(items)],
        commission_step_index=get_commission_step_index(market_type.value),
    )


@router.post("/validate", response_model=FormValidateOut)
def validate(payload: FormValidateIn, p: Principal = Depends(get_principal)):
    try:
        step_id = StepId(payload.step_id)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown step: {payload.step_id}")
    try:
        values = TransactionFormValues.from_mapping(payload.values)
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    errors = step_errors(step_id, values)
    return FormValidateOut(step_id=step_id.value, valid=not errors, errors=errors)


def _decimal_or_422(raw: str | None, field: str) -> Decimal | None:
    try:
        return parse_decimal(raw)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"{field} is not a number")


@router.post("/commission", response_model=CommissionCalcOut)
def commission(payload: CommissionCalcIn, request: Request, p: Principal = Depends(get_principal)):
    """
    Commission step preview: the derived (or typed) commission value and how
    it splits between agent and company.
    """
    if payload.commission_type == CommissionType.FIXED_AMOUNT:
        value = _decimal_or_422(payload.commission_value, "commission_value")
    else:
        pct = _decimal_or_422(payload.commission_percentage, "commission_percentage")
        if pct is None:
            pct = request.app.state.settings.default_commission_percentage
        basis = price_basis(
            payload.transaction_type.value,
            total_price=_decimal_or_422(payload.total_price, "total_price"),
            annual_rent=_decimal_or_422(payload.annual_rent, "annual_rent"),
        )
        value = compute_commission_value(basis, pct)

    total = value if value is not None else Decimal("0")
    profile = AgentCommissionProfile(
        base_split=payload.profile.base_split,
        leadership_bonus=payload.profile.leadership_bonus,
        override_percentage=payload.profile.override_percentage,
    )
    return CommissionCalcOut(
        commission_value=format_plain(value),
        formatted=format_currency(value),
        breakdown=CommissionBreakdownOut(**commission_breakdown(total, profile).as_dict()),
    )
