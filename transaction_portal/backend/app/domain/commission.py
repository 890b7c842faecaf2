# backend/app/domain/commission.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .enums import TransactionType
from .money import percent_of, to_cents


def price_basis(
    transaction_type: TransactionType | str | None,
    *,
    total_price: Optional[Decimal],
    annual_rent: Optional[Decimal],
) -> Optional[Decimal]:
    """Leases earn commission on the annual rent, everything else on the price."""
    if transaction_type == TransactionType.LEASE.value:
        return annual_rent
    return total_price


def compute_commission_value(basis: Optional[Decimal], percentage: Optional[Decimal]) -> Optional[Decimal]:
    if basis is None or percentage is None:
        return None
    return percent_of(basis, percentage)


@dataclass(frozen=True)
class AgentCommissionProfile:
    base_split: Decimal = Decimal("60")
    leadership_bonus: Decimal = Decimal("5")
    override_percentage: Decimal = Decimal("0")


@dataclass(frozen=True)
class CommissionBreakdown:
    total_commission: Decimal
    agent_base_commission: Decimal
    leadership_bonus: Decimal
    override_amount: Decimal
    agent_total_commission: Decimal
    company_commission: Decimal

    def as_dict(self) -> dict:
        return {
            "total_commission": self.total_commission,
            "agent_base_commission": self.agent_base_commission,
            "leadership_bonus": self.leadership_bonus,
            "override_amount": self.override_amount,
            "agent_total_commission": self.agent_total_commission,
            "company_commission": self.company_commission,
        }


def commission_breakdown(total_commission: Decimal, profile: AgentCommissionProfile) -> CommissionBreakdown:
    total = to_cents(total_commission)
    base = percent_of(total, profile.base_split)
    bonus = percent_of(total, profile.leadership_bonus)
    override = percent_of(total, profile.override_percentage)
    agent_total = base + bonus - override
    return CommissionBreakdown(
        total_commission=total,
        agent_base_commission=base,
        leadership_bonus=bonus,
        override_amount=override,
        agent_total_commission=agent_total,
        company_commission=total - agent_total,
    )
