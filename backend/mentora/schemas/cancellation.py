# backend/mentora/schemas/cancellation.py
"""
Cancellation policy and settlement value objects.

Policies differ only by their numbers (floor, fee, tier table), so there is a
single ``CancellationPolicy`` model rather than one class per policy.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from pydantic import Field, field_validator

from ..core.enums import OutcomeFailure, PenaltyType
from .base import FrozenModel, Money


class RefundTier(FrozenModel):
    hours_before_session: float = Field(ge=0)
    refund_percent: Decimal = Field(ge=0, le=100)
    description: str = ""


class CancellationPolicy(FrozenModel):
    id: int
    name: str
    description: str = ""
    is_active: bool = True
    minimum_refund_percent: Decimal = Field(ge=0, le=100)
    processing_fee_percent: Decimal = Field(ge=0, le=100)
    tiers: Tuple[RefundTier, ...] = ()

    @field_validator("tiers")
    @classmethod
    def _sort_tiers(cls, tiers: Tuple[RefundTier, ...]) -> Tuple[RefundTier, ...]:
        return tuple(sorted(tiers, key=lambda tier: tier.hours_before_session, reverse=True))


class RefundCalculation(FrozenModel):
    original_amount: Money
    currency: str
    refund_percent: Decimal
    refund_amount: Money
    applied_tier: RefundTier


class CancellationPenalty(FrozenModel):
    type: PenaltyType = PenaltyType.NONE
    percent: Decimal = Decimal(0)
    amount: Money = Money("0.00")
    description: str = "No penalty applicable"


class SettlementResult(FrozenModel):
    """Net monetary outcome of a cancellation request."""

    is_allowed: bool
    reason: Optional[str] = None
    failure: Optional[OutcomeFailure] = None
    policy: Optional[CancellationPolicy] = None
    refund_calculation: Optional[RefundCalculation] = None
    penalty: Optional[CancellationPenalty] = None
    processing_fee: Money = Money("0.00")
    estimated_net_refund: Money = Money("0.00")
    special_circumstances: bool = False

    @classmethod
    def refused(cls, failure: OutcomeFailure, reason: str) -> "SettlementResult":
        return cls(is_allowed=False, failure=failure, reason=reason)

    def summary(self) -> Dict[str, Any]:
        """Flat view used for log lines."""
        return {
            "is_allowed": self.is_allowed,
            "failure": self.failure.value if self.failure else None,
            "policy": self.policy.name if self.policy else None,
            "refund_percent": (
                float(self.refund_calculation.refund_percent) if self.refund_calculation else None
            ),
            "penalty_type": self.penalty.type.value if self.penalty else None,
            "estimated_net_refund": float(self.estimated_net_refund),
            "special_circumstances": self.special_circumstances,
        }


class ModificationResult(FrozenModel):
    is_allowed: bool
    reason: Optional[str] = None
    failure: Optional[OutcomeFailure] = None
    modification_fee: Optional[Money] = None

    @property
    def has_modification_fee(self) -> bool:
        return self.modification_fee is not None

    @classmethod
    def refused(cls, failure: OutcomeFailure, reason: str) -> "ModificationResult":
        return cls(is_allowed=False, failure=failure, reason=reason)
