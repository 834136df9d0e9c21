from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

WARNING = "warning"
EXCEEDED = "exceeded"

NEAR_LIMIT_PCT = Decimal("90")


@dataclass(frozen=True)
class Classification:
    severity: str
    projected: Decimal
    percentage: Decimal
    remaining: Decimal | None = None
    overage: Decimal | None = None

    @property
    def display_percentage(self) -> float:
        return display_pct(self.percentage)


def display_pct(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def usage_percentage(spent: Decimal, limit_amount: Decimal) -> Decimal:
    if limit_amount <= 0:
        return Decimal("100")
    return spent / limit_amount * 100


def classify(limit_amount: Decimal, current_spent: Decimal, candidate_amount: Decimal) -> Classification | None:
    """
    Severity of adding `candidate_amount` on top of `current_spent`:
    exceeded when the projection is strictly above the limit, warning from 90%
    up to and including 100%, otherwise None. Comparisons use unrounded values.
    """
    projected = current_spent + candidate_amount
    pct = usage_percentage(projected, limit_amount)
    if projected > limit_amount:
        return Classification(EXCEEDED, projected, pct, overage=projected - limit_amount)
    if pct >= NEAR_LIMIT_PCT:
        return Classification(WARNING, projected, pct, remaining=limit_amount - projected)
    return None
