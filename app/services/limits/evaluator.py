from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Callable

from app.services.limits.aggregator import PeriodSummary, SpendAggregator
from app.services.limits.classifier import classify
from app.services.limits.matcher import applicable_limits
from app.services.limits.periods import resolve_periods
from app.services.limits.store import SpendStore, to_decimal

logger = logging.getLogger("app.limits")

TOTAL_LABEL = "Total"


class InvalidCandidateError(ValueError):
    """Candidate expense is missing a field or has a malformed one."""


@dataclass(frozen=True)
class CandidateExpense:
    date: date
    category: str
    amount: Decimal

    @classmethod
    def parse(cls, date_value, category, amount) -> "CandidateExpense":
        return cls(date=_parse_date(date_value), category=_parse_category(category), amount=_parse_amount(amount))


def _parse_date(value) -> date:
    if isinstance(value, datetime):
        raise InvalidCandidateError("date must be a calendar day without time")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidCandidateError("date is required (YYYY-MM-DD)")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise InvalidCandidateError(f"date must be YYYY-MM-DD: {value!r}") from exc


def _parse_category(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidCandidateError("category is required")
    return value.strip()


def _parse_amount(value) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvalidCandidateError("amount is required")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidCandidateError("amount must be a finite number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidCandidateError(f"amount must be a number: {value!r}") from exc
    if not amount.is_finite():
        raise InvalidCandidateError("amount must be a finite number")
    if amount < 0:
        raise InvalidCandidateError("amount cannot be negative")
    return amount


@dataclass(frozen=True)
class LimitWarning:
    period: str
    category: str
    limit_amount: Decimal
    current_spent: Decimal
    new_total: Decimal
    percentage: float
    severity: str
    remaining: Decimal | None = None
    overage: Decimal | None = None


@dataclass(frozen=True)
class LimitCheckResult:
    warnings: list[LimitWarning] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


class LimitEvaluator:
    """
    Advisory check of a proposed expense against the user's active spending limits.
    Read only; "today" comes from `today_provider` on every call.
    """

    def __init__(self, store: SpendStore, today_provider: Callable[[], date] = date.today):
        self.store = store
        self.aggregator = SpendAggregator(store)
        self.today_provider = today_provider

    def evaluate(self, user_id: int, candidate: CandidateExpense) -> LimitCheckResult:
        windows = resolve_periods(self.today_provider())
        limits = self.store.get_limits_for_user(user_id)
        matched = applicable_limits(candidate.date, candidate.category, limits, windows)

        summaries: dict[str, PeriodSummary] = {}
        warnings: list[LimitWarning] = []
        for item in matched:
            summary = summaries.get(item.window.kind)
            if summary is None:
                summary = self.aggregator.aggregate(user_id, item.window)
                summaries[item.window.kind] = summary
            limit_amount = to_decimal(item.limit.limit_amount)
            current = summary.spent_for(item.limit.category)
            result = classify(limit_amount, current, candidate.amount)
            if result is None:
                continue
            warnings.append(
                LimitWarning(
                    period=item.label,
                    category=item.limit.category or TOTAL_LABEL,
                    limit_amount=limit_amount,
                    current_spent=current,
                    new_total=result.projected,
                    percentage=result.display_percentage,
                    severity=result.severity,
                    remaining=result.remaining,
                    overage=result.overage,
                )
            )

        logger.info(
            "limit_check user=%s date=%s category=%r limits=%s matched=%s warnings=%s",
            user_id,
            candidate.date.isoformat(),
            candidate.category,
            len(limits),
            len(matched),
            len(warnings),
        )
        return LimitCheckResult(warnings=warnings)
