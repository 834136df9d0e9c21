from app.services.limits.aggregator import PeriodSummary, SpendAggregator
from app.services.limits.classifier import EXCEEDED, WARNING, Classification, classify
from app.services.limits.evaluator import (
    CandidateExpense,
    InvalidCandidateError,
    LimitCheckResult,
    LimitEvaluator,
    LimitWarning,
)
from app.services.limits.matcher import ApplicableLimit, applicable_limits
from app.services.limits.periods import PeriodWindow, PeriodWindows, month_window, resolve_periods
from app.services.limits.store import SpendStore, SpendStoreError, SqlSpendStore

__all__ = [
    "ApplicableLimit",
    "CandidateExpense",
    "Classification",
    "EXCEEDED",
    "InvalidCandidateError",
    "LimitCheckResult",
    "LimitEvaluator",
    "LimitWarning",
    "PeriodSummary",
    "PeriodWindow",
    "PeriodWindows",
    "SpendAggregator",
    "SpendStore",
    "SpendStoreError",
    "SqlSpendStore",
    "WARNING",
    "applicable_limits",
    "classify",
    "month_window",
    "resolve_periods",
]
