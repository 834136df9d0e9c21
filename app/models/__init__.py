from app.models.expense import Expense
from app.models.spending_limit import LimitPeriod, SpendingLimit
from app.models.user import User

__all__ = [
    "Expense",
    "LimitPeriod",
    "SpendingLimit",
    "User",
]
