from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class LimitPeriod(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class SpendingLimit(Base):
    """
    Spending cap for one period kind, either on a single category or (category NULL)
    on the user's total spend. One row per (user, period, category); NULL is its own key.
    """

    __tablename__ = "spending_limits"
    __table_args__ = (
        UniqueConstraint("user_id", "period", "category", name="uq_spending_limits_user_period_category"),
        # Plain UNIQUE treats NULLs as distinct, so total limits need their own index.
        Index(
            "uq_spending_limits_user_period_total",
            "user_id",
            "period",
            unique=True,
            sqlite_where=text("category IS NULL"),
            postgresql_where=text("category IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    # Stored as plain text: rows with an unknown period are skipped, not rejected on load.
    period: Mapped[str] = mapped_column(String(16))
    category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    limit_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user: Mapped["User"] = relationship("User", back_populates="limits")
