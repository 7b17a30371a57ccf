"""
Spending Analytics

Monthly and per-category spending summaries over stored transactions.
Months are UTC calendar months; transaction times are epoch milliseconds.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable

from .models import PersistedTransaction

CENTS = Decimal("0.01")


def month_bounds_ms(year: int, month: int) -> tuple[int, int]:
    """Return the first and last epoch millisecond of a UTC calendar month.

    Raises:
        ValueError: If month is not between 1 and 12
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")

    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)

    return int(start.timestamp() * 1000), int(end.timestamp() * 1000) - 1


def day_of_month(date_time_ms: int) -> int:
    return datetime.fromtimestamp(date_time_ms / 1000, tz=timezone.utc).day


@dataclass
class CategorySpending:
    """Spending in one category."""

    category_name: str
    total_amount: Decimal
    transaction_count: int
    percentage: float = 0.0  # share of the period's total spending

    @property
    def average_amount(self) -> Decimal:
        if self.transaction_count == 0:
            return Decimal("0")
        return (self.total_amount / self.transaction_count).quantize(CENTS)

    def to_dict(self) -> dict:
        return {
            "category_name": self.category_name,
            "total_amount": float(self.total_amount),
            "transaction_count": self.transaction_count,
            "average_amount": float(self.average_amount),
            "percentage": round(self.percentage, 2),
        }


@dataclass
class DailySpending:
    """Spending on one day of the month."""

    day: int
    total_amount: Decimal
    transaction_count: int

    def to_dict(self) -> dict:
        return {
            "day": self.day,
            "total_amount": float(self.total_amount),
            "transaction_count": self.transaction_count,
        }


@dataclass
class MonthlySpendingSummary:
    """Spending summary for one calendar month."""

    year: int
    month: int
    total_spent: Decimal = Decimal("0")
    total_transactions: int = 0
    categorized_transactions: int = 0
    category_breakdown: dict[str, CategorySpending] = field(default_factory=dict)
    daily_spending: list[DailySpending] = field(default_factory=list)
    most_used_payment_method: str | None = None
    top_merchant: str | None = None

    @property
    def uncategorized_transactions(self) -> int:
        return self.total_transactions - self.categorized_transactions

    @property
    def categorization_rate(self) -> float:
        """Percentage of the month's transactions that carry a category."""
        if self.total_transactions == 0:
            return 0.0
        return self.categorized_transactions / self.total_transactions * 100

    @property
    def average_daily_spending(self) -> Decimal:
        """Average over the days that had any spending."""
        if not self.daily_spending:
            return Decimal("0")
        return (self.total_spent / len(self.daily_spending)).quantize(CENTS)

    @property
    def highest_spending_day(self) -> DailySpending | None:
        if not self.daily_spending:
            return None
        return max(self.daily_spending, key=lambda d: d.total_amount)

    @property
    def has_transactions(self) -> bool:
        return self.total_transactions > 0

    def to_dict(self) -> dict:
        highest = self.highest_spending_day
        return {
            "year": self.year,
            "month": self.month,
            "total_spent": float(self.total_spent),
            "total_transactions": self.total_transactions,
            "categorized_transactions": self.categorized_transactions,
            "uncategorized_transactions": self.uncategorized_transactions,
            "categorization_rate": round(self.categorization_rate, 2),
            "category_breakdown": {
                name: spending.to_dict()
                for name, spending in self.category_breakdown.items()
            },
            "daily_spending": [d.to_dict() for d in self.daily_spending],
            "average_daily_spending": float(self.average_daily_spending),
            "highest_spending_day": highest.to_dict() if highest else None,
            "most_used_payment_method": self.most_used_payment_method,
            "top_merchant": self.top_merchant,
        }


def _is_categorized(transaction: PersistedTransaction) -> bool:
    return transaction.categorized and bool((transaction.category or "").strip())


def category_totals(
    transactions: Iterable[PersistedTransaction],
    start_ms: int,
    end_ms: int
) -> dict[str, Decimal]:
    """Total categorized spending per category between two instants.

    Args:
        transactions: Stored transactions
        start_ms: Start of the range, inclusive
        end_ms: End of the range, inclusive

    Returns:
        Category name to total amount, largest total first
    """
    totals: dict[str, Decimal] = {}
    for t in transactions:
        if not start_ms <= t.date_time <= end_ms or not _is_categorized(t):
            continue
        totals[t.category] = totals.get(t.category, Decimal("0")) + t.amount

    return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))


def summarize_month(
    transactions: Iterable[PersistedTransaction],
    year: int,
    month: int
) -> MonthlySpendingSummary:
    """Build the spending summary for one month.

    Transactions outside the month are ignored, so callers may pass a wider
    set than the month itself.

    Args:
        transactions: Stored transactions
        year: Calendar year
        month: Calendar month, 1 to 12

    Returns:
        MonthlySpendingSummary
    """
    start_ms, end_ms = month_bounds_ms(year, month)
    in_month = [t for t in transactions if start_ms <= t.date_time <= end_ms]

    summary = MonthlySpendingSummary(year=year, month=month)
    if not in_month:
        return summary

    summary.total_spent = sum((t.amount for t in in_month), Decimal("0"))
    summary.total_transactions = len(in_month)
    summary.categorized_transactions = sum(1 for t in in_month if _is_categorized(t))

    by_category: dict[str, list[PersistedTransaction]] = {}
    for t in in_month:
        if _is_categorized(t):
            by_category.setdefault(t.category, []).append(t)

    for name, items in by_category.items():
        total = sum((t.amount for t in items), Decimal("0"))
        summary.category_breakdown[name] = CategorySpending(
            category_name=name,
            total_amount=total,
            transaction_count=len(items),
            percentage=float(total / summary.total_spent * 100) if summary.total_spent > 0 else 0.0,
        )

    by_day: dict[int, list[PersistedTransaction]] = {}
    for t in in_month:
        by_day.setdefault(day_of_month(t.date_time), []).append(t)

    summary.daily_spending = [
        DailySpending(
            day=day,
            total_amount=sum((t.amount for t in items), Decimal("0")),
            transaction_count=len(items),
        )
        for day, items in sorted(by_day.items())
    ]

    summary.most_used_payment_method = Counter(
        t.payment_method for t in in_month
    ).most_common(1)[0][0]
    summary.top_merchant = Counter(
        t.short_description() for t in in_month
    ).most_common(1)[0][0]

    return summary
