"""
Statistics Aggregator

DESIGN DECISION: Statistics are a pure function of the record list.
Nothing is cached or maintained incrementally; every render recomputes
from scratch. Personal record counts are small, so this stays cheap
and can never drift out of sync with the store.

Only BOUGHT records count. PLANNED records are excluded from every
figure regardless of their prices.
"""

from typing import Iterable, Optional

from smartshop.models.record import Category, PurchaseStatus, ShoppingRecord
from smartshop.models.stats import CategoryTotal, MonthlyTotal, SpendingStats


# Bucket for bought records whose purchase date is missing or unparseable
UNKNOWN_MONTH = "unknown"


def bought_records(records: Iterable[ShoppingRecord]) -> list[ShoppingRecord]:
    """Records with status BOUGHT, in their original order."""
    return [record for record in records if record.status == PurchaseStatus.BOUGHT]


def total_spent(records: Iterable[ShoppingRecord]) -> float:
    """Sum of actual prices over bought records."""
    return sum((record.actual_price for record in bought_records(records)), 0.0)


def total_saved(records: Iterable[ShoppingRecord]) -> float:
    """
    Sum of (list - actual) over bought records with both prices set.

    Floored at zero per record: paying above list never counts as
    negative saving.
    """
    saved = 0.0
    for record in bought_records(records):
        if record.list_price and record.actual_price:
            saved += max(0.0, record.list_price - record.actual_price)
    return saved


def category_breakdown(records: Iterable[ShoppingRecord]) -> list[CategoryTotal]:
    """Spending per category, in order of first appearance."""
    totals: dict[Category, float] = {}
    for record in bought_records(records):
        totals[record.category] = totals.get(record.category, 0.0) + record.actual_price
    return [
        CategoryTotal(category=category, total=total)
        for category, total in totals.items()
    ]


def month_key(record: ShoppingRecord) -> str:
    """'YYYY-MM' of the purchase date, or the unknown bucket."""
    if record.purchase_date is None:
        return UNKNOWN_MONTH
    return record.purchase_date.strftime("%Y-%m")


def monthly_breakdown(records: Iterable[ShoppingRecord]) -> list[MonthlyTotal]:
    """
    Spending per calendar month.

    Months are sorted chronologically. Records without a usable
    purchase date are kept in a trailing "unknown" bucket rather
    than dropped, so the monthly totals always add up to total_spent.
    """
    totals: dict[str, float] = {}
    for record in bought_records(records):
        key = month_key(record)
        totals[key] = totals.get(key, 0.0) + record.actual_price

    unknown: Optional[float] = totals.pop(UNKNOWN_MONTH, None)
    result = [
        MonthlyTotal(month=month, total=totals[month])
        for month in sorted(totals)
    ]
    if unknown is not None:
        result.append(MonthlyTotal(month=UNKNOWN_MONTH, total=unknown))
    return result


def compute_stats(records: Iterable[ShoppingRecord]) -> SpendingStats:
    """Compute every statistic shown on the dashboard."""
    records = list(records)
    return SpendingStats(
        total_spent=total_spent(records),
        total_saved=total_saved(records),
        bought_count=len(bought_records(records)),
        category_totals=category_breakdown(records),
        monthly_totals=monthly_breakdown(records),
    )
