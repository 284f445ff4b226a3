"""Spending statistics package."""

from smartshop.stats.aggregator import (
    UNKNOWN_MONTH,
    bought_records,
    category_breakdown,
    compute_stats,
    month_key,
    monthly_breakdown,
    total_saved,
    total_spent,
)

__all__ = [
    "UNKNOWN_MONTH",
    "bought_records",
    "category_breakdown",
    "compute_stats",
    "month_key",
    "monthly_breakdown",
    "total_saved",
    "total_spent",
]
