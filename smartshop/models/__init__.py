"""
Data Models Package

This package contains all Pydantic models used in Smart Shop Tracker.
All data flowing through the system must conform to these schemas.
"""

from smartshop.models.record import (
    CATEGORY_LABELS,
    STATUS_LABELS,
    UNIT_COST_TYPE_LABELS,
    USAGE_STATUS_LABELS,
    Category,
    ParsedRecord,
    PurchaseStatus,
    ShoppingRecord,
    ShoppingRecordData,
    UnitCostType,
    UsageStatus,
    ValidationIssue,
    ValidationResult,
    default_form_data,
    derive_discount_rate,
    parse_purchase_date,
)
from smartshop.models.stats import (
    CategoryTotal,
    MonthlyTotal,
    SpendingStats,
)
from smartshop.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Record models
    "CATEGORY_LABELS",
    "STATUS_LABELS",
    "UNIT_COST_TYPE_LABELS",
    "USAGE_STATUS_LABELS",
    "Category",
    "ParsedRecord",
    "PurchaseStatus",
    "ShoppingRecord",
    "ShoppingRecordData",
    "UnitCostType",
    "UsageStatus",
    "ValidationIssue",
    "ValidationResult",
    "default_form_data",
    "derive_discount_rate",
    "parse_purchase_date",
    # Statistics models
    "CategoryTotal",
    "MonthlyTotal",
    "SpendingStats",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
