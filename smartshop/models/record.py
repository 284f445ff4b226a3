"""
Core Data Models for Smart Shop Tracker

These models define the schemas for every shopping record in the system.
They are designed to:
1. Enforce the closed sets (category, status, usage) at runtime
2. Keep derived values (discount rate) consistent with their inputs
3. Serialize to the same camelCase JSON that is persisted and that the
   AI model is asked to produce

DESIGN DECISION: Prices are plain floats. Records are entered by hand or
suggested by the AI model and only ever summed for display, so the
cost of Decimal round-tripping through JSON is not worth it here.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class PurchaseStatus(str, Enum):
    """
    Lifecycle state of a record.

    Only BOUGHT records count towards spending statistics.
    """
    PLANNED = "planned"
    BOUGHT = "bought"


class UsageStatus(str, Enum):
    """How a bought item is being used. Meaningful only for BOUGHT records."""
    NEW = "new"
    IN_USE = "in_use"
    FINISHED = "finished"
    IDLE = "idle"
    RETURNED = "returned"


class UnitCostType(str, Enum):
    """How `unit_cost` should be read."""
    PER_ITEM = "per_item"
    PER_USE = "per_use"
    PER_DAY = "per_day"
    PER_UNIT_MASS = "per_unit_mass"  # per gram / millilitre
    TOTAL = "total"


class Category(str, Enum):
    """
    Supported spending categories.

    DESIGN DECISION: A closed set rather than free text keeps the
    category breakdown meaningful and gives the AI model a fixed
    vocabulary to choose from.
    """
    ELECTRONICS = "electronics"
    CLOTHING = "clothing"
    BEAUTY = "beauty"
    FOOD = "food"
    HOME = "home"
    BOOKS = "books"
    SPORTS = "sports"
    SERVICES = "services"
    OTHER = "other"


CATEGORY_LABELS: dict[Category, str] = {
    Category.ELECTRONICS: "Electronics & Appliances",
    Category.CLOTHING: "Clothing, Shoes & Bags",
    Category.BEAUTY: "Beauty & Skincare",
    Category.FOOD: "Food & Drinks",
    Category.HOME: "Home & Daily Use",
    Category.BOOKS: "Books & Stationery",
    Category.SPORTS: "Sports & Outdoors",
    Category.SERVICES: "Digital & Services",
    Category.OTHER: "Other",
}

STATUS_LABELS: dict[PurchaseStatus, str] = {
    PurchaseStatus.PLANNED: "Planned",
    PurchaseStatus.BOUGHT: "Bought",
}

USAGE_STATUS_LABELS: dict[UsageStatus, str] = {
    UsageStatus.NEW: "New",
    UsageStatus.IN_USE: "In use",
    UsageStatus.FINISHED: "Used up",
    UsageStatus.IDLE: "Idle",
    UsageStatus.RETURNED: "Returned",
}

UNIT_COST_TYPE_LABELS: dict[UnitCostType, str] = {
    UnitCostType.PER_ITEM: "Per item",
    UnitCostType.PER_USE: "Per use",
    UnitCostType.PER_DAY: "Per day",
    UnitCostType.PER_UNIT_MASS: "Per unit (g/ml)",
    UnitCostType.TOTAL: "Total",
}

# Older records used "per_gram" before the unit was generalized
_LEGACY_UNIT_COST_TYPES = {"per_gram": UnitCostType.PER_UNIT_MASS.value}

# Older records stored the Chinese display label as the category
_LEGACY_CATEGORIES = {
    "数码/电器": Category.ELECTRONICS.value,
    "服饰/鞋包": Category.CLOTHING.value,
    "美妆/护肤": Category.BEAUTY.value,
    "食品/饮料": Category.FOOD.value,
    "家居/日用": Category.HOME.value,
    "图书/文具": Category.BOOKS.value,
    "运动/户外": Category.SPORTS.value,
    "虚拟/服务": Category.SERVICES.value,
    "其他": Category.OTHER.value,
}

_LEGACY_VALUES: dict[str, dict[str, str]] = {
    "category": _LEGACY_CATEGORIES,
    "unit_cost_type": _LEGACY_UNIT_COST_TYPES,
}


def map_legacy_value(field: str, value: Any) -> Any:
    """Translate a value written by an older version to its current form."""
    if isinstance(value, str):
        return _LEGACY_VALUES.get(field, {}).get(value.strip(), value)
    return value


# =============================================================================
# HELPERS
# =============================================================================

def derive_discount_rate(list_price: float, actual_price: float) -> Optional[float]:
    """
    Discount in percent, or None when it cannot be derived.

    Derived only when both prices are positive. Rounded to one decimal
    and clamped to 0-100 so a price above list never reads as a
    negative discount.
    """
    if not list_price or not actual_price or list_price <= 0 or actual_price <= 0:
        return None
    discount = (list_price - actual_price) / list_price * 100
    return round(min(100.0, max(0.0, discount)), 1)


def parse_purchase_date(value: Any) -> Optional[date]:
    """
    Lenient ISO date parsing.

    Accepts date/datetime objects and "YYYY-MM-DD" strings (a trailing
    time part is ignored). Blank or unparseable values become None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


RECORD_MODEL_CONFIG = ConfigDict(
    str_strip_whitespace=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


# =============================================================================
# CORE RECORD MODELS
# =============================================================================

class ShoppingRecordData(BaseModel):
    """
    Everything the user fills in on the form.

    A ShoppingRecord is this plus identity (id, created_at).
    Updates always supply a complete ShoppingRecordData; there are no
    partial patches.
    """
    model_config = RECORD_MODEL_CONFIG

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Product name"
    )
    category: Category = Field(
        default=Category.OTHER,
        description="Spending category"
    )
    status: PurchaseStatus = Field(
        default=PurchaseStatus.PLANNED,
        description="Planned or bought"
    )
    list_price: float = Field(
        default=0.0,
        ge=0,
        description="Marked / original price"
    )
    actual_price: float = Field(
        ...,
        ge=0,
        description="Price actually paid (or expected to pay)"
    )
    discount_rate: float = Field(
        default=0.0,
        description="Discount in percent (0-100), derived from the prices"
    )
    purchase_date: Optional[date] = Field(
        default=None,
        description="Date of purchase, meaningful only when bought"
    )
    usage_status: UsageStatus = Field(
        default=UsageStatus.NEW,
        description="Usage state, meaningful only when bought"
    )
    unit_cost_type: UnitCostType = Field(
        default=UnitCostType.PER_ITEM,
        description="How unit_cost should be read"
    )
    unit_cost: float = Field(
        default=0.0,
        ge=0,
        description="Cost per unit"
    )
    link: str = Field(
        default="",
        max_length=2000,
        description="Where it was bought (not validated)"
    )
    notes: str = Field(
        default="",
        max_length=2000,
        description="Free-form notes"
    )

    @field_validator('purchase_date', mode='before')
    @classmethod
    def lenient_purchase_date(cls, v: Any) -> Optional[date]:
        return parse_purchase_date(v)

    @field_validator('category', 'unit_cost_type', mode='before')
    @classmethod
    def map_legacy_values(cls, v: Any, info: ValidationInfo) -> Any:
        return map_legacy_value(info.field_name, v)

    @field_validator('discount_rate')
    @classmethod
    def clamp_discount_rate(cls, v: float) -> float:
        return min(100.0, max(0.0, v))

    @model_validator(mode='after')
    def recompute_discount_rate(self) -> 'ShoppingRecordData':
        """Keep the discount derived whenever both prices are positive."""
        derived = derive_discount_rate(self.list_price, self.actual_price)
        if derived is not None:
            self.discount_rate = derived
        return self

    @property
    def is_bought(self) -> bool:
        return self.status == PurchaseStatus.BOUGHT

    def form_fields(self) -> dict[str, Any]:
        """Only the user-editable fields, keyed by Python name."""
        return self.model_dump(include=set(ShoppingRecordData.model_fields))


class ShoppingRecord(ShoppingRecordData):
    """
    A persisted shopping record.

    CRITICAL: `id` and `created_at` are assigned exactly once, when the
    record is first saved, and carried over unchanged by every update.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Unique record ID"
    )
    created_at: datetime = Field(
        default_factory=_now_utc,
        description="When the record was first saved"
    )

    @field_validator('created_at', mode='before')
    @classmethod
    def epoch_millis_created_at(cls, v: Any) -> Any:
        """Older blobs stored creation time as epoch milliseconds."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return datetime.fromtimestamp(v / 1000, tz=timezone.utc)
        return v

    @classmethod
    def from_data(
        cls,
        data: ShoppingRecordData,
        record_id: str,
        created_at: Optional[datetime] = None,
    ) -> 'ShoppingRecord':
        """Attach identity to form data."""
        return cls(
            **data.form_fields(),
            id=record_id,
            created_at=created_at or _now_utc(),
        )

    def to_storage_dict(self) -> dict[str, Any]:
        """camelCase, JSON-safe dict as written to the blob store."""
        return self.model_dump(mode="json", by_alias=True)


def default_form_data() -> dict[str, Any]:
    """
    Initial values for a new, empty form.

    New items start out planned, so there is no purchase date yet.
    """
    return {
        "name": "",
        "category": Category.OTHER,
        "status": PurchaseStatus.PLANNED,
        "list_price": 0.0,
        "actual_price": 0.0,
        "discount_rate": 0.0,
        "purchase_date": None,
        "usage_status": UsageStatus.NEW,
        "unit_cost_type": UnitCostType.PER_ITEM,
        "unit_cost": 0.0,
        "link": "",
        "notes": "",
    }


# =============================================================================
# AI EXTRACTION MODEL
# =============================================================================

_PARSED_ENUM_FIELDS: dict[str, type[Enum]] = {
    "category": Category,
    "status": PurchaseStatus,
    "usage_status": UsageStatus,
    "unit_cost_type": UnitCostType,
}

_PARSED_NUMBER_FIELDS = ("list_price", "actual_price", "discount_rate", "unit_cost")

# camelCase alias -> field name, for input that may use either
_FIELD_BY_ALIAS = {to_camel(name): name for name in ShoppingRecordData.model_fields}


class ParsedRecord(BaseModel):
    """
    Record fields suggested by the AI model.

    CRITICAL: This is PROPOSED data, NOT a record. It only pre-fills the
    form; nothing is stored until the user saves.

    All fields are optional because the model may miss any of them.
    Values outside the closed sets are dropped instead of rejected.
    """
    model_config = RECORD_MODEL_CONFIG

    name: Optional[str] = Field(default=None, max_length=200)
    category: Optional[Category] = None
    status: Optional[PurchaseStatus] = None
    list_price: Optional[float] = Field(default=None, ge=0)
    actual_price: Optional[float] = Field(default=None, ge=0)
    discount_rate: Optional[float] = None
    purchase_date: Optional[date] = None
    usage_status: Optional[UsageStatus] = None
    unit_cost_type: Optional[UnitCostType] = None
    unit_cost: Optional[float] = Field(default=None, ge=0)
    link: Optional[str] = Field(default=None, max_length=2000)
    notes: Optional[str] = Field(default=None, max_length=2000)

    @model_validator(mode='before')
    @classmethod
    def drop_unusable_values(cls, data: Any) -> Any:
        """Discard values the form could not use anyway."""
        if not isinstance(data, dict):
            return data
        cleaned = {}
        for key, value in data.items():
            name = _FIELD_BY_ALIAS.get(key, key)
            if name in _PARSED_ENUM_FIELDS and value is not None:
                if isinstance(value, Enum):
                    value = value.value
                value = map_legacy_value(name, value)
                allowed = {member.value for member in _PARSED_ENUM_FIELDS[name]}
                if value not in allowed:
                    continue
            if name in _PARSED_NUMBER_FIELDS and value is not None:
                if isinstance(value, bool):
                    continue
                if not isinstance(value, (int, float)):
                    try:
                        value = float(value)
                    except (TypeError, ValueError):
                        continue
                if value < 0:
                    continue
            if name == "purchase_date":
                value = parse_purchase_date(value)
            if isinstance(value, str) and not value.strip():
                continue
            cleaned[name] = value
        return cleaned

    @property
    def is_usable(self) -> bool:
        """The minimum a successful extraction must contain."""
        return bool(self.name) and self.actual_price is not None

    def to_form_defaults(self, today: Optional[date] = None) -> dict[str, Any]:
        """
        Merge the suggestion onto empty form defaults.

        The discount is re-derived from the merged prices so a wrong
        suggested rate never survives when both prices are known.
        A bought suggestion without a date is dated today.
        """
        form = default_form_data()
        for key, value in self.model_dump(exclude_none=True).items():
            form[key] = value
        if form["status"] == PurchaseStatus.BOUGHT and form["purchase_date"] is None:
            form["purchase_date"] = today or date.today()
        derived = derive_discount_rate(form["list_price"], form["actual_price"])
        if derived is not None:
            form["discount_rate"] = derived
        else:
            form["discount_rate"] = min(100.0, max(0.0, form["discount_rate"]))
        return form


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating form input before it is saved.

    Errors block the save; warnings are shown but do not.
    """

    validated_at: datetime = Field(
        default_factory=_now_utc
    )
    is_valid: bool = Field(
        ...,
        description="True when there are no error-level issues"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
