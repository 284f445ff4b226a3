"""
Tests for Smart Shop Tracker

Test strategy:
1. Unit tests for individual components (models, validators, stats)
2. Integration tests for flows (with a fake AI collaborator)
3. No real API calls in tests (use fakes and mocks)
"""

import pytest
from datetime import date, datetime, timezone

from smartshop.models.record import (
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
from smartshop.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)


class TestDiscountRate:
    """Tests for the derived discount rate."""

    def test_derived_from_both_prices(self):
        """Test the usual percentage calculation."""
        assert derive_discount_rate(200.0, 150.0) == 25.0

    def test_rounded_to_one_decimal(self):
        """Test rounding of repeating decimals."""
        assert derive_discount_rate(3.0, 2.0) == 33.3

    def test_not_derived_without_list_price(self):
        """Test that a zero list price gives no derived value."""
        assert derive_discount_rate(0.0, 50.0) is None

    def test_not_derived_without_actual_price(self):
        """Test that a zero actual price gives no derived value."""
        assert derive_discount_rate(100.0, 0.0) is None

    def test_clamped_when_paying_above_list(self):
        """Test that paying above list never yields a negative discount."""
        assert derive_discount_rate(100.0, 120.0) == 0.0


class TestShoppingRecordData:
    """Tests for form data."""

    def test_minimal_record_uses_defaults(self):
        """Test that only name and actual price are required."""
        data = ShoppingRecordData(name="Kettle", actual_price=35)
        assert data.category == Category.OTHER
        assert data.status == PurchaseStatus.PLANNED
        assert data.usage_status == UsageStatus.NEW
        assert data.unit_cost_type == UnitCostType.PER_ITEM
        assert data.list_price == 0.0
        assert data.discount_rate == 0.0
        assert data.purchase_date is None

    def test_discount_recomputed_from_prices(self):
        """Test that a stale discount is replaced by the derived one."""
        data = ShoppingRecordData(
            name="Shoes",
            list_price=120,
            actual_price=90,
            discount_rate=5,
        )
        assert data.discount_rate == 25.0

    def test_discount_kept_when_not_derivable(self):
        """Test that a given discount survives when list price is unknown."""
        data = ShoppingRecordData(name="Shoes", actual_price=90, discount_rate=10)
        assert data.discount_rate == 10.0

    def test_discount_clamped_to_range(self):
        """Test that out-of-range discounts are clamped."""
        assert ShoppingRecordData(name="A", actual_price=1, discount_rate=150).discount_rate == 100.0
        assert ShoppingRecordData(name="A", actual_price=1, discount_rate=-5).discount_rate == 0.0

    def test_name_whitespace_stripped(self):
        """Test that whitespace is stripped from the name."""
        assert ShoppingRecordData(name="  Kettle  ", actual_price=1).name == "Kettle"

    def test_blank_name_rejected(self):
        """Test that a blank name is rejected."""
        with pytest.raises(ValueError):
            ShoppingRecordData(name="   ", actual_price=1)

    def test_negative_price_rejected(self):
        """Test that negative prices are rejected."""
        with pytest.raises(ValueError):
            ShoppingRecordData(name="A", actual_price=-1)

    def test_unknown_category_rejected(self):
        """Test that categories outside the closed set are rejected."""
        with pytest.raises(ValueError):
            ShoppingRecordData(name="A", actual_price=1, category="toys")

    def test_camel_case_aliases_accepted(self):
        """Test that persisted camelCase keys populate the fields."""
        data = ShoppingRecordData.model_validate({
            "name": "Tea",
            "actualPrice": 8,
            "listPrice": 10,
            "purchaseDate": "2024-03-05",
            "usageStatus": "in_use",
            "unitCostType": "per_use",
        })
        assert data.actual_price == 8.0
        assert data.purchase_date == date(2024, 3, 5)
        assert data.usage_status == UsageStatus.IN_USE
        assert data.discount_rate == 20.0

    def test_legacy_per_gram_mapped(self):
        """Test that the old per_gram unit type still loads."""
        data = ShoppingRecordData(name="Coffee", actual_price=12, unit_cost_type="per_gram")
        assert data.unit_cost_type == UnitCostType.PER_UNIT_MASS

    @pytest.mark.parametrize("label,category", [
        ("数码/电器", Category.ELECTRONICS),
        ("服饰/鞋包", Category.CLOTHING),
        ("美妆/护肤", Category.BEAUTY),
        ("食品/饮料", Category.FOOD),
        ("家居/日用", Category.HOME),
        ("图书/文具", Category.BOOKS),
        ("运动/户外", Category.SPORTS),
        ("虚拟/服务", Category.SERVICES),
        ("其他", Category.OTHER),
    ])
    def test_legacy_category_labels_mapped(self, label, category):
        """Test that categories stored as Chinese labels still load."""
        data = ShoppingRecordData(name="A", actual_price=1, category=label)
        assert data.category == category

    def test_unparseable_date_becomes_none(self):
        """Test lenient purchase date parsing."""
        data = ShoppingRecordData(name="A", actual_price=1, purchase_date="last week")
        assert data.purchase_date is None

    def test_form_fields_excludes_identity(self):
        """Test that form fields never carry id or created_at."""
        record = ShoppingRecord(id="abc", name="A", actual_price=1)
        fields = record.form_fields()
        assert "id" not in fields
        assert "created_at" not in fields
        assert fields["name"] == "A"


class TestParsePurchaseDate:
    """Tests for lenient date parsing."""

    def test_iso_string(self):
        assert parse_purchase_date("2024-02-29") == date(2024, 2, 29)

    def test_datetime_string_truncated(self):
        assert parse_purchase_date("2024-02-29T10:30:00Z") == date(2024, 2, 29)

    def test_blank_and_invalid(self):
        assert parse_purchase_date("") is None
        assert parse_purchase_date("2024-13-01") is None
        assert parse_purchase_date(42) is None

    def test_datetime_object(self):
        assert parse_purchase_date(datetime(2024, 5, 1, 8, 0)) == date(2024, 5, 1)


class TestShoppingRecord:
    """Tests for persisted records."""

    def test_storage_dict_is_camel_case(self):
        """Test the persisted shape uses camelCase keys."""
        record = ShoppingRecord(
            id="abc",
            name="Tea",
            actual_price=8,
            purchase_date=date(2024, 3, 5),
        )
        stored = record.to_storage_dict()
        assert stored["actualPrice"] == 8.0
        assert stored["purchaseDate"] == "2024-03-05"
        assert "createdAt" in stored
        assert "actual_price" not in stored

    def test_storage_dict_loads_back(self):
        """Test that a stored record validates back to an equal record."""
        record = ShoppingRecord(id="abc", name="Tea", actual_price=8, list_price=10)
        assert ShoppingRecord.model_validate(record.to_storage_dict()) == record

    def test_epoch_millis_created_at(self):
        """Test that numeric creation times are read as epoch milliseconds."""
        record = ShoppingRecord.model_validate({
            "id": "abc",
            "name": "Tea",
            "actualPrice": 8,
            "createdAt": 1700000000000,
        })
        assert record.created_at == datetime.fromtimestamp(1700000000, tz=timezone.utc)

    def test_from_data_keeps_identity(self):
        """Test that identity is attached as given."""
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        data = ShoppingRecordData(name="Tea", actual_price=8)
        record = ShoppingRecord.from_data(data, "xyz", created)
        assert record.id == "xyz"
        assert record.created_at == created
        assert record.name == "Tea"

    def test_empty_id_rejected(self):
        """Test that a record must have an id."""
        with pytest.raises(ValueError):
            ShoppingRecord(id="", name="Tea", actual_price=8)


class TestParsedRecord:
    """Tests for AI-suggested fields."""

    def test_invalid_values_dropped(self):
        """Test that unusable values are dropped, not rejected."""
        parsed = ParsedRecord.model_validate({
            "name": "Lamp",
            "actualPrice": "25.5",
            "listPrice": -3,
            "category": "gadgets",
            "status": "bought",
            "purchaseDate": "",
            "link": "  ",
        })
        assert parsed.name == "Lamp"
        assert parsed.actual_price == 25.5
        assert parsed.list_price is None
        assert parsed.category is None
        assert parsed.status == PurchaseStatus.BOUGHT
        assert parsed.purchase_date is None
        assert parsed.link is None

    def test_usable_requires_name_and_price(self):
        """Test the minimum of a successful extraction."""
        assert ParsedRecord(name="Lamp", actual_price=0).is_usable
        assert not ParsedRecord(name="Lamp").is_usable
        assert not ParsedRecord(actual_price=10).is_usable

    def test_form_defaults_merge(self):
        """Test merging a suggestion onto empty form defaults."""
        parsed = ParsedRecord(
            name="Lamp",
            actual_price=30,
            list_price=40,
            discount_rate=99,
            category=Category.HOME,
        )
        form = parsed.to_form_defaults(today=date(2024, 6, 1))
        assert form["name"] == "Lamp"
        assert form["category"] == Category.HOME
        assert form["discount_rate"] == 25.0
        assert form["status"] == PurchaseStatus.PLANNED
        assert form["purchase_date"] is None

    def test_bought_suggestion_dated_today(self):
        """Test that a bought suggestion without a date gets today."""
        parsed = ParsedRecord(name="Lamp", actual_price=30, status=PurchaseStatus.BOUGHT)
        form = parsed.to_form_defaults(today=date(2024, 6, 1))
        assert form["purchase_date"] == date(2024, 6, 1)

    def test_suggested_date_kept(self):
        """Test that a suggested date is never replaced by today."""
        parsed = ParsedRecord(
            name="Lamp",
            actual_price=30,
            status=PurchaseStatus.BOUGHT,
            purchase_date=date(2024, 5, 20),
        )
        form = parsed.to_form_defaults(today=date(2024, 6, 1))
        assert form["purchase_date"] == date(2024, 5, 20)

    def test_legacy_category_label_kept(self):
        """Test that a suggested Chinese category label maps to the enum."""
        parsed = ParsedRecord.model_validate({"name": "Lamp", "category": "家居/日用"})
        assert parsed.category == Category.HOME

    def test_default_form_data(self):
        """Test the empty form: a planned item with no purchase date."""
        form = default_form_data()
        assert form["name"] == ""
        assert form["status"] == PurchaseStatus.PLANNED
        assert form["purchase_date"] is None
        assert form["category"] == Category.OTHER


class TestValidationModels:
    """Tests for validation result models."""

    def test_validation_result_counts_errors(self):
        """Test error counting."""
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(field="name", issue_type="missing", message="m", severity="error"),
                ValidationIssue(field="x", issue_type="s", message="w", severity="warning"),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1

    def test_invalid_severity_rejected(self):
        """Test that severity is a closed set."""
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


class TestActivityModels:
    """Tests for activity event models."""

    def test_record_saved_event(self):
        """Test the record saved builder."""
        event = ActivityEventBuilder.record_saved(
            record_id="abc",
            name="Tea",
            created=True,
            collection_size=3,
        )
        assert event.event_type == ActivityEventType.RECORD_CREATED
        assert event.severity == ActivitySeverity.INFO

    def test_record_updated_event(self):
        """Test that an update uses its own event type."""
        event = ActivityEventBuilder.record_saved(
            record_id="abc",
            name="Tea",
            created=False,
            collection_size=3,
        )
        assert event.event_type == ActivityEventType.RECORD_UPDATED

    def test_log_dict_is_flat_json(self):
        """Test conversion to a log line."""
        event = ActivityEventBuilder.store_load_failed(key="k", error_message="boom")
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == ActivityEventType.STORE_LOAD_FAILED.value
        assert isinstance(event, ActivityEvent)
