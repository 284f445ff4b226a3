"""Tests for form validation."""

from datetime import date, timedelta

import pytest

from smartshop.models.record import PurchaseStatus, ShoppingRecordData, default_form_data
from smartshop.validation import RecordValidationError, RecordValidator


@pytest.fixture
def validator(app_settings):
    return RecordValidator(app_settings)


def form(**overrides):
    data = default_form_data()
    data.update(name="Kettle", actual_price=35.0)
    data.update(overrides)
    return data


class TestRequiredFields:
    """Stage 1: errors that block a save."""

    def test_valid_form(self, validator):
        result = validator.validate(form())
        assert result.is_valid
        assert not result.has_errors

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_missing_name(self, validator, name):
        result = validator.validate(form(name=name))
        assert not result.is_valid
        assert any(issue.field == "name" for issue in result.issues)

    @pytest.mark.parametrize("price", [None, ""])
    def test_missing_actual_price(self, validator, price):
        result = validator.validate(form(actual_price=price))
        assert not result.is_valid
        assert any(issue.field == "actual_price" for issue in result.issues)

    @pytest.mark.parametrize("field", ["actual_price", "list_price", "unit_cost"])
    def test_negative_prices(self, validator, field):
        result = validator.validate(form(**{field: -1.0}))
        assert not result.is_valid
        assert any(issue.field == field for issue in result.issues)

    def test_schema_errors_reported(self, validator):
        """Test that values the record model rejects become errors."""
        result = validator.validate(form(category="toys"))
        assert not result.is_valid
        assert result.error_count == 1

    def test_build_raises_with_result(self, validator):
        with pytest.raises(RecordValidationError) as exc_info:
            validator.build(form(name=""))
        assert exc_info.value.result.has_errors
        assert "Name is required" in str(exc_info.value)

    def test_build_returns_record_data(self, validator):
        data, result = validator.build(form(list_price=50.0, actual_price=40.0))
        assert isinstance(data, ShoppingRecordData)
        assert data.discount_rate == 20.0
        assert result.is_valid


class TestSanityWarnings:
    """Stage 2: warnings that never block."""

    def test_price_above_list(self, validator):
        result = validator.validate(form(list_price=10.0, actual_price=12.0))
        assert result.is_valid
        assert any("higher than the list price" in w for w in result.warnings)

    def test_zero_price(self, validator):
        result = validator.validate(form(actual_price=0.0))
        assert result.is_valid
        assert any("zero" in w for w in result.warnings)

    def test_unusually_high_price(self, validator):
        result = validator.validate(form(actual_price=5_000_000.0))
        assert result.is_valid
        assert any("unusually high" in w for w in result.warnings)

    def test_bought_without_date(self, validator):
        result = validator.validate(form(status=PurchaseStatus.BOUGHT, purchase_date=None))
        assert result.is_valid
        assert any(issue.field == "purchase_date" for issue in result.issues)

    def test_bought_in_future(self, validator):
        future = date.today() + timedelta(days=30)
        result = validator.validate(form(status=PurchaseStatus.BOUGHT, purchase_date=future))
        assert result.is_valid
        assert any(issue.issue_type == "future_date" for issue in result.issues)

    def test_planned_with_date(self, validator):
        result = validator.validate(form(status=PurchaseStatus.PLANNED, purchase_date=date.today()))
        assert result.is_valid
        assert any("Planned item has a purchase date" in w for w in result.warnings)

    def test_default_planned_form_has_no_warnings(self, validator):
        """Test that saving a new item with the default form warns about nothing."""
        result = validator.validate(form(list_price=40.0))
        assert result.is_valid
        assert result.warnings == []

    def test_clean_bought_record_has_no_warnings(self, validator):
        result = validator.validate(form(
            status=PurchaseStatus.BOUGHT,
            list_price=40.0,
            purchase_date=date.today(),
        ))
        assert result.warnings == []


class TestSummary:
    """Tests for the user-facing summary."""

    def test_all_passed(self, validator):
        result = validator.validate(form(status=PurchaseStatus.PLANNED, purchase_date=None))
        assert validator.get_user_friendly_summary(result) == "All checks passed."

    def test_errors_listed(self, validator):
        result = validator.validate(form(name=""))
        summary = validator.get_user_friendly_summary(result)
        assert "Please fix the following" in summary
        assert "Name is required" in summary
