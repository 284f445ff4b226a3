"""
Form Validation

DESIGN DECISION: Validation happens in two stages:

STAGE 1 - REQUIRED FIELDS:
- name must be present and not blank
- actual price must be present and not negative
- everything else must fit the record schema
This is the only stage that can block a save.

STAGE 2 - SANITY CHECKS:
- price paid above the list price
- bought without a purchase date, or dated in the future
- planned records carrying a purchase date
- unusually high prices
These are warnings shown to the user; they never block.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; the form keeps what the user typed.
"""

from datetime import date, timedelta
from typing import Any, Optional, Union

from pydantic import ValidationError

from smartshop.config import get_settings
from smartshop.config.settings import AppSettings
from smartshop.models.record import (
    ShoppingRecordData,
    ValidationIssue,
    ValidationResult,
)


FormInput = Union[ShoppingRecordData, dict[str, Any]]


class RecordValidationError(Exception):
    """Form input has blocking errors."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(messages or "Record is not valid")


class RecordValidator:
    """
    Validates form input before it becomes a record.

    Stage 1 runs on the raw form dict, stage 2 on the parsed record data.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_required(
        self,
        form: dict[str, Any],
    ) -> list[ValidationIssue]:
        """Stage 1: presence of the required fields."""
        issues = []

        name = form.get("name")
        if name is None or not str(name).strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Name is required",
                severity="error",
                suggested_fix="Enter what you bought or plan to buy",
            ))

        actual_price = form.get("actual_price")
        if actual_price is None or actual_price == "":
            issues.append(ValidationIssue(
                field="actual_price",
                issue_type="missing",
                message="Actual price is required",
                severity="error",
                suggested_fix="Enter the price you paid or expect to pay",
            ))

        for field in ("actual_price", "list_price", "unit_cost"):
            value = form.get(field)
            if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="invalid_value",
                    message=f"{field.replace('_', ' ').capitalize()} cannot be negative",
                    severity="error",
                ))

        return issues

    def _schema_issues(self, error: ValidationError) -> list[ValidationIssue]:
        """Convert remaining schema errors into issues."""
        issues = []
        for err in error.errors():
            field = ".".join(str(part) for part in err.get("loc", ())) or "record"
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field}: {err.get('msg', 'invalid value')}",
                severity="error",
            ))
        return issues

    def _validate_semantic(
        self,
        data: ShoppingRecordData,
    ) -> list[ValidationIssue]:
        """Stage 2: non-blocking sanity checks."""
        issues = []
        today = date.today()

        if data.list_price and data.actual_price > data.list_price:
            issues.append(ValidationIssue(
                field="actual_price",
                issue_type="suspicious_value",
                message="Actual price is higher than the list price",
                severity="warning",
                suggested_fix="Check whether the two prices were swapped",
            ))

        if data.actual_price == 0:
            issues.append(ValidationIssue(
                field="actual_price",
                issue_type="suspicious_value",
                message="Actual price is zero",
                severity="warning",
            ))

        if data.actual_price > self._settings.max_reasonable_price:
            issues.append(ValidationIssue(
                field="actual_price",
                issue_type="suspicious_value",
                message=f"Price ({data.actual_price:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if data.is_bought and data.purchase_date is None:
            issues.append(ValidationIssue(
                field="purchase_date",
                issue_type="missing",
                message="Bought without a purchase date; it will count under 'unknown' month",
                severity="warning",
                suggested_fix="Add the date you bought it",
            ))

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if data.is_bought and data.purchase_date and data.purchase_date > max_future_date:
            issues.append(ValidationIssue(
                field="purchase_date",
                issue_type="future_date",
                message=f"Purchase date ({data.purchase_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        if not data.is_bought and data.purchase_date is not None:
            issues.append(ValidationIssue(
                field="purchase_date",
                issue_type="suspicious_value",
                message="Planned item has a purchase date",
                severity="warning",
                suggested_fix="Mark it as bought, or clear the date",
            ))

        return issues

    def validate(self, form: FormInput) -> ValidationResult:
        """Run both stages and collect every issue."""
        result, _ = self._run(form)
        return result

    def build(self, form: FormInput) -> tuple[ShoppingRecordData, ValidationResult]:
        """
        Validate and convert form input into record data.

        Raises:
            RecordValidationError: If there are blocking errors
        """
        result, data = self._run(form)
        if data is None or result.has_errors:
            raise RecordValidationError(result)
        return data, result

    def _run(
        self,
        form: FormInput,
    ) -> tuple[ValidationResult, Optional[ShoppingRecordData]]:
        if isinstance(form, ShoppingRecordData):
            data: Optional[ShoppingRecordData] = form
            issues: list[ValidationIssue] = []
        else:
            issues = self._validate_required(form)
            data = None
            if not issues:
                try:
                    data = ShoppingRecordData.model_validate(form)
                except ValidationError as e:
                    issues.extend(self._schema_issues(e))

        if data is not None:
            issues.extend(self._validate_semantic(data))

        has_errors = any(issue.severity == "error" for issue in issues)
        return ValidationResult(
            is_valid=not has_errors,
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        ), data

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Summary text for the form."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("Please fix the following before saving:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please double-check:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
