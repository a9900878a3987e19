"""
Two-Stage Validation for Transaction Input

The presentation layer already refuses to submit an empty form, but
the core re-checks everything before any store is touched.

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (description, amount)
- Amount parses as a finite decimal
- Type is income/expense, date is ISO-8601

STAGE 2 - SEMANTIC VALIDATION:
- Amount must be strictly positive, below MAX_AMOUNT, with at most
  two decimal places (so it survives the JSON number encoding)
- Dates far in the future are flagged (warning only)

IMPORTANT: Validation NEVER silently fixes values.
Only omitted optional fields get defaults (type=expense, date=today),
matching what the entry form pre-fills.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

import pydantic

from fintrack.config import AppSettings, get_settings
from fintrack.models.transaction import (
    AMOUNT_DECIMAL_PLACES,
    MAX_AMOUNT,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)


REQUIRED_FIELDS_MESSAGE = "Description and amount are required"


class ValidationError(ValueError):
    """
    Transaction input was rejected before reaching any store.

    This is the only error the coordinator lets through to the UI.
    """

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        self.issues = issues or []
        super().__init__(message)


def issues_from_pydantic(exc: pydantic.ValidationError) -> list[ValidationIssue]:
    """Translate a pydantic error into our issue list."""
    issues = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "transaction"
        issue_type = error.get("type", "invalid_value")
        if issue_type in ("missing", "string_too_short"):
            issue_type = "missing"
        issues.append(ValidationIssue(
            field=field,
            issue_type=issue_type,
            message=error.get("msg", "Invalid value"),
            severity="error",
        ))
    return issues


def summarize_issues(issues: list[ValidationIssue]) -> str:
    """
    Build the single message shown to the user.

    A missing description or amount gets the short form message,
    anything else lists every error.
    """
    errors = [issue for issue in issues if issue.severity == "error"]
    if any(
        issue.issue_type == "missing" and issue.field in ("description", "amount")
        for issue in errors
    ):
        return REQUIRED_FIELDS_MESSAGE
    if not errors:
        return ""
    return "; ".join(issue.message for issue in errors)


class TransactionValidator:
    """
    Validates raw transaction fields through a two-stage pipeline.

    Fields usually arrive as strings straight from a form, so
    every stage works on loosely typed input.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _parse_amount(self, value: Any) -> Optional[Decimal]:
        """Parse an amount, returning None if it is not a finite number."""
        if isinstance(value, bool):
            return None
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
        if not amount.is_finite():
            return None
        return amount

    def _parse_date(self, value: Any) -> Optional[date]:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                return None
        return None

    def _validate_schema(
        self,
        fields: Mapping[str, Any],
    ) -> tuple[bool, list[ValidationIssue], dict[str, Any]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues, parsed_values)
        """
        issues = []
        parsed: dict[str, Any] = {}

        description = fields.get("description")
        if description is None or not str(description).strip():
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
            ))
        else:
            parsed["description"] = str(description).strip()

        raw_amount = fields.get("amount")
        if raw_amount is None or (isinstance(raw_amount, str) and not raw_amount.strip()):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        else:
            amount = self._parse_amount(raw_amount)
            if amount is None:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message=f"Amount is not a number: {raw_amount!r}",
                    severity="error",
                ))
            else:
                parsed["amount"] = amount

        raw_type = fields.get("type") or TransactionType.EXPENSE.value
        try:
            parsed["type"] = TransactionType(
                raw_type.value if isinstance(raw_type, TransactionType) else str(raw_type).strip().lower()
            )
        except ValueError:
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message=f"Type must be 'income' or 'expense', got {raw_type!r}",
                severity="error",
            ))

        raw_date = fields.get("date")
        if raw_date is None or raw_date == "":
            parsed["date"] = date.today()
        else:
            parsed_date = self._parse_date(raw_date)
            if parsed_date is None:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="invalid_format",
                    message=f"Date must be YYYY-MM-DD, got {raw_date!r}",
                    severity="error",
                ))
            else:
                parsed["date"] = parsed_date

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues, parsed

    def _validate_semantic(
        self,
        parsed: dict[str, Any],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Only runs on values that passed stage 1.
        """
        issues = []

        if parsed["amount"] <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))
        elif parsed["amount"] >= MAX_AMOUNT:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="out_of_range",
                message=f"Amount must be less than {MAX_AMOUNT:,}",
                severity="error",
            ))
        elif parsed["amount"].normalize().as_tuple().exponent < -AMOUNT_DECIMAL_PLACES:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=f"Amount can have at most {AMOUNT_DECIMAL_PLACES} decimal places",
                severity="error",
            ))

        tolerance = timedelta(days=self._settings.future_date_tolerance_days)
        if parsed["date"] > date.today() + tolerance:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date {parsed['date'].isoformat()} is in the future",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, fields: Mapping[str, Any]) -> ValidationResult:
        """Run both stages and build the draft if everything passed."""
        schema_valid, issues, parsed = self._validate_schema(fields)
        if not schema_valid:
            return ValidationResult(
                schema_valid=False,
                semantic_valid=False,
                issues=issues,
            )

        semantic_valid, semantic_issues = self._validate_semantic(parsed)
        issues.extend(semantic_issues)
        if not semantic_valid:
            return ValidationResult(
                schema_valid=True,
                semantic_valid=False,
                issues=issues,
            )

        try:
            draft = TransactionDraft(**parsed)
        except pydantic.ValidationError as e:
            # e.g. description longer than the model allows
            return ValidationResult(
                schema_valid=True,
                semantic_valid=False,
                issues=issues + issues_from_pydantic(e),
            )

        return ValidationResult(
            schema_valid=True,
            semantic_valid=True,
            issues=issues,
            draft=draft,
        )

    def validate_or_raise(self, fields: Mapping[str, Any]) -> TransactionDraft:
        """
        Validate and return the draft.

        Raises:
            ValidationError: with a user-facing message if any stage failed
        """
        result = self.validate(fields)
        if not result.is_valid or result.draft is None:
            raise ValidationError(summarize_issues(result.issues), result.issues)
        return result.draft
