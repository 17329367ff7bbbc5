"""
Bill Validation

Two entry points, both returning a ValidationResult instead of raising:

DRAFT VALIDATION (owner side, before a bill is shared):
- Structure, types and range limits come from the BillDraft model
- pydantic errors are translated into ValidationIssues, one per problem
- Catches malformed input from forms or pasted receipts

SHARED-BILL VALIDATION (viewer side, after a token is decoded):
- The token decoded, but is the bill usable?
- Owner payment details present, at least one item, unique item ids

Validation NEVER fixes data. Coercion lives in billqr.bill.builder.
"""

from typing import Any, Optional, Union

from pydantic import ValidationError

from billqr.models.bill import (
    SCHEMA_VERSION,
    BillDraft,
    SharedBillPayload,
    ValidationIssue,
    ValidationResult,
)


ROOT_FIELD = "(root)"

# pydantic error type -> issue_type
_ISSUE_TYPES = {
    "missing": "missing",
    "extra_forbidden": "unexpected_field",
    "greater_than_equal": "out_of_range",
    "less_than_equal": "out_of_range",
    "too_short": "out_of_range",
    "too_long": "out_of_range",
    "string_too_short": "invalid_value",
    "string_too_long": "invalid_value",
    "int_type": "invalid_type",
    "string_type": "invalid_type",
    "list_type": "invalid_type",
    "model_type": "invalid_type",
    "model_attributes_type": "invalid_type",
    "dict_type": "invalid_type",
}

_SUGGESTED_FIXES = {
    ("items", "too_short"): "Add the items from the receipt",
}


def _error(field: str, issue_type: str, message: str, suggested_fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
        suggested_fix=suggested_fix,
    )


def field_path(loc: tuple[Union[int, str], ...]) -> str:
    """
    Render a pydantic error location as a path.

    >>> field_path(("items", 0, "qty"))
    'items[0].qty'
    """
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or ROOT_FIELD


def _issue_from_error(error: dict[str, Any]) -> ValidationIssue:
    field = field_path(error["loc"])
    return _error(
        field,
        _ISSUE_TYPES.get(error["type"], "invalid_value"),
        f"{field}: {error['msg']}",
        suggested_fix=_SUGGESTED_FIXES.get((field, error["type"])),
    )


class BillValidator:
    """Validates bill drafts and decoded shared bills."""

    def validate_draft(self, data: Any) -> ValidationResult:
        """
        Strictly check raw bill input (billName, items[{name, qty, unitPrice}], extras).

        All problems are reported at once.
        """
        try:
            BillDraft.model_validate(data)
        except ValidationError as e:
            issues = [_issue_from_error(error) for error in e.errors()]
            return ValidationResult(is_valid=False, issues=issues)

        return ValidationResult(is_valid=True)

    def validate_shared_bill(self, payload: SharedBillPayload) -> ValidationResult:
        """Check that a decoded bill can actually be split and paid."""
        issues = []
        warnings = []

        if payload.schema_version != SCHEMA_VERSION:
            issues.append(_error(
                "schema_version", "unsupported", f"schema_version must be {SCHEMA_VERSION}",
            ))

        if not payload.bill_name.strip():
            issues.append(_error("bill_name", "missing", "bill_name must be a non-empty string"))

        if not payload.owner.bank.strip():
            issues.append(_error("owner.bank", "missing", "owner.bank is required"))
        if not "".join(payload.owner.account_number.split()):
            issues.append(_error(
                "owner.account_number", "missing", "owner.account_number is required",
            ))

        if not payload.items:
            issues.append(_error("items", "missing", "items must be a non-empty list"))

        seen = set()
        for idx, item in enumerate(payload.items):
            if not item.name.strip():
                issues.append(_error(f"items[{idx}].name", "missing", f"items[{idx}].name is required"))
            if item.id in seen:
                issues.append(_error(
                    f"items[{idx}].id", "duplicate",
                    f"items[{idx}].id '{item.id}' is used more than once",
                    suggested_fix="Assignments for this id would apply to every item sharing it",
                ))
            seen.add(item.id)
            if item.line_total == 0:
                issues.append(ValidationIssue(
                    field=f"items[{idx}].unit_price",
                    issue_type="suspicious_value",
                    message=f"Item '{item.name}' costs nothing",
                    severity="warning",
                ))

        for issue in issues:
            if issue.severity == "warning":
                warnings.append(issue.message)

        is_valid = not any(issue.severity == "error" for issue in issues)
        return ValidationResult(is_valid=is_valid, issues=issues, warnings=warnings)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Plain-text summary suitable for an inline message."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("Some bill details are invalid:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     Hint: {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please double-check:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
