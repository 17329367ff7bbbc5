"""
Shared Bill Models

These models define the bill that travels inside a URL token, the split
configuration each viewer builds locally, the owner-side draft a bill is
built from, and the validation report shape.

A SharedBillPayload is created once by the bill owner, serialized into a
URL token, and never mutated afterwards. Viewers keep their own
SplitConfiguration instead of editing the bill.
"""

from enum import Enum
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator


SCHEMA_VERSION = 1


# =============================================================================
# ENUMS
# =============================================================================

class SplitMode(str, Enum):
    """How item costs are assigned to payers."""
    INDIVIDUAL = "individual"  # each item goes to its assigned payers
    EVEN = "even"              # items subtotal split across everyone


# =============================================================================
# SHARED BILL
# =============================================================================

class BillOwner(BaseModel):
    """Who gets paid: the bank text and account the owner entered."""

    bank: str = Field(
        ...,
        description="Free-text bank query, resolved when payloads are built"
    )
    account_number: str = Field(
        ...,
        description="Owner account number"
    )


class BillItem(BaseModel):
    """One line of a shared bill. Amounts are integer VND."""

    id: str = Field(
        ...,
        min_length=1,
        description="Unique item id, referenced by split assignments"
    )
    name: str
    quantity: int = Field(
        ...,
        ge=1,
        description="Item quantity"
    )
    unit_price: int = Field(
        ...,
        ge=0,
        description="Price per unit in VND"
    )

    @property
    def line_total(self) -> int:
        return self.quantity * self.unit_price


class BillExtras(BaseModel):
    """Bill-level adjustments. Absent fields count as zero."""

    tax: Optional[int] = Field(default=None, ge=0)
    tip: Optional[int] = Field(default=None, ge=0)
    discount: Optional[int] = Field(default=None, ge=0)

    @property
    def is_empty(self) -> bool:
        return self.tax is None and self.tip is None and self.discount is None


class SharedBillPayload(BaseModel):
    """
    A bill shared through a URL token.

    An extras object with no fields set is normalized to no extras at all,
    matching what the token decoder reconstructs.
    """
    model_config = ConfigDict(frozen=True)

    schema_version: int = Field(
        default=SCHEMA_VERSION,
        description="Token schema version"
    )
    bill_name: str
    country_code: Literal["VN"] = "VN"
    currency_code: Literal["704"] = "704"
    owner: BillOwner
    items: list[BillItem] = Field(default_factory=list)
    extras: Optional[BillExtras] = None

    @field_validator("extras")
    @classmethod
    def drop_empty_extras(cls, v: Optional[BillExtras]) -> Optional[BillExtras]:
        if v is not None and v.is_empty:
            return None
        return v


# =============================================================================
# SPLIT CONFIGURATION
# =============================================================================

class SplitConfiguration(BaseModel):
    """
    A viewer's local split setup.

    Payer order matters: remainders and rounding corrections go to the
    earliest payers.
    """

    mode: SplitMode = SplitMode.INDIVIDUAL
    payers: list[str] = Field(default_factory=list)
    assignments: Optional[dict[str, list[str]]] = Field(
        default=None,
        description="item id -> payer names (individual mode only)"
    )


# =============================================================================
# OWNER-SIDE DRAFT
# =============================================================================
#
# Field names on the wire are camelCase (billName, qty, unitPrice), the shape
# bill entry forms and receipt extraction produce. Types are strict: "2" is
# not a quantity and True is not a price.

MAX_BILL_NAME_LENGTH = 80
MAX_ITEMS = 200
MAX_ITEM_NAME_LENGTH = 120
MAX_QUANTITY = 999
MAX_AMOUNT = 100_000_000

DraftAmount = Annotated[StrictInt, Field(ge=0, le=MAX_AMOUNT)]


class DraftItem(BaseModel):
    """An item before it is given an id."""
    model_config = ConfigDict(extra="forbid")

    name: StrictStr = Field(
        ...,
        min_length=1,
        max_length=MAX_ITEM_NAME_LENGTH
    )
    quantity: StrictInt = Field(
        ...,
        alias="qty",
        ge=1,
        le=MAX_QUANTITY
    )
    unit_price: DraftAmount = Field(..., alias="unitPrice")


class DraftExtras(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tax: Optional[DraftAmount] = None
    tip: Optional[DraftAmount] = None
    discount: Optional[DraftAmount] = None


class BillDraft(BaseModel):
    """Owner input, ready to become a SharedBillPayload."""
    model_config = ConfigDict(extra="forbid")

    bill_name: StrictStr = Field(
        ...,
        alias="billName",
        min_length=1,
        max_length=MAX_BILL_NAME_LENGTH
    )
    items: list[DraftItem] = Field(
        ...,
        min_length=1,
        max_length=MAX_ITEMS
    )
    extras: Optional[DraftExtras] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue (e.g. 'items[0].quantity')"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g. 'missing', 'out_of_range', 'duplicate')"
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
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Outcome of validating a bill draft or a decoded shared bill."""

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "error"]
