"""
Data Models Package

All pydantic models used by billqr. Data crossing the package boundary
conforms to these schemas.
"""

from billqr.models.bank import BankRecord
from billqr.models.bill import (
    SCHEMA_VERSION,
    BillDraft,
    BillExtras,
    BillItem,
    BillOwner,
    DraftExtras,
    DraftItem,
    SharedBillPayload,
    SplitConfiguration,
    SplitMode,
    ValidationIssue,
    ValidationResult,
)
from billqr.models.payment import (
    DEFAULT_COUNTRY_CODE,
    ParsedPayment,
    PayerPayment,
    QrPaymentRequest,
    QrPaymentResult,
    TlvNode,
)

__all__ = [
    # Bank models
    "BankRecord",
    # Bill models
    "SCHEMA_VERSION",
    "BillDraft",
    "BillExtras",
    "BillItem",
    "BillOwner",
    "DraftExtras",
    "DraftItem",
    "SharedBillPayload",
    "SplitConfiguration",
    "SplitMode",
    "ValidationIssue",
    "ValidationResult",
    # Payment models
    "DEFAULT_COUNTRY_CODE",
    "ParsedPayment",
    "PayerPayment",
    "QrPaymentRequest",
    "QrPaymentResult",
    "TlvNode",
]
