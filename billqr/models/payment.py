"""
Payment Payload Models

Inputs and outputs of the EMV payload builder, plus the TLV node shape
returned by the decoder.

IMPORTANT: QrPaymentRequest is permissive. Account number
checks happen in the builder (raising InvalidAccountError), and the amount
is written into the payload exactly as str() renders it.
"""

from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from billqr.models.bank import BankRecord


DEFAULT_COUNTRY_CODE = "VN"


class TlvNode(BaseModel):
    """A single decoded tag-length-value entry."""
    model_config = ConfigDict(frozen=True)

    tag: str
    length: int = Field(ge=0, description="Value length in grapheme clusters")
    value: str
    start: int = Field(ge=0, description="Offset of the tag in the decoded text")
    end: int = Field(ge=0, description="Offset just past the value")


class QrPaymentRequest(BaseModel):
    """
    A personal transfer to encode as a payment QR.

    country_code is used verbatim: it is NOT uppercased.
    """

    bank_query: str = Field(
        ...,
        description="Free-text bank name, short name or code"
    )
    account_number: str = Field(
        ...,
        description="Beneficiary account number (digits)"
    )
    amount: Union[int, Decimal, float, str] = Field(
        ...,
        description="Amount in VND, stringified as-is"
    )
    note: Optional[str] = Field(
        default=None,
        description="Transfer purpose shown by the banking app"
    )
    country_code: str = Field(
        default=DEFAULT_COUNTRY_CODE,
        description="Country code written to tag 58"
    )


class QrPaymentResult(BaseModel):
    """Generated payload and the bank it was resolved to."""

    payload: str
    bank: BankRecord


class ParsedPayment(BaseModel):
    """Fields read back out of a generated payment payload."""

    payload_format: str
    initiation_method: str
    guid: str
    bank_identifier: str
    account_number: str
    service_code: str
    currency_code: str
    amount: Optional[str] = None
    country_code: Optional[str] = None
    note: Optional[str] = None
    checksum: str
    checksum_valid: bool


class PayerPayment(BaseModel):
    """What one payer owes the bill owner, ready to render."""

    payer: str
    amount: int
    payload: str
    bank: BankRecord
