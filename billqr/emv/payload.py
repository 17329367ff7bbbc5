"""
NAPAS / EMVCo Payment Payload Builder

Builds the Merchant Presented Mode string for a personal transfer
(IBFT to account). The layout is fixed and must match what Vietnamese
banking apps accept:

    00 = "01"                 payload format indicator
    01 = "12"                 point of initiation, always dynamic
    38 = merchant account     00 = GUID A000000727
                              01 = { 00 = bank BIN, 01 = account, 02 = QRIBFTTA }
    53 = "704"                currency, always VND
    54 = amount               str(amount), no formatting or rounding
    58 = country code         as supplied, NOT uppercased
    62 = { 08 = note }        ALWAYS present, "0800" when there is no note
    63 = checksum             CRC over everything before it, including "6304"

TLV lengths count grapheme clusters (see billqr.emv.tlv).
"""

import re
from typing import Sequence

from billqr.emv import tlv
from billqr.emv.banks import BANKS, resolve_bank
from billqr.emv.crc import checksum
from billqr.errors import InvalidAccountError, TlvError
from billqr.logger import get_logger
from billqr.models.bank import BankRecord
from billqr.models.payment import ParsedPayment, QrPaymentRequest, QrPaymentResult


logger = get_logger(__name__)


PAYLOAD_FORMAT_INDICATOR = "01"
POINT_OF_INITIATION_DYNAMIC = "12"
NAPAS_GUID = "A000000727"
SERVICE_CODE_TO_ACCOUNT = "QRIBFTTA"
CURRENCY_VND = "704"
CHECKSUM_HEADER = "6304"

_BANK_IDENTIFIER = re.compile(r"[0-9]{6}")
_ACCOUNT_NUMBER = re.compile(r"[0-9]+")


def build_merchant_account(bank_identifier: str, account_number: str) -> str:
    """
    Build the value of top-level tag 38.

    Raises:
        InvalidAccountError: identifier is not 6 digits, or the trimmed
            account number is empty or not all digits
    """
    if not _BANK_IDENTIFIER.fullmatch(bank_identifier):
        raise InvalidAccountError(
            f'Bank identifier must be 6 digits (e.g. "970436"). Got: {bank_identifier}'
        )
    account = account_number.strip()
    if not _ACCOUNT_NUMBER.fullmatch(account):
        raise InvalidAccountError(f"Account number must be numeric. Got: {account_number}")

    beneficiary = (
        tlv.encode("00", bank_identifier)
        + tlv.encode("01", account)
        + tlv.encode("02", SERVICE_CODE_TO_ACCOUNT)
    )
    return tlv.encode("00", NAPAS_GUID) + tlv.encode("01", beneficiary)


def build_payload(
    request: QrPaymentRequest,
    banks: Sequence[BankRecord] = BANKS,
) -> QrPaymentResult:
    """
    Build the payment payload for a transfer request.

    Raises:
        UnknownBankError: bank_query matches no bank
        InvalidAccountError: malformed account number
    """
    bank = resolve_bank(request.bank_query, banks)
    merchant_account = build_merchant_account(bank.identifier, request.account_number)

    note = request.note if request.note is not None else ""

    body = "".join([
        tlv.encode("00", PAYLOAD_FORMAT_INDICATOR),
        tlv.encode("01", POINT_OF_INITIATION_DYNAMIC),
        tlv.encode("38", merchant_account),
        tlv.encode("53", CURRENCY_VND),
        tlv.encode("54", str(request.amount)),
        tlv.encode("58", request.country_code),
        tlv.encode("62", tlv.encode("08", note)),
    ])

    unsigned = body + CHECKSUM_HEADER
    payload = unsigned + checksum(unsigned)

    logger.debug(
        "emv_payload_built",
        bank=bank.code,
        amount=str(request.amount),
        length=len(payload),
    )
    return QrPaymentResult(payload=payload, bank=bank)


def verify_checksum(payload: str) -> bool:
    """True when the trailing 4 hex digits match the CRC of everything before them."""
    if len(payload) < 8 or payload[-8:-4] != CHECKSUM_HEADER:
        return False
    return payload[-4:].lower() == checksum(payload[:-4])


def parse_payload(payload: str) -> ParsedPayment:
    """
    Read a generated payment payload back into its fields.

    The checksum is reported rather than enforced: check `checksum_valid`.

    Raises:
        TlvError: the payload is not well-formed TLV, or a required tag
            is missing
    """
    top = tlv.decode(payload)

    checksum_node = tlv.find_one(top, "63")
    if checksum_node is not top[-1]:
        raise TlvError("Checksum tag 63 must be the last entry")

    merchant = tlv.decode(tlv.find_one(top, "38").value)
    beneficiary = tlv.decode(tlv.find_one(merchant, "01").value)

    amount = tlv.find_optional(top, "54")
    country = tlv.find_optional(top, "58")
    additional = tlv.find_optional(top, "62")
    note = None
    if additional is not None:
        note_node = tlv.find_optional(tlv.decode(additional.value), "08")
        note = note_node.value if note_node is not None else None

    return ParsedPayment(
        payload_format=tlv.find_one(top, "00").value,
        initiation_method=tlv.find_one(top, "01").value,
        guid=tlv.find_one(merchant, "00").value,
        bank_identifier=tlv.find_one(beneficiary, "00").value,
        account_number=tlv.find_one(beneficiary, "01").value,
        service_code=tlv.find_one(beneficiary, "02").value,
        currency_code=tlv.find_one(top, "53").value,
        amount=amount.value if amount is not None else None,
        country_code=country.value if country is not None else None,
        note=note,
        checksum=checksum_node.value,
        checksum_valid=verify_checksum(payload),
    )
