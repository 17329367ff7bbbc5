"""
Shared-Bill URL Token Codec

A SharedBillPayload travels in a URL query parameter with no server
storage. Encoding:

    packed tuple -> msgpack -> raw deflate (level 9) -> base64url

Packed layout (schema version 1), fixed positions to keep tokens short:

    [
        version,                        # 0
        bill_name,                      # 1
        country_code,                   # 2
        currency_code as int,           # 3
        [owner_bank, owner_account],    # 4
        [[id, name, qty, price], ...],  # 5
        [tax, tip, discount] | None,    # 6  (each slot may be None)
    ]

IMPORTANT: decoding rejects any version other than SCHEMA_VERSION. There
is no forward migration.
"""

import base64
import binascii
import re
import zlib
from typing import Any

import msgpack
from pydantic import ValidationError

from billqr.errors import CorruptTokenError, UnsupportedVersionError
from billqr.logger import get_logger
from billqr.models.bill import (
    SCHEMA_VERSION,
    BillExtras,
    BillItem,
    BillOwner,
    SharedBillPayload,
)


logger = get_logger(__name__)


COMPRESSION_LEVEL = 9
RAW_DEFLATE_WINDOW_BITS = 15

_TOKEN_ALPHABET = re.compile(r"[A-Za-z0-9_-]+")


# =============================================================================
# BASE64URL + DEFLATE
# =============================================================================

def b64url_encode(data: bytes) -> str:
    """URL-safe base64 with the trailing '=' padding stripped."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def b64url_decode(token: str) -> bytes:
    """
    Inverse of b64url_encode.

    Raises:
        CorruptTokenError: characters outside [A-Za-z0-9_-], an impossible
            length, or a non-canonical final character
    """
    if not token or not _TOKEN_ALPHABET.fullmatch(token):
        raise CorruptTokenError("Token contains characters outside the base64url alphabet")

    padded = token + "=" * (-len(token) % 4)
    try:
        data = base64.b64decode(padded, altchars=b"-_", validate=True)
    except binascii.Error as e:
        raise CorruptTokenError(f"Invalid base64url token: {e}") from e

    # Unused low bits of the last character are ignored by the decoder, so
    # two different tokens could otherwise yield the same bytes.
    if b64url_encode(data) != token:
        raise CorruptTokenError("Token is not canonical base64url")
    return data


def seal_bytes(data: bytes) -> str:
    """Raw-deflate (no zlib header or trailer) and base64url-encode bytes."""
    compressor = zlib.compressobj(COMPRESSION_LEVEL, zlib.DEFLATED, -RAW_DEFLATE_WINDOW_BITS)
    return b64url_encode(compressor.compress(data) + compressor.flush())


def open_bytes(token: str) -> bytes:
    """
    Inverse of seal_bytes.

    Raises:
        CorruptTokenError: bad alphabet or compression stream
    """
    compressed = b64url_decode(token)
    decompressor = zlib.decompressobj(-RAW_DEFLATE_WINDOW_BITS)
    try:
        data = decompressor.decompress(compressed)
    except zlib.error as e:
        raise CorruptTokenError(f"Invalid compressed token: {e}") from e
    if not decompressor.eof or decompressor.unused_data:
        raise CorruptTokenError("Compressed token is incomplete or has trailing data")
    return data


# =============================================================================
# PACK / UNPACK
# =============================================================================

def pack(payload: SharedBillPayload) -> list[Any]:
    """Reshape a bill into the fixed-position packed form."""
    extras = None
    if payload.extras is not None:
        extras = [payload.extras.tax, payload.extras.tip, payload.extras.discount]

    return [
        payload.schema_version,
        payload.bill_name,
        payload.country_code,
        int(payload.currency_code),
        [payload.owner.bank, payload.owner.account_number],
        [[item.id, item.name, item.quantity, item.unit_price] for item in payload.items],
        extras,
    ]


def _expect_list(value: Any, length: int, what: str) -> list[Any]:
    if not isinstance(value, list) or len(value) != length:
        raise CorruptTokenError(f"Packed {what} must be a list of {length} entries")
    return value


def unpack(packed: Any) -> SharedBillPayload:
    """
    Rebuild a bill from its packed form.

    Extras slots that are None are omitted; if all three are None the bill
    has no extras at all.

    Raises:
        UnsupportedVersionError: version slot is not SCHEMA_VERSION
        CorruptTokenError: any structural mismatch
    """
    if not isinstance(packed, list) or not packed:
        raise CorruptTokenError("Packed bill must be a non-empty list")

    version = packed[0]
    if isinstance(version, bool) or version != SCHEMA_VERSION:
        raise UnsupportedVersionError(version)

    _, bill_name, country_code, currency_code, owner, items, extras = _expect_list(
        packed, 7, "bill"
    )
    owner_bank, owner_account = _expect_list(owner, 2, "owner")
    if not isinstance(items, list):
        raise CorruptTokenError("Packed items must be a list")

    try:
        bill_items = []
        for entry in items:
            item_id, name, quantity, unit_price = _expect_list(entry, 4, "item")
            bill_items.append(BillItem(
                id=item_id,
                name=name,
                quantity=quantity,
                unit_price=unit_price,
            ))

        bill_extras = None
        if extras is not None:
            tax, tip, discount = _expect_list(extras, 3, "extras")
            bill_extras = BillExtras(tax=tax, tip=tip, discount=discount)

        return SharedBillPayload(
            schema_version=version,
            bill_name=bill_name,
            country_code=country_code,
            currency_code=str(currency_code),
            owner=BillOwner(bank=owner_bank, account_number=owner_account),
            items=bill_items,
            extras=bill_extras,
        )
    except ValidationError as e:
        raise CorruptTokenError(f"Packed bill has invalid values: {e}") from e


# =============================================================================
# PUBLIC API
# =============================================================================

def encode(payload: SharedBillPayload) -> str:
    """Encode a bill as a URL-safe token."""
    message = msgpack.packb(pack(payload), use_bin_type=True)
    token = seal_bytes(message)
    logger.debug(
        "bill_token_encoded",
        items=len(payload.items),
        packed_bytes=len(message),
        token_length=len(token),
    )
    return token


def decode(token: str) -> SharedBillPayload:
    """
    Decode a URL token back into a bill.

    Raises:
        UnsupportedVersionError: token was written by another schema version
        CorruptTokenError: token is damaged or not a bill token
    """
    message = open_bytes(token)
    try:
        packed = msgpack.unpackb(message, raw=False)
    except (msgpack.exceptions.UnpackException, ValueError, TypeError) as e:
        raise CorruptTokenError(f"Invalid packed bill: {e}") from e

    payload = unpack(packed)
    logger.debug("bill_token_decoded", items=len(payload.items), token_length=len(token))
    return payload
