"""EMV payment payload package: bank directory, TLV, checksum, builder."""

from billqr.emv.banks import BANKS, get_bank_list, normalize_bank_key, resolve_bank
from billqr.emv.crc import checksum, crc16_ccitt_false
from billqr.emv.payload import (
    build_merchant_account,
    build_payload,
    parse_payload,
    verify_checksum,
)
from billqr.emv.render import render_png

__all__ = [
    "BANKS",
    "build_merchant_account",
    "build_payload",
    "checksum",
    "crc16_ccitt_false",
    "get_bank_list",
    "normalize_bank_key",
    "parse_payload",
    "render_png",
    "resolve_bank",
    "verify_checksum",
]
