"""
Exception Taxonomy

Every failure in the core is raised synchronously to the caller.
Nothing here is retried: all operations are local and deterministic.

The presentation layer is expected to catch these and show an inline
message. The only lenient path is split-configuration token parsing,
which returns None instead of raising.
"""

from typing import Any, Optional


class BillQRError(Exception):
    """Base exception for all billqr errors."""
    pass


# =============================================================================
# BANK DIRECTORY
# =============================================================================

class UnknownBankError(BillQRError):
    """No bank in the directory matches the user's input."""

    def __init__(self, query: str):
        self.query = query
        super().__init__(
            f'Unknown bank: "{query}". '
            "Use a bank name, short name or code (e.g. Vietcombank, VCB)."
        )


# =============================================================================
# TLV / PAYLOAD
# =============================================================================

class TlvError(BillQRError):
    """Base exception for TLV encoding and decoding errors."""
    pass


class InvalidTagError(TlvError):
    """Tag is not exactly two decimal digits."""

    def __init__(self, tag: Any, position: Optional[int] = None):
        self.tag = tag
        self.position = position
        where = f" at index {position}" if position is not None else ""
        super().__init__(f"TLV tag must be 2 digits. Got: {tag!r}{where}")


class InvalidLengthError(TlvError):
    """Length field is not a 2-digit decimal number."""
    pass


class TruncatedError(TlvError):
    """Input ended before a declared TLV value was complete."""
    pass


class InvalidAccountError(BillQRError):
    """Bank identifier or account number is malformed."""
    pass


# =============================================================================
# URL TOKENS
# =============================================================================

class TokenError(BillQRError):
    """Base exception for URL token errors."""
    pass


class UnsupportedVersionError(TokenError):
    """Decoded bill carries a schema version this build does not support."""

    def __init__(self, version: Any):
        self.version = version
        super().__init__(f"Unsupported schema version: {version!r}")


class CorruptTokenError(TokenError):
    """Token could not be decoded (alphabet, compression or structure)."""
    pass
