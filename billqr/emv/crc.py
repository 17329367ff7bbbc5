"""CRC-16/CCITT-FALSE checksum for EMV payloads (poly 0x1021, init 0xFFFF)."""

POLYNOMIAL = 0x1021
INITIAL = 0xFFFF


def crc16_ccitt_false(data: bytes) -> int:
    """Compute CRC-16/CCITT-FALSE over raw bytes."""
    crc = INITIAL
    for byte in data:
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ POLYNOMIAL) & 0xFFFF
            else:
                crc = (crc << 1) & 0xFFFF
    return crc


def checksum(payload: str) -> str:
    """
    Checksum of a payload as 4 lowercase hex digits.

    The payload is hashed as UTF-8, which is byte-for-byte ASCII for the
    printable-ASCII payloads banking apps expect.
    """
    return f"{crc16_ccitt_false(payload.encode('utf-8')):04x}"
