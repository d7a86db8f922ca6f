"""
Hex payload helpers.

Payloads cross the driver boundary as upper-case hexadecimal text, two
characters per byte.
"""

import re

from .exceptions import PayloadFormatError

_HEX_RE = re.compile(r"[0-9A-Fa-f]*")


def bytes_to_hex(payload: bytes) -> str:
    """
    Encode bytes as upper-case hex text.

    Args:
        payload: Raw bytes

    Returns:
        Hex string, e.g. b"\\xab\\x12" -> "AB12"
    """
    if payload is None:
        raise PayloadFormatError("Payload cannot be None")
    return bytes(payload).hex().upper()


def hex_to_bytes(payload: str) -> bytes:
    """
    Decode hex text into bytes.

    Args:
        payload: Hex string with an even number of characters

    Returns:
        Decoded bytes

    Raises:
        PayloadFormatError: If the string has odd length or non-hex characters
    """
    validate_hex(payload)
    return bytes.fromhex(payload)


def validate_hex(payload: str) -> str:
    """
    Check that a string is well-formed hex and return it upper-cased.

    Raises:
        PayloadFormatError: If the string has odd length or non-hex characters
    """
    if payload is None:
        raise PayloadFormatError("Payload cannot be None")

    if len(payload) % 2 != 0:
        raise PayloadFormatError(
            f"Payload length {len(payload)} invalid, must be a multiple of 2"
        )

    if not _HEX_RE.fullmatch(payload):
        raise PayloadFormatError(f"Payload {payload!r} contains non-hex characters")

    return payload.upper()
