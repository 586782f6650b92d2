import re
from typing import Any, Optional

# Encoding kinds reported by account-model nodes for notification values.
INTEGER = "Integer"
BYTE_ARRAY = "ByteArray"

_DECIMAL_RE = re.compile(r"[0-9]+")
_HEX_RE = re.compile(r"[0-9a-fA-F]+")


def strip_0x(value: str) -> str:
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def reverse_bytes(data: bytes) -> bytes:
    """Returns ``data`` in reverse byte order."""
    return bytes(reversed(data))


def hex_string_reverse(value: Any) -> str:
    """
    Decodes a hex string, reverses its bytes and encodes it back to lower-case hex.

    Some chains emit hashes and amounts little-endian while the canonical form used
    for comparison is big-endian. Malformed input yields an empty string rather
    than an exception; callers must tolerate the degraded value.

    Example:
        >>> hex_string_reverse("aabbcc")
        'ccbbaa'
    """
    if not isinstance(value, str) or not _HEX_RE.fullmatch(value):
        return ""
    try:
        return reverse_bytes(bytes.fromhex(value)).hex()
    except ValueError:
        return ""


def parse_amount(value: Any, kind: str) -> Optional[int]:
    """
    Parses an on-chain amount.

    Args:
        value: The raw amount as emitted by the chain.
        kind: ``INTEGER`` for base-10 strings; anything else means the value is
              little-endian hex and is byte-reversed before base-16 parsing.

    Returns:
        The amount, or None when the value cannot be parsed. The caller decides
        what to substitute (scanners use zero and log the anomaly).
    """
    if not isinstance(value, str):
        return None
    if kind == INTEGER:
        if not _DECIMAL_RE.fullmatch(value):
            return None
        return int(value, 10)
    reversed_hex = hex_string_reverse(value)
    if not _HEX_RE.fullmatch(reversed_hex):
        return None
    return int(reversed_hex, 16)
