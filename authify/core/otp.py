"""
RFC 4226 building blocks shared by HOTP and TOTP.
"""

import struct
from typing import Union

from authify.core.crypto import Algorithm, hmac_digest


def pack_counter(counter: int) -> bytes:
    """Pack a 64-bit counter as 8 big-endian bytes (high word, low word)."""
    return struct.pack(">II", counter >> 32, counter & 0xFFFFFFFF)


def dynamic_truncate(digest: bytes, digits: int) -> int:
    """
    Dynamic truncation (RFC 4226 §5.3), reduced to ``digits`` decimal places.

    Args:
        digest: HMAC output, at least 20 bytes.
        digits: Number of decimal digits to keep.

    Returns:
        ``(31-bit DT value) mod 10**digits``.
    """
    offset = digest[-1] & 0x0F
    code = (
        (digest[offset] & 0x7F) << 24
        | (digest[offset + 1] & 0xFF) << 16
        | (digest[offset + 2] & 0xFF) << 8
        | (digest[offset + 3] & 0xFF)
    )
    return code % (10**digits)


def format_code(value: int, digits: int) -> str:
    return str(value).zfill(digits)


def compute_code(
    key: bytes,
    counter: int,
    digits: int,
    algorithm: Union[str, Algorithm],
) -> str:
    """
    Core HOTP computation (RFC 4226 §5) on an already resolved key.

    Callers are responsible for range-checking ``counter`` and ``digits``.
    """
    digest = hmac_digest(algorithm, key, pack_counter(counter))
    return format_code(dynamic_truncate(digest, digits), digits)
