"""
Shared helpers for HOTP / TOTP: secret handling, token normalisation and
parameter checks.
"""

import logging
import re
from typing import Union

from authify.core import base32
from authify.core.errors import InvalidEncoding, InvalidParameter

logger = logging.getLogger(__name__)

# ── Defaults ──────────────────────────────────────────────────────────────────

DEFAULT_DIGITS = 6
MIN_DIGITS = 6
MAX_DIGITS = 10
DEFAULT_PERIOD = 30
DEFAULT_WINDOW = 1
MAX_COUNTER = 2**64 - 1

_WHITESPACE = re.compile(r"\s+")
_DIGITS_ONLY = re.compile(r"[0-9]+")


# ── Secrets ───────────────────────────────────────────────────────────────────

def secret_to_key(secret: Union[str, bytes]) -> bytes:
    """
    Turn a user-facing secret into HMAC key bytes.

    ``bytes`` are used as-is. A string is Base32-decoded; when it is not valid
    Base32, or decodes to nothing, its UTF-8 bytes are the key instead. This
    lets hand-typed passphrases and the ASCII RFC test secrets work too.

    Args:
        secret: Base32 text or raw key bytes.

    Returns:
        Key material for :func:`authify.core.crypto.hmac_digest`.
    """
    if isinstance(secret, (bytes, bytearray)):
        return bytes(secret)
    try:
        key = base32.decode(secret)
    except InvalidEncoding:
        key = b""
    if not key:
        logger.debug("Secret is not Base32; using its raw bytes as the key.")
        key = secret.encode("utf-8")
    return key


# ── Tokens ────────────────────────────────────────────────────────────────────

def normalize_token(token: str, digits: int) -> str:
    """
    Clean up a user-entered token before comparison.

    Whitespace is removed and short tokens are left-padded with zeros, so
    ``"12 345"`` becomes ``"012345"`` for six digits.

    Raises:
        InvalidParameter: If anything but digits remains.
    """
    token = _WHITESPACE.sub("", token)
    if not _DIGITS_ONLY.fullmatch(token):
        raise InvalidParameter("Code must contain digits only.")
    return token.zfill(digits)


# ── Validation ────────────────────────────────────────────────────────────────

def validate_digits(digits: int) -> None:
    if not MIN_DIGITS <= digits <= MAX_DIGITS:
        raise InvalidParameter(
            f"Invalid digits: must be between {MIN_DIGITS} and {MAX_DIGITS}."
        )


def validate_period(period: int) -> None:
    if period <= 0:
        raise InvalidParameter("Invalid period: must be greater than zero.")


def validate_counter(counter: int) -> None:
    if not 0 <= counter <= MAX_COUNTER:
        raise InvalidParameter("Invalid counter: must be an unsigned 64-bit integer.")


def validate_window(window: int) -> None:
    if window < 0:
        raise InvalidParameter("Invalid window: must not be negative.")
