"""
TOTP (Time-based One-Time Password) implementation following RFC 6238.

Produces codes identical to Google Authenticator.
"""

from typing import Optional, Union

from authify.core.clock import SYSTEM_CLOCK, Clock
from authify.core.crypto import DEFAULT_ALGORITHM, Algorithm, constant_time_compare, resolve_algorithm
from authify.core.errors import InvalidParameter
from authify.core.otp import compute_code
from authify.core.utils import (
    DEFAULT_DIGITS,
    DEFAULT_PERIOD,
    DEFAULT_WINDOW,
    normalize_token,
    secret_to_key,
    validate_digits,
    validate_period,
    validate_window,
)
from authify.otpauth.uri import OTPAuthURI


def _now(timestamp: Optional[int], clock: Optional[Clock]) -> int:
    if timestamp is not None:
        return int(timestamp)
    return (clock or SYSTEM_CLOCK).now()


def timecode(timestamp: int, period: int = DEFAULT_PERIOD) -> int:
    """Return the RFC 6238 time-step counter ``floor(timestamp / period)``."""
    return int(timestamp) // period


def generate_totp(
    secret: Union[str, bytes],
    period: int = DEFAULT_PERIOD,
    digits: int = DEFAULT_DIGITS,
    algorithm: Union[str, Algorithm] = DEFAULT_ALGORITHM,
    timestamp: Optional[int] = None,
    clock: Optional[Clock] = None,
) -> str:
    """
    Generate a TOTP code.

    Args:
        secret:    Base32 secret (raw bytes and non-Base32 text also work).
        period:    Time step in seconds (default 30).
        digits:    Number of digits in the OTP (default 6).
        algorithm: HMAC algorithm (default SHA1 for GA compatibility).
        timestamp: Override Unix timestamp.
        clock:     Time source used when ``timestamp`` is None.

    Returns:
        OTP string, zero-padded to ``digits`` characters.

    Raises:
        InvalidParameter: On a bad period, digits, algorithm or a pre-epoch time.
    """
    validate_period(period)
    validate_digits(digits)
    t = _now(timestamp, clock)
    if t < 0:
        raise InvalidParameter("Invalid time: must not be before the Unix epoch.")
    return compute_code(secret_to_key(secret), timecode(t, period), digits, resolve_algorithm(algorithm))


def validate_totp(
    secret: Union[str, bytes],
    token: str,
    period: int = DEFAULT_PERIOD,
    digits: int = DEFAULT_DIGITS,
    algorithm: Union[str, Algorithm] = DEFAULT_ALGORITHM,
    window: int = DEFAULT_WINDOW,
    timestamp: Optional[int] = None,
    clock: Optional[Clock] = None,
) -> bool:
    """
    Validate a TOTP token within ±``window`` time steps.

    Args:
        secret:    Shared secret.
        token:     Token to validate.
        period:    Time step in seconds.
        digits:    Expected number of digits.
        algorithm: HMAC algorithm.
        window:    Allowed skew in steps (default 1).
        timestamp: Override Unix timestamp.
        clock:     Time source used when ``timestamp`` is None.

    Returns:
        True if the token is valid within the window.
    """
    validate_period(period)
    validate_digits(digits)
    validate_window(window)
    token = normalize_token(token, digits)
    t = _now(timestamp, clock)

    for step in range(-window, window + 1):
        candidate_time = t + step * period
        if candidate_time < 0:
            continue
        expected = generate_totp(
            secret,
            period=period,
            digits=digits,
            algorithm=algorithm,
            timestamp=candidate_time,
        )
        if constant_time_compare(expected, token):
            return True
    return False


def remaining_seconds(
    period: int = DEFAULT_PERIOD,
    timestamp: Optional[int] = None,
    clock: Optional[Clock] = None,
) -> int:
    """Return seconds until the current TOTP window expires."""
    validate_period(period)
    return period - (_now(timestamp, clock) % period)


def build_totp_uri(
    secret: str,
    account: str,
    issuer: Optional[str] = None,
    period: int = DEFAULT_PERIOD,
    digits: int = DEFAULT_DIGITS,
    algorithm: Union[str, Algorithm] = DEFAULT_ALGORITHM,
) -> OTPAuthURI:
    """Build the ``otpauth://totp/...`` provisioning URI for an account."""
    return OTPAuthURI.build(TOTP, account, issuer).push({
        "secret": secret,
        "period": period,
        "digits": digits,
        "algorithm": resolve_algorithm(algorithm).value,
    })


class TOTP:
    """
    The TOTP operations grouped together.

    The class itself doubles as a type reference for
    :meth:`authify.otpauth.uri.OTPAuthURI.build`.
    """

    generate = staticmethod(generate_totp)
    validate = staticmethod(validate_totp)
    timecode = staticmethod(timecode)
    remaining_seconds = staticmethod(remaining_seconds)
    build_auth_uri = staticmethod(build_totp_uri)
