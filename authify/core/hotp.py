"""
HOTP (HMAC-based One-Time Password) implementation following RFC 4226.
"""

import logging
from typing import Optional, Union

from authify.core.crypto import DEFAULT_ALGORITHM, Algorithm, constant_time_compare, resolve_algorithm
from authify.core.otp import compute_code
from authify.core.utils import (
    DEFAULT_DIGITS,
    DEFAULT_WINDOW,
    MAX_COUNTER,
    normalize_token,
    secret_to_key,
    validate_counter,
    validate_digits,
    validate_window,
)
from authify.otpauth.uri import OTPAuthURI

logger = logging.getLogger(__name__)


def generate_hotp(
    secret: Union[str, bytes],
    counter: int,
    digits: int = DEFAULT_DIGITS,
    algorithm: Union[str, Algorithm] = DEFAULT_ALGORITHM,
) -> str:
    """
    Generate an HOTP code.

    Args:
        secret:    Base32 secret (raw bytes and non-Base32 text also work).
        counter:   Synchronisation counter value.
        digits:    Number of OTP digits (6-10).
        algorithm: HMAC algorithm.

    Returns:
        Zero-padded OTP string.

    Raises:
        InvalidParameter: On a negative counter, bad digits or algorithm.
    """
    validate_counter(counter)
    validate_digits(digits)
    return compute_code(secret_to_key(secret), counter, digits, resolve_algorithm(algorithm))


def find_hotp_counter(
    secret: Union[str, bytes],
    token: str,
    counter: int,
    digits: int = DEFAULT_DIGITS,
    algorithm: Union[str, Algorithm] = DEFAULT_ALGORITHM,
    window: int = DEFAULT_WINDOW,
) -> Optional[int]:
    """
    Locate the counter value that produced ``token``.

    Only ``counter`` .. ``counter + window`` are searched; HOTP counters never
    move backwards.

    Args:
        secret:    Shared secret.
        token:     Token to validate.
        counter:   Current counter.
        digits:    Expected OTP length.
        algorithm: HMAC algorithm.
        window:    Max steps to search ahead for resync.

    Returns:
        The matching counter, or None if the token is invalid. The caller's
        next expected counter is the returned value + 1.
    """
    validate_counter(counter)
    validate_digits(digits)
    validate_window(window)
    token = normalize_token(token, digits)
    key = secret_to_key(secret)
    algorithm = resolve_algorithm(algorithm)

    for candidate in range(counter, min(counter + window, MAX_COUNTER) + 1):
        if constant_time_compare(compute_code(key, candidate, digits, algorithm), token):
            if candidate != counter:
                logger.debug("HOTP token matched %d step(s) ahead.", candidate - counter)
            return candidate
    return None


def validate_hotp(
    secret: Union[str, bytes],
    token: str,
    counter: int,
    digits: int = DEFAULT_DIGITS,
    algorithm: Union[str, Algorithm] = DEFAULT_ALGORITHM,
    window: int = DEFAULT_WINDOW,
) -> bool:
    """Return True if ``token`` matches any counter in ``counter .. counter + window``."""
    return find_hotp_counter(secret, token, counter, digits, algorithm, window) is not None


def build_hotp_uri(
    secret: str,
    account: str,
    issuer: Optional[str] = None,
    counter: int = 0,
    digits: int = DEFAULT_DIGITS,
    algorithm: Union[str, Algorithm] = DEFAULT_ALGORITHM,
) -> OTPAuthURI:
    """Build the ``otpauth://hotp/...`` provisioning URI for an account."""
    return OTPAuthURI.build(HOTP, account, issuer).push({
        "secret": secret,
        "counter": counter,
        "digits": digits,
        "algorithm": resolve_algorithm(algorithm).value,
    })


class HOTP:
    """
    The HOTP operations grouped together.

    The class itself doubles as a type reference for
    :meth:`authify.otpauth.uri.OTPAuthURI.build`.
    """

    generate = staticmethod(generate_hotp)
    validate = staticmethod(validate_hotp)
    find_counter = staticmethod(find_hotp_counter)
    build_auth_uri = staticmethod(build_hotp_uri)
