"""
Cryptographic primitives for Authify's OTP engine.

HMAC            : SHA-1 / SHA-256 / SHA-512 via ``cryptography``
Token compare   : constant time (``hmac.compare_digest``)
Secrets         : CSPRNG bytes from :mod:`secrets`, Base32-encoded
"""

import hmac
import secrets
from enum import Enum
from typing import Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac

from authify.core import base32
from authify.core.errors import InvalidParameter

# ── Constants ────────────────────────────────────────────────────────────────

SECRET_SIZE = 20        # 160-bit secret, the RFC 4226 recommendation


class Algorithm(str, Enum):
    """Supported HMAC algorithms."""

    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"


DEFAULT_ALGORITHM = Algorithm.SHA1

_HASHES = {
    Algorithm.SHA1: hashes.SHA1,
    Algorithm.SHA256: hashes.SHA256,
    Algorithm.SHA512: hashes.SHA512,
}


def resolve_algorithm(algorithm: Union[str, Algorithm]) -> Algorithm:
    """
    Map a user-supplied algorithm name to an :class:`Algorithm`.

    ``"sha1"``, ``"SHA-256"`` and ``Algorithm.SHA512`` are all accepted.

    Raises:
        InvalidParameter: For anything other than SHA1, SHA256 or SHA512.
    """
    if isinstance(algorithm, Algorithm):
        return algorithm
    name = str(algorithm).strip().upper().replace("-", "")
    try:
        return Algorithm(name)
    except ValueError:
        raise InvalidParameter(
            f"Unsupported algorithm '{algorithm}'. Supported: SHA1, SHA256, SHA512."
        ) from None


# ── HMAC ─────────────────────────────────────────────────────────────────────

def hmac_digest(algorithm: Union[str, Algorithm], key: bytes, message: bytes) -> bytes:
    """
    Compute a raw HMAC digest (RFC 2104).

    Args:
        algorithm: Hash function name.
        key:       Secret key bytes.
        message:   Data to authenticate.

    Returns:
        20, 32 or 64 digest bytes for SHA1, SHA256 and SHA512 respectively.
    """
    h = crypto_hmac.HMAC(key, _HASHES[resolve_algorithm(algorithm)]())
    h.update(message)
    return h.finalize()


def constant_time_compare(a: str, b: str) -> bool:
    """Return True if *a* == *b* in constant time (timing-safe)."""
    return hmac.compare_digest(a.encode(), b.encode())


# ── Secrets ──────────────────────────────────────────────────────────────────

def generate_secret(length: int = SECRET_SIZE, padding: bool = False) -> str:
    """
    Generate a random shared secret for provisioning a new authenticator.

    Args:
        length:  Number of random bytes (default 20).
        padding: Keep ``=`` padding in the Base32 output.

    Returns:
        Base32-encoded secret.
    """
    if length < 1:
        raise InvalidParameter("Secret length must be at least 1 byte.")
    return base32.encode(secrets.token_bytes(length), padding)
