"""
Exception types raised by Authify's OTP library.

All of them derive from :class:`ValueError`, so callers that only care about
"bad input" can keep catching that.
"""


class OTPError(ValueError):
    """Base class for every error raised by this package."""


class InvalidEncoding(OTPError):
    """Base32 text contains a character outside the RFC 4648 alphabet."""


class InvalidParameter(OTPError):
    """An argument is out of range (digits, period, counter, window, token...)."""


class InvalidFormat(OTPError):
    """An ``otpauth://`` URI is structurally invalid."""
