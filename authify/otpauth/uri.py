"""
Build, parse and serialise otpauth:// URIs as defined by the Google
Authenticator Key URI Format.

Reference: https://github.com/google/google-authenticator/wiki/Key-Uri-Format

    otpauth://totp/Example:alice%40example.com?secret=JBSWY3DPEHPK3PXP&issuer=Example
    └──┬──┘   └┬─┘ └──┬──┘ └────────┬────────┘ └─────────────┬──────────────────────┘
     scheme   type  issuer       account                   query
"""

import logging
import urllib.parse
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from authify.core.errors import InvalidFormat, InvalidParameter

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────────────────

DEFAULT_SCHEME = "otpauth"
HOTP_TYPE = "hotp"
TOTP_TYPE = "totp"
OTP_TYPES = (HOTP_TYPE, TOTP_TYPE)

DEFAULT_ALGORITHM = "SHA1"
DEFAULT_DIGITS = 6
DEFAULT_PERIOD = 30
DEFAULT_COUNTER = 0


def _to_str(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _clean_query(query: Mapping[str, Any]) -> Dict[str, str]:
    """Stringify values and drop the empty ones, keeping key order."""
    return {
        str(k): _to_str(v)
        for k, v in query.items()
        if v is not None and _to_str(v) != ""
    }


def _quote(text: str) -> str:
    """RFC 3986 percent-encoding; only unreserved characters survive."""
    return urllib.parse.quote(text, safe="")


def _invalid(reason: str) -> InvalidFormat:
    logger.debug("Rejected otpauth URI: %s", reason)
    return InvalidFormat(f"Invalid URI: {reason}")


@dataclass(frozen=True)
class OTPAuthURI:
    """
    Immutable representation of an otpauth:// URI.

    ``query`` holds every parameter (``secret``, ``digits``, ``algorithm``,
    ``period``/``counter``, ``issuer`` and anything else) as strings, in
    insertion order, behind a read-only mapping. When ``issuer`` is set it is
    mirrored into ``query``.
    All ``with_*`` methods and :meth:`push` return a new instance.
    """

    otp_type: str
    account: str
    issuer: Optional[str] = None
    query: Mapping[str, str] = field(default_factory=dict)
    scheme: str = DEFAULT_SCHEME

    def __post_init__(self) -> None:
        otp_type = self.otp_type.lower()
        if otp_type not in OTP_TYPES:
            raise InvalidParameter(f"Unknown OTP type '{self.otp_type}'. Expected totp or hotp.")
        if not self.account:
            raise InvalidParameter("Account name must not be empty.")

        query = _clean_query(self.query)
        issuer = self.issuer or None
        if issuer is None:
            issuer = query.get("issuer")
        else:
            query["issuer"] = issuer

        object.__setattr__(self, "otp_type", otp_type)
        object.__setattr__(self, "issuer", issuer)
        object.__setattr__(self, "query", MappingProxyType(query))

    def __hash__(self) -> int:
        return hash((self.otp_type, self.account, self.issuer, tuple(self.query.items()), self.scheme))

    # ── Construction ─────────────────────────────────────────────────────

    @classmethod
    def build(
        cls,
        otp_type: Union[str, type],
        account: str,
        issuer: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> "OTPAuthURI":
        """
        Create a URI for ``account``.

        Args:
            otp_type: ``"totp"``/``"hotp"``, or a class such as
                      :class:`authify.core.totp.TOTP` whose lowercased name is used.
            account:  Account name.
            issuer:   Optional issuer / service provider.
            options:  Initial query parameters (secret, digits, period, ...).
        """
        if isinstance(otp_type, type):
            otp_type = otp_type.__name__.lower()
        return cls(otp_type, account, issuer, dict(options or {}))

    @classmethod
    def from_string(cls, uri: str, expected_scheme: str = DEFAULT_SCHEME) -> "OTPAuthURI":
        """
        Parse and validate an ``otpauth://`` URI.

        Args:
            uri:             Full URI string.
            expected_scheme: Scheme the URI must use (case-insensitive).

        Returns:
            Populated :class:`OTPAuthURI`.

        Raises:
            InvalidFormat: If the URI is malformed or has no ``secret``.
        """
        try:
            parts = urllib.parse.urlsplit(uri.strip())
        except ValueError as exc:
            raise _invalid(str(exc)) from exc

        for name, value in (
            ("scheme", parts.scheme),
            ("host", parts.netloc),
            ("path", parts.path),
            ("query", parts.query),
        ):
            if not value:
                raise _invalid(f"lacks the `{name}` field.")

        if parts.scheme.lower() != expected_scheme.lower():
            raise _invalid(f"expected '{expected_scheme}' scheme, got '{parts.scheme}'.")

        otp_type = parts.netloc.lower()
        if otp_type not in OTP_TYPES:
            raise _invalid(f"unknown OTP type '{parts.netloc}'.")

        # Label is "Issuer:Account" or just "Account"
        label = urllib.parse.unquote(parts.path).strip("/")
        if ":" in label:
            issuer, account = (s.strip() for s in label.split(":", 1))
        else:
            issuer, account = None, label.strip()
        if not account:
            raise _invalid("missing account name in label.")

        params: Dict[str, str] = {}
        for key, value in urllib.parse.parse_qsl(parts.query, keep_blank_values=True):
            params[key.lower()] = value
        if not params.get("secret"):
            raise _invalid("missing `secret` parameter.")

        return cls(otp_type, account, issuer or None, params, parts.scheme)

    # ── Query access ─────────────────────────────────────────────────────

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.query.get(key, default)

    def has(self, key: str) -> bool:
        return key in self.query

    def _int_param(self, key: str, default: int) -> int:
        raw = self.query.get(key)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            raise InvalidFormat(f"'{key}' must be an integer, got '{raw}'.") from None

    @property
    def secret(self) -> Optional[str]:
        return self.query.get("secret")

    @property
    def algorithm(self) -> str:
        return self.query.get("algorithm", DEFAULT_ALGORITHM)

    @property
    def digits(self) -> int:
        return self._int_param("digits", DEFAULT_DIGITS)

    @property
    def period(self) -> int:
        return self._int_param("period", DEFAULT_PERIOD)

    @property
    def counter(self) -> int:
        return self._int_param("counter", DEFAULT_COUNTER)

    @property
    def label(self) -> str:
        """Percent-encoded ``issuer:account`` (or just ``account``)."""
        account = _quote(urllib.parse.unquote(self.account))
        if self.issuer:
            return f"{_quote(urllib.parse.unquote(self.issuer))}:{account}"
        return account

    # ── Copy-on-write setters ────────────────────────────────────────────

    def push(self, key: Union[str, Mapping[str, Any]], value: Any = None) -> "OTPAuthURI":
        """
        Merge one or more parameters into the query.

        Pushed entries come first and win on collision; existing entries
        that were not pushed follow in their original order. A ``None``
        value removes the key.
        """
        entries = dict(key) if isinstance(key, Mapping) else {key: value}
        merged: Dict[str, Any] = dict(entries)
        for k, v in self.query.items():
            merged.setdefault(k, v)
        issuer = entries["issuer"] if "issuer" in entries else self.issuer
        return replace(self, query=merged, issuer=issuer)

    def with_type(self, otp_type: str) -> "OTPAuthURI":
        return replace(self, otp_type=otp_type)

    def with_account(self, account: str) -> "OTPAuthURI":
        return replace(self, account=account)

    def with_issuer(self, issuer: Optional[str]) -> "OTPAuthURI":
        query = {k: v for k, v in self.query.items() if k != "issuer"}
        return replace(self, issuer=issuer, query=query)

    def with_scheme(self, scheme: str) -> "OTPAuthURI":
        return replace(self, scheme=scheme)

    def with_query(self, query: Mapping[str, Any]) -> "OTPAuthURI":
        """
        Replace the whole query.

        An ``issuer`` key in the new query takes over the issuer field, and an
        empty or ``None`` value clears it. Without the key the issuer is kept.
        """
        issuer = query["issuer"] if "issuer" in query else self.issuer
        return replace(self, query=dict(query), issuer=issuer)

    def with_secret(self, secret: str) -> "OTPAuthURI":
        return self.push("secret", secret)

    def with_algorithm(self, algorithm: str) -> "OTPAuthURI":
        return self.push("algorithm", algorithm)

    def with_digits(self, digits: Union[int, str]) -> "OTPAuthURI":
        return self.push("digits", digits)

    # ── Serialisation ────────────────────────────────────────────────────

    def to_string(self) -> str:
        query = urllib.parse.urlencode(self.query, quote_via=urllib.parse.quote)
        return f"{self.scheme}://{self.otp_type}/{self.label}?{query}"

    def __str__(self) -> str:
        return self.to_string()
