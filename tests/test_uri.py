"""Tests for authify.otpauth.uri and the HOTP/TOTP URI builders."""

from typing import Optional

import pytest

from authify.core.errors import InvalidFormat, InvalidParameter
from authify.core.hotp import HOTP, build_hotp_uri, generate_hotp
from authify.core.totp import TOTP, build_totp_uri, generate_totp
from authify.otpauth.uri import OTPAuthURI

SECRET = "JBSWY3DPEHPK3PXP"


# ── Parsing ───────────────────────────────────────────────────────────────────

def test_parse_basic_totp() -> None:
    uri = "otpauth://totp/Example:alice@host.com?secret=JBSWY3DPEHPK3PXP&issuer=Example&digits=6"
    result = OTPAuthURI.from_string(uri)
    assert result.otp_type == "totp"
    assert result.issuer == "Example"
    assert result.account == "alice@host.com"
    assert result.secret == SECRET
    assert result.get("digits") == "6"
    assert result.digits == 6
    assert result.algorithm == "SHA1"
    assert result.period == 30
    assert result.scheme == "otpauth"


def test_parse_percent_encoded_label() -> None:
    uri = "otpauth://totp/Example%3Aalice%40example.com?secret=JBSWY3DPEHPK3PXP&issuer=Example"
    result = OTPAuthURI.from_string(uri)
    assert result.issuer == "Example"
    assert result.account == "alice@example.com"


def test_parse_totp_with_sha256() -> None:
    uri = (
        "otpauth://totp/Issuer%3Auser?secret=JBSWY3DPEHPK3PXP"
        "&algorithm=SHA256&digits=8&period=60"
    )
    result = OTPAuthURI.from_string(uri)
    assert result.algorithm == "SHA256"
    assert result.digits == 8
    assert result.period == 60


def test_parse_no_issuer() -> None:
    result = OTPAuthURI.from_string("otpauth://totp/myaccount?secret=JBSWY3DPEHPK3PXP")
    assert result.account == "myaccount"
    assert result.issuer is None
    assert not result.has("issuer")


def test_parse_issuer_only_in_query() -> None:
    result = OTPAuthURI.from_string("otpauth://totp/john?secret=JBSWY3DPEHPK3PXP&issuer=GitHub")
    assert result.issuer == "GitHub"
    assert result.account == "john"


def test_parse_label_issuer_wins_over_query() -> None:
    result = OTPAuthURI.from_string("otpauth://totp/GitHub:john?secret=JBSWY3DPEHPK3PXP&issuer=Other")
    assert result.issuer == "GitHub"
    assert result.get("issuer") == "GitHub"


def test_parse_splits_on_first_colon_and_trims() -> None:
    result = OTPAuthURI.from_string("otpauth://totp/ACME%20Co:%20john:doe?secret=JBSWY3DPEHPK3PXP")
    assert result.issuer == "ACME Co"
    assert result.account == "john:doe"


def test_parse_hotp() -> None:
    result = OTPAuthURI.from_string("otpauth://hotp/Example%3Aeve?secret=JBSWY3DPEHPK3PXP&counter=5")
    assert result.otp_type == "hotp"
    assert result.counter == 5


def test_parse_lowercases_keys_and_keeps_extras() -> None:
    result = OTPAuthURI.from_string("otpauth://TOTP/acc?SECRET=JBSWY3DPEHPK3PXP&Image=http%3A%2F%2Fx")
    assert result.otp_type == "totp"
    assert result.secret == SECRET
    assert result.get("image") == "http://x"


def test_parse_custom_scheme() -> None:
    result = OTPAuthURI.from_string("MyApp://totp/acc?secret=JBSWY3DPEHPK3PXP", expected_scheme="myapp")
    assert result.to_string().startswith("myapp://totp/acc?")


# ── Parse errors ──────────────────────────────────────────────────────────────

def test_parse_wrong_scheme() -> None:
    with pytest.raises(InvalidFormat, match="scheme"):
        OTPAuthURI.from_string("http://totp/acc?secret=ABC")


def test_parse_missing_secret() -> None:
    with pytest.raises(InvalidFormat, match="secret"):
        OTPAuthURI.from_string("otpauth://totp/acc?issuer=Example")


def test_parse_empty_secret() -> None:
    with pytest.raises(InvalidFormat, match="secret"):
        OTPAuthURI.from_string("otpauth://totp/acc?secret=&digits=6")


@pytest.mark.parametrize(
    "uri,part",
    [
        ("//totp/acc?secret=JBSWY3DPEHPK3PXP", "scheme"),
        ("otpauth:///acc?secret=JBSWY3DPEHPK3PXP", "host"),
        ("otpauth://totp?secret=JBSWY3DPEHPK3PXP", "path"),
        ("otpauth://totp/acc", "query"),
    ],
)
def test_parse_missing_component(uri: str, part: str) -> None:
    with pytest.raises(InvalidFormat, match=part):
        OTPAuthURI.from_string(uri)


def test_parse_unknown_type() -> None:
    with pytest.raises(InvalidFormat, match="OTP type"):
        OTPAuthURI.from_string("otpauth://steam/acc?secret=JBSWY3DPEHPK3PXP")


def test_parse_empty_account() -> None:
    with pytest.raises(InvalidFormat, match="account"):
        OTPAuthURI.from_string("otpauth://totp/Example:?secret=JBSWY3DPEHPK3PXP")


def test_invalid_numeric_field() -> None:
    result = OTPAuthURI.from_string("otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&digits=six")
    with pytest.raises(InvalidFormat, match="digits"):
        result.digits


# ── Serialisation ─────────────────────────────────────────────────────────────

def test_roundtrip() -> None:
    uri = "otpauth://totp/Example:alice@host.com?secret=JBSWY3DPEHPK3PXP&issuer=Example&digits=6"
    parsed = OTPAuthURI.from_string(uri)
    text = parsed.to_string()
    assert text == (
        "otpauth://totp/Example:alice%40host.com"
        "?secret=JBSWY3DPEHPK3PXP&issuer=Example&digits=6"
    )
    assert OTPAuthURI.from_string(text) == parsed
    assert str(parsed) == text


def test_label_encoding() -> None:
    uri = OTPAuthURI.build("totp", "john doe@x.com", "ACME Co:Labs", {"secret": SECRET})
    assert uri.label == "ACME%20Co%3ALabs:john%20doe%40x.com"
    assert uri.to_string() == (
        "otpauth://totp/ACME%20Co%3ALabs:john%20doe%40x.com"
        "?secret=JBSWY3DPEHPK3PXP&issuer=ACME%20Co%3ALabs"
    )


def test_label_without_issuer() -> None:
    assert OTPAuthURI.build("hotp", "bob").label == "bob"


def test_empty_values_are_omitted() -> None:
    uri = OTPAuthURI.build("totp", "bob", options={"secret": SECRET, "image": "", "foo": None})
    assert uri.to_string() == "otpauth://totp/bob?secret=JBSWY3DPEHPK3PXP"


# ── Builder ───────────────────────────────────────────────────────────────────

def test_build_resolves_class_reference() -> None:
    assert OTPAuthURI.build(TOTP, "alice").otp_type == "totp"
    assert OTPAuthURI.build(HOTP, "alice").otp_type == "hotp"


def test_build_rejects_bad_input() -> None:
    with pytest.raises(InvalidParameter, match="OTP type"):
        OTPAuthURI.build("steam", "alice")
    with pytest.raises(InvalidParameter, match="Account"):
        OTPAuthURI.build("totp", "")


def test_build_totp_uri() -> None:
    uri = build_totp_uri(SECRET, "alice@example.com", "Example")
    assert str(uri) == (
        "otpauth://totp/Example:alice%40example.com"
        "?secret=JBSWY3DPEHPK3PXP&period=30&digits=6&algorithm=SHA1&issuer=Example"
    )


def test_build_hotp_uri() -> None:
    uri = build_hotp_uri(SECRET, "bob", counter=10, algorithm="sha256")
    assert str(uri) == "otpauth://hotp/bob?secret=JBSWY3DPEHPK3PXP&counter=10&digits=6&algorithm=SHA256"


def test_built_uri_drives_generation() -> None:
    uri = OTPAuthURI.from_string(str(TOTP.build_auth_uri(SECRET, "alice", digits=8, period=60)))
    expected = generate_totp(SECRET, period=60, digits=8, timestamp=1111111109)
    code = generate_totp(
        uri.secret, period=uri.period, digits=uri.digits, algorithm=uri.algorithm, timestamp=1111111109
    )
    assert code == expected

    hotp_uri = HOTP.build_auth_uri(SECRET, "alice", counter=3)
    assert generate_hotp(hotp_uri.secret, hotp_uri.counter) == generate_hotp(SECRET, 3)


# ── Copy-on-write setters ─────────────────────────────────────────────────────

def test_push_new_entries_win_and_come_first() -> None:
    uri = OTPAuthURI.build("totp", "bob", "Acme", {"secret": SECRET, "digits": 6})
    pushed = uri.push({"digits": 8, "period": 60})
    assert list(pushed.query) == ["digits", "period", "secret", "issuer"]
    assert pushed.digits == 8
    assert pushed.secret == SECRET
    # The original is untouched.
    assert uri.digits == 6
    assert not uri.has("period")


def test_push_single_key() -> None:
    uri = OTPAuthURI.build("totp", "bob", options={"secret": SECRET}).push("algorithm", "SHA512")
    assert uri.algorithm == "SHA512"


def test_push_none_removes_key() -> None:
    uri = OTPAuthURI.build("totp", "bob", options={"secret": SECRET, "digits": 8})
    assert not uri.push("digits", None).has("digits")


def test_issuer_stays_in_sync() -> None:
    uri = OTPAuthURI.build("totp", "bob", "Acme", {"secret": SECRET})

    renamed = uri.with_issuer("Globex")
    assert renamed.issuer == "Globex"
    assert renamed.get("issuer") == "Globex"

    pushed = uri.push("issuer", "Initech")
    assert pushed.issuer == "Initech"
    assert pushed.label == "Initech:bob"

    cleared = uri.with_issuer(None)
    assert cleared.issuer is None
    assert not cleared.has("issuer")
    assert cleared.label == "bob"


def test_with_query_replaces_parameters() -> None:
    uri = OTPAuthURI.build("totp", "bob", "Acme", {"secret": SECRET, "digits": 8})
    replaced = uri.with_query({"secret": "GEZDGNBV"})
    assert replaced.secret == "GEZDGNBV"
    assert not replaced.has("digits")
    assert replaced.issuer == "Acme"
    assert replaced.get("issuer") == "Acme"


def test_field_setters() -> None:
    uri = OTPAuthURI.build("totp", "bob", options={"secret": SECRET})
    changed = (
        uri.with_type("hotp")
        .with_account("carol")
        .with_scheme("custom")
        .with_secret("GEZDGNBV")
        .with_algorithm("SHA256")
        .with_digits(8)
    )
    assert str(changed) == "custom://hotp/carol?digits=8&algorithm=SHA256&secret=GEZDGNBV"
    assert str(uri) == "otpauth://totp/bob?secret=JBSWY3DPEHPK3PXP"


def test_uri_is_immutable() -> None:
    uri = OTPAuthURI.build("totp", "bob", options={"secret": SECRET})
    with pytest.raises(AttributeError):
        uri.account = "eve"  # type: ignore[misc]


def test_query_cannot_be_mutated_in_place() -> None:
    uri = OTPAuthURI.build("totp", "bob", "Acme", {"secret": SECRET})
    with pytest.raises(TypeError):
        uri.query["issuer"] = "Globex"  # type: ignore[index]
    assert uri.issuer == "Acme"
    assert uri.get("issuer") == "Acme"


def test_uri_is_hashable() -> None:
    text = "otpauth://totp/Example:alice@host.com?secret=JBSWY3DPEHPK3PXP&issuer=Example"
    a = OTPAuthURI.from_string(text)
    b = OTPAuthURI.from_string(text)
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b, a.with_digits(8)}) == 2


@pytest.mark.parametrize("cleared", [None, ""])
def test_with_query_can_clear_issuer(cleared: Optional[str]) -> None:
    uri = OTPAuthURI.build("totp", "bob", "Acme", {"secret": SECRET})
    replaced = uri.with_query({"secret": SECRET, "issuer": cleared})
    assert replaced.issuer is None
    assert not replaced.has("issuer")
    assert str(replaced) == "otpauth://totp/bob?secret=JBSWY3DPEHPK3PXP"


def test_with_query_issuer_takes_over() -> None:
    uri = OTPAuthURI.build("totp", "bob", "Acme", {"secret": SECRET})
    replaced = uri.with_query({"secret": SECRET, "issuer": "Globex"})
    assert replaced.issuer == "Globex"
    assert replaced.label == "Globex:bob"
