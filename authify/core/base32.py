"""
Base32 codec (RFC 4648, section 6).

Unlike :func:`base64.b32decode`, :func:`decode` is lenient about the things
humans get wrong when typing a secret: lower case, embedded spaces and
missing ``=`` padding. Leftover bits at the end of the input are treated as
padding and dropped.
"""

import re

from authify.core.errors import InvalidEncoding

# ── Constants ────────────────────────────────────────────────────────────────

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
PAD_CHAR = "="

# Both cases map to the same value; str.upper() would fold non-ASCII
# characters such as "ß" into the alphabet.
_INDEX = {ch: i for i, ch in enumerate(ALPHABET)}
_INDEX.update({ch.lower(): i for i, ch in enumerate(ALPHABET)})
_WHITESPACE = re.compile(r"\s+")


# ── Encode / decode ──────────────────────────────────────────────────────────

def encode(data: bytes, padding: bool = False) -> str:
    """
    Encode raw bytes as uppercase Base32.

    Args:
        data:    Bytes to encode.
        padding: Append ``=`` up to a multiple of 8 characters.

    Returns:
        Base32 text (empty for empty input).
    """
    if not data:
        return ""

    nbits = len(data) * 8
    value = int.from_bytes(data, "big")

    # Right-pad the bit string so it splits evenly into 5-bit groups.
    extra = -nbits % 5
    value <<= extra
    nchars = (nbits + extra) // 5

    out = [
        ALPHABET[(value >> (5 * (nchars - 1 - i))) & 0x1F]
        for i in range(nchars)
    ]
    if padding:
        out.append(PAD_CHAR * (-nchars % 8))
    return "".join(out)


def decode(text: str) -> bytes:
    """
    Decode Base32 text to raw bytes.

    Args:
        text: Base32 string; case, whitespace and padding are forgiven.

    Returns:
        Decoded bytes. Incomplete trailing octets are discarded.

    Raises:
        InvalidEncoding: If a character outside ``A-Z2-7`` is present.
    """
    clean = _WHITESPACE.sub("", text).rstrip(PAD_CHAR)
    if not clean:
        return b""

    value = 0
    for ch in clean:
        try:
            value = (value << 5) | _INDEX[ch]
        except KeyError:
            raise InvalidEncoding(f"Invalid Base32 character: {ch!r}") from None

    nbits = len(clean) * 5
    nbytes = nbits // 8
    value >>= nbits - nbytes * 8
    return value.to_bytes(nbytes, "big")
