"""Escaping of label text and base64 for blobs.

Escape rules (what escape() writes, what unescape() reads):

    ASCII punctuation      → backslash + the character   ( "*" → "\\*" )
    control / line breaks  → hexadecimal character reference ( "\\n" → "&#xA;" )
    everything else        → itself

Both are Markdown's own mechanisms, so an escaped label renders as the
original text in any CommonMark viewer.  Escaping every punctuation
character (not just the ones that are markup in the current position)
keeps the rule context-free: the same label is valid after a bullet, at
the start of a document, or inside a link.

unescape() follows CommonMark: a backslash before anything that is not
ASCII punctuation is a literal backslash, and an "&" that does not start
a numeric character reference is a literal "&".
"""

from __future__ import annotations

import base64
import binascii
import re
import string
import unicodedata

from ._errors import ERR_VALUE, CodecError

_PUNCT = frozenset(string.punctuation)
_ENTITY = re.compile(r"&#(?:[xX]([0-9A-Fa-f]{1,6})|([0-9]{1,7}));")
_BLOB = re.compile(r"[A-Za-z0-9_-]*={0,2}")


def _needs_reference(ch: str) -> bool:
    # Cc covers NUL, CR, LF and friends; Zl/Zp are U+2028/U+2029, which
    # str.splitlines() would otherwise treat as line breaks.
    return unicodedata.category(ch) in ("Cc", "Zl", "Zp")


def escape(text: str) -> str:
    """Escape text so it can sit anywhere a label or leaf may appear."""
    out = []
    for ch in text:
        if ch in _PUNCT:
            out.append("\\" + ch)
        elif _needs_reference(ch):
            out.append("&#x{:X};".format(ord(ch)))
        else:
            out.append(ch)
    return "".join(out)


def unescape(text: str) -> str:
    """Inverse of escape().  Raises ERR_VALUE on an invalid code point."""
    out = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\" and i + 1 < n and text[i + 1] in _PUNCT:
            out.append(text[i + 1])
            i += 2
            continue
        if ch == "&":
            m = _ENTITY.match(text, i)
            if m:
                cp = int(m.group(1), 16) if m.group(1) else int(m.group(2))
                if cp > 0x10FFFF or 0xD800 <= cp <= 0xDFFF:
                    raise CodecError(ERR_VALUE,
                                     "invalid character reference {!r}".format(m.group(0)))
                out.append(chr(cp))
                i = m.end()
                continue
        out.append(ch)
        i += 1
    return "".join(out)


# ── Blobs ─────────────────────────────────────────────────────
# URL-safe alphabet with standard "=" padding.  The alphabet contains
# "-", "_" and "=", which escape() would backslash, so blob labels are
# written verbatim instead.

def encode_blob(data: bytes) -> str:
    return base64.urlsafe_b64encode(bytes(data)).decode("ascii")


def decode_blob(text: str) -> bytes:
    """Decode padded URL-safe base64.  Raises ERR_VALUE on bad input."""
    if len(text) % 4 != 0 or not _BLOB.fullmatch(text):
        raise CodecError(ERR_VALUE, "invalid base64 blob {!r}".format(text[:40]))
    try:
        return base64.urlsafe_b64decode(text)
    except binascii.Error as e:
        raise CodecError(ERR_VALUE, "invalid base64 blob: {}".format(e))
