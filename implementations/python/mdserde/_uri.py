"""Type URI parsing and formatting.

    serde://DOMAIN
    serde://DOMAIN/SEG1/SEG2/...

This module only splits and joins.  What the segments mean (names,
variants, lengths) is decided by the decoder per domain.

Segments are percent-encoded on the way out so that names containing
spaces, parentheses or "%" cannot break the surrounding link syntax.
"""

from __future__ import annotations

from typing import List, Tuple
from urllib.parse import quote, unquote

from ._constants import SCHEME
from ._errors import ERR_SCHEME, CodecError


def parse_type_uri(uri: str) -> Tuple[str, List[str]]:
    """Split a type URI into (domain, segments).

    A single trailing empty segment is dropped: "serde://seq/" is how
    older writers spelled a sequence of unknown length.
    """
    if not uri.startswith(SCHEME):
        raise CodecError(ERR_SCHEME, "type URI must start with {!r}: {!r}".format(SCHEME, uri))

    parts = uri[len(SCHEME):].split("/")
    domain = parts[0]
    if not domain:
        raise CodecError(ERR_SCHEME, "type URI has no domain: {!r}".format(uri))

    segments = parts[1:]
    if segments and segments[-1] == "":
        segments.pop()
    try:
        return domain, [unquote(seg, errors="strict") for seg in segments]
    except UnicodeDecodeError:
        raise CodecError(ERR_SCHEME, "bad percent-encoding in type URI: {!r}".format(uri))


def format_type_uri(domain: str, *segments: object) -> str:
    """Join a domain and segments into a type URI."""
    out = SCHEME + domain
    for seg in segments:
        out += "/" + quote(str(seg), safe="")
    return out
