"""Line scanner for the Markdown subset.

Each input line becomes one or two tokens:

    "    0. [8](serde://u64)"  →  ORDERED_ITEM(indent=4), LINK("8", "serde://u64")
    "* "                       →  UNORDERED_ITEM(indent=0)
    "[x](serde://string)"      →  LINK("x", "serde://string")
    "plain words"              →  PLAIN_TEXT("plain words")
    ""                         →  BLANK

Labels and plain text are returned exactly as written (still escaped).
Constructs outside the subset (headings, fences, quotes, emphasis, code
spans, "-"/"+" bullets, reference links) raise ERR_GRAMMAR here rather
than being passed on as text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from ._errors import ERR_GRAMMAR, ERR_INDENT, CodecError

LINK = "link"
ORDERED_ITEM = "ordered_item"
UNORDERED_ITEM = "unordered_item"
PLAIN_TEXT = "plain_text"
BLANK = "blank"

_ORDERED = re.compile(r"([0-9]{1,9})\.(?= |$)")
_THEMATIC = re.compile(r"(?:[-*_=] *){3,}")


@dataclass(frozen=True)
class Token:
    kind: str
    line: int
    indent: int = 0
    text: str = ""
    uri: str = ""


def _grammar(msg: str, line: int) -> CodecError:
    return CodecError(ERR_GRAMMAR, msg, line=line)


def _item_marker(rest: str, line: int) -> Tuple[Optional[str], int]:
    """Return (item kind, marker width) for the start of `rest`, if any."""
    m = _ORDERED.match(rest)
    if m:
        return ORDERED_ITEM, m.end()
    if rest[0] == "*" and (len(rest) == 1 or rest[1] == " "):
        return UNORDERED_ITEM, 1
    if rest[0] in "-+" and (len(rest) == 1 or rest[1] == " "):
        raise _grammar("unsupported bullet {!r}; use '*' or 'N.'".format(rest[0]), line)
    return None, 0


def _match_link(content: str, line: int) -> Optional[Tuple[str, str]]:
    """Parse `[label](uri)`.  None means "not a link, read as plain text"."""
    if not content.startswith("["):
        return None

    i = 1
    n = len(content)
    while i < n:
        c = content[i]
        if c == "\\":
            i += 2
            continue
        if c == "]":
            break
        i += 1
    else:
        return None

    label = content[1:i]
    after = content[i + 1:]
    if after.startswith("["):
        raise _grammar("reference-style links are not supported", line)
    if not after.startswith("("):
        return None

    close = after.find(")")
    if close < 0:
        raise _grammar("unterminated link target", line)
    uri = after[1:close]
    if not uri or any(c.isspace() or c == "(" for c in uri):
        raise _grammar("malformed link target {!r}".format(uri), line)
    if after[close + 1:].strip():
        raise _grammar("unexpected text after link", line)
    return label, uri


def _check_plain(text: str, line: int) -> None:
    if text.startswith("#"):
        raise _grammar("headings are not supported", line)
    if text.startswith("```") or text.startswith("~~~"):
        raise _grammar("code fences are not supported", line)
    if text.startswith(">"):
        raise _grammar("block quotes are not supported", line)
    if text.startswith("<"):
        raise _grammar("HTML is not supported", line)
    if _THEMATIC.fullmatch(text):
        raise _grammar("thematic breaks are not supported", line)

    i = 0
    while i < len(text):
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if c in "*_":
            raise _grammar("unescaped {!r} (emphasis is not supported)".format(c), line)
        if c == "`":
            raise _grammar("code spans are not supported", line)
        i += 1


def _content_token(content: str, line: int, indent: int) -> Token:
    link = _match_link(content, line)
    if link is not None:
        label, uri = link
        return Token(LINK, line, indent, label, uri)
    _check_plain(content, line)
    return Token(PLAIN_TEXT, line, indent, content)


def scan(text: str) -> Iterator[Token]:
    """Lazily tokenize `text`, one line at a time."""
    for lineno, raw in enumerate(text.split("\n"), 1):
        if raw.endswith("\r"):
            raw = raw[:-1]
        if not raw.strip():
            yield Token(BLANK, lineno)
            continue

        rest = raw.lstrip(" ")
        indent = len(raw) - len(rest)
        if rest[0] == "\t":
            raise CodecError(ERR_INDENT, "tab in indentation", line=lineno)

        kind, width = _item_marker(rest, lineno)
        if kind is None:
            yield _content_token(rest.rstrip(), lineno, indent)
            continue

        yield Token(kind, lineno, indent)
        content = rest[width:].strip()
        if not content:
            continue
        if _item_marker(content, lineno)[0] is not None:
            raise _grammar("several list markers on one line", lineno)
        yield _content_token(content, lineno, indent)
