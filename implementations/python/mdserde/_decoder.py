"""Decoder — node tree to Value.

Dispatch is on the domain of the type URI found on the node (an Anchor)
or on the marker item of the node (a Sublist).  Each domain fixes three
things: how many URI segments it takes, whether it is a bare anchor or
heads an ordered/unordered list, and how its children map to the value.

The walk is iterative.  A composite opens a _Frame listing the child
nodes still to decode ("slots"); children that are themselves composites
push frames of their own, and a finished frame builds its value and hands
it to its parent.  Depth is the height of that stack, bounded by
max_depth, so hostile nesting ends in ERR_DEPTH rather than a
RecursionError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from ._constants import (
    D_BLOB,
    D_BOOL,
    D_CHAR,
    D_MAP,
    D_NEWTYPE_STRUCT,
    D_NEWTYPE_VARIANT,
    D_OPTION,
    D_SEQ,
    D_STRING,
    D_STRUCT,
    D_STRUCT_VARIANT,
    D_TUPLE,
    D_TUPLE_STRUCT,
    D_TUPLE_VARIANT,
    D_UNIT,
    D_UNIT_STRUCT,
    D_UNIT_VARIANT,
    FLOAT_DOMAINS,
    INT_DOMAINS,
    LEGACY_ALIASES,
    LEGACY_UNIT_STRUCT_LABEL,
    MAX_DEPTH,
    OPTION_NONE,
    OPTION_SOME,
    SOME_LABEL,
    UNIT_LABEL,
)
from ._errors import (
    ERR_ARITY,
    ERR_DEPTH,
    ERR_SCHEME,
    ERR_STRUCTURE,
    ERR_VALUE,
    CodecError,
)
from ._escape import decode_blob, unescape
from ._scalars import marker_label, parse_float, parse_int
from ._tree import Anchor, Leaf, Node, Sublist
from ._uri import format_type_uri, parse_type_uri
from ._value import (
    Bool,
    Bytes,
    Char,
    Map,
    NewtypeStruct,
    NewtypeVariant,
    Option,
    Seq,
    String,
    Struct,
    StructVariant,
    Tuple as TupleValue,
    TupleStruct,
    TupleVariant,
    Unit,
    UnitStruct,
    UnitVariant,
    Value,
)

logger = logging.getLogger(__name__)

Path = Tuple[int, ...]

# How a domain sits in the tree.
BARE = "bare"
ORDERED = "ordered"
UNORDERED = "unordered"

_PRIMITIVES = frozenset([D_BOOL, D_CHAR, D_STRING, D_BLOB, D_UNIT]) \
    | frozenset(INT_DOMAINS) | frozenset(FLOAT_DOMAINS)

_STRING_URI = format_type_uri(D_STRING)


@dataclass(frozen=True)
class _Type:
    domain: str
    layout: str
    name: str = ""
    variant: str = ""
    length: Optional[int] = None
    some: bool = False

    @property
    def label(self) -> str:
        return marker_label(self.domain, self.name, self.variant, self.length, self.some)


# ── Type URI → shape ──────────────────────────────────────────

def _segments(uri: str, segs: List[str], lo: int, hi: Optional[int] = None) -> List[str]:
    hi = lo if hi is None else hi
    if not lo <= len(segs) <= hi:
        want = str(lo) if lo == hi else "{}-{}".format(lo, hi)
        raise CodecError(ERR_SCHEME, "{!r} takes {} path segment(s), got {}".format(
            uri, want, len(segs)))
    for seg in segs:
        if not seg:
            raise CodecError(ERR_SCHEME, "empty path segment in {!r}".format(uri))
        if "/" in seg:
            raise CodecError(ERR_SCHEME, "names cannot contain '/': {!r}".format(uri))
    return segs


def _length(uri: str, seg: str) -> int:
    if not seg.isdigit() or not seg.isascii() or len(seg) > 19:
        raise CodecError(ERR_SCHEME, "bad length {!r} in {!r}".format(seg, uri))
    return int(seg)


def resolve_type(uri: str) -> _Type:
    """Interpret a type URI: domain, names and declared length."""
    domain, segs = parse_type_uri(uri)
    if domain in LEGACY_ALIASES:
        _segments(uri, segs, 0)
        domain, alias = LEGACY_ALIASES[domain]
        segs = list(alias)

    if domain in _PRIMITIVES:
        _segments(uri, segs, 0)
        return _Type(domain, BARE)

    if domain == D_OPTION:
        (which,) = _segments(uri, segs, 1)
        if which == OPTION_NONE:
            return _Type(domain, BARE)
        if which == OPTION_SOME:
            return _Type(domain, ORDERED, some=True)
        raise CodecError(ERR_SCHEME, "option must be 'none' or 'some': {!r}".format(uri))

    if domain == D_UNIT_STRUCT:
        (name,) = _segments(uri, segs, 1)
        return _Type(domain, BARE, name=name)
    if domain == D_UNIT_VARIANT:
        name, variant = _segments(uri, segs, 2)
        return _Type(domain, BARE, name=name, variant=variant)
    if domain == D_NEWTYPE_STRUCT:
        (name,) = _segments(uri, segs, 1)
        return _Type(domain, ORDERED, name=name)
    if domain == D_NEWTYPE_VARIANT:
        name, variant = _segments(uri, segs, 2)
        return _Type(domain, ORDERED, name=name, variant=variant)

    if domain in (D_SEQ, D_MAP):
        layout = ORDERED if domain == D_SEQ else UNORDERED
        segs = _segments(uri, segs, 0, 1)
        length = _length(uri, segs[0]) if segs else None
        return _Type(domain, layout, length=length)
    if domain == D_TUPLE:
        (length,) = _segments(uri, segs, 1)
        return _Type(domain, ORDERED, length=_length(uri, length))
    if domain in (D_TUPLE_STRUCT, D_STRUCT):
        layout = ORDERED if domain == D_TUPLE_STRUCT else UNORDERED
        name, length = _segments(uri, segs, 2)
        return _Type(domain, layout, name=name, length=_length(uri, length))
    if domain in (D_TUPLE_VARIANT, D_STRUCT_VARIANT):
        layout = ORDERED if domain == D_TUPLE_VARIANT else UNORDERED
        name, variant, length = _segments(uri, segs, 3)
        return _Type(domain, layout, name=name, variant=variant,
                     length=_length(uri, length))

    raise CodecError(ERR_SCHEME, "unknown domain {!r}".format(domain))


# ── Bare anchors ──────────────────────────────────────────────

def _no_surrogates(text: str) -> None:
    for ch in text:
        if 0xD800 <= ord(ch) <= 0xDFFF:
            raise CodecError(ERR_VALUE, "surrogate code point U+{:04X}".format(ord(ch)))


def _check_name(ty: _Type, label: str, strict: bool) -> None:
    if ty.domain == D_UNIT_STRUCT and label == LEGACY_UNIT_STRUCT_LABEL:
        return
    if strict and label != ty.label:
        raise CodecError(ERR_STRUCTURE, "label {!r} does not match {!r}".format(label, ty.label))


def _decode_bare(ty: _Type, label: str, strict: bool) -> Value:
    d = ty.domain
    text = unescape(label)

    if d == D_BOOL:
        if text == "true":
            return Bool(True)
        if text == "false":
            return Bool(False)
        raise CodecError(ERR_VALUE, "not a bool: {!r}".format(text))
    if d in INT_DOMAINS:
        width, signed = INT_DOMAINS[d]
        return parse_int(text, width, signed)
    if d in FLOAT_DOMAINS:
        return parse_float(text, FLOAT_DOMAINS[d])
    if d == D_CHAR:
        _no_surrogates(text)
        if len(text) != 1:
            raise CodecError(ERR_VALUE, "char must be exactly one character: {!r}".format(text))
        return Char(text)
    if d == D_STRING:
        _no_surrogates(text)
        return String(text)
    if d == D_BLOB:
        return Bytes(decode_blob(text))
    if d == D_UNIT:
        if text != UNIT_LABEL:
            raise CodecError(ERR_VALUE, "unit must be written {!r}: {!r}".format(UNIT_LABEL, text))
        return Unit()

    _check_name(ty, text, strict)
    if d == D_OPTION:
        return Option(None)
    if d == D_UNIT_STRUCT:
        return UnitStruct(ty.name)
    if d == D_UNIT_VARIANT:
        return UnitVariant(ty.name, ty.variant)
    raise CodecError(ERR_STRUCTURE, "{} cannot be a bare link".format(d))


# ── Composite frames ──────────────────────────────────────────

Slot = Tuple[Node, Optional[str], Path]


class _Frame:
    __slots__ = ("slots", "build", "results", "next")

    def __init__(self, slots: List[Slot], build: Callable[[List[Any]], Value]) -> None:
        self.slots = slots
        self.build = build
        self.results: List[Any] = []
        self.next = 0


def _pairs(results: List[Any]) -> List[Tuple[Any, Any]]:
    return list(zip(results[0::2], results[1::2]))


def _field_names(results: List[Any]) -> List[Tuple[str, Value]]:
    return [(key.value, value) for key, value in _pairs(results)]


def _open_frame(ty: _Type, node: Sublist, path: Path) -> _Frame:
    items = node.items[1:]
    d = ty.domain

    if d in (D_OPTION, D_NEWTYPE_STRUCT, D_NEWTYPE_VARIANT):
        if len(items) != 1:
            raise CodecError(ERR_STRUCTURE, "{} holds exactly one value, found {}".format(
                ty.label, len(items)))
        slots: List[Slot] = [(items[0], None, path + (1,))]
        if d == D_OPTION:
            return _Frame(slots, lambda r: Option(r[0]))
        if d == D_NEWTYPE_STRUCT:
            return _Frame(slots, lambda r: NewtypeStruct(ty.name, r[0]))
        return _Frame(slots, lambda r: NewtypeVariant(ty.name, ty.variant, r[0]))

    if ty.length is not None and len(items) != ty.length:
        raise CodecError(ERR_ARITY, "{} declares {} element(s), found {}".format(
            ty.label, ty.length, len(items)))

    if d in (D_SEQ, D_TUPLE, D_TUPLE_STRUCT, D_TUPLE_VARIANT):
        slots = [(item, None, path + (i,)) for i, item in enumerate(items, 1)]
        if d == D_SEQ:
            return _Frame(slots, lambda r: Seq(r, ty.length))
        if d == D_TUPLE:
            return _Frame(slots, lambda r: TupleValue(r, ty.length))
        if d == D_TUPLE_STRUCT:
            return _Frame(slots, lambda r: TupleStruct(ty.name, r, ty.length))
        return _Frame(slots, lambda r: TupleVariant(ty.name, ty.variant, r, ty.length))

    # Maps and structs: every entry is a marker-less [key, value] ordered list.
    key_uri = None if d == D_MAP else _STRING_URI
    slots = []
    for i, entry in enumerate(items, 1):
        if not isinstance(entry, Sublist) or not entry.ordered or len(entry.items) != 2:
            raise CodecError(ERR_STRUCTURE, "entry must be an ordered [key, value] list",
                             path=path + (i,), line=getattr(entry, "line", None))
        slots.append((entry.items[0], key_uri, path + (i, 0)))
        slots.append((entry.items[1], None, path + (i, 1)))

    if d == D_MAP:
        return _Frame(slots, lambda r: Map(_pairs(r), ty.length))
    if d == D_STRUCT:
        return _Frame(slots, lambda r: Struct(ty.name, _field_names(r), ty.length))
    return _Frame(slots, lambda r: StructVariant(ty.name, ty.variant, _field_names(r), ty.length))


def _check_expected(ty: _Type, expected: Optional[str]) -> None:
    if expected is None:
        return
    want = resolve_type(expected)
    if want.domain != ty.domain:
        raise CodecError(ERR_STRUCTURE, "expected {}, found {}".format(want.domain, ty.domain))


def _open(node: Node, expected: Optional[str], path: Path,
          strict: bool) -> Tuple[Optional[Value], Optional[_Frame]]:
    """Decode a bare node right away, or open a frame for a composite."""
    if isinstance(node, Leaf):
        if expected is None:
            raise CodecError(ERR_STRUCTURE, "plain text {!r} has no type".format(node.text))
        ty = resolve_type(expected)
        if ty.layout != BARE:
            raise CodecError(ERR_STRUCTURE, "plain text cannot hold {}".format(ty.domain))
        return _decode_bare(ty, node.text, strict), None

    if isinstance(node, Anchor):
        ty = resolve_type(node.uri)
        _check_expected(ty, expected)
        if ty.layout != BARE:
            raise CodecError(ERR_STRUCTURE, "{} needs a list".format(node.uri))
        return _decode_bare(ty, node.label, strict), None

    if isinstance(node, Sublist):
        if not node.items or not isinstance(node.items[0], Anchor):
            raise CodecError(ERR_STRUCTURE, "list has no marker item")
        marker = node.items[0]
        ty = resolve_type(marker.uri)
        _check_expected(ty, expected)
        if ty.layout == BARE:
            raise CodecError(ERR_STRUCTURE, "{} cannot head a list".format(marker.uri))
        if node.ordered != (ty.layout == ORDERED):
            raise CodecError(ERR_STRUCTURE, "{} needs an {} list".format(ty.domain, ty.layout))
        label = unescape(marker.label)
        if ty.some and label != SOME_LABEL:
            raise CodecError(ERR_STRUCTURE, "option/some marker must read {!r}, got {!r}".format(
                SOME_LABEL, label))
        _check_name(ty, label, strict)
        return None, _open_frame(ty, node, path)

    raise CodecError(ERR_STRUCTURE, "not a node: {}".format(type(node).__name__))


def _located_open(node: Node, expected: Optional[str], path: Path,
                  strict: bool) -> Tuple[Optional[Value], Optional[_Frame]]:
    try:
        return _open(node, expected, path, strict)
    except CodecError as e:
        raise e.locate(path, getattr(node, "line", None))


# ── Public entry point ────────────────────────────────────────

def decode(node: Node, expected_uri: Optional[str] = None, *,
           max_depth: int = MAX_DEPTH, strict_markers: bool = True) -> Value:
    """Decode a node tree into a Value.

    `expected_uri` types a root Leaf, or constrains the domain of a root
    Anchor/list.  With `strict_markers` every marker and name label must
    match the URI; without it only the "Some" marker is checked.
    """
    value, frame = _located_open(node, expected_uri, (), strict_markers)
    if frame is None:
        return value  # type: ignore[return-value]

    stack = [frame]
    while True:
        top = stack[-1]
        if top.next < len(top.slots):
            child, expected, path = top.slots[top.next]
            top.next += 1
            value, frame = _located_open(child, expected, path, strict_markers)
            if frame is None:
                top.results.append(value)
            elif len(stack) >= max_depth:
                raise CodecError(ERR_DEPTH, "nesting exceeds {}".format(max_depth),
                                 path=path, line=getattr(child, "line", None))
            else:
                stack.append(frame)
            continue

        stack.pop()
        value = top.build(top.results)
        if not stack:
            logger.debug("decoded %s", type(value).__name__)
            return value
        stack[-1].results.append(value)
