"""Encoder — Value to node tree.

Structural mirror of _decoder: the same domains, the same marker-item
convention, the same explicit-stack walk.  Values are validated on the
way down (declared lengths, integer ranges, names), so anything that
encodes without error decodes back to an equal value.
"""

from __future__ import annotations

import logging
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
    FLOAT_WIDTHS,
    INT_WIDTHS,
    MAX_DEPTH,
    OPTION_NONE,
    OPTION_SOME,
    UNIT_LABEL,
)
from ._errors import ERR_ARITY, ERR_DEPTH, ERR_SCHEME, ERR_VALUE, CodecError
from ._escape import encode_blob, escape
from ._scalars import check_int, format_float, marker_label
from ._tree import Anchor, Node, Sublist
from ._uri import format_type_uri
from ._value import (
    Bool,
    Bytes,
    Char,
    Float,
    Integer,
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
Slot = Tuple[Value, Path]

_STRING_URI = format_type_uri(D_STRING)


class _Frame:
    __slots__ = ("slots", "build", "results", "next")

    def __init__(self, slots: List[Slot], build: Callable[[List[Node]], Node]) -> None:
        self.slots = slots
        self.build = build
        self.results: List[Node] = []
        self.next = 0


# ── Checks ────────────────────────────────────────────────────

def _check_names(*names: Any) -> None:
    for name in names:
        if not isinstance(name, str) or not name:
            raise CodecError(ERR_SCHEME, "names must be non-empty strings: {!r}".format(name))
        if "/" in name:
            raise CodecError(ERR_SCHEME, "names cannot contain '/': {!r}".format(name))


def _check_length(label: str, declared: Optional[int], actual: int) -> None:
    if declared is not None and declared != actual:
        raise CodecError(ERR_ARITY, "{} declares {} element(s), holds {}".format(
            label, declared, actual))


def _check_text(text: Any) -> str:
    if not isinstance(text, str):
        raise CodecError(ERR_VALUE, "expected text, got {}".format(type(text).__name__))
    for ch in text:
        if 0xD800 <= ord(ch) <= 0xDFFF:
            raise CodecError(ERR_VALUE, "surrogate code point U+{:04X}".format(ord(ch)))
    return text


def _marker(domain: str, segments: Tuple[Any, ...], **label: Any) -> Anchor:
    return Anchor(escape(marker_label(domain, **label)), format_type_uri(domain, *segments))


# ── Scalars ───────────────────────────────────────────────────

def _encode_bare(value: Value) -> Optional[Node]:
    """Encode a value that needs no list.  None for composites."""
    if isinstance(value, Bool):
        return Anchor("true" if value.value else "false", format_type_uri(D_BOOL))
    if isinstance(value, Integer):
        if value.width not in INT_WIDTHS:
            raise CodecError(ERR_VALUE, "unsupported integer width {}".format(value.width))
        check_int(value.value, value.width, value.signed)
        return Anchor(str(int(value.value)), format_type_uri(value.domain))
    if isinstance(value, Float):
        if value.width not in FLOAT_WIDTHS:
            raise CodecError(ERR_VALUE, "unsupported float width {}".format(value.width))
        return Anchor(format_float(value.value), format_type_uri(value.domain))
    if isinstance(value, Char):
        if len(_check_text(value.value)) != 1:
            raise CodecError(ERR_VALUE, "char must be exactly one character: {!r}".format(
                value.value))
        return Anchor(escape(value.value), format_type_uri(D_CHAR))
    if isinstance(value, String):
        return Anchor(escape(_check_text(value.value)), _STRING_URI)
    if isinstance(value, Bytes):
        return Anchor(encode_blob(value.value), format_type_uri(D_BLOB))
    if isinstance(value, Unit):
        return Anchor(escape(UNIT_LABEL), format_type_uri(D_UNIT))
    if isinstance(value, Option) and value.value is None:
        return _marker(D_OPTION, (OPTION_NONE,))
    if isinstance(value, UnitStruct):
        _check_names(value.name)
        return _marker(D_UNIT_STRUCT, (value.name,), name=value.name)
    if isinstance(value, UnitVariant):
        _check_names(value.name, value.variant)
        return _marker(D_UNIT_VARIANT, (value.name, value.variant),
                       name=value.name, variant=value.variant)
    return None


# ── Composites ────────────────────────────────────────────────

def _ordered(marker: Anchor) -> Callable[[List[Node]], Node]:
    return lambda r: Sublist(True, [marker] + r)


def _entries(marker: Anchor, keys: Optional[List[Node]] = None) -> Callable[[List[Node]], Node]:
    """Builder for an unordered map/struct list.

    Without `keys`, results alternate key, value.  With `keys` (struct
    field names), results hold only the values.
    """
    def build(r: List[Node]) -> Node:
        if keys is None:
            pairs = zip(r[0::2], r[1::2])
        else:
            pairs = zip(keys, r)
        return Sublist(False, [marker] + [Sublist(True, [k, v]) for k, v in pairs])
    return build


def _field_keys(fields: Tuple[Any, ...]) -> List[Node]:
    return [Anchor(escape(_check_text(name)), _STRING_URI) for name, _ in fields]


def _open_frame(value: Value, path: Path) -> _Frame:
    if isinstance(value, Option):
        marker = _marker(D_OPTION, (OPTION_SOME,), some=True)
        return _Frame([(value.value, path + (1,))], _ordered(marker))
    if isinstance(value, NewtypeStruct):
        _check_names(value.name)
        marker = _marker(D_NEWTYPE_STRUCT, (value.name,), name=value.name)
        return _Frame([(value.value, path + (1,))], _ordered(marker))
    if isinstance(value, NewtypeVariant):
        _check_names(value.name, value.variant)
        marker = _marker(D_NEWTYPE_VARIANT, (value.name, value.variant),
                         name=value.name, variant=value.variant)
        return _Frame([(value.value, path + (1,))], _ordered(marker))

    if isinstance(value, (Seq, TupleValue, TupleStruct, TupleVariant)):
        if isinstance(value, Seq):
            segs: Tuple[Any, ...] = () if value.length is None else (value.length,)
            marker = _marker(D_SEQ, segs, length=value.length)
        elif isinstance(value, TupleValue):
            marker = _marker(D_TUPLE, (value.length,), length=value.length)
        elif isinstance(value, TupleStruct):
            _check_names(value.name)
            marker = _marker(D_TUPLE_STRUCT, (value.name, value.length),
                             name=value.name, length=value.length)
        else:
            _check_names(value.name, value.variant)
            marker = _marker(D_TUPLE_VARIANT, (value.name, value.variant, value.length),
                             name=value.name, variant=value.variant, length=value.length)
        _check_length(marker.label, value.length, len(value.items))
        slots = [(item, path + (i,)) for i, item in enumerate(value.items, 1)]
        return _Frame(slots, _ordered(marker))

    if isinstance(value, Map):
        segs = () if value.length is None else (value.length,)
        marker = _marker(D_MAP, segs, length=value.length)
        _check_length(marker.label, value.length, len(value.entries))
        slots = []
        for i, (k, v) in enumerate(value.entries, 1):
            slots.append((k, path + (i, 0)))
            slots.append((v, path + (i, 1)))
        return _Frame(slots, _entries(marker))

    if isinstance(value, (Struct, StructVariant)):
        if isinstance(value, Struct):
            _check_names(value.name)
            marker = _marker(D_STRUCT, (value.name, value.length),
                             name=value.name, length=value.length)
        else:
            _check_names(value.name, value.variant)
            marker = _marker(D_STRUCT_VARIANT, (value.name, value.variant, value.length),
                             name=value.name, variant=value.variant, length=value.length)
        _check_length(marker.label, value.length, len(value.fields))
        slots = [(v, path + (i, 1)) for i, (_, v) in enumerate(value.fields, 1)]
        return _Frame(slots, _entries(marker, _field_keys(value.fields)))

    raise CodecError(ERR_VALUE, "not a Value: {}".format(type(value).__name__))


def _open(value: Value, path: Path) -> Tuple[Optional[Node], Optional[_Frame]]:
    try:
        node = _encode_bare(value)
        if node is not None:
            return node, None
        return None, _open_frame(value, path)
    except CodecError as e:
        raise e.locate(path)


# ── Public entry point ────────────────────────────────────────

def encode(value: Value, *, max_depth: int = MAX_DEPTH) -> Node:
    """Encode a Value into a node tree (see render() for the text)."""
    node, frame = _open(value, ())
    if frame is None:
        return node  # type: ignore[return-value]

    stack = [frame]
    while True:
        top = stack[-1]
        if top.next < len(top.slots):
            child, path = top.slots[top.next]
            top.next += 1
            node, frame = _open(child, path)
            if frame is None:
                top.results.append(node)  # type: ignore[arg-type]
            elif len(stack) >= max_depth:
                raise CodecError(ERR_DEPTH, "nesting exceeds {}".format(max_depth), path=path)
            else:
                stack.append(frame)
            continue

        stack.pop()
        node = top.build(top.results)
        if not stack:
            logger.debug("encoded %s", type(value).__name__)
            return node
        stack[-1].results.append(node)
