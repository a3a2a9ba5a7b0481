"""Text forms of numbers and the labels written on marker items."""

from __future__ import annotations

import math
import re
from typing import Optional

from ._constants import (
    D_MAP,
    D_NEWTYPE_STRUCT,
    D_NEWTYPE_VARIANT,
    D_OPTION,
    D_SEQ,
    D_STRUCT,
    D_STRUCT_VARIANT,
    D_TUPLE,
    D_TUPLE_STRUCT,
    D_TUPLE_VARIANT,
    D_UNIT_STRUCT,
    D_UNIT_VARIANT,
    NONE_LABEL,
    SOME_LABEL,
    int_range,
)
from ._errors import ERR_VALUE, CodecError
from ._value import Float, Integer, to_f32

_INT = re.compile(r"[+-]?[0-9]+")
_FLOAT = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)


# ── Integers ──────────────────────────────────────────────────

def check_int(value: int, width: int, signed: bool) -> None:
    lo, hi = int_range(width, signed)
    if not lo <= value <= hi:
        raise CodecError(ERR_VALUE, "{} out of range for {}{}".format(
            value, "i" if signed else "u", width))


def parse_int(text: str, width: int, signed: bool) -> Integer:
    # int() alone would accept "1_000" and surrounding whitespace.
    if not _INT.fullmatch(text) or (not signed and text.startswith("-")):
        raise CodecError(ERR_VALUE, "not a {}{}: {!r}".format(
            "i" if signed else "u", width, text))
    try:
        value = int(text)
    except ValueError:
        # Longer than the interpreter will convert; far outside any width.
        raise CodecError(ERR_VALUE, "integer literal too long: {!r}".format(text[:40]))
    check_int(value, width, signed)
    return Integer(value, width, signed)


# ── Floats ────────────────────────────────────────────────────

def parse_float(text: str, width: int) -> Float:
    if not _FLOAT.fullmatch(text):
        raise CodecError(ERR_VALUE, "not an f{}: {!r}".format(width, text))
    value = float(text)
    if width == 32:
        value = to_f32(value)
    return Float(value, width)


def format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return repr(float(value))


# ── Marker labels ─────────────────────────────────────────────
# The human-readable text of a marker item.  Decoding with
# strict_markers=True requires the label to match this exactly.

def marker_label(domain: str, name: str = "", variant: str = "",
                 length: Optional[int] = None, some: bool = False) -> str:
    path = "{}::{}".format(name, variant)
    if domain == D_OPTION:
        return SOME_LABEL if some else NONE_LABEL
    if domain in (D_UNIT_STRUCT, D_NEWTYPE_STRUCT):
        return name
    if domain in (D_UNIT_VARIANT, D_NEWTYPE_VARIANT):
        return path
    if domain == D_SEQ:
        if length is None:
            return "Seq of unknown length"
        return "Seq of length {}".format(length)
    if domain == D_TUPLE:
        return "Tuple of length {}".format(length)
    if domain == D_TUPLE_STRUCT:
        return "Tuple struct {} of length {}".format(name, length)
    if domain == D_TUPLE_VARIANT:
        return "Tuple variant {} of length {}".format(path, length)
    if domain == D_MAP:
        if length is None:
            return "Map of unknown length"
        return "Map of length {}".format(length)
    if domain == D_STRUCT:
        return "Struct {} of length {}".format(name, length)
    if domain == D_STRUCT_VARIANT:
        return "Struct variant {} of length {}".format(path, length)
    raise ValueError("no marker label for domain {!r}".format(domain))
