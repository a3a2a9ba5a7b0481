"""JSON adapter — JSON documents to Values and back.

JSON → Value (the mapping a self-describing JSON reader reports):
    object  → Map of unknown length, keys are String, duplicates kept
    array   → Seq of unknown length
    string  → String
    boolean → Bool
    integer → u64 when >= 0, i64 when negative, f64 beyond both ranges
    float   → f64
    null    → Unit

Value → JSON follows the usual serde_json conventions: options and
newtypes are transparent, enum variants with data become a one-key
object {"Variant": payload}, unit variants become the variant name,
bytes become an array of numbers.

Python's json module hands us floats and ints after the fact, and it
collapses duplicate object keys.  We intercept both at the token level:
parse_int keeps exact integers, object_pairs_hook keeps every pair.
"""

from __future__ import annotations

import json
import math
from typing import Any, Dict, List, Tuple, Union

from ._constants import I64_MIN, MAX_DEPTH, U64_MAX
from ._errors import ERR_DEPTH, ERR_VALUE, CodecError
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


_SCALARS = (Bool, Integer, Float, Char, String, Bytes, Unit, UnitStruct, UnitVariant)


class _Pairs(list):
    """An object as parsed: the ordered list of (key, value) pairs."""


def _reject_constant(token: str) -> Any:
    raise CodecError(ERR_VALUE, "JSON constant not allowed: {}".format(token))


# ── JSON → Value ──────────────────────────────────────────────

def json_parse(raw: Union[bytes, str]) -> Any:
    """Parse JSON text keeping duplicate keys (objects come back as _Pairs)."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise CodecError(ERR_VALUE, "invalid UTF-8 in JSON input")
    try:
        return json.loads(
            raw,
            object_pairs_hook=_Pairs,
            parse_int=int,
            parse_constant=_reject_constant,
        )
    except json.JSONDecodeError as e:
        raise CodecError(ERR_VALUE, "JSON parse error: {}".format(e))
    except ValueError as e:
        # int() refuses literals past the interpreter's digit limit.
        raise CodecError(ERR_VALUE, "JSON number rejected: {}".format(e))
    except RecursionError:
        raise CodecError(ERR_DEPTH, "JSON nesting too deep")


def _json_number(x: Union[int, float]) -> Value:
    if isinstance(x, int):
        if 0 <= x <= U64_MAX:
            return Integer(x, 64, False)
        if I64_MIN <= x < 0:
            return Integer(x, 64, True)
        try:
            return Float(float(x))
        except OverflowError:
            raise CodecError(ERR_VALUE, "number out of range")
    if not math.isfinite(x):
        raise CodecError(ERR_VALUE, "number out of range")
    return Float(x)


def json_to_value(x: Any, depth: int = 1, *, max_depth: int = MAX_DEPTH) -> Value:
    """Convert a parsed JSON value (see json_parse) to a Value.

    `depth` counts containers: scalars do not add a level.
    """
    if isinstance(x, list) and depth > max_depth:
        raise CodecError(ERR_DEPTH, "JSON nesting exceeds {}".format(max_depth))

    if isinstance(x, _Pairs):
        return Map([(String(k), json_to_value(v, depth + 1, max_depth=max_depth))
                    for k, v in x])

    if isinstance(x, list):
        return Seq([json_to_value(v, depth + 1, max_depth=max_depth) for v in x])

    if isinstance(x, str):
        return String(x)

    # bool before int: isinstance(True, int) is True.
    if isinstance(x, bool):
        return Bool(x)

    if isinstance(x, (int, float)):
        return _json_number(x)

    if x is None:
        return Unit()

    raise CodecError(ERR_VALUE, "unexpected JSON type: {}".format(type(x).__name__))


# ── Value → JSON ──────────────────────────────────────────────

def _json_key(key: Value) -> str:
    if isinstance(key, (String, Char)):
        return key.value
    if isinstance(key, Bool):
        return "true" if key.value else "false"
    if isinstance(key, Integer):
        return str(key.value)
    if isinstance(key, UnitVariant):
        return key.variant
    if isinstance(key, NewtypeStruct):
        return _json_key(key.value)
    raise CodecError(ERR_VALUE, "JSON object key must be a string, got {}".format(
        type(key).__name__))


def _json_object(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    # JSON objects cannot repeat keys; the last occurrence wins.
    out: Dict[str, Any] = {}
    for k, v in pairs:
        out[k] = v
    return out


def value_to_json(value: Value, depth: int = 1, *, max_depth: int = MAX_DEPTH) -> Any:
    """Convert a Value to plain JSON-compatible Python data."""
    if depth > max_depth and not isinstance(value, _SCALARS):
        raise CodecError(ERR_DEPTH, "nesting exceeds {}".format(max_depth))

    def sub(v: Value) -> Any:
        return value_to_json(v, depth + 1, max_depth=max_depth)

    if isinstance(value, (Bool, Integer, String, Char)):
        return value.value
    if isinstance(value, Float):
        if not math.isfinite(value.value):
            raise CodecError(ERR_VALUE, "JSON cannot hold {!r}".format(value.value))
        return value.value
    if isinstance(value, Bytes):
        return list(value.value)
    if isinstance(value, (Unit, UnitStruct)):
        return None
    if isinstance(value, Option):
        return None if value.value is None else sub(value.value)
    if isinstance(value, UnitVariant):
        return value.variant
    if isinstance(value, NewtypeStruct):
        return sub(value.value)
    if isinstance(value, NewtypeVariant):
        return {value.variant: sub(value.value)}
    if isinstance(value, (Seq, TupleValue, TupleStruct)):
        return [sub(v) for v in value.items]
    if isinstance(value, TupleVariant):
        return {value.variant: [sub(v) for v in value.items]}
    if isinstance(value, Map):
        return _json_object([(_json_key(k), sub(v)) for k, v in value.entries])
    if isinstance(value, Struct):
        return _json_object([(k, sub(v)) for k, v in value.fields])
    if isinstance(value, StructVariant):
        return {value.variant: _json_object([(k, sub(v)) for k, v in value.fields])}

    raise CodecError(ERR_VALUE, "not a Value: {}".format(type(value).__name__))


def json_dump(obj: Any, indent: Union[int, None] = None) -> str:
    return json.dumps(obj, ensure_ascii=False, allow_nan=False, indent=indent)
