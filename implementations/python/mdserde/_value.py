"""The serialization data model — a closed union of frozen dataclasses.

Every value the codec can carry is exactly one of the classes below.
Composites own their children as tuples, so values are immutable trees
and can be compared, hashed and used as map keys.

Declared lengths are part of the value: Seq([a, b]) and
Seq([a, b], length=2) are different values and encode differently.
For types whose length is always known (tuples, tuple structs/variants,
structs and struct variants) a missing length defaults to the element
count.  Seq and Map keep None as "unknown length".
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union


def to_f32(value: float) -> float:
    """Round to the nearest single-precision float; overflow gives ±inf."""
    value = float(value)
    if not math.isfinite(value):
        return value
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _freeze(obj: Any, name: str, items: Iterable[Any]) -> None:
    object.__setattr__(obj, name, tuple(items))


def _freeze_pairs(obj: Any, name: str, pairs: Iterable[Any]) -> None:
    object.__setattr__(obj, name, tuple((k, v) for k, v in pairs))


def _default_length(obj: Any, count: int) -> None:
    if obj.length is None:
        object.__setattr__(obj, "length", count)


# ── Scalars ───────────────────────────────────────────────────

@dataclass(frozen=True)
class Bool:
    value: bool


@dataclass(frozen=True)
class Integer:
    value: int
    width: int = 64
    signed: bool = True

    @property
    def domain(self) -> str:
        return "{}{}".format("i" if self.signed else "u", self.width)


@dataclass(frozen=True)
class Float:
    """An f32 value is rounded to single precision on construction."""
    value: float
    width: int = 64

    def __post_init__(self) -> None:
        if self.width == 32:
            object.__setattr__(self, "value", to_f32(self.value))

    @property
    def domain(self) -> str:
        return "f{}".format(self.width)


@dataclass(frozen=True)
class Char:
    value: str


@dataclass(frozen=True)
class String:
    value: str


@dataclass(frozen=True)
class Bytes:
    value: bytes


@dataclass(frozen=True)
class Unit:
    pass


@dataclass(frozen=True)
class Option:
    """None when `value` is None, Some(value) otherwise."""
    value: Optional["Value"] = None

    @property
    def is_some(self) -> bool:
        return self.value is not None


# ── Named forms ───────────────────────────────────────────────

@dataclass(frozen=True)
class UnitStruct:
    name: str


@dataclass(frozen=True)
class UnitVariant:
    name: str
    variant: str


@dataclass(frozen=True)
class NewtypeStruct:
    name: str
    value: "Value"


@dataclass(frozen=True)
class NewtypeVariant:
    name: str
    variant: str
    value: "Value"


# ── Sequences ─────────────────────────────────────────────────

@dataclass(frozen=True)
class Seq:
    items: tuple = ()
    length: Optional[int] = None

    def __post_init__(self) -> None:
        _freeze(self, "items", self.items)


@dataclass(frozen=True)
class Tuple:
    items: tuple = ()
    length: Optional[int] = None

    def __post_init__(self) -> None:
        _freeze(self, "items", self.items)
        _default_length(self, len(self.items))


@dataclass(frozen=True)
class TupleStruct:
    name: str
    items: tuple = ()
    length: Optional[int] = None

    def __post_init__(self) -> None:
        _freeze(self, "items", self.items)
        _default_length(self, len(self.items))


@dataclass(frozen=True)
class TupleVariant:
    name: str
    variant: str
    items: tuple = ()
    length: Optional[int] = None

    def __post_init__(self) -> None:
        _freeze(self, "items", self.items)
        _default_length(self, len(self.items))


# ── Maps ──────────────────────────────────────────────────────
# Entries are (key, value) pairs in wire order.  Keys may repeat.

@dataclass(frozen=True)
class Map:
    entries: tuple = ()
    length: Optional[int] = None

    def __post_init__(self) -> None:
        _freeze_pairs(self, "entries", self.entries)


@dataclass(frozen=True)
class Struct:
    name: str
    fields: tuple = ()
    length: Optional[int] = None

    def __post_init__(self) -> None:
        _freeze_pairs(self, "fields", self.fields)
        _default_length(self, len(self.fields))


@dataclass(frozen=True)
class StructVariant:
    name: str
    variant: str
    fields: tuple = ()
    length: Optional[int] = None

    def __post_init__(self) -> None:
        _freeze_pairs(self, "fields", self.fields)
        _default_length(self, len(self.fields))


Value = Union[
    Bool, Integer, Float, Char, String, Bytes, Unit, Option,
    UnitStruct, UnitVariant, NewtypeStruct, NewtypeVariant,
    Seq, Tuple, TupleStruct, TupleVariant,
    Map, Struct, StructVariant,
]

VALUE_TYPES = (
    Bool, Integer, Float, Char, String, Bytes, Unit, Option,
    UnitStruct, UnitVariant, NewtypeStruct, NewtypeVariant,
    Seq, Tuple, TupleStruct, TupleVariant,
    Map, Struct, StructVariant,
)
