"""mdserde — a serialization data model written as Markdown lists.

Every value is a link whose target is a type URI; composites are lists
whose first item (the marker) carries the URI:

    >>> from mdserde import dumps, loads, Seq, Integer
    >>> text = dumps(Seq([Integer(1, 8, False), Integer(2, 8, False)], length=2))
    >>> print(text, end="")
    0. [Seq of length 2](serde://seq/2)
    1. [1](serde://u8)
    2. [2](serde://u8)
    >>> loads(text) == Seq([Integer(1, 8, False), Integer(2, 8, False)], length=2)
    True

Only the list/link subset of Markdown is understood; headings, emphasis,
code and the like are rejected with ERR_GRAMMAR.
"""

from __future__ import annotations

from typing import Optional, Union

from ._constants import INDENT, MAX_DEPTH, SCHEME
from ._decoder import decode
from ._encoder import encode
from ._errors import (
    ERR_ARITY,
    ERR_DEPTH,
    ERR_GRAMMAR,
    ERR_INDENT,
    ERR_SCHEME,
    ERR_STRUCTURE,
    ERR_VALUE,
    CodecError,
)
from ._escape import decode_blob, encode_blob, escape, unescape
from ._json_adapter import json_dump, json_parse, json_to_value, value_to_json
from ._tree import Anchor, Leaf, Node, Sublist, parse, render
from ._uri import format_type_uri, parse_type_uri
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
    Tuple,
    TupleStruct,
    TupleVariant,
    Unit,
    UnitStruct,
    UnitVariant,
    Value,
)

__version__ = "0.1.0"

__all__ = [
    # Text API
    "dumps",
    "loads",
    "json_to_markdown",
    "markdown_to_json",
    # Pipeline stages
    "parse",
    "render",
    "encode",
    "decode",
    "parse_type_uri",
    "format_type_uri",
    "escape",
    "unescape",
    "encode_blob",
    "decode_blob",
    "json_parse",
    "json_to_value",
    "value_to_json",
    # Nodes
    "Node",
    "Leaf",
    "Anchor",
    "Sublist",
    # Values
    "Value",
    "Bool",
    "Integer",
    "Float",
    "Char",
    "String",
    "Bytes",
    "Unit",
    "Option",
    "UnitStruct",
    "UnitVariant",
    "NewtypeStruct",
    "NewtypeVariant",
    "Seq",
    "Tuple",
    "TupleStruct",
    "TupleVariant",
    "Map",
    "Struct",
    "StructVariant",
    # Exception
    "CodecError",
    # Error codes
    "ERR_GRAMMAR",
    "ERR_INDENT",
    "ERR_SCHEME",
    "ERR_STRUCTURE",
    "ERR_ARITY",
    "ERR_VALUE",
    "ERR_DEPTH",
    # Constants
    "SCHEME",
    "INDENT",
    "MAX_DEPTH",
]


# ── Core API ──────────────────────────────────────────────────

def dumps(value: Value, *, max_depth: int = MAX_DEPTH) -> str:
    """Encode a Value as Markdown text."""
    return render(encode(value, max_depth=max_depth))


def loads(text: str, *, max_depth: int = MAX_DEPTH,
          strict_markers: bool = True) -> Value:
    """Decode Markdown text into a Value.

    `max_depth` bounds value nesting.  `strict_markers=False` accepts
    marker labels that disagree with their type URI (the URI wins).
    """
    # A map entry is a list level of its own, so lists can nest up to
    # twice as deep as values.
    node = parse(text, max_depth=2 * max_depth)
    return decode(node, max_depth=max_depth, strict_markers=strict_markers)


# ── JSON API ──────────────────────────────────────────────────
# The JSON side is a peer format: both functions go through the Value
# model, so anything JSON cannot express (bytes, enums, declared lengths)
# is mapped the way serde_json would map it.

def json_to_markdown(raw: Union[bytes, str], *, max_depth: int = MAX_DEPTH) -> str:
    """Transcode a JSON document to Markdown."""
    value = json_to_value(json_parse(raw), max_depth=max_depth)
    return dumps(value, max_depth=max_depth)


def markdown_to_json(text: str, *, indent: Optional[int] = None,
                     max_depth: int = MAX_DEPTH,
                     strict_markers: bool = True) -> str:
    """Transcode a Markdown document to JSON text."""
    value = loads(text, max_depth=max_depth, strict_markers=strict_markers)
    return json_dump(value_to_json(value, max_depth=max_depth), indent=indent)
