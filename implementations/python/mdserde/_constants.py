"""mdserde constants — type URI scheme, domain names, layout and limits.

The domain names are the first path component of every type URI and are
the only thing the decoder dispatches on.  Keep them in sync with
_decoder.resolve_type and _encoder._open_frame.
"""

from __future__ import annotations

from typing import Dict, Tuple

# Every type URI starts with this.  Anything else is ERR_SCHEME.
SCHEME = "serde://"

# ── Layout ────────────────────────────────────────────────────
# Spaces per nesting level.  The reader rejects anything that does not
# land on a multiple of this relative to the enclosing list.
INDENT: int = 4

ORDERED_BULLET_START: int = 0
UNORDERED_BULLET = "*"

# ── Domains ───────────────────────────────────────────────────
D_BOOL = "bool"
D_CHAR = "char"
D_STRING = "string"
D_BLOB = "blob"
D_UNIT = "unit"
D_OPTION = "option"
D_UNIT_STRUCT = "unit_struct"
D_UNIT_VARIANT = "unit_variant"
D_NEWTYPE_STRUCT = "newtype_struct"
D_NEWTYPE_VARIANT = "newtype_variant"
D_SEQ = "seq"
D_TUPLE = "tuple"
D_TUPLE_STRUCT = "tuple_struct"
D_TUPLE_VARIANT = "tuple_variant"
D_MAP = "map"
D_STRUCT = "struct"
D_STRUCT_VARIANT = "struct_variant"

OPTION_NONE = "none"
OPTION_SOME = "some"

# Older documents spell these differently.  Accepted on decode only.
LEGACY_ALIASES: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "none": (D_OPTION, (OPTION_NONE,)),
    "bytes": (D_BLOB, ()),
}
# Older writers labeled every unit struct with this literal word.
LEGACY_UNIT_STRUCT_LABEL = "name"

# ── Numeric domains ───────────────────────────────────────────
# Python ints are arbitrary-precision, so every width is range-checked
# explicitly on both encode and decode.
INT_WIDTHS: Tuple[int, ...] = (8, 16, 32, 64, 128)
FLOAT_WIDTHS: Tuple[int, ...] = (32, 64)


def int_domain(width: int, signed: bool) -> str:
    return "{}{}".format("i" if signed else "u", width)


def int_range(width: int, signed: bool) -> Tuple[int, int]:
    """Inclusive (min, max) for an integer of the given width."""
    if signed:
        return -(2 ** (width - 1)), 2 ** (width - 1) - 1
    return 0, 2 ** width - 1


INT_DOMAINS: Dict[str, Tuple[int, bool]] = {
    int_domain(w, s): (w, s) for w in INT_WIDTHS for s in (False, True)
}
FLOAT_DOMAINS: Dict[str, int] = {"f{}".format(w): w for w in FLOAT_WIDTHS}

U64_MAX: int = 2 ** 64 - 1
I64_MIN: int = -(2 ** 63)

# ── Fixed labels ──────────────────────────────────────────────
UNIT_LABEL = "()"
NONE_LABEL = "None"
SOME_LABEL = "Some"

# ── Safety limits ─────────────────────────────────────────────
# Maximum composite nesting accepted by the builder, decoder, encoder and
# JSON adapter.  Overridable per call with max_depth=.
MAX_DEPTH: int = 128
