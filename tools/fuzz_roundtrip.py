#!/usr/bin/env python3
# tools/fuzz_roundtrip.py
#
# Seeded round-trip fuzzing for mdserde.
#
# Generates three fuzz categories:
#   A) random valid Values -> dumps -> loads must give the value back,
#      and dumps of the result must give the same text
#   B) random pairs of Values -> unequal values must encode differently
#   C) random mutations of valid documents -> loads must either succeed
#      or raise CodecError, never anything else
#
# Any violation prints a minimal repro payload and exits non-zero.

import json
import math
import os
import random
import sys
from typing import Any, Callable, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(ROOT, "implementations", "python"))

from mdserde import (  # noqa: E402
    Bool,
    Bytes,
    Char,
    CodecError,
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
    dumps,
    loads,
)
from mdserde._constants import INT_WIDTHS, int_range  # noqa: E402

SEED = int(os.environ.get("MDSERDE_SEED", "4242"))
ROUNDS = int(os.environ.get("MDSERDE_FUZZ_ROUNDS", "2000"))
MAX_GEN_DEPTH = 5
MAX_ITEMS = 5
MAX_STR = 16

random.seed(SEED)

# Characters that exercise escaping: Markdown punctuation, references,
# line breaks and non-ASCII.
TRICKY = "*_`[]()\\&#;<>!-+.:/ \t\n\r\x00\u2028\u2029é漢\U0001F600"
MUTATIONS = "* [](){}0123456789.\\&#x;\n    -_`"


def mismatch(label: str, ctx: Any) -> None:
    print("MISMATCH:", label)
    print("CTX:", json.dumps(ctx, ensure_ascii=False, default=repr)[:4000])
    raise SystemExit(1)


# --- generators ---

def rand_text(nmax: int = MAX_STR) -> str:
    out = []
    for _ in range(random.randint(0, nmax)):
        r = random.random()
        if r < 0.6:
            out.append(chr(random.randint(0x20, 0x7E)))
        elif r < 0.85:
            out.append(random.choice(TRICKY))
        else:
            cp = random.randint(0xA0, 0x10FFFF)
            if 0xD800 <= cp <= 0xDFFF:
                cp = 0xFFFD
            out.append(chr(cp))
    return "".join(out)


def rand_name() -> str:
    alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_ "
    name = "".join(random.choice(alphabet) for _ in range(random.randint(1, 8)))
    return name if name.strip() else "N"


def rand_char() -> str:
    text = rand_text(1)
    return text if text else "x"


def rand_float() -> Float:
    width = random.choice((32, 64))
    r = random.random()
    if r < 0.05:
        return Float(random.choice((math.inf, -math.inf, 0.0, -0.0)), width)
    if r < 0.5:
        return Float(random.uniform(-1e6, 1e6), width)
    return Float(random.uniform(-1.0, 1.0) * 10.0 ** random.randint(-30, 30), width)


def rand_scalar() -> Any:
    r = random.randint(0, 9)
    if r == 0:
        return Bool(random.random() < 0.5)
    if r == 1:
        width = random.choice(INT_WIDTHS)
        signed = random.random() < 0.5
        lo, hi = int_range(width, signed)
        return Integer(random.choice((lo, hi, random.randint(lo, hi))), width, signed)
    if r == 2:
        return rand_float()
    if r == 3:
        return Char(rand_char())
    if r == 4:
        return String(rand_text())
    if r == 5:
        return Bytes(bytes(random.getrandbits(8) for _ in range(random.randint(0, 24))))
    if r == 6:
        return Unit()
    if r == 7:
        return Option()
    if r == 8:
        return UnitStruct(rand_name())
    return UnitVariant(rand_name(), rand_name())


def gen_value(depth: int = 0) -> Any:
    if depth >= MAX_GEN_DEPTH or random.random() < 0.4:
        return rand_scalar()

    def items() -> List[Any]:
        return [gen_value(depth + 1) for _ in range(random.randint(0, MAX_ITEMS))]

    def fields() -> List[Any]:
        return [(rand_text(8), gen_value(depth + 1)) for _ in range(random.randint(0, MAX_ITEMS))]

    r = random.randint(0, 10)
    if r == 0:
        return Option(gen_value(depth + 1))
    if r == 1:
        return NewtypeStruct(rand_name(), gen_value(depth + 1))
    if r == 2:
        return NewtypeVariant(rand_name(), rand_name(), gen_value(depth + 1))
    if r == 3:
        xs = items()
        return Seq(xs, length=len(xs) if random.random() < 0.5 else None)
    if r == 4:
        return Tuple(items())
    if r == 5:
        return TupleStruct(rand_name(), items())
    if r == 6:
        return TupleVariant(rand_name(), rand_name(), items())
    if r in (7, 8):
        pairs = [(gen_value(depth + 1), gen_value(depth + 1))
                 for _ in range(random.randint(0, MAX_ITEMS))]
        return Map(pairs, length=len(pairs) if random.random() < 0.5 else None)
    if r == 9:
        return Struct(rand_name(), fields())
    return StructVariant(rand_name(), rand_name(), fields())


def mutate(text: str) -> str:
    chars = list(text)
    for _ in range(random.randint(1, 3)):
        pos = random.randint(0, len(chars))
        op = random.random()
        if op < 0.4 or not chars:
            chars.insert(pos, random.choice(MUTATIONS))
        elif op < 0.7:
            del chars[min(pos, len(chars) - 1)]
        else:
            chars[min(pos, len(chars) - 1)] = random.choice(MUTATIONS)
    return "".join(chars)


# --- checks ---

def check(label: str, fn: Callable[[], None], ctx: Any) -> None:
    try:
        fn()
    except CodecError as e:
        mismatch(label + " raised " + e.code, {"error": str(e), "ctx": ctx})


def main() -> int:
    for i in range(ROUNDS):
        r = random.random()

        # A) round trip
        if r < 0.5:
            value = gen_value()

            def round_trip() -> None:
                text = dumps(value)
                back = loads(text)
                if back != value:
                    mismatch("A loads(dumps(v)) != v", {"round": i, "value": value, "text": text})
                if dumps(back) != text:
                    mismatch("A text not stable", {"round": i, "text": text})

            check("A round trip", round_trip, {"round": i, "value": value})
            continue

        # B) unequal values, unequal text
        if r < 0.75:
            a, b = gen_value(), gen_value()
            if a != b and dumps(a) == dumps(b):
                mismatch("B unequal values share text", {"round": i, "a": a, "b": b})
            continue

        # C) mutated documents
        text = mutate(dumps(gen_value()))
        try:
            loads(text)
        except CodecError:
            pass
        except Exception as e:  # noqa: BLE001
            mismatch("C unexpected {}".format(type(e).__name__),
                     {"round": i, "error": repr(e), "text": text})

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (no mismatches)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
