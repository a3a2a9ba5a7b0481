"""mdserde command-line interface.

Usage:
    echo '{"a": [1, 2]}' | python3 -m mdserde encode
    python3 -m mdserde decode --input doc.md --indent 2
    python3 -m mdserde check --input doc.md
    python3 -m mdserde version
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from . import (
    ERR_VALUE,
    MAX_DEPTH,
    CodecError,
    __version__,
    decode,
    json_to_markdown,
    markdown_to_json,
    parse,
)
from ._tree import Sublist

logger = logging.getLogger(__name__)


def _add_io_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--input", "-i", metavar="FILE",
                   help="Read from FILE instead of stdin")
    p.add_argument("--max-depth", type=int, default=MAX_DEPTH, metavar="N",
                   help="Maximum value nesting (default: %(default)s)")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdserde",
        description="mdserde — transcode between JSON and the Markdown data format",
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log debug output to stderr")
    sub = parser.add_subparsers(dest="command")

    # ── encode ──
    enc_p = sub.add_parser("encode", help="JSON on input → Markdown on stdout")
    _add_io_args(enc_p)

    # ── decode ──
    dec_p = sub.add_parser("decode", help="Markdown on input → JSON on stdout")
    _add_io_args(dec_p)
    dec_p.add_argument("--lenient-markers", action="store_true",
                       help="Accept marker labels that disagree with their type URI")
    dec_p.add_argument("--indent", type=int, default=None, metavar="N",
                       help="Pretty-print JSON with N spaces")

    # ── check ──
    chk_p = sub.add_parser("check", help="Validate a Markdown document")
    _add_io_args(chk_p)
    chk_p.add_argument("--lenient-markers", action="store_true",
                       help="Accept marker labels that disagree with their type URI")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str]) -> bytes:
    """Read raw bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("mdserde: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _read_text(filepath: Optional[str]) -> str:
    raw = _read_input(filepath)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise CodecError(ERR_VALUE, "input is not valid UTF-8")


def _cmd_encode(args: argparse.Namespace) -> None:
    raw = _read_input(args.input)
    logger.debug("encode: %d bytes of JSON", len(raw))
    sys.stdout.write(json_to_markdown(raw, max_depth=args.max_depth))


def _cmd_decode(args: argparse.Namespace) -> None:
    text = _read_text(args.input)
    logger.debug("decode: %d characters of Markdown", len(text))
    print(markdown_to_json(text, indent=args.indent, max_depth=args.max_depth,
                           strict_markers=not args.lenient_markers))


def _cmd_check(args: argparse.Namespace) -> None:
    text = _read_text(args.input)
    node = parse(text, max_depth=2 * args.max_depth)
    decode(node, max_depth=args.max_depth, strict_markers=not args.lenient_markers)
    root = node.items[0] if isinstance(node, Sublist) else node
    print("ok: {}".format(getattr(root, "uri", "plain text")))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format="%(name)s %(levelname)s: %(message)s")

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"mdserde {__version__}")
        return

    try:
        if args.command == "encode":
            _cmd_encode(args)
        elif args.command == "decode":
            _cmd_decode(args)
        elif args.command == "check":
            _cmd_check(args)
    except CodecError as e:
        print(f"mdserde: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"mdserde: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
