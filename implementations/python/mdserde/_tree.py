"""Generic node tree: building it from text and writing it back.

Three node kinds:

    Leaf(text)              a plain-text line
    Anchor(label, uri)      a link line, "[label](uri)"
    Sublist(ordered, items) a list; items are nodes

A composite value is a Sublist whose item 0 is the marker Anchor that
carries its type URI.  An item that owns a nested list is written as a
bare bullet on its own line, with the nested list one INDENT deeper:

    0. [Seq of length 1](serde://seq/1)
    1.
        0. [Some](serde://option/some)
        1. [8](serde://u64)

Labels and texts are kept in wire form (escaped).  The builder and the
writer are both iterative, so nesting depth costs heap, not stack.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Union

from ._constants import INDENT, MAX_DEPTH, ORDERED_BULLET_START, UNORDERED_BULLET
from ._errors import ERR_DEPTH, ERR_GRAMMAR, ERR_INDENT, CodecError
from ._scanner import BLANK, LINK, ORDERED_ITEM, PLAIN_TEXT, Token, scan


@dataclass
class Leaf:
    text: str
    line: Optional[int] = field(default=None, compare=False)


@dataclass
class Anchor:
    label: str
    uri: str
    line: Optional[int] = field(default=None, compare=False)


@dataclass
class Sublist:
    ordered: bool
    items: List["Node"] = field(default_factory=list)
    line: Optional[int] = field(default=None, compare=False)


Node = Union[Leaf, Anchor, Sublist]


# ── Builder ───────────────────────────────────────────────────

class _OpenList:
    """A list still receiving items.  `pending` is the index of an empty
    item whose nested list has not started yet."""

    __slots__ = ("indent", "node", "pending", "pending_line")

    def __init__(self, indent: int, node: Sublist) -> None:
        self.indent = indent
        self.node = node
        self.pending: Optional[int] = None
        self.pending_line: Optional[int] = None


def _inline(tok: Token) -> Node:
    if tok.kind == LINK:
        return Anchor(tok.text, tok.uri, line=tok.line)
    return Leaf(tok.text, line=tok.line)


def _next_significant(tokens: Iterator[Token]) -> Optional[Token]:
    for tok in tokens:
        if tok.kind != BLANK:
            return tok
    return None


def _settle(open_list: _OpenList) -> None:
    if open_list.pending is not None:
        raise CodecError(ERR_GRAMMAR, "empty list item without a nested list",
                         line=open_list.pending_line)


def parse(text: str, *, max_depth: int = MAX_DEPTH) -> Node:
    """Build the node tree for `text`.

    `max_depth` bounds list nesting (not value nesting: a map entry is a
    list level of its own).
    """
    tokens = scan(text)
    first = _next_significant(tokens)
    if first is None:
        raise CodecError(ERR_GRAMMAR, "empty document")
    if first.indent != 0:
        raise CodecError(ERR_INDENT, "document must start at column 0", line=first.line)

    if first.kind in (LINK, PLAIN_TEXT):
        trailing = _next_significant(tokens)
        if trailing is not None:
            raise CodecError(ERR_GRAMMAR, "unexpected content after the document root",
                             line=trailing.line)
        return _inline(first)

    return _build_list(first, tokens, max_depth)


def _build_list(first: Token, tokens: Iterator[Token], max_depth: int) -> Sublist:
    root = Sublist(first.kind == ORDERED_ITEM, line=first.line)
    stack = [_OpenList(0, root)]
    tok: Optional[Token] = first

    while tok is not None:
        if tok.kind == BLANK:
            tok = next(tokens, None)
            continue
        if tok.kind in (LINK, PLAIN_TEXT):
            raise CodecError(ERR_GRAMMAR, "text outside a list item", line=tok.line)

        if tok.indent % INDENT:
            raise CodecError(ERR_INDENT,
                             "indent of {} is not a multiple of {}".format(tok.indent, INDENT),
                             line=tok.line)
        ordered = tok.kind == ORDERED_ITEM
        top = stack[-1]

        if tok.indent > top.indent:
            if tok.indent != top.indent + INDENT or top.pending is None:
                raise CodecError(ERR_INDENT, "list item indented too far", line=tok.line)
            if len(stack) >= max_depth:
                raise CodecError(ERR_DEPTH, "list nesting exceeds {}".format(max_depth),
                                 line=tok.line)
            child = Sublist(ordered, line=tok.line)
            top.node.items[top.pending] = child
            top.pending = None
            top = _OpenList(tok.indent, child)
            stack.append(top)
        else:
            while tok.indent < top.indent:
                _settle(stack.pop())
                top = stack[-1]
            if tok.indent != top.indent:
                raise CodecError(ERR_INDENT, "list item does not align with its list",
                                 line=tok.line)
            _settle(top)
            if top.node.ordered != ordered:
                raise CodecError(ERR_GRAMMAR, "list mixes ordered and unordered items",
                                 line=tok.line)

        nxt = next(tokens, None)
        if nxt is not None and nxt.line == tok.line and nxt.kind in (LINK, PLAIN_TEXT):
            top.node.items.append(_inline(nxt))
            tok = next(tokens, None)
        else:
            # Placeholder until the nested list shows up.
            top.node.items.append(None)  # type: ignore[arg-type]
            top.pending = len(top.node.items) - 1
            top.pending_line = tok.line
            tok = nxt

    while stack:
        _settle(stack.pop())
    return root


# ── Writer ────────────────────────────────────────────────────

def _inline_text(node: Node) -> str:
    if isinstance(node, Anchor):
        if "\n" in node.label or "\n" in node.uri:
            raise CodecError(ERR_GRAMMAR, "line break inside a link")
        return "[{}]({})".format(node.label, node.uri)
    if isinstance(node, Leaf):
        if not node.text or "\n" in node.text:
            raise CodecError(ERR_GRAMMAR, "leaf text must be a non-empty single line")
        return node.text
    raise CodecError(ERR_GRAMMAR, "not a node: {}".format(type(node).__name__))


def render(node: Node) -> str:
    """Write a node tree as text.  Ordered lists are numbered from 0."""
    if not isinstance(node, Sublist):
        return _inline_text(node) + "\n"
    if not node.items:
        raise CodecError(ERR_GRAMMAR, "cannot write an empty list")

    lines: List[str] = []
    stack = [(node, 0, iter(enumerate(node.items)))]
    while stack:
        lst, depth, items = stack[-1]
        step = next(items, None)
        if step is None:
            stack.pop()
            continue

        i, item = step
        bullet = "{}.".format(ORDERED_BULLET_START + i) if lst.ordered else UNORDERED_BULLET
        prefix = " " * (INDENT * depth) + bullet
        if isinstance(item, Sublist):
            if not item.items:
                raise CodecError(ERR_GRAMMAR, "cannot write an empty list")
            lines.append(prefix)
            stack.append((item, depth + 1, iter(enumerate(item.items))))
        else:
            lines.append(prefix + " " + _inline_text(item))
    return "\n".join(lines) + "\n"
