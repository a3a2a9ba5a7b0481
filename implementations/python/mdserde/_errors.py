"""mdserde error codes and exception class.

Every failure in the codec surfaces as a CodecError whose `.code` is one
of the ERR_* strings below.  There is no partial decoding: the first
violation aborts the whole call.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

# ── Error codes (7 total) ────────────────────────────────────
# Ordered from the outermost layer (text) to the innermost (values).

ERR_GRAMMAR: str = "ERR_GRAMMAR"        # text outside the supported subset
ERR_INDENT: str = "ERR_INDENT"          # nesting misaligned
ERR_SCHEME: str = "ERR_SCHEME"          # malformed or unknown type URI
ERR_STRUCTURE: str = "ERR_STRUCTURE"    # node shape wrong for its domain
ERR_ARITY: str = "ERR_ARITY"            # declared length != element count
ERR_VALUE: str = "ERR_VALUE"            # leaf content fails to parse
ERR_DEPTH: str = "ERR_DEPTH"            # nesting exceeds max_depth

ALL_CODES: List[str] = [
    ERR_GRAMMAR,
    ERR_INDENT,
    ERR_SCHEME,
    ERR_STRUCTURE,
    ERR_ARITY,
    ERR_VALUE,
    ERR_DEPTH,
]


def format_path(path: Sequence[int]) -> str:
    """Render a node path as "/2/0/1" (root is "/")."""
    return "/" + "/".join(str(i) for i in path)


class CodecError(Exception):
    """Exception for mdserde encode/decode errors.

    `.code` is one of the ERR_* strings above.  `.path` is the sequence of
    list-item indices leading from the root to the faulty node, `.line`
    the 1-based source line when the fault came from text.
    """

    def __init__(self, code: str, msg: str = "", *,
                 path: Optional[Sequence[int]] = None,
                 line: Optional[int] = None) -> None:
        self.code = code
        self.msg = msg or code
        self.path = tuple(path) if path is not None else None
        self.line = line
        super().__init__(self._render())

    def locate(self, path: Optional[Sequence[int]] = None,
               line: Optional[int] = None) -> "CodecError":
        """Fill in location fields that are still unknown.  Returns self."""
        if self.path is None and path is not None:
            self.path = tuple(path)
        if self.line is None and line is not None:
            self.line = line
        self.args = (self._render(),)
        return self

    def _render(self) -> str:
        where = []
        if self.path is not None:
            where.append("at " + format_path(self.path))
        if self.line is not None:
            where.append("line {}".format(self.line))
        if not where:
            return self.msg
        return "{} ({})".format(self.msg, ", ".join(where))
