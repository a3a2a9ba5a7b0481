"""Tests for the text layer: scanner, node tree, escaping and type URIs."""

from __future__ import annotations

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mdserde import (
    CodecError,
    ERR_DEPTH,
    ERR_GRAMMAR,
    ERR_INDENT,
    ERR_SCHEME,
    ERR_VALUE,
    Anchor,
    Leaf,
    Sublist,
    decode_blob,
    encode_blob,
    escape,
    format_type_uri,
    parse,
    parse_type_uri,
    render,
    unescape,
)
from mdserde._scanner import BLANK, LINK, ORDERED_ITEM, PLAIN_TEXT, UNORDERED_ITEM, scan


# ── Scanner ───────────────────────────────────────────────────

class TestScanner(unittest.TestCase):
    def kinds(self, text):
        return [tok.kind for tok in scan(text)]

    def test_item_with_link(self):
        toks = list(scan("    0. [8](serde://u64)"))
        self.assertEqual([t.kind for t in toks], [ORDERED_ITEM, LINK])
        self.assertEqual(toks[0].indent, 4)
        self.assertEqual(toks[1].text, "8")
        self.assertEqual(toks[1].uri, "serde://u64")

    def test_bare_bullets(self):
        self.assertEqual(self.kinds("*\n1.\n"), [UNORDERED_ITEM, ORDERED_ITEM, BLANK])

    def test_plain_and_blank(self):
        self.assertEqual(self.kinds("hello\n\n"), [PLAIN_TEXT, BLANK, BLANK])

    def test_label_keeps_escapes(self):
        (tok,) = list(scan("[a\\]b](serde://string)"))
        self.assertEqual(tok.text, "a\\]b")

    def test_crlf(self):
        self.assertEqual(self.kinds("* [a](serde://string)\r\n"),
                         [UNORDERED_ITEM, LINK, BLANK])

    def assertGrammar(self, text):
        with self.assertRaises(CodecError) as cm:
            list(scan(text))
        self.assertEqual(cm.exception.code, ERR_GRAMMAR)

    def test_rejected_constructs(self):
        for text in [
            "# Heading",
            "```",
            "> quote",
            "<div>",
            "---",
            "* * *",
            "- [1](serde://u8)",
            "+ [1](serde://u8)",
            "[a][ref]",
            "[a](serde://u8) trailing",
            "[a](serde://u8",
            "[a](serde:// u8)",
            "*emphasis*",
            "some _words_",
            "`code`",
            "0. 1. [a](serde://u8)",
        ]:
            with self.subTest(text=text):
                self.assertGrammar(text)

    def test_tab_indent(self):
        with self.assertRaises(CodecError) as cm:
            list(scan("\t0. [1](serde://u8)"))
        self.assertEqual(cm.exception.code, ERR_INDENT)
        self.assertEqual(cm.exception.line, 1)


# ── Node tree ─────────────────────────────────────────────────

class TestParse(unittest.TestCase):
    def assertCode(self, code, text, **kwargs):
        with self.assertRaises(CodecError) as cm:
            parse(text, **kwargs)
        self.assertEqual(cm.exception.code, code)
        return cm.exception

    def test_single_link(self):
        self.assertEqual(parse("[a](serde://string)\n"), Anchor("a", "serde://string"))

    def test_single_leaf(self):
        self.assertEqual(parse("hello"), Leaf("hello"))

    def test_nested(self):
        text = ("* [Map of length 1](serde://map/1)\n"
                "*\n"
                "    0. [a](serde://string)\n"
                "    1. [1](serde://u8)\n")
        self.assertEqual(parse(text), Sublist(False, [
            Anchor("Map of length 1", "serde://map/1"),
            Sublist(True, [Anchor("a", "serde://string"), Anchor("1", "serde://u8")]),
        ]))

    def test_blank_lines_between_items(self):
        text = "0. [Seq of length 1](serde://seq/1)\n\n1. [1](serde://u8)\n\n"
        self.assertEqual(len(parse(text).items), 2)

    def test_dedent_back_to_parent(self):
        text = ("0. [Seq of length 2](serde://seq/2)\n"
                "1.\n"
                "    0. [Some](serde://option/some)\n"
                "    1. [1](serde://u8)\n"
                "2. [2](serde://u8)\n")
        root = parse(text)
        self.assertEqual(len(root.items), 3)
        self.assertIsInstance(root.items[1], Sublist)
        self.assertEqual(root.items[2], Anchor("2", "serde://u8"))

    def test_line_numbers(self):
        root = parse("\n0. [Seq of length 1](serde://seq/1)\n1. [1](serde://u8)\n")
        self.assertEqual(root.line, 2)
        self.assertEqual(root.items[1].line, 3)

    def test_empty_document(self):
        self.assertCode(ERR_GRAMMAR, "")
        self.assertCode(ERR_GRAMMAR, "\n\n")

    def test_content_after_root(self):
        self.assertCode(ERR_GRAMMAR, "[a](serde://string)\n[b](serde://string)\n")
        self.assertCode(ERR_GRAMMAR, "0. [a](serde://string)\nloose text\n")

    def test_bare_bullet_needs_nested_list(self):
        err = self.assertCode(ERR_GRAMMAR, "0. [Seq of length 1](serde://seq/1)\n1.\n")
        self.assertEqual(err.line, 2)

    def test_mixed_list_kinds(self):
        self.assertCode(ERR_GRAMMAR, "0. [a](serde://string)\n* [b](serde://string)\n")

    def test_indented_root(self):
        self.assertCode(ERR_INDENT, "    [a](serde://string)\n")

    def test_indent_not_multiple(self):
        self.assertCode(ERR_INDENT, "0. [Seq of length 1](serde://seq/1)\n"
                                    "1.\n"
                                    "  0. [Some](serde://option/some)\n")

    def test_indented_too_far(self):
        self.assertCode(ERR_INDENT, "0. [Seq of length 1](serde://seq/1)\n"
                                    "1.\n"
                                    "        0. [Some](serde://option/some)\n")
        self.assertCode(ERR_INDENT, "0. [a](serde://string)\n"
                                    "    0. [b](serde://string)\n")

    def test_depth_limit(self):
        lines = []
        for depth in range(10):
            lines.append(" " * (4 * depth) + "0. [x](serde://string)")
            lines.append(" " * (4 * depth) + "1.")
        lines.append(" " * 40 + "0. [x](serde://string)")
        text = "\n".join(lines) + "\n"
        self.assertIsInstance(parse(text), Sublist)
        self.assertCode(ERR_DEPTH, text, max_depth=5)


class TestRender(unittest.TestCase):
    def test_ordered_from_zero(self):
        node = Sublist(True, [Anchor("a", "serde://string"), Anchor("b", "serde://string")])
        self.assertEqual(render(node), "0. [a](serde://string)\n1. [b](serde://string)\n")

    def test_nested_list_on_bare_bullet(self):
        node = Sublist(False, [Sublist(True, [Leaf("x")])])
        self.assertEqual(render(node), "*\n    0. x\n")

    def test_leaf(self):
        self.assertEqual(render(Leaf("plain")), "plain\n")

    def test_parse_render(self):
        text = ("* [Map of length 1](serde://map/1)\n"
                "*\n"
                "    0.\n"
                "        0. [Tuple of length 1](serde://tuple/1)\n"
                "        1. [1](serde://u8)\n"
                "    1. [\\(\\)](serde://unit)\n")
        self.assertEqual(render(parse(text)), text)

    def test_unwritable(self):
        for node in [Sublist(True, []), Sublist(True, [Sublist(False, [])]),
                     Leaf(""), Leaf("two\nlines")]:
            with self.subTest(node=node):
                with self.assertRaises(CodecError) as cm:
                    render(node)
                self.assertEqual(cm.exception.code, ERR_GRAMMAR)


# ── Escaping ──────────────────────────────────────────────────

class TestEscape(unittest.TestCase):
    def test_punctuation(self):
        self.assertEqual(escape("baz *wow*"), "baz \\*wow\\*")
        self.assertEqual(escape("a]b\\c"), "a\\]b\\\\c")
        self.assertEqual(escape("E::V"), "E\\:\\:V")

    def test_controls(self):
        self.assertEqual(escape("\x00"), "&#x0;")
        self.assertEqual(escape("a\nb\r"), "a&#xA;b&#xD;")
        self.assertEqual(escape(" "), "&#x2028;")

    def test_other_text_untouched(self):
        self.assertEqual(escape("héllo wörld 漢字"), "héllo wörld 漢字")

    def test_unescape_inverts(self):
        for text in ["", "*", "\\", "&#x41;", "a\x00\n\tb", "[x](y)", "100%", " "]:
            with self.subTest(text=text):
                self.assertEqual(unescape(escape(text)), text)

    def test_unescape_commonmark_rules(self):
        self.assertEqual(unescape("\\q"), "\\q")
        self.assertEqual(unescape("a\\"), "a\\")
        self.assertEqual(unescape("&amp;"), "&amp;")
        self.assertEqual(unescape("&#65;&#x42;"), "AB")

    def test_bad_reference(self):
        for text in ["&#x110000;", "&#xDC00;"]:
            with self.subTest(text=text):
                with self.assertRaises(CodecError) as cm:
                    unescape(text)
                self.assertEqual(cm.exception.code, ERR_VALUE)

    def test_blob(self):
        self.assertEqual(encode_blob(b"\xfb\xff"), "-_8=")
        self.assertEqual(decode_blob("-_8="), b"\xfb\xff")

    def test_bad_blob(self):
        for text in ["AAE", "AA=A", "AA+/", "A==="]:
            with self.subTest(text=text):
                with self.assertRaises(CodecError) as cm:
                    decode_blob(text)
                self.assertEqual(cm.exception.code, ERR_VALUE)


# ── Type URIs ─────────────────────────────────────────────────

class TestTypeUri(unittest.TestCase):
    def test_parse(self):
        self.assertEqual(parse_type_uri("serde://u8"), ("u8", []))
        self.assertEqual(parse_type_uri("serde://struct/Point/2"), ("struct", ["Point", "2"]))

    def test_trailing_slash_dropped(self):
        self.assertEqual(parse_type_uri("serde://seq/"), ("seq", []))

    def test_percent_decoding(self):
        self.assertEqual(parse_type_uri("serde://unit_struct/My%20Unit"),
                         ("unit_struct", ["My Unit"]))

    def test_format(self):
        self.assertEqual(format_type_uri("struct", "My Name", 2), "serde://struct/My%20Name/2")
        self.assertEqual(format_type_uri("seq"), "serde://seq")

    def test_bad_uris(self):
        for uri in ["http://u8", "serde:/u8", "serde://", "serde:///x", "serde://x/%ff"]:
            with self.subTest(uri=uri):
                with self.assertRaises(CodecError) as cm:
                    parse_type_uri(uri)
                self.assertEqual(cm.exception.code, ERR_SCHEME)


if __name__ == "__main__":
    unittest.main()
