"""Tests for the mdserde command-line interface."""

from __future__ import annotations

import contextlib
import io
import json
import os
import sys
import tempfile
import unittest
from unittest import mock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mdserde import __version__
from mdserde._cli import main

MAP_DOC = ("* [Map of unknown length](serde://map)\n"
           "*\n"
           "    0. [a](serde://string)\n"
           "    1. [1](serde://u64)\n")


class CliTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def write(self, name, text):
        path = os.path.join(self._tmp.name, name)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        return path

    def run_cli(self, argv, stdin=b""):
        """Run main(argv).  Returns (exit code, stdout, stderr)."""
        out, err = io.StringIO(), io.StringIO()
        fake_stdin = io.TextIOWrapper(io.BytesIO(stdin), encoding="utf-8")
        code = 0
        with mock.patch.object(sys, "stdin", fake_stdin), \
                contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            try:
                main(argv)
            except SystemExit as e:
                code = e.code
        return code, out.getvalue(), err.getvalue()


class TestEncode(CliTestCase):
    def test_stdin(self):
        code, out, _ = self.run_cli(["encode"], stdin=b'{"a": 1}')
        self.assertEqual(code, 0)
        self.assertEqual(out, MAP_DOC)

    def test_input_file(self):
        path = self.write("doc.json", '{"a": 1}')
        code, out, _ = self.run_cli(["encode", "--input", path])
        self.assertEqual(code, 0)
        self.assertEqual(out, MAP_DOC)

    def test_bad_json(self):
        code, out, err = self.run_cli(["encode"], stdin=b"{")
        self.assertEqual(code, 2)
        self.assertEqual(out, "")
        self.assertTrue(err.startswith("mdserde: error [ERR_VALUE]:"))

    def test_max_depth(self):
        code, _, err = self.run_cli(["encode", "--max-depth", "2"], stdin=b"[[[1]]]")
        self.assertEqual(code, 2)
        self.assertIn("[ERR_DEPTH]", err)


class TestDecode(CliTestCase):
    def test_decode(self):
        path = self.write("doc.md", MAP_DOC)
        code, out, _ = self.run_cli(["decode", "-i", path])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {"a": 1})

    def test_indent(self):
        path = self.write("doc.md", MAP_DOC)
        _, out, _ = self.run_cli(["decode", "-i", path, "--indent", "2"])
        self.assertEqual(out, '{\n  "a": 1\n}\n')

    def test_lenient_markers(self):
        path = self.write("doc.md", "0. [List](serde://seq/1)\n1. [1](serde://u8)\n")
        code, _, err = self.run_cli(["decode", "-i", path])
        self.assertEqual(code, 2)
        self.assertIn("[ERR_STRUCTURE]", err)
        code, out, _ = self.run_cli(["decode", "-i", path, "--lenient-markers"])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), [1])

    def test_invalid_utf8(self):
        code, _, err = self.run_cli(["decode"], stdin=b"[\xff](serde://string)\n")
        self.assertEqual(code, 2)
        self.assertIn("[ERR_VALUE]", err)

    def test_error_reports_line(self):
        path = self.write("doc.md", "0. [Seq of length 1](serde://seq/1)\n1. [x](serde://u8)\n")
        code, _, err = self.run_cli(["decode", "-i", path])
        self.assertEqual(code, 2)
        self.assertIn("line 2", err)

    def test_missing_file(self):
        code, _, err = self.run_cli(["decode", "-i", os.path.join(self._tmp.name, "nope.md")])
        self.assertEqual(code, 2)
        self.assertTrue(err.startswith("mdserde:"))


class TestCheckAndVersion(CliTestCase):
    def test_check_ok(self):
        path = self.write("doc.md", MAP_DOC)
        code, out, _ = self.run_cli(["check", "-i", path])
        self.assertEqual(code, 0)
        self.assertEqual(out, "ok: serde://map\n")

    def test_check_scalar(self):
        path = self.write("doc.md", "[Some](serde://unit_struct/Some)\n")
        code, out, _ = self.run_cli(["check", "-i", path])
        self.assertEqual(code, 0)
        self.assertEqual(out, "ok: serde://unit_struct/Some\n")

    def test_check_bad(self):
        path = self.write("doc.md", "# Title\n")
        code, _, err = self.run_cli(["check", "-i", path])
        self.assertEqual(code, 2)
        self.assertIn("[ERR_GRAMMAR]", err)

    def test_check_keeps_non_finite_floats(self):
        path = self.write("doc.md", "[inf](serde://f64)\n")
        code, out, _ = self.run_cli(["check", "-i", path])
        self.assertEqual(code, 0)
        self.assertEqual(out, "ok: serde://f64\n")

    def test_version(self):
        code, out, _ = self.run_cli(["version"])
        self.assertEqual(code, 0)
        self.assertEqual(out, "mdserde {}\n".format(__version__))

    def test_no_command(self):
        code, out, _ = self.run_cli([])
        self.assertEqual(code, 1)
        self.assertIn("usage", out)

    def test_verbose_logs_to_stderr(self):
        path = self.write("doc.md", MAP_DOC)
        with mock.patch("logging.basicConfig") as basic_config:
            code, _, _ = self.run_cli(["-v", "decode", "-i", path])
        self.assertEqual(code, 0)
        basic_config.assert_called_once()


if __name__ == "__main__":
    unittest.main()
