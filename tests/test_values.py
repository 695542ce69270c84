"""Tests for parameter and body value coercion."""

import json
import unittest

from swagmcp.values import serialize_body, to_query_value, to_text


class TestValues(unittest.TestCase):
    """Tests for the value coercion helpers."""

    def test_to_text_scalars(self):
        self.assertEqual(to_text("abc"), "abc")
        self.assertEqual(to_text(42), "42")
        self.assertEqual(to_text(1.5), "1.5")
        self.assertEqual(to_text(True), "true")
        self.assertEqual(to_text(False), "false")
        self.assertEqual(to_text(None), "")

    def test_to_text_collections(self):
        """Sequences are comma-joined and mappings rendered as JSON."""
        self.assertEqual(to_text(["a", 1, True]), "a,1,true")
        self.assertEqual(json.loads(to_text({"a": 1})), {"a": 1})

    def test_to_query_value(self):
        """Lists stay lists so they become repeated query keys."""
        self.assertEqual(to_query_value(["x", 2]), ["x", "2"])
        self.assertEqual(to_query_value(False), "false")

    def test_serialize_body(self):
        """Strings and bytes pass through, everything else becomes JSON."""
        self.assertIsNone(serialize_body(None))
        self.assertEqual(serialize_body("<xml/>"), "<xml/>")
        self.assertEqual(serialize_body(b"raw"), b"raw")
        self.assertEqual(serialize_body(b"\x89PNG\xff\x00"), b"\x89PNG\xff\x00")
        self.assertEqual(json.loads(serialize_body({"name": "Ada"})), {"name": "Ada"})
        self.assertEqual(serialize_body([1, 2]), "[1, 2]")


if __name__ == "__main__":
    unittest.main()
