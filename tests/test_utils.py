import io
import json
import logging
import os
import unittest
from unittest.mock import MagicMock, mock_open, patch

import requests

from swagmcp.utils import (
    configure_logging,
    is_url,
    load_document,
    load_spec_from_file,
    load_spec_from_url,
    substitute_env_vars,
)


class TestLoadSpecFromFile(unittest.TestCase):

    @patch("builtins.open", new_callable=mock_open, read_data='{"openapi": "3.0.0"}')
    def test_load_json_file(self, mock_file):
        spec = load_spec_from_file("test.json")
        self.assertEqual(spec, {"openapi": "3.0.0"})
        mock_file.assert_called_once_with("test.json", "r")

    @patch("swagmcp.utils.yaml.safe_load")
    @patch("builtins.open", new_callable=mock_open, read_data="openapi: 3.0.0")
    def test_load_yaml_file(self, mock_file, mock_yaml_load):
        mock_yaml_load.return_value = {"openapi": "3.0.0"}

        for path in ("test.yaml", "test.YML"):
            self.assertEqual(load_spec_from_file(path), {"openapi": "3.0.0"})
        self.assertEqual(mock_yaml_load.call_count, 2)

    @patch("builtins.open", new_callable=mock_open, read_data="some text")
    def test_unsupported_extension(self, mock_file):
        with self.assertRaises(ValueError) as context:
            load_spec_from_file("test.txt")
        self.assertIn("Unsupported file extension: .txt", str(context.exception))


class TestLoadSpecFromUrl(unittest.TestCase):

    @patch("swagmcp.utils.requests.get")
    def test_json_content_type(self, mock_get):
        mock_response = MagicMock()
        mock_response.headers = {"Content-Type": "application/json"}
        mock_response.json.return_value = {"openapi": "3.0.0"}
        mock_get.return_value = mock_response

        spec = load_spec_from_url("http://example.com/spec.json")
        self.assertEqual(spec, {"openapi": "3.0.0"})
        mock_get.assert_called_once_with("http://example.com/spec.json", timeout=30.0)
        mock_response.raise_for_status.assert_called_once()

    @patch("swagmcp.utils.requests.get")
    def test_yaml_by_extension(self, mock_get):
        mock_response = MagicMock()
        mock_response.headers = {"Content-Type": "text/plain"}
        mock_response.text = "openapi: 3.0.0\ninfo:\n  title: T\n"
        mock_get.return_value = mock_response

        spec = load_spec_from_url("http://example.com/spec.yaml", timeout=5)
        self.assertEqual(spec["info"]["title"], "T")
        mock_get.assert_called_once_with("http://example.com/spec.yaml", timeout=5)

    @patch("swagmcp.utils.requests.get")
    def test_fallback_to_yaml(self, mock_get):
        mock_response = MagicMock()
        mock_response.headers = {}
        mock_response.json.side_effect = json.JSONDecodeError("bad", "doc", 0)
        mock_response.text = "swagger: '2.0'"
        mock_get.return_value = mock_response

        self.assertEqual(load_spec_from_url("http://example.com/spec"), {"swagger": "2.0"})

    @patch("swagmcp.utils.requests.get")
    def test_http_error_propagates(self, mock_get):
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = requests.HTTPError("404")
        mock_get.return_value = mock_response

        with self.assertRaises(requests.HTTPError):
            load_spec_from_url("http://example.com/missing.json")


class TestLoadDocument(unittest.TestCase):

    def test_is_url(self):
        self.assertTrue(is_url("https://example.com/a.json"))
        self.assertTrue(is_url("HTTP://example.com/a.json"))
        self.assertFalse(is_url("./specs/a.json"))

    @patch("swagmcp.utils.load_spec_from_url")
    def test_dispatches_urls(self, mock_load):
        mock_load.return_value = {"openapi": "3.0.0"}
        self.assertEqual(load_document("https://example.com/a.json", timeout=3), {"openapi": "3.0.0"})
        mock_load.assert_called_once_with("https://example.com/a.json", timeout=3)

    @patch("swagmcp.utils.load_spec_from_file")
    def test_rejects_non_mapping(self, mock_load):
        mock_load.return_value = ["a", "b"]
        with self.assertRaises(ValueError):
            load_document("./list.json")


class TestSubstituteEnvVars(unittest.TestCase):

    @patch.dict(os.environ, {"SWAGMCP_TEST_TOKEN": "s3cret", "SWAGMCP_TEST_USER": "ada"})
    def test_substitution(self):
        self.assertEqual(substitute_env_vars("{SWAGMCP_TEST_TOKEN}"), "s3cret")
        self.assertEqual(
            substitute_env_vars("{SWAGMCP_TEST_USER}:{SWAGMCP_TEST_TOKEN}"), "ada:s3cret"
        )

    @patch.dict(os.environ, {"SWAGMCP_TEST_USER": "ada"})
    def test_missing_variable_kept(self):
        """Unknown placeholders stay, known ones are still replaced."""
        self.assertEqual(
            substitute_env_vars("{SWAGMCP_TEST_USER}-{SWAGMCP_TEST_MISSING}"),
            "ada-{SWAGMCP_TEST_MISSING}",
        )

    def test_non_placeholders(self):
        self.assertEqual(substitute_env_vars("plain"), "plain")
        self.assertEqual(substitute_env_vars('{"json": 1}'), '{"json": 1}')
        self.assertEqual(substitute_env_vars(""), "")
        self.assertIsNone(substitute_env_vars(None))


class TestConfigureLogging(unittest.TestCase):

    def setUp(self):
        self.root = logging.getLogger()
        self.saved_handlers = list(self.root.handlers)
        self.saved_level = self.root.level
        self.saved_handler_levels = [(h, h.level) for h in self.saved_handlers]

    def tearDown(self):
        self.root.handlers = self.saved_handlers
        self.root.setLevel(self.saved_level)
        for handler, level in self.saved_handler_levels:
            handler.setLevel(level)

    def test_level_names(self):
        configure_logging("debug")
        self.assertEqual(self.root.level, logging.DEBUG)
        configure_logging("warn")
        self.assertEqual(self.root.level, logging.WARNING)
        configure_logging("unknown")
        self.assertEqual(self.root.level, logging.INFO)

    def test_handler_writes_to_stderr(self):
        self.root.handlers = []
        stderr = io.StringIO()
        with patch("swagmcp.utils.sys.stderr", stderr):
            configure_logging("info")
        self.assertEqual(len(self.root.handlers), 1)
        self.assertIs(self.root.handlers[0].stream, stderr)

        # A second call reuses the handler
        configure_logging("error")
        self.assertEqual(len(self.root.handlers), 1)
        self.assertEqual(self.root.handlers[0].level, logging.ERROR)


if __name__ == "__main__":
    unittest.main()
