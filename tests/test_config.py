"""Tests for configuration loading and validation."""

import json
import os
import tempfile
import unittest
from unittest.mock import patch

from swagmcp.config import ConfigError, load_config, parse_config
from swagmcp.constants import DEFAULT_API_BASE_URL, DEFAULT_OPENAPI_URL
from swagmcp.models import ApiFormat


class TestParseConfig(unittest.TestCase):
    """Tests for parse_config."""

    def test_openapi_defaults(self):
        config = parse_config({"api": {"type": "openapi", "openapi": {"url": "./spec.yaml"}}})
        self.assertEqual(config.api_type, ApiFormat.openapi)
        self.assertEqual(config.api.openapi.url, "./spec.yaml")
        self.assertIsNone(config.api.openapi.api_base_url)
        self.assertIsNone(config.default_auth)
        self.assertEqual(config.log.level, "info")
        self.assertEqual(config.server.transport, "stdio")
        self.assertEqual(config.server.port, 3000)
        self.assertEqual(config.http.timeout, 30.0)

    def test_camel_case_fields(self):
        config = parse_config(
            {
                "api": {
                    "type": "openapi",
                    "openapi": {
                        "url": "https://example.com/spec.json",
                        "apiBaseUrl": "https://api.example.com",
                        "defaultAuth": {
                            "type": "apiKey",
                            "apiKey": "k",
                            "apiKeyName": "X-Key",
                            "apiKeyIn": "query",
                        },
                    },
                },
                "server": {"transport": "sse", "port": 8080},
                "http": {"timeout": 5},
            }
        )
        self.assertEqual(config.api.openapi.api_base_url, "https://api.example.com")
        self.assertEqual(config.default_auth.api_key_name, "X-Key")
        self.assertEqual(config.default_auth.api_key_in, "query")
        self.assertEqual(config.server.transport, "sse")
        self.assertEqual(config.server.port, 8080)
        self.assertEqual(config.http.timeout, 5.0)

    def test_legacy_swagger_section(self):
        """A top-level swagger section is treated as api.openapi."""
        config = parse_config(
            {"swagger": {"url": "https://example.com/swagger.json", "apiBaseUrl": "https://x.test"}}
        )
        self.assertEqual(config.api_type, ApiFormat.openapi)
        self.assertEqual(config.api.openapi.url, "https://example.com/swagger.json")
        self.assertEqual(config.api.openapi.api_base_url, "https://x.test")

    def test_postman(self):
        config = parse_config(
            {
                "api": {
                    "type": "postman",
                    "postman": {
                        "collectionFile": "./collection.json",
                        "environmentUrl": "https://example.com/env.json",
                        "defaultAuth": {"type": "bearer", "token": "t"},
                    },
                }
            }
        )
        self.assertEqual(config.api_type, ApiFormat.postman)
        self.assertEqual(config.api.postman.collection_source, "./collection.json")
        self.assertEqual(config.api.postman.environment_source, "https://example.com/env.json")
        self.assertEqual(config.default_auth.token, "t")

    def test_collection_url_preferred(self):
        config = parse_config(
            {
                "api": {
                    "type": "postman",
                    "postman": {"collectionUrl": "https://a.test/c.json", "collectionFile": "c.json"},
                }
            }
        )
        self.assertEqual(config.api.postman.collection_source, "https://a.test/c.json")
        self.assertIsNone(config.api.postman.environment_source)

    def test_missing_sections(self):
        with self.assertRaises(ConfigError):
            parse_config({"api": {"type": "openapi"}})
        with self.assertRaises(ConfigError):
            parse_config({"api": {"type": "postman"}})
        with self.assertRaises(ConfigError) as ctx:
            parse_config({"api": {"type": "postman", "postman": {}}})
        self.assertIn("collectionUrl or collectionFile", str(ctx.exception))

    def test_invalid_values(self):
        with self.assertRaises(ConfigError):
            parse_config({"api": {"type": "graphql"}})
        with self.assertRaises(ConfigError):
            parse_config(
                {"api": {"type": "openapi", "openapi": {"url": "x"}}, "log": {"level": "loud"}}
            )

    @patch.dict(os.environ, {"SWAGMCP_TEST_TOKEN": "s3cret"})
    def test_env_substitution_in_default_auth(self):
        raw = {
            "api": {
                "type": "postman",
                "postman": {
                    "collectionFile": "c.json",
                    "defaultAuth": {"type": "bearer", "token": "{SWAGMCP_TEST_TOKEN}"},
                },
            }
        }
        config = parse_config(raw)
        self.assertEqual(config.default_auth.token, "s3cret")
        # The caller's mapping is left untouched
        self.assertEqual(raw["api"]["postman"]["defaultAuth"]["token"], "{SWAGMCP_TEST_TOKEN}")


class TestLoadConfig(unittest.TestCase):
    """Tests for load_config."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write(self, content: str) -> str:
        path = os.path.join(self.tmpdir.name, "config.json")
        with open(path, "w") as f:
            f.write(content)
        return path

    def test_load_file(self):
        path = self._write(json.dumps({"api": {"type": "openapi", "openapi": {"url": "spec.json"}}}))
        self.assertEqual(load_config(path).api.openapi.url, "spec.json")

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            load_config(os.path.join(self.tmpdir.name, "missing.json"))

    def test_invalid_json(self):
        with self.assertRaises(ConfigError):
            load_config(self._write("{not json"))

    def test_not_an_object(self):
        with self.assertRaises(ConfigError):
            load_config(self._write("[1, 2]"))

    @patch("swagmcp.config.os.path.exists", return_value=False)
    def test_default_petstore(self, mock_exists):
        config = load_config()
        self.assertEqual(config.api.openapi.url, DEFAULT_OPENAPI_URL)
        self.assertEqual(config.api.openapi.api_base_url, DEFAULT_API_BASE_URL)
        self.assertEqual(config.default_auth.type, "apiKey")
        self.assertEqual(config.default_auth.api_key_name, "api_key")


if __name__ == "__main__":
    unittest.main()
