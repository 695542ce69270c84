"""Unit tests for the Postman collection parser."""

import json
import unittest
from pathlib import Path

from swagmcp.models import ApiFormat
from swagmcp.postman.collection import (
    PostmanCollectionParser,
    find_path_variables,
    find_variables,
    parse_environment,
    resolve_variables,
    slugify,
)

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


def _load(name):
    with open(FIXTURES_DIR / name, "r") as f:
        return json.load(f)


class TestPostmanCollectionParser(unittest.TestCase):
    """Tests for the PostmanCollectionParser class."""

    def setUp(self):
        self.collection = _load("collection.json")
        self.environment = _load("environment.json")
        self.parser = PostmanCollectionParser(self.collection, self.environment)
        self.endpoints = self.parser.get_endpoints()
        self.by_id = {e.id: e for e in self.endpoints}

    def test_ids_in_collection_order(self):
        """Request names are slugified and disambiguated by folder."""
        self.assertEqual(
            [e.id for e in self.endpoints],
            [
                "get_user",
                "create_user",
                "admin_get_user",
                "upload_avatar",
                "health_check",
                "api_2fa_verify",
            ],
        )
        self.assertTrue(all(e.source == ApiFormat.postman for e in self.endpoints))
        self.assertTrue(all(e.security is None for e in self.endpoints))

    def test_folders_and_names(self):
        """Folder paths are recorded and the request name kept."""
        self.assertEqual(self.by_id["get_user"].folder, "Users")
        self.assertEqual(self.by_id["admin_get_user"].folder, "Admin")
        self.assertEqual(self.by_id["admin_get_user"].name, "Get User")
        self.assertEqual(self.by_id["health_check"].folder, "")

    def test_nested_folder_path(self):
        """Nested folders are joined with a slash."""
        collection = {
            "item": [
                {
                    "name": "Outer",
                    "item": [
                        {
                            "name": "Inner",
                            "item": [{"name": "Ping", "request": "https://x.test/ping"}],
                        }
                    ],
                }
            ]
        }
        endpoints = PostmanCollectionParser(collection).get_endpoints()
        self.assertEqual(endpoints[0].folder, "Outer/Inner")

    def test_string_request_is_get(self):
        """A bare URL string is a GET request."""
        endpoint = self.by_id["health_check"]
        self.assertEqual(endpoint.method, "GET")
        self.assertEqual(endpoint.locator, "{{baseUrl}}/health")
        self.assertEqual(endpoint.summary, "Health check")

    def test_locator_rebuilt_without_raw(self):
        """URL objects without raw are reassembled from their parts."""
        endpoint = self.by_id["api_2fa_verify"]
        self.assertEqual(endpoint.method, "POST")
        self.assertEqual(endpoint.locator, "https://auth.example.com:8443/v1/verify?code=123")

    def test_url_parameters(self):
        """Enabled query params, declared variables and headers become parameters."""
        endpoint = self.by_id["get_user"]
        self.assertEqual(
            [(p.name, p.location) for p in endpoint.parameters],
            [("verbose", "query"), ("id", "path"), ("Accept", "header")],
        )
        verbose, user_id, _ = endpoint.parameters
        self.assertEqual(verbose.description, "Include details")
        self.assertEqual(verbose.example, "false")
        self.assertTrue(user_id.required)
        self.assertEqual(user_id.example, "1")
        self.assertEqual(endpoint.description, "Fetch a single user by id")

    def test_undeclared_path_variables(self):
        """`:name` segments without a declared variable are still path parameters."""
        params = self.by_id["admin_get_user"].parameters
        self.assertEqual([(p.name, p.location, p.required) for p in params], [("userId", "path", True)])

    def test_authorization_header_excluded(self):
        """Authorization headers are supplied by the auth resolver, not as parameters."""
        names = [p.name for p in self.by_id["get_user"].parameters]
        self.assertNotIn("Authorization", names)
        self.assertNotIn("X-Debug", names)

    def test_raw_body(self):
        """Raw bodies keep their text as the example."""
        endpoint = self.by_id["create_user"]
        self.assertEqual(len(endpoint.request_bodies), 1)
        body = endpoint.request_bodies[0]
        self.assertEqual(body.mode, "raw")
        self.assertEqual(body.media_type, "application/json")
        self.assertEqual(body.example, '{"name": "Ada"}')

    def test_formdata_body(self):
        """Enabled form fields become body parameters and a form schema."""
        endpoint = self.by_id["upload_avatar"]
        self.assertEqual(
            [(p.name, p.location, p.type) for p in endpoint.parameters],
            [("file", "body", "file"), ("caption", "body", "text")],
        )
        body = endpoint.request_bodies[0]
        self.assertEqual(body.media_type, "multipart/form-data")
        self.assertEqual(set(body.schema_definition["properties"]), {"file", "caption"})
        self.assertEqual(body.example, {"file": "", "caption": "me"})

    def test_example_responses(self):
        """Saved examples are recorded by status code."""
        responses = self.by_id["create_user"].responses
        self.assertEqual(list(responses), ["201"])
        self.assertEqual(responses["201"].description, "Created")
        self.assertEqual(responses["201"].media_type, "application/json")

    def test_environment_overlays_collection_variables(self):
        """Enabled environment values override collection variables."""
        self.assertEqual(
            self.parser.get_environment(),
            {"baseUrl": "https://api.test", "version": "v1"},
        )
        endpoints, environment = self.parser.normalize()
        self.assertEqual(len(endpoints), 6)
        self.assertEqual(environment["baseUrl"], "https://api.test")

    def test_info(self):
        info = self.parser.get_info()
        self.assertEqual(info.title, "Users API")
        self.assertEqual(info.description, "Manage users")
        self.assertEqual(PostmanCollectionParser({"item": []}).get_info().title, "Postman API Server")

    def test_wrapped_collection(self):
        """Collections exported through the Postman API are unwrapped."""
        parser = PostmanCollectionParser({"collection": self.collection})
        self.assertEqual(len(parser.get_endpoints()), 6)
        self.assertEqual(parser.get_environment()["baseUrl"], "https://collection.test")

    def test_invalid_collection(self):
        with self.assertRaises(ValueError):
            PostmanCollectionParser({"item": "nope"})
        with self.assertRaises(ValueError):
            PostmanCollectionParser("not a collection")

    def test_duplicate_names_without_folder(self):
        """Repeated names at the same level get numeric suffixes."""
        collection = {
            "item": [
                {"name": "Ping", "request": "https://x.test/a"},
                {"name": "Ping", "request": "https://x.test/b"},
                {"name": "Ping", "request": "https://x.test/c"},
            ]
        }
        ids = [e.id for e in PostmanCollectionParser(collection).get_endpoints()]
        self.assertEqual(ids, ["ping", "ping_1", "ping_2"])


class TestPostmanHelpers(unittest.TestCase):
    """Tests for the variable and naming helpers."""

    def test_slugify(self):
        self.assertEqual(slugify("Get User (v2)"), "get_user_v2")
        self.assertEqual(slugify("2fa: verify!"), "api_2fa_verify")
        self.assertEqual(slugify("!!!"), "unnamed_request")

    def test_resolve_variables(self):
        """Known tokens are replaced, unknown tokens kept."""
        environment = {"baseUrl": "https://api.test", "id": "7"}
        self.assertEqual(
            resolve_variables("{{baseUrl}}/users/{{ id }}/{{missing}}", environment),
            "https://api.test/users/7/{{missing}}",
        )
        self.assertEqual(resolve_variables("", environment), "")

    def test_find_variables(self):
        self.assertEqual(find_variables("{{a}}/x/{{b}}"), ["a", "b"])
        self.assertEqual(find_path_variables("{{baseUrl}}/users/:id/posts/:postId?x=:y"), ["id", "postId"])
        self.assertEqual(find_path_variables("https://host:8080/users"), [])

    def test_parse_environment(self):
        """Disabled values are skipped and missing values become empty strings."""
        environment = {
            "values": [
                {"key": "a", "value": 1},
                {"key": "b", "value": "x", "enabled": False},
                {"key": "c"},
            ]
        }
        self.assertEqual(parse_environment(environment), {"a": "1", "c": ""})
        self.assertEqual(parse_environment(None), {})


if __name__ == "__main__":
    unittest.main()
