"""Configuration file for pytest."""

import json
import os
import sys
from pathlib import Path

import pytest

# Add src directory to the path so tests can import the package without installing it
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# Fixtures for test data


@pytest.fixture
def fixtures_dir():
    """Directory holding the sample documents."""
    return FIXTURES_DIR


@pytest.fixture
def pets_spec_path():
    """Path of the two-endpoint OpenAPI v3 document."""
    return str(FIXTURES_DIR / "pets.yaml")


@pytest.fixture
def petstore_v2_spec():
    """Return the Swagger 2.0 petstore document."""
    with open(FIXTURES_DIR / "petstore_v2.json", "r") as f:
        return json.load(f)


@pytest.fixture
def postman_collection():
    """Return the sample Postman collection."""
    with open(FIXTURES_DIR / "collection.json", "r") as f:
        return json.load(f)


@pytest.fixture
def postman_environment():
    """Return the sample Postman environment."""
    with open(FIXTURES_DIR / "environment.json", "r") as f:
        return json.load(f)


@pytest.fixture
def temp_config_file(tmp_path):
    """Write a configuration mapping to a temporary file and return its path."""

    def write(config_data):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(config_data))
        return str(path)

    return write


@pytest.fixture(autouse=True)
def clean_test_env(monkeypatch):
    """Keep test credentials out of the real environment."""
    for key in list(os.environ):
        if key.startswith("SWAGMCP_TEST_"):
            monkeypatch.delenv(key, raising=False)
