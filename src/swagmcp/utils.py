"""
Name: Utility functions.
Description: Common utility functions for swagmcp, including loading spec documents from files or URLs, environment variable substitution, and logging.
"""

import json
import logging
import os
import re
import sys
from typing import Any, Dict, Union

import requests
import yaml

from .constants import DEFAULT_LOG_LEVEL, DEFAULT_TIMEOUT

# Configure logging
logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: Union[str, int] = DEFAULT_LOG_LEVEL):
    """Configure logging for the application.

    Logs go to stderr so that stdout stays free for the stdio transport.

    Args:
        level: Level name ("debug", "info", "warn", "error") or logging constant
    """
    if isinstance(level, str):
        logging_level = LOG_LEVELS.get(level.lower(), logging.INFO)
    else:
        logging_level = level

    root_logger = logging.getLogger()
    root_logger.setLevel(logging_level)

    # Check if handlers are already configured to prevent duplicates
    if root_logger.handlers:
        for handler in root_logger.handlers:
            if isinstance(handler, logging.StreamHandler):
                handler.setLevel(logging_level)
        return

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    console_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)


def load_spec_from_file(file_path: str) -> Dict[str, Any]:
    """Load a spec document (OpenAPI, Postman collection or environment) from a file.

    Args:
        file_path: Path to the document

    Returns:
        Dict containing the parsed document
    """
    _, ext = os.path.splitext(file_path)
    with open(file_path, "r") as f:
        if ext.lower() in (".yaml", ".yml"):
            return yaml.safe_load(f)
        elif ext.lower() == ".json":
            return json.load(f)
        else:
            raise ValueError(f"Unsupported file extension: {ext}")


def load_spec_from_url(url: str, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    """Load a spec document from a URL.

    Args:
        url: URL of the document
        timeout: Request timeout in seconds

    Returns:
        Dict containing the parsed document
    """
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    content_type = response.headers.get("Content-Type", "")

    if "application/json" in content_type:
        return response.json()
    elif "yaml" in content_type or url.endswith((".yaml", ".yml")):
        return yaml.safe_load(response.text)
    else:
        # Try to parse as JSON first, then fall back to YAML
        try:
            return response.json()
        except json.JSONDecodeError:
            try:
                return yaml.safe_load(response.text)
            except yaml.YAMLError:
                raise ValueError("Unable to parse response as JSON or YAML")


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def load_document(source: str, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    """Load a document from either a URL or a local path.

    Args:
        source: URL or file path
        timeout: Request timeout in seconds for URLs

    Returns:
        Dict containing the parsed document

    Raises:
        ValueError: If the document does not parse into a mapping
    """
    if is_url(source):
        logger.debug(f"Fetching document from {source}")
        document = load_spec_from_url(source, timeout=timeout)
    else:
        logger.debug(f"Reading document from {source}")
        document = load_spec_from_file(source)

    if not isinstance(document, dict):
        raise ValueError(f"Document at {source} is not a JSON/YAML object")
    return document


def substitute_env_vars(value: str) -> str:
    """Substitute environment variables in a string.

    Handles `{VAR_NAME}`.
    Keeps the original placeholder if the environment variable is not found.

    Args:
        value: String potentially containing environment variable references

    Returns:
        String with environment variables substituted
    """
    if not value or not isinstance(value, str):
        return value

    def replace(match):
        name = match.group(1)
        if name not in os.environ:
            logger.warning(f"Environment variable not found in environment: {name}")
            return match.group(0)
        return os.environ[name]

    return ENV_VAR_PATTERN.sub(replace, value)


def setup_environment(level: Union[str, int] = DEFAULT_LOG_LEVEL):
    """Setup the environment for the application.

    - Configures logging
    - Loads environment variables from .env file
    """
    from dotenv import load_dotenv

    configure_logging(level)

    load_dotenv()
    logger.debug("Loaded environment variables from .env file")
