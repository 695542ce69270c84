"""
Name: Configuration.
Description: Pydantic models for the swagmcp configuration file and the loader that validates it, migrates the legacy `swagger` section and substitutes environment variables in default credentials.
"""

import json
import logging
import os
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from .constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_CONFIG_FILE,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_OPENAPI_URL,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    DEFAULT_TRANSPORT,
)
from .models import ApiFormat, AuthConfig
from .utils import substitute_env_vars

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when the configuration file is missing required settings."""


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OpenAPISourceConfig(_CamelModel):
    """Where to load an OpenAPI document from."""

    url: str  # URL or local path
    api_base_url: Optional[str] = None
    default_auth: Optional[AuthConfig] = None


class PostmanSourceConfig(_CamelModel):
    """Where to load a Postman collection (and optional environment) from."""

    collection_url: Optional[str] = None
    collection_file: Optional[str] = None
    environment_url: Optional[str] = None
    environment_file: Optional[str] = None
    default_auth: Optional[AuthConfig] = None

    @property
    def collection_source(self) -> Optional[str]:
        return self.collection_url or self.collection_file

    @property
    def environment_source(self) -> Optional[str]:
        return self.environment_url or self.environment_file


class ApiSection(_CamelModel):
    type: ApiFormat = ApiFormat.openapi
    openapi: Optional[OpenAPISourceConfig] = None
    postman: Optional[PostmanSourceConfig] = None


class LogConfig(_CamelModel):
    level: Literal["debug", "info", "warn", "error"] = DEFAULT_LOG_LEVEL


class ServerConfig(_CamelModel):
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    transport: Literal["stdio", "sse"] = DEFAULT_TRANSPORT


class HttpConfig(_CamelModel):
    timeout: float = DEFAULT_TIMEOUT


class ApiConfig(_CamelModel):
    """Top-level swagmcp configuration."""

    api: ApiSection = Field(default_factory=ApiSection)
    swagger: Optional[OpenAPISourceConfig] = None
    log: LogConfig = Field(default_factory=LogConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)

    @model_validator(mode="before")
    @classmethod
    def migrate_legacy_swagger(cls, data: Any) -> Any:
        """Move a legacy top-level `swagger` section under `api.openapi`."""
        if not isinstance(data, dict):
            return data

        swagger = data.get("swagger")
        if swagger and "api" not in data:
            logger.info("Migrating legacy 'swagger' configuration to 'api.openapi'")
            data = {**data, "api": {"type": "openapi", "openapi": swagger}}
        return data

    @model_validator(mode="after")
    def check_api_section(self) -> "ApiConfig":
        if self.api.type == ApiFormat.openapi:
            if self.api.openapi is None:
                if self.swagger is None:
                    raise ValueError(
                        "api.openapi settings are required when api.type is 'openapi'"
                    )
                self.api.openapi = self.swagger
        elif self.api.postman is None:
            raise ValueError("api.postman settings are required when api.type is 'postman'")
        elif not self.api.postman.collection_source:
            raise ValueError(
                "Either collectionUrl or collectionFile must be specified for Postman configuration"
            )
        return self

    @property
    def api_type(self) -> ApiFormat:
        return self.api.type

    @property
    def default_auth(self) -> Optional[AuthConfig]:
        if self.api.type == ApiFormat.openapi:
            return self.api.openapi.default_auth
        return self.api.postman.default_auth


DEFAULT_CONFIG: Dict[str, Any] = {
    "api": {
        "type": "openapi",
        "openapi": {
            "url": DEFAULT_OPENAPI_URL,
            "apiBaseUrl": DEFAULT_API_BASE_URL,
            "defaultAuth": {
                "type": "apiKey",
                "apiKey": "special-key",
                "apiKeyName": "api_key",
                "apiKeyIn": "header",
            },
        },
    },
    "log": {"level": DEFAULT_LOG_LEVEL},
    "server": {"host": DEFAULT_HOST, "port": DEFAULT_PORT},
}


def _substitute_auth(auth_data: Any) -> Any:
    """Substitute environment variables in string credential fields."""
    if not isinstance(auth_data, dict):
        return auth_data
    return {
        key: substitute_env_vars(value) if key != "type" else value
        for key, value in auth_data.items()
    }


def parse_config(config_data: Dict[str, Any]) -> ApiConfig:
    """Validate a configuration mapping.

    Args:
        config_data: Raw configuration as loaded from JSON

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the configuration is invalid
    """
    config_data = json.loads(json.dumps(config_data))  # detach from caller's dict

    for section in (
        config_data.get("swagger"),
        (config_data.get("api") or {}).get("openapi"),
        (config_data.get("api") or {}).get("postman"),
    ):
        if isinstance(section, dict) and "defaultAuth" in section:
            section["defaultAuth"] = _substitute_auth(section["defaultAuth"])

    try:
        return ApiConfig.model_validate(config_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(config_path: Optional[str] = None) -> ApiConfig:
    """Load and validate the configuration file.

    When no path is given and ./config.json does not exist, the built-in
    Petstore configuration is used.

    Args:
        config_path: Path to a JSON configuration file

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE
        if not os.path.exists(config_path):
            logger.warning(
                f"No configuration file at {config_path}, using default Petstore configuration"
            )
            return parse_config(DEFAULT_CONFIG)

    try:
        with open(config_path, "r") as f:
            config_data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {config_path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Configuration file {config_path} is not valid JSON: {e}") from e

    if not isinstance(config_data, dict):
        raise ConfigError(f"Configuration file {config_path} must contain a JSON object")

    logger.debug(f"Loaded configuration from {config_path}")
    return parse_config(config_data)
