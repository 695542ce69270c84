"""
Name: Shared models.
Description: Pydantic models for the normalized endpoint table shared by the OpenAPI and Postman normalizers, the discovery service and the request dispatcher.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiFormat(str, Enum):
    """Source format of a loaded API description."""

    openapi = "openapi"
    postman = "postman"


class Parameter(BaseModel):
    """Parameter accepted by an endpoint."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: Literal["path", "query", "header", "body"]
    required: bool = False
    type: Optional[str] = None
    description: str = ""
    example: Optional[Any] = None


class RequestBody(BaseModel):
    """One accepted request body representation."""

    model_config = ConfigDict(frozen=True)

    media_type: str
    schema_definition: Optional[Dict[str, Any]] = None
    required: bool = False
    mode: Optional[str] = None  # postman body mode: raw, formdata, urlencoded...
    example: Optional[Any] = None


class ResponseSpec(BaseModel):
    """Documented response for a single status code."""

    model_config = ConfigDict(frozen=True)

    description: str = ""
    media_type: Optional[str] = None
    schema_definition: Optional[Dict[str, Any]] = None


class Endpoint(BaseModel):
    """A callable HTTP operation, whatever format it was loaded from.

    ``locator`` is the OpenAPI path template (``/users/{id}``) or the raw
    Postman URL (``{{baseUrl}}/users/:id``). ``security`` is the effective
    OpenAPI requirement list; it stays ``None`` for Postman requests, whose
    credentials are always supplied by the caller.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    source: ApiFormat
    method: str
    locator: str
    name: str = ""
    folder: str = ""
    summary: str = ""
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    parameters: List[Parameter] = Field(default_factory=list)
    request_bodies: List[RequestBody] = Field(default_factory=list)
    responses: Dict[str, ResponseSpec] = Field(default_factory=dict)
    security: Optional[List[Dict[str, List[str]]]] = None
    deprecated: bool = False

    @property
    def header_parameters(self) -> List[str]:
        """Names of parameters declared as headers."""
        return [p.name for p in self.parameters if p.location == "header"]

    def search_text(self) -> str:
        """Lowercased text blob used for keyword search."""
        grouping = self.tags if self.source == ApiFormat.openapi else [self.folder]
        parts = [self.locator, self.summary, self.description, *grouping, self.id]
        return " ".join(parts).lower()


class SecurityScheme(BaseModel):
    """Security scheme declared by an OpenAPI document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str  # key in the scheme table
    type: str
    location: Optional[str] = Field(default=None, alias="in")
    parameter_name: Optional[str] = Field(default=None, alias="parameterName")
    scheme: Optional[str] = None
    description: Optional[str] = None


class AuthConfig(BaseModel):
    """Credential bundle for one call.

    Field names are camelCase on the wire (``apiKey``, ``apiKeyName``,
    ``apiKeyIn``) and snake_case in Python. A missing ``type`` or ``none``
    means no authentication is applied.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    type: Optional[Literal["none", "basic", "bearer", "apiKey", "oauth2"]] = None
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None
    api_key: Optional[str] = None
    api_key_name: Optional[str] = None
    api_key_in: Optional[Literal["header", "query"]] = None

    @property
    def is_active(self) -> bool:
        return self.type is not None and self.type != "none"


class ApiInfo(BaseModel):
    """Title, version and description of the loaded API."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    version: str = "1.0.0"
    description: str = ""
