"""
Name: Discovery service.
Description: Implements the read-only tools over a loaded API: listing with method and tag/folder filters, endpoint details, keyword search with relevance ranking and, for OpenAPI documents, schema lookup.
"""

import copy
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Union

from .auth.auth_helpers import AuthResolver
from .constants import (
    DEFAULT_LIST_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_SUMMARY_TRUNCATION,
)
from .context import ApiContext
from .models import ApiFormat, Endpoint

logger = logging.getLogger(__name__)

POSTMAN_AUTH_HINT = "Use the auth parameter in make_request to provide authentication"
POSTMAN_BODY_METHODS = ("POST", "PUT", "PATCH")


def truncate(text: str, length: int = DEFAULT_SUMMARY_TRUNCATION) -> str:
    if len(text) > length:
        return text[:length] + "..."
    return text


def calculate_relevance(query: str, text: str) -> float:
    """Score how well a search text matches a query.

    Each distinct query word found in the text scores 1, and 0.5 more when
    it also appears as a whole word.

    Args:
        query: Lowercased query
        text: Lowercased search text

    Returns:
        Relevance score
    """
    score = 0.0
    seen = set()
    for word in query.split():
        if word in seen:
            continue
        seen.add(word)
        if word not in text:
            continue
        score += 1
        if re.search(rf"(?<![a-z0-9_]){re.escape(word)}(?![a-z0-9_])", text):
            score += 0.5
    return score


def _resolve_pointer(document: Any, pointer: str) -> Any:
    parts = pointer.lstrip("#").strip("/").split("/")
    current = document
    for part in parts:
        part = part.replace("~1", "/").replace("~0", "~")
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return None
    return current


class DiscoveryService:
    """Listing, details, search and schema lookup over an ApiContext.

    Args:
        context: The loaded API
        auth_resolver: Used to annotate details with scheme requirements
    """

    def __init__(self, context: ApiContext, auth_resolver: Optional[AuthResolver] = None):
        self.context = context
        self.auth_resolver = auth_resolver or AuthResolver(
            context.default_auth, context.security_schemes
        )

    @property
    def is_postman(self) -> bool:
        return self.context.format == ApiFormat.postman

    def _summary(self, endpoint: Endpoint, include_deprecated: bool = True) -> Dict[str, Any]:
        if self.is_postman:
            return {
                "id": endpoint.id,
                "name": endpoint.name,
                "method": endpoint.method,
                "url": endpoint.locator,
                "folder": endpoint.folder,
                "description": truncate(endpoint.description),
            }

        entry = {
            "operationId": endpoint.id,
            "method": endpoint.method,
            "path": endpoint.locator,
            "summary": endpoint.summary,
            "description": endpoint.description,
            "tags": list(endpoint.tags),
        }
        if include_deprecated:
            entry["deprecated"] = endpoint.deprecated
        return entry

    def _matches_group(self, endpoint: Endpoint, group: str) -> bool:
        group = group.lower()
        if self.is_postman:
            return group in endpoint.folder.lower()
        return any(group in tag.lower() for tag in endpoint.tags)

    def list_endpoints(
        self,
        method: Optional[str] = None,
        tag: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Dict[str, Any]:
        """List endpoints, optionally filtered.

        Args:
            method: HTTP method, compared case-insensitively
            tag: Substring of a tag (OpenAPI) or of the folder path (Postman)
            limit: Maximum number of entries; scanning stops once reached

        Returns:
            {total, endpoints} for OpenAPI, {total, requests} for Postman
        """
        entries = []
        for endpoint in self.context.endpoints:
            if len(entries) >= limit:
                break
            if method and endpoint.method.lower() != method.lower():
                continue
            if tag and not self._matches_group(endpoint, tag):
                continue
            entries.append(self._summary(endpoint))

        key = "requests" if self.is_postman else "endpoints"
        return {"total": len(entries), key: entries}

    def get_endpoint_details(
        self,
        endpoint_id: Optional[str] = None,
        path: Optional[str] = None,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Union[Dict[str, Any], str]:
        """Full description of one endpoint.

        Lookup is by id, then (path, method), then request name (Postman).

        Returns:
            The details, or the not-found text
        """
        endpoint = self.context.find(endpoint_id, path, method, name)
        if endpoint is None:
            return self.context.not_found_message

        if self.is_postman:
            details = self._postman_details(endpoint)
        else:
            details = self._openapi_details(endpoint)
        return copy.deepcopy(details)

    def _openapi_details(self, endpoint: Endpoint) -> Dict[str, Any]:
        parameters = [
            {
                "name": p.name,
                "in": p.location,
                "required": p.required,
                "type": p.type,
                "description": p.description,
                "example": p.example,
            }
            for p in endpoint.parameters
        ]

        request_body = [
            {
                "mediaType": body.media_type,
                "schema": body.schema_definition,
                "required": body.required,
            }
            for body in endpoint.request_bodies
        ] or None

        responses = []
        for code, response in endpoint.responses.items():
            schema = None
            if response.media_type or response.schema_definition:
                schema = [
                    {
                        "mediaType": response.media_type,
                        "schema": response.schema_definition,
                    }
                ]
            responses.append(
                {
                    "statusCode": code,
                    "description": response.description,
                    "schema": schema,
                }
            )

        schemes = self.context.security_schemes
        return {
            "operationId": endpoint.id,
            "method": endpoint.method,
            "path": endpoint.locator,
            "summary": endpoint.summary,
            "description": endpoint.description,
            "tags": list(endpoint.tags),
            "deprecated": endpoint.deprecated,
            "parameters": parameters,
            "requestBody": request_body,
            "responses": responses,
            "security": endpoint.security,
            "securitySchemes": {
                name: scheme.model_dump(by_alias=True, exclude_none=True)
                for name, scheme in schemes.items()
            },
            "authentication": self.auth_resolver.describe_requirements(
                endpoint.security, schemes
            ),
        }

    def _postman_details(self, endpoint: Endpoint) -> Dict[str, Any]:
        parameters = {"query": [], "path": [], "headers": []}
        groups = {"query": "query", "path": "path", "header": "headers"}
        form_fields = []
        for p in endpoint.parameters:
            entry = {
                "name": p.name,
                "value": p.example if p.example is not None else "",
                "description": p.description,
            }
            if p.location == "body":
                form_fields.append({**entry, "type": p.type or "text"})
            else:
                parameters[groups[p.location]].append(entry)

        body = None
        if endpoint.request_bodies and endpoint.method in POSTMAN_BODY_METHODS:
            request_body = endpoint.request_bodies[0]
            body = {
                "mode": request_body.mode,
                "mediaType": request_body.media_type,
                "description": "Request body based on the collection definition",
            }
            if request_body.mode in ("formdata", "urlencoded"):
                body["formFields"] = form_fields
            else:
                body["example"] = request_body.example if request_body.example is not None else ""

        return {
            "id": endpoint.id,
            "name": endpoint.name,
            "method": endpoint.method,
            "url": endpoint.locator,
            "folder": endpoint.folder,
            "description": endpoint.description,
            "parameters": parameters,
            "body": body,
            "auth": POSTMAN_AUTH_HINT,
        }

    def search_endpoints(
        self, query: str, limit: int = DEFAULT_SEARCH_LIMIT
    ) -> Dict[str, Any]:
        """Keyword search ranked by relevance.

        Every endpoint is scored, results are sorted by descending relevance
        (ties keep document order) and then truncated to the limit.

        Args:
            query: Search text, matched case-insensitively as a substring
            limit: Maximum number of results

        Returns:
            {query, total, results}
        """
        needle = (query or "").lower()
        scored = []
        for endpoint in self.context.endpoints:
            text = endpoint.search_text()
            if needle in text:
                scored.append((calculate_relevance(needle, text), endpoint))

        scored.sort(key=lambda item: item[0], reverse=True)
        results = [
            self._summary(endpoint, include_deprecated=False)
            for _, endpoint in scored[: max(limit, 0)]
        ]
        logger.debug(f"Search '{query}' matched {len(scored)} endpoints")
        return {"query": query, "total": len(results), "results": results}

    def available_schemas(self) -> List[str]:
        document = self.context.document
        schemas = (document.get("components") or {}).get("schemas") or document.get(
            "definitions"
        ) or {}
        return list(schemas)

    def get_schema(
        self,
        schema_name: Optional[str] = None,
        operation_id: Optional[str] = None,
        schema_path: Optional[str] = None,
    ) -> Union[Dict[str, Any], str]:
        """Look up a schema of the OpenAPI document.

        Args:
            schema_name: Component schema name (components.schemas or definitions)
            operation_id: Return the request and response schemas of this operation
            schema_path: JSON pointer such as "#/components/schemas/User"

        Returns:
            The schema and its location, or a text listing the available schemas
        """
        if self.is_postman:
            return "Schema lookup is only available for OpenAPI documents."

        document = self.context.document
        schema = None
        location = ""

        if schema_name:
            if schema_name in ((document.get("components") or {}).get("schemas") or {}):
                location = f"#/components/schemas/{schema_name}"
            elif schema_name in (document.get("definitions") or {}):
                location = f"#/definitions/{schema_name}"
            if location:
                schema = _resolve_pointer(document, location)
        elif operation_id:
            endpoint = self.context.get(operation_id)
            if endpoint is not None:
                return copy.deepcopy(self._operation_schemas(endpoint))
        elif schema_path:
            schema = _resolve_pointer(document, schema_path)
            location = schema_path

        if schema is None:
            return f"Schema not found. Available schemas: {', '.join(self.available_schemas())}"

        return {"schemaLocation": location, "schema": copy.deepcopy(schema)}

    @staticmethod
    def _operation_schemas(endpoint: Endpoint) -> Dict[str, Any]:
        request_body = None
        if endpoint.request_bodies:
            request_body = {
                body.media_type: {"schema": body.schema_definition}
                for body in endpoint.request_bodies
            }

        responses = {}
        for code, response in endpoint.responses.items():
            content = None
            if response.media_type or response.schema_definition:
                content = {
                    response.media_type or "application/json": {
                        "schema": response.schema_definition
                    }
                }
            responses[code] = {"description": response.description, "content": content}

        return {
            "operationId": endpoint.id,
            "schemas": {"requestBody": request_body, "responses": responses},
        }
