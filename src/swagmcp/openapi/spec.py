"""
Name: OpenAPI specification parser.
Description: Provides the OpenAPISpecParser class that normalizes OpenAPI v3 and Swagger v2 documents into Endpoint records and a security scheme table. Includes the $ref resolver used before normalization.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

from ..constants import HTTP_METHODS
from ..models import (
    ApiFormat,
    ApiInfo,
    Endpoint,
    Parameter,
    RequestBody,
    ResponseSpec,
    SecurityScheme,
)

logger = logging.getLogger(__name__)

FORM_MEDIA_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _resolve_references(openapi_spec: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively resolves all local $ref references in an OpenAPI specification.

    Handles circular references correctly. External references are left in
    place.

    Args:
        openapi_spec: A dictionary representing the OpenAPI specification.

    Returns:
        A dictionary representing the OpenAPI specification with all local
        references resolved.
    """
    openapi_spec = copy.deepcopy(openapi_spec)  # Work on a copy
    resolved_cache = {}  # Cache resolved references

    def resolve_ref(ref_string, current_doc):
        """Resolves a single $ref string."""
        parts = ref_string.split("/")
        if parts[0] != "#":
            logger.warning(f"External references not supported: {ref_string}")
            return None

        current = current_doc
        for part in parts[1:]:
            part = part.replace("~1", "/").replace("~0", "~")
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return None  # Reference not found
        return current

    def recursive_resolve(obj, current_doc, seen_refs=None):
        """Recursively resolves references, handling circularity.

        Args:
            obj: The object to traverse.
            current_doc:  Document to search for refs.
            seen_refs: A set to track already-visited references (for circularity
              detection).

        Returns:
            The resolved object.
        """
        if seen_refs is None:
            seen_refs = set()

        if isinstance(obj, dict):
            if "$ref" in obj and isinstance(obj["$ref"], str):
                ref_string = obj["$ref"]

                # Circular reference: drop the $ref to break the cycle
                if ref_string in seen_refs and ref_string not in resolved_cache:
                    return {k: v for k, v in obj.items() if k != "$ref"}

                if ref_string in resolved_cache:
                    return copy.deepcopy(resolved_cache[ref_string])

                resolved_value = resolve_ref(ref_string, current_doc)
                if resolved_value is None:
                    return obj

                resolved_value = recursive_resolve(
                    resolved_value, current_doc, seen_refs | {ref_string}
                )
                resolved_cache[ref_string] = resolved_value
                return copy.deepcopy(resolved_value)

            return {
                key: recursive_resolve(value, current_doc, seen_refs)
                for key, value in obj.items()
            }

        elif isinstance(obj, list):
            return [recursive_resolve(item, current_doc, seen_refs) for item in obj]
        else:
            return obj

    return recursive_resolve(openapi_spec, openapi_spec)


def _merge_parameters(
    path_params: List[Dict[str, Any]], operation_params: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """Merge path-level parameters into an operation's list.

    Operation-level parameters win on (name, in).
    """
    merged: Dict[Tuple[Any, Any], Dict[str, Any]] = {}
    for param in list(path_params) + list(operation_params):
        if not isinstance(param, dict):
            continue
        merged[(param.get("name"), param.get("in"))] = param
    return list(merged.values())


class OpenAPISpecParser:
    """Parser for OpenAPI v3 and Swagger v2 documents."""

    def __init__(self, spec: Dict[str, Any], dereference: bool = True):
        """Initialize the parser with an OpenAPI spec.

        Args:
            spec: The OpenAPI spec as a dictionary
            dereference: Whether to resolve local $ref pointers before normalizing
        """
        if not isinstance(spec, dict):
            raise ValueError("OpenAPI document must be a mapping")
        self.raw_spec = spec
        self.spec = _resolve_references(spec) if dereference else spec

    @property
    def is_swagger2(self) -> bool:
        return str(self.spec.get("swagger", "")).startswith("2")

    def get_info(self) -> ApiInfo:
        info = self.spec.get("info") or {}
        return ApiInfo(
            title=info.get("title") or "Swagger API Server",
            version=str(info.get("version") or "1.0.0"),
            description=info.get("description") or "",
        )

    def get_base_url(self) -> str:
        """Get the base URL from the OpenAPI spec.

        Returns:
            The base URL for API requests, without trailing slash
        """
        if self.is_swagger2:
            host = self.spec.get("host")
            if not host:
                return ""
            schemes = self.spec.get("schemes") or ["https"]
            url = f"{schemes[0]}://{host}{self.spec.get('basePath', '')}"
        else:
            servers = self.spec.get("servers") or []
            if not servers:
                return ""
            url = servers[0].get("url", "")

        return url.rstrip("/")

    def get_security_schemes(self) -> Dict[str, SecurityScheme]:
        """Extract security schemes defined in the specification.

        Returns:
            Dictionary of security schemes keyed by name
        """
        raw_schemes = (self.spec.get("components") or {}).get("securitySchemes")
        if not raw_schemes:
            raw_schemes = self.spec.get("securityDefinitions") or {}

        schemes = {}
        for name, scheme in raw_schemes.items():
            if not isinstance(scheme, dict) or "type" not in scheme:
                logger.warning(f"Skipping malformed security scheme '{name}'")
                continue
            schemes[name] = SecurityScheme(
                name=name,
                type=scheme["type"],
                location=scheme.get("in"),
                parameter_name=scheme.get("name"),
                scheme=scheme.get("scheme"),
                description=scheme.get("description"),
            )
        return schemes

    def get_security_requirements(self) -> Optional[List[Dict[str, List[str]]]]:
        """Extract global security requirements defined in the specification.

        Returns:
            List of security requirement objects, or None when the document
            declares none
        """
        if "security" not in self.spec:
            return None
        return list(self.spec.get("security") or [])

    def get_endpoints(self) -> List[Endpoint]:
        """Normalize every operation in the document.

        Returns:
            Endpoints in document order
        """
        endpoints = []
        used_ids = set()

        for path, path_item in (self.spec.get("paths") or {}).items():
            if not isinstance(path_item, dict):
                continue

            path_params = path_item.get("parameters") or []
            for method, operation in path_item.items():
                if method not in HTTP_METHODS or not isinstance(operation, dict):
                    continue

                endpoint = self._build_endpoint(path, method, operation, path_params)
                if endpoint.id in used_ids:
                    unique_id = self._disambiguate(endpoint.id, used_ids)
                    logger.warning(
                        f"Duplicate operation id '{endpoint.id}' on {method.upper()} {path}, using '{unique_id}'"
                    )
                    endpoint = endpoint.model_copy(update={"id": unique_id})
                used_ids.add(endpoint.id)
                endpoints.append(endpoint)

        logger.debug(f"Normalized {len(endpoints)} OpenAPI operations")
        return endpoints

    def normalize(self) -> Tuple[List[Endpoint], Dict[str, SecurityScheme]]:
        return self.get_endpoints(), self.get_security_schemes()

    @staticmethod
    def _disambiguate(endpoint_id: str, used_ids: set) -> str:
        counter = 1
        while f"{endpoint_id}_{counter}" in used_ids:
            counter += 1
        return f"{endpoint_id}_{counter}"

    def _build_endpoint(
        self,
        path: str,
        method: str,
        operation: Dict[str, Any],
        path_params: List[Dict[str, Any]],
    ) -> Endpoint:
        raw_params = _merge_parameters(path_params, operation.get("parameters") or [])

        parameters = []
        request_bodies = []
        form_params = []
        for param_spec in raw_params:
            location = param_spec.get("in")
            if location == "body":
                request_bodies.extend(self._swagger2_body(operation, param_spec))
                continue
            if location == "formData":
                form_params.append(param_spec)
                location = "body"
            elif location not in ("path", "query", "header"):
                logger.debug(
                    f"Dropping {location} parameter '{param_spec.get('name')}' on {method.upper()} {path}"
                )
                continue
            parameters.append(self._build_parameter(param_spec, location))

        if form_params:
            request_bodies.append(self._swagger2_form_body(operation, form_params))

        request_body = operation.get("requestBody")
        if isinstance(request_body, dict):
            for media_type, media in (request_body.get("content") or {}).items():
                request_bodies.append(
                    RequestBody(
                        media_type=media_type,
                        schema_definition=(media or {}).get("schema"),
                        required=bool(request_body.get("required", False)),
                        example=(media or {}).get("example"),
                    )
                )

        # None means undeclared; only an explicit empty list turns auth off
        if "security" in operation:
            security = list(operation.get("security") or [])
        else:
            security = self.get_security_requirements()

        return Endpoint(
            id=operation.get("operationId") or f"{method}-{path}",
            source=ApiFormat.openapi,
            method=method.upper(),
            locator=path,
            summary=operation.get("summary") or "",
            description=operation.get("description") or "",
            tags=list(operation.get("tags") or []),
            parameters=parameters,
            request_bodies=request_bodies,
            responses=self._build_responses(operation.get("responses") or {}),
            security=security,
            deprecated=bool(operation.get("deprecated", False)),
        )

    @staticmethod
    def _build_parameter(param_spec: Dict[str, Any], location: str) -> Parameter:
        schema = param_spec.get("schema") or {}
        example = param_spec.get("example")
        if example is None:
            example = schema.get("example")
        return Parameter(
            name=param_spec.get("name", ""),
            location=location,
            required=bool(param_spec.get("required", location == "path")),
            type=schema.get("type") or param_spec.get("type"),
            description=param_spec.get("description") or "",
            example=example,
        )

    def _consumes(self, operation: Dict[str, Any]) -> List[str]:
        return operation.get("consumes") or self.spec.get("consumes") or [
            "application/json"
        ]

    def _swagger2_body(
        self, operation: Dict[str, Any], param_spec: Dict[str, Any]
    ) -> List[RequestBody]:
        return [
            RequestBody(
                media_type=media_type,
                schema_definition=param_spec.get("schema"),
                required=bool(param_spec.get("required", False)),
            )
            for media_type in self._consumes(operation)
            if media_type not in FORM_MEDIA_TYPES
        ] or [
            RequestBody(
                media_type="application/json",
                schema_definition=param_spec.get("schema"),
                required=bool(param_spec.get("required", False)),
            )
        ]

    def _swagger2_form_body(
        self, operation: Dict[str, Any], form_params: List[Dict[str, Any]]
    ) -> RequestBody:
        consumes = self._consumes(operation)
        media_type = next(
            (mt for mt in consumes if mt in FORM_MEDIA_TYPES), FORM_MEDIA_TYPES[0]
        )
        properties = {}
        for param in form_params:
            properties[param.get("name", "")] = {
                key: value
                for key, value in param.items()
                if key not in ("name", "in", "required")
            }
        schema = {"type": "object", "properties": properties}
        required = [p.get("name", "") for p in form_params if p.get("required")]
        if required:
            schema["required"] = required
        return RequestBody(
            media_type=media_type,
            schema_definition=schema,
            required=bool(required),
        )

    def _build_responses(self, responses: Dict[str, Any]) -> Dict[str, ResponseSpec]:
        out = {}
        for code, response in responses.items():
            if not isinstance(response, dict):
                continue
            media_type: Optional[str] = None
            schema = response.get("schema")
            content = response.get("content") or {}
            if content:
                media_type = next(iter(content))
                schema = (content[media_type] or {}).get("schema")
            out[str(code)] = ResponseSpec(
                description=response.get("description") or "",
                media_type=media_type,
                schema_definition=schema,
            )
        return out
