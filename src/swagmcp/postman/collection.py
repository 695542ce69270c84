"""
Name: Postman collection parser.
Description: Provides the PostmanCollectionParser class that flattens a Postman v2.x collection tree into Endpoint records, and the helpers used for `{{var}}` environment substitution.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from ..models import (
    ApiFormat,
    ApiInfo,
    Endpoint,
    Parameter,
    RequestBody,
    ResponseSpec,
)

logger = logging.getLogger(__name__)

VARIABLE_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")
PATH_VARIABLE_PATTERN = re.compile(r"(?<=/):([A-Za-z_][\w-]*)")

RAW_LANGUAGE_MEDIA_TYPES = {
    "json": "application/json",
    "xml": "application/xml",
    "html": "text/html",
    "text": "text/plain",
    "javascript": "application/javascript",
}

BODY_MODE_MEDIA_TYPES = {
    "formdata": "multipart/form-data",
    "urlencoded": "application/x-www-form-urlencoded",
    "graphql": "application/json",
    "file": "application/octet-stream",
}


def slugify(value: str) -> str:
    """Turn a request name into a tool-friendly identifier.

    Args:
        value: Free text such as "Get User (v2)"

    Returns:
        Identifier such as "get_user_v2"
    """
    slug = re.sub(r"[^a-zA-Z0-9_]", "_", value or "").lower()
    slug = re.sub(r"_+", "_", slug).strip("_")
    if not slug:
        return "unnamed_request"
    if slug[0].isdigit():
        slug = f"api_{slug}"
    return slug


def resolve_variables(text: str, environment: Dict[str, str]) -> str:
    """Replace `{{name}}` tokens with environment values.

    Tokens without a value are left untouched.
    """
    if not text:
        return text

    def replace(match):
        value = environment.get(match.group(1).strip())
        return match.group(0) if value is None else str(value)

    return VARIABLE_PATTERN.sub(replace, text)


def find_variables(text: str) -> List[str]:
    """Names of the `{{name}}` tokens present in text, in order."""
    return [name.strip() for name in VARIABLE_PATTERN.findall(text or "")]


def find_path_variables(text: str) -> List[str]:
    """Names of the `:name` path segments present in text, in order."""
    path = (text or "").split("?", 1)[0]
    return PATH_VARIABLE_PATTERN.findall(path)


def _text(description: Any) -> str:
    """Postman descriptions are strings or `{content, type}` objects."""
    if isinstance(description, str):
        return description
    if isinstance(description, dict):
        return description.get("content") or ""
    return ""


def _enabled(entries: Any) -> List[Dict[str, Any]]:
    if not isinstance(entries, list):
        return []
    return [
        entry
        for entry in entries
        if isinstance(entry, dict) and entry.get("key") and not entry.get("disabled")
    ]


def parse_environment(environment: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Read the enabled values of a Postman environment file.

    Args:
        environment: Parsed environment document

    Returns:
        Flat mapping of variable name to value
    """
    values = {}
    for entry in (environment or {}).get("values") or []:
        if not isinstance(entry, dict) or not entry.get("key"):
            continue
        if entry.get("enabled") is False:
            continue
        values[entry["key"]] = "" if entry.get("value") is None else str(entry["value"])
    return values


class PostmanCollectionParser:
    """Parser for Postman v2.0 / v2.1 collections."""

    def __init__(
        self,
        collection: Dict[str, Any],
        environment: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the parser.

        Args:
            collection: The collection, bare or wrapped in {"collection": ...}
            environment: Optional parsed Postman environment document
        """
        if isinstance(collection, dict) and isinstance(
            collection.get("collection"), dict
        ):
            collection = collection["collection"]
        if not isinstance(collection, dict) or not isinstance(
            collection.get("item", []), list
        ):
            raise ValueError("Postman collection must be a mapping with an 'item' list")

        self.collection = collection
        self.environment_document = environment

    def get_info(self) -> ApiInfo:
        info = self.collection.get("info") or {}
        return ApiInfo(
            title=info.get("name") or "Postman API Server",
            version=str(info.get("version") or "1.0.0"),
            description=_text(info.get("description")),
        )

    def get_environment(self) -> Dict[str, str]:
        """Collection variables overlaid by the enabled environment values."""
        environment = {}
        for entry in self.collection.get("variable") or []:
            if isinstance(entry, dict) and entry.get("key") and not entry.get("disabled"):
                value = entry.get("value")
                environment[entry["key"]] = "" if value is None else str(value)
        environment.update(parse_environment(self.environment_document))
        return environment

    def get_endpoints(self) -> List[Endpoint]:
        """Flatten the item tree depth-first.

        Returns:
            Endpoints in collection order
        """
        endpoints: List[Endpoint] = []
        used_ids = set()

        def walk(items: List[Any], folder: str):
            for item in items:
                if not isinstance(item, dict):
                    continue
                if isinstance(item.get("item"), list):
                    name = item.get("name") or ""
                    walk(item["item"], f"{folder}/{name}" if folder else name)
                elif "request" in item:
                    endpoint = self._build_endpoint(item, folder)
                    endpoint_id = self._unique_id(endpoint, used_ids)
                    if endpoint_id != endpoint.id:
                        endpoint = endpoint.model_copy(update={"id": endpoint_id})
                    used_ids.add(endpoint_id)
                    endpoints.append(endpoint)

        walk(self.collection.get("item") or [], "")
        logger.debug(f"Normalized {len(endpoints)} Postman requests")
        return endpoints

    def normalize(self) -> Tuple[List[Endpoint], Dict[str, str]]:
        return self.get_endpoints(), self.get_environment()

    @staticmethod
    def _unique_id(endpoint: Endpoint, used_ids: set) -> str:
        candidate = endpoint.id
        if candidate not in used_ids:
            return candidate

        if endpoint.folder:
            candidate = slugify(f"{endpoint.folder}_{endpoint.name}")
            if candidate not in used_ids:
                return candidate

        counter = 1
        while f"{candidate}_{counter}" in used_ids:
            counter += 1
        return f"{candidate}_{counter}"

    def _build_endpoint(self, item: Dict[str, Any], folder: str) -> Endpoint:
        request = item.get("request")
        if isinstance(request, str):
            request = {"method": "GET", "url": request}
        elif not isinstance(request, dict):
            request = {}

        name = item.get("name") or "Unnamed Request"
        url = request.get("url")
        locator = self._locator(url)

        parameters = self._url_parameters(url, locator)
        for header in _enabled(request.get("header")):
            if header["key"].lower() == "authorization":
                continue
            parameters.append(
                Parameter(
                    name=header["key"],
                    location="header",
                    type="string",
                    description=_text(header.get("description")),
                    example=header.get("value"),
                )
            )

        body_params, request_bodies = self._body(request.get("body"))
        parameters.extend(body_params)

        return Endpoint(
            id=slugify(name),
            source=ApiFormat.postman,
            method=(request.get("method") or "GET").upper(),
            locator=locator,
            name=name,
            folder=folder,
            summary=name,
            description=_text(request.get("description")) or _text(item.get("description")),
            parameters=parameters,
            request_bodies=request_bodies,
            responses=self._responses(item.get("response")),
            security=None,
        )

    @staticmethod
    def _locator(url: Any) -> str:
        if isinstance(url, str):
            return url
        if not isinstance(url, dict):
            return ""
        if url.get("raw"):
            return url["raw"]

        host = url.get("host") or ""
        if isinstance(host, list):
            host = ".".join(str(part) for part in host)
        path = url.get("path") or ""
        if isinstance(path, list):
            path = "/".join(
                part.get("value", "") if isinstance(part, dict) else str(part)
                for part in path
            )

        locator = host
        if url.get("protocol"):
            locator = f"{url['protocol']}://{locator}"
        if url.get("port"):
            locator = f"{locator}:{url['port']}"
        if path:
            locator = f"{locator}/{path.lstrip('/')}"

        query = "&".join(
            f"{entry['key']}={entry.get('value') or ''}" for entry in _enabled(url.get("query"))
        )
        if query:
            locator = f"{locator}?{query}"
        return locator

    @staticmethod
    def _url_parameters(url: Any, locator: str) -> List[Parameter]:
        parameters = []
        declared = set()

        if isinstance(url, dict):
            for entry in _enabled(url.get("query")):
                parameters.append(
                    Parameter(
                        name=entry["key"],
                        location="query",
                        type="string",
                        description=_text(entry.get("description")),
                        example=entry.get("value"),
                    )
                )
            for entry in url.get("variable") or []:
                if not isinstance(entry, dict) or not entry.get("key"):
                    continue
                declared.add(entry["key"])
                parameters.append(
                    Parameter(
                        name=entry["key"],
                        location="path",
                        required=True,
                        type="string",
                        description=_text(entry.get("description")),
                        example=entry.get("value"),
                    )
                )

        for name in find_path_variables(locator):
            if name in declared:
                continue
            declared.add(name)
            parameters.append(
                Parameter(name=name, location="path", required=True, type="string")
            )
        return parameters

    @staticmethod
    def _body(body: Any) -> Tuple[List[Parameter], List[RequestBody]]:
        if not isinstance(body, dict) or not body.get("mode"):
            return [], []

        mode = body["mode"]
        if mode == "raw":
            language = ((body.get("options") or {}).get("raw") or {}).get("language")
            media_type = RAW_LANGUAGE_MEDIA_TYPES.get(language, "text/plain")
            return [], [RequestBody(media_type=media_type, mode=mode, example=body.get("raw") or "")]

        if mode in ("formdata", "urlencoded"):
            fields = _enabled(body.get(mode))
            parameters = [
                Parameter(
                    name=field["key"],
                    location="body",
                    type=field.get("type") or "text",
                    description=_text(field.get("description")),
                    example=field.get("value"),
                )
                for field in fields
            ]
            schema = {
                "type": "object",
                "properties": {field["key"]: {"type": "string"} for field in fields},
            }
            example = {field["key"]: field.get("value") or "" for field in fields}
            return parameters, [
                RequestBody(
                    media_type=BODY_MODE_MEDIA_TYPES[mode],
                    schema_definition=schema,
                    mode=mode,
                    example=example,
                )
            ]

        if mode in BODY_MODE_MEDIA_TYPES:
            return [], [
                RequestBody(
                    media_type=BODY_MODE_MEDIA_TYPES[mode],
                    mode=mode,
                    example=body.get(mode),
                )
            ]

        logger.debug(f"Unknown Postman body mode '{mode}'")
        return [], []

    @staticmethod
    def _responses(examples: Any) -> Dict[str, ResponseSpec]:
        responses = {}
        for example in examples or []:
            if not isinstance(example, dict) or example.get("code") is None:
                continue
            content_type = next(
                (
                    h.get("value")
                    for h in _enabled(example.get("header"))
                    if h["key"].lower() == "content-type"
                ),
                None,
            )
            responses.setdefault(
                str(example["code"]),
                ResponseSpec(
                    description=example.get("name") or example.get("status") or "",
                    media_type=content_type,
                ),
            )
        return responses
