"""
Name: API context.
Description: Holds the normalized state of one loaded API (endpoints, lookup indexes, security schemes, environment, base URL and default credentials). Built once by the loader and shared read-only by the discovery service and the dispatcher.
"""

from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .constants import ENDPOINT_NOT_FOUND, REQUEST_NOT_FOUND
from .models import ApiFormat, ApiInfo, AuthConfig, Endpoint, SecurityScheme


class ApiContext:
    """Immutable view of a loaded API.

    A reload builds a new context; nothing here is ever updated in place.
    """

    def __init__(
        self,
        api_format: ApiFormat,
        endpoints: Iterable[Endpoint],
        base_url: str = "",
        security_schemes: Optional[Dict[str, SecurityScheme]] = None,
        environment: Optional[Dict[str, str]] = None,
        default_auth: Optional[AuthConfig] = None,
        info: Optional[ApiInfo] = None,
        document: Optional[Dict[str, Any]] = None,
    ):
        self._format = ApiFormat(api_format)
        self._endpoints: Tuple[Endpoint, ...] = tuple(endpoints)
        self._base_url = (base_url or "").rstrip("/")
        self._security_schemes = MappingProxyType(dict(security_schemes or {}))
        self._environment = MappingProxyType(dict(environment or {}))
        self._default_auth = default_auth
        self._info = info or ApiInfo()
        self._document = MappingProxyType(dict(document or {}))

        by_id: Dict[str, Endpoint] = {}
        by_locator: Dict[Tuple[str, str], Endpoint] = {}
        by_name: Dict[str, Endpoint] = {}
        for endpoint in self._endpoints:
            if endpoint.id in by_id:
                raise ValueError(f"Duplicate endpoint id '{endpoint.id}'")
            by_id[endpoint.id] = endpoint
            by_locator.setdefault((endpoint.locator, endpoint.method.upper()), endpoint)
            if endpoint.name:
                by_name.setdefault(endpoint.name.lower(), endpoint)

        self._by_id = MappingProxyType(by_id)
        self._by_locator = MappingProxyType(by_locator)
        self._by_name = MappingProxyType(by_name)

    @property
    def format(self) -> ApiFormat:
        return self._format

    @property
    def endpoints(self) -> Tuple[Endpoint, ...]:
        return self._endpoints

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def security_schemes(self) -> Mapping[str, SecurityScheme]:
        return self._security_schemes

    @property
    def environment(self) -> Mapping[str, str]:
        return self._environment

    @property
    def default_auth(self) -> Optional[AuthConfig]:
        return self._default_auth

    @property
    def info(self) -> ApiInfo:
        return self._info

    @property
    def document(self) -> Mapping[str, Any]:
        """The source document; local $refs are resolved for OpenAPI."""
        return self._document

    @property
    def not_found_message(self) -> str:
        """Text returned when a lookup misses, pointing at the list tool."""
        if self._format == ApiFormat.postman:
            return REQUEST_NOT_FOUND
        return ENDPOINT_NOT_FOUND

    def __len__(self) -> int:
        return len(self._endpoints)

    def get(self, endpoint_id: str) -> Optional[Endpoint]:
        return self._by_id.get(endpoint_id)

    def find(
        self,
        endpoint_id: Optional[str] = None,
        locator: Optional[str] = None,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Optional[Endpoint]:
        """Look an endpoint up by id, then (locator, method), then name.

        Args:
            endpoint_id: Endpoint id
            locator: OpenAPI path template or Postman URL, used with method
            method: HTTP method, used with locator
            name: Postman request name, case-insensitive

        Returns:
            The endpoint, or None when nothing matches
        """
        if endpoint_id:
            endpoint = self._by_id.get(endpoint_id)
            if endpoint is not None:
                return endpoint
        if locator and method:
            endpoint = self._by_locator.get((locator, method.upper()))
            if endpoint is not None:
                return endpoint
        if name:
            return self._by_name.get(name.lower())
        return None
