"""
Name: Request dispatcher.
Description: Executes a call against one endpoint of the loaded API. Classifies caller parameters into path, header and query destinations, substitutes path and environment variables, merges authentication and shapes the upstream response or failure for the caller.
"""

import logging
import re
import urllib.parse
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from .auth.auth_helpers import AuthInput, AuthResolver
from .constants import DEFAULT_CONTENT_TYPE, HEADER_PARAM_PREFIX
from .context import ApiContext
from .models import ApiFormat, Endpoint
from .postman.collection import find_path_variables, find_variables, resolve_variables
from .transport import HttpTransport, TransportResponseError
from .values import serialize_body, to_query_value, to_text

logger = logging.getLogger(__name__)

OPENAPI_PATH_PATTERN = re.compile(r"\{([^{}]+)\}")


def _encode(value: Any) -> str:
    return urllib.parse.quote(to_text(value), safe="")


class RequestDispatcher:
    """Builds and sends requests for endpoints of one ApiContext.

    Args:
        context: The loaded API
        auth_resolver: Resolver for per-call and default credentials
        transport: HTTP transport, a fresh HttpTransport by default
    """

    def __init__(
        self,
        context: ApiContext,
        auth_resolver: Optional[AuthResolver] = None,
        transport: Optional[HttpTransport] = None,
    ):
        self.context = context
        self.auth_resolver = auth_resolver or AuthResolver(
            context.default_auth, context.security_schemes
        )
        self.transport = transport or HttpTransport()

    async def dispatch(
        self,
        endpoint_id: Optional[str] = None,
        path: Optional[str] = None,
        method: Optional[str] = None,
        name: Optional[str] = None,
        parameters: Optional[Dict[str, Any]] = None,
        body: Any = None,
        auth: AuthInput = None,
    ) -> Union[Dict[str, Any], str]:
        """Look the endpoint up and execute it.

        Returns:
            The shaped response, or the not-found text when no endpoint matches
        """
        endpoint = self.context.find(endpoint_id, path, method, name)
        if endpoint is None:
            logger.info(
                f"No endpoint for id={endpoint_id!r} path={path!r} method={method!r} name={name!r}"
            )
            return self.context.not_found_message
        return await self.execute(endpoint, parameters, body, auth)

    def path_parameter_names(self, endpoint: Endpoint, url: str) -> Set[str]:
        """Names that are substituted into the URL rather than sent as query."""
        if endpoint.source == ApiFormat.openapi:
            return set(OPENAPI_PATH_PATTERN.findall(endpoint.locator))

        names = set(find_path_variables(url))
        names.update(find_variables(url))
        names.update(p.name for p in endpoint.parameters if p.location == "path")
        return names

    def base_url_for(self, endpoint: Endpoint) -> str:
        if endpoint.source == ApiFormat.openapi:
            return self.context.base_url + endpoint.locator
        return resolve_variables(endpoint.locator, dict(self.context.environment))

    def build_request(
        self,
        endpoint: Endpoint,
        parameters: Optional[Dict[str, Any]] = None,
        body: Any = None,
        auth: AuthInput = None,
    ) -> Tuple[
        str, Dict[str, str], Dict[str, Union[str, List[str]]], Optional[Union[str, bytes]]
    ]:
        """Assemble URL, headers, query parameters and body for a call.

        Returns:
            Tuple of (url, headers, params, content)
        """
        url = self.base_url_for(endpoint)
        path_names = self.path_parameter_names(endpoint, url)
        declared_headers = {name.lower() for name in endpoint.header_parameters}

        caller_headers: Dict[str, str] = {}
        query: Dict[str, Union[str, List[str]]] = {}

        for key, value in (parameters or {}).items():
            if value is None:
                continue
            if key in path_names:
                url = self._substitute(endpoint, url, key, value)
            elif key.lower().startswith(HEADER_PARAM_PREFIX):
                caller_headers[key[len(HEADER_PARAM_PREFIX):]] = to_text(value)
            elif key.lower() in declared_headers:
                caller_headers[key] = to_text(value)
            else:
                query[key] = to_query_value(value)

        unresolved = self._unresolved(endpoint, url)
        if unresolved:
            logger.warning(
                f"Unresolved path parameters {unresolved} left in URL for '{endpoint.id}'"
            )

        headers = dict(
            self.auth_resolver.resolve_headers(auth, endpoint.security)
        )
        headers.update(caller_headers)

        params = dict(self.auth_resolver.resolve_query_params(auth, endpoint.security))
        params.update(query)

        content = serialize_body(body)
        if content is not None and not any(
            name.lower() == "content-type" for name in headers
        ):
            headers["Content-Type"] = DEFAULT_CONTENT_TYPE

        return url, headers, params, content

    async def execute(
        self,
        endpoint: Endpoint,
        parameters: Optional[Dict[str, Any]] = None,
        body: Any = None,
        auth: AuthInput = None,
    ) -> Dict[str, Any]:
        """Send one request for an endpoint.

        Args:
            endpoint: Endpoint to call
            parameters: Path, query and header values keyed by name
            body: Request body; strings are sent as is, anything else as JSON
            auth: Per-call credentials overriding the default

        Returns:
            {status, statusText, headers, data}, plus error=True for a
            failure status

        Raises:
            httpx.RequestError: If no response was received
        """
        url, headers, params, content = self.build_request(
            endpoint, parameters, body, auth
        )
        logger.debug(
            f"Executing {endpoint.method} {url} headers={list(headers)} has_body={content is not None}"
        )

        try:
            response = await self.transport.request(
                endpoint.method,
                url,
                headers=headers,
                params=params,
                content=content,
            )
        except TransportResponseError as e:
            logger.info(f"{endpoint.method} {url} failed with status {e.response.status}")
            return e.response.to_result(error=True)

        logger.info(f"{endpoint.method} {url} returned {response.status}")
        return response.to_result()

    @staticmethod
    def _substitute(endpoint: Endpoint, url: str, key: str, value: Any) -> str:
        encoded = _encode(value)
        if endpoint.source == ApiFormat.openapi:
            return url.replace(f"{{{key}}}", encoded)

        url = url.replace(f"{{{{{key}}}}}", encoded)
        return re.sub(
            rf"(?<=/):{re.escape(key)}(?=[/?#]|$)",
            lambda _: encoded,
            url,
        )

    @staticmethod
    def _unresolved(endpoint: Endpoint, url: str) -> List[str]:
        path = url.split("?", 1)[0]
        if endpoint.source == ApiFormat.openapi:
            return OPENAPI_PATH_PATTERN.findall(path)
        return find_path_variables(path) + find_variables(path)
