"""
Name: MCP Server.
Description: Provides the MCP Server implementation exposing a loaded API through a fixed set of FastMCP tools: list, details, search, schema lookup (OpenAPI only) and dispatch. Tool results are JSON text.
"""

import json
import logging
from typing import Any, Callable, Dict, Optional

import httpx
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from ..auth.auth_helpers import AuthResolver
from ..constants import DEFAULT_LIST_LIMIT, DEFAULT_SEARCH_LIMIT
from ..context import ApiContext
from ..discovery import DiscoveryService
from ..dispatcher import RequestDispatcher
from ..models import ApiFormat, AuthConfig
from ..transport import HttpTransport

logger = logging.getLogger(__name__)


def to_text(result: Any) -> str:
    """Render a tool result as text."""
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, default=str)


class MCPServer:
    """MCP Server implementation."""

    def __init__(
        self,
        context: ApiContext,
        transport: Optional[HttpTransport] = None,
        name: Optional[str] = None,
    ):
        """Initialize an MCP server.

        Args:
            context: The loaded API
            transport: HTTP transport used by the dispatch tool
            name: Server name, defaults to the API title
        """
        self.context = context
        self.name = name or context.info.title or "swagmcp"

        self.auth_resolver = AuthResolver(context.default_auth, context.security_schemes)
        self.discovery = DiscoveryService(context, self.auth_resolver)
        self.dispatcher = RequestDispatcher(context, self.auth_resolver, transport)

        self.tools: Dict[str, Callable] = {}
        self.mcp = self._create_mcp_instance()

    def _create_mcp_instance(self) -> FastMCP:
        """Create a FastMCP instance for this server.

        Returns:
            FastMCP instance
        """
        mcp = FastMCP(self.name, instructions=self.context.info.description or None)

        if self.context.format == ApiFormat.postman:
            self._register_postman_tools(mcp)
        else:
            self._register_openapi_tools(mcp)

        logger.info(f"Registered {len(self.tools)} tools for '{self.name}'")
        return mcp

    def _add_tool(self, mcp: FastMCP, name: str, description: str, fn: Callable):
        mcp.tool(name=name, description=description)(fn)
        self.tools[name] = fn
        logger.debug(f"Registered tool: {name}")

    async def _dispatch(self, **kwargs) -> str:
        try:
            result = await self.dispatcher.dispatch(**kwargs)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.error(f"Request failed: {e}")
            raise ToolError(f"Request failed: {e}") from e
        return to_text(result)

    def _register_openapi_tools(self, mcp: FastMCP):
        async def list_endpoints(
            method: Optional[str] = None,
            tag: Optional[str] = None,
            limit: int = DEFAULT_LIST_LIMIT,
        ) -> str:
            """List API endpoints with path, method, summary and tags.

            Args:
                method: Filter by HTTP method (GET, POST, PUT, DELETE, etc.)
                tag: Filter by OpenAPI tag
                limit: Maximum number of endpoints to return
            """
            return to_text(self.discovery.list_endpoints(method=method, tag=tag, limit=limit))

        async def get_endpoint_details(
            operation_id: Optional[str] = None,
            path: Optional[str] = None,
            method: Optional[str] = None,
        ) -> str:
            """Get parameters, request/response schemas and authentication of one endpoint.

            Args:
                operation_id: The operation ID of the endpoint
                path: The API path (alternative to operation_id)
                method: The HTTP method (required if using path)
            """
            return to_text(
                self.discovery.get_endpoint_details(
                    endpoint_id=operation_id, path=path, method=method
                )
            )

        async def search_endpoints(query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> str:
            """Search endpoints by keyword in path, summary, description or tags.

            Args:
                query: Search term
                limit: Maximum number of results to return
            """
            return to_text(self.discovery.search_endpoints(query, limit=limit))

        async def get_schema(
            schema_name: Optional[str] = None,
            operation_id: Optional[str] = None,
            schema_path: Optional[str] = None,
        ) -> str:
            """Get schema information for request/response bodies or components.

            Args:
                schema_name: Name of a schema component (e.g. from #/components/schemas/)
                operation_id: Get request/response schemas for this operation
                schema_path: JSON pointer to a schema (e.g. #/components/schemas/User)
            """
            return to_text(
                self.discovery.get_schema(
                    schema_name=schema_name,
                    operation_id=operation_id,
                    schema_path=schema_path,
                )
            )

        async def make_api_call(
            operation_id: Optional[str] = None,
            path: Optional[str] = None,
            method: Optional[str] = None,
            parameters: Optional[Dict[str, Any]] = None,
            body: Optional[Any] = None,
            auth: Optional[AuthConfig] = None,
        ) -> str:
            """Call any endpoint with the given parameters and authentication.

            Args:
                operation_id: The operation ID of the endpoint
                path: The API path (alternative to operation_id)
                method: The HTTP method (required if using path)
                parameters: Path and query parameters; header_-prefixed keys become headers
                body: Request body (for POST, PUT, PATCH requests)
                auth: Authentication overriding the configured default
            """
            return await self._dispatch(
                endpoint_id=operation_id,
                path=path,
                method=method,
                parameters=parameters,
                body=body,
                auth=auth,
            )

        self._add_tool(
            mcp,
            "list_endpoints",
            "List all available API endpoints with basic information including path, method, summary, and tags",
            list_endpoints,
        )
        self._add_tool(
            mcp,
            "get_endpoint_details",
            "Get detailed information about a specific API endpoint including parameters, request/response schemas, and authentication requirements",
            get_endpoint_details,
        )
        self._add_tool(
            mcp,
            "search_endpoints",
            "Search API endpoints by keyword in path, summary, description, or tags",
            search_endpoints,
        )
        self._add_tool(
            mcp,
            "get_schema",
            "Get detailed schema information for request/response bodies or components",
            get_schema,
        )
        self._add_tool(
            mcp,
            "make_api_call",
            "Make an API call to any endpoint with the specified parameters and authentication",
            make_api_call,
        )

    def _register_postman_tools(self, mcp: FastMCP):
        async def list_requests(
            method: Optional[str] = None,
            folder: Optional[str] = None,
            limit: int = DEFAULT_LIST_LIMIT,
        ) -> str:
            """List requests of the collection.

            Args:
                method: Filter by HTTP method (GET, POST, PUT, DELETE, etc.)
                folder: Filter by folder/path
                limit: Maximum number of requests to return
            """
            return to_text(self.discovery.list_endpoints(method=method, tag=folder, limit=limit))

        async def get_request_details(
            request_id: Optional[str] = None,
            name: Optional[str] = None,
            url: Optional[str] = None,
            method: Optional[str] = None,
        ) -> str:
            """Get parameters, headers and body structure of one request.

            Args:
                request_id: The ID of the request
                name: The name of the request (alternative to request_id)
                url: The request URL as written in the collection (alternative to request_id)
                method: The HTTP method (required if using url)
            """
            return to_text(
                self.discovery.get_endpoint_details(
                    endpoint_id=request_id, path=url, method=method, name=name
                )
            )

        async def search_requests(query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> str:
            """Search requests by keyword in name, description, URL or folder.

            Args:
                query: Search term
                limit: Maximum number of results to return
            """
            return to_text(self.discovery.search_endpoints(query, limit=limit))

        async def make_request(
            request_id: Optional[str] = None,
            name: Optional[str] = None,
            url: Optional[str] = None,
            method: Optional[str] = None,
            parameters: Optional[Dict[str, Any]] = None,
            body: Optional[Any] = None,
            auth: Optional[AuthConfig] = None,
        ) -> str:
            """Execute a request of the collection.

            Args:
                request_id: The ID of the request
                name: The name of the request (alternative to request_id)
                url: The request URL as written in the collection (alternative to request_id)
                method: The HTTP method (required if using url)
                parameters: Path variables, query parameters and header_-prefixed headers
                body: Request body (for POST, PUT, PATCH requests)
                auth: Authentication configuration
            """
            return await self._dispatch(
                endpoint_id=request_id,
                path=url,
                method=method,
                name=name,
                parameters=parameters,
                body=body,
                auth=auth,
            )

        self._add_tool(
            mcp,
            "list_requests",
            "List all available requests in the Postman collection with basic information",
            list_requests,
        )
        self._add_tool(
            mcp,
            "get_request_details",
            "Get detailed information about a specific request including parameters, headers, and body structure",
            get_request_details,
        )
        self._add_tool(
            mcp,
            "search_requests",
            "Search requests by keyword in name, description, URL, or folder",
            search_requests,
        )
        self._add_tool(
            mcp,
            "make_request",
            "Execute any request from the Postman collection with the specified parameters and authentication",
            make_request,
        )

    def run(self):
        """Serve over stdio."""
        logger.info(f"Serving '{self.name}' over stdio")
        self.mcp.run()

    def sse_app(self):
        """ASGI app serving the MCP SSE transport."""
        return self.mcp.http_app(transport="sse")
