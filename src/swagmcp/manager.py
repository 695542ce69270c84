"""
Name: Core functionality manager.
Description: Wires the components together: configuration to API context, context to MCP server, and the server to its stdio or SSE transport. SSE serving mounts the FastMCP app on a FastAPI application with a health check, run by uvicorn.
"""

import logging
from typing import Optional

from .config import ApiConfig
from .constants import DEFAULT_HOST, DEFAULT_PORT
from .loader import build_context
from .server.mcp import MCPServer
from .transport import HttpTransport

logger = logging.getLogger(__name__)


def create_server(
    config: ApiConfig,
    transport: Optional[HttpTransport] = None,
) -> MCPServer:
    """Load the configured API and build its MCP server.

    Args:
        config: Validated configuration
        transport: HTTP transport, built from the http settings by default

    Returns:
        The MCP server

    Raises:
        SpecLoadError: If the API description cannot be loaded
    """
    context = build_context(config)
    transport = transport or HttpTransport(timeout=config.http.timeout)
    return MCPServer(context, transport=transport)


def create_sse_app(server: MCPServer):
    """Build the FastAPI application serving an MCP server over SSE.

    Args:
        server: The MCP server

    Returns:
        FastAPI application
    """
    from fastapi import FastAPI

    mcp_app = server.sse_app()
    app = FastAPI(
        title=f"{server.name} MCP Server",
        description=server.context.info.description,
        lifespan=mcp_app.lifespan,
    )

    # Add health check endpoint
    @app.get("/health")
    async def health_check():
        return {
            "status": "ok",
            "api": server.context.info.title,
            "type": server.context.format.value,
            "endpoints": len(server.context),
        }

    app.mount("/", mcp_app)
    return app


def start_mcp_server(
    config: ApiConfig,
    transport_mode: Optional[str] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    debug: bool = False,
):
    """Start the MCP server for a configuration.

    Args:
        config: Validated configuration
        transport_mode: "stdio" or "sse", defaults to the configured value
        host: Host to bind the SSE server to
        port: Port to bind the SSE server to
        debug: Whether uvicorn logs at debug level
    """
    server = create_server(config)
    transport_mode = transport_mode or config.server.transport

    if transport_mode == "stdio":
        server.run()
        return

    import uvicorn

    host = host or config.server.host or DEFAULT_HOST
    port = port or config.server.port or DEFAULT_PORT
    logger.info(f"Starting MCP server on {host}:{port} (SSE at /sse)")

    uvicorn.run(
        create_sse_app(server),
        host=host,
        port=port,
        log_level="debug" if debug else "warning",
    )
