"""
Name: Command-line interface.
Description: Implements the swagmcp command-line interface: `serve` starts the MCP server over stdio or SSE, `endpoints` lists or searches the loaded API, and `call` executes one endpoint from the shell.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

import anyio
import httpx

from .config import ApiConfig, ConfigError, load_config
from .constants import DEFAULT_LIST_LIMIT, DEFAULT_SEARCH_LIMIT
from .discovery import DiscoveryService
from .dispatcher import RequestDispatcher
from .loader import SpecLoadError, build_context
from .manager import start_mcp_server
from .server.mcp import to_text
from .transport import HttpTransport
from .utils import configure_logging, setup_environment

logger = logging.getLogger(__name__)


def _load(args) -> ApiConfig:
    config = load_config(args.config)
    configure_logging("debug" if getattr(args, "debug", False) else config.log.level)
    return config


def parse_params(pairs: Optional[List[str]]) -> Dict[str, Any]:
    """Parse repeated `key=value` options.

    Values that parse as JSON (numbers, booleans, objects) are decoded,
    anything else stays a string.
    """
    params = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Invalid parameter '{pair}', expected key=value")
        key, value = pair.split("=", 1)
        try:
            params[key] = json.loads(value)
        except json.JSONDecodeError:
            params[key] = value
    return params


def parse_body(body: Optional[str]) -> Any:
    if body is None:
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        return body


def serve_command(args):
    """Start the MCP server."""
    config = _load(args)
    start_mcp_server(
        config,
        transport_mode=args.transport,
        host=args.host,
        port=args.port,
        debug=args.debug,
    )


def endpoints_command(args):
    """List or search the endpoints of the configured API."""
    config = _load(args)
    discovery = DiscoveryService(build_context(config))

    if args.search:
        result = discovery.search_endpoints(
            args.search, limit=args.limit or DEFAULT_SEARCH_LIMIT
        )
    else:
        result = discovery.list_endpoints(
            method=args.method, tag=args.tag, limit=args.limit or DEFAULT_LIST_LIMIT
        )
    print(to_text(result))


def call_command(args):
    """Execute one endpoint and print the result."""
    config = _load(args)
    dispatcher = RequestDispatcher(
        build_context(config), transport=HttpTransport(timeout=config.http.timeout)
    )

    async def run():
        return await dispatcher.dispatch(
            endpoint_id=args.id,
            name=args.id,
            parameters=parse_params(args.param),
            body=parse_body(args.body),
        )

    print(to_text(anyio.run(run)))


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="swagmcp - Serve OpenAPI documents and Postman collections to MCP clients"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    def add_config_arg(parser):
        """Add config file argument to parser."""
        parser.add_argument(
            "--config",
            type=str,
            default=None,
            help="Path to the JSON configuration file (default: ./config.json)",
        )

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the MCP server")
    add_config_arg(serve_parser)
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default=None,
        help="Transport to serve on (default: from configuration)",
    )
    serve_parser.add_argument("--host", type=str, default=None, help="Host to bind the SSE server to")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind the SSE server to")
    serve_parser.add_argument("--debug", action="store_true", help="Enable debug mode")

    # Endpoints command
    endpoints_parser = subparsers.add_parser(
        "endpoints", help="List or search the endpoints of the configured API"
    )
    add_config_arg(endpoints_parser)
    endpoints_parser.add_argument("--search", type=str, help="Keyword to search for")
    endpoints_parser.add_argument("--method", type=str, help="Filter by HTTP method")
    endpoints_parser.add_argument("--tag", type=str, help="Filter by tag or folder")
    endpoints_parser.add_argument("--limit", type=int, default=None, help="Maximum number of results")

    # Call command
    call_parser = subparsers.add_parser("call", help="Execute one endpoint")
    add_config_arg(call_parser)
    call_parser.add_argument("id", type=str, help="Endpoint id (operationId or request id/name)")
    call_parser.add_argument(
        "--param",
        action="append",
        metavar="KEY=VALUE",
        help="Parameter to send, may be repeated; prefix headers with header_",
    )
    call_parser.add_argument("--body", type=str, default=None, help="Request body (JSON or text)")

    args = parser.parse_args()

    # Setup environment (includes logging configuration)
    setup_environment()

    commands = {
        "serve": serve_command,
        "endpoints": endpoints_command,
        "call": call_command,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return

    try:
        command(args)
    except (ConfigError, SpecLoadError) as e:
        logger.error(str(e))
        sys.exit(1)
    except ValueError as e:
        logger.error(f"Invalid input: {e}")
        sys.exit(1)
    except httpx.HTTPError as e:
        logger.error(f"Request failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
