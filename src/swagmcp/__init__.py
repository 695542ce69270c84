"""
Name: swagmcp package.
Description: Defines the package version and exposes the CLI entry point. swagmcp serves any OpenAPI/Swagger document or Postman collection to MCP clients through a small fixed set of discovery and dispatch tools.
"""

__version__ = "0.1.0"
__author__ = "swagmcp contributors"

from .main import main as cli_main

__all__ = ["cli_main"]
