"""OpenAPI handling module for swagmcp."""

from .spec import OpenAPISpecParser

__all__ = ["OpenAPISpecParser"]
