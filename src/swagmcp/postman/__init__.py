"""Postman collection handling module for swagmcp."""

from .collection import PostmanCollectionParser, parse_environment, resolve_variables, slugify

__all__ = [
    "PostmanCollectionParser",
    "parse_environment",
    "resolve_variables",
    "slugify",
]
