"""Authentication handling module for swagmcp."""

from .auth_helpers import AuthResolver

__all__ = ["AuthResolver"]
