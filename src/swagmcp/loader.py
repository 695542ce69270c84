"""
Name: Spec loader.
Description: Builds an ApiContext from validated configuration by fetching the OpenAPI document or the Postman collection (and optional environment) and normalizing it. Loading is all-or-nothing: any failure raises SpecLoadError and no context is returned.
"""

import logging
from typing import Any, Dict, Optional

import requests
import yaml

from .config import ApiConfig
from .context import ApiContext
from .models import ApiFormat
from .openapi.spec import OpenAPISpecParser
from .postman.collection import PostmanCollectionParser
from .utils import load_document

logger = logging.getLogger(__name__)


class SpecLoadError(RuntimeError):
    """Raised when an API description cannot be fetched or parsed."""


def _fetch(source: str, timeout: float, what: str) -> Dict[str, Any]:
    try:
        return load_document(source, timeout=timeout)
    except (requests.RequestException, OSError, ValueError, yaml.YAMLError) as e:
        raise SpecLoadError(f"Failed to load {what} from {source}: {e}") from e


def build_openapi_context(
    document: Dict[str, Any],
    api_base_url: Optional[str] = None,
    default_auth=None,
) -> ApiContext:
    """Normalize an OpenAPI document into a context.

    Args:
        document: Parsed OpenAPI v3 or Swagger v2 document
        api_base_url: Base URL overriding the document's servers/host
        default_auth: Default credentials

    Returns:
        The API context
    """
    parser = OpenAPISpecParser(document)
    endpoints, schemes = parser.normalize()
    base_url = api_base_url or parser.get_base_url()
    if not base_url:
        logger.warning("No base URL configured or declared in the document")

    return ApiContext(
        ApiFormat.openapi,
        endpoints,
        base_url=base_url,
        security_schemes=schemes,
        default_auth=default_auth,
        info=parser.get_info(),
        document=parser.spec,
    )


def build_postman_context(
    collection: Dict[str, Any],
    environment: Optional[Dict[str, Any]] = None,
    default_auth=None,
) -> ApiContext:
    """Normalize a Postman collection into a context.

    Args:
        collection: Parsed Postman collection
        environment: Parsed Postman environment, if any
        default_auth: Default credentials

    Returns:
        The API context
    """
    parser = PostmanCollectionParser(collection, environment)
    endpoints, variables = parser.normalize()

    return ApiContext(
        ApiFormat.postman,
        endpoints,
        environment=variables,
        default_auth=default_auth,
        info=parser.get_info(),
        document=parser.collection,
    )


def build_context(config: ApiConfig) -> ApiContext:
    """Load the configured API description and build its context.

    Args:
        config: Validated configuration

    Returns:
        The API context

    Raises:
        SpecLoadError: If the description cannot be fetched or normalized
    """
    timeout = config.http.timeout

    try:
        if config.api_type == ApiFormat.openapi:
            source = config.api.openapi
            logger.info(f"Loading OpenAPI document from {source.url}")
            document = _fetch(source.url, timeout, "OpenAPI document")
            context = build_openapi_context(
                document,
                api_base_url=source.api_base_url,
                default_auth=source.default_auth,
            )
        else:
            source = config.api.postman
            logger.info(f"Loading Postman collection from {source.collection_source}")
            collection = _fetch(source.collection_source, timeout, "Postman collection")
            environment = None
            if source.environment_source:
                logger.info(f"Loading Postman environment from {source.environment_source}")
                environment = _fetch(
                    source.environment_source, timeout, "Postman environment"
                )
            context = build_postman_context(
                collection, environment, default_auth=source.default_auth
            )
    except SpecLoadError:
        raise
    except (ValueError, TypeError, KeyError) as e:
        raise SpecLoadError(f"Failed to normalize API description: {e}") from e

    logger.info(
        f"Loaded {len(context)} endpoints from '{context.info.title}' ({context.format.value})"
    )
    return context
