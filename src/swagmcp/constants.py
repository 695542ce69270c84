"""
Name: Constants and settings.
Description: Centralized location for constants and settings used throughout swagmcp.
This file contains default values, configuration paths, and other constants to maintain consistency.
"""

# Configuration settings
DEFAULT_CONFIG_FILE = "./config.json"
DEFAULT_LOG_LEVEL = "info"

# Server settings
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_TRANSPORT = "stdio"

# HTTP settings
DEFAULT_TIMEOUT = 30.0
DEFAULT_CONTENT_TYPE = "application/json"

# Discovery settings
DEFAULT_LIST_LIMIT = 50
DEFAULT_SEARCH_LIMIT = 20
DEFAULT_SUMMARY_TRUNCATION = 100

# HTTP verbs that mark an operation under an OpenAPI path item
HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

# Prefix that routes a make_api_call / make_request parameter to the headers
HEADER_PARAM_PREFIX = "header_"

# Default API used when no configuration file exists
DEFAULT_OPENAPI_URL = "https://petstore.swagger.io/v2/swagger.json"
DEFAULT_API_BASE_URL = "https://petstore.swagger.io/v2"

# Lookup miss messages returned by the details and dispatch tools
ENDPOINT_NOT_FOUND = "Endpoint not found. Use list_endpoints to see available endpoints."
REQUEST_NOT_FOUND = "Request not found. Use list_requests to see available requests."
