"""Authentication helpers.

Turns an AuthConfig into the headers and query parameters of one outbound
call, honouring the security requirements an OpenAPI endpoint declares.
"""

import base64
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from ..models import AuthConfig, SecurityScheme

logger = logging.getLogger(__name__)

AuthInput = Union[AuthConfig, Dict[str, Any], None]
SecurityRequirements = Optional[List[Dict[str, List[str]]]]


def as_auth_config(auth: AuthInput) -> Optional[AuthConfig]:
    """Coerce a tool argument into an AuthConfig.

    Args:
        auth: AuthConfig, camelCase mapping, or None

    Returns:
        AuthConfig or None
    """
    if auth is None or isinstance(auth, AuthConfig):
        return auth
    return AuthConfig.model_validate(auth)


class AuthResolver:
    """Resolves credentials for one call.

    Args:
        default_auth: Credentials from the configuration file
        security_schemes: Scheme table of the loaded OpenAPI document
    """

    def __init__(
        self,
        default_auth: AuthInput = None,
        security_schemes: Optional[Mapping[str, SecurityScheme]] = None,
    ):
        self.default_auth = as_auth_config(default_auth)
        self.security_schemes = dict(security_schemes or {})

    def select(self, auth: AuthInput = None) -> Optional[AuthConfig]:
        """Pick the credentials that apply to a call.

        A per-call config overrides the default. Returns None when neither
        is set or the chosen config has no type (or type "none").
        """
        chosen = as_auth_config(auth) or self.default_auth
        if chosen is None or not chosen.is_active:
            return None
        return chosen

    def _applicable(
        self, auth: AuthInput, endpoint_security: SecurityRequirements
    ) -> Optional[AuthConfig]:
        # An explicitly empty requirement list marks an unauthenticated endpoint
        if endpoint_security is not None and len(endpoint_security) == 0:
            return None

        chosen = self.select(auth)
        if chosen is None or chosen.type != "apiKey":
            return chosen
        if chosen.api_key_name and chosen.api_key_in:
            return chosen

        scheme = self._required_api_key_scheme(endpoint_security)
        update = {}
        if scheme is not None:
            if not chosen.api_key_name:
                update["api_key_name"] = scheme.parameter_name
            if not chosen.api_key_in and scheme.location in ("header", "query"):
                update["api_key_in"] = scheme.location
        if not chosen.api_key_in and "api_key_in" not in update:
            update["api_key_in"] = "header"
        return chosen.model_copy(update=update)

    def _required_api_key_scheme(
        self, endpoint_security: SecurityRequirements
    ) -> Optional[SecurityScheme]:
        for requirement in endpoint_security or []:
            for scheme_name in requirement:
                scheme = self.security_schemes.get(scheme_name)
                if scheme is not None and scheme.type == "apiKey":
                    return scheme
        return None

    def resolve_headers(
        self,
        auth: AuthInput = None,
        endpoint_security: SecurityRequirements = None,
    ) -> Dict[str, str]:
        """Build the authentication headers for a call.

        Args:
            auth: Per-call credentials overriding the default
            endpoint_security: The endpoint's effective requirement list;
                an empty list disables authentication, None means undeclared

        Returns:
            Header name to value
        """
        chosen = self._applicable(auth, endpoint_security)
        if chosen is None:
            return {}

        headers = {}
        if chosen.type == "basic":
            if chosen.username and chosen.password:
                encoded = base64.b64encode(
                    f"{chosen.username}:{chosen.password}".encode()
                ).decode()
                headers["Authorization"] = f"Basic {encoded}"
        elif chosen.type in ("bearer", "oauth2"):
            if chosen.token:
                headers["Authorization"] = f"Bearer {chosen.token}"
        elif chosen.type == "apiKey":
            if chosen.api_key and chosen.api_key_name and chosen.api_key_in == "header":
                headers[chosen.api_key_name] = chosen.api_key

        if not headers:
            logger.debug(f"No authentication headers produced for {chosen.type} credentials")
        return headers

    def resolve_query_params(
        self,
        auth: AuthInput = None,
        endpoint_security: SecurityRequirements = None,
    ) -> Dict[str, str]:
        """Build the authentication query parameters for a call.

        Only apiKey credentials located in the query produce anything.
        """
        chosen = self._applicable(auth, endpoint_security)
        if chosen is None or chosen.type != "apiKey":
            return {}
        if chosen.api_key and chosen.api_key_name and chosen.api_key_in == "query":
            return {chosen.api_key_name: chosen.api_key}
        return {}

    def describe_requirements(
        self,
        endpoint_security: SecurityRequirements,
        schemes: Optional[Mapping[str, SecurityScheme]] = None,
    ) -> List[Dict[str, Any]]:
        """Annotate every declared scheme as required or optional for an endpoint.

        Args:
            endpoint_security: The endpoint's effective requirement list
            schemes: Scheme table, defaults to the resolver's own

        Returns:
            One entry per scheme with a "required" flag
        """
        schemes = self.security_schemes if schemes is None else schemes
        required = {name for requirement in endpoint_security or [] for name in requirement}

        described = []
        for name, scheme in schemes.items():
            entry = scheme.model_dump(by_alias=True, exclude_none=True)
            entry.setdefault("description", "")
            entry["required"] = name in required
            described.append(entry)
        return described

