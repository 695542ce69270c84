"""
Name: Value coercion.
Description: Coerces the loosely typed parameter and body values received from tool calls (strings, numbers, booleans, mappings, sequences) into the text forms used for paths, headers, query strings and request bodies.
"""

import json
from typing import Any, List, Mapping, Optional, Sequence, Union

Scalar = Union[str, int, float, bool]
ParamValue = Union[Scalar, Mapping[str, Any], Sequence[Any]]


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def to_text(value: ParamValue) -> str:
    """Render one value as text.

    Booleans become "true"/"false", numbers use str(), mappings become JSON
    and sequences are comma-joined.

    Args:
        value: Value from a tool call

    Returns:
        Text form of the value
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, Mapping):
        return json.dumps(value)
    if is_sequence(value):
        return ",".join(to_text(item) for item in value)
    return str(value)


def to_query_value(value: ParamValue) -> Union[str, List[str]]:
    """Render a query parameter value; sequences become repeated keys."""
    if is_sequence(value):
        return [to_text(item) for item in value]
    return to_text(value)


def serialize_body(body: Any) -> Optional[Union[str, bytes]]:
    """Serialize a request body.

    Strings and bytes pass through unchanged, everything else is sent as
    JSON text.
    """
    if body is None:
        return None
    if isinstance(body, (str, bytes)):
        return body
    return json.dumps(body)
