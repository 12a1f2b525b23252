from __future__ import annotations

from typing import TYPE_CHECKING, Any

from agentflow.core.url_utils import is_valid_http_url

if TYPE_CHECKING:
    from agentflow.tools.models import ToolDefinition

_TYPE_CHECKS: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "boolean": (bool,),
    "array": (list, tuple),
    "object": (dict,),
}


def _matches_type(expected: str, value: Any) -> bool:
    if expected == "number":
        return isinstance(value, int | float) and not isinstance(value, bool)
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    accepted = _TYPE_CHECKS.get(expected)
    return True if accepted is None else isinstance(value, accepted)


def _should_check_url(name: str, value: str) -> bool:
    # ``username_or_url`` style params also accept bare identifiers.
    if name.endswith("_or_url"):
        return "://" in value
    return True


def validate_tool_params(definition: ToolDefinition, params: dict[str, Any]) -> list[str]:
    """Check ``params`` against the tool's input schema.

    Returns a list of human-readable problems; empty when the call is valid.
    """
    if not isinstance(params, dict):
        return ["Parameters must be an object"]

    errors: list[str] = []
    schema = definition.input_schema

    for name in schema.required:
        if name not in params or params[name] is None or params[name] == "":
            errors.append(f"Missing required parameter: {name}")

    for name, value in params.items():
        prop = schema.properties.get(name)
        if prop is None or value is None:
            continue
        if not _matches_type(prop.type, value):
            errors.append(f"Parameter {name} must be of type {prop.type}")
            continue
        if prop.enum is not None:
            values = value if isinstance(value, list | tuple) else [value]
            invalid = [item for item in values if item not in prop.enum]
            if invalid:
                errors.append(f"Parameter {name} must be one of: {', '.join(prop.enum)}")
        if "url" in name and isinstance(value, str) and _should_check_url(name, value):
            if not is_valid_http_url(value):
                errors.append(f"Parameter {name} must be a valid URL")

    return errors
