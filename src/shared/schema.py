"""Input schema helpers."""

from typing import Any

from shared.models import InputSpec


def create_tool_schema(inputs: list[InputSpec]) -> dict[str, Any]:
    """
    Create a JSON Schema from a tool's input definitions.

    Args:
        inputs: Ordered input definitions; types must already be validated

    Returns:
        JSON Schema dictionary for the tool's arguments
    """
    properties: dict[str, Any] = {}

    for spec in inputs:
        properties[spec.name] = {
            "type": spec.type,
            "description": spec.description,
        }

    return {
        "type": "object",
        "properties": properties,
        "required": [spec.name for spec in inputs if spec.required],
    }
