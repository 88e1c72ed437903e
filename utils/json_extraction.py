"""JSON extraction from LLM responses.

Models asked for "only the JSON object" still wrap it in prose or markdown
fences often enough that the reply cannot be fed to json.loads directly.
The extraction takes the span from the first "{" to the last "}" (greedy),
which also covers objects nested inside the outer one.
"""

import json
import re
from typing import Any

from utils.logging import get_logger

logger = get_logger(__name__)

# Greedy: first "{" through the last "}", across newlines
JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


def find_json_object_span(response: str) -> str | None:
    """Return the greedy `{...}` span of the response, or None if there is none."""
    if not response:
        return None
    match = JSON_OBJECT_PATTERN.search(response)
    return match.group(0) if match else None


def extract_json_object(response: str | None, context: str = "extraction") -> dict[str, Any] | None:
    """Parse the first `{...}` span of an LLM response as a JSON object.

    Args:
        response: The raw LLM response text
        context: Identifier used in log messages (e.g., "insight_extraction")

    Returns:
        The parsed object, or None when there is no span, the span is not
        valid JSON, or it does not decode to an object.
    """
    if not response:
        logger.warning(f"Empty LLM response for {context}")
        return None

    span = find_json_object_span(response)
    if span is None:
        logger.warning(
            f"No JSON object found in {context} response. "
            f"Response length: {len(response)}, first 200 chars: {response[:200]!r}"
        )
        return None

    try:
        result = json.loads(span)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse {context} JSON: {e}")
        return None

    if not isinstance(result, dict):
        logger.warning(f"Expected a JSON object for {context}, got {type(result).__name__}")
        return None

    return result
