"""
Response parser for the trip extractor.

Handles parsing of model responses, including JSON extraction from
various formats (raw JSON, markdown code blocks, prose around an object),
and validation against the ExtractionPayload contract.
"""

import json
import logging
import re

from pydantic import ValidationError as PydanticValidationError

from travel_agents.shared.errors import ExtractionError
from travel_agents.planning.extraction.base import ExtractionPayload


logger = logging.getLogger(__name__)


class ParseError(ExtractionError):
    """Raised when response parsing fails."""

    pass


def extract_json_from_response(raw_response: str) -> str:
    """
    Extract JSON content from a model response.

    Handles multiple formats:
    - Raw JSON
    - JSON in markdown code blocks (```json ... ```)
    - A JSON object embedded in surrounding prose

    Args:
        raw_response: Raw model response string

    Returns:
        Cleaned JSON string ready for parsing

    Raises:
        ParseError: If no JSON object is found
    """
    content = raw_response.strip()

    # Try to extract from markdown code block
    code_block_pattern = r"```(?:json)?\s*([\s\S]*?)```"
    match = re.search(code_block_pattern, content)
    if match:
        content = match.group(1).strip()

    start = content.find("{")
    if start == -1:
        raise ParseError(f"No JSON object found in response: {raw_response[:200]!r}")

    # Find matching closing brace, ignoring braces inside strings
    brace_count = 0
    in_string = False
    escaped = False
    for i in range(start, len(content)):
        char = content[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            brace_count += 1
        elif char == "}":
            brace_count -= 1
            if brace_count == 0:
                return content[start : i + 1]

    # No clear boundary, let the JSON parser report the problem
    return content[start:]


def parse_extraction_response(raw_response: str) -> ExtractionPayload:
    """
    Parse and validate an extraction response.

    Args:
        raw_response: Raw model response string

    Returns:
        Validated ExtractionPayload

    Raises:
        ParseError: If JSON parsing fails or the structure is invalid
    """
    json_str = extract_json_from_response(raw_response)

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse extraction JSON: {e}\nContent: {json_str}")

    if not isinstance(data, dict) or "updates" not in data:
        raise ParseError("Extraction response missing required key: 'updates'")

    try:
        return ExtractionPayload.model_validate(data)
    except PydanticValidationError as e:
        raise ParseError(f"Extraction response has invalid structure: {e}")
