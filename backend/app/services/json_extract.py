# json extraction for untrusted model output
# every generation call site (questions, profile, board themes) parses through here

import json
import logging
import re

logger = logging.getLogger(__name__)

# greedy: first "{" through the last "}" in the text
_JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


class JSONExtractionError(ValueError):
    """raised when no usable json object can be pulled out of model text"""


def extract_first_json_object(text: str) -> dict:
    """find the first json-object-shaped span in text and parse it.

    models wrap json in prose or markdown fences, so we never trust the
    text as a whole. raises JSONExtractionError when there is no object,
    the span is not valid json, or it parses to something other than a dict.
    """
    if not text:
        raise JSONExtractionError("empty model output")

    match = _JSON_OBJECT_PATTERN.search(text)
    if not match:
        raise JSONExtractionError("no json object found in model output")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise JSONExtractionError(f"invalid json in model output: {e}") from e

    if not isinstance(data, dict):
        raise JSONExtractionError(f"expected a json object, got {type(data).__name__}")

    return data
