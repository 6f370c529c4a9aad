"""JSON extraction from free-form model output.

Generated text is expected, but not guaranteed, to contain a JSON object.
Everything that crosses from model output into typed code goes through
``parse_model_or_fallback``.
"""

import json
import logging
import re
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (``` and ```json) from text."""
    return _CODE_FENCE.sub("", text or "").strip()


def find_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced ``{...}`` span in text, or None.

    Braces inside JSON string literals are ignored.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        # Unbalanced from this brace; try the next opening brace.
        start = text.find("{", start + 1)
    return None


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Extract and decode the first JSON object found in text.

    Raises:
        ValueError: If the text holds no decodable JSON object.
    """
    if not text:
        raise ValueError("Empty input text")

    cleaned = strip_code_fences(text)
    span = find_json_object(cleaned)
    if span is None:
        raise ValueError("No JSON object found in text")

    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON object: {e}") from e

    if not isinstance(parsed, dict):
        raise ValueError(f"Expected JSON object, got {type(parsed).__name__}")
    return parsed


def parse_model_or_fallback(text: str, model: Type[ModelT], fallback: ModelT) -> ModelT:
    """Validate model output against a pydantic model, returning fallback on any failure."""
    try:
        return model.model_validate(extract_json_object(text))
    except (ValueError, ValidationError) as e:
        truncated = (text or "")[:200]
        logger.warning(f"Falling back to default {model.__name__}: {e}. Raw (truncated): {truncated}")
        return fallback
