"""Base infrastructure for all agents."""

from .json_utils import extract_json_object, parse_model_or_fallback, strip_code_fences
from .llm import LLMContentGenerator, get_llm

__all__ = [
    "get_llm",
    "LLMContentGenerator",
    "extract_json_object",
    "parse_model_or_fallback",
    "strip_code_fences",
]
