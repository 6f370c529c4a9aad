"""LLM client factory and the default content generator.

Provides ChatOpenAI clients configured for an OpenAI-compatible API and a
content generator that picks a standard or an extended-reasoning model per call.
"""

import logging
from typing import Any, Optional

from langchain_openai import ChatOpenAI

from ...core.config import get_settings

logger = logging.getLogger(__name__)


def _resolve_api_key(base_url: str, api_key: str) -> str:
    """Provide a safe API key value for local OpenAI-compatible servers."""
    if api_key:
        return api_key
    base = (base_url or "").lower()
    if "127.0.0.1" in base or "localhost" in base:
        return "lm-studio"
    return ""


def get_llm(
    reasoning: bool = False,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> ChatOpenAI:
    """
    Get a chat model client for the configured OpenAI-compatible endpoint.

    Args:
        reasoning: Use LLM_REASONING_MODEL instead of LLM_MODEL
        temperature: Override LLM_TEMPERATURE
        max_tokens: Override LLM_MAX_TOKENS

    Returns:
        Configured ChatOpenAI instance
    """
    settings = get_settings()
    model = settings.LLM_REASONING_MODEL if reasoning else settings.LLM_MODEL
    logger.debug(f"Creating chat model {model} at {settings.LLM_BASE_URL}")

    return ChatOpenAI(
        base_url=settings.LLM_BASE_URL,
        api_key=_resolve_api_key(settings.LLM_BASE_URL, settings.LLM_API_KEY),
        model=model,
        temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
        max_tokens=max_tokens or settings.LLM_MAX_TOKENS,
    )


def _content_to_text(content: Any) -> str:
    """Flatten a chat message content payload into plain text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, dict):
                parts.append(str(part.get("text", "")))
            else:
                parts.append(str(part))
        return "".join(parts)
    return str(content)


class LLMContentGenerator:
    """Content generator backed by two chat models.

    Standard calls (classification, grading) go to ``LLM_MODEL``; persona
    replies ask for extended reasoning and go to ``LLM_REASONING_MODEL``.
    """

    def __init__(
        self,
        standard_llm: Optional[Any] = None,
        reasoning_llm: Optional[Any] = None,
    ):
        self.standard_llm = standard_llm or get_llm()
        self.reasoning_llm = reasoning_llm or get_llm(reasoning=True)

    async def generate(self, prompt: str, use_extended_reasoning: bool = False) -> str:
        llm = self.reasoning_llm if use_extended_reasoning else self.standard_llm
        mode = "reasoning" if use_extended_reasoning else "standard"
        try:
            response = await llm.ainvoke(prompt)
        except Exception as e:
            logger.error(f"Error generating content ({mode}): {e}")
            raise
        content = response.content if hasattr(response, "content") else response
        return _content_to_text(content)
