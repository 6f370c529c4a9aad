"""Study Group - LangGraph Agents Package.

This package contains the shared LLM plumbing and the Study Group workflow:
- base: chat model factory, content generator, JSON helpers
- study_group: personas, intent classification, persona scoring,
  session state machine, mastery and auto-escalation
"""

from .base import LLMContentGenerator, get_llm

__all__ = [
    "get_llm",
    "LLMContentGenerator",
]
