"""
Test the chat-model backed content generator.
"""

import pytest
from langchain_core.messages import AIMessage

from study_group.agents.base.llm import LLMContentGenerator


class RecordingChatModel:
    """Minimal async chat model double."""

    def __init__(self, content="ok", error=None):
        self.content = content
        self.error = error
        self.prompts = []

    async def ainvoke(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return AIMessage(content=self.content)


@pytest.mark.asyncio
class TestLLMContentGenerator:

    async def test_standard_and_reasoning_models(self):
        standard = RecordingChatModel("fast")
        reasoning = RecordingChatModel("deep")
        generator = LLMContentGenerator(standard_llm=standard, reasoning_llm=reasoning)

        assert await generator.generate("classify this") == "fast"
        assert await generator.generate("reply to this", use_extended_reasoning=True) == "deep"
        assert standard.prompts == ["classify this"]
        assert reasoning.prompts == ["reply to this"]

    async def test_content_blocks_are_flattened(self):
        model = RecordingChatModel([{"type": "text", "text": "Hello "}, {"type": "text", "text": "there"}])
        generator = LLMContentGenerator(standard_llm=model, reasoning_llm=model)

        assert await generator.generate("hi") == "Hello there"

    async def test_errors_propagate(self):
        model = RecordingChatModel(error=TimeoutError("upstream timed out"))
        generator = LLMContentGenerator(standard_llm=model, reasoning_llm=model)

        with pytest.raises(TimeoutError):
            await generator.generate("hi")
