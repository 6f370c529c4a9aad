"""
Test intent classification rules and generator fallback.
"""

import json

import pytest

from conftest import FakeContentGenerator
from study_group.agents.study_group.intent import (
    FALLBACK_INTENT,
    classify_intent,
    match_intent_rules,
)


class TestIntentRules:
    """Keyword rules resolve common phrasings without a generator call."""

    @pytest.mark.parametrize(
        "message, intent, confidence",
        [
            ("can you explain recursion?", "explain", 0.9),
            ("Why does this loop never end", "explain", 0.9),
            ("QUIZ me on sorting", "quiz", 0.9),
            ("give me something difficult", "challenge", 0.8),
            ("I'm so tired", "break", 0.9),
            ("my answer is 42", "answer", 0.9),
        ],
    )
    def test_rule_matches(self, message, intent, confidence):
        result = match_intent_rules(message)
        assert result is not None
        assert result.intent == intent
        assert result.confidence == confidence
        assert result.topic is None

    def test_first_matching_rule_wins(self):
        # "help" (explain) precedes "quiz" in rule order
        result = match_intent_rules("help me with this quiz")
        assert result.intent == "explain"

    def test_challenge_precedes_break(self):
        result = match_intent_rules("this is hard and I need a break")
        assert result.intent == "challenge"

    def test_no_match(self):
        assert match_intent_rules("hello there") is None


@pytest.mark.asyncio
class TestClassifyIntent:
    """Generator-backed classification for messages no rule matches."""

    async def test_rule_match_skips_generator(self):
        generator = FakeContentGenerator()
        result = await classify_intent("please explain pointers", generator)
        assert result.intent == "explain"
        assert generator.calls == []

    async def test_generator_classification(self):
        generator = FakeContentGenerator(
            intents=[json.dumps({"intent": "greeting", "confidence": 0.95, "topic": "graphs"})]
        )
        result = await classify_intent("hello there", generator)
        assert result.intent == "greeting"
        assert result.confidence == 0.95
        assert result.topic == "graphs"
        assert generator.calls[0][1] is False

    async def test_fenced_json_is_accepted(self):
        generator = FakeContentGenerator(
            intents=['```json\n{"intent": "topic_change", "confidence": 0.8}\n```']
        )
        result = await classify_intent("let's switch to trees", generator)
        assert result.intent == "topic_change"

    async def test_blank_topic_becomes_none(self):
        generator = FakeContentGenerator(
            intents=[json.dumps({"intent": "greeting", "confidence": 0.6, "topic": "  "})]
        )
        result = await classify_intent("hello there", generator)
        assert result.topic is None

    async def test_unparseable_output_falls_back(self):
        generator = FakeContentGenerator(intents=["I think it's a greeting"])
        result = await classify_intent("hello there", generator)
        assert result == FALLBACK_INTENT

    async def test_unknown_intent_falls_back(self):
        generator = FakeContentGenerator(
            intents=[json.dumps({"intent": "dance", "confidence": 0.9})]
        )
        result = await classify_intent("hello there", generator)
        assert result.intent == "other"
        assert result.confidence == 0.5

    async def test_generator_failure_falls_back(self):
        generator = FakeContentGenerator(fail_all=True)
        result = await classify_intent("hello there", generator)
        assert result == FALLBACK_INTENT
