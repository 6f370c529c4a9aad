"""
Test JSON extraction from free-form model output.
"""

import pytest

from study_group.agents.base.json_utils import (
    extract_json_object,
    find_json_object,
    parse_model_or_fallback,
    strip_code_fences,
)
from study_group.agents.study_group.state import AnswerEvaluation


FALLBACK = AnswerEvaluation(is_correct=False, score=0, feedback="fallback")


class TestExtraction:

    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_object_embedded_in_prose(self):
        assert extract_json_object('Sure! {"a": {"b": 2}} Hope that helps.') == {"a": {"b": 2}}

    def test_braces_inside_strings(self):
        text = '{"message": "use {curly} braces", "n": 1}'
        assert find_json_object(text) == text

    def test_skips_unbalanced_prefix(self):
        assert extract_json_object('{ oops {"ok": true}') == {"ok": True}

    @pytest.mark.parametrize("text", ["", "no json here", "[1, 2, 3]", '{"a": }'])
    def test_rejects_non_objects(self, text):
        with pytest.raises(ValueError):
            extract_json_object(text)


class TestParseOrFallback:

    def test_valid_payload(self):
        result = parse_model_or_fallback(
            '{"isCorrect": true, "score": 80, "feedback": "good"}', AnswerEvaluation, FALLBACK
        )
        assert result.is_correct is True
        assert result.score == 80
        assert result.understanding == "unclear"

    def test_out_of_range_score(self):
        result = parse_model_or_fallback('{"isCorrect": true, "score": 140}', AnswerEvaluation, FALLBACK)
        assert result is FALLBACK

    def test_missing_fields(self):
        assert parse_model_or_fallback('{"score": 50}', AnswerEvaluation, FALLBACK) is FALLBACK

    def test_garbage(self):
        assert parse_model_or_fallback("the answer is right", AnswerEvaluation, FALLBACK) is FALLBACK
