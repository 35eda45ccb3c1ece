"""Tests for provider output validation."""

import pytest

from qualification.exceptions import InvariantViolation, MalformedResponseError
from qualification.models import Classification
from qualification.response_parser import (
    DEGRADED_RATIONALE,
    degraded_result,
    extract_json_object,
    parse_qualifying_result,
)

from conftest import llm_reply


class TestExtractJson:
    def test_plain_object(self):
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_object_wrapped_in_prose(self):
        text = 'Sure! Here you go:\n```json\n{"a": {"b": 2}}\n```\nAnything else?'
        assert extract_json_object(text) == {"a": {"b": 2}}

    def test_skips_broken_leading_brace(self):
        assert extract_json_object('{oops} then {"ok": true}') == {"ok": True}

    def test_no_object(self):
        with pytest.raises(MalformedResponseError):
            extract_json_object("I could not decide.")

    def test_empty(self):
        with pytest.raises(MalformedResponseError):
            extract_json_object("   ")


class TestParseQualifyingResult:
    def test_full_answer(self, small_config):
        raw = llm_reply(
            extracted={"What city?": "Pune", "Budget?": "75L"},
            missing=[],
            classification="hot",
            reasoning="Clear city and budget",
        )
        result = parse_qualifying_result(raw, small_config, {})
        assert result.extracted == {"What city?": "Pune", "Budget?": "75L"}
        assert result.missing_questions == []
        assert result.verdict.label == Classification.HOT
        assert result.verdict.next_utterance is None
        assert not result.degraded

    def test_null_and_empty_answers_stripped(self, small_config):
        raw = llm_reply(extracted={"What city?": None, "Budget?": ""}, missing=["What city?", "Budget?"])
        result = parse_qualifying_result(raw, small_config, {})
        assert result.extracted == {}

    def test_numeric_answer_stringified(self, small_config):
        raw = llm_reply(extracted={"Budget?": 7500000}, missing=["What city?"])
        result = parse_qualifying_result(raw, small_config, {})
        assert result.extracted == {"Budget?": "7500000"}

    def test_keys_canonicalized_to_catalog(self, small_config):
        raw = llm_reply(extracted={"what  city?": "Pune"}, missing=["BUDGET?"])
        result = parse_qualifying_result(raw, small_config, {})
        assert result.extracted == {"What city?": "Pune"}
        assert result.missing_questions == ["Budget?"]

    def test_unknown_extracted_key_dropped(self, small_config):
        raw = llm_reply(extracted={"Favourite colour?": "Blue"}, missing=["What city?", "Budget?"])
        result = parse_qualifying_result(raw, small_config, {})
        assert result.extracted == {}

    def test_answered_questions_never_missing(self, small_config):
        raw = llm_reply(missing=["What city?", "Budget?"], next_question="Budget?")
        result = parse_qualifying_result(raw, small_config, {"What city?": "Pune"})
        assert result.missing_questions == ["Budget?"]

    def test_already_answered_not_reextracted(self, small_config):
        raw = llm_reply(extracted={"What city?": "Delhi"}, missing=["Budget?"])
        result = parse_qualifying_result(raw, small_config, {"What city?": "Pune"})
        assert result.extracted == {}

    def test_reasked_question_replaced(self, small_config):
        raw = llm_reply(missing=["Budget?"], next_question="What city?")
        result = parse_qualifying_result(raw, small_config, {"What city?": "Pune"})
        assert result.verdict.next_utterance == "Budget?"

    def test_closing_remark_kept(self, small_config):
        raw = llm_reply(classification="cold", next_question="Would you like a site visit?")
        result = parse_qualifying_result(raw, small_config, {"What city?": "Pune", "Budget?": "75L"})
        assert result.verdict.next_utterance == "Would you like a site visit?"

    def test_blank_next_question_is_absent(self, small_config):
        raw = llm_reply(missing=["Budget?"], next_question="   ")
        result = parse_qualifying_result(raw, small_config, {})
        assert result.verdict.next_utterance is None

    def test_unknown_label_is_invariant_violation(self, small_config):
        raw = llm_reply(classification="warm")
        with pytest.raises(InvariantViolation):
            parse_qualifying_result(raw, small_config, {})

    def test_unknown_missing_question_is_invariant_violation(self, small_config):
        raw = llm_reply(missing=["Favourite colour?"])
        with pytest.raises(InvariantViolation):
            parse_qualifying_result(raw, small_config, {})

    @pytest.mark.parametrize("label", [["hot"], {"x": 1}, 3])
    def test_non_string_label_is_malformed(self, small_config, label):
        raw = llm_reply(classification=label)
        with pytest.raises(MalformedResponseError):
            parse_qualifying_result(raw, small_config, {})

    def test_schema_mismatch(self, small_config):
        with pytest.raises(MalformedResponseError):
            parse_qualifying_result('{"extracted": []}', small_config, {})


def test_degraded_result():
    result = degraded_result()
    assert result.degraded
    assert result.extracted == {}
    assert result.missing_questions == []
    assert result.verdict.label == Classification.PENDING
    assert result.verdict.rationale == DEGRADED_RATIONALE
    assert result.verdict.next_utterance is None
