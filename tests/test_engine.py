"""Tests for the extraction & classification engine."""

import asyncio

import pytest

from qualification.catalog import CriteriaSet
from qualification.engine import QualificationEngine
from qualification.exceptions import ProviderCallError
from qualification.models import Classification, DialogueTurn, Speaker
from qualification.response_parser import DEGRADED_RATIONALE

from conftest import llm_reply


@pytest.fixture
def transcript():
    return [
        DialogueTurn(Speaker.AGENT, "Hello Asha! What city?"),
        DialogueTurn(Speaker.USER, "Pune, 75L budget"),
    ]


def test_prompt_carries_catalog_criteria_and_history(provider, small_config, transcript):
    provider.queue(llm_reply(missing=["What city?", "Budget?"], next_question="What city?"))
    engine = QualificationEngine(provider, small_config)

    asyncio.run(engine.evaluate(transcript, {}, lead_name="Asha"))

    call = provider.calls[0]
    assert "Output strictly valid JSON" in call["system"]
    assert "real estate" in call["system"]
    assert "- What city?\n- Budget?" in call["prompt"]
    assert "HOT: Specific city; Clear budget" in call["prompt"]
    assert "Agent: Hello Asha! What city?\nLead: Pune, 75L budget" in call["prompt"]
    assert "Greeting: Hello Asha!" in call["prompt"]


def test_prompt_includes_current_answers(provider, small_config, transcript):
    provider.queue(llm_reply(missing=["Budget?"]))
    engine = QualificationEngine(provider, small_config)

    asyncio.run(engine.evaluate(transcript, {"What city?": "Pune"}))

    assert '{"What city?": "Pune"}' in provider.calls[0]["prompt"]


def test_all_answers_in_one_pass(provider, small_config, transcript):
    provider.queue(llm_reply(
        extracted={"What city?": "Pune", "Budget?": "75L"},
        classification="hot",
        reasoning="Specific city and budget",
    ))
    engine = QualificationEngine(provider, small_config)

    result = asyncio.run(engine.evaluate(transcript, {}))

    assert result.extracted == {"What city?": "Pune", "Budget?": "75L"}
    assert result.missing_questions == []
    assert result.verdict.label == Classification.HOT


def test_invalid_json_degrades(provider, small_config, transcript):
    provider.queue("Sorry, I can't help with that.")
    engine = QualificationEngine(provider, small_config)

    result = asyncio.run(engine.evaluate(transcript, {}))

    assert result.degraded
    assert result.extracted == {}
    assert result.missing_questions == []
    assert result.verdict.label == Classification.PENDING
    assert result.verdict.rationale == DEGRADED_RATIONALE


def test_invariant_violation_degrades(provider, small_config, transcript):
    provider.queue(llm_reply(classification="lukewarm"))
    engine = QualificationEngine(provider, small_config)

    result = asyncio.run(engine.evaluate(transcript, {}))

    assert result.degraded
    assert result.verdict.label == Classification.PENDING


def test_non_string_label_degrades(provider, small_config, transcript):
    provider.queue('{"extracted":{},"missingQuestions":[],"classification":["hot"],"reasoning":"x"}')
    engine = QualificationEngine(provider, small_config)

    result = asyncio.run(engine.evaluate(transcript, {}))

    assert result.degraded
    assert result.verdict.label == Classification.PENDING


def test_provider_error_propagates(provider, small_config, transcript):
    provider.queue(ProviderCallError("AI service rejected the API key", status_code=401, kind="auth"))
    engine = QualificationEngine(provider, small_config)

    with pytest.raises(ProviderCallError) as exc_info:
        asyncio.run(engine.evaluate(transcript, {}))
    assert exc_info.value.kind == "auth"


def test_criteria_override(provider, small_config, transcript):
    provider.queue(llm_reply(missing=["What city?", "Budget?"]))
    engine = QualificationEngine(provider, small_config)

    criteria = CriteriaSet(hot=("Wants a site visit",), cold=(), invalid=())
    asyncio.run(engine.evaluate(transcript, {}, criteria=criteria))

    assert "HOT: Wants a site visit" in provider.calls[0]["prompt"]
