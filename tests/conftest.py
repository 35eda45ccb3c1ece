"""Shared fixtures for lead qualifier tests."""

import json
import os
from typing import List, Optional, Union

import pytest
from fastapi.testclient import TestClient

# Ensure we use test settings
os.environ["LLM_PROVIDER"] = "openai"
os.environ["OPENAI_API_KEY"] = "sk-test-0000000000000000"
os.environ.pop("DATABASE_URL", None)
os.environ.pop("CRM_WEBHOOK_URL", None)
os.environ.pop("BUSINESS_CONFIG_PATH", None)

from qualification.catalog import BusinessConfig, CriteriaSet  # noqa: E402
from qualification.models import LeadProfile, LeadSession  # noqa: E402


class ScriptedProvider:
    """Stands in for the LLM: replays queued replies, records prompts."""

    name = "scripted"

    def __init__(self, replies: Optional[List[Union[str, Exception]]] = None):
        self.replies = list(replies or [])
        self.calls = []

    def queue(self, *replies: Union[str, Exception]):
        self.replies.extend(replies)

    async def agenerate(self, prompt: str, system: Optional[str] = None) -> str:
        self.calls.append({"prompt": prompt, "system": system})
        if not self.replies:
            raise AssertionError("ScriptedProvider ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def llm_reply(
    extracted=None,
    missing=None,
    classification="pending",
    reasoning="",
    next_question=None,
) -> str:
    """Provider reply in the wire format the prompt asks for."""
    body = {
        "extracted": extracted or {},
        "missingQuestions": missing or [],
        "classification": classification,
        "reasoning": reasoning,
    }
    if next_question is not None:
        body["nextQuestion"] = next_question
    return json.dumps(body)


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
def small_config():
    """Two-question catalog used by the end-to-end scenarios."""
    return BusinessConfig(
        name="Acme Homes",
        industry="real-estate",
        location="Pune, India",
        greeting="Hello {name}!",
        qualifying_questions=("What city?", "Budget?"),
        criteria=CriteriaSet(
            hot=("Specific city", "Clear budget"),
            cold=("Vague requirements",),
            invalid=("Gibberish",),
        ),
    )


@pytest.fixture
def lead_session(small_config):
    return LeadSession(lead=LeadProfile(name="Asha", phone="9999999999"), config=small_config)


@pytest.fixture
def client(provider):
    """FastAPI test client wired to the scripted provider."""
    from api.main import app
    from api.services import get_services

    services = get_services()
    services.reset()
    services.initialize(provider=provider)
    yield TestClient(app)
    services.reset()
