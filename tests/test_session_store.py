"""Tests for session stores: memory, database and CRM webhook."""

import asyncio
import json

import httpx

from database.repositories import LeadSessionRepository
from database.session import close_db, init_db
from llm.db_session_store import DbSessionStore
from llm.orchestrator import ConversationOrchestrator
from llm.session_store import CompositeSessionStore, InMemorySessionStore
from llm.webhook_session_store import WebhookSessionStore
from qualification.engine import QualificationEngine

from conftest import llm_reply


def run_to_completion(provider, session, store):
    provider.queue(llm_reply(
        extracted={"What city?": "Pune", "Budget?": "75L"},
        classification="hot",
        reasoning="Specific city and clear budget",
    ))
    orchestrator = ConversationOrchestrator(session, QualificationEngine(provider, session.config), store=store)

    async def run():
        await orchestrator.start()
        await orchestrator.handle_user_message("Pune, 75L budget")

    asyncio.run(run())


def test_db_store_records_final_session(provider, lead_session):
    async def scenario():
        factory = await init_db("sqlite:///:memory:")
        try:
            store = DbSessionStore(factory)
            orchestrator = ConversationOrchestrator(
                lead_session, QualificationEngine(provider, lead_session.config), store=store
            )
            provider.queue(llm_reply(
                extracted={"What city?": "Pune", "Budget?": "75L"},
                classification="hot",
                reasoning="Specific city and clear budget",
            ))
            await orchestrator.start()

            async with factory() as db:
                record = await LeadSessionRepository(db).get_by_id(lead_session.session_id)
                assert record.state == "awaiting_first_input"
                assert record.classification == "pending"

            await orchestrator.handle_user_message("Pune, 75L budget")

            async with factory() as db:
                repo = LeadSessionRepository(db)
                record = await repo.get_by_id(lead_session.session_id)
                turns = await repo.get_turns(lead_session.session_id)
                counts = await repo.classification_counts()
            return record, turns, counts
        finally:
            await close_db()

    record, turns, counts = asyncio.run(scenario())

    assert record.state == "complete"
    assert record.classification == "hot"
    assert record.answers_json == {"What city?": "Pune", "Budget?": "75L"}
    assert record.lead_name == "Asha"
    assert record.completed_at is not None
    assert [t.speaker for t in turns] == ["agent", "user", "agent"]
    assert turns[1].text == "Pune, 75L budget"
    assert counts == {"hot": 1}


def test_webhook_store_posts_completed_lead(provider, lead_session):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(201, json={"id": "crm-1"})

    store = WebhookSessionStore(
        "https://crm.example.com/leads",
        api_key="crm-secret",
        transport=httpx.MockTransport(handler),
    )

    run_to_completion(provider, lead_session, store)

    assert len(requests) == 1
    request = requests[0]
    assert request.headers["X-API-Key"] == "crm-secret"
    payload = json.loads(request.content)
    assert payload["status"] == "hot"
    assert payload["answers"] == {"What city?": "Pune", "Budget?": "75L"}
    assert payload["name"] == "Asha"
    assert len(payload["transcript"]) == 3


def test_composite_store_isolates_failures(provider, lead_session):
    class BrokenStore:
        async def on_session_started(self, session):
            raise RuntimeError("down")

        async def on_session_completed(self, session):
            raise RuntimeError("down")

    memory = InMemorySessionStore()
    run_to_completion(provider, lead_session, CompositeSessionStore([BrokenStore(), memory]))

    assert memory.started_count == 1
    assert memory.get_completed(lead_session.session_id)["classification"] == "hot"
    assert len(memory.list_completed()) == 1


def test_memory_store_is_bounded(provider, small_config):
    from qualification.models import LeadProfile, LeadSession

    memory = InMemorySessionStore(max_entries=2)
    sessions = [LeadSession(lead=LeadProfile(name=name), config=small_config) for name in ("A", "B", "C")]
    for session in sessions:
        run_to_completion(provider, session, memory)

    assert memory.started_count == 3
    assert memory.open_count == 0
    assert [s["session_id"] for s in memory.list_completed()] == [s.session_id for s in sessions[1:]]
    assert memory.get_completed(sessions[0].session_id) is None
