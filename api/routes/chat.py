"""
Session API Routes for the lead qualifier.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ..middleware.metrics import (
    record_classification,
    record_degraded_verdict,
    record_llm_latency,
    record_provider_error,
    record_session_completed,
    record_session_started,
)
from ..services import get_services
from qualification.exceptions import ProviderCallError
from qualification.models import LeadProfile

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Request / Response Models ─────────────────────────────────────

class LeadIn(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    source: str = Field(default="Manual Entry", max_length=50)
    message: Optional[str] = Field(default=None, max_length=2000)


class CreateSessionRequest(BaseModel):
    lead: LeadIn = Field(default_factory=LeadIn)


class MessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)


class TurnItem(BaseModel):
    speaker: str
    text: str
    timestamp: str


class Progress(BaseModel):
    answered: int
    total: int


class SessionSnapshot(BaseModel):
    session_id: str
    lead: Dict[str, Any]
    state: str
    complete: bool
    classification: str
    reasoning: str
    answers: Dict[str, str]
    missing_questions: List[str]
    transcript: List[TurnItem]
    progress: Progress
    created_at: str
    completed_at: Optional[str] = None


class TurnResponse(SessionSnapshot):
    agent_message: Optional[str] = None
    accepted: bool


# ── Endpoints ─────────────────────────────────────────────────────

@router.post("/sessions", response_model=SessionSnapshot, status_code=201)
async def create_session(request: CreateSessionRequest):
    """Start qualifying a lead; the snapshot holds the opening agent turn."""
    services = get_services()
    lead = LeadProfile(**request.lead.model_dump())

    orchestrator = await services.create_session(lead)
    record_session_started()
    return orchestrator.session.to_dict()


@router.post("/sessions/{session_id}/messages", response_model=TurnResponse)
async def send_message(session_id: str, request: MessageRequest):
    """
    Run one conversation turn.

    ``accepted`` is false when the session was already complete.
    """
    services = get_services()
    archived = services.get_archived(session_id)
    if archived is not None:
        return {**archived, "agent_message": None, "accepted": False}

    orchestrator = services.get_session(session_id)

    try:
        result = await orchestrator.handle_user_message(request.message)
    except ProviderCallError as e:
        record_provider_error(e.kind)
        raise

    if result.accepted:
        record_llm_latency(result.processing_time_ms / 1000)
        record_classification(result.classification.value)
        if result.degraded:
            record_degraded_verdict()
        if result.complete:
            record_session_completed(result.classification.value)

    snapshot = orchestrator.session.to_dict()
    if orchestrator.session.complete:
        services.archive_session(session_id)

    return {
        **snapshot,
        "agent_message": result.agent_message,
        "accepted": result.accepted,
    }


@router.get("/sessions/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str):
    """Current snapshot of a session."""
    return get_services().get_snapshot(session_id)
