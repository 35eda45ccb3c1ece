"""
Conversation Orchestrator for lead qualification.

Drives one LeadSession through AWAITING_FIRST_INPUT -> IN_PROGRESS -> COMPLETE
and is the only place that decides what the agent says next.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from qualification.catalog import DEGRADED_PROMPT_MESSAGE, GENERIC_FALLBACK_MESSAGE
from qualification.exceptions import ProviderCallError
from qualification.models import (
    Classification,
    ClassificationVerdict,
    DialogueTurn,
    LeadSession,
    SessionState,
    Speaker,
)

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    """Outcome of one user turn."""
    session_id: str
    accepted: bool
    agent_message: Optional[str] = None
    classification: Classification = Classification.PENDING
    state: SessionState = SessionState.IN_PROGRESS
    new_answers: Dict[str, str] = field(default_factory=dict)
    degraded: bool = False
    processing_time_ms: float = 0.0

    @property
    def complete(self) -> bool:
        return self.state == SessionState.COMPLETE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "accepted": self.accepted,
            "agent_message": self.agent_message,
            "classification": self.classification.value,
            "state": self.state.value,
            "complete": self.complete,
            "new_answers": self.new_answers,
            "degraded": self.degraded,
            "processing_time_ms": self.processing_time_ms,
        }


class ConversationOrchestrator:
    """
    Turn-by-turn state machine over a single LeadSession.

    Flow per user turn:
    1. Record the user turn
    2. Evaluate the transcript
    3. Merge new answers (first answer wins)
    4. Adopt the latest missing list and verdict
    5. Pick the next utterance, possibly completing the session
    6. Record the agent turn

    Turns on one session are serialized; separate sessions share nothing.
    """

    def __init__(self, session: LeadSession, engine: Any, store: Optional[Any] = None):
        """
        Initialize the orchestrator.

        Args:
            session: Session owned by this orchestrator
            engine: QualificationEngine (or anything with the same ``evaluate``)
            store: Optional SessionStore notified on start and completion
        """
        self.session = session
        self.engine = engine
        self.store = store
        self._lock = asyncio.Lock()

    @property
    def session_id(self) -> str:
        return self.session.session_id

    async def start(self) -> str:
        """
        Deliver the opening agent turn.

        Raises:
            ConfigurationError: the business config has no usable catalog
        """
        session = self.session
        if session.transcript:
            return session.transcript[0].text

        opening = session.config.opening_message(session.lead.name)
        session.missing_questions = list(session.config.qualifying_questions)
        session.transcript.append(DialogueTurn(Speaker.AGENT, opening))
        session.state = SessionState.AWAITING_FIRST_INPUT

        logger.info(f"Session {session.session_id} started for lead {session.lead.lead_id}")
        await self._notify("on_session_started")
        return opening

    async def handle_user_message(self, text: str) -> TurnResult:
        """
        Process one user message.

        Returns a TurnResult with ``accepted=False`` when the session is
        already complete or the message is blank.

        Raises:
            ProviderCallError: the provider could not be reached; the user
                turn stays in the transcript and the session stays usable
        """
        message = (text or "").strip()

        async with self._lock:
            session = self.session
            if session.complete or not message:
                if session.complete:
                    logger.info(f"Ignoring message for completed session {session.session_id}")
                return TurnResult(
                    session_id=session.session_id,
                    accepted=False,
                    classification=session.classification,
                    state=session.state,
                )

            start_time = time.time()
            session.transcript.append(DialogueTurn(Speaker.USER, message))
            session.state = SessionState.IN_PROGRESS

            try:
                result = await self.engine.evaluate(
                    session.transcript,
                    session.answers.snapshot(),
                    config=session.config,
                    lead_name=session.lead.name,
                )
            except ProviderCallError as e:
                logger.error(f"Provider call failed for session {session.session_id}: {e.message}")
                raise

            added = session.answers.merge(result.extracted)
            catalog = session.config.qualifying_questions

            if result.degraded:
                session.missing_questions = session.answers.unanswered(catalog)
                session.verdict = ClassificationVerdict(
                    label=Classification.PENDING,
                    rationale=result.verdict.rationale,
                )
                utterance = (
                    session.missing_questions[0]
                    if session.missing_questions
                    else DEGRADED_PROMPT_MESSAGE
                )
                completing = False
            else:
                session.missing_questions = [
                    q for q in result.missing_questions if not session.answers.is_answered(q)
                ]
                session.verdict = result.verdict
                utterance, completing = self._next_utterance(result.verdict)

            session.transcript.append(DialogueTurn(Speaker.AGENT, utterance))
            if completing:
                session.state = SessionState.COMPLETE
                session.completed_at = datetime.utcnow().isoformat()

            turn = TurnResult(
                session_id=session.session_id,
                accepted=True,
                agent_message=utterance,
                classification=session.classification,
                state=session.state,
                new_answers=added,
                degraded=result.degraded,
                processing_time_ms=(time.time() - start_time) * 1000,
            )

        if turn.complete:
            logger.info(
                f"Session {session.session_id} complete: {session.classification.value} "
                f"({len(session.answers)}/{len(catalog)} answered)"
            )
            await self._notify("on_session_completed")

        return turn

    def _next_utterance(self, verdict: ClassificationVerdict):
        """Return (utterance, completes_session) for a trusted verdict."""
        if not self.session.missing_questions and verdict.label != Classification.PENDING:
            return self.session.config.closing_message, True
        if verdict.next_utterance:
            return verdict.next_utterance, False
        logger.info(f"No next question for session {self.session.session_id}, closing")
        return GENERIC_FALLBACK_MESSAGE, True

    async def _notify(self, hook: str):
        if self.store is None:
            return
        try:
            await getattr(self.store, hook)(self.session)
        except Exception as e:
            logger.error(f"Session store {hook} failed for {self.session.session_id}: {e}")
