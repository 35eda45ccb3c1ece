"""
Database-backed SessionStore for lead qualification.

Implements the SessionStore protocol using the repository layer.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.repositories import LeadSessionRepository
from qualification.models import LeadSession

logger = logging.getLogger(__name__)


class DbSessionStore:
    """Persistent session store backed by PostgreSQL or SQLite."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def on_session_started(self, session: LeadSession) -> None:
        """Insert the session row with the opening transcript."""
        async with self._session_factory() as db:
            async with db.begin():
                repo = LeadSessionRepository(db)
                await repo.create(
                    session.session_id,
                    lead_id=session.lead.lead_id,
                    lead_name=session.lead.name,
                    phone=session.lead.phone,
                    source=session.lead.source,
                    initial_message=session.lead.message,
                    business_name=session.config.name,
                    state=session.state.value,
                    classification=session.classification.value,
                )
                await repo.replace_turns(session.session_id, [t.to_dict() for t in session.transcript])
        logger.debug(f"Stored start of session {session.session_id}")

    async def on_session_completed(self, session: LeadSession) -> None:
        """Record the final transcript, answers and verdict."""
        completed_at = (
            datetime.fromisoformat(session.completed_at) if session.completed_at else datetime.utcnow()
        )
        async with self._session_factory() as db:
            async with db.begin():
                repo = LeadSessionRepository(db)
                record = await repo.get_by_id(session.session_id)
                if not record:
                    await repo.create(
                        session.session_id,
                        lead_id=session.lead.lead_id,
                        lead_name=session.lead.name,
                        phone=session.lead.phone,
                        source=session.lead.source,
                        initial_message=session.lead.message,
                        business_name=session.config.name,
                    )
                await repo.mark_completed(
                    session.session_id,
                    classification=session.classification.value,
                    reasoning=session.verdict.rationale,
                    answers=session.answers.snapshot(),
                    completed_at=completed_at,
                )
                await repo.replace_turns(session.session_id, [t.to_dict() for t in session.transcript])
        logger.info(f"Stored completed session {session.session_id} ({session.classification.value})")
