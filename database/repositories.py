"""
Repository classes for the lead qualification data access layer.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from .models import LeadSessionRecord, TurnRecord

logger = logging.getLogger(__name__)


class LeadSessionRepository:
    """Data access for lead sessions and their transcripts."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, session_id: str, **kwargs) -> LeadSessionRecord:
        record = LeadSessionRecord(id=session_id, **kwargs)
        self.session.add(record)
        await self.session.flush()
        return record

    async def get_by_id(self, session_id: str) -> Optional[LeadSessionRecord]:
        result = await self.session.execute(
            select(LeadSessionRecord).where(LeadSessionRecord.id == session_id)
        )
        return result.scalar_one_or_none()

    async def update(self, session_id: str, **kwargs) -> Optional[LeadSessionRecord]:
        record = await self.get_by_id(session_id)
        if not record:
            return None
        for k, v in kwargs.items():
            if hasattr(record, k):
                setattr(record, k, v)
        await self.session.flush()
        return record

    async def replace_turns(self, session_id: str, turns: Sequence[Dict[str, str]]) -> int:
        """Store the full transcript, replacing any earlier copy."""
        await self.session.execute(
            delete(TurnRecord).where(TurnRecord.session_id == session_id)
        )
        for position, turn in enumerate(turns):
            self.session.add(TurnRecord(
                session_id=session_id,
                position=position,
                speaker=turn["speaker"],
                text=turn["text"],
            ))
        await self.session.flush()
        return len(turns)

    async def get_turns(self, session_id: str) -> List[TurnRecord]:
        result = await self.session.execute(
            select(TurnRecord)
            .where(TurnRecord.session_id == session_id)
            .order_by(TurnRecord.position.asc())
        )
        return list(result.scalars().all())

    async def list_recent(
        self, classification: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> List[LeadSessionRecord]:
        q = select(LeadSessionRecord).order_by(LeadSessionRecord.started_at.desc())
        if classification:
            q = q.where(LeadSessionRecord.classification == classification)
        result = await self.session.execute(q.offset(offset).limit(limit))
        return list(result.scalars().all())

    async def classification_counts(self) -> Dict[str, int]:
        result = await self.session.execute(
            select(LeadSessionRecord.classification, func.count(LeadSessionRecord.id))
            .group_by(LeadSessionRecord.classification)
        )
        return {label: count for label, count in result.all()}

    async def mark_completed(
        self,
        session_id: str,
        classification: str,
        reasoning: str,
        answers: Dict[str, Any],
        completed_at: Optional[datetime] = None,
    ) -> Optional[LeadSessionRecord]:
        return await self.update(
            session_id,
            state="complete",
            classification=classification,
            reasoning=reasoning,
            answers_json=answers,
            completed_at=completed_at or datetime.utcnow(),
        )
