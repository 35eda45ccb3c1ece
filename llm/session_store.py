"""
SessionStore protocol for lead qualification.

Abstracts what happens when a session starts or completes so the
orchestrator can work with memory, a database, a CRM webhook, or several.
"""

import asyncio
import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Protocol, Sequence, runtime_checkable

from qualification.models import LeadSession

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionStore(Protocol):
    """Protocol for session persistence hooks."""

    async def on_session_started(self, session: LeadSession) -> None:
        """Called once the opening agent turn has been delivered."""
        ...

    async def on_session_completed(self, session: LeadSession) -> None:
        """Called once with the final transcript, answers and verdict."""
        ...


class InMemorySessionStore:
    """
    Keeps session snapshots in memory. Default store.

    A started entry is dropped once its session completes; completed
    snapshots are capped at ``max_entries``, oldest evicted first.
    """

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self._started: Dict[str, dict] = {}
        self._completed: "OrderedDict[str, dict]" = OrderedDict()
        self._started_total = 0

    async def on_session_started(self, session: LeadSession) -> None:
        self._started[session.session_id] = session.to_dict()
        self._started_total += 1

    async def on_session_completed(self, session: LeadSession) -> None:
        self._started.pop(session.session_id, None)
        self._completed[session.session_id] = session.to_dict()
        while len(self._completed) > self.max_entries:
            self._completed.popitem(last=False)

    def get_completed(self, session_id: str) -> Optional[dict]:
        return self._completed.get(session_id)

    def list_completed(self) -> List[dict]:
        return list(self._completed.values())

    @property
    def started_count(self) -> int:
        return self._started_total

    @property
    def open_count(self) -> int:
        return len(self._started)


class CompositeSessionStore:
    """Fans each event out to several stores; one failing does not stop the rest."""

    def __init__(self, stores: Sequence[SessionStore]):
        self.stores = list(stores)

    async def _dispatch(self, hook: str, session: LeadSession) -> None:
        results = await asyncio.gather(
            *(getattr(store, hook)(session) for store in self.stores),
            return_exceptions=True,
        )
        for store, result in zip(self.stores, results):
            if isinstance(result, Exception):
                logger.error(f"{type(store).__name__}.{hook} failed for {session.session_id}: {result}")

    async def on_session_started(self, session: LeadSession) -> None:
        await self._dispatch("on_session_started", session)

    async def on_session_completed(self, session: LeadSession) -> None:
        await self._dispatch("on_session_completed", session)
