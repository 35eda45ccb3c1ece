"""
Service initialization and dependency injection for the lead qualifier API.

Creates and manages the provider, engine, session store and the registry
of live lead sessions.
"""

import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from config.settings import get_settings, Settings
from database.session import get_session_factory
from llm.db_session_store import DbSessionStore
from llm.orchestrator import ConversationOrchestrator
from llm.providers import create_provider
from llm.session_store import CompositeSessionStore, InMemorySessionStore
from llm.webhook_session_store import WebhookSessionStore
from qualification.catalog import BusinessConfig, load_business_config
from qualification.engine import QualificationEngine
from qualification.exceptions import ConfigurationError, SessionNotFoundError
from qualification.models import LeadProfile, LeadSession

logger = logging.getLogger(__name__)


class Services:
    """Container for all application services."""

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.business_config: Optional[BusinessConfig] = None
        self.provider: Optional[Any] = None
        self.engine: Optional[QualificationEngine] = None
        self.memory_store: InMemorySessionStore = InMemorySessionStore()
        self.store: Optional[Any] = None
        self.sessions: Dict[str, ConversationOrchestrator] = {}
        self.archive: "OrderedDict[str, dict]" = OrderedDict()
        self.max_archived: int = 1000
        self.config_error: Optional[ConfigurationError] = None
        self._initialized = False

    def initialize(self, provider: Optional[Any] = None):
        """
        Initialize all services.

        Args:
            provider: Use this provider instead of building one from settings
        """
        if self._initialized:
            return

        self.settings = get_settings()
        self.max_archived = self.settings.session_archive_size
        self.memory_store = InMemorySessionStore(max_entries=self.max_archived)
        logger.info(f"Initializing services with provider: {self.settings.llm_provider}")

        self._init_business_config()
        self._init_provider(provider)
        self._init_store()
        self._initialized = True

        if self.is_ready:
            logger.info("All services initialized successfully")
        else:
            logger.warning("API starting in degraded mode: conversations disabled")

    def _init_business_config(self):
        try:
            self.business_config = load_business_config(self.settings.business_config_path)
        except ConfigurationError as e:
            logger.error(f"Business configuration invalid: {e.message}")
            self.config_error = e

    def _init_provider(self, provider: Optional[Any]):
        """Build the reasoning provider; a bad credential leaves the API up but not ready."""
        if provider is None:
            try:
                provider = create_provider(self.settings)
            except ConfigurationError as e:
                logger.error(f"LLM provider not configured: {e.message}")
                self.config_error = self.config_error or e
                return

        self.provider = provider
        if self.business_config is not None:
            self.engine = QualificationEngine(provider, self.business_config)

    def _init_store(self):
        """Memory store always; database and CRM webhook when configured."""
        stores: List[Any] = [self.memory_store]

        session_factory = get_session_factory()
        if session_factory is not None:
            stores.append(DbSessionStore(session_factory))
            logger.info("Database session store enabled")

        if self.settings.crm_webhook_url:
            stores.append(WebhookSessionStore(self.settings.crm_webhook_url, api_key=self.settings.crm_api_key))
            logger.info("CRM webhook session store enabled")

        self.store = stores[0] if len(stores) == 1 else CompositeSessionStore(stores)

    @property
    def is_ready(self) -> bool:
        return self._initialized and self.engine is not None

    def health(self) -> dict:
        """Return health status of all services."""
        return {
            "initialized": self._initialized,
            "business_config": self.business_config is not None,
            "provider": getattr(self.provider, "name", None) if self.provider else None,
            "engine": self.engine is not None,
            "active_sessions": len(self.sessions),
            "archived_sessions": len(self.archive),
            "config_error": self.config_error.to_dict() if self.config_error else None,
        }

    async def create_session(self, lead: LeadProfile) -> ConversationOrchestrator:
        """
        Open a lead session and deliver its opening turn.

        Raises:
            ConfigurationError: no usable provider or business config
        """
        if not self.is_ready:
            raise self.config_error or ConfigurationError(
                "Lead qualification is not configured",
                remediation="Check the LLM provider settings and restart the service.",
            )

        session = LeadSession(lead=lead, config=self.business_config)
        orchestrator = ConversationOrchestrator(session, self.engine, store=self.store)
        await orchestrator.start()
        self.sessions[session.session_id] = orchestrator
        return orchestrator

    def get_session(self, session_id: str) -> ConversationOrchestrator:
        orchestrator = self.sessions.get(session_id)
        if orchestrator is None:
            raise SessionNotFoundError(
                f"Session {session_id} not found",
                remediation="Start a new session with POST /api/v1/sessions.",
            )
        return orchestrator

    def get_archived(self, session_id: str) -> Optional[dict]:
        return self.archive.get(session_id)

    def get_snapshot(self, session_id: str) -> dict:
        """Snapshot of a live or archived session."""
        archived = self.archive.get(session_id)
        if archived is not None:
            return archived
        return self.get_session(session_id).session.to_dict()

    def archive_session(self, session_id: str) -> Optional[dict]:
        """
        Release a completed session's orchestrator and keep only its snapshot.

        The archive holds at most ``max_archived`` snapshots; the oldest go first.
        """
        orchestrator = self.sessions.get(session_id)
        if orchestrator is None or not orchestrator.session.complete:
            return None

        del self.sessions[session_id]
        snapshot = orchestrator.session.to_dict()
        self.archive[session_id] = snapshot
        while len(self.archive) > self.max_archived:
            evicted, _ = self.archive.popitem(last=False)
            logger.debug(f"Evicted archived session {evicted}")
        return snapshot

    def list_snapshots(self) -> List[dict]:
        """Live and archived sessions as snapshots."""
        return [o.session.to_dict() for o in self.sessions.values()] + list(self.archive.values())

    def reset(self):
        """Drop all state; used by tests."""
        self.__init__()


# Singleton
_services = Services()


def get_services() -> Services:
    """Get the global services instance."""
    return _services


def initialize_services(provider: Optional[Any] = None):
    """Initialize all services (called at startup)."""
    _services.initialize(provider=provider)
