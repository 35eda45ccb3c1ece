"""
LLM Orchestration Module for lead qualification.

This module handles:
- LLM provider abstraction (OpenAI, Bedrock)
- Prompt template management
- Turn-by-turn conversation orchestration
- Session start/completion stores
"""

from .orchestrator import ConversationOrchestrator, TurnResult
from .prompt_templates import PromptTemplates
from .session_store import CompositeSessionStore, InMemorySessionStore, SessionStore

__all__ = [
    "CompositeSessionStore",
    "ConversationOrchestrator",
    "InMemorySessionStore",
    "PromptTemplates",
    "SessionStore",
    "TurnResult",
]
