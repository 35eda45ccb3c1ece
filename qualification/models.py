"""
Data models for lead qualification sessions.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .answer_store import AnswerMap
from .catalog import BusinessConfig


class Speaker(str, Enum):
    AGENT = "agent"
    USER = "user"


class Classification(str, Enum):
    """Lead verdict labels."""
    HOT = "hot"
    COLD = "cold"
    INVALID = "invalid"
    PENDING = "pending"


class SessionState(str, Enum):
    AWAITING_FIRST_INPUT = "awaiting_first_input"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class DialogueTurn:
    """A single line of the conversation transcript."""
    speaker: Speaker
    text: str
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    def to_dict(self) -> Dict[str, str]:
        return {"speaker": self.speaker.value, "text": self.text, "timestamp": self.timestamp}


@dataclass(frozen=True)
class ClassificationVerdict:
    label: Classification = Classification.PENDING
    rationale: str = ""
    next_utterance: Optional[str] = None


@dataclass
class EvaluationResult:
    """What the engine returns for one turn."""
    extracted: Dict[str, str] = field(default_factory=dict)
    missing_questions: List[str] = field(default_factory=list)
    verdict: ClassificationVerdict = field(default_factory=ClassificationVerdict)
    degraded: bool = False


@dataclass
class LeadProfile:
    """Identity of the lead being qualified."""
    name: Optional[str] = None
    phone: Optional[str] = None
    source: str = "Manual Entry"
    message: Optional[str] = None
    lead_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lead_id": self.lead_id,
            "name": self.name,
            "phone": self.phone,
            "source": self.source,
            "message": self.message,
        }


@dataclass
class LeadSession:
    """Conversation state for one lead. Owned by its orchestrator."""
    lead: LeadProfile
    config: BusinessConfig
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    transcript: List[DialogueTurn] = field(default_factory=list)
    answers: AnswerMap = field(default_factory=AnswerMap)
    missing_questions: List[str] = field(default_factory=list)
    verdict: ClassificationVerdict = field(default_factory=ClassificationVerdict)
    state: SessionState = SessionState.AWAITING_FIRST_INPUT
    created_at: str = field(default_factory=lambda: datetime.utcnow().isoformat())
    completed_at: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.state == SessionState.COMPLETE

    @property
    def classification(self) -> Classification:
        return self.verdict.label

    @property
    def final_message(self) -> Optional[str]:
        if self.complete and self.transcript:
            return self.transcript[-1].text
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "lead": self.lead.to_dict(),
            "state": self.state.value,
            "complete": self.complete,
            "classification": self.verdict.label.value,
            "reasoning": self.verdict.rationale,
            "answers": self.answers.snapshot(),
            "missing_questions": list(self.missing_questions),
            "transcript": [t.to_dict() for t in self.transcript],
            "progress": {
                "answered": sum(1 for q in self.config.qualifying_questions if self.answers.is_answered(q)),
                "total": len(self.config.qualifying_questions),
            },
            "created_at": self.created_at,
            "completed_at": self.completed_at,
        }
