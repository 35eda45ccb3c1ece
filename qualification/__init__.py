"""
Lead qualification core.

This module handles:
- Question catalog and business configuration
- First-answer-wins answer accumulation
- Validation of reasoning-provider output

The engine lives in ``qualification.engine`` and is imported from there.
"""

from .answer_store import AnswerMap
from .catalog import DEFAULT_BUSINESS_CONFIG, BusinessConfig, CriteriaSet
from .exceptions import (
    ConfigurationError,
    InvariantViolation,
    MalformedResponseError,
    ProviderCallError,
    QualificationError,
    SessionNotFoundError,
)
from .models import (
    Classification,
    ClassificationVerdict,
    DialogueTurn,
    EvaluationResult,
    LeadProfile,
    LeadSession,
    SessionState,
    Speaker,
)

__all__ = [
    "AnswerMap",
    "BusinessConfig",
    "Classification",
    "ClassificationVerdict",
    "ConfigurationError",
    "CriteriaSet",
    "DEFAULT_BUSINESS_CONFIG",
    "DialogueTurn",
    "EvaluationResult",
    "InvariantViolation",
    "LeadProfile",
    "LeadSession",
    "MalformedResponseError",
    "ProviderCallError",
    "QualificationError",
    "SessionNotFoundError",
    "SessionState",
    "Speaker",
]
