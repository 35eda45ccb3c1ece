"""
Strict validation of reasoning-provider output.

Turns raw completion text into an EvaluationResult or raises
MalformedResponseError / InvariantViolation. Nothing untyped leaves here.
"""

import json
import logging
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .catalog import BusinessConfig
from .exceptions import InvariantViolation, MalformedResponseError
from .models import Classification, ClassificationVerdict, EvaluationResult

logger = logging.getLogger(__name__)

DEGRADED_RATIONALE = "Could not parse output"

_LABELS = {c.value for c in Classification}


class QualifyingResult(BaseModel):
    """Wire schema expected from the reasoning provider."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    extracted: Dict[str, Optional[str]]
    missing_questions: List[str] = Field(alias="missingQuestions")
    classification: Literal["hot", "cold", "invalid", "pending"]
    reasoning: str
    next_question: Optional[str] = Field(default=None, alias="nextQuestion")

    @field_validator("extracted", mode="before")
    @classmethod
    def _stringify_answers(cls, value: Any) -> Any:
        # Models sometimes answer "budget" with a bare number
        if not isinstance(value, dict):
            return value
        cleaned = {}
        for key, answer in value.items():
            if isinstance(answer, (int, float)) and not isinstance(answer, bool):
                answer = str(answer)
            cleaned[key] = answer
        return cleaned


def extract_json_object(text: str) -> Dict[str, Any]:
    """Return the first well-formed JSON object embedded in ``text``."""
    if not isinstance(text, str) or not text.strip():
        raise MalformedResponseError("Empty provider response", raw_response=text)

    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            obj, _ = decoder.raw_decode(text, start)
            return obj
        except json.JSONDecodeError:
            start = text.find("{", start + 1)

    raise MalformedResponseError("No JSON object found in provider response", raw_response=text)


def parse_qualifying_result(
    raw_response: str,
    config: BusinessConfig,
    answered: Mapping[str, str],
) -> EvaluationResult:
    """
    Parse and validate a provider completion against the catalog.

    Args:
        raw_response: Completion text, possibly with prose around the JSON
        config: Business config holding the question catalog
        answered: Answers confirmed before this turn

    Returns:
        EvaluationResult with only new, catalog-keyed answers in ``extracted``

    Raises:
        MalformedResponseError: unparseable or schema-violating output
        InvariantViolation: unknown label or missing question outside the catalog
    """
    data = extract_json_object(raw_response)

    label = data.get("classification")
    if label is not None and not isinstance(label, str):
        raise MalformedResponseError(
            f"Classification must be a string, got {type(label).__name__}", raw_response=raw_response
        )
    if label is not None and label not in _LABELS:
        raise InvariantViolation(f"Unknown classification label: {label!r}", raw_response=raw_response)

    try:
        result = QualifyingResult.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(f"Provider response failed schema validation: {e}", raw_response=raw_response)

    def _is_answered(question: str) -> bool:
        return bool((answered.get(question) or "").strip())

    extracted: Dict[str, str] = {}
    for key, value in result.extracted.items():
        if value is None or not value.strip():
            continue
        question = config.match_question(key)
        if question is None:
            logger.warning(f"Dropping answer for unknown question: {key!r}")
            continue
        if _is_answered(question) or question in extracted:
            continue
        extracted[question] = value.strip()

    missing: List[str] = []
    for item in result.missing_questions:
        question = config.match_question(item)
        if question is None:
            raise InvariantViolation(f"Missing question not in catalog: {item!r}", raw_response=raw_response)
        if question in missing or _is_answered(question) or question in extracted:
            continue
        missing.append(question)

    next_question = (result.next_question or "").strip() or None
    if next_question is not None:
        asked = config.match_question(next_question)
        if asked is not None and (_is_answered(asked) or asked in extracted):
            logger.warning(f"Provider tried to re-ask an answered question: {asked!r}")
            next_question = missing[0] if missing else None

    return EvaluationResult(
        extracted=extracted,
        missing_questions=missing,
        verdict=ClassificationVerdict(
            label=Classification(result.classification),
            rationale=result.reasoning,
            next_utterance=next_question,
        ),
    )


def degraded_result() -> EvaluationResult:
    """Fallback verdict used when provider output cannot be trusted."""
    return EvaluationResult(
        extracted={},
        missing_questions=[],
        verdict=ClassificationVerdict(
            label=Classification.PENDING,
            rationale=DEGRADED_RATIONALE,
            next_utterance=None,
        ),
        degraded=True,
    )
