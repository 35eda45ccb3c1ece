"""
Question catalog and classification criteria.

A BusinessConfig is the read-only configuration a lead session is started
with: greeting template, ordered qualifying questions and the hot/cold/invalid
criteria handed to the reasoning provider.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

NAME_PLACEHOLDER = "{name}"
FALLBACK_NAME = "there"

CLOSING_MESSAGE_TEMPLATE = (
    "Thank you for providing all the details! Our team at {business} will review "
    "your requirements and contact you soon (usually within 24 hours). Have a great day!"
)
GENERIC_FALLBACK_MESSAGE = "Thank you. We'll review your details and get back to you very soon!"
DEGRADED_PROMPT_MESSAGE = "Thanks! Is there anything else you'd like to share about your requirements?"


def normalize_question(text: str) -> str:
    """Key used to match provider-echoed question text against the catalog."""
    return " ".join(text.split()).casefold()


@dataclass(frozen=True)
class CriteriaSet:
    """Free-text heuristics per classification label."""
    hot: Tuple[str, ...] = ()
    cold: Tuple[str, ...] = ()
    invalid: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, List[str]]:
        return {"hot": list(self.hot), "cold": list(self.cold), "invalid": list(self.invalid)}


@dataclass(frozen=True)
class BusinessConfig:
    """Business identity, greeting and question catalog."""
    name: str
    industry: str
    location: str
    greeting: str
    qualifying_questions: Tuple[str, ...]
    criteria: CriteriaSet = field(default_factory=CriteriaSet)

    def __post_init__(self):
        questions = tuple(q.strip() for q in self.qualifying_questions if q and q.strip())
        object.__setattr__(self, "qualifying_questions", questions)
        object.__setattr__(self, "_index", {normalize_question(q): q for q in questions})

    def validate(self) -> "BusinessConfig":
        """Raise ConfigurationError if the config cannot drive a conversation."""
        if not self.qualifying_questions:
            raise ConfigurationError(
                "Qualifying question catalog is empty",
                remediation="Add at least one qualifying question to the business configuration.",
            )
        if len(self._index) != len(self.qualifying_questions):
            raise ConfigurationError(
                "Qualifying questions must be unique",
                remediation="Remove duplicate questions from the business configuration.",
            )
        return self

    def match_question(self, text: str) -> Optional[str]:
        """Return the catalog question matching ``text``, or None."""
        if not isinstance(text, str):
            return None
        return self._index.get(normalize_question(text))

    def render_greeting(self, lead_name: Optional[str] = None) -> str:
        name = (lead_name or "").strip() or FALLBACK_NAME
        return self.greeting.replace(NAME_PLACEHOLDER, name)

    def opening_message(self, lead_name: Optional[str] = None) -> str:
        """Greeting followed by the first catalog question."""
        self.validate()
        return f"{self.render_greeting(lead_name)} {self.qualifying_questions[0]}"

    @property
    def closing_message(self) -> str:
        return CLOSING_MESSAGE_TEMPLATE.format(business=self.name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "industry": self.industry,
            "location": self.location,
            "greeting": self.greeting,
            "qualifying_questions": list(self.qualifying_questions),
            "criteria": self.criteria.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BusinessConfig":
        """
        Build a config from a dict.

        Accepts snake_case keys as produced by ``to_dict`` as well as the
        camelCase layout used by exported dashboard configs
        (``qualifyingQuestions``, ``hotCriteria``...).
        """
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Business configuration must be a JSON object",
                remediation="Check the business configuration file format.",
            )

        criteria = data.get("criteria") or {}
        if not isinstance(criteria, dict):
            raise ConfigurationError(
                "Business configuration field 'criteria' must be an object",
                remediation="Provide criteria as an object with hot, cold and invalid lists.",
            )
        hot = criteria.get("hot", data.get("hotCriteria", []))
        cold = criteria.get("cold", data.get("coldCriteria", []))
        invalid = criteria.get("invalid", data.get("invalidCriteria", []))
        questions = data.get("qualifying_questions", data.get("qualifyingQuestions", []))

        for label, values in (("questions", questions), ("hot", hot), ("cold", cold), ("invalid", invalid)):
            if not isinstance(values, (list, tuple)):
                raise ConfigurationError(
                    f"Business configuration field '{label}' must be a list",
                    remediation="Provide qualifying questions and criteria as lists of strings.",
                )

        return cls(
            name=data.get("name", DEFAULT_BUSINESS_CONFIG.name),
            industry=data.get("industry", DEFAULT_BUSINESS_CONFIG.industry),
            location=data.get("location", DEFAULT_BUSINESS_CONFIG.location),
            greeting=data.get("greeting", DEFAULT_BUSINESS_CONFIG.greeting),
            qualifying_questions=tuple(str(q) for q in questions),
            criteria=CriteriaSet(
                hot=tuple(str(c) for c in hot),
                cold=tuple(str(c) for c in cold),
                invalid=tuple(str(c) for c in invalid),
            ),
        )


def load_business_config(path: Optional[str]) -> "BusinessConfig":
    """
    Load a business config from a JSON file, or the default when no path is set.

    Raises:
        ConfigurationError: unreadable file, invalid JSON or empty catalog
    """
    if not path:
        return DEFAULT_BUSINESS_CONFIG.validate()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read business configuration {path}: {e}",
            remediation="Check BUSINESS_CONFIG_PATH points to a readable JSON file.",
        )
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Business configuration {path} is not valid JSON: {e}",
            remediation="Fix the JSON syntax of the business configuration file.",
        )

    config = BusinessConfig.from_dict(data).validate()
    logger.info(f"Loaded business config '{config.name}' with {len(config.qualifying_questions)} questions")
    return config


DEFAULT_BUSINESS_CONFIG = BusinessConfig(
    name="GrowEasy Realtors",
    industry="real-estate",
    location="Mumbai, India",
    greeting="Hi {name}! Thanks for reaching out. I'm your GrowEasy real estate assistant.",
    qualifying_questions=(
        "Which city/location are you looking for?",
        "Are you looking for a flat, villa, or plot?",
        "Is this for investment or personal use?",
        "What's your budget range?",
        "What's your timeline for purchase/move?",
    ),
    criteria=CriteriaSet(
        hot=(
            "Specific location mentioned",
            "Clear budget range provided",
            "Urgent timeline (within 3-6 months)",
            "Ready for site visit",
            "Responsive to follow-up questions",
        ),
        cold=(
            "Vague requirements",
            "No clear timeline",
            "Budget not disclosed",
            "Just browsing",
            "Unresponsive to closing questions",
        ),
        invalid=(
            "Gibberish or non-meaningful responses",
            "Test entries",
            "Spam or bot activity",
            "Abusive language",
            "Completely irrelevant queries",
        ),
    ),
)
