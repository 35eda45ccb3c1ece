"""
Prompt Templates for lead qualification.

Builds the single instruction packet sent to the reasoning provider on
every turn.
"""

import json
from typing import Dict, Mapping, Optional, Sequence

from qualification.catalog import BusinessConfig
from qualification.models import DialogueTurn, Speaker


class PromptTemplates:
    """
    Manages prompt templates for the qualifying conversation.

    The provider is asked for a JSON object with ``extracted``,
    ``missingQuestions``, ``classification``, ``reasoning`` and
    ``nextQuestion``.
    """

    SYSTEM_PROMPT = (
        "You are a helpful {industry} assistant. Output strictly valid JSON, do not include markdown. "
        "For the extracted field, only include questions that have clear answers - do not include null values."
    )

    SPEAKER_LABELS: Dict[Speaker, str] = {
        Speaker.AGENT: "Agent",
        Speaker.USER: "Lead",
    }

    USER_TEMPLATES = {
        "qualification": """You are a professional {industry} AI assistant for {business_name} ({location}).

Business rules:
- Greeting: {greeting}
- Qualifying questions:
{questions}
- Lead criteria for status (hot/cold/invalid):
HOT: {hot}
COLD: {cold}
INVALID: {invalid}
Instructions:
- Always extract as many qualifying answers as possible from the whole conversation, even if multiple are answered at once.
- Do not repeat any already-answered questions.
- Only ask the next missing qualifying question if one remains. Otherwise move to classification and closing.
- For the extracted field: only include questions that have clear answers. Do not include null values or questions without answers.

Chat history:
{history}

Current extracted answers:
{answers}

Now:
1. Extract new answers from the conversation above (as a map with the exact question text as key). Only include questions with actual answers.
2. Give a list of missing qualifying questions (by exact text).
3. Based on all info and chat, classify the lead as hot/cold/invalid (or pending if there is not enough information yet), and explain your reasoning using the provided criteria.
4. If there are missing questions, suggest only the next unanswered one, else suggest what to say to close (e.g., site visit, offers).
Respond in JSON:

{{
  "extracted": {{ "<questionText>": "<answer>" }},
  "missingQuestions": ["<remaining question text>"],
  "classification": "hot"|"cold"|"invalid"|"pending",
  "reasoning": "string",
  "nextQuestion": "string"
}}""",
    }

    @classmethod
    def get_system_prompt(cls, config: BusinessConfig) -> str:
        return cls.SYSTEM_PROMPT.format(industry=_industry_label(config.industry))

    @classmethod
    def format_chat_history(cls, transcript: Sequence[DialogueTurn]) -> str:
        """Render the transcript as speaker-labeled lines."""
        return "\n".join(
            f"{cls.SPEAKER_LABELS[turn.speaker]}: {turn.text}" for turn in transcript
        )

    @classmethod
    def build_qualification_prompt(
        cls,
        config: BusinessConfig,
        transcript: Sequence[DialogueTurn],
        answers: Mapping[str, str],
        lead_name: Optional[str] = None,
    ) -> str:
        """
        Build the user prompt for one qualification turn.

        Args:
            config: Business config with catalog and criteria
            transcript: Full dialogue including the newest user turn
            answers: Answers confirmed so far
            lead_name: Used to render the greeting

        Returns:
            Formatted prompt
        """
        criteria = config.criteria
        return cls.USER_TEMPLATES["qualification"].format(
            industry=_industry_label(config.industry),
            business_name=config.name,
            location=config.location,
            greeting=config.render_greeting(lead_name),
            questions="\n".join(f"- {q}" for q in config.qualifying_questions),
            hot="; ".join(criteria.hot),
            cold="; ".join(criteria.cold),
            invalid="; ".join(criteria.invalid),
            history=cls.format_chat_history(transcript),
            answers=json.dumps(dict(answers), ensure_ascii=False),
        )


def _industry_label(industry: str) -> str:
    return (industry or "sales").replace("-", " ")
