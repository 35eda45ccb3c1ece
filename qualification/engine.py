"""
Extraction & classification engine.

One provider request per user turn: the whole transcript goes out, a
validated EvaluationResult comes back.
"""

import logging
from typing import Any, Mapping, Optional, Sequence

from llm.prompt_templates import PromptTemplates

from .catalog import BusinessConfig, CriteriaSet
from .exceptions import MalformedResponseError
from .models import DialogueTurn, EvaluationResult
from .response_parser import degraded_result, parse_qualifying_result

logger = logging.getLogger(__name__)


class QualificationEngine:
    """
    Stateless evaluator for lead conversations.

    ProviderCallError propagates to the caller. Malformed or
    invariant-breaking output is absorbed into a degraded ``pending`` result.
    """

    def __init__(self, provider: Any, config: BusinessConfig):
        """
        Args:
            provider: Object with ``async agenerate(prompt, system=None) -> str``
            config: Default business config for evaluations
        """
        self.provider = provider
        self.config = config

    async def evaluate(
        self,
        transcript: Sequence[DialogueTurn],
        answered: Mapping[str, str],
        config: Optional[BusinessConfig] = None,
        criteria: Optional[CriteriaSet] = None,
        lead_name: Optional[str] = None,
    ) -> EvaluationResult:
        """
        Evaluate the conversation so far.

        Args:
            transcript: Dialogue including the newest user turn
            answered: Answers confirmed before this turn
            config: Overrides the engine's business config for this call
            criteria: Overrides the config's criteria for this call
            lead_name: Substituted into the greeting shown to the provider

        Returns:
            EvaluationResult, degraded when the output could not be trusted
        """
        config = config or self.config
        if criteria is not None and criteria != config.criteria:
            config = BusinessConfig(
                name=config.name,
                industry=config.industry,
                location=config.location,
                greeting=config.greeting,
                qualifying_questions=config.qualifying_questions,
                criteria=criteria,
            )

        system_prompt = PromptTemplates.get_system_prompt(config)
        user_prompt = PromptTemplates.build_qualification_prompt(
            config, transcript, answered, lead_name=lead_name
        )

        raw = await self.provider.agenerate(user_prompt, system=system_prompt)

        try:
            result = parse_qualifying_result(raw, config, answered)
        except MalformedResponseError as e:
            preview = (e.raw_response or "")[:200]
            logger.warning(f"Degraded verdict: {e.message} (response: {preview!r})")
            return degraded_result()

        logger.debug(
            f"Evaluated turn: {len(result.extracted)} new answers, "
            f"{len(result.missing_questions)} missing, label={result.verdict.label.value}"
        )
        return result
