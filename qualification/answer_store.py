"""
Answer store: question text -> extracted answer, first answer wins.
"""

import logging
from typing import Dict, Iterator, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


class AnswerMap(Mapping[str, str]):
    """
    Accumulates answers to qualifying questions over a conversation.

    Entries are only ever added. A question that already holds a non-empty
    answer keeps it, whatever later extractions say.
    """

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._answers: Dict[str, str] = {}
        if initial:
            self.merge(initial)

    def __getitem__(self, question: str) -> str:
        return self._answers[question]

    def __iter__(self) -> Iterator[str]:
        return iter(self._answers)

    def __len__(self) -> int:
        return len(self._answers)

    def __repr__(self) -> str:
        return f"AnswerMap({self._answers!r})"

    def is_answered(self, question: str) -> bool:
        return bool(self._answers.get(question, "").strip())

    def merge(self, extracted: Mapping[str, str]) -> Dict[str, str]:
        """
        Merge newly extracted answers.

        Returns the entries that were actually added.
        """
        added: Dict[str, str] = {}
        for question, answer in extracted.items():
            if not isinstance(answer, str) or not answer.strip():
                continue
            if self.is_answered(question):
                if self._answers[question] != answer:
                    logger.debug(f"Keeping first answer for '{question}'")
                continue
            self._answers[question] = answer.strip()
            added[question] = self._answers[question]
        return added

    def unanswered(self, questions: Sequence[str]) -> List[str]:
        """Questions from ``questions`` with no answer yet, order preserved."""
        return [q for q in questions if not self.is_answered(q)]

    def snapshot(self) -> Dict[str, str]:
        """Plain dict copy, safe to hand to the engine or serialize."""
        return dict(self._answers)
