"""
Answer Log
==========

Best-effort audit of the last answer given to each normalized question.
Keyed on normalized_question (unique), upserted, never read back by the
chat pipeline. A failed write is logged and dropped; it must not change
the response.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from services.answer_formatter import normalize_question

logger = logging.getLogger(__name__)


class AnswerLog(ABC):
    """Storage-agnostic answer log. Subclasses implement upsert()."""

    @abstractmethod
    async def upsert(self, payload: Dict[str, Any]) -> None:
        pass

    async def record(self, question: str, answer: str) -> bool:
        """
        Upsert {normalized_question, last_answer, updated_at}.

        Returns True when the row was written, False when skipped or failed.
        """
        normalized = normalize_question(question)
        if not normalized:
            return False

        payload = {
            "normalized_question": normalized,
            "last_answer": answer,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await self.upsert(payload)
            return True
        except Exception as e:
            logger.warning(f"[AnswerLog] Failed to log question: {e}")
            return False


class NullAnswerLog(AnswerLog):
    """Used when no data store is configured."""

    async def upsert(self, payload: Dict[str, Any]) -> None:
        return None


class InMemoryAnswerLog(AnswerLog):
    """Dict-backed log for local runs and tests."""

    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.writes: List[Dict[str, Any]] = []

    async def upsert(self, payload: Dict[str, Any]) -> None:
        self.writes.append(payload)
        self.rows[payload["normalized_question"]] = payload

    def last_answer(self, normalized_question: str) -> Optional[str]:
        row = self.rows.get(normalized_question)
        return row["last_answer"] if row else None
