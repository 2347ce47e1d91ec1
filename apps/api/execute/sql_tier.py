"""
SQL Tier
========

Question -> generated SELECT -> validated -> executed under the caller's
RLS -> rows labeled -> prose answer.

Steps and the tier error each can raise:

    1. generate    engine JSON {"sql", "explanation"}   SqlGenerationError
    2. sentinel    sql == "__USE_CONTEXT__"             (deferred, not an error)
    3. validate    sql_validator.require_valid_sql      SqlValidationError
    4. execute     SqlExecutor.execute                  SqlExecutionError
    5. empty rows                                       NoResultsError
    6. answer      engine prose                         EngineError / EngineTimeoutError

Every failure is a TierError; the orchestrator records it and moves on.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from execute.result_labeler import annotate_rows, build_label_mapping
from execute.sql_prompts import USE_CONTEXT_SENTINEL, build_sql_answer_prompt, build_sql_prompt
from execute.sql_validator import require_valid_sql
from integrations.reasoning_engine import ReasoningEngine, generate_with_timeout
from orchestration.scope_resolver import Scope
from services.types import AuthContext
from utils.errors import NoResultsError, SqlGenerationError

logger = logging.getLogger(__name__)


class SqlExecutor(ABC):
    """Interface: run one validated read-only statement for a user."""

    @abstractmethod
    async def execute(self, sql: str, user: AuthContext) -> Any:
        """Rows for sql under the user's permissions. Raises SqlExecutionError."""
        pass


@dataclass
class TierResult:
    """Outcome of one online tier attempt."""
    answer: Optional[str] = None
    deferred: bool = False
    sql: Optional[str] = None
    explanation: Optional[str] = None
    rows: List[Any] = field(default_factory=list)
    timings: Dict[str, float] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return bool(self.answer)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def parse_sql_payload(text: str) -> Optional[Dict[str, Any]]:
    """Engine JSON output, or None when it is not a JSON object."""
    if not text:
        return None
    try:
        payload = json.loads(text)
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


async def run_sql_tier(
    question: str,
    scope: Scope,
    user: AuthContext,
    engine: ReasoningEngine,
    executor: SqlExecutor,
    timeout_seconds: Optional[float] = None,
    row_limit: int = 200,
    debug: bool = False,
) -> TierResult:
    """Run the SQL tier once. Raises TierError subclasses on failure."""
    result = TierResult()
    game_index = scope.game_index()
    session_index = scope.session_index()
    offset = scope.timezone_offset_minutes

    # 1. generate
    prompt = build_sql_prompt(question, game_index, session_index, offset)
    if debug:
        logger.debug(f"[SQL] Prompt:\n{prompt}")
    started = time.perf_counter()
    raw = await generate_with_timeout(engine, prompt, json_output=True, timeout_seconds=timeout_seconds)
    result.timings["sqlPromptMs"] = _elapsed_ms(started)
    if debug:
        logger.debug(f"[SQL] Raw response: {raw}")

    payload = parse_sql_payload(raw)
    sql = payload.get("sql") if payload else None
    if not sql or not isinstance(sql, str):
        logger.info("[SQL] Engine returned no usable SQL")
        raise SqlGenerationError()
    result.explanation = payload.get("explanation")

    # 2. sentinel
    if sql.strip() == USE_CONTEXT_SENTINEL:
        logger.info("[SQL] Engine deferred to context tier")
        result.deferred = True
        return result

    # 3. validate
    safe_sql = require_valid_sql(sql, row_limit=row_limit)
    result.sql = safe_sql
    logger.info(f"[SQL] Validated query ({len(safe_sql)} chars)")
    if debug:
        logger.debug(f"[SQL] Validated: {safe_sql}")

    # 4. execute
    started = time.perf_counter()
    rows = await executor.execute(safe_sql, user)
    result.timings["sqlQueryMs"] = _elapsed_ms(started)

    # 5. label
    annotated = annotate_rows(rows or [], game_index)
    if not annotated:
        raise NoResultsError()
    result.rows = annotated
    logger.info(f"[SQL] {len(annotated)} rows returned")
    if debug:
        logger.debug(f"[SQL] Rows: {annotated}")

    # 6. answer
    answer_prompt = build_sql_answer_prompt(
        question,
        safe_sql,
        annotated,
        offset,
        build_label_mapping(session_index, game_index),
    )
    if debug:
        logger.debug(f"[SQL] Answer prompt:\n{answer_prompt}")
    started = time.perf_counter()
    answer = await generate_with_timeout(engine, answer_prompt, timeout_seconds=timeout_seconds)
    result.timings["sqlAnswerMs"] = _elapsed_ms(started)
    result.answer = answer or "No response generated."
    return result
