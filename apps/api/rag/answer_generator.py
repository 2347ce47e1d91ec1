"""
Context Tier Answer Generator
=============================

Answers directly from the JSON context built by context_builder, in one
engine call.

Key principles:
1. The selection is a hint only; the session/game index is ground truth
2. All stored timestamps are UTC; the prompt carries the user's offset
3. Only bold markdown, no "Answer:" prefix, no "null" in prose
"""

import json
import logging
import time
from typing import Any, Optional

from execute.sql_prompts import ANSWER_STYLE_RULES, BOWLING_PREAMBLE
from execute.sql_tier import TierResult
from integrations.reasoning_engine import ReasoningEngine, generate_with_timeout
from orchestration.scope_resolver import Scope
from services.aggregator import GameSummary

from .context_builder import DEFAULT_CONTEXT_LIMIT, build_chat_context

logger = logging.getLogger(__name__)


CONTEXT_PROMPT_TEMPLATE = """{preamble} Use the JSON context to answer.
If the answer is not present, say so briefly.
Ignore any session not present in the Session/Game Index.
Very important to know that all timestamps you see in the context are UTC. The user's timezone offset (minutes from UTC) is {offset}.
If you mention times, convert them to the user's local time.
local time + {offset} = UTC.
Do not mention query limits.
If a session is specified, "Game N" refers to ordering within that session. If no session is specified, "Game N" refers to the overall list.
{style}

Scope: {scope}
Session/Game Index:
{session_game_index}

Selection (hint only; may be incomplete for complex queries):
{selection}

Context:
{context}

Question: {question}
Answer:"""


def _json(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def build_context_prompt(question: str, scope: Scope, context: dict) -> str:
    """Prompt for the context tier."""
    offset = scope.timezone_offset_minutes
    selection = scope.selection()
    # Time bounds stay in the context; the hint carries only what was named
    selection.pop("timeFilter", None)
    selection.pop("timezoneOffsetMinutes", None)
    return CONTEXT_PROMPT_TEMPLATE.format(
        preamble=BOWLING_PREAMBLE.format(target="answers"),
        offset="unknown" if offset is None else offset,
        style=ANSWER_STYLE_RULES,
        scope=scope.scope_text,
        session_game_index=_json(context.get("sessionGameIndex") or []),
        selection=_json(selection),
        context=_json(context),
        question=question,
    )


async def run_context_tier(
    question: str,
    scope: Scope,
    engine: ReasoningEngine,
    timeout_seconds: Optional[float] = None,
    limit: int = DEFAULT_CONTEXT_LIMIT,
    summary: Optional[GameSummary] = None,
    debug: bool = False,
) -> TierResult:
    """Run the context tier once. Raises TierError subclasses on failure."""
    context = build_chat_context(scope, limit=limit, summary=summary)
    prompt = build_context_prompt(question, scope, context)
    if debug:
        logger.debug(f"[Context] Prompt:\n{prompt}")

    started = time.perf_counter()
    answer = await generate_with_timeout(engine, prompt, timeout_seconds=timeout_seconds)
    elapsed_ms = (time.perf_counter() - started) * 1000
    if debug:
        logger.debug(f"[Context] Raw response: {answer}")
    logger.info(f"[Context] Answered in {elapsed_ms:.0f}ms ({len(context['contextGames'])} games embedded)")

    return TierResult(answer=answer or "No response generated.", timings={"contextMs": elapsed_ms})
