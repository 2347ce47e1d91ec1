"""
Chat Orchestrator
=================

One request, sequential stages:

    load games + sessions
      -> extract filters -> normalize time -> resolve scope -> aggregate
      -> walk tier plan (SQL -> CONTEXT -> OFFLINE, per mode)
      -> format -> answer log -> meta

Tier contract:
- An online tier either answers, defers (SQL sentinel) or fails
- Failures are TierErrors, recorded and never raised past this module
- The offline tier runs last and cannot fail, so every request that gets
  past validation and loading returns 200 with either a Success or a
  Degraded body
"""

import logging
import time
from typing import Dict, List, Optional, Union

from config.env import Settings
from execute.sql_tier import SqlExecutor, TierResult, run_sql_tier
from extraction.filters import extract_filters
from extraction.time_normalizer import normalize_time_filter
from integrations.reasoning_engine import ReasoningEngine
from orchestration.scope_resolver import Scope, resolve_scope
from orchestration.tiers import Tier, TierOutcome, next_in_plan, plan_for_question
from rag.answer_generator import run_context_tier
from services.aggregator import GameSummary, summarize_games
from services.answer_formatter import format_answer, format_timing
from services.answer_log import AnswerLog, NullAnswerLog
from services.game_store import GameStore
from services.offline_answers import OFFLINE_NOTE, OfflineContext, answer_offline
from services.types import AuthContext, BowlingSession, ChatRequest, ChatResponse, DegradedResponse, Game
from utils.errors import (
    DataLoadError,
    GameNotFoundError,
    InvalidQuestionError,
    MissingConfigurationError,
    TierError,
)

logger = logging.getLogger(__name__)

META_SEPARATOR = " · "
GENERIC_FAILURE = "Chat failed."

ChatResult = Union[ChatResponse, DegradedResponse]


# =============================================================================
# ONLINE ERROR SUMMARY
# =============================================================================

_ERROR_CATEGORIES = (
    (("quota", "rate limit"), "Rate limit reached. Try again in a bit."),
    (("missing openai",), "Missing OpenAI API key."),
    (("invalid api key", "api key"), "API key error. Check your OpenAI API key."),
    (("missing supabase configuration",), "Missing Supabase configuration."),
    (("sql generation failed",), "Could not generate a query for that question."),
    (("sql execution failed",), "Database query failed. Try again."),
    (("no sql results",), "No results found for that question."),
    (("timeout", "network"), "Network error. Please try again."),
)


def summarize_online_error(raw: str) -> str:
    """Collapse joined tier error text into one user-facing sentence."""
    message = (raw or "").lower()
    for needles, summary in _ERROR_CATEGORIES:
        if any(needle in message for needle in needles):
            return summary
    return "Something went wrong while answering. Please try again."


# =============================================================================
# META
# =============================================================================

def build_answer_meta(
    method: str,
    started_at: float,
    show_method: bool,
    show_timing: bool,
    extra: Optional[List[str]] = None,
) -> Optional[str]:
    """
    "Method: sql · Time: 1.24s", either part gated by its flag.

    `extra` lines (step timings) are appended only when timing is shown.
    """
    parts: List[str] = []
    if show_method:
        parts.append(f"Method: {method}")
    if show_timing:
        elapsed_ms = (time.perf_counter() - started_at) * 1000
        parts.append(f"Time: {format_timing(elapsed_ms)}")
        parts.extend(line for line in (extra or []) if line)
    return META_SEPARATOR.join(parts) if parts else None


def describe_tier_timings(tier: Tier, timings: Dict[str, float]) -> Optional[str]:
    if tier == Tier.SQL:
        return (
            f"SQL prompt {format_timing(timings.get('sqlPromptMs', 0))}, "
            f"SQL query {format_timing(timings.get('sqlQueryMs', 0))}, "
            f"SQL answer {format_timing(timings.get('sqlAnswerMs', 0))}"
        )
    if tier == Tier.CONTEXT:
        return f"Context {format_timing(timings.get('contextMs', 0))}"
    return None


def describe_overhead(timings: Dict[str, float]) -> str:
    return (
        f"Overhead games {format_timing(timings.get('loadGamesMs', 0))}, "
        f"sessions {format_timing(timings.get('loadSessionsMs', 0))}, "
        f"build {format_timing(timings.get('buildIndexMs', 0))}"
    )


# =============================================================================
# ORCHESTRATOR
# =============================================================================

class ChatOrchestrator:
    """
    Answers one chat question for one user.

    Collaborators are injected so tests can swap in fakes:
        store      GameStore          games + sessions
        engine     ReasoningEngine    text generation (SQL and context tiers)
        executor   SqlExecutor        read-only SQL under the caller's RLS
        answer_log AnswerLog          best-effort chat_questions upsert
    """

    def __init__(
        self,
        settings: Settings,
        store: Optional[GameStore],
        engine: Optional[ReasoningEngine],
        executor: Optional[SqlExecutor],
        answer_log: Optional[AnswerLog] = None,
    ):
        self.settings = settings
        self.store = store
        self.engine = engine
        self.executor = executor
        self.answer_log = answer_log or NullAnswerLog()

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def check_configuration(self) -> None:
        """Raises MissingConfigurationError (500) when a collaborator is missing."""
        if self.store is None or self.executor is None:
            raise MissingConfigurationError("Supabase configuration")
        if self.engine is None:
            raise MissingConfigurationError("OpenAI API key")

    @staticmethod
    def validate_request(request: ChatRequest) -> str:
        question = (request.question or "").strip() if isinstance(request.question, str) else ""
        if not question:
            raise InvalidQuestionError()
        return question

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load_games(self, user: AuthContext, game_id: Optional[str]) -> List[Game]:
        try:
            games = await self.store.fetch_games(
                user.user_id,
                game_id=game_id,
                limit=self.settings.chat.game_load_limit,
            )
        except Exception as e:
            logger.error(f"[Chat] Failed to load games: {e}")
            if game_id:
                raise GameNotFoundError(game_id) from e
            raise DataLoadError() from e
        if game_id and not games:
            raise GameNotFoundError(game_id)
        return games

    async def load_sessions(self, user: AuthContext) -> List[BowlingSession]:
        # Sessions only improve labels; a failed load degrades to none
        try:
            return await self.store.fetch_sessions(user.user_id)
        except Exception as e:
            logger.warning(f"[Chat] Session load failed: {e}")
            return []

    # -------------------------------------------------------------------------
    # Tiers
    # -------------------------------------------------------------------------

    async def _run_online_tier(
        self,
        tier: Tier,
        question: str,
        scope: Scope,
        summary: GameSummary,
        user: AuthContext,
    ) -> TierResult:
        chat = self.settings.chat
        timeout = chat.engine_timeout_seconds
        if tier == Tier.SQL:
            return await run_sql_tier(
                question,
                scope,
                user,
                self.engine,
                self.executor,
                timeout_seconds=timeout,
                row_limit=chat.sql_row_limit,
                debug=chat.debug,
            )
        return await run_context_tier(
            question,
            scope,
            self.engine,
            timeout_seconds=timeout,
            limit=chat.context_game_limit,
            summary=summary,
            debug=chat.debug,
        )

    def _offline_answer(self, question: str, scope: Scope, summary: GameSummary) -> str:
        ctx = OfflineContext(
            question=question,
            games=scope.games,
            summary=summary,
            frame_numbers=scope.frame_numbers,
            has_time_filter=scope.has_time_filter,
            selection_label=scope.selection_label,
            session_labels=scope.selected_session_labels,
            label_for=scope.label_for,
        )
        return answer_offline(ctx)

    async def _record(self, question: str, answer: str) -> None:
        await self.answer_log.record(question, answer)

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    async def answer(self, request: ChatRequest, user: AuthContext) -> ChatResult:
        """
        Answer one question.

        Raises:
            MissingConfigurationError: store / executor / engine missing (500)
            InvalidQuestionError: blank question (400)
            GameNotFoundError: game_id not found for the user (404)
            DataLoadError: games could not be loaded (500)
        """
        started_at = time.perf_counter()
        chat = self.settings.chat
        timings: Dict[str, float] = {}

        self.check_configuration()
        question = self.validate_request(request)
        logger.info(f"[Chat] Question from {user.user_id[:8]}... ({len(question)} chars, mode={chat.mode.value})")

        step = time.perf_counter()
        games = await self.load_games(user, request.game_id)
        timings["loadGamesMs"] = (time.perf_counter() - step) * 1000

        step = time.perf_counter()
        sessions = await self.load_sessions(user)
        timings["loadSessionsMs"] = (time.perf_counter() - step) * 1000

        step = time.perf_counter()
        offset = request.timezone_offset_minutes
        filters = extract_filters(question, [s.trimmed_name for s in sessions if s.trimmed_name])
        time_filter = normalize_time_filter(filters.time_filter, offset)
        scope = resolve_scope(
            games,
            sessions,
            filters,
            time_filter,
            game_id=request.game_id,
            timezone_offset_minutes=offset,
        )
        summary = summarize_games(scope.games)
        timings["buildIndexMs"] = (time.perf_counter() - step) * 1000

        online_errors: List[str] = []
        plan = plan_for_question(chat.mode, question, auto=chat.auto_route)
        tier: Optional[Tier] = plan[0]

        while tier is not None and tier != Tier.OFFLINE:
            try:
                result = await self._run_online_tier(tier, question, scope, summary, user)
            except TierError as e:
                logger.warning(f"[Chat] {tier.value} tier failed: {e}")
                online_errors.append(str(e))
                tier = next_in_plan(plan, tier, TierOutcome.FAILED)
                continue
            except Exception as e:
                logger.exception(f"[Chat] {tier.value} tier crashed: {e}")
                online_errors.append(str(e) or f"{tier.value.capitalize()} mode failed.")
                tier = next_in_plan(plan, tier, TierOutcome.FAILED)
                continue

            if result.deferred:
                tier = next_in_plan(plan, tier, TierOutcome.DEFERRED)
                continue

            final_answer = format_answer(result.answer, question)
            await self._record(question, final_answer)
            meta = build_answer_meta(
                tier.value,
                started_at,
                chat.show_method,
                chat.show_timing,
                extra=[describe_tier_timings(tier, result.timings), describe_overhead(timings)],
            )
            if chat.debug:
                logger.debug(f"[Chat] Timings: {timings} {result.timings}")
            logger.info(f"[Chat] Answered via {tier.value} tier")
            return ChatResponse(answer=final_answer, scope=scope.scope_text, meta=meta, method=tier.value)

        # Every online tier failed or deferred
        raw_error = " ".join(online_errors) if online_errors else GENERIC_FAILURE
        offline_answer = self._offline_answer(question, scope, summary)
        await self._record(question, offline_answer)
        logger.info(f"[Chat] Answered offline after {len(online_errors)} online error(s)")

        return DegradedResponse(
            online_error=raw_error if chat.debug else summarize_online_error(raw_error),
            offline_answer=offline_answer,
            offline_note=OFFLINE_NOTE,
            scope=scope.scope_text,
            offline_meta=build_answer_meta("offline", started_at, chat.show_method, chat.show_timing),
            errors=online_errors,
        )

