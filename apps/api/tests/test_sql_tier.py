"""
Unit Tests for the SQL Tier
===========================

Engine and executor are scripted fakes (see conftest.py); nothing touches
OpenAI or Supabase.
"""

import json

import pytest

from execute.result_labeler import annotate_rows, build_label_mapping, parse_rows
from execute.sql_prompts import USE_CONTEXT_SENTINEL
from execute.sql_tier import parse_sql_payload, run_sql_tier
from extraction.filters import ExtractedFilters, TimeFilter
from orchestration.scope_resolver import resolve_scope
from utils.errors import (
    EngineTimeoutError,
    NoResultsError,
    SqlExecutionError,
    SqlGenerationError,
    SqlValidationError,
)

from tests.conftest import ScriptedEngine, ScriptedExecutor

BEST_GAME_ROW = {"total_score": 210, "played_at": "2026-02-10T18:00:00+00:00"}


def sql_payload(sql, explanation="Highest score"):
    return json.dumps({"sql": sql, "explanation": explanation})


@pytest.fixture
def scope(games, sessions):
    return resolve_scope(games, sessions, ExtractedFilters(), TimeFilter(), timezone_offset_minutes=300)


# =============================================================================
# Happy Path
# =============================================================================

class TestSqlTierAnswers:

    async def test_full_round_trip(self, scope, user):
        engine = ScriptedEngine([
            sql_payload("select total_score, played_at from games order by total_score desc"),
            "Your best game was **210** in Birthday Game.",
        ])
        executor = ScriptedExecutor(rows=[BEST_GAME_ROW])

        result = await run_sql_tier("best game?", scope, user, engine, executor)

        assert result.answer == "Your best game was **210** in Birthday Game."
        assert result.deferred is False
        assert result.sql.endswith(" limit 200")
        assert result.explanation == "Highest score"
        assert result.rows[0]["gameLabel"] == "Birthday Game"
        assert set(result.timings) == {"sqlPromptMs", "sqlQueryMs", "sqlAnswerMs"}

    async def test_engine_calls(self, scope, user):
        engine = ScriptedEngine([sql_payload("select 1 as n"), "One."])
        executor = ScriptedExecutor(rows=[{"n": 1}])

        await run_sql_tier("count?", scope, user, engine, executor, row_limit=10)

        assert engine.calls[0]["json_output"] is True
        assert "local time + 300 = UTC." in engine.calls[0]["prompt"]
        assert engine.calls[1]["json_output"] is False
        assert "select 1 as n limit 10" in engine.calls[1]["prompt"]

    async def test_runs_under_callers_token(self, scope, user):
        engine = ScriptedEngine([sql_payload("select 1"), "ok"])
        executor = ScriptedExecutor(rows=[{"x": 1}])

        await run_sql_tier("q", scope, user, engine, executor)

        assert executor.calls == [{
            "sql": "select 1 limit 200",
            "user_id": user.user_id,
            "access_token": "user-token",
        }]

    async def test_empty_answer_text_is_replaced(self, scope, user):
        engine = ScriptedEngine([sql_payload("select 1"), ""])
        result = await run_sql_tier("q", scope, user, engine, ScriptedExecutor(rows=[{"x": 1}]))
        assert result.answer == "No response generated."


# =============================================================================
# Deferral and Failures
# =============================================================================

class TestSqlTierFailures:

    async def test_sentinel_defers_without_executing(self, scope, user):
        engine = ScriptedEngine([sql_payload(USE_CONTEXT_SENTINEL, "needs coaching")])
        executor = ScriptedExecutor()

        result = await run_sql_tier("how do I fix my hook?", scope, user, engine, executor)

        assert result.deferred is True
        assert result.answer is None
        assert executor.calls == []
        assert len(engine.calls) == 1

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", json.dumps({"explanation": "no sql"}), ""])
    async def test_unusable_engine_output(self, scope, user, raw):
        with pytest.raises(SqlGenerationError):
            await run_sql_tier("q", scope, user, ScriptedEngine([raw]), ScriptedExecutor())

    async def test_invalid_sql_is_never_executed(self, scope, user):
        executor = ScriptedExecutor()
        with pytest.raises(SqlValidationError):
            await run_sql_tier("q", scope, user, ScriptedEngine([sql_payload("delete from games")]), executor)
        assert executor.calls == []

    async def test_executor_error_propagates(self, scope, user):
        executor = ScriptedExecutor(error=SqlExecutionError("permission denied"))
        with pytest.raises(SqlExecutionError):
            await run_sql_tier("q", scope, user, ScriptedEngine([sql_payload("select 1")]), executor)

    async def test_no_rows(self, scope, user):
        engine = ScriptedEngine([sql_payload("select 1")])
        with pytest.raises(NoResultsError):
            await run_sql_tier("q", scope, user, engine, ScriptedExecutor(rows=[]))
        assert len(engine.calls) == 1

    async def test_engine_timeout(self, scope, user):
        engine = ScriptedEngine([0.5])
        with pytest.raises(EngineTimeoutError):
            await run_sql_tier("q", scope, user, engine, ScriptedExecutor(), timeout_seconds=0.05)


# =============================================================================
# Row Labeling
# =============================================================================

class TestResultLabeler:

    def test_parse_sql_payload(self):
        assert parse_sql_payload('{"sql": "select 1"}') == {"sql": "select 1"}
        assert parse_sql_payload("[]") is None
        assert parse_sql_payload("") is None

    def test_parse_rows(self):
        assert parse_rows([{"a": 1}]) == [{"a": 1}]
        assert parse_rows('[{"a": 1}]') == [{"a": 1}]
        assert parse_rows("oops") == []
        assert parse_rows({"a": 1}) == []
        assert parse_rows(None) == []

    def test_score_breaks_played_at_ties(self):
        index = [
            {"id": "a", "gameName": "Game 1", "totalScore": 150, "playedAt": "2026-01-06T19:00:00.000Z"},
            {"id": "b", "gameName": "Game 2", "totalScore": 180, "playedAt": "2026-01-06T19:00:00.000Z"},
        ]
        rows = annotate_rows([{"played_at": "2026-01-06T19:00:00Z", "total_score": 180}], index)
        assert rows[0]["gameLabel"] == "Game 2"

    def test_existing_labels_and_non_dict_rows_survive(self, scope):
        index = scope.game_index()
        rows = annotate_rows(
            [{"played_at": "2026-02-10T18:00:00Z", "gameLabel": "Mine"}, 42],
            index,
        )
        assert rows[0]["gameLabel"] == "Mine"
        assert rows[1] == 42

    def test_unmatched_rows_are_unchanged(self, scope):
        row = {"played_at": "2020-01-01T00:00:00Z", "total_score": 1}
        assert annotate_rows([row], scope.game_index()) == [row]

    def test_label_mapping(self, scope):
        mapping = build_label_mapping(scope.session_index(), scope.game_index())
        assert mapping["sessionLabels"] == {"s1": "Tuesday League", "s2": "Session 2"}
        assert mapping["gameLabels"]["g1"] == "Game 1 in Tuesday League"
