"""
Unit Tests for Offline Answers
==============================

Offline answers run after every online tier failed: they must always return
text and never raise.
"""

import pytest

from services.aggregator import summarize_games
from services.offline_answers import (
    OFFLINE_FALLBACK,
    OfflineContext,
    answer_offline,
    try_offline_answer,
)
from tests.factories import make_game


def context(question, games, **kwargs):
    return OfflineContext(question=question, games=games, summary=summarize_games(games), **kwargs)


class TestRules:

    def test_average_of_single_game(self):
        games = [make_game("x", 200, "2026-01-01T19:00:00Z")]
        assert answer_offline(context("What's my average?", games)) == "Your average score is **200**."

    def test_average_with_selection_suffix(self, games):
        ctx = context("average?", games, selection_label="games 1 to 3")
        assert answer_offline(ctx) == "Your average score on games 1 to 3 is **172**."

    def test_average_with_session_suffix(self, games):
        ctx = context("avg please", games, session_labels=["Tuesday League"])
        assert answer_offline(ctx) == "Your average score in Tuesday League is **172**."

    def test_average_without_scores(self):
        ctx = context("what's my average", [make_game("x", None, None)])
        assert answer_offline(ctx) == "No scores recorded yet."

    def test_count(self, games):
        assert answer_offline(context("How many games have I bowled?", games)) == \
            "You have **6** games in this selection."

    def test_count_singular(self):
        games = [make_game("x", 100, None)]
        assert answer_offline(context("number of games?", games)) == "You have **1** game in this selection."

    def test_total_score(self, games):
        assert answer_offline(context("what is my total score", games)) == "Your total score is **860**."

    def test_best_and_worst_use_labels(self, games):
        best = answer_offline(context("best score?", games))
        assert best == "Your highest score is **210** in **Birthday Game**."

        labels = {"g4": "Game 2 in Session 2"}
        worst = answer_offline(context("lowest score?", games, label_for=lambda g: labels.get(g.id, g.id)))
        assert worst == "Your lowest score is **120** in **Game 2 in Session 2**."

    def test_overall_strike_rate(self, games):
        assert answer_offline(context("strike rate?", games)) == "Your strike rate is **57%**."

    def test_strike_rate_per_frame(self, games):
        ctx = context("strike rate on frame 9", games, frame_numbers=[9])
        assert answer_offline(ctx) == "Strike rate by frame: Frame 9: **33%**."

    def test_spare_rate_per_frame_multiple(self, games):
        ctx = context("spare percentage in frames 1 and 9", games, frame_numbers=[1, 9])
        assert answer_offline(ctx) == "Spare rate by frame: Frame 1: **33%**, Frame 9: **33%**."

    def test_rate_for_unrecorded_frame(self, games):
        ctx = context("strike rate on frame 4", games, frame_numbers=[4])
        assert answer_offline(ctx) == "No frame data recorded for frame 4."

    def test_average_pins_per_frame(self, games):
        ctx = context("average pins in frame 9", games, frame_numbers=[9])
        # "pins" excludes the average-score rule, so the per-frame rule answers
        assert answer_offline(ctx) == "Average pins per frame: Frame 9: **9.33**."


class TestFallback:

    def test_time_filter_disables_average(self, games):
        ctx = context("what's my average after 7pm", games, has_time_filter=True)
        assert try_offline_answer(ctx) is None
        assert answer_offline(ctx) == OFFLINE_FALLBACK

    @pytest.mark.parametrize("question", [
        "why do I miss the 10 pin?",
        "",
        "compare my league nights",
    ])
    def test_unrecognised_questions(self, question, games):
        assert answer_offline(context(question, games)) == OFFLINE_FALLBACK

    def test_empty_selection_never_raises(self):
        for question in ("average", "best score", "strike rate", "how many games", "total score"):
            assert answer_offline(context(question, []))
