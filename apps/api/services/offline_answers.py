"""
Offline Answers
===============

Rule-based answers computed locally from the aggregated working set. Used
only after every online tier has failed, so it must never raise and never
touch the network.

Rules are tried in order; the first one that recognises the question wins:

    1. how many / number of games
    2. average score      (no frame / rate / strike / spare / pins words, no time filter)
    3. total score
    4. best / highest / max score
    5. worst / lowest / min score
    6. strike rate        (per selected frame when frames were named)
    7. spare rate         (per selected frame when frames were named)
    8. average pins per selected frame
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from services.aggregator import GameSummary, best_game, worst_game
from services.answer_formatter import (
    apply_offline_bold,
    ensure_sentence,
    format_number,
    format_offline_answer,
    format_label_list,
    format_rate,
)
from services.types import Game

logger = logging.getLogger(__name__)

OFFLINE_FALLBACK = "Offline mode could not answer this question with basic stats."
OFFLINE_NOTE = "This response was done offline so it can't handle complex questions and may be wrong."


@dataclass
class OfflineContext:
    """Everything the rules may look at."""
    question: str
    games: Sequence[Game]
    summary: GameSummary
    frame_numbers: Sequence[int] = field(default_factory=list)
    has_time_filter: bool = False
    selection_label: Optional[str] = None
    session_labels: Sequence[str] = field(default_factory=list)
    label_for: Callable[[Game], str] = lambda game: game.custom_name or "this game"

    @property
    def lower(self) -> str:
        return self.question.lower()

    @property
    def scope_suffix(self) -> str:
        return f" on {self.selection_label}" if self.selection_label else ""

    @property
    def suffix(self) -> str:
        """' on <selection>' or, failing that, ' in <sessions>'."""
        if self.selection_label:
            return self.scope_suffix
        joined = format_label_list(self.session_labels)
        if joined:
            return f" in {joined}"
        return ""

    @property
    def mentions_average(self) -> bool:
        return "average" in self.lower or "avg" in self.lower


Rule = Callable[[OfflineContext], Optional[str]]


def _count_games(ctx: OfflineContext) -> Optional[str]:
    if not re.search(r"(how many|number of) games", ctx.lower):
        return None
    total = ctx.summary.total_games
    return f"You have **{total}** game{'' if total == 1 else 's'} in this selection."


def _average_score(ctx: OfflineContext) -> Optional[str]:
    lower = ctx.lower
    excluded = ("frame", "rate", "percent", "strike", "spare", "pins")
    if not ctx.mentions_average or any(word in lower for word in excluded) or ctx.has_time_filter:
        return None
    if ctx.summary.average_score is None:
        return "No scores recorded yet."
    return f"Your average score{ctx.suffix} is **{format_number(ctx.summary.average_score)}**."


def _total_score(ctx: OfflineContext) -> Optional[str]:
    if "total score" not in ctx.lower:
        return None
    return f"Your total score{ctx.suffix} is **{ctx.summary.total_score}**."


def _best_score(ctx: OfflineContext) -> Optional[str]:
    if not re.search(r"(best|highest|max) score", ctx.lower):
        return None
    game = best_game(ctx.games)
    if game is None:
        return "No scored games found."
    return f"Your highest score{ctx.suffix} is **{game.total_score}** in **{ctx.label_for(game)}**."


def _worst_score(ctx: OfflineContext) -> Optional[str]:
    if not re.search(r"(worst|lowest|min) score", ctx.lower):
        return None
    game = worst_game(ctx.games)
    if game is None:
        return "No scored games found."
    return f"Your lowest score{ctx.suffix} is **{game.total_score}** in **{ctx.label_for(game)}**."


def _rate_rule(kind: str) -> Rule:
    def rule(ctx: OfflineContext) -> Optional[str]:
        if f"{kind} rate" not in ctx.lower and f"{kind} percentage" not in ctx.lower:
            return None
        if ctx.frame_numbers:
            entries = ctx.summary.frames_for(ctx.frame_numbers)
            if not entries:
                return f"No frame data recorded for {_frame_list(ctx.frame_numbers)}."
            lines = ", ".join(
                f"Frame {entry.frame}: **{format_rate(getattr(entry, f'{kind}_rate'))}**"
                for entry in entries
            )
            return f"{kind.capitalize()} rate by frame{ctx.scope_suffix}: {lines}."
        overall = getattr(ctx.summary, f"{kind}_rate")
        return f"Your {kind} rate{ctx.suffix} is **{format_rate(overall)}**."
    rule.__name__ = f"_{kind}_rate"
    return rule


def _average_pins(ctx: OfflineContext) -> Optional[str]:
    if not (ctx.mentions_average and "frame" in ctx.lower) or not ctx.frame_numbers:
        return None
    entries = ctx.summary.frames_for(ctx.frame_numbers)
    if not entries:
        return f"No frame data recorded for {_frame_list(ctx.frame_numbers)}."
    lines = ", ".join(
        f"Frame {entry.frame}: n/a" if entry.average_pins is None
        else f"Frame {entry.frame}: **{format_number(entry.average_pins)}**"
        for entry in entries
    )
    return f"Average pins per frame{ctx.suffix}: {lines}."


def _frame_list(frames: Sequence[int]) -> str:
    numbers = [str(n) for n in frames]
    return f"frame {numbers[0]}" if len(numbers) == 1 else f"frames {', '.join(numbers)}"


OFFLINE_RULES: List[Rule] = [
    _count_games,
    _average_score,
    _total_score,
    _best_score,
    _worst_score,
    _rate_rule("strike"),
    _rate_rule("spare"),
    _average_pins,
]


def try_offline_answer(ctx: OfflineContext) -> Optional[str]:
    """First matching rule's raw text, or None."""
    for rule in OFFLINE_RULES:
        answer = rule(ctx)
        if answer:
            logger.info(f"[Offline] Answered with rule {rule.__name__}")
            return answer
    return None


def answer_offline(ctx: OfflineContext) -> str:
    """Final, formatted offline answer. Always returns text."""
    raw = try_offline_answer(ctx)
    if raw is None:
        logger.info("[Offline] No rule matched")
        return format_offline_answer(OFFLINE_FALLBACK)
    return format_offline_answer(apply_offline_bold(ensure_sentence(raw)))
