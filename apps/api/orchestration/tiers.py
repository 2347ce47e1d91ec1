"""
Answer Tier State Machine
=========================

Three answering strategies, tried in a fixed order that depends only on the
configured ChatMode:

    sql      SQL -> OFFLINE
    context  CONTEXT -> OFFLINE
    mix      SQL -> CONTEXT -> OFFLINE

Transitions are a pure function of (mode, tier, outcome):

    ANSWERED  -> done
    DEFERRED  -> next tier (SQL engine asked for the context tier)
    FAILED    -> next tier (error recorded by the caller)
    OFFLINE   -> always done; it cannot fail

The legacy keyword router (classify_method) is kept for callers that want a
single-tier guess, exposed through plan_for_question(..., auto=True).
"""

from enum import Enum
from typing import List, Optional

from config.env import ChatMode


class Tier(Enum):
    SQL = "sql"
    CONTEXT = "context"
    OFFLINE = "offline"


class TierOutcome(Enum):
    ANSWERED = "answered"
    DEFERRED = "deferred"
    FAILED = "failed"


TIER_PLANS = {
    ChatMode.SQL: (Tier.SQL, Tier.OFFLINE),
    ChatMode.CONTEXT: (Tier.CONTEXT, Tier.OFFLINE),
    ChatMode.MIX: (Tier.SQL, Tier.CONTEXT, Tier.OFFLINE),
}


def tier_plan(mode: ChatMode) -> List[Tier]:
    return list(TIER_PLANS.get(mode, TIER_PLANS[ChatMode.MIX]))


def first_tier(mode: ChatMode) -> Tier:
    return tier_plan(mode)[0]


def next_tier(mode: ChatMode, tier: Tier, outcome: TierOutcome) -> Optional[Tier]:
    """Tier to run after `tier` finished with `outcome`; None when done."""
    return next_in_plan(tier_plan(mode), tier, outcome)


def next_in_plan(plan: List[Tier], tier: Tier, outcome: TierOutcome) -> Optional[Tier]:
    if outcome == TierOutcome.ANSWERED or tier == Tier.OFFLINE:
        return None
    if tier not in plan:
        return Tier.OFFLINE
    position = plan.index(tier)
    return plan[position + 1] if position + 1 < len(plan) else None


# =============================================================================
# LEGACY KEYWORD ROUTER
# =============================================================================

CONTEXT_KEYWORDS = (
    "improve", "tips", "advice", "why", "how should", "recommend",
    "strategy", "mental", "practice", "fix", "coach",
)

SQL_KEYWORDS = (
    "average", "avg", "mean", "count", "how many", "number of", "rate",
    "percent", "percentage", "strike", "spare", "frame", "score", "total",
    "best", "worst", "highest", "lowest", "max", "min", "before", "after", "on",
)


def classify_method(question: str) -> Tier:
    """
    Coaching language -> CONTEXT, quantitative language -> SQL, else CONTEXT.

    Substring matching, same as it always was ("on" matches almost anything).
    """
    lower = (question or "").lower()
    if any(keyword in lower for keyword in CONTEXT_KEYWORDS):
        return Tier.CONTEXT
    if any(keyword in lower for keyword in SQL_KEYWORDS):
        return Tier.SQL
    return Tier.CONTEXT


def plan_for_question(mode: ChatMode, question: str, auto: bool = False) -> List[Tier]:
    """
    Tier plan for one question.

    auto=True routes with the keyword heuristic (one online tier + offline);
    otherwise the configured mode decides.
    """
    if not auto:
        return tier_plan(mode)
    return [classify_method(question), Tier.OFFLINE]
