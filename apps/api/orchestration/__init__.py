"""
Chat Orchestration Layer
========================

Deterministic selection and tier routing between extraction and answering.

Modules:
    - scope_resolver: label index + working set for one request
    - tiers: SQL / CONTEXT / OFFLINE plan per chat mode
    - chat_orchestrator: main entry point (import directly)
"""

from .scope_resolver import (
    Scope,
    LabelIndex,
    SessionEntry,
    GameEntry,
    SESSIONLESS_LABEL,
    build_label_index,
    resolve_scope,
)
from .tiers import (
    Tier,
    TierOutcome,
    TIER_PLANS,
    tier_plan,
    first_tier,
    next_tier,
    classify_method,
    plan_for_question,
)

__all__ = [
    'Scope',
    'LabelIndex',
    'SessionEntry',
    'GameEntry',
    'SESSIONLESS_LABEL',
    'build_label_index',
    'resolve_scope',
    'Tier',
    'TierOutcome',
    'TIER_PLANS',
    'tier_plan',
    'first_tier',
    'next_tier',
    'classify_method',
    'plan_for_question',
]
