"""
RAG Module
==========

Context tier: the working set serialized into a bounded JSON payload and
answered in one engine call.

Components:
- context_builder: contextGames / sessionGameIndex / summary / frameStats
- answer_generator: context prompt + run_context_tier
"""

from .context_builder import (
    DEFAULT_CONTEXT_LIMIT,
    build_chat_context,
    serialize_game,
)
from .answer_generator import (
    CONTEXT_PROMPT_TEMPLATE,
    build_context_prompt,
    run_context_tier,
)

__all__ = [
    'DEFAULT_CONTEXT_LIMIT',
    'build_chat_context',
    'serialize_game',
    'CONTEXT_PROMPT_TEMPLATE',
    'build_context_prompt',
    'run_context_tier',
]
