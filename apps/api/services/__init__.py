"""
Bowling Chat Services

Data models, aggregation, offline answers and answer post-processing.
"""

from .types import (
    AuthContext,
    Shot,
    Frame,
    Game,
    BowlingSession,
    ChatRequest,
    ChatResponse,
    DegradedResponse,
)
from .aggregator import GameSummary, FrameAggregate, summarize_games, summarize_frames
from .answer_formatter import format_answer, format_offline_answer, normalize_question
from .answer_log import AnswerLog, NullAnswerLog, InMemoryAnswerLog
from .game_store import GameStore, InMemoryGameStore
from .offline_answers import OFFLINE_FALLBACK, OFFLINE_NOTE, OfflineContext, answer_offline

__all__ = [
    'AuthContext',
    'Shot',
    'Frame',
    'Game',
    'BowlingSession',
    'ChatRequest',
    'ChatResponse',
    'DegradedResponse',
    'GameSummary',
    'FrameAggregate',
    'summarize_games',
    'summarize_frames',
    'format_answer',
    'format_offline_answer',
    'normalize_question',
    'AnswerLog',
    'NullAnswerLog',
    'InMemoryAnswerLog',
    'GameStore',
    'InMemoryGameStore',
    'OFFLINE_FALLBACK',
    'OFFLINE_NOTE',
    'OfflineContext',
    'answer_offline',
]
