"""
Extraction Module
=================
Deterministic question parsing for the chat pipeline.

Stages:
1. filters - game / session / frame / date / time-of-day passes
2. time_normalizer - local date/time constraint -> UTC bounds
"""

from .filters import (
    TimeFilter,
    ExtractedFilters,
    extract_game_numbers,
    extract_session_numbers,
    extract_session_name_matches,
    mentions_sessionless,
    extract_frame_numbers,
    extract_dates,
    extract_time_filter,
    extract_filters,
)
from .time_normalizer import (
    normalize_time_filter,
    has_time_filter,
    describe_time_filter,
)

__all__ = [
    'TimeFilter',
    'ExtractedFilters',
    'extract_game_numbers',
    'extract_session_numbers',
    'extract_session_name_matches',
    'mentions_sessionless',
    'extract_frame_numbers',
    'extract_dates',
    'extract_time_filter',
    'extract_filters',
    'normalize_time_filter',
    'has_time_filter',
    'describe_time_filter',
]
