"""
Chat Context Builder
====================

Size-bounded JSON context for the context tier.

    {
        "truncated": bool,              # more games selected than embedded
        "contextGames": [...],          # at most `limit` games, frames/shots included
        "sessionGameIndex": [...],      # per-session game lists (ground truth)
        "summary": {...},               # aggregator output for the working set
        "frameStats": [...]             # per-frame aggregates, selected frames only
    }

Frames inside contextGames are restricted to the frames named in the
question, when any were named.
"""

import logging
from typing import Dict, Any, List, Optional, Sequence

from orchestration.scope_resolver import Scope
from services.aggregator import GameSummary, summarize_games
from services.types import Game, to_iso

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_LIMIT = 15


def serialize_game(scope: Scope, game: Game, selected_frames: Sequence[int] = ()) -> Dict[str, Any]:
    """One game as the engine sees it."""
    entry = scope.label_index.entries.get(game.id)
    wanted = set(selected_frames)
    return {
        "gameName": scope.label_for(game),
        "playedAt": to_iso(game.played_at),
        "totalScore": game.total_score,
        "sessionId": game.session_id,
        "sessionLabel": entry.session_label if entry else None,
        "sessionName": entry.session_name if entry else None,
        "frames": [
            {
                "frame": frame.frame_number,
                "shots": [shot.pins for shot in frame.shots],
            }
            for frame in game.frames
            if not wanted or frame.frame_number in wanted
        ],
    }


def build_chat_context(
    scope: Scope,
    selected_frames: Optional[Sequence[int]] = None,
    limit: int = DEFAULT_CONTEXT_LIMIT,
    summary: Optional[GameSummary] = None,
) -> Dict[str, Any]:
    """Assemble the context payload for the working set in `scope`."""
    frames = list(selected_frames if selected_frames is not None else scope.frame_numbers)
    games: List[Game] = scope.games
    summary = summary or summarize_games(games)

    context_games = [serialize_game(scope, game, frames) for game in games[:limit]]
    truncated = len(games) > limit
    if truncated:
        logger.info(f"[Context] Truncated {len(games)} games to {limit}")

    return {
        "truncated": truncated,
        "contextGames": context_games,
        "sessionGameIndex": scope.session_game_index(),
        "summary": summary.to_dict(),
        "frameStats": [entry.to_dict() for entry in summary.frames_for(frames)],
    }
