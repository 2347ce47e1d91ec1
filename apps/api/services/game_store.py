"""
Game Store
==========

Read side of the bowling data the chat pipeline needs: a user's recent
games (frames and shots nested) and their sessions.

The Supabase implementation lives in integrations.supabase; the
in-memory store backs local runs and tests.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from services.types import BowlingSession, Game

logger = logging.getLogger(__name__)


class GameStore(ABC):
    """Interface. Implementations raise on load failure."""

    @abstractmethod
    async def fetch_games(self, user_id: str, game_id: Optional[str] = None, limit: int = 100) -> List[Game]:
        """
        Games for user_id, most recently played first, capped at limit.

        With game_id, at most that one game (owned by user_id).
        """
        pass

    @abstractmethod
    async def fetch_sessions(self, user_id: str) -> List[BowlingSession]:
        pass


class InMemoryGameStore(GameStore):

    def __init__(self, games: Optional[List[Game]] = None, sessions: Optional[List[BowlingSession]] = None):
        self.games = list(games or [])
        self.sessions = list(sessions or [])

    def _owned(self, items, user_id: str):
        # Rows without an owner are visible to everyone (fixtures)
        return [item for item in items if item.user_id in (None, user_id)]

    async def fetch_games(self, user_id: str, game_id: Optional[str] = None, limit: int = 100) -> List[Game]:
        games = self._owned(self.games, user_id)
        if game_id:
            return [game for game in games if game.id == game_id][:1]
        games.sort(
            key=lambda game: (game.played_at is not None, game.played_at.timestamp() if game.played_at else 0),
            reverse=True,
        )
        return games[:limit]

    async def fetch_sessions(self, user_id: str) -> List[BowlingSession]:
        return self._owned(self.sessions, user_id)
