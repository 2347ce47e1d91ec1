"""
Bowling Chat - Supabase Integration

Handles:
- Supabase client initialization (service key, singleton)
- Game and session loads for the chat pipeline
- Read-only SQL through the execute_sql RPC, under the caller's RLS
- Answer log upserts into chat_questions

supabase-py is synchronous; every call is pushed to a worker thread with
asyncio.to_thread so the event loop never blocks on PostgREST.
"""

import asyncio
import logging
from typing import List, Dict, Any, Optional

from supabase import create_client, Client
from supabase.lib.client_options import ClientOptions

from config.env import DataSettings, settings
from execute.result_labeler import parse_rows
from execute.sql_tier import SqlExecutor
from services.answer_log import AnswerLog
from services.game_store import GameStore
from services.types import AuthContext, BowlingSession, Game
from utils.errors import SqlExecutionError

logger = logging.getLogger(__name__)

GAME_COLUMNS = (
    "id,session_id,game_name,player_name,total_score,played_at,created_at,status,"
    "frames:frames(frame_number,is_strike,is_spare,shots:shots(shot_number,pins))"
)
SESSION_COLUMNS = "id,name,description,started_at,created_at"

# ============================================================================
# SUPABASE CLIENT
# ============================================================================

_supabase_client: Optional[Client] = None


def get_supabase_client(data: Optional[DataSettings] = None, force_new: bool = False) -> Optional[Client]:
    """
    Get or create the service-key Supabase client (singleton).

    The PostgREST timeout keeps a hung connection from holding a request
    past the engine timeout.

    Returns:
        Supabase Client or None if credentials are missing
    """
    global _supabase_client
    data = data or settings.data

    if _supabase_client is None or force_new:
        if not data.is_configured:
            logger.warning("[Supabase] Missing credentials - client unavailable")
            return None
        try:
            options = ClientOptions(postgrest_client_timeout=data.postgrest_timeout_seconds)
            _supabase_client = create_client(data.supabase_url, data.supabase_service_key, options=options)
            logger.info("[Supabase] Client created successfully")
        except Exception as e:
            logger.error(f"[Supabase] Failed to create client: {e}")
            return None

    return _supabase_client


def create_user_client(data: DataSettings, access_token: str) -> Client:
    """Anon-key client that carries the user's bearer token, so RLS applies."""
    options = ClientOptions(postgrest_client_timeout=data.postgrest_timeout_seconds)
    client = create_client(data.supabase_url, data.supabase_anon_key, options=options)
    client.postgrest.auth(access_token)
    return client


# ============================================================================
# GAME STORE
# ============================================================================

class SupabaseGameStore(GameStore):
    """games / bowling_sessions reads with the service client, scoped by user_id."""

    def __init__(self, client: Client):
        self.client = client

    def _select_games(self, user_id: str, game_id: Optional[str], limit: int) -> List[Dict[str, Any]]:
        query = self.client.table("games").select(GAME_COLUMNS).eq("user_id", user_id)
        if game_id:
            query = query.eq("id", game_id).limit(1)
        else:
            query = query.order("played_at", desc=True).limit(limit)
        response = query.execute()
        return response.data or []

    def _select_sessions(self, user_id: str) -> List[Dict[str, Any]]:
        response = self.client.table("bowling_sessions") \
            .select(SESSION_COLUMNS) \
            .eq("user_id", user_id) \
            .execute()
        return response.data or []

    async def fetch_games(self, user_id: str, game_id: Optional[str] = None, limit: int = 100) -> List[Game]:
        rows = await asyncio.to_thread(self._select_games, user_id, game_id, limit)
        return [Game.from_row(row) for row in rows if isinstance(row, dict)]

    async def fetch_sessions(self, user_id: str) -> List[BowlingSession]:
        rows = await asyncio.to_thread(self._select_sessions, user_id)
        return [BowlingSession.from_row(row) for row in rows if isinstance(row, dict)]


# ============================================================================
# SQL EXECUTION
# ============================================================================

class SupabaseSqlExecutor(SqlExecutor):
    """
    Runs validated SELECTs via rpc('execute_sql', {query}).

    Every call goes through a per-request anon-key client bearing the
    caller's token so RLS scopes the rows. Generated SQL never runs on the
    service client.
    """

    def __init__(self, data: Optional[DataSettings] = None):
        self.data = data or settings.data

    def _client_for(self, user: AuthContext) -> Client:
        if not self.data.supabase_anon_key or not user.access_token:
            logger.warning(f"[SQL] No user-scoped client for {user.user_id} - skipping execute_sql")
            raise SqlExecutionError()
        try:
            return create_user_client(self.data, user.access_token)
        except Exception as e:
            logger.warning(f"[SQL] Failed to create user client: {e}")
            raise SqlExecutionError() from e

    def _run(self, client: Client, sql: str) -> Any:
        response = client.rpc("execute_sql", {"query": sql}).execute()
        return response.data

    async def execute(self, sql: str, user: AuthContext) -> List[Any]:
        client = self._client_for(user)
        try:
            data = await asyncio.to_thread(self._run, client, sql)
        except Exception as e:
            logger.warning(f"[SQL] execute_sql failed: {e}")
            raise SqlExecutionError() from e
        return parse_rows(data)


# ============================================================================
# ANSWER LOG
# ============================================================================

class SupabaseAnswerLog(AnswerLog):
    """chat_questions upsert keyed on normalized_question."""

    def __init__(self, client: Client):
        self.client = client

    def _upsert(self, payload: Dict[str, Any]) -> None:
        self.client.table("chat_questions") \
            .upsert(payload, on_conflict="normalized_question") \
            .execute()

    async def upsert(self, payload: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._upsert, payload)
