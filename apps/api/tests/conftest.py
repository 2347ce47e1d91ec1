"""
PyTest Configuration and Fixtures for the Bowling Chat API Tests

Provides:
- Async test client using httpx.AsyncClient + ASGITransport (IN-MEMORY, no server required)
- JWT token generation for test users
- Scripted reasoning engine / SQL executor fakes
- Settings built for tests (never read from the real environment)

Usage:
    pytest apps/api/tests/ -v
"""

import asyncio
import os
import sys
import time
from typing import Any, AsyncGenerator, List, Optional

# Settings are loaded once at import; pin the environment before anything imports config
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
import jwt
import httpx

# Add the api directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.env import (
    AISettings,
    ChatMode,
    ChatSettings,
    DataSettings,
    Environment,
    InfraSettings,
    Settings,
)
from execute.sql_tier import SqlExecutor
from integrations.reasoning_engine import ReasoningEngine
from services.answer_log import InMemoryAnswerLog
from services.game_store import InMemoryGameStore
from services.types import AuthContext

from tests.factories import TEST_USER_ID, OTHER_USER_ID, sample_games, sample_sessions


# ============================================================================
# Test Configuration Constants
# ============================================================================

TEST_JWT_SECRET = "test-jwt-secret-for-unit-tests-only"


# ============================================================================
# JWT Token Generation
# ============================================================================

def generate_test_jwt(user_id: str = TEST_USER_ID, secret: str = TEST_JWT_SECRET, expires_in: int = 3600) -> str:
    """Signed Supabase-style user JWT."""
    now = int(time.time())
    payload = {
        "sub": user_id,
        "aud": "authenticated",
        "role": "authenticated",
        "email": "bowler@example.test",
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def generate_expired_jwt(user_id: str = TEST_USER_ID) -> str:
    return generate_test_jwt(user_id, expires_in=-3600)


# ============================================================================
# Fakes
# ============================================================================

class ScriptedEngine(ReasoningEngine):
    """
    Returns queued responses in order. An Exception instance in the queue is
    raised instead; a float is slept (seconds) before returning "".
    """

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.calls: List[dict] = []

    async def generate(self, prompt: str, json_output: bool = False) -> str:
        self.calls.append({"prompt": prompt, "json_output": json_output})
        if not self.responses:
            return ""
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, float):
            await asyncio.sleep(item)
            return ""
        return item


class ScriptedExecutor(SqlExecutor):
    """Returns fixed rows (or raises) and records what it was asked to run."""

    def __init__(self, rows: Any = None, error: Optional[Exception] = None):
        self.rows = rows if rows is not None else []
        self.error = error
        self.calls: List[dict] = []

    async def execute(self, sql: str, user: AuthContext) -> Any:
        self.calls.append({"sql": sql, "user_id": user.user_id, "access_token": user.access_token})
        if self.error is not None:
            raise self.error
        return self.rows


def make_settings(mode: ChatMode = ChatMode.MIX, **chat_overrides) -> Settings:
    chat_values = {
        "mode": mode,
        "show_method": True,
        "show_timing": False,
        "debug": False,
        "engine_timeout_seconds": 1.0,
        "context_game_limit": 15,
        "game_load_limit": 100,
        "sql_row_limit": 200,
        "auto_route": False,
        "dev_user_id": "",
    }
    chat_values.update(chat_overrides)
    return Settings(
        environment=Environment.TEST,
        data=DataSettings(
            supabase_url="http://supabase.test",
            supabase_service_key="service-key",
            supabase_anon_key="anon-key",
            supabase_jwt_secret=TEST_JWT_SECRET,
            postgrest_timeout_seconds=5,
        ),
        ai=AISettings(openai_api_key="sk-test", model="gpt-4o-mini", reasoning_effort="", temperature=0.2),
        chat=ChatSettings(**chat_values),
        infra=InfraSettings(log_level="DEBUG", port=8000, allowed_origins=["http://localhost:3000"], chat_rate_limit="1000/minute"),
    )


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def user() -> AuthContext:
    return AuthContext(user_id=TEST_USER_ID, access_token="user-token")


@pytest.fixture
def games():
    return sample_games()


@pytest.fixture
def sessions():
    return sample_sessions()


@pytest.fixture
def store(games, sessions) -> InMemoryGameStore:
    return InMemoryGameStore(games, sessions)


@pytest.fixture
def answer_log() -> InMemoryAnswerLog:
    return InMemoryAnswerLog()


@pytest.fixture
def valid_jwt() -> str:
    return generate_test_jwt(TEST_USER_ID)


@pytest.fixture
def other_user_jwt() -> str:
    return generate_test_jwt(OTHER_USER_ID)


@pytest.fixture
def jwt_expired() -> str:
    return generate_expired_jwt()


@pytest.fixture
def jwt_invalid_signature() -> str:
    return generate_test_jwt(TEST_USER_ID, secret="wrong-secret-key")


# ============================================================================
# HTTP Client Fixtures (In-Memory Testing)
# ============================================================================

@pytest_asyncio.fixture
async def make_client():
    """
    Factory for async clients bound to an in-memory app.

    Usage:
        client = await make_client(orchestrator)
    """
    from middleware.rate_limit import limiter
    from pipeline_service import create_app

    clients: List[httpx.AsyncClient] = []
    limiter.reset()

    async def _make(orchestrator) -> httpx.AsyncClient:
        app = create_app(orchestrator=orchestrator, current=orchestrator.settings)
        client = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app),
            base_url="http://test",
            timeout=httpx.Timeout(30.0, connect=5.0),
        )
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()
