"""
Bowling Chat FastAPI Service
============================

Question answering over a user's bowling history.

Endpoints:
- POST /v1/chat - Filter -> scope -> SQL / context tier -> offline fallback
- GET /health - Health check
- GET /version - Git commit and environment

Deployment:
- uvicorn pipeline_service:app --host 0.0.0.0 --port $PORT  (from apps/api)
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional
import logging
import os
import sys
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

# Git commit for /version endpoint
GIT_COMMIT = os.environ.get("RENDER_GIT_COMMIT", os.environ.get("GIT_COMMIT", "dev"))
VERSION = "1.0.0"

# Setup path for imports
from pathlib import Path
_api_dir = Path(__file__).parent
if str(_api_dir) not in sys.path:
    sys.path.insert(0, str(_api_dir))

from config.env import Settings, settings, validate_startup, log_startup_config
from integrations.reasoning_engine import OpenAIReasoningEngine
from integrations.supabase import (
    SupabaseAnswerLog,
    SupabaseGameStore,
    SupabaseSqlExecutor,
    get_supabase_client,
)
from middleware.rate_limit import limiter
from orchestration.chat_orchestrator import ChatOrchestrator
from routes.chat_routes import router as chat_router

# Setup logging
logging.basicConfig(
    level=getattr(logging, settings.infra.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str
    version: str
    pipeline_ready: bool


# ============================================================================
# WIRING
# ============================================================================

def build_orchestrator(current: Settings) -> ChatOrchestrator:
    """
    Real collaborators from settings. Missing credentials leave a collaborator
    unset; the orchestrator turns that into CONFIGURATION_ERROR per request.
    """
    client = get_supabase_client(current.data)
    engine = OpenAIReasoningEngine(current.ai) if current.ai.openai_configured else None

    if client is None:
        logger.warning("[Pipeline] Supabase unavailable - chat requests will fail")
        return ChatOrchestrator(current, store=None, engine=engine, executor=None)

    return ChatOrchestrator(
        current,
        store=SupabaseGameStore(client),
        engine=engine,
        executor=SupabaseSqlExecutor(current.data),
        answer_log=SupabaseAnswerLog(client),
    )


def create_app(orchestrator: Optional[ChatOrchestrator] = None, current: Optional[Settings] = None) -> FastAPI:
    current = current or settings
    if orchestrator is None:
        validate_startup(current)
        log_startup_config(current)
        orchestrator = build_orchestrator(current)

    app = FastAPI(
        title="Bowling Chat API",
        description="Bowling history Q&A: Filters -> Scope -> SQL / Context -> Offline",
        version=VERSION,
    )
    app.state.orchestrator = orchestrator

    # ========================================================================
    # CORS
    # ========================================================================
    # Bearer token auth (Authorization header) = allow_credentials=False
    app.add_middleware(
        CORSMiddleware,
        allow_origins=current.infra.allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=3600,
    )
    logger.info(f"[Pipeline] CORS allowed origins: {current.infra.allowed_origins}")

    # ========================================================================
    # RATE LIMITING
    # ========================================================================
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.include_router(chat_router)

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        state = app.state.orchestrator
        pipeline_ready = state.store is not None and state.engine is not None
        return HealthResponse(status="healthy", version=VERSION, pipeline_ready=pipeline_ready)

    @app.get("/version")
    async def version():
        """Version endpoint - returns git commit and environment."""
        return {
            "git_commit": GIT_COMMIT,
            "environment": current.environment.value,
            "version": VERSION,
            "api": "bowling_chat",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.infra.port)
