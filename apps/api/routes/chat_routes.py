"""
Chat API Endpoint
=================

POST /v1/chat

Request:
{
    "question": "What's my average on games 3 to 7?",
    "timezoneOffsetMinutes": 300,   // optional, minutes to add to local time to get UTC
    "gameId": "uuid"                // optional, restricts to one game
}

Response (200, an online tier answered):
{
    "answer": "Your average on games 3-7 is **187**.",
    "meta": "Method: sql · Time: 1.24s",     // optional
    "scope": "all games for the signed-in user"
}

Response (200, every online tier failed):
{
    "onlineError": "Rate limit reached. Try again in a bit.",
    "offlineAnswer": "Average score: **187**.",
    "offlineMeta": "Method: offline",        // optional
    "offlineNote": "This response was done offline so it can't handle complex questions and may be wrong.",
    "scope": "all games for the signed-in user"
}

Errors: 400 MISSING_REQUIRED_FIELD, 401 UNAUTHORIZED, 404 GAME_NOT_FOUND,
500 CONFIGURATION_ERROR / DATABASE_ERROR / INTERNAL_ERROR.

Security:
- user_id resolved from the JWT, never from the payload
- Generated SQL runs under the caller's row-level security
"""

import logging
from typing import Optional

from fastapi import APIRouter, Header, Request
from pydantic import BaseModel, Field

from config.env import settings
from middleware.auth import authenticate
from middleware.rate_limit import limiter
from orchestration.chat_orchestrator import ChatOrchestrator
from services.types import ChatRequest
from utils.error_responses import chat_error_response, error_response
from utils.errors import ChatError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


class ChatRequestBody(BaseModel):
    """Chat request body. `question` is validated by the orchestrator (400, not 422)."""
    question: Optional[str] = Field(None, description="Free-text question")
    timezoneOffsetMinutes: Optional[int] = Field(
        None, description="Minutes to add to local time to get UTC (JS getTimezoneOffset)"
    )
    gameId: Optional[str] = Field(None, description="Restrict the answer to one game")

    def to_request(self) -> ChatRequest:
        return ChatRequest(
            question=self.question or "",
            timezone_offset_minutes=self.timezoneOffsetMinutes,
            game_id=self.gameId or None,
        )


def get_orchestrator(request: Request) -> ChatOrchestrator:
    return request.app.state.orchestrator


@router.post("/v1/chat")
@limiter.limit(settings.infra.chat_rate_limit)
async def chat(
    request: Request,
    body: ChatRequestBody,
    authorization: Optional[str] = Header(None, alias="Authorization"),
):
    """
    Answer one bowling question.

    Precedence: configuration (500) -> question (400) -> auth (401) -> game (404).
    """
    orchestrator = get_orchestrator(request)
    chat_request = body.to_request()

    try:
        orchestrator.check_configuration()
        orchestrator.validate_request(chat_request)
        user = authenticate(authorization, orchestrator.settings)
        result = await orchestrator.answer(chat_request, user)
    except ChatError as e:
        logger.info(f"[Chat] {e.status_code} {e.code}: {e.message}")
        return chat_error_response(e)
    except Exception as e:
        logger.exception(f"[Chat] Unhandled error: {e}")
        return error_response("INTERNAL_ERROR", "Chat failed.", status_code=500)

    return result.to_dict()
