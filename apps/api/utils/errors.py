"""
Chat Errors
===========

Two families of errors flow through the chat pipeline:

1. Request errors (ChatError subclasses) - fatal at the HTTP boundary.
   Missing question (400), unknown game (404), missing credentials (500).
   These short-circuit before any answer tier runs.

2. Tier errors (TierError subclasses) - recoverable. Raised inside the SQL
   and Context tiers, caught by the orchestrator, appended to the request's
   error list, and the next tier runs. They never reach the user raw.

Usage:
    from utils.errors import InvalidQuestionError, SqlExecutionError

    raise InvalidQuestionError()      # 400 at the route
    raise SqlExecutionError()         # next tier runs
"""


# =============================================================================
# REQUEST ERRORS
# =============================================================================

class ChatError(Exception):
    """Base exception for request-level chat errors."""
    def __init__(self, code: str, message: str, status_code: int = 400):
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class InvalidQuestionError(ChatError):
    """Raised when the question is missing or blank."""
    def __init__(self):
        super().__init__(
            "MISSING_REQUIRED_FIELD",
            "Question is required.",
            status_code=400,
        )


class UnauthorizedError(ChatError):
    """Raised when no user identity could be established."""
    def __init__(self, message: str = "Unauthorized."):
        super().__init__("UNAUTHORIZED", message, status_code=401)


class GameNotFoundError(ChatError):
    """Raised when a gameId is not found for the caller.

    Same 404 whether the game does not exist or belongs to someone else.
    """
    def __init__(self, game_id: str):
        super().__init__(
            "GAME_NOT_FOUND",
            "Game not found.",
            status_code=404,
        )
        self.game_id = game_id


class DataLoadError(ChatError):
    """Raised when the user's games cannot be loaded."""
    def __init__(self, detail: str = "Failed to load games."):
        super().__init__("DATABASE_ERROR", detail, status_code=500)


class MissingConfigurationError(ChatError):
    """Raised when data store or reasoning engine credentials are missing."""
    def __init__(self, what: str):
        super().__init__(
            "CONFIGURATION_ERROR",
            f"Missing {what}.",
            status_code=500,
        )


# =============================================================================
# TIER ERRORS (recoverable)
# =============================================================================

class TierError(Exception):
    """Base exception for a failed answer tier. The orchestrator moves on."""
    pass


class EngineError(TierError):
    """Reasoning engine call failed."""
    pass


class EngineTimeoutError(EngineError):
    """Reasoning engine call exceeded its deadline."""
    def __init__(self, timeout_seconds: float):
        super().__init__(f"Reasoning engine timeout after {timeout_seconds:g}s.")
        self.timeout_seconds = timeout_seconds


class SqlGenerationError(TierError):
    """The engine did not return a usable {sql, explanation} payload."""
    def __init__(self, detail: str = "SQL generation failed."):
        super().__init__(detail)


class SqlValidationError(TierError):
    """Generated SQL was rejected by the read-only validator."""
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class SqlExecutionError(TierError):
    """The read-only executor returned an error."""
    def __init__(self, detail: str = "SQL execution failed."):
        super().__init__(detail)


class NoResultsError(TierError):
    """The SQL ran but returned no rows."""
    def __init__(self):
        super().__init__("No SQL results.")

