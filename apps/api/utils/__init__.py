"""
Bowling Chat API Utilities
==========================

Shared utilities for the API layer.

Modules:
- errors: Request and tier exception taxonomy
- error_responses: Standardized JSON error bodies
"""

from .errors import (
    ChatError,
    InvalidQuestionError,
    UnauthorizedError,
    GameNotFoundError,
    DataLoadError,
    MissingConfigurationError,
    TierError,
    EngineError,
    EngineTimeoutError,
    SqlGenerationError,
    SqlValidationError,
    SqlExecutionError,
    NoResultsError,
)

__all__ = [
    'ChatError',
    'InvalidQuestionError',
    'UnauthorizedError',
    'GameNotFoundError',
    'DataLoadError',
    'MissingConfigurationError',
    'TierError',
    'EngineError',
    'EngineTimeoutError',
    'SqlGenerationError',
    'SqlValidationError',
    'SqlExecutionError',
    'NoResultsError',
]
