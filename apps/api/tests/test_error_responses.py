"""
Unit Tests for Error Bodies
===========================
"""

import json

import pytest

from utils.error_responses import ERROR_STATUS_CODES, chat_error_response, error_response
from utils.errors import (
    DataLoadError,
    GameNotFoundError,
    InvalidQuestionError,
    MissingConfigurationError,
    UnauthorizedError,
)


REQUEST_ERRORS = [
    InvalidQuestionError(),
    UnauthorizedError(),
    GameNotFoundError("g1"),
    DataLoadError(),
    MissingConfigurationError("OpenAI API key"),
]


class TestStatusMap:

    def test_map_lists_only_emitted_codes(self):
        emitted = {error.code for error in REQUEST_ERRORS} | {"INTERNAL_ERROR"}
        assert set(ERROR_STATUS_CODES) == emitted

    @pytest.mark.parametrize("error", REQUEST_ERRORS, ids=lambda e: e.code)
    def test_map_agrees_with_error_status(self, error):
        assert ERROR_STATUS_CODES[error.code] == error.status_code


class TestBodies:

    def test_chat_error_body(self):
        response = chat_error_response(InvalidQuestionError())
        body = json.loads(response.body)

        assert response.status_code == 400
        assert body == {
            "success": False,
            "code": "MISSING_REQUIRED_FIELD",
            "message": "Question is required.",
            "error": "Question is required.",
            "field": "question",
        }

    def test_internal_error_status_from_map(self):
        response = error_response("INTERNAL_ERROR", "Chat failed.")
        assert response.status_code == 500
        assert json.loads(response.body)["code"] == "INTERNAL_ERROR"
