"""Unit tests for error classification utilities."""

import pytest

from src.core.errors import (
    ConflictError,
    DomainValidationError,
    ErrorCategory,
    ErrorCode,
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedError,
    build_error_response,
    localized_message,
)


@pytest.mark.unit
class TestBuildErrorResponse:
    """Tests for build_error_response function."""

    @pytest.mark.parametrize(
        ("exception", "status", "code"),
        [
            (UnauthorizedError("no cookie"), 401, ErrorCode.ERR_UNAUTHORIZED),
            (NotFoundError("task 1"), 404, ErrorCode.ERR_NOT_FOUND),
            (DomainValidationError("bad title"), 400, ErrorCode.ERR_VALIDATION),
            (ConflictError("duplicate"), 409, ErrorCode.ERR_CONFLICT),
            (InvalidTransitionError("pending -> completed"), 409, ErrorCode.ERR_INVALID_STATE_TRANSITION),
        ],
    )
    def test_app_errors_map_to_status(self, exception, status, code):
        status_code, body = build_error_response(exception, locale="en")

        assert status_code == status
        assert body.error.code == code

    def test_unexpected_error_hides_detail(self):
        status_code, body = build_error_response(RuntimeError("db password is hunter2"), locale="en")

        assert status_code == 500
        assert body.error.code == ErrorCode.ERR_INTERNAL
        assert "hunter2" not in body.error.message

    def test_diagnostic_message_is_not_exposed(self):
        _, body = build_error_response(NotFoundError("tasks/1234 owned by user 9"), locale="en")

        assert body.error.message == "The requested item was not found."

    def test_japanese_messages(self):
        _, body = build_error_response(UnauthorizedError(), locale="ja")

        assert body.error.message == "ログインしてください。"

    @pytest.mark.parametrize("locale", ["en", "ja"])
    def test_conflict_message_fits_any_duplicate(self, locale):
        _, body = build_error_response(ConflictError("User already exists: a@example.com"), locale=locale)

        assert body.error.message == localized_message(ErrorCategory.CONFLICT, locale)
        assert "routine" not in body.error.message.lower()
        assert "ルーティン" not in body.error.message


@pytest.mark.unit
def test_unknown_locale_falls_back_to_english():
    assert localized_message(ErrorCategory.CONFLICT, "fr") == localized_message(ErrorCategory.CONFLICT, "en")


@pytest.mark.unit
def test_error_properties():
    error = InvalidTransitionError("cannot pause")

    assert error.status_code == 409
    assert error.code == "ERR_INVALID_STATE_TRANSITION"
    assert str(error) == "cannot pause"
