"""Domain error taxonomy and client-facing error responses."""

from enum import Enum

from pydantic import BaseModel


class ErrorCategory(Enum):
    """Categories of errors surfaced to API callers."""

    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    INVALID_STATE_TRANSITION = "invalid_state_transition"
    INTERNAL = "internal"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_UNAUTHORIZED = "ERR_UNAUTHORIZED"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_CONFLICT = "ERR_CONFLICT"
    ERR_INVALID_STATE_TRANSITION = "ERR_INVALID_STATE_TRANSITION"
    ERR_INTERNAL = "ERR_INTERNAL"


_CATEGORY_CODES: dict[ErrorCategory, str] = {
    ErrorCategory.UNAUTHORIZED: ErrorCode.ERR_UNAUTHORIZED,
    ErrorCategory.NOT_FOUND: ErrorCode.ERR_NOT_FOUND,
    ErrorCategory.VALIDATION: ErrorCode.ERR_VALIDATION,
    ErrorCategory.CONFLICT: ErrorCode.ERR_CONFLICT,
    ErrorCategory.INVALID_STATE_TRANSITION: ErrorCode.ERR_INVALID_STATE_TRANSITION,
    ErrorCategory.INTERNAL: ErrorCode.ERR_INTERNAL,
}

_CATEGORY_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.UNAUTHORIZED: 401,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.INVALID_STATE_TRANSITION: 409,
    ErrorCategory.INTERNAL: 500,
}

# Client-visible messages; diagnostic detail stays in the logs.
_MESSAGES: dict[str, dict[ErrorCategory, str]] = {
    "en": {
        ErrorCategory.UNAUTHORIZED: "Please sign in to continue.",
        ErrorCategory.NOT_FOUND: "The requested item was not found.",
        ErrorCategory.VALIDATION: "The request contains missing or invalid fields.",
        ErrorCategory.CONFLICT: "This conflicts with an existing record. Refresh and try again.",
        ErrorCategory.INVALID_STATE_TRANSITION: "This action cannot be performed in the task's current state.",
        ErrorCategory.INTERNAL: "An unexpected error occurred. Please try again later.",
    },
    "ja": {
        ErrorCategory.UNAUTHORIZED: "ログインしてください。",
        ErrorCategory.NOT_FOUND: "指定された項目が見つかりません。",
        ErrorCategory.VALIDATION: "入力内容に不足または誤りがあります。",
        ErrorCategory.CONFLICT: "既存のデータと競合しています。再読み込みしてからもう一度お試しください。",
        ErrorCategory.INVALID_STATE_TRANSITION: "現在のタスクの状態ではこの操作を実行できません。",
        ErrorCategory.INTERNAL: "予期しないエラーが発生しました。しばらくしてから再度お試しください。",
    },
}

DEFAULT_LOCALE = "en"


class AppError(Exception):
    """Base class for errors that map onto an API error category."""

    category: ErrorCategory = ErrorCategory.INTERNAL

    @property
    def status_code(self) -> int:
        return _CATEGORY_STATUS[self.category]

    @property
    def code(self) -> str:
        return _CATEGORY_CODES[self.category]


class UnauthorizedError(AppError):
    """No session, or the session could not be verified."""

    category = ErrorCategory.UNAUTHORIZED


class NotFoundError(AppError):
    """Entity is missing or owned by someone else."""

    category = ErrorCategory.NOT_FOUND


class DomainValidationError(AppError):
    """Missing or malformed fields, invalid enum values."""

    category = ErrorCategory.VALIDATION


class ConflictError(AppError):
    """A write that collides with an existing record, such as a second routine task for one date."""

    category = ErrorCategory.CONFLICT


class InvalidTransitionError(AppError):
    """Lifecycle action attempted from an incompatible task status."""

    category = ErrorCategory.INVALID_STATE_TRANSITION


class ErrorDetail(BaseModel):
    """Error payload body."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Structured error response returned to API callers."""

    error: ErrorDetail


def localized_message(category: ErrorCategory, locale: str) -> str:
    """Return the client-facing message for a category, falling back to English."""
    messages = _MESSAGES.get(locale.lower(), _MESSAGES[DEFAULT_LOCALE])
    return messages[category]


def build_error_response(exception: Exception, *, locale: str) -> tuple[int, ErrorResponse]:
    """Classify an exception into an HTTP status and a localized error body.

    Anything that is not an AppError is reported as an internal error; its
    message is never included in the body.

    Args:
        exception: The exception raised while handling a request
        locale: Locale for the client message

    Returns:
        Tuple of (status_code, ErrorResponse)
    """
    category = exception.category if isinstance(exception, AppError) else ErrorCategory.INTERNAL
    body = ErrorResponse(
        error=ErrorDetail(code=_CATEGORY_CODES[category], message=localized_message(category, locale)),
    )
    return _CATEGORY_STATUS[category], body
