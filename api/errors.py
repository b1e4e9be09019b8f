"""
業務異常 -> HTTPException 的對照

回應格式：
    {"detail": {"message": "...", "error": "RoomLocked", "retryable": false}}

前端靠 error 欄位顯示對應的提示（例如 RoomLocked 時提示「要不要用原本的名字重連？」）
"""
from fastapi import HTTPException

from core.exceptions import (
    SecretSantaException,
    NotFoundError,
    ConflictError,
    ValidationError,
    AuthenticationError,
    MatchingError,
    AdviceUnavailable,
)

STATUS_CODES = (
    (NotFoundError, 404),
    (ConflictError, 409),
    (ValidationError, 400),
    (AuthenticationError, 403),
    (MatchingError, 422),
    (AdviceUnavailable, 503),
)


def to_http_exception(exc: SecretSantaException) -> HTTPException:
    status_code = 400
    for exc_type, code in STATUS_CODES:
        if isinstance(exc, exc_type):
            status_code = code
            break

    return HTTPException(
        status_code=status_code,
        detail={
            "message": str(exc),
            "error": type(exc).__name__,
            "retryable": exc.retryable,
        }
    )
