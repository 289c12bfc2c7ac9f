"""
utils/errors.py — Exception → HTTP status mapping and the standard JSON envelope.
"""

import uuid
from typing import Any, Optional, Tuple

from fastapi.responses import JSONResponse

from exceptions import ExpiredSessionError, StudyKitError
from logging_config import get_logger
from schemas import ApiResponse, StatusCode
from utils.session import set_session_cookie

logger = get_logger(__name__)

# Checked in order against the lower-cased message of untyped exceptions
_KEYWORD_STATUS = (
    (("expired",), 401),
    (("too large", "size"), 413),
    (("not found", "no document"), 404),
    (("invalid", "not a pdf", "no file", "no text content", "please upload"), 400),
)


def status_for(exc: BaseException) -> int:
    if isinstance(exc, StudyKitError):
        return exc.status_code
    message = str(exc).lower()
    for keywords, status in _KEYWORD_STATUS:
        if any(k in message for k in keywords):
            return status
    return 500


def envelope(
    data: Any = None,
    message: str = "OK",
    status_code: int = 200,
    session_id: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    body = ApiResponse(message=message, code=StatusCode.from_http(status_code), data=data)
    response = JSONResponse(status_code=status_code, content=body.model_dump(mode="json"), headers=headers)
    if session_id:
        set_session_cookie(response, session_id)
    return response


def error_response(exc: BaseException, path: str, session_id: Optional[str] = None) -> JSONResponse:
    """Log *exc* and render it as an envelope. Expired sessions get a fresh cookie."""
    status = status_for(exc)
    message, data = describe(exc, status)

    if status >= 500:
        logger.error("request.failed", path=path, status=status, error=str(exc), exc_info=exc)
    else:
        logger.warning("request.rejected", path=path, status=status, error=str(exc))

    if isinstance(exc, ExpiredSessionError):
        session_id = str(uuid.uuid4())
    return envelope(data=data, message=message, status_code=status, session_id=session_id)


def describe(exc: BaseException, status: int) -> Tuple[str, Optional[dict]]:
    message = str(exc) or "An unexpected server error occurred. Please try again."
    data = {"expired": True} if status == 401 else None
    return message, data
