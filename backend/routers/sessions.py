"""
routers/sessions.py — Session status and explicit clear.
"""

from fastapi import APIRouter, Request

from dependencies import SessionId, Stores
from utils.errors import envelope, error_response

router = APIRouter(prefix="/api/session", tags=["sessions"])


@router.get("")
async def get_session(request: Request, session_id: SessionId, stores: Stores):
    try:
        status = stores.open(session_id).status()
        return envelope(
            data=status.model_dump(),
            message="Session status retrieved",
            session_id=session_id,
        )
    except Exception as exc:
        return error_response(exc, request.url.path, session_id)


@router.post("/clear")
async def clear_session(request: Request, session_id: SessionId, stores: Stores):
    try:
        stores.open(session_id).clear()
        return envelope(
            data={"success": True},
            message="Session cleared",
            session_id=session_id,
        )
    except Exception as exc:
        return error_response(exc, request.url.path, session_id)
