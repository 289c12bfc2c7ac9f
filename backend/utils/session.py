"""
utils/session.py — Session cookie handling.
"""

from fastapi import Response

from config import Config


def set_session_cookie(response: Response, session_id: str) -> None:
    # Lax keeps the cookie on top-level navigations from the frontend origin
    response.set_cookie(
        key=Config.SESSION_COOKIE_NAME,
        value=session_id,
        max_age=Config.SESSION_TTL_SECONDS,
        httponly=True,
        secure=Config.HTTPS_ONLY,
        samesite="lax",
        path="/",
    )
