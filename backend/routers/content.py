"""
routers/content.py — Cached summary, flashcard and quiz generation.
"""

from fastapi import APIRouter, Query, Request, Response

from dependencies import LLM, SessionId, Stores
from logging_config import get_logger
from schemas import CONTENT_ADAPTERS, ContentKind
from services.content_service import make_generator
from utils.cache import content_etag, etag_matches
from utils.errors import envelope, error_response
from utils.session import set_session_cookie

logger = get_logger(__name__)
router = APIRouter(prefix="/api/content", tags=["content"])

_MESSAGES = {
    ContentKind.SUMMARY: "Summary",
    ContentKind.FLASHCARDS: "Flashcards",
    ContentKind.QUIZ: "Quiz",
}


async def _serve(kind: ContentKind, request: Request, session_id: str, stores, llm, force: bool):
    try:
        generator = make_generator(kind, stores, llm)
        content, cached = await generator.get_or_generate(session_id, force=force)

        payload = CONTENT_ADAPTERS[kind].dump_python(content, mode="json")
        etag = content_etag(payload)
        if cached and etag_matches(request, etag):
            not_modified = Response(status_code=304, headers={"ETag": etag})
            set_session_cookie(not_modified, session_id)
            return not_modified

        verb = "retrieved from cache" if cached else "generated successfully"
        return envelope(
            data={"cached": cached, kind.value: payload},
            message=f"{_MESSAGES[kind]} {verb}",
            session_id=session_id,
            headers={"ETag": etag, "Cache-Control": "private, no-cache"},
        )
    except Exception as exc:
        return error_response(exc, request.url.path, session_id)


@router.get("/summary")
async def get_summary(
    request: Request,
    session_id: SessionId,
    stores: Stores,
    llm: LLM,
    force: bool = Query(False, description="Regenerate even if a cached summary exists"),
):
    return await _serve(ContentKind.SUMMARY, request, session_id, stores, llm, force)


@router.get("/flashcards")
async def get_flashcards(
    request: Request,
    session_id: SessionId,
    stores: Stores,
    llm: LLM,
    force: bool = Query(False, description="Regenerate even if cached flashcards exist"),
):
    return await _serve(ContentKind.FLASHCARDS, request, session_id, stores, llm, force)


@router.get("/quiz")
async def get_quiz(
    request: Request,
    session_id: SessionId,
    stores: Stores,
    llm: LLM,
    force: bool = Query(False, description="Regenerate even if a cached quiz exists"),
):
    return await _serve(ContentKind.QUIZ, request, session_id, stores, llm, force)
