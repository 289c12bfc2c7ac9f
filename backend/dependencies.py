"""FastAPI dependencies: session id resolution and service lookup."""

import uuid
from typing import Annotated

from fastapi import Depends, Request

from config import Config
from services import registry
from services.document_processor import DocumentProcessor
from services.llm import LLMService
from services.session_store import SessionStoreFactory


def get_session_id(request: Request) -> str:
    """Session id from the cookie, or a fresh uuid4 when there is none."""
    session_id = (request.cookies.get(Config.SESSION_COOKIE_NAME) or "").strip()
    if not session_id:
        session_id = str(uuid.uuid4())
    request.state.session_id = session_id
    return session_id


def get_session_stores() -> SessionStoreFactory:
    return registry.session_stores()


def get_llm_service() -> LLMService:
    return registry.llm_service()


def get_document_processor(
    stores: Annotated[SessionStoreFactory, Depends(get_session_stores)],
) -> DocumentProcessor:
    return DocumentProcessor(registry.file_service, stores)


SessionId = Annotated[str, Depends(get_session_id)]
Stores = Annotated[SessionStoreFactory, Depends(get_session_stores)]
LLM = Annotated[LLMService, Depends(get_llm_service)]
Documents = Annotated[DocumentProcessor, Depends(get_document_processor)]
