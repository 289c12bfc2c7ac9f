"""
services/registry.py — Process-wide service singletons.

Nothing here does I/O at import time: the session backend (which may probe
Redis) and the LLM client are built on first use.
"""

from services.file_service import FileService
from services.llm import LLMService
from services.session_store import SessionStoreFactory, make_session_backend

file_service = FileService()

_session_stores = None
_llm_service = None


def session_stores() -> SessionStoreFactory:
    global _session_stores
    if _session_stores is None:
        _session_stores = SessionStoreFactory(make_session_backend())
    return _session_stores


def llm_service() -> LLMService:
    global _llm_service
    if _llm_service is None:
        _llm_service = LLMService()
    return _llm_service
