"""
services/session_store.py — Per-session key/value storage with a fixed TTL.

Each browser session gets its own SessionStore, opened by id through a
SessionStoreFactory. A session starts on its first write (createdAt is set
then and never touched again) and is invalid ttl seconds later, regardless
of activity. Expired sessions are purged on the next access and leave a
marker behind for one more ttl window so that stale cookies keep getting 401.

Values are JSON-encoded strings in the backend. Summary / flashcards / quiz
go through the per-kind pydantic adapters on the way in and on the way out.
"""

import json
import time
from typing import Callable, Dict, Iterable, Optional

from pydantic import ValidationError as PydanticValidationError

from config import Config
from exceptions import ExpiredSessionError
from logging_config import get_logger
from schemas import CONTENT_ADAPTERS, ContentKind, SessionStatus
from utils.cache import get_redis

logger = get_logger(__name__)

EXPIRED_MESSAGE = "Session expired. Please upload your document again."

DOCUMENT_TEXT = "documentText"
CREATED_AT = "createdAt"
_EXPIRED_UNTIL = "expiredUntil"


# ── Backends ──────────────────────────────────────────────────────────────────

class MemorySessionBackend:
    """Process-local backend. Sessions vanish on restart.

    Mirrors Redis EXPIREAT: a session whose deadline has passed is gone,
    whether or not its id ever comes back.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._sessions: Dict[str, Dict[str, str]] = {}
        self._expire_at: Dict[str, float] = {}
        self._clock = clock

    def _reap(self) -> None:
        now = self._clock()
        dead = [sid for sid, deadline in self._expire_at.items() if now > deadline]
        for sid in dead:
            self.drop(sid)
        if dead:
            logger.debug("session_store.memory.reaped", count=len(dead))

    def load(self, session_id: str) -> Dict[str, str]:
        deadline = self._expire_at.get(session_id)
        if deadline is not None and self._clock() > deadline:
            self.drop(session_id)
        return dict(self._sessions.get(session_id, {}))

    def set_fields(self, session_id: str, fields: Dict[str, str], expire_at: Optional[float] = None) -> None:
        self._reap()
        self._sessions.setdefault(session_id, {}).update(fields)
        if expire_at is not None:
            self._expire_at[session_id] = expire_at

    def delete_fields(self, session_id: str, fields: Iterable[str]) -> None:
        bucket = self._sessions.get(session_id)
        if bucket is None:
            return
        for f in fields:
            bucket.pop(f, None)

    def drop(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._expire_at.pop(session_id, None)


class RedisSessionBackend:
    """One Redis hash per session. Redis expiry only reclaims memory; the store
    itself decides when a session is expired."""

    def __init__(self, client, prefix: str = Config.REDIS_KEY_PREFIX):
        self._r = client
        self._prefix = prefix

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    def load(self, session_id: str) -> Dict[str, str]:
        return self._r.hgetall(self._key(session_id)) or {}

    def set_fields(self, session_id: str, fields: Dict[str, str], expire_at: Optional[float] = None) -> None:
        key = self._key(session_id)
        pipe = self._r.pipeline()
        pipe.hset(key, mapping=fields)
        if expire_at is not None:
            pipe.expireat(key, int(expire_at) + 1)
        pipe.execute()

    def delete_fields(self, session_id: str, fields: Iterable[str]) -> None:
        fields = list(fields)
        if fields:
            self._r.hdel(self._key(session_id), *fields)

    def drop(self, session_id: str) -> None:
        self._r.delete(self._key(session_id))


def make_session_backend(kind: str = Config.SESSION_BACKEND, redis_url: str = Config.REDIS_URL):
    """Pick the backend named by SESSION_BACKEND ("memory", "redis" or "auto")."""
    if kind == "memory":
        logger.info("session_store.backend", kind="memory")
        return MemorySessionBackend()
    client = get_redis(redis_url)
    if client is not None:
        logger.info("session_store.backend", kind="redis")
        return RedisSessionBackend(client)
    if kind == "redis":
        raise RuntimeError(f"SESSION_BACKEND=redis but Redis is unreachable at {redis_url}")
    logger.warning("session_store.backend", kind="memory", reason="redis unreachable, sessions will not survive restarts")
    return MemorySessionBackend()


# ── Store ─────────────────────────────────────────────────────────────────────

class SessionStore:
    def __init__(
        self,
        session_id: str,
        backend,
        ttl_seconds: int = Config.SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.session_id = session_id
        self._backend = backend
        self._ttl = ttl_seconds
        self._clock = clock

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def _load_live(self) -> Dict[str, str]:
        """Load raw fields, purging and raising if the session has expired."""
        raw = self._backend.load(self.session_id)
        now = self._clock()

        marker = raw.get(_EXPIRED_UNTIL)
        if marker is not None:
            if now < float(marker):
                raise ExpiredSessionError(EXPIRED_MESSAGE)
            self._backend.drop(self.session_id)
            return {}

        created = raw.get(CREATED_AT)
        if created is not None and now - float(created) > self._ttl:
            logger.info("session.expired", id=self.session_id, age=round(now - float(created)))
            self._backend.drop(self.session_id)
            until = now + self._ttl
            self._backend.set_fields(self.session_id, {_EXPIRED_UNTIL: json.dumps(until)}, expire_at=until)
            raise ExpiredSessionError(EXPIRED_MESSAGE)
        return raw

    def clear(self) -> None:
        """Drop everything for this session, expiry marker included."""
        self._backend.drop(self.session_id)
        logger.info("session.cleared id=%s", self.session_id)

    # ── Generic key/value ────────────────────────────────────────────────────

    def get(self, key: str):
        value = self._load_live().get(key)
        return None if value is None else json.loads(value)

    def put(self, key: str, value) -> None:
        raw = self._load_live()
        fields = {key: json.dumps(value)}
        expire_at = None
        if CREATED_AT not in raw:
            now = self._clock()
            fields[CREATED_AT] = json.dumps(now)
            # Two windows: the live session plus the expiry marker that follows it
            expire_at = now + 2 * self._ttl
            logger.info("session.started id=%s", self.session_id)
        self._backend.set_fields(self.session_id, fields, expire_at=expire_at)

    def delete(self, *keys: str) -> None:
        self._load_live()
        self._backend.delete_fields(self.session_id, keys)

    # ── document-text ────────────────────────────────────────────────────────

    def get_document_text(self) -> Optional[str]:
        return self.get(DOCUMENT_TEXT)

    def set_document_text(self, text: str, invalidate: bool = Config.INVALIDATE_ON_UPLOAD) -> None:
        if invalidate:
            self.delete(*(k.value for k in ContentKind))
        self.put(DOCUMENT_TEXT, text)

    # ── summary / flashcards / quiz ──────────────────────────────────────────

    def get_content(self, kind: ContentKind):
        """Return the typed cached value for *kind*, or None if absent or unreadable."""
        value = self.get(kind.value)
        if value is None:
            return None
        try:
            return CONTENT_ADAPTERS[kind].validate_python(value)
        except PydanticValidationError as exc:
            logger.warning("session.content.invalid id=%s kind=%s: %s", self.session_id, kind.value, exc)
            return None

    def put_content(self, kind: ContentKind, value) -> None:
        adapter = CONTENT_ADAPTERS[kind]
        typed = adapter.validate_python(value)
        self.put(kind.value, adapter.dump_python(typed, mode="json"))

    def status(self) -> SessionStatus:
        raw = self._load_live()
        created = json.loads(raw[CREATED_AT]) if CREATED_AT in raw else None
        text = json.loads(raw[DOCUMENT_TEXT]) if DOCUMENT_TEXT in raw else None
        return SessionStatus(
            hasDocument=bool(text and text.strip()),
            createdAt=created,
            expiresAt=created + self._ttl if created is not None else None,
            cached={k.value: k.value in raw for k in ContentKind},
        )


class SessionStoreFactory:
    """Opens one independent SessionStore per session id over a shared backend."""

    def __init__(
        self,
        backend,
        ttl_seconds: int = Config.SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.backend = backend
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def open(self, session_id: str) -> SessionStore:
        return SessionStore(session_id, self.backend, self.ttl_seconds, self.clock)
