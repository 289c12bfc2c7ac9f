"""SessionStore lifecycle: lazy start, fixed TTL, expiry purge, typed content."""

from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError as PydanticValidationError

from conftest import flashcards_payload, quiz_payload, summary_payload
from exceptions import ExpiredSessionError
from schemas import ContentKind, Flashcard, Summary
from services.session_store import (
    CREATED_AT, MemorySessionBackend, RedisSessionBackend, SessionStoreFactory,
    make_session_backend,
)

DAY = 86400


# ── Lazy start / fixed TTL ────────────────────────────────────────────────────

def test_reads_on_a_new_session_return_none(stores):
    store = stores.open("fresh")
    assert store.get_document_text() is None
    assert store.get_content(ContentKind.SUMMARY) is None
    assert store.status().createdAt is None


def test_first_write_sets_created_at_once(stores, clock):
    store = stores.open("s1")
    store.set_document_text("notes")
    created = store.get(CREATED_AT)
    assert created == clock.now

    clock.advance(3600)
    store.put_content(ContentKind.SUMMARY, summary_payload())
    assert store.get(CREATED_AT) == created


def test_activity_does_not_extend_lifetime(stores, clock):
    store = stores.open("s1")
    store.set_document_text("notes")
    for _ in range(4):
        clock.advance(6 * 3600)
        store.get_document_text()
    clock.advance(1)
    with pytest.raises(ExpiredSessionError):
        store.get_document_text()


def test_exactly_ttl_is_still_valid(stores, clock):
    store = stores.open("s1")
    store.set_document_text("notes")
    clock.advance(DAY)
    assert store.get_document_text() == "notes"


# ── Expiry ────────────────────────────────────────────────────────────────────

def test_expired_session_is_purged(stores, clock):
    store = stores.open("s1")
    store.set_document_text("notes")
    store.put_content(ContentKind.FLASHCARDS, flashcards_payload()["flashcards"])

    clock.advance(DAY + 1)
    with pytest.raises(ExpiredSessionError, match="expired"):
        store.get_content(ContentKind.FLASHCARDS)

    raw = stores.backend.load("s1")
    assert "documentText" not in raw
    assert "flashcards" not in raw


def test_expired_session_stays_expired_for_later_access(stores, clock):
    store = stores.open("s1")
    store.set_document_text("notes")
    clock.advance(DAY + 1)
    with pytest.raises(ExpiredSessionError):
        store.get_document_text()

    clock.advance(60)
    with pytest.raises(ExpiredSessionError):
        stores.open("s1").get_document_text()
    with pytest.raises(ExpiredSessionError):
        stores.open("s1").set_document_text("new notes")


def test_expiry_marker_lapses_after_another_ttl(stores, clock):
    store = stores.open("s1")
    store.set_document_text("notes")
    clock.advance(DAY + 1)
    with pytest.raises(ExpiredSessionError):
        store.get_document_text()

    clock.advance(DAY + 1)
    assert store.get_document_text() is None
    store.set_document_text("fresh start")
    assert store.get(CREATED_AT) == clock.now


def test_clear_removes_everything(stores):
    store = stores.open("s1")
    store.set_document_text("notes")
    store.put_content(ContentKind.SUMMARY, summary_payload())
    store.clear()
    assert store.get_document_text() is None
    assert store.get_content(ContentKind.SUMMARY) is None
    assert stores.backend.load("s1") == {}


def test_sessions_are_isolated(stores):
    stores.open("a").set_document_text("alpha")
    stores.open("b").set_document_text("beta")
    stores.open("a").clear()
    assert stores.open("a").get_document_text() is None
    assert stores.open("b").get_document_text() == "beta"


# ── Typed content ─────────────────────────────────────────────────────────────

def test_content_round_trips_as_models(stores):
    store = stores.open("s1")
    store.put_content(ContentKind.SUMMARY, summary_payload())
    store.put_content(ContentKind.FLASHCARDS, flashcards_payload()["flashcards"])

    summary = store.get_content(ContentKind.SUMMARY)
    cards = store.get_content(ContentKind.FLASHCARDS)
    assert isinstance(summary, Summary)
    assert summary.keyPoints[0] == "Chlorophyll absorbs light"
    assert len(cards) == 10 and all(isinstance(c, Flashcard) for c in cards)


def test_put_content_rejects_wrong_shape(stores):
    store = stores.open("s1")
    with pytest.raises(PydanticValidationError):
        store.put_content(ContentKind.SUMMARY, {"title": "only a title"})
    with pytest.raises(PydanticValidationError):
        store.put_content(ContentKind.QUIZ, quiz_payload(answer_id=9)["questions"])
    assert store.get_content(ContentKind.SUMMARY) is None


def test_corrupt_stored_content_reads_as_missing(stores):
    store = stores.open("s1")
    store.put(ContentKind.FLASHCARDS.value, [{"id": 1, "question": "q"}])
    assert store.get_content(ContentKind.FLASHCARDS) is None


def test_new_document_invalidates_cached_content(stores):
    store = stores.open("s1")
    store.set_document_text("first document")
    store.put_content(ContentKind.SUMMARY, summary_payload())
    store.put_content(ContentKind.QUIZ, quiz_payload()["questions"])

    store.set_document_text("second document")
    assert store.get_content(ContentKind.SUMMARY) is None
    assert store.get_content(ContentKind.QUIZ) is None


def test_invalidation_can_be_disabled(stores):
    store = stores.open("s1")
    store.set_document_text("first document")
    store.put_content(ContentKind.SUMMARY, summary_payload())
    store.set_document_text("second document", invalidate=False)
    assert store.get_content(ContentKind.SUMMARY) is not None


def test_status_reports_cached_kinds_and_expiry(stores, clock):
    store = stores.open("s1")
    store.set_document_text("notes")
    store.put_content(ContentKind.SUMMARY, summary_payload())
    status = store.status()
    assert status.hasDocument is True
    assert status.createdAt == clock.now
    assert status.expiresAt == clock.now + DAY
    assert status.cached == {"summary": True, "flashcards": False, "quiz": False}


# ── Backends ──────────────────────────────────────────────────────────────────

def test_redis_backend_pins_key_expiry_on_first_write():
    client = MagicMock()
    pipe = client.pipeline.return_value
    backend = RedisSessionBackend(client, prefix="t:")

    backend.set_fields("abc", {"documentText": '"x"'}, expire_at=1000.5)
    pipe.hset.assert_called_once_with("t:abc", mapping={"documentText": '"x"'})
    pipe.expireat.assert_called_once_with("t:abc", 1001)
    pipe.execute.assert_called_once()

    pipe.reset_mock()
    backend.set_fields("abc", {"summary": "{}"})
    pipe.expireat.assert_not_called()


def test_redis_backend_delete_and_load():
    client = MagicMock()
    client.hgetall.return_value = {"documentText": '"x"'}
    backend = RedisSessionBackend(client, prefix="t:")

    assert backend.load("abc") == {"documentText": '"x"'}
    backend.delete_fields("abc", ["summary", "quiz"])
    client.hdel.assert_called_once_with("t:abc", "summary", "quiz")
    backend.delete_fields("abc", [])
    assert client.hdel.call_count == 1
    backend.drop("abc")
    client.delete.assert_called_once_with("t:abc")


def test_memory_backend_reclaims_abandoned_sessions(clock):
    backend = MemorySessionBackend(clock=clock)
    stores = SessionStoreFactory(backend, ttl_seconds=DAY, clock=clock)
    for i in range(1000):
        stores.open(f"gone-{i}").set_document_text("notes")

    clock.advance(30 * DAY)
    stores.open("new").set_document_text("fresh")
    assert list(backend._sessions) == ["new"]
    assert list(backend._expire_at) == ["new"]


def test_memory_backend_load_honours_deadline(clock):
    backend = MemorySessionBackend(clock=clock)
    backend.set_fields("abc", {"documentText": '"x"'}, expire_at=clock.now + 10)

    clock.advance(10)
    assert backend.load("abc") == {"documentText": '"x"'}
    clock.advance(1)
    assert backend.load("abc") == {}
    assert "abc" not in backend._sessions


def test_memory_backend_keeps_marker_until_its_own_deadline(clock):
    backend = MemorySessionBackend(clock=clock)
    stores = SessionStoreFactory(backend, ttl_seconds=DAY, clock=clock)
    stores.open("s1").set_document_text("notes")

    clock.advance(DAY + 1)
    with pytest.raises(ExpiredSessionError):
        stores.open("s1").get_document_text()

    # Past the original key deadline; the marker carries its own
    clock.advance(DAY - 1)
    with pytest.raises(ExpiredSessionError):
        stores.open("s1").get_document_text()

    clock.advance(DAY)
    assert stores.open("s1").get_document_text() is None


def test_memory_backend_selected_explicitly():
    assert isinstance(make_session_backend("memory"), MemorySessionBackend)


def test_auto_backend_falls_back_to_memory(monkeypatch):
    import services.session_store as session_store

    monkeypatch.setattr(session_store, "get_redis", lambda url: None)
    assert isinstance(make_session_backend("auto", "redis://nowhere:1/0"), MemorySessionBackend)
    with pytest.raises(RuntimeError, match="unreachable"):
        make_session_backend("redis", "redis://nowhere:1/0")
