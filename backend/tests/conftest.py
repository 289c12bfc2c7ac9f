"""pytest configuration — sets env vars before any app module is imported."""

import os

# In-process sessions for tests; never probe a real Redis
os.environ["SESSION_BACKEND"] = "memory"
os.environ["INVALIDATE_ON_UPLOAD"] = "true"
os.environ.setdefault("OPENAI_API_KEY", "test-only-key")

import json

import fitz
import pytest
from httpx import AsyncClient, ASGITransport


# ── Fakes ─────────────────────────────────────────────────────────────────────

class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def summary_payload(n: int = 1) -> dict:
    return {
        "title": f"Photosynthesis overview #{n}",
        "overview": "How plants turn light into chemical energy.",
        "keyPoints": ["Chlorophyll absorbs light", "Glucose is produced", "Oxygen is released"],
    }


def flashcards_payload(count: int = 10) -> dict:
    return {
        "flashcards": [
            {
                "id": i,
                "question": f"What is term {i}?",
                "answer": f"Definition {i}",
                "hint": f"Starts with T{i}",
            }
            for i in range(1, count + 1)
        ]
    }


def quiz_payload(count: int = 5, answer_id: int = 2) -> dict:
    return {
        "questions": [
            {
                "id": q,
                "question": f"Question {q}?",
                "answerOptions": [
                    {"id": o, "option": f"Option {o}", "explanation": f"Because {o}"}
                    for o in range(1, 5)
                ],
                "answerId": answer_id,
            }
            for q in range(1, count + 1)
        ]
    }


class FakeLLM:
    """Stands in for LLMService; returns canned JSON strings per schema name.

    A response may be a value, an exception instance (raised), or a callable
    taking the 1-based call number for that schema.
    """

    def __init__(self):
        self.calls = []
        self.responses = {
            "summary": lambda n: json.dumps(summary_payload(n)),
            "flashcards": lambda n: json.dumps(flashcards_payload()),
            "quiz": lambda n: json.dumps(quiz_payload()),
        }

    def calls_for(self, schema_name: str) -> list:
        return [c for c in self.calls if c["schema_name"] == schema_name]

    async def generate_json(self, prompt, schema_name, schema, max_tokens=4096):
        self.calls.append({"prompt": prompt, "schema_name": schema_name, "max_tokens": max_tokens})
        response = self.responses[schema_name]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(len(self.calls_for(schema_name)))
        return response


def make_pdf(*page_texts: str) -> bytes:
    """Build a small PDF in memory; an empty string gives a blank page."""
    doc = fitz.open()
    for text in page_texts:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=12)
    data = doc.tobytes()
    doc.close()
    return data


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def stores(clock):
    from services.session_store import MemorySessionBackend, SessionStoreFactory

    return SessionStoreFactory(MemorySessionBackend(clock=clock), ttl_seconds=86400, clock=clock)


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
async def client(stores, llm):
    """Return an AsyncClient wired to the FastAPI app with in-memory sessions and a fake LLM."""
    # Import here so env vars are already set
    from main import app
    from dependencies import get_llm_service, get_session_stores

    app.dependency_overrides[get_session_stores] = lambda: stores
    app.dependency_overrides[get_llm_service] = lambda: llm

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
