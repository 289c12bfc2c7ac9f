"""
services/content_service.py — Summary, flashcard and quiz generation.

All three generators follow the same path: read the session's document text,
embed it in a fixed prompt, ask the model for JSON matching a strict schema,
check the shape, write the result back to the session, return it.
"""

import json
import re
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from config import Config
from exceptions import AIResponseError, NotFoundError
from logging_config import get_logger
from schemas import (
    FLASHCARD_BATCH_SIZE, QUIZ_BATCH_SIZE, QUIZ_OPTION_COUNT,
    CONTENT_ADAPTERS, ContentKind,
)

logger = get_logger(__name__)

NO_DOCUMENT_MESSAGE = "No document text found in session. Please upload a document first."

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


# ── JSON schemas sent to the model ────────────────────────────────────────────

SUMMARY_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "overview": {"type": "string"},
        "keyPoints": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["title", "overview", "keyPoints"],
    "additionalProperties": False,
}

FLASHCARDS_SCHEMA = {
    "type": "object",
    "properties": {
        "flashcards": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer"},
                    "question": {"type": "string"},
                    "answer": {"type": "string"},
                    "hint": {"type": "string"},
                },
                "required": ["id", "question", "answer", "hint"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["flashcards"],
    "additionalProperties": False,
}

QUIZ_SCHEMA = {
    "type": "object",
    "properties": {
        "questions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer"},
                    "question": {"type": "string"},
                    "answerOptions": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "id": {"type": "integer"},
                                "option": {"type": "string"},
                                "explanation": {"type": "string"},
                            },
                            "required": ["id", "option", "explanation"],
                            "additionalProperties": False,
                        },
                    },
                    "answerId": {"type": "integer"},
                },
                "required": ["id", "question", "answerOptions", "answerId"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["questions"],
    "additionalProperties": False,
}


def parse_model_output(raw: Any) -> Any:
    """Decode model output that may be a JSON string, a fenced JSON string, or already structured."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise AIResponseError("No response from AI model")
    if not isinstance(raw, str):
        return raw
    m = _FENCE_RE.match(raw)
    text = m.group(1) if m else raw
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise AIResponseError(f"AI response is not valid JSON: {e}") from e


class ContentGenerator:
    """Base generator. Subclasses set the kind, schema and prompt."""

    kind: ContentKind
    schema_name: str
    schema: dict
    max_tokens: int = 4096

    def __init__(self, stores, llm, max_document_chars: int = Config.MAX_DOCUMENT_CHARS):
        self._stores = stores
        self._llm = llm
        self._max_chars = max_document_chars

    def build_prompt(self, document_text: str) -> str:
        raise NotImplementedError

    def extract(self, payload: Any):
        """Pull the content out of the decoded model payload, or raise AIResponseError."""
        raise NotImplementedError

    def _document_text(self, store) -> str:
        text = store.get_document_text()
        if not text or not text.strip():
            raise NotFoundError(NO_DOCUMENT_MESSAGE)
        if len(text) > self._max_chars:
            logger.warning(
                "%s.truncated session=%s chars=%d limit=%d",
                self.kind.value, store.session_id, len(text), self._max_chars,
            )
            text = text[: self._max_chars]
        return text

    def _validate(self, content):
        try:
            return CONTENT_ADAPTERS[self.kind].validate_python(content)
        except PydanticValidationError as e:
            raise AIResponseError(
                f"AI response does not contain a valid {self.kind.value} structure: "
                f"{e.error_count()} error(s), first: {e.errors()[0]['msg']}"
            ) from e

    async def generate(self, session_id: str):
        store = self._stores.open(session_id)
        text = self._document_text(store)

        raw = await self._llm.generate_json(
            self.build_prompt(text), self.schema_name, self.schema, max_tokens=self.max_tokens
        )
        content = self._validate(self.extract(parse_model_output(raw)))

        store.put_content(self.kind, content)
        logger.info("%s.generated session=%s", self.kind.value, session_id)
        return content

    async def get_or_generate(self, session_id: str, force: bool = False) -> Tuple[Any, bool]:
        """Return (content, cached). Cached content wins unless *force* is set."""
        if not force:
            cached = self._stores.open(session_id).get_content(self.kind)
            if cached:
                return cached, True
        return await self.generate(session_id), False


class SummaryGenerator(ContentGenerator):
    kind = ContentKind.SUMMARY
    schema_name = "summary"
    schema = SUMMARY_SCHEMA
    max_tokens = 4096

    def build_prompt(self, document_text: str) -> str:
        return (
            "Please create a clear and structured summary of the following text.\n\n"
            "Instructions:\n"
            "- Use simple language that is easy for students to understand\n"
            "- Break the information into short sections or bullet points\n"
            "- Highlight the most important concepts, definitions, and examples\n\n"
            f"Text: {document_text}"
        )

    def extract(self, payload: Any):
        if not isinstance(payload, dict) or not all(k in payload for k in ("title", "overview", "keyPoints")):
            raise AIResponseError("AI response does not contain a valid summary structure")
        if not isinstance(payload["keyPoints"], list):
            raise AIResponseError("AI response does not contain a valid summary structure")
        return payload


class FlashcardGenerator(ContentGenerator):
    kind = ContentKind.FLASHCARDS
    schema_name = "flashcards"
    schema = FLASHCARDS_SCHEMA
    max_tokens = 2048

    def build_prompt(self, document_text: str) -> str:
        return (
            f"Analyze the following text and identify the {FLASHCARD_BATCH_SIZE} most important "
            "concepts, terms, or key ideas.\n"
            "For each, create a flashcard with a concise question, a clear answer, and a helpful hint.\n"
            "The language used must be simple and easy for a student to understand.\n\n"
            f"Text: {document_text}"
        )

    def extract(self, payload: Any) -> List[dict]:
        cards = payload.get("flashcards") if isinstance(payload, dict) else None
        if not isinstance(cards, list):
            raise AIResponseError("AI response does not contain a valid flashcards array")
        return _batch(cards, FLASHCARD_BATCH_SIZE, "flashcards")


class QuizGenerator(ContentGenerator):
    kind = ContentKind.QUIZ
    schema_name = "quiz"
    schema = QUIZ_SCHEMA
    max_tokens = 4096

    def build_prompt(self, document_text: str) -> str:
        return (
            f"Given the following text, generate {QUIZ_BATCH_SIZE} multiple choice questions and answers "
            "based on the main concepts, terms and ideas.\n"
            f"For each question, create {QUIZ_OPTION_COUNT} answer choices with explanations as to why "
            "each option is the incorrect/correct choice.\n"
            "Set answerId to the id of the correct option.\n"
            "The language should be at the same level as the given text.\n"
            f"Text: {document_text}"
        )

    def extract(self, payload: Any) -> List[dict]:
        questions = payload.get("questions") if isinstance(payload, dict) else None
        if not isinstance(questions, list):
            raise AIResponseError("AI response does not contain a valid questions array")
        return _batch(questions, QUIZ_BATCH_SIZE, "quiz questions")


def _batch(items: list, size: int, label: str) -> list:
    if len(items) < size:
        raise AIResponseError(f"AI response returned {len(items)} {label}, expected {size}")
    if len(items) > size:
        logger.warning("%s.trimmed got=%d keep=%d", label.replace(" ", "_"), len(items), size)
    return items[:size]


GENERATORS = {
    ContentKind.SUMMARY: SummaryGenerator,
    ContentKind.FLASHCARDS: FlashcardGenerator,
    ContentKind.QUIZ: QuizGenerator,
}


def make_generator(kind: ContentKind, stores, llm, max_document_chars: Optional[int] = None) -> ContentGenerator:
    cls = GENERATORS[kind]
    if max_document_chars is None:
        return cls(stores, llm)
    return cls(stores, llm, max_document_chars=max_document_chars)
