"""Pydantic v2 request/response schemas and stored content types."""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator


FLASHCARD_BATCH_SIZE = 10
QUIZ_BATCH_SIZE = 5
QUIZ_OPTION_COUNT = 4


class StatusCode(str, Enum):
    OK = "200_OK"
    BAD_REQUEST = "400_BAD_REQUEST"
    UNAUTHORIZED = "401_UNAUTHORIZED"
    NOT_FOUND = "404_NOT_FOUND"
    PAYLOAD_TOO_LARGE = "413_PAYLOAD_TOO_LARGE"
    INTERNAL_SERVER_ERROR = "500_INTERNAL_SERVER_ERROR"

    @classmethod
    def from_http(cls, status: int) -> "StatusCode":
        return {
            200: cls.OK,
            400: cls.BAD_REQUEST,
            401: cls.UNAUTHORIZED,
            404: cls.NOT_FOUND,
            413: cls.PAYLOAD_TOO_LARGE,
        }.get(status, cls.INTERNAL_SERVER_ERROR)


class ContentKind(str, Enum):
    SUMMARY = "summary"
    FLASHCARDS = "flashcards"
    QUIZ = "quiz"


# ── Stored content ────────────────────────────────────────────────────────────

class Summary(BaseModel):
    title: str = Field(min_length=1)
    overview: str = Field(min_length=1)
    keyPoints: List[str]


class Flashcard(BaseModel):
    id: int
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    hint: str = Field(min_length=1)

    @field_validator("question", "answer", "hint")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class AnswerOption(BaseModel):
    id: int
    option: str = Field(min_length=1)
    explanation: str


class QuizQuestion(BaseModel):
    id: int
    question: str = Field(min_length=1)
    answerOptions: List[AnswerOption]
    answerId: int

    @model_validator(mode="after")
    def answer_is_an_option(self):
        if len(self.answerOptions) != QUIZ_OPTION_COUNT:
            raise ValueError(f"expected {QUIZ_OPTION_COUNT} answer options, got {len(self.answerOptions)}")
        if self.answerId not in {o.id for o in self.answerOptions}:
            raise ValueError(f"answerId {self.answerId} does not match any option id")
        return self


# One adapter per content kind; used to validate at the session store boundary.
CONTENT_ADAPTERS = {
    ContentKind.SUMMARY: TypeAdapter(Summary),
    ContentKind.FLASHCARDS: TypeAdapter(List[Flashcard]),
    ContentKind.QUIZ: TypeAdapter(List[QuizQuestion]),
}


# ── Requests ──────────────────────────────────────────────────────────────────

class UploadTextRequest(BaseModel):
    text: str = ""


# ── Responses ─────────────────────────────────────────────────────────────────

class ApiResponse(BaseModel):
    message: str
    code: StatusCode
    data: Optional[Any] = None


class UploadData(BaseModel):
    pageCount: int


class SessionStatus(BaseModel):
    hasDocument: bool
    createdAt: Optional[float] = None
    expiresAt: Optional[float] = None
    cached: dict[str, bool]
