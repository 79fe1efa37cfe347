"""Pydantic schemas for pipeline results and API request/response validation."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


# --- Enums ---

class DocumentType(str, Enum):
    resume = "resume"
    jd = "jd"


class MessageRole(str, Enum):
    user = "user"
    assistant = "assistant"
    system = "system"


# --- Document schemas ---

class DocumentSummary(BaseModel):
    id: UUID
    type: DocumentType
    filename: str
    chunks_count: int
    created_at: datetime


class DocumentListItem(BaseModel):
    id: UUID
    type: DocumentType
    filename: str
    created_at: datetime
    updated_at: datetime


class DocumentCheck(BaseModel):
    has_resume: bool
    has_jd: bool
    both_uploaded: bool


# --- Retrieval ---

class EmbeddedChunk(BaseModel):
    """A chunk staged in memory with its vector, before persistence."""
    position: int = Field(ge=0)
    text: str
    embedding: list[float]


class LabeledVector(BaseModel):
    source: DocumentType
    position: int
    text: str
    embedding: list[float]


class RankedPassage(BaseModel):
    source: DocumentType
    position: int
    text: str
    similarity: float


class Citation(BaseModel):
    id: int = Field(ge=1, description="1-based position in the ranked list")
    source: DocumentType
    text: str
    similarity: str = Field(description="Cosine similarity formatted to 3 decimals", examples=["0.812"])


class EvaluationResult(BaseModel):
    """Structured fields parsed out of a free-text evaluation."""
    text: str
    score: int | None = Field(default=None, ge=1, le=10)
    feedback: str | None = None
    suggestion: str | None = None


# --- Session schemas ---

class QueryRequest(BaseModel):
    message: str = Field(min_length=1, examples=["I led the migration of our billing system to an event-driven pipeline."])
    question_context: str | None = Field(default=None, description="The question being answered", examples=["1. Describe a data pipeline you built."])


class SessionStart(BaseModel):
    chat_id: UUID
    questions: str
    message: str = "Chat session started. Here are your interview questions."


class QueryResult(BaseModel):
    response: str
    score: int | None
    feedback: str | None = None
    suggestion: str | None = None
    citations: list[Citation]


class MessageOut(BaseModel):
    role: MessageRole
    content: str
    score: int | None = None
    citations: list[Citation] | None = None
    timestamp: datetime


class SessionHistory(BaseModel):
    chat_id: UUID | None = None
    messages: list[MessageOut] = Field(default_factory=list)


class Ack(BaseModel):
    message: str
