"""Shared pytest fixtures: in-memory database and fakes for external services."""

import os

# Point the app at SQLite before any prepcoach module builds its engine
os.environ.setdefault("PREPCOACH_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PREPCOACH_OPENAI_API_KEY", "sk-test")

import re
import zlib
from collections.abc import AsyncGenerator

import fitz
import pytest
import pytest_asyncio
from langchain_core.messages import AIMessage
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from prepcoach.core.errors import StorageError
from prepcoach.models.orm import Base
from prepcoach.services import embedding_service, llm_service, storage_service
from prepcoach.services.storage_service import StoredObject

EMBEDDING_DIM = 64

DEFAULT_EVALUATION = """Score: 7
Feedback: Clear answer that ties your billing work to the role.
Suggestion: Quantify the impact of the pipeline you built."""

DEFAULT_QUESTIONS = """1. Describe a billing pipeline you have built.
2. How do you test data pipelines?
3. How would you handle late-arriving events?"""


def hashed_embedding(text: str) -> list[float]:
    """Deterministic bag-of-words vector; the last slot keeps it non-zero."""
    vector = [0.0] * (EMBEDDING_DIM + 1)
    for token in re.findall(r"[a-z]+", text.lower()):
        vector[zlib.crc32(token.encode()) % EMBEDDING_DIM] += 1.0
    vector[EMBEDDING_DIM] = 1.0
    return vector


class FakeEmbeddings:
    """Stands in for OpenAIEmbeddings.

    ``vectors`` pins exact vectors for given texts; ``fail_at`` maps a call
    index to the exception raised on that call.
    """

    def __init__(self):
        self.calls: list[str] = []
        self.vectors: dict[str, list[float]] = {}
        self.fail_at: dict[int, Exception] = {}

    async def aembed_query(self, text: str) -> list[float]:
        index = len(self.calls)
        self.calls.append(text)
        if index in self.fail_at:
            raise self.fail_at[index]
        return self.vectors.get(text, hashed_embedding(text))


class FakeChatModel:
    """Stands in for ChatOpenAI; answers question prompts and evaluation prompts."""

    def __init__(self):
        self.prompts: list[list] = []
        self.questions = DEFAULT_QUESTIONS
        self.evaluation = DEFAULT_EVALUATION
        self.error: Exception | None = None

    async def ainvoke(self, messages):
        self.prompts.append(messages)
        if self.error is not None:
            raise self.error
        if "interview questions" in messages[-1].content:
            return AIMessage(content=self.questions)
        return AIMessage(content=self.evaluation)


class FakeStorage:
    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_upload = False
        self.fail_delete = False
        self._counter = 0

    async def upload_pdf(self, pdf_bytes: bytes, filename: str, folder: str = "documents") -> StoredObject:
        if self.fail_upload:
            raise StorageError("upload refused")
        self._counter += 1
        ref = f"{folder}/{self._counter}-{filename}"
        self.objects[ref] = pdf_bytes
        return StoredObject(ref=ref, url=f"https://files.example.com/{ref}")

    async def delete_pdf(self, ref: str) -> None:
        if self.fail_delete:
            raise StorageError("delete refused")
        self.deleted.append(ref)
        self.objects.pop(ref, None)


@pytest.fixture
def fake_embeddings(monkeypatch) -> FakeEmbeddings:
    fake = FakeEmbeddings()
    monkeypatch.setattr(embedding_service, "get_embeddings_model", lambda: fake)
    return fake


@pytest.fixture
def fake_llm(monkeypatch) -> FakeChatModel:
    fake = FakeChatModel()
    monkeypatch.setattr(llm_service, "get_llm", lambda: fake)
    return fake


@pytest.fixture
def fake_storage(monkeypatch) -> FakeStorage:
    fake = FakeStorage()
    monkeypatch.setattr(storage_service, "upload_pdf", fake.upload_pdf)
    monkeypatch.setattr(storage_service, "delete_pdf", fake.delete_pdf)
    return fake


def build_pdf(text: str) -> bytes:
    """Render text onto a single-page PDF with PyMuPDF."""
    doc = fitz.open()
    page = doc.new_page()
    page.insert_textbox(fitz.Rect(50, 50, 550, 800), text, fontsize=10)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session

    await engine.dispose()
