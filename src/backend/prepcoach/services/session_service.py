"""Orchestrator for practice sessions: start, query, end, history.

A user has at most one active session. ``start`` either deletes the user's
earlier sessions or archives them (``replace_previous=False``); ``query``
runs retrieval and evaluation against the active one.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from prepcoach.core.config import settings
from prepcoach.core.errors import NoActiveSessionError, PreconditionError, ValidationError
from prepcoach.models.orm import ChatSession, Document, Message
from prepcoach.models.schemas import (
    Citation,
    DocumentType,
    LabeledVector,
    MessageOut,
    MessageRole,
    QueryResult,
    RankedPassage,
    SessionHistory,
    SessionStart,
)
from prepcoach.prompts.interview import PROMPT_VERSION
from prepcoach.services import embedding_service, llm_service, ranking_service
from prepcoach.services.document_service import get_document

logger = logging.getLogger(__name__)

SESSION_STARTED_MARKER = "Interview session started"


async def get_active_session(db: AsyncSession, user_id: str) -> ChatSession | None:
    result = await db.execute(
        select(ChatSession)
        .where(ChatSession.user_id == user_id, ChatSession.is_active.is_(True))
        .order_by(ChatSession.created_at.desc())
    )
    return result.scalars().first()


async def _load_documents(db: AsyncSession, user_id: str) -> tuple[Document, Document]:
    resume = await get_document(db, user_id, DocumentType.resume)
    jd = await get_document(db, user_id, DocumentType.jd)
    missing = [t.value for t, doc in ((DocumentType.resume, resume), (DocumentType.jd, jd)) if doc is None]
    if missing:
        raise PreconditionError(f"user {user_id} is missing documents: {', '.join(missing)}")
    return resume, jd


def _labeled_chunks(document: Document) -> list[LabeledVector]:
    source = DocumentType(document.doc_type)
    return [
        LabeledVector(source=source, position=c.position, text=c.text, embedding=c.embedding)
        for c in document.chunks
    ]


def build_citations(passages: list[RankedPassage], excerpt_chars: int = 200) -> list[Citation]:
    """Shape ranked passages for the caller: 1-based id, excerpt, 3-decimal similarity."""
    citations = []
    for i, passage in enumerate(passages, start=1):
        text = passage.text
        if len(text) > excerpt_chars:
            text = text[:excerpt_chars] + "..."
        citations.append(
            Citation(id=i, source=passage.source, text=text, similarity=f"{passage.similarity:.3f}")
        )
    return citations


async def start_session(
    db: AsyncSession,
    user_id: str,
    replace_previous: bool = True,
) -> SessionStart:
    """Start a new practice session seeded with three generated questions.

    Requires both a resume and a job description. Questions are generated
    before earlier sessions are touched, so a completion failure leaves
    them intact.
    """
    _, jd = await _load_documents(db, user_id)

    questions = await llm_service.generate_questions(jd.raw_text)

    result = await db.execute(select(ChatSession).where(ChatSession.user_id == user_id))
    previous = list(result.scalars().all())
    for old in previous:
        if replace_previous:
            await db.delete(old)
        else:
            old.is_active = False
    await db.flush()

    chat = ChatSession(
        user_id=user_id,
        is_active=True,
        messages=[
            Message(position=0, role=MessageRole.system.value, content=SESSION_STARTED_MARKER),
            Message(
                position=1,
                role=MessageRole.assistant.value,
                content=questions,
                prompt_version=PROMPT_VERSION,
            ),
        ],
    )
    db.add(chat)
    await db.commit()

    logger.info(
        "Started session %s for user %s (%s %d earlier sessions)",
        chat.id, user_id, "deleted" if replace_previous else "archived", len(previous),
    )
    return SessionStart(chat_id=chat.id, questions=questions)


async def submit_query(
    db: AsyncSession,
    user_id: str,
    message: str,
    question_context: str | None = None,
) -> QueryResult:
    """Evaluate one answer: embed, retrieve, score, and record both messages."""
    if not message or not message.strip():
        raise ValidationError("empty query message", user_message="Message is required")

    chat = await get_active_session(db, user_id)
    if chat is None:
        raise NoActiveSessionError(f"no active session for user {user_id}")

    resume, jd = await _load_documents(db, user_id)

    query_vector = await embedding_service.embed_text(message)
    passages = _labeled_chunks(resume) + _labeled_chunks(jd)
    try:
        top_passages = ranking_service.rank_passages(
            query_vector, passages, top_k=settings.retrieval_top_k
        )
    except ValueError as exc:
        # stored chunks came from a different embedding model than the query
        raise PreconditionError(
            f"cannot rank passages for user {user_id}: {exc}",
            user_message=(
                "Your documents were indexed with a different embedding model. "
                "Please re-upload your resume and job description."
            ),
        ) from exc

    evaluation = await llm_service.evaluate_response(question_context, message, top_passages)
    citations = build_citations(top_passages, settings.citation_excerpt_chars)

    next_position = len(chat.messages)
    chat.messages.append(
        Message(position=next_position, role=MessageRole.user.value, content=message)
    )
    chat.messages.append(
        Message(
            position=next_position + 1,
            role=MessageRole.assistant.value,
            content=evaluation.text,
            score=evaluation.score,
            citations=[c.model_dump(mode="json") for c in citations],
            prompt_version=PROMPT_VERSION,
        )
    )
    await db.commit()

    logger.info("Session %s: scored answer %s", chat.id, evaluation.score)
    return QueryResult(
        response=evaluation.text,
        score=evaluation.score,
        feedback=evaluation.feedback,
        suggestion=evaluation.suggestion,
        citations=citations,
    )


async def end_session(db: AsyncSession, user_id: str) -> bool:
    """Deactivate the active session. Returns False when there was none."""
    chat = await get_active_session(db, user_id)
    if chat is None:
        return False
    chat.is_active = False
    await db.commit()
    logger.info("Ended session %s for user %s", chat.id, user_id)
    return True


async def get_history(db: AsyncSession, user_id: str) -> SessionHistory:
    chat = await get_active_session(db, user_id)
    if chat is None:
        return SessionHistory()
    return SessionHistory(
        chat_id=chat.id,
        messages=[
            MessageOut(
                role=MessageRole(m.role),
                content=m.content,
                score=m.score,
                citations=[Citation.model_validate(c) for c in m.citations] if m.citations else None,
                timestamp=m.created_at,
            )
            for m in chat.messages
        ],
    )
