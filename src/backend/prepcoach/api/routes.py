"""API routes. Every operation is scoped to the authenticated user."""

import uuid

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from prepcoach.core.auth import UserContext, get_current_user
from prepcoach.core.config import settings
from prepcoach.core.database import get_db
from prepcoach.models.schemas import (
    Ack,
    DocumentCheck,
    DocumentListItem,
    DocumentSummary,
    QueryRequest,
    QueryResult,
    SessionHistory,
    SessionStart,
)
from prepcoach.services import document_service, session_service

router = APIRouter()


# --- Document endpoints ---


@router.post("/documents/upload", response_model=DocumentSummary, status_code=status.HTTP_201_CREATED, tags=["Documents"])
async def upload_document(
    file: UploadFile = File(..., description="PDF file"),
    doc_type: str = Form(..., alias="type", description='Document type: "resume" or "jd"', examples=["resume"]),
    user: UserContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Upload a resume or job description PDF. Replaces any earlier document of the same type."""
    # one byte past the limit is enough to reject an oversized upload
    pdf_bytes = await file.read(settings.max_upload_bytes + 1)
    return await document_service.upload_document(
        db=db,
        user_id=user.user_id,
        doc_type=doc_type,
        filename=file.filename or "",
        pdf_bytes=pdf_bytes,
        content_type=file.content_type,
    )


@router.get("/documents", response_model=list[DocumentListItem], tags=["Documents"])
async def list_documents(
    user: UserContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await document_service.list_documents(db, user.user_id)


@router.get("/documents/check", response_model=DocumentCheck, tags=["Documents"])
async def check_documents(
    user: UserContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Report whether both documents needed for a session are uploaded."""
    return await document_service.check_documents(db, user.user_id)


@router.delete("/documents/{document_id}", response_model=Ack, tags=["Documents"])
async def delete_document(
    document_id: uuid.UUID,
    user: UserContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await document_service.delete_document(db, user.user_id, document_id)
    return Ack(message="Document deleted successfully")


# --- Chat endpoints ---


@router.post("/chat/start", response_model=SessionStart, tags=["Chat"])
async def start_chat(
    replace_previous: bool = Query(default=True, description="Delete earlier sessions instead of archiving them"),
    user: UserContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Start a session with three questions generated from the job description."""
    return await session_service.start_session(db, user.user_id, replace_previous=replace_previous)


@router.post("/chat/query", response_model=QueryResult, tags=["Chat"])
async def query_chat(
    body: QueryRequest,
    user: UserContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Score an answer using the most relevant resume and job description passages."""
    return await session_service.submit_query(
        db,
        user.user_id,
        message=body.message,
        question_context=body.question_context,
    )


@router.get("/chat/history", response_model=SessionHistory, tags=["Chat"])
async def chat_history(
    user: UserContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await session_service.get_history(db, user.user_id)


@router.post("/chat/end", response_model=Ack, tags=["Chat"])
async def end_chat(
    user: UserContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await session_service.end_session(db, user.user_id)
    return Ack(message="Chat session ended")
