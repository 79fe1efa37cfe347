"""Document pipeline: extract, chunk, embed, store, persist.

Everything is staged in memory first. The database is written once, after
every chunk has been embedded and the PDF is in object storage, and the
previous document of the same type is replaced in that same transaction.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from prepcoach.core.config import settings
from prepcoach.core.errors import ExtractionError, NotFoundError, StorageError, ValidationError
from prepcoach.models.orm import Chunk, Document
from prepcoach.models.schemas import DocumentCheck, DocumentListItem, DocumentSummary, DocumentType
from prepcoach.services import chunk_service, embedding_service, pdf_service, storage_service

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def parse_document_type(value: str | DocumentType | None) -> DocumentType:
    try:
        return DocumentType(value)
    except ValueError as exc:
        raise ValidationError(
            f"invalid document type {value!r}",
            user_message='Invalid document type. Must be "resume" or "jd"',
        ) from exc


async def get_document(db: AsyncSession, user_id: str, doc_type: DocumentType) -> Document | None:
    result = await db.execute(
        select(Document).where(Document.user_id == user_id, Document.doc_type == doc_type.value)
    )
    return result.scalar_one_or_none()


async def upload_document(
    db: AsyncSession,
    user_id: str,
    doc_type: str | DocumentType,
    filename: str,
    pdf_bytes: bytes,
    content_type: str | None = None,
) -> DocumentSummary:
    """Index an uploaded PDF and make it the user's document of this type.

    ``content_type`` is the multipart part's declared type, when known.
    Extraction or embedding failures abort before anything is stored.
    """
    doc_type = parse_document_type(doc_type)
    if not filename or not filename.lower().endswith(".pdf"):
        raise ValidationError(f"rejected filename {filename!r}", user_message="Please upload a PDF file")
    if content_type is not None and content_type != PDF_CONTENT_TYPE:
        raise ValidationError(f"rejected content type {content_type!r}", user_message="Only PDF files are allowed")
    if len(pdf_bytes) > settings.max_upload_bytes:
        raise ValidationError(
            f"upload of {len(pdf_bytes)} bytes exceeds {settings.max_upload_bytes}",
            user_message="File too large",
        )

    previous = await get_document(db, user_id, doc_type)
    previous_ref = previous.storage_ref if previous is not None else None

    logger.info("Parsing PDF %s (%d bytes) for user %s", filename, len(pdf_bytes), user_id)
    raw_text = pdf_service.extract_text_from_pdf(pdf_bytes)

    chunks = chunk_service.chunk_text(raw_text, max_words=settings.chunk_max_words)
    if not chunks:
        raise ExtractionError("no_text", "Extracted text produced no chunks")
    logger.info("Chunked %d characters into %d chunks", len(raw_text), len(chunks))

    embedded = await embedding_service.embed_chunks(chunks)

    stored = await storage_service.upload_pdf(pdf_bytes, filename, folder=f"documents/{user_id}")
    logger.info("Storage upload successful: %s", stored.ref)

    document = Document(
        user_id=user_id,
        doc_type=doc_type.value,
        filename=filename,
        file_url=stored.url,
        storage_ref=stored.ref,
        raw_text=raw_text,
        chunks=[Chunk(position=c.position, text=c.text, embedding=c.embedding) for c in embedded],
    )

    try:
        if previous is not None:
            await db.delete(previous)
            await db.flush()  # old row must be gone before the unique (user, type) insert
        db.add(document)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Failed to persist document for user %s: %s", user_id, exc)
        await storage_service.delete_pdf_quietly(stored.ref)
        raise StorageError(f"Failed to save document: {exc}") from exc

    if previous_ref:
        await storage_service.delete_pdf_quietly(previous_ref)

    logger.info("Document uploaded successfully: %s", document.id)
    return DocumentSummary(
        id=document.id,
        type=doc_type,
        filename=document.filename,
        chunks_count=len(embedded),
        created_at=document.created_at,
    )


async def list_documents(db: AsyncSession, user_id: str) -> list[DocumentListItem]:
    """List the user's documents, newest first."""
    result = await db.execute(
        select(Document).where(Document.user_id == user_id).order_by(Document.created_at.desc())
    )
    return [
        DocumentListItem(
            id=d.id,
            type=DocumentType(d.doc_type),
            filename=d.filename,
            created_at=d.created_at,
            updated_at=d.updated_at,
        )
        for d in result.scalars().all()
    ]


async def delete_document(db: AsyncSession, user_id: str, document_id: UUID) -> None:
    result = await db.execute(
        select(Document).where(Document.id == document_id, Document.user_id == user_id)
    )
    document = result.scalar_one_or_none()
    if document is None:
        raise NotFoundError(f"document {document_id} not found for user {user_id}")

    await storage_service.delete_pdf_quietly(document.storage_ref)

    await db.delete(document)
    await db.commit()
    logger.info("Deleted document %s for user %s", document_id, user_id)


async def check_documents(db: AsyncSession, user_id: str) -> DocumentCheck:
    resume = await get_document(db, user_id, DocumentType.resume)
    jd = await get_document(db, user_id, DocumentType.jd)
    return DocumentCheck(
        has_resume=resume is not None,
        has_jd=jd is not None,
        both_uploaded=resume is not None and jd is not None,
    )
