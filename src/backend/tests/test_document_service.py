"""Tests for the upload-and-index pipeline and document management."""

import httpx
import openai
import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from prepcoach.core.errors import EmbeddingError, ExtractionError, NotFoundError, ValidationError
from prepcoach.models.orm import Chunk, Document
from prepcoach.models.schemas import DocumentType
from prepcoach.services import document_service

USER = "user-1"
RESUME = "Built a billing pipeline in a prior role. Led migrations to PostgreSQL."
JD = "Looking for someone to build billing pipelines. Kafka experience is a plus."


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_upload_indexes_document(db, fake_embeddings, fake_storage, make_pdf):
    summary = await document_service.upload_document(db, USER, "resume", "resume.pdf", make_pdf(RESUME))

    assert summary.type == DocumentType.resume
    assert summary.filename == "resume.pdf"
    assert summary.chunks_count == 1

    document = await document_service.get_document(db, USER, DocumentType.resume)
    assert document is not None
    assert "billing pipeline" in document.raw_text
    assert document.storage_ref in fake_storage.objects
    assert [c.position for c in document.chunks] == [0]
    assert fake_embeddings.calls == [document.chunks[0].text]
    assert document.chunks[0].embedding


@pytest.mark.asyncio
async def test_chunk_order_matches_extraction(db, fake_embeddings, fake_storage, make_pdf, monkeypatch):
    monkeypatch.setattr(document_service.settings, "chunk_max_words", 5)
    text = "One two three four. Five six seven eight. Nine ten eleven twelve."
    summary = await document_service.upload_document(db, USER, "jd", "jd.pdf", make_pdf(text))

    document = await document_service.get_document(db, USER, DocumentType.jd)
    assert summary.chunks_count == 3
    assert [c.position for c in document.chunks] == [0, 1, 2]
    assert document.chunks[0].text.startswith("One")
    assert document.chunks[2].text.startswith("Nine")
    assert fake_embeddings.calls == [c.text for c in document.chunks]


@pytest.mark.asyncio
async def test_second_upload_replaces_first(db, fake_embeddings, fake_storage, make_pdf):
    first = await document_service.upload_document(db, USER, "resume", "old.pdf", make_pdf(RESUME))
    old_ref = (await document_service.get_document(db, USER, DocumentType.resume)).storage_ref

    second = await document_service.upload_document(
        db, USER, "resume", "new.pdf", make_pdf("Shipped a search engine. Mentored juniors.")
    )

    result = await db.execute(select(Document).where(Document.user_id == USER, Document.doc_type == "resume"))
    documents = result.scalars().all()
    assert len(documents) == 1
    assert documents[0].id == second.id != first.id
    assert documents[0].filename == "new.pdf"
    assert all("search engine" in c.text or "Mentored" in c.text for c in documents[0].chunks)
    assert await _count(db, Chunk) == second.chunks_count
    assert fake_storage.deleted == [old_ref]


@pytest.mark.asyncio
async def test_replacement_survives_storage_delete_failure(db, fake_embeddings, fake_storage, make_pdf):
    await document_service.upload_document(db, USER, "resume", "old.pdf", make_pdf(RESUME))
    fake_storage.fail_delete = True

    summary = await document_service.upload_document(db, USER, "resume", "new.pdf", make_pdf(RESUME))

    document = await document_service.get_document(db, USER, DocumentType.resume)
    assert document.id == summary.id
    assert await _count(db, Document) == 1


@pytest.mark.asyncio
async def test_embedding_failure_persists_nothing(db, fake_embeddings, fake_storage, make_pdf, monkeypatch):
    monkeypatch.setattr(document_service.settings, "chunk_max_words", 4)
    request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
    fake_embeddings.fail_at[1] = openai.RateLimitError(
        "slow down", response=httpx.Response(429, request=request), body=None
    )

    with pytest.raises(EmbeddingError) as exc_info:
        await document_service.upload_document(
            db, USER, "jd", "jd.pdf", make_pdf("One two three. Four five six. Seven eight nine.")
        )

    assert exc_info.value.chunk_index == 1
    assert await _count(db, Document) == 0
    assert await _count(db, Chunk) == 0
    assert fake_storage.objects == {}


@pytest.mark.asyncio
async def test_failed_replacement_keeps_previous_document(db, fake_embeddings, fake_storage, make_pdf):
    original = await document_service.upload_document(db, USER, "resume", "old.pdf", make_pdf(RESUME))
    fake_embeddings.fail_at[len(fake_embeddings.calls)] = RuntimeError("model exploded")

    with pytest.raises(EmbeddingError):
        await document_service.upload_document(db, USER, "resume", "new.pdf", make_pdf(RESUME))

    document = await document_service.get_document(db, USER, DocumentType.resume)
    assert document.id == original.id
    assert fake_storage.deleted == []


@pytest.mark.asyncio
async def test_unparseable_upload_rejected(db, fake_embeddings, fake_storage):
    with pytest.raises(ExtractionError):
        await document_service.upload_document(db, USER, "resume", "resume.pdf", b"not a pdf at all")
    assert fake_embeddings.calls == []
    assert await _count(db, Document) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("doc_type", ["cover_letter", "", None])
async def test_invalid_type_rejected(db, fake_embeddings, fake_storage, make_pdf, doc_type):
    with pytest.raises(ValidationError):
        await document_service.upload_document(db, USER, doc_type, "resume.pdf", make_pdf(RESUME))


@pytest.mark.asyncio
async def test_non_pdf_filename_rejected(db, fake_embeddings, fake_storage, make_pdf):
    with pytest.raises(ValidationError):
        await document_service.upload_document(db, USER, "resume", "resume.docx", make_pdf(RESUME))


@pytest.mark.asyncio
async def test_non_pdf_content_type_rejected(db, fake_embeddings, fake_storage, make_pdf):
    with pytest.raises(ValidationError) as exc_info:
        await document_service.upload_document(
            db, USER, "resume", "resume.pdf", make_pdf(RESUME), content_type="text/plain"
        )

    assert exc_info.value.user_message == "Only PDF files are allowed"
    assert fake_embeddings.calls == []
    assert fake_storage.objects == {}


@pytest.mark.asyncio
async def test_oversized_upload_rejected_before_extraction(db, fake_embeddings, fake_storage, make_pdf, monkeypatch):
    pdf = make_pdf(RESUME)
    monkeypatch.setattr(document_service.settings, "max_upload_bytes", len(pdf) - 1)

    def fail_extract(pdf_bytes):
        raise AssertionError("extraction must not run for oversized uploads")

    monkeypatch.setattr(document_service.pdf_service, "extract_text_from_pdf", fail_extract)

    with pytest.raises(ValidationError) as exc_info:
        await document_service.upload_document(
            db, USER, "resume", "resume.pdf", pdf, content_type="application/pdf"
        )

    assert exc_info.value.user_message == "File too large"
    assert await _count(db, Document) == 0
    assert fake_storage.objects == {}


@pytest.mark.asyncio
async def test_upload_at_size_limit_accepted(db, fake_embeddings, fake_storage, make_pdf, monkeypatch):
    pdf = make_pdf(RESUME)
    monkeypatch.setattr(document_service.settings, "max_upload_bytes", len(pdf))

    summary = await document_service.upload_document(db, USER, "resume", "resume.pdf", pdf)

    assert summary.chunks_count == 1


@pytest.mark.asyncio
async def test_failed_lookup_leaves_no_stored_object(db, fake_embeddings, fake_storage, make_pdf, monkeypatch):
    async def broken_lookup(db, user_id, doc_type):
        raise SQLAlchemyError("connection reset")

    monkeypatch.setattr(document_service, "get_document", broken_lookup)

    with pytest.raises(SQLAlchemyError):
        await document_service.upload_document(db, USER, "resume", "resume.pdf", make_pdf(RESUME))

    assert fake_embeddings.calls == []
    assert fake_storage.objects == {}


@pytest.mark.asyncio
async def test_documents_are_scoped_to_owner(db, fake_embeddings, fake_storage, make_pdf):
    await document_service.upload_document(db, USER, "resume", "resume.pdf", make_pdf(RESUME))
    await document_service.upload_document(db, "user-2", "resume", "resume.pdf", make_pdf(RESUME))

    assert await _count(db, Document) == 2
    assert len(await document_service.list_documents(db, USER)) == 1


@pytest.mark.asyncio
async def test_list_and_check(db, fake_embeddings, fake_storage, make_pdf):
    check = await document_service.check_documents(db, USER)
    assert (check.has_resume, check.has_jd, check.both_uploaded) == (False, False, False)

    await document_service.upload_document(db, USER, "resume", "resume.pdf", make_pdf(RESUME))
    check = await document_service.check_documents(db, USER)
    assert (check.has_resume, check.has_jd, check.both_uploaded) == (True, False, False)

    await document_service.upload_document(db, USER, "jd", "jd.pdf", make_pdf(JD))
    check = await document_service.check_documents(db, USER)
    assert check.both_uploaded

    listed = await document_service.list_documents(db, USER)
    assert {d.type for d in listed} == {DocumentType.resume, DocumentType.jd}


@pytest.mark.asyncio
async def test_delete_document(db, fake_embeddings, fake_storage, make_pdf):
    summary = await document_service.upload_document(db, USER, "jd", "jd.pdf", make_pdf(JD))
    ref = (await document_service.get_document(db, USER, DocumentType.jd)).storage_ref

    await document_service.delete_document(db, USER, summary.id)

    assert await _count(db, Document) == 0
    assert await _count(db, Chunk) == 0
    assert fake_storage.deleted == [ref]


@pytest.mark.asyncio
async def test_delete_proceeds_when_storage_fails(db, fake_embeddings, fake_storage, make_pdf):
    summary = await document_service.upload_document(db, USER, "jd", "jd.pdf", make_pdf(JD))
    fake_storage.fail_delete = True

    await document_service.delete_document(db, USER, summary.id)

    assert await _count(db, Document) == 0


@pytest.mark.asyncio
async def test_delete_other_users_document_not_found(db, fake_embeddings, fake_storage, make_pdf):
    summary = await document_service.upload_document(db, USER, "jd", "jd.pdf", make_pdf(JD))

    with pytest.raises(NotFoundError):
        await document_service.delete_document(db, "intruder", summary.id)
    assert await _count(db, Document) == 1
