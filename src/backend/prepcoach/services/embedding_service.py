"""Embedding service -- OpenAI embeddings via LangChain.

Flow for a document:
  1. Chunks come from chunk_service (sentence-aligned, bounded word count)
  2. Each chunk is embedded in order, one call per chunk
  3. The first failure aborts the whole batch; nothing partial is returned
At query time a single message is embedded with the same model.
"""

import logging

import httpx
import openai
from langchain_openai import OpenAIEmbeddings

from prepcoach.core.config import settings
from prepcoach.core.errors import EmbeddingError, EmbeddingFailure, ValidationError
from prepcoach.models.schemas import EmbeddedChunk

logger = logging.getLogger(__name__)

_embeddings_model: OpenAIEmbeddings | None = None


def get_embeddings_model() -> OpenAIEmbeddings:
    """Get or create the OpenAI embeddings model."""
    global _embeddings_model
    if _embeddings_model is None:
        _embeddings_model = OpenAIEmbeddings(
            model=settings.embedding_model,
            api_key=settings.openai_api_key,
            request_timeout=settings.openai_timeout,
            max_retries=0,
        )
    return _embeddings_model


def classify_failure(exc: Exception) -> EmbeddingFailure:
    """Map an exception raised by the embedding client to a failure kind."""
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return EmbeddingFailure.AUTH_FAILURE
    if isinstance(exc, openai.RateLimitError):
        return EmbeddingFailure.RATE_LIMITED
    # APITimeoutError is a subclass of APIConnectionError
    if isinstance(exc, (openai.APIConnectionError, httpx.TransportError, OSError)):
        return EmbeddingFailure.UNREACHABLE
    return EmbeddingFailure.UNKNOWN


async def embed_text(text: str) -> list[float]:
    """Embed a single text (a chunk or a user query)."""
    if not text or not text.strip():
        raise ValidationError("cannot embed empty text", user_message="Text to embed must not be empty.")

    model = get_embeddings_model()
    try:
        vector = await model.aembed_query(text)
    except Exception as exc:
        kind = classify_failure(exc)
        logger.error("Embedding request failed (%s): %s", kind.value, exc)
        raise EmbeddingError(kind, str(exc)) from exc

    if not vector:
        raise EmbeddingError(EmbeddingFailure.UNKNOWN, "embedding service returned an empty vector")
    return list(vector)


async def embed_chunks(chunks: list[str]) -> list[EmbeddedChunk]:
    """Embed every chunk in order, aborting on the first failure.

    The raised EmbeddingError carries the index of the chunk that failed.
    """
    embedded: list[EmbeddedChunk] = []
    dimension: int | None = None

    for index, chunk in enumerate(chunks):
        logger.info("Generating embedding for chunk %d/%d", index + 1, len(chunks))
        try:
            vector = await embed_text(chunk)
        except EmbeddingError as exc:
            exc.chunk_index = index
            logger.error("Failed to embed chunk %d of %d", index, len(chunks))
            raise

        if dimension is None:
            dimension = len(vector)
        elif len(vector) != dimension:
            raise EmbeddingError(
                EmbeddingFailure.UNKNOWN,
                f"chunk {index} has dimension {len(vector)}, expected {dimension}",
                chunk_index=index,
            )

        embedded.append(EmbeddedChunk(position=index, text=chunk, embedding=vector))

    return embedded
