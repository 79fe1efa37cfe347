"""Object storage for original PDF uploads (Cloudinary raw resources).

The SDK is blocking, so calls run in a worker thread.
"""

import asyncio
import io
import logging

import cloudinary
import cloudinary.uploader
from pydantic import BaseModel

from prepcoach.core.config import settings
from prepcoach.core.errors import StorageError

logger = logging.getLogger(__name__)

_configured = False


class StoredObject(BaseModel):
    ref: str
    url: str


def _ensure_configured() -> None:
    global _configured
    if _configured:
        return
    if not (settings.cloudinary_cloud_name and settings.cloudinary_api_key and settings.cloudinary_api_secret):
        raise StorageError("Cloudinary credentials are not configured")
    cloudinary.config(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        secure=True,
    )
    _configured = True


async def upload_pdf(pdf_bytes: bytes, filename: str, folder: str = "documents") -> StoredObject:
    """Upload PDF bytes and return the storage reference and URL."""
    _ensure_configured()
    try:
        result = await asyncio.to_thread(
            cloudinary.uploader.upload,
            io.BytesIO(pdf_bytes),
            resource_type="raw",
            folder=folder,
            filename_override=filename,
            use_filename=True,
            unique_filename=True,
        )
    except Exception as exc:
        logger.error("Cloudinary upload error: %s", exc)
        raise StorageError(f"Failed to upload file to Cloudinary: {exc}") from exc

    return StoredObject(ref=result["public_id"], url=result["secure_url"])


async def delete_pdf(ref: str) -> None:
    """Delete a stored PDF by reference. Raises StorageError on failure."""
    _ensure_configured()
    try:
        result = await asyncio.to_thread(cloudinary.uploader.destroy, ref, resource_type="raw")
    except Exception as exc:
        logger.error("Cloudinary delete error: %s", exc)
        raise StorageError(f"Failed to delete file from Cloudinary: {exc}") from exc

    if result.get("result") not in ("ok", "not found"):
        raise StorageError(f"Cloudinary refused to delete {ref}: {result}")


async def delete_pdf_quietly(ref: str | None) -> bool:
    """Best-effort delete; failures are logged, never raised.

    The database record decides whether a document exists, so a stray
    storage object must not block a logical delete.
    """
    if not ref:
        return False
    try:
        await delete_pdf(ref)
    except StorageError as exc:
        logger.warning("Failed to delete stored file %s: %s", ref, exc)
        return False
    logger.info("File deleted from storage: %s", ref)
    return True
