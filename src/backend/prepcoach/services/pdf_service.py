"""PDF text extraction using PyMuPDF."""

import logging

import fitz  # PyMuPDF

from prepcoach.core.errors import ExtractionError

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"


def extract_text_from_pdf(pdf_bytes: bytes) -> str:
    """Extract all text from a PDF file's bytes.

    Raises ExtractionError for empty input, non-PDF input, encrypted or
    corrupt documents, and PDFs that yield no text (e.g. scanned images).
    """
    if not pdf_bytes:
        raise ExtractionError("empty", "PDF file is empty")

    if not pdf_bytes.startswith(PDF_MAGIC):
        logger.warning("Rejected upload with header %r", pdf_bytes[:5])
        raise ExtractionError("not_pdf", "File is not a valid PDF (invalid header)")

    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as exc:
        logger.warning("PyMuPDF could not open document: %s", exc)
        raise ExtractionError("parse_failed", f"Failed to parse PDF file: {exc}") from exc

    try:
        if doc.needs_pass:
            raise ExtractionError("encrypted", "PDF is password protected")
        pages = [page.get_text() for page in doc]
    except ExtractionError:
        raise
    except Exception as exc:
        logger.warning("PyMuPDF failed while reading pages: %s", exc)
        raise ExtractionError("parse_failed", f"Failed to parse PDF file: {exc}") from exc
    finally:
        doc.close()

    text = "\n".join(pages).strip()
    if not text:
        raise ExtractionError("no_text", "Could not extract text from PDF; it may be image-based")

    logger.info("Extracted %d characters from %d pages", len(text), len(pages))
    return text
