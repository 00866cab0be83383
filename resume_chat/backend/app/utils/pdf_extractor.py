import logging
from typing import Optional

from app.services.pdf_text_extractor import (
    DocumentRecord,
    InvalidDocument,
    PasswordRequired,
    PdfExtractionError,
    SourceUnavailable,
    extract_pdf_text,
)

logger = logging.getLogger(__name__)

EXTRACTION_FAILED_MESSAGE = "Could not extract text from the uploaded file."


async def extract_resume_document(pdf_content: bytes) -> Optional[DocumentRecord]:
    """Extract a structured document from PDF bytes, falling back to text-only mode.

    Returns None when no text could be extracted; the upload itself still succeeds.
    """
    try:
        return await extract_pdf_text(pdf_content)
    except (InvalidDocument, PasswordRequired, SourceUnavailable) as e:
        logger.error(f"Error extracting text from PDF: {e}")
        return None
    except PdfExtractionError as e:
        logger.warning(f"Structured extraction failed ({e}), retrying text-only")

    try:
        document = await extract_pdf_text(pdf_content, with_tables=False)
        logger.info(f"Text-only extraction recovered {len(document.full_text)} characters")
        return document
    except PdfExtractionError as e:
        logger.error(f"Error extracting text from PDF: {e}")
        return None
