from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Any, List, Optional
import asyncio
import logging

from app.core.config import settings
from app.db.database import get_db
from app.db import models
from app.schemas.resume import (
    DocumentResponse,
    ResumeDetailResponse,
    ResumeResponse,
    ResumeSectionsResponse,
    TextStatisticsResponse,
    UploadResponse,
)
from app.services import storage
from app.services.ai_context import format_for_ai
from app.services.pdf_text_extractor import DocumentRecord, PdfExtractionError, extract_pdf_text
from app.utils.pdf_extractor import EXTRACTION_FAILED_MESSAGE, extract_resume_document
from app.utils.resume_sections import extract_resume_sections
from app.utils.text_statistics import get_text_statistics

router = APIRouter()
logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def _validate_upload(file: UploadFile, file_content: bytes) -> None:
    if file.content_type not in settings.ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=400, detail="Only PDF or DOC/DOCX files are allowed.")
    if not file_content:
        raise HTTPException(status_code=400, detail="Please choose a resume file (PDF or DOC/DOCX).")
    if len(file_content) > settings.MAX_UPLOAD_BYTES:
        limit_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
        raise HTTPException(status_code=400, detail=f"File size must be {limit_mb}MB or smaller.")


async def _save_resume_record(db: Session, resume: models.Resume) -> models.Resume:
    """Persist the metadata row, retrying transient database failures."""
    attempts = max(1, settings.RECORD_SAVE_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        try:
            db.add(resume)
            db.commit()
            db.refresh(resume)
            return resume
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"[UPLOAD] Saving resume metadata failed (attempt {attempt}/{attempts}): {e}")
            if attempt == attempts:
                raise
            await asyncio.sleep(settings.RECORD_SAVE_RETRY_DELAY)


def _get_resume_or_404(db: Session, resume_id: int) -> models.Resume:
    resume = db.query(models.Resume).filter(models.Resume.id == resume_id).first()
    if not resume:
        raise HTTPException(status_code=404, detail="Resume not found")
    return resume


async def _load_document(resume: models.Resume) -> DocumentRecord:
    """Re-download the stored PDF and run a fresh extraction."""
    if resume.content_type != PDF_CONTENT_TYPE:
        raise HTTPException(status_code=400, detail="Text extraction is only available for PDF resumes")
    try:
        data = await storage.download_file(resume.file_path)
    except Exception as e:
        logger.error(f"Error downloading resume {resume.id}: {e}")
        raise HTTPException(status_code=502, detail="Could not download the stored resume file")
    try:
        return await extract_pdf_text(data)
    except PdfExtractionError as e:
        logger.error(f"Error extracting resume {resume.id}: {e}")
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/", response_model=UploadResponse)
async def upload_resume(
    file: UploadFile = File(...),
    user_id: Optional[str] = Form(None),
    db: Session = Depends(get_db)
) -> Any:
    """Store a resume file, record its metadata, and extract its text for chat context."""
    file_content = await file.read()
    logger.info(f"[UPLOAD] Read {len(file_content)} bytes from uploaded file {file.filename}")
    _validate_upload(file, file_content)

    storage_path = storage.build_storage_path(file.filename, user_id)
    try:
        await storage.upload_file(storage_path, file_content, content_type=file.content_type)
    except Exception as e:
        logger.error(f"[UPLOAD] Storage upload failed for {storage_path}: {e}")
        raise HTTPException(status_code=502, detail="Failed to upload file. Please try again.")

    document = None
    extraction_error = None
    if file.content_type == PDF_CONTENT_TYPE:
        document = await extract_resume_document(file_content)
        if document is None:
            extraction_error = EXTRACTION_FAILED_MESSAGE

    db_resume = models.Resume(
        user_id=user_id,
        filename=file.filename,
        file_path=storage_path,
        content_type=file.content_type,
        size_bytes=len(file_content),
        source="ai-resume-parser",
        content=format_for_ai(document) if document else None,
        page_count=document.metadata.num_pages if document else None,
        table_count=len(document.tables) if document else None,
        extraction_error=extraction_error,
    )
    try:
        db_resume = await _save_resume_record(db, db_resume)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=500,
            detail="Uploaded file saved, but we could not save details. Please retry later.",
        )

    logger.info(f"[UPLOAD] Saved resume {db_resume.id} ({storage_path})")
    response = UploadResponse.model_validate(db_resume)
    if document:
        response.statistics = TextStatisticsResponse.from_stats(get_text_statistics(document))
    return response


@router.get("/", response_model=List[ResumeResponse])
def read_resumes(
    user_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
) -> Any:
    """List uploaded resumes, newest first."""
    query = db.query(models.Resume)
    if user_id:
        query = query.filter(models.Resume.user_id == user_id)
    return query.order_by(models.Resume.id.desc()).offset(skip).limit(limit).all()


@router.get("/{resume_id}", response_model=ResumeDetailResponse)
def read_resume(resume_id: int, db: Session = Depends(get_db)) -> Any:
    resume = _get_resume_or_404(db, resume_id)
    response = ResumeDetailResponse.model_validate(resume)
    try:
        response.file_url = storage.get_signed_url(resume.file_path)
    except Exception as e:
        logger.warning(f"Could not create signed URL for resume {resume_id}: {e}")
    return response


@router.get("/{resume_id}/document", response_model=DocumentResponse)
async def read_resume_document(resume_id: int, db: Session = Depends(get_db)) -> Any:
    """Full structured extraction: metadata, pages, tables and prompt blocks."""
    resume = _get_resume_or_404(db, resume_id)
    document = await _load_document(resume)
    return DocumentResponse.from_record(resume.id, document)


@router.get("/{resume_id}/statistics", response_model=TextStatisticsResponse)
async def read_resume_statistics(resume_id: int, db: Session = Depends(get_db)) -> Any:
    resume = _get_resume_or_404(db, resume_id)
    document = await _load_document(resume)
    return TextStatisticsResponse.from_stats(get_text_statistics(document))


@router.get("/{resume_id}/sections", response_model=ResumeSectionsResponse)
async def read_resume_sections(resume_id: int, db: Session = Depends(get_db)) -> Any:
    resume = _get_resume_or_404(db, resume_id)
    document = await _load_document(resume)
    return ResumeSectionsResponse.from_sections(resume.id, extract_resume_sections(document))


@router.delete("/{resume_id}")
async def delete_resume(resume_id: int, db: Session = Depends(get_db)) -> Any:
    resume = _get_resume_or_404(db, resume_id)
    try:
        await storage.delete_file(resume.file_path)
    except Exception as e:
        logger.error(f"Error deleting stored file for resume {resume_id}: {e}")
        raise HTTPException(status_code=502, detail="Could not delete the stored resume file")

    db.delete(resume)
    db.commit()
    return {"detail": "Resume deleted", "id": resume_id}
