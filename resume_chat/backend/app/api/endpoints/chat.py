"""
Chat endpoints — ask Gemini about an uploaded resume, with per-resume history.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Any, List
import logging

from app.db.database import get_db
from app.db import models
from app.schemas.chat import ChatRequest, ChatResponse, ChatMessageResponse
from app.llm.gemini_client import GeminiClient

router = APIRouter()
logger = logging.getLogger(__name__)

API_KEY_MISSING_REPLY = "Error: Gemini API key not configured. Please check your environment variables."
CHAT_FAILED_REPLY = "Sorry, I encountered an error while processing your request. Please try again."
HISTORY_LIMIT = 20


@router.post("/", response_model=ChatResponse)
async def ask(body: ChatRequest, db: Session = Depends(get_db)) -> Any:
    question = body.question.strip()
    if not question:
        raise HTTPException(status_code=400, detail="Question must not be empty")

    resume = None
    history = []
    if body.resume_id is not None:
        resume = db.query(models.Resume).filter(models.Resume.id == body.resume_id).first()
        if not resume:
            raise HTTPException(status_code=404, detail="Resume not found")
        history = [(m.role, m.content) for m in resume.messages[-HISTORY_LIMIT:]]

    resume_context = resume.content if resume else None

    try:
        client = GeminiClient()
    except ValueError as e:
        logger.error(f"[CHAT] {e}")
        return ChatResponse(answer=API_KEY_MISSING_REPLY, resume_id=body.resume_id)

    try:
        answer = await client.answer_question(
            question,
            resume_context=resume_context,
            job_description=body.job_description,
            history=history,
        )
    except Exception as e:
        logger.error(f"[CHAT] Error calling Gemini API: {e}")
        answer = CHAT_FAILED_REPLY
    else:
        if resume is not None:
            db.add(models.ChatMessage(resume_id=resume.id, role="user", content=question))
            db.add(models.ChatMessage(resume_id=resume.id, role="assistant", content=answer))
            db.commit()

    return ChatResponse(
        answer=answer,
        resume_id=body.resume_id,
        used_resume_context=bool(resume_context),
    )


@router.get("/{resume_id}/messages", response_model=List[ChatMessageResponse])
def list_messages(resume_id: int, db: Session = Depends(get_db)) -> Any:
    resume = db.query(models.Resume).filter(models.Resume.id == resume_id).first()
    if not resume:
        raise HTTPException(status_code=404, detail="Resume not found")
    return resume.messages
