from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ChatRequest(BaseModel):
    question: str
    resume_id: Optional[int] = None
    job_description: Optional[str] = None


class ChatResponse(BaseModel):
    answer: str
    resume_id: Optional[int] = None
    used_resume_context: bool = False


class ChatMessageResponse(BaseModel):
    id: int
    role: str
    content: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
