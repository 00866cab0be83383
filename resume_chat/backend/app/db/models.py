from sqlalchemy import Column, ForeignKey, Integer, String, Text, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.database import Base

class Resume(Base):
    __tablename__ = "resumes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=True, index=True)
    filename = Column(String)
    file_path = Column(String)  # Storage key inside the resumes bucket
    content_type = Column(String)
    size_bytes = Column(Integer)
    source = Column(String, default="ai-resume-parser")

    # Extraction results (AI context text, not the raw document)
    content = Column(Text, nullable=True)
    page_count = Column(Integer, nullable=True)
    table_count = Column(Integer, nullable=True)
    extraction_error = Column(String, nullable=True)

    uploaded_at = Column(DateTime(timezone=True), server_default=func.now())

    messages = relationship(
        "ChatMessage", back_populates="resume",
        cascade="all, delete-orphan", order_by="ChatMessage.id",
    )

class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(Integer, ForeignKey("resumes.id"), index=True)
    role = Column(String)  # "user" | "assistant"
    content = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    resume = relationship("Resume", back_populates="messages")
