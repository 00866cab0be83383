"""
Render an extracted DocumentRecord as prompt text and assemble chat prompts around it.
"""

import logging
from typing import List, Optional, Tuple

from app.services.pdf_text_extractor import DocumentRecord

logger = logging.getLogger(__name__)

CHAT_SYSTEM_PROMPT = (
    "You are a helpful career assistant. When a resume is provided, answer questions "
    "using only what the resume states and say so when the resume does not contain "
    "the answer. When a job description is provided, compare the resume against it "
    "and point out matching and missing qualifications."
)


def format_for_ai(document: DocumentRecord) -> str:
    """Flatten a document into the text block embedded in LLM prompts."""
    parts: List[str] = []
    meta = document.metadata

    if meta.title:
        parts.append(f"DOCUMENT: {meta.title}\n")
    if meta.author:
        parts.append(f"AUTHOR: {meta.author}\n")
    parts.append(f"PAGES: {meta.num_pages}\n\n")

    for page in document.pages:
        parts.append(f"--- PAGE {page.page_num} ---\n")
        parts.append(page.text + "\n\n")

    if document.tables:
        parts.append("--- TABLES FOUND ---\n")
        for table in document.tables:
            parts.append(f"Table on page {table.page}:\n")
            for row in table.rows:
                parts.append(row.text + "\n")
            parts.append("\n")

    return "".join(parts).strip()


def build_chat_prompt(
    question: str,
    resume_context: Optional[str] = None,
    job_description: Optional[str] = None,
) -> Tuple[str, str]:
    """Return (system_prompt, user_prompt) for a question about an uploaded resume."""
    sections: List[str] = []
    if resume_context:
        sections.append(f"RESUME:\n{resume_context}")
    if job_description and job_description.strip():
        sections.append(f"JOB DESCRIPTION:\n{job_description.strip()}")
    sections.append(f"QUESTION:\n{question.strip()}")

    user_prompt = "\n\n".join(sections)
    logger.debug(f"[CHAT] Built prompt ({len(user_prompt)} chars, resume={bool(resume_context)})")
    return CHAT_SYSTEM_PROMPT, user_prompt
