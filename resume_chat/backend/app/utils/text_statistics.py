import re
from dataclasses import dataclass

from app.services.pdf_text_extractor import DocumentRecord


@dataclass(frozen=True)
class TextStatistics:
    total_characters: int
    total_words: int
    total_sentences: int
    average_words_per_sentence: float
    total_pages: int
    has_tables: bool
    table_count: int


def get_text_statistics(document: DocumentRecord) -> TextStatistics:
    """Word, sentence, page and table counts for the statistics view."""
    text = document.full_text
    words = text.split()
    sentences = [s for s in re.split(r"[.!?]+", text) if s.strip()]
    avg = len(words) / len(sentences) if sentences else 0.0

    return TextStatistics(
        total_characters=len(text),
        total_words=len(words),
        total_sentences=len(sentences),
        average_words_per_sentence=round(avg, 2),
        total_pages=document.metadata.num_pages,
        has_tables=len(document.tables) > 0,
        table_count=len(document.tables),
    )
