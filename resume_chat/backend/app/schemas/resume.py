from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime

from app.services.pdf_text_extractor import DocumentRecord
from app.utils.resume_sections import SectionCategory, SectionMatch
from app.utils.text_statistics import TextStatistics

class ResumeResponse(BaseModel):
    id: int
    user_id: Optional[str] = None
    filename: Optional[str] = None
    file_path: Optional[str] = None
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None
    source: Optional[str] = None
    page_count: Optional[int] = None
    table_count: Optional[int] = None
    extraction_error: Optional[str] = None
    uploaded_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ResumeDetailResponse(ResumeResponse):
    content: Optional[str] = None  # AI context text extracted from the PDF
    file_url: Optional[str] = None

# ── Extracted document ──────────────────────────────────────────────────────

class DocumentMetadataOut(BaseModel):
    num_pages: int
    title: str
    author: str
    subject: str
    creation_date: str
    modification_date: str

class PageOut(BaseModel):
    page_num: int
    text: str
    width: float
    height: float
    line_count: int

class TableCellOut(BaseModel):
    text: str
    x: float
    width: float

class TableRowOut(BaseModel):
    y: float
    cells: List[TableCellOut]

class TableRegionOut(BaseModel):
    page: int
    start_y: float
    end_y: float
    kind: str  # "table" | "resume_section"
    rows: List[TableRowOut]

class StructuredBlockOut(BaseModel):
    type: str  # "metadata" | "page" | "table"
    content: str
    page_num: Optional[int] = None
    has_tables: bool = False

class DocumentResponse(BaseModel):
    resume_id: int
    full_text: str
    metadata: DocumentMetadataOut
    pages: List[PageOut]
    tables: List[TableRegionOut]
    structured_text: List[StructuredBlockOut]

    @classmethod
    def from_record(cls, resume_id: int, document: DocumentRecord) -> "DocumentResponse":
        meta = document.metadata
        return cls(
            resume_id=resume_id,
            full_text=document.full_text,
            metadata=DocumentMetadataOut(
                num_pages=meta.num_pages,
                title=meta.title,
                author=meta.author,
                subject=meta.subject,
                creation_date=meta.creation_date,
                modification_date=meta.modification_date,
            ),
            pages=[
                PageOut(
                    page_num=p.page_num, text=p.text,
                    width=p.width, height=p.height, line_count=len(p.lines),
                )
                for p in document.pages
            ],
            tables=[
                TableRegionOut(
                    page=t.page, start_y=t.start_y, end_y=t.end_y, kind=t.kind.value,
                    rows=[
                        TableRowOut(
                            y=r.y,
                            cells=[TableCellOut(text=c.text, x=c.x, width=c.width) for c in r.cells],
                        )
                        for r in t.rows
                    ],
                )
                for t in document.tables
            ],
            structured_text=[
                StructuredBlockOut(
                    type=b.kind.value, content=b.content,
                    page_num=b.page_num, has_tables=b.has_tables,
                )
                for b in document.structured_text
            ],
        )

# ── Derived views ───────────────────────────────────────────────────────────

class TextStatisticsResponse(BaseModel):
    total_characters: int
    total_words: int
    total_sentences: int
    average_words_per_sentence: float
    total_pages: int
    has_tables: bool
    table_count: int

    @classmethod
    def from_stats(cls, stats: TextStatistics) -> "TextStatisticsResponse":
        return cls(**stats.__dict__)

class SectionMatchOut(BaseModel):
    page: int
    line: int
    header: str
    context: str

class ResumeSectionsResponse(BaseModel):
    resume_id: int
    sections: Dict[str, List[SectionMatchOut]]

    @classmethod
    def from_sections(
        cls, resume_id: int, sections: Dict[SectionCategory, List[SectionMatch]],
    ) -> "ResumeSectionsResponse":
        return cls(
            resume_id=resume_id,
            sections={
                category.value: [SectionMatchOut(**m.__dict__) for m in matches]
                for category, matches in sections.items()
            },
        )

class UploadResponse(ResumeResponse):
    statistics: Optional[TextStatisticsResponse] = None
