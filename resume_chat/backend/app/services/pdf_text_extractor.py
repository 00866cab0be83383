"""
PDF Text Extractor — rebuilds lines, tables and resume sections from PyMuPDF span data.

Approach:
1. Open the PDF once (scoped, always closed) and read best-effort metadata
2. Per page, turn text spans into positioned glyphs (y flipped into PDF user space)
3. Bucket glyphs into visual lines by rounded y, ordered left to right
4. Assemble page text top to bottom
5. Scan the same lines for table rows / resume section blocks (greedy, single pass)
6. Merge everything into one DocumentRecord with typed blocks for prompt building
"""

import fitz  # PyMuPDF
import logging
import math
import os
import re
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import reduce
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

import httpx

logger = logging.getLogger(__name__)

LINE_TOLERANCE = 5.0
MIN_TABLE_ITEMS = 3
SPACING_DEVIATION = 0.3
MIN_TABLE_SPACING = 50.0

DATE_PATTERN = re.compile(r"\d{1,4}[/\-]\d{1,2}[/\-]\d{1,4}")
LABEL_PATTERN = re.compile(r"[A-Z][a-z]+\s*:\s*")
SECTION_WORD_PATTERN = re.compile(
    r"(Skills?|Experience|Education|Projects?|Languages?|Certifications?)",
    re.IGNORECASE,
)


# ─── Errors ─────────────────────────────────────────────────────────────────

class PdfExtractionError(Exception):
    """Extraction failed as a whole; no partial document is produced."""


class InvalidDocument(PdfExtractionError):
    pass


class PasswordRequired(PdfExtractionError):
    pass


class SourceUnavailable(PdfExtractionError):
    pass


# ─── Data classes ───────────────────────────────────────────────────────────

class RegionKind(Enum):
    TABLE = "table"
    RESUME_SECTION = "resume_section"


class BlockKind(Enum):
    METADATA = "metadata"
    PAGE = "page"
    TABLE = "table"


@dataclass(frozen=True)
class Glyph:
    """A positioned text fragment. transform is (a, b, c, d, x, y), y grows upward."""
    text: str
    transform: Tuple[float, float, float, float, float, float]
    width: float
    height: float
    font_name: str = ""

    @property
    def x(self) -> float:
        return self.transform[4]

    @property
    def y(self) -> float:
        return self.transform[5]


@dataclass(frozen=True)
class Line:
    """Glyphs sharing a rounded y, left to right."""
    y: float
    page_num: int
    glyphs: Tuple[Glyph, ...]

    @property
    def text(self) -> str:
        return " ".join(g.text for g in self.glyphs)


@dataclass(frozen=True)
class PageRecord:
    page_num: int
    text: str
    lines: Tuple[Line, ...]
    width: float
    height: float


@dataclass(frozen=True)
class TableCell:
    text: str
    x: float
    width: float


@dataclass(frozen=True)
class TableRow:
    y: float
    cells: Tuple[TableCell, ...]

    @property
    def text(self) -> str:
        return " | ".join(c.text for c in self.cells)


@dataclass(frozen=True)
class TableRegion:
    page: int
    start_y: float
    end_y: float
    rows: Tuple[TableRow, ...]
    kind: RegionKind


@dataclass(frozen=True)
class DocumentMetadata:
    num_pages: int
    title: str = "Untitled"
    author: str = "Unknown"
    subject: str = ""
    creation_date: str = ""
    modification_date: str = ""


@dataclass(frozen=True)
class StructuredBlock:
    kind: BlockKind
    content: str
    page_num: Optional[int] = None
    has_tables: bool = False


@dataclass(frozen=True)
class DocumentRecord:
    full_text: str
    metadata: DocumentMetadata
    pages: Tuple[PageRecord, ...]
    tables: Tuple[TableRegion, ...]
    structured_text: Tuple[StructuredBlock, ...] = field(default_factory=tuple)


# ─── Step 1: Group glyphs into lines ───────────────────────────────────────

def _line_key(y: float, tolerance: float) -> float:
    # Half-up rounding so boundary values always land in the upper bucket
    return math.floor(y / tolerance + 0.5) * tolerance


def group_glyphs_by_line(
    glyphs: Iterable[Glyph], tolerance: float = LINE_TOLERANCE,
) -> Dict[float, List[Glyph]]:
    """Bucket glyphs by rounded y. Buckets are ordered left to right by x."""
    lines: Dict[float, List[Glyph]] = {}
    for glyph in sorted(glyphs, key=lambda g: -g.y):
        lines.setdefault(_line_key(glyph.y, tolerance), []).append(glyph)

    for items in lines.values():
        items.sort(key=lambda g: g.x)
    return lines


def _ordered_lines(grouped: Dict[float, List[Glyph]], page_num: int) -> List[Line]:
    return [
        Line(y=y, page_num=page_num, glyphs=tuple(grouped[y]))
        for y in sorted(grouped, reverse=True)
    ]


# ─── Step 2: Assemble page text ────────────────────────────────────────────

def assemble_page(
    grouped: Dict[float, List[Glyph]],
    page_num: int,
    width: float,
    height: float,
) -> PageRecord:
    lines = _ordered_lines(grouped, page_num)
    return PageRecord(
        page_num=page_num,
        text="\n".join(line.text for line in lines),
        lines=tuple(lines),
        width=width,
        height=height,
    )


# ─── Step 3: Detect tables and resume section blocks ───────────────────────

def is_spacing_consistent(line: Line) -> bool:
    """All gaps between consecutive x positions within 30% of the mean, mean > 50."""
    xs = [g.x for g in line.glyphs]
    spacings = [b - a for a, b in zip(xs, xs[1:])]
    if not spacings:
        return False
    avg = sum(spacings) / len(spacings)
    consistent = all(abs(s - avg) < avg * SPACING_DEVIATION for s in spacings)
    return consistent and avg > MIN_TABLE_SPACING


def has_resume_pattern(line: Line) -> bool:
    return any(
        DATE_PATTERN.fullmatch(g.text)
        or LABEL_PATTERN.match(g.text)
        or SECTION_WORD_PATTERN.fullmatch(g.text)
        for g in line.glyphs
    )


@dataclass(frozen=True)
class _ScanState:
    """Detector state. open_rows is empty while idle, non-empty while accumulating."""
    page_num: int
    closed: Tuple[TableRegion, ...] = ()
    open_rows: Tuple[TableRow, ...] = ()
    open_kind: Optional[RegionKind] = None
    prev_y: Optional[float] = None

    @property
    def accumulating(self) -> bool:
        return bool(self.open_rows)

    def close(self, end_y: float) -> "_ScanState":
        if not self.accumulating:
            return self
        region = TableRegion(
            page=self.page_num,
            start_y=self.open_rows[0].y,
            end_y=end_y,
            rows=self.open_rows,
            kind=self.open_kind,
        )
        return replace(self, closed=self.closed + (region,), open_rows=(), open_kind=None)


def _to_row(line: Line) -> TableRow:
    return TableRow(
        y=line.y,
        cells=tuple(TableCell(text=g.text, x=g.x, width=g.width) for g in line.glyphs),
    )


def _scan_line(state: _ScanState, line: Line) -> _ScanState:
    accepted = False
    resume_like = False
    if len(line.glyphs) >= MIN_TABLE_ITEMS:
        resume_like = has_resume_pattern(line)
        accepted = resume_like or is_spacing_consistent(line)

    if accepted:
        if state.accumulating:
            state = replace(state, open_rows=state.open_rows + (_to_row(line),))
        else:
            kind = RegionKind.RESUME_SECTION if resume_like else RegionKind.TABLE
            state = replace(state, open_rows=(_to_row(line),), open_kind=kind)
    elif state.accumulating:
        state = state.close(state.prev_y)

    return replace(state, prev_y=line.y)


def detect_tables(
    grouped: Dict[float, List[Glyph]], page_num: int,
) -> List[TableRegion]:
    """Greedy top-to-bottom scan; a non-matching line closes the open region."""
    lines = _ordered_lines(grouped, page_num)
    state = reduce(_scan_line, lines, _ScanState(page_num=page_num))
    if state.accumulating:
        state = state.close(lines[-1].y)
    return list(state.closed)


# ─── Step 4: Build the document record ─────────────────────────────────────

def _render_table(table: TableRegion) -> str:
    return "\n".join(row.text for row in table.rows)


def build_structured_text(
    metadata: DocumentMetadata,
    pages: List[PageRecord],
    tables: List[TableRegion],
) -> List[StructuredBlock]:
    blocks: List[StructuredBlock] = []

    if metadata.title or metadata.author:
        blocks.append(StructuredBlock(
            kind=BlockKind.METADATA,
            content=(
                f"Document: {metadata.title or 'Untitled'}\n"
                f"Author: {metadata.author or 'Unknown'}\n"
                f"Pages: {metadata.num_pages}"
            ),
        ))

    table_pages = {t.page for t in tables}
    for page in pages:
        blocks.append(StructuredBlock(
            kind=BlockKind.PAGE,
            content=page.text,
            page_num=page.page_num,
            has_tables=page.page_num in table_pages,
        ))

    for table in tables:
        blocks.append(StructuredBlock(
            kind=BlockKind.TABLE,
            content=f"Table on page {table.page}:\n{_render_table(table)}",
            page_num=table.page,
        ))

    return blocks


def structure_document(
    pages: List[PageRecord],
    tables: List[TableRegion],
    metadata: DocumentMetadata,
) -> DocumentRecord:
    return DocumentRecord(
        full_text="\n\n".join(page.text for page in pages),
        metadata=metadata,
        pages=tuple(pages),
        tables=tuple(tables),
        structured_text=tuple(build_structured_text(metadata, pages, tables)),
    )


# ─── PyMuPDF adapter ───────────────────────────────────────────────────────

@contextmanager
def open_pdf(data: bytes) -> Iterator["fitz.Document"]:
    """
    Context manager: open PDF bytes with PyMuPDF, yield the document, then close it.
    The handle is released on success, on error, and when the caller abandons the result.

    Usage:
        with open_pdf(pdf_bytes) as doc:
            metadata = read_metadata(doc)
    """
    if not data:
        raise InvalidDocument("Invalid PDF: The file is empty.")
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise InvalidDocument(
            f"Invalid PDF: The file may be corrupted or not a valid PDF document. ({e})"
        ) from e
    try:
        if doc.needs_pass:
            raise PasswordRequired(
                "Password required: This PDF is password-protected and cannot be processed."
            )
        yield doc
    finally:
        doc.close()
        logger.debug("[EXTRACT] Released PDF document handle")


def read_metadata(doc: "fitz.Document") -> DocumentMetadata:
    meta = doc.metadata or {}
    return DocumentMetadata(
        num_pages=doc.page_count,
        title=meta.get("title") or "Untitled",
        author=meta.get("author") or "Unknown",
        subject=meta.get("subject") or "",
        creation_date=meta.get("creationDate") or "",
        modification_date=meta.get("modDate") or "",
    )


def page_glyphs(page: "fitz.Page") -> List[Glyph]:
    """Convert the page's text spans into glyphs in PDF user space (origin bottom-left)."""
    height = page.rect.height
    glyphs: List[Glyph] = []
    blocks = page.get_text("dict", flags=fitz.TEXT_PRESERVE_WHITESPACE)["blocks"]
    for block in blocks:
        if block["type"] != 0:
            continue
        for line in block["lines"]:
            for span in line["spans"]:
                if not span["text"]:
                    continue
                x, y = span["origin"]
                x0, y0, x1, y1 = span["bbox"]
                glyphs.append(Glyph(
                    text=span["text"],
                    transform=(1.0, 0.0, 0.0, 1.0, float(x), float(height - y)),
                    width=float(x1 - x0),
                    height=float(y1 - y0),
                    font_name=span["font"],
                ))
    return glyphs


def extract_pdf_bytes(
    data: bytes,
    with_tables: bool = True,
    tolerance: float = LINE_TOLERANCE,
) -> DocumentRecord:
    """Run the full pipeline over in-memory PDF bytes.

    with_tables=False is the degraded, text-only mode: lines and pages are
    still rebuilt, but no table or resume section regions are produced.
    """
    pages: List[PageRecord] = []
    tables: List[TableRegion] = []

    with open_pdf(data) as doc:
        metadata = read_metadata(doc)
        logger.info(f"[EXTRACT] PDF opened: {metadata.num_pages} pages, with_tables={with_tables}")
        try:
            for index in range(doc.page_count):
                page = doc[index]
                page_num = index + 1
                grouped = group_glyphs_by_line(page_glyphs(page), tolerance)
                pages.append(assemble_page(grouped, page_num, page.rect.width, page.rect.height))
                if with_tables:
                    page_tables = detect_tables(grouped, page_num)
                    if page_tables:
                        logger.debug(f"[TABLES] Page {page_num}: {len(page_tables)} regions")
                    tables.extend(page_tables)
        except PdfExtractionError:
            raise
        except Exception as e:
            logger.error(f"[EXTRACT] Page processing failed: {e}")
            raise PdfExtractionError(f"Failed to extract text from PDF: {e}") from e

    document = structure_document(pages, tables, metadata)
    logger.info(
        f"[EXTRACT] Extracted {len(document.full_text)} characters, "
        f"{len(pages)} pages, {len(tables)} table regions"
    )
    return document


async def _fetch_source(url: str) -> bytes:
    try:
        async with httpx.AsyncClient(follow_redirects=True) as client:
            resp = await client.get(url, timeout=60.0)
            resp.raise_for_status()
            return resp.content
    except httpx.HTTPError as e:
        logger.error(f"[EXTRACT] Failed to fetch PDF from {url}: {e}")
        raise SourceUnavailable(
            "Failed to fetch PDF: The PDF URL may not be accessible due to network "
            "issues. Try uploading the file bytes instead."
        ) from e


async def extract_pdf_text(
    source: Union[bytes, bytearray, str, os.PathLike],
    with_tables: bool = True,
    tolerance: float = LINE_TOLERANCE,
) -> DocumentRecord:
    """Extract a DocumentRecord from raw bytes, a local path, or an http(s) URL."""
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
    elif isinstance(source, str) and source.lower().startswith(("http://", "https://")):
        logger.info(f"[EXTRACT] Fetching PDF from URL: {source}")
        data = await _fetch_source(source)
    else:
        path = os.fspath(source)
        if not os.path.isfile(path):
            raise SourceUnavailable(f"Failed to read PDF: {path} does not exist.")
        with open(path, "rb") as f:
            data = f.read()

    return extract_pdf_bytes(data, with_tables=with_tables, tolerance=tolerance)
