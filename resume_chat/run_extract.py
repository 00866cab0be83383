#!/usr/bin/env python3
"""One-off script to run the resume extraction pipeline on a local file or URL."""

import asyncio
import logging
import sys
from dotenv import load_dotenv

load_dotenv("backend/.env")
sys.path.insert(0, "backend")

from app.services.ai_context import format_for_ai
from app.services.pdf_text_extractor import PdfExtractionError, extract_pdf_text
from app.utils.resume_sections import extract_resume_sections
from app.utils.text_statistics import get_text_statistics

logging.basicConfig(level=logging.INFO)


async def main(source: str, with_tables: bool):
    print(f"Source: {source}")
    print(f"Tables: {'on' if with_tables else 'off'}")
    print("Running extract_pdf_text...")
    print()

    try:
        document = await extract_pdf_text(source, with_tables=with_tables)
    except PdfExtractionError as e:
        print(f"Extraction failed: {e}")
        return 1

    print("=" * 70)
    print("AI CONTEXT")
    print("=" * 70)
    print(format_for_ai(document))

    print("\n" + "=" * 70)
    print("TABLE REGIONS")
    print("=" * 70)
    for table in document.tables:
        print(f"  page {table.page} [{table.kind.value}] y={table.start_y:.0f}..{table.end_y:.0f}")
        for row in table.rows:
            print(f"    {row.text[:120]}")

    print("\n" + "=" * 70)
    print("SECTIONS")
    print("=" * 70)
    for category, matches in extract_resume_sections(document).items():
        if matches:
            headers = ", ".join(f"p{m.page}:{m.line} {m.header[:40]}" for m in matches)
            print(f"  {category.value}: {headers}")

    print("\n" + "=" * 70)
    print("STATISTICS")
    print("=" * 70)
    for k, v in get_text_statistics(document).__dict__.items():
        print(f"  {k}: {v}")
    return 0


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if a != "--no-tables"]
    if len(args) != 1:
        print("Usage: python run_extract.py <pdf path or url> [--no-tables]")
        sys.exit(1)
    sys.exit(asyncio.run(main(args[0], "--no-tables" not in sys.argv)))
