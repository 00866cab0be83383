import os
import sys

# Must be set before app.core.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GEMINI_API_KEY"] = ""
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_KEY"] = ""
os.environ["RECORD_SAVE_RETRY_DELAY"] = "0"

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import fitz
import pytest


def build_pdf(pages, metadata=None, encrypt=False) -> bytes:
    """Build a PDF in memory. pages: list of [(x, y_from_top, text), ...]."""
    doc = fitz.open()
    for items in pages:
        page = doc.new_page()
        for x, y, text in items:
            page.insert_text((x, y), text, fontsize=11)
    if metadata:
        doc.set_metadata(metadata)
    if encrypt:
        data = doc.tobytes(
            encryption=fitz.PDF_ENCRYPT_AES_256,
            owner_pw="owner-secret",
            user_pw="user-secret",
        )
    else:
        data = doc.tobytes()
    doc.close()
    return data


RESUME_PAGES = [
    [
        (72, 80, "Jane Doe"),
        (72, 100, "Email: jane@example.com"),
        (72, 140, "Summary"),
        (72, 160, "Backend engineer who likes parsers."),
        (72, 200, "Skills: Python, Go, Rust"),
    ],
    [
        (72, 80, "Experience"),
        (72, 100, "Acme Corp, Senior Engineer."),
        (72, 140, "Education"),
        (72, 160, "State University, BSc Computer Science."),
    ],
]


@pytest.fixture
def resume_pdf() -> bytes:
    return build_pdf(RESUME_PAGES, metadata={"title": "Jane Doe Resume", "author": "Jane Doe"})


@pytest.fixture
def blank_pdf() -> bytes:
    return build_pdf([[]])


@pytest.fixture
def encrypted_pdf() -> bytes:
    return build_pdf(RESUME_PAGES, encrypt=True)
