"""
Resume upload / read / delete endpoints against an in-memory SQLite database.

Supabase Storage is replaced by a dict so nothing leaves the process.

Run: pytest backend/tests/test_resumes_api.py -v
"""

import os
import sys
from types import SimpleNamespace

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.db import models
from app.db.database import SessionLocal
from app.main import app
from app.services import storage
from app.utils.pdf_extractor import EXTRACTION_FAILED_MESSAGE

DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture(autouse=True)
def clean_db():
    yield
    db = SessionLocal()
    db.query(models.ChatMessage).delete()
    db.query(models.Resume).delete()
    db.commit()
    db.close()


@pytest.fixture
def bucket(monkeypatch):
    """In-memory stand-in for the resumes bucket."""
    files = {}

    async def upload_file(storage_path, file_bytes, content_type="application/pdf", bucket=None):
        files[storage_path] = file_bytes
        return storage_path

    async def download_file(storage_path, bucket=None):
        return files[storage_path]

    async def delete_file(storage_path, bucket=None):
        files.pop(storage_path)

    def get_signed_url(storage_path, expires_in=3600, bucket=None):
        return f"https://storage.example.com/{storage_path}?token=abc"

    monkeypatch.setattr(storage, "upload_file", upload_file)
    monkeypatch.setattr(storage, "download_file", download_file)
    monkeypatch.setattr(storage, "delete_file", delete_file)
    monkeypatch.setattr(storage, "get_signed_url", get_signed_url)
    return files


def _upload(client, data, filename="resume.pdf", content_type="application/pdf", user_id="42"):
    return client.post(
        "/api/resumes/",
        files={"file": (filename, data, content_type)},
        data={"user_id": user_id},
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Storage path
# ═══════════════════════════════════════════════════════════════════════════════

class TestStoragePath:

    def test_sanitized_name(self, monkeypatch):
        monkeypatch.setattr(storage, "time", SimpleNamespace(time=lambda: 1718000000.5))
        assert storage.build_storage_path("Jane Doe (CV).PDF", "42") == "resumes/1718000000500_42_jane_doe__cv_.pdf"

    def test_anonymous_user(self):
        path = storage.build_storage_path("cv.pdf")
        assert path.startswith("resumes/")
        assert path.endswith("_user_cv.pdf")


# ═══════════════════════════════════════════════════════════════════════════════
# Upload
# ═══════════════════════════════════════════════════════════════════════════════

class TestUpload:

    def test_pdf_upload_extracts_text(self, client, bucket, resume_pdf):
        resp = _upload(client, resume_pdf)
        assert resp.status_code == 200
        body = resp.json()
        assert body["filename"] == "resume.pdf"
        assert body["user_id"] == "42"
        assert body["source"] == "ai-resume-parser"
        assert body["page_count"] == 2
        assert body["extraction_error"] is None
        assert body["statistics"]["total_pages"] == 2
        assert body["statistics"]["total_words"] > 0
        assert bucket[body["file_path"]] == resume_pdf

        db = SessionLocal()
        stored = db.get(models.Resume, body["id"])
        assert stored.content.startswith("DOCUMENT: Jane Doe Resume\nAUTHOR: Jane Doe\nPAGES: 2")
        db.close()

    def test_wrong_content_type(self, client, bucket):
        resp = _upload(client, b"hello", filename="notes.txt", content_type="text/plain")
        assert resp.status_code == 400
        assert bucket == {}

    def test_empty_file(self, client, bucket):
        resp = _upload(client, b"")
        assert resp.status_code == 400

    def test_too_large(self, client, bucket, monkeypatch):
        monkeypatch.setattr(storage.settings, "MAX_UPLOAD_BYTES", 10)
        resp = _upload(client, b"x" * 11)
        assert resp.status_code == 400
        assert bucket == {}

    def test_docx_stored_without_extraction(self, client, bucket):
        resp = _upload(client, b"PK fake docx", filename="cv.docx", content_type=DOCX)
        assert resp.status_code == 200
        body = resp.json()
        assert body["page_count"] is None
        assert body["extraction_error"] is None
        assert body["statistics"] is None

    def test_unreadable_pdf_still_saved(self, client, bucket):
        resp = _upload(client, b"definitely not a pdf")
        assert resp.status_code == 200
        body = resp.json()
        assert body["extraction_error"] == EXTRACTION_FAILED_MESSAGE
        assert body["statistics"] is None
        assert len(bucket) == 1

    def test_storage_failure(self, client, monkeypatch, resume_pdf):
        async def failing_upload(*args, **kwargs):
            raise RuntimeError("bucket offline")

        monkeypatch.setattr(storage, "upload_file", failing_upload)
        resp = _upload(client, resume_pdf)
        assert resp.status_code == 502

    def test_metadata_save_retries_then_fails(self, client, bucket, monkeypatch, resume_pdf):
        calls = []

        def failing_commit(self):
            calls.append(1)
            raise OperationalError("INSERT", {}, Exception("database is locked"))

        monkeypatch.setattr("sqlalchemy.orm.Session.commit", failing_commit)
        resp = _upload(client, resume_pdf)
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Uploaded file saved, but we could not save details. Please retry later."
        assert len(calls) == 3
        assert len(bucket) == 1


# ═══════════════════════════════════════════════════════════════════════════════
# Read / delete
# ═══════════════════════════════════════════════════════════════════════════════

class TestReadEndpoints:

    def test_list_newest_first_and_filter(self, client, bucket, resume_pdf):
        first = _upload(client, resume_pdf, user_id="1").json()
        second = _upload(client, resume_pdf, user_id="2").json()

        ids = [r["id"] for r in client.get("/api/resumes/").json()]
        assert ids == [second["id"], first["id"]]

        only_one = client.get("/api/resumes/", params={"user_id": "1"}).json()
        assert [r["id"] for r in only_one] == [first["id"]]

    def test_detail_has_content_and_signed_url(self, client, bucket, resume_pdf):
        created = _upload(client, resume_pdf).json()
        resp = client.get(f"/api/resumes/{created['id']}")
        assert resp.status_code == 200
        body = resp.json()
        assert "Jane Doe" in body["content"]
        assert body["file_url"].startswith("https://storage.example.com/resumes/")

    def test_detail_without_signed_url(self, client, bucket, resume_pdf, monkeypatch):
        created = _upload(client, resume_pdf).json()

        def broken(*args, **kwargs):
            raise RuntimeError("no storage")

        monkeypatch.setattr(storage, "get_signed_url", broken)
        body = client.get(f"/api/resumes/{created['id']}").json()
        assert body["file_url"] is None

    def test_document(self, client, bucket, resume_pdf):
        created = _upload(client, resume_pdf).json()
        body = client.get(f"/api/resumes/{created['id']}/document").json()
        assert body["resume_id"] == created["id"]
        assert body["metadata"]["title"] == "Jane Doe Resume"
        assert [p["page_num"] for p in body["pages"]] == [1, 2]
        assert body["structured_text"][0]["type"] == "metadata"
        assert "State University" in body["full_text"]

    def test_statistics(self, client, bucket, resume_pdf):
        created = _upload(client, resume_pdf).json()
        body = client.get(f"/api/resumes/{created['id']}/statistics").json()
        assert body["total_pages"] == 2
        assert body == created["statistics"]

    def test_sections(self, client, bucket, resume_pdf):
        created = _upload(client, resume_pdf).json()
        body = client.get(f"/api/resumes/{created['id']}/sections").json()
        assert set(body["sections"]) == {
            "contact", "summary", "experience", "education",
            "skills", "projects", "certifications", "languages",
        }
        assert body["sections"]["education"][0]["page"] == 2

    def test_document_for_docx_is_rejected(self, client, bucket):
        created = _upload(client, b"PK", filename="cv.docx", content_type=DOCX).json()
        resp = client.get(f"/api/resumes/{created['id']}/document")
        assert resp.status_code == 400

    def test_document_for_unreadable_pdf(self, client, bucket):
        created = _upload(client, b"not a pdf").json()
        resp = client.get(f"/api/resumes/{created['id']}/document")
        assert resp.status_code == 422
        assert resp.json()["detail"].startswith("Invalid PDF")

    @pytest.mark.parametrize("suffix", ["", "/document", "/statistics", "/sections"])
    def test_missing_resume(self, client, bucket, suffix):
        assert client.get(f"/api/resumes/9999{suffix}").status_code == 404

    def test_delete(self, client, bucket, resume_pdf):
        created = _upload(client, resume_pdf).json()
        resp = client.delete(f"/api/resumes/{created['id']}")
        assert resp.status_code == 200
        assert bucket == {}
        assert client.get(f"/api/resumes/{created['id']}").status_code == 404
        assert client.delete(f"/api/resumes/{created['id']}").status_code == 404
