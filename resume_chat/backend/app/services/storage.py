"""
Supabase Storage service — upload, download, signed URLs, delete.
All resume file I/O goes through this module.
"""

import logging
import re
import time
from typing import Optional

from app.core.config import settings

logger = logging.getLogger(__name__)

# Lazy-init Supabase client (service role for full bucket access)
_supabase_client = None


def _get_supabase():
    """Get or create the Supabase client using the service key."""
    global _supabase_client
    if _supabase_client is None:
        from supabase import create_client
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
            raise RuntimeError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY must be set for storage operations"
            )
        _supabase_client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
    return _supabase_client


def build_storage_path(filename: Optional[str], user_id: Optional[str] = None) -> str:
    """resumes/{timestamp_ms}_{user}_{safe_name}, e.g. resumes/1718000000000_42_jane_doe.pdf"""
    timestamp = int(time.time() * 1000)
    safe_name = re.sub(r"[^a-z0-9.]", "_", filename or "resume", flags=re.IGNORECASE).lower()
    return f"resumes/{timestamp}_{user_id or 'user'}_{safe_name}"


async def upload_file(
    storage_path: str,
    file_bytes: bytes,
    content_type: str = "application/pdf",
    bucket: Optional[str] = None,
) -> str:
    """Upload file bytes to Supabase Storage. Returns the storage_path."""
    bucket = bucket or settings.RESUMES_BUCKET
    client = _get_supabase()
    client.storage.from_(bucket).upload(
        path=storage_path,
        file=file_bytes,
        file_options={"content-type": content_type, "upsert": "true"},
    )
    logger.info(f"Uploaded {len(file_bytes)} bytes to {bucket}/{storage_path}")
    return storage_path


async def download_file(storage_path: str, bucket: Optional[str] = None) -> bytes:
    """Download file bytes from Supabase Storage."""
    bucket = bucket or settings.RESUMES_BUCKET
    client = _get_supabase()
    data = client.storage.from_(bucket).download(storage_path)
    logger.info(f"Downloaded {len(data)} bytes from {bucket}/{storage_path}")
    return data


def get_signed_url(storage_path: str, expires_in: int = 3600, bucket: Optional[str] = None) -> str:
    """Get a signed URL for direct browser download (expires in N seconds)."""
    bucket = bucket or settings.RESUMES_BUCKET
    client = _get_supabase()
    result = client.storage.from_(bucket).create_signed_url(storage_path, expires_in)
    return result.get("signedURL") or result.get("signedUrl")


async def delete_file(storage_path: str, bucket: Optional[str] = None) -> None:
    """Delete a file from Supabase Storage."""
    bucket = bucket or settings.RESUMES_BUCKET
    client = _get_supabase()
    client.storage.from_(bucket).remove([storage_path])
    logger.info(f"Deleted {bucket}/{storage_path}")


def ensure_buckets_exist():
    """Create the resumes bucket if it doesn't exist. Call once at startup."""
    try:
        client = _get_supabase()
        existing = [b.name for b in client.storage.list_buckets()]
        if settings.RESUMES_BUCKET not in existing:
            client.storage.create_bucket(
                settings.RESUMES_BUCKET,
                options={"public": False},
            )
            logger.info(f"Created storage bucket: {settings.RESUMES_BUCKET}")
        else:
            logger.info(f"Storage bucket exists: {settings.RESUMES_BUCKET}")
    except Exception as e:
        logger.error(f"Failed to ensure storage buckets: {e}")
