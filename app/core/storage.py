# app/core/storage.py

import os
import uuid
from fastapi import UploadFile
from loguru import logger
from supabase import create_client, Client

from app.core.config import settings
from app.core.exceptions import InternalError, ValidationFailed

# 1. Init Client (Graceful Failure)
try:
    supabase: Client | None = (
        create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
        if settings.SUPABASE_URL and settings.SUPABASE_KEY
        else None
    )
except Exception as e:
    logger.warning(f"Supabase init failed: {e}")
    supabase = None

BUCKET_NAME = settings.STORAGE_BUCKET
MAX_FILE_SIZE = settings.MAX_FILE_SIZE

# media field -> (allowed extensions, storage sub-folder)
MEDIA_TYPES = {
    "images": ({".jpg", ".jpeg", ".png", ".gif"}, "images"),
    "audio": ({".mp3", ".wav", ".ogg"}, "audio"),
    "video": ({".mp4", ".webm", ".mov"}, "video"),
    "view360": ({".jpg", ".jpeg", ".png", ".gif", ".mp4", ".webm"}, "view360"),
}

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
}


def _require_client() -> Client:
    if not supabase:
        logger.error("Supabase credentials missing in env vars.")
        raise InternalError("Storage service unavailable.")
    return supabase


def ensure_storage_available() -> None:
    _require_client()


def media_extension(kind: str, filename: str | None) -> str:
    """
    Returns the lower-cased extension if it is allowed for this media kind,
    raises ValidationFailed otherwise.
    """
    allowed, _ = MEDIA_TYPES[kind]
    extension = os.path.splitext(filename or "")[1].lower()
    if extension not in allowed:
        raise ValidationFailed(
            f"Invalid file type. Allowed types: {', '.join(sorted(allowed))}",
            errors=[{"field": kind, "message": f"{filename!r} is not an allowed {kind} file"}],
        )
    return extension


async def upload_media(file: UploadFile, kind: str) -> str:
    """
    Uploads one media file for a location and returns its public URL.
    - Validates extension and size.
    - Ignores the original filename.
    """
    extension = media_extension(kind, file.filename)
    client = _require_client()

    file_content = await file.read()
    if len(file_content) > MAX_FILE_SIZE:
        raise ValidationFailed(
            f"File too large. Maximum size is {MAX_FILE_SIZE // (1024 * 1024)}MB.",
            errors=[{"field": kind, "message": f"{file.filename!r} exceeds the size limit"}],
        )
    await file.seek(0)

    _, folder = MEDIA_TYPES[kind]
    file_path = f"locations/{folder}/{uuid.uuid4().hex}{extension}"

    try:
        client.storage.from_(BUCKET_NAME).upload(
            path=file_path,
            file=file_content,
            file_options={"content-type": CONTENT_TYPES[extension], "upsert": "true"},
        )
        return client.storage.from_(BUCKET_NAME).get_public_url(file_path)

    except Exception as e:
        logger.error(f"Storage upload error for {file_path}: {e}")
        raise InternalError("Failed to upload file to cloud storage.")


def create_signed_upload(folder: str) -> dict:
    """
    Signed parameters for a direct client-to-bucket upload.
    The URL is single-use and short-lived.
    """
    client = _require_client()
    object_path = f"{folder.strip('/')}/{uuid.uuid4().hex}"

    try:
        response = client.storage.from_(BUCKET_NAME).create_signed_upload_url(object_path)
    except Exception as e:
        logger.error(f"Failed to sign upload for {object_path}: {e}")
        raise InternalError("Failed to sign upload")

    # SDK versions disagree on the key casing
    signed_url = response.get("signed_url") or response.get("signedUrl") or response.get("signedURL")

    return {
        "bucket": BUCKET_NAME,
        "folder": folder,
        "path": response.get("path", object_path),
        "signed_url": signed_url,
        "token": response.get("token"),
    }
