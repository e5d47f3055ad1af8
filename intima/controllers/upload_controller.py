import logging
import os
import re
import secrets
from datetime import datetime, timezone
from fastapi import UploadFile, HTTPException, status
from intima.core.config import get_settings
from intima.core.exceptions import ValidationFailed
from intima.schemas.upload_schema import FileCheckRead, FileCheckRequest, UploadRead
from intima.services.validation import DocumentUnavailable, resolve_document_path

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {"application/pdf"}


def _storage_name(original_name: str) -> str:
    safe_name = os.path.basename(original_name)
    safe_name = re.sub(r"[^A-Za-z0-9._-]", "_", safe_name)
    stem, ext = os.path.splitext(safe_name)
    ts = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")
    return f"{stem or 'file'}-{ts}-{secrets.token_hex(4)}{ext or '.pdf'}"


def save_upload(upload: UploadFile, base_url: str) -> UploadRead:
    settings = get_settings()
    if upload.content_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only PDF files are allowed")

    root = settings.upload_dir
    os.makedirs(root, exist_ok=True)

    original_name = upload.filename or "file.pdf"
    storage_name = _storage_name(original_name)
    full_path = os.path.join(root, storage_name)

    total = 0
    try:
        with open(full_path, "wb") as f:
            while True:
                chunk = upload.file.read(1024 * 1024)
                if not chunk:
                    break
                total += len(chunk)
                if total > settings.max_upload_bytes:
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=f"File exceeds max size {settings.max_upload_bytes} bytes",
                    )
                f.write(chunk)
    except Exception:
        if os.path.exists(full_path):
            os.remove(full_path)
        raise

    if total == 0:
        os.remove(full_path)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    path = f"/uploads/{storage_name}"
    logger.info("Stored upload %s (%d bytes)", storage_name, total)
    return UploadRead(
        message="File uploaded successfully",
        filename=storage_name,
        original_name=original_name,
        size=total,
        path=path,
        file_path=path,
        url=f"{base_url.rstrip('/')}{path}",
    )


def check_file(data: FileCheckRequest) -> FileCheckRead:
    """Report whether a stored document reference still points at a file in the upload dir."""
    if not data.file_path or not data.file_path.strip():
        raise ValidationFailed("No file path provided", details={"exists": False})

    try:
        exists = resolve_document_path(data.file_path, get_settings().upload_dir).is_file()
    except DocumentUnavailable:
        logger.warning("File check outside the upload directory: %s", data.file_path)
        exists = False
    return FileCheckRead(
        exists=exists,
        file_path=data.file_path,
        message="File exists" if exists else "File not found",
    )
