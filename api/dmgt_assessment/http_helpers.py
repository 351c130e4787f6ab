import base64
import binascii
import logging
import re
import uuid
from pathlib import Path

from fastapi import HTTPException, Request

from .config import MAX_FILE_SIZE, MIN_COMPANY_ID_LENGTH, MIN_EMPLOYEE_ID_LENGTH, SUPPORTED_FILE_TYPES, UPLOADS_DIR

logger = logging.getLogger(__name__)

_ID_RE = re.compile(r"[a-zA-Z0-9_-]+")
_SAFE_NAME_RE = re.compile(r"[^a-zA-Z0-9._-]+")


def validate_identifier(value: str | None, *, label: str, min_length: int) -> str:
    v = (value or "").strip()
    if not v:
        raise HTTPException(status_code=400, detail=f"{label} is required")
    if len(v) < min_length:
        raise HTTPException(status_code=400, detail=f"{label} must be at least {min_length} characters")
    if not _ID_RE.fullmatch(v):
        raise HTTPException(status_code=400, detail=f"{label} can only contain letters, numbers, hyphens, and underscores")
    return v


def validate_company_id(company_id: str | None) -> str:
    return validate_identifier(company_id, label="Company ID", min_length=MIN_COMPANY_ID_LENGTH)


def validate_employee_id(employee_id: str | None) -> str:
    return validate_identifier(employee_id, label="Employee ID", min_length=MIN_EMPLOYEE_ID_LENGTH)


def public_upload_url(request: Request, file_key: str) -> str:
    return f"{str(request.base_url).rstrip('/')}/uploads/{file_key}"


def sanitize_file_name(file_name: str) -> str:
    name = Path(file_name or "").name
    name = _SAFE_NAME_RE.sub("_", name).strip("._")
    return name[:120] or "upload"


def decode_upload(file_content: str, content_type: str) -> bytes:
    content_type = (content_type or "").lower()
    if content_type not in SUPPORTED_FILE_TYPES:
        raise HTTPException(status_code=400, detail=f"File type '{content_type}' is not allowed")
    try:
        data = base64.b64decode(file_content or "", validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="fileContent must be base64 encoded")
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(data) > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File size ({len(data) // (1024 * 1024)}MB) exceeds maximum allowed size ({MAX_FILE_SIZE // (1024 * 1024)}MB)",
        )
    return data


def store_upload(data: bytes, *, company_id: str, question_id: str, file_name: str) -> str:
    file_key = f"{company_id}_{sanitize_file_name(question_id)}_{uuid.uuid4().hex[:12]}_{sanitize_file_name(file_name)}"
    UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
    (UPLOADS_DIR / file_key).write_bytes(data)
    logger.info("[files] stored %s (%d bytes)", file_key, len(data))
    return file_key
