from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request

from .. import repo
from ..config import ENABLE_ANALYTICS, ENABLE_FILE_UPLOAD
from ..http_helpers import decode_upload, public_upload_url, sanitize_file_name, store_upload, validate_company_id
from ..schemas import FileUploadRequest, FileUploadResponse

router = APIRouter()


@router.post("/files")
def upload_file(payload: FileUploadRequest, request: Request) -> dict[str, Any]:
    if not ENABLE_FILE_UPLOAD:
        raise HTTPException(status_code=403, detail="File uploads are disabled")
    company_id = validate_company_id(payload.company_id)
    question_id = payload.question_id.strip()
    if not question_id:
        raise HTTPException(status_code=400, detail="questionId is required")

    content_type = payload.content_type.lower()
    data = decode_upload(payload.file_content, content_type)
    file_name = sanitize_file_name(payload.file_name)
    file_key = store_upload(data, company_id=company_id, question_id=question_id, file_name=file_name)
    repo.record_uploaded_file(
        file_key=file_key,
        company_id=company_id,
        question_id=question_id,
        file_name=file_name,
        content_type=content_type,
        file_size=len(data),
        assessment_type=payload.assessment_type,
        log_event=ENABLE_ANALYTICS,
    )
    return FileUploadResponse(
        file_key=file_key,
        download_url=public_upload_url(request, file_key),
        file_name=file_name,
        file_size=len(data),
        content_type=content_type,
    ).to_wire()


@router.get("/files/{company_id}")
def list_files(company_id: str, questionId: Optional[str] = None) -> dict[str, Any]:
    return {"files": repo.list_uploaded_files(validate_company_id(company_id), questionId)}
