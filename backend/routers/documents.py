"""
routers/documents.py — PDF and plain-text document upload.
"""

from typing import Optional

from fastapi import APIRouter, File, Request, UploadFile

from dependencies import Documents, SessionId
from exceptions import ValidationError
from logging_config import get_logger
from schemas import UploadData, UploadTextRequest
from utils.errors import envelope, error_response

logger = get_logger(__name__)
router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.post("/upload")
async def upload_pdf(
    request: Request,
    session_id: SessionId,
    documents: Documents,
    file: Optional[UploadFile] = File(None),
):
    try:
        if file is None or not file.filename:
            raise ValidationError("No file provided. Please upload a PDF.")

        # Reject on declared metadata before reading the body
        documents.validate_pdf(file.content_type, file.size)
        data = await file.read(documents.max_upload_size + 1)

        result = await documents.process_pdf(session_id, data, file.content_type, file.filename)
        return envelope(
            data=UploadData(pageCount=result.page_count).model_dump(),
            message="PDF uploaded and processed successfully",
            session_id=session_id,
        )
    except Exception as exc:
        return error_response(exc, request.url.path, session_id)
    finally:
        if file is not None:
            await file.close()


@router.post("/upload-text")
async def upload_text(
    data: UploadTextRequest,
    request: Request,
    session_id: SessionId,
    documents: Documents,
):
    try:
        documents.process_text(session_id, data.text)
        return envelope(
            data={"success": True},
            message="Text uploaded successfully",
            session_id=session_id,
        )
    except Exception as exc:
        return error_response(exc, request.url.path, session_id)
