"""
services/document_processor.py — Upload validation, text extraction and storage.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from config import Config
from exceptions import FileTooLargeError, ValidationError

logger = logging.getLogger(__name__)

INVALID_TYPE_MESSAGE = "Invalid file type. Only PDF files are allowed."
NO_PDF_TEXT_MESSAGE = "No text content found in PDF. The PDF may be empty or contain only images."
NO_TEXT_MESSAGE = "No text content provided. Please upload some text."


def too_large_message(limit: int) -> str:
    return f"File too large. Maximum size is {limit // (1024 * 1024)} MB."


@dataclass
class ProcessResult:
    text: str
    page_count: int = 0
    filename: Optional[str] = None


class DocumentProcessor:
    """Validates uploads, extracts text and writes it into the caller's session."""

    def __init__(self, file_service, stores, max_upload_size: int = Config.MAX_UPLOAD_SIZE):
        self._fs = file_service
        self._stores = stores
        self.max_upload_size = max_upload_size

    def validate_pdf(self, content_type: Optional[str], size: Optional[int]) -> None:
        if content_type != Config.ALLOWED_CONTENT_TYPE:
            raise ValidationError(INVALID_TYPE_MESSAGE)
        if size is not None and size > self.max_upload_size:
            raise FileTooLargeError(too_large_message(self.max_upload_size))

    async def process_pdf(
        self,
        session_id: str,
        data: bytes,
        content_type: Optional[str],
        filename: Optional[str] = None,
    ) -> ProcessResult:
        """
        Validate, extract and store a PDF upload.
        Extraction is CPU-bound, so it runs in the default thread pool.
        """
        self.validate_pdf(content_type, len(data))

        loop = asyncio.get_running_loop()
        extracted = await loop.run_in_executor(None, self._fs.extract_pdf, data)

        if not extracted.text or not extracted.text.strip():
            raise ValidationError(NO_PDF_TEXT_MESSAGE)

        self._stores.open(session_id).set_document_text(extracted.text)
        logger.info(
            "DocumentProcessor.process_pdf: session=%s file=%s pages=%d chars=%d",
            session_id, filename, extracted.page_count, len(extracted.text),
        )
        return ProcessResult(text=extracted.text, page_count=extracted.page_count, filename=filename)

    def process_text(self, session_id: str, text: Optional[str]) -> ProcessResult:
        if not text or not text.strip():
            raise ValidationError(NO_TEXT_MESSAGE)
        self._stores.open(session_id).set_document_text(text)
        logger.info("DocumentProcessor.process_text: session=%s chars=%d", session_id, len(text))
        return ProcessResult(text=text)
