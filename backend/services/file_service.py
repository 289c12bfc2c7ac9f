import io
import logging
from dataclasses import dataclass

import pdfplumber

# PyMuPDF is the fallback extractor; pdfplumber alone is enough to run
try:
    import fitz  # PyMuPDF
    PYMUPDF_AVAILABLE = True
except ImportError:
    try:
        import pymupdf as fitz
        PYMUPDF_AVAILABLE = True
    except ImportError:
        PYMUPDF_AVAILABLE = False
        logging.warning("PyMuPDF not available, using pdfplumber only")

from exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ExtractedPDF:
    text: str
    page_count: int


class FileService:
    """Plain-text extraction from in-memory PDF bytes."""

    def extract_pdf(self, data: bytes) -> ExtractedPDF:
        """Extract all page text, merged with blank lines between pages.

        Tries pdfplumber first and falls back to PyMuPDF when pdfplumber
        cannot open the file or finds no text. Raises ValidationError when
        neither library can read the bytes as a PDF.
        """
        errors = []

        result = None
        try:
            result = self._extract_pdfplumber(data)
        except Exception as e:
            logger.warning(f"pdfplumber extraction failed: {e}")
            errors.append(e)

        if (result is None or not result.text.strip()) and PYMUPDF_AVAILABLE:
            try:
                fallback = self._extract_pymupdf(data)
                if result is None or fallback.text.strip():
                    result = fallback
            except Exception as e:
                logger.warning(f"PyMuPDF extraction failed: {e}")
                errors.append(e)

        if result is None:
            raise ValidationError(f"Invalid PDF: the file could not be parsed ({errors[-1] if errors else 'unknown error'})")
        return result

    def _extract_pdfplumber(self, data: bytes) -> ExtractedPDF:
        texts = []
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            page_count = len(pdf.pages)
            for page in pdf.pages:
                text = page.extract_text() or ""
                if text.strip():
                    texts.append(text.strip())
        return ExtractedPDF(text="\n\n".join(texts), page_count=page_count)

    def _extract_pymupdf(self, data: bytes) -> ExtractedPDF:
        texts = []
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            page_count = doc.page_count
            for page in doc:
                text = page.get_text()
                if text.strip():
                    texts.append(text.strip())
        finally:
            doc.close()
        return ExtractedPDF(text="\n\n".join(texts), page_count=page_count)
