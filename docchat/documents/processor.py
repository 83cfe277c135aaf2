"""
Document Processor - Extract and chunk documents.

Supports: PDF, DOCX, TXT, MD
"""

import io
import logging
import os
import re
import uuid
from typing import Optional

from docx import Document as DocxDocument
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from ..exceptions import (
    DocumentEmptyError,
    ExtractionError,
    FileTooLargeError,
    UnsupportedFormatError,
)
from .chunker import check_window, chunk_text
from .models import ProcessedDocument

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIMES = ("text/plain", "text/markdown")


class DocumentProcessor:
    """Extract plain text from uploads and chunk it."""

    def __init__(
        self,
        chunk_size: int = 2500,
        chunk_overlap: int = 200,
        min_text_length: int = 30,
        max_file_size: int = 10 * 1024 * 1024,
    ):
        check_window(chunk_size, chunk_overlap)
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.min_text_length = min_text_length
        self.max_file_size = max_file_size

    def process(
        self,
        file_content: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> ProcessedDocument:
        """Extract text and split it into overlapping chunks."""
        text = self.extract(file_content, filename, content_type)
        chunks = chunk_text(text, self.chunk_size, self.chunk_overlap)

        ext = os.path.splitext(filename)[1].lower()
        logger.info("Processed %s: %d characters, %d chunks", filename, len(text), len(chunks))

        return ProcessedDocument(
            original_filename=filename,
            stored_filename=f"{uuid.uuid4().hex}{ext}",
            full_text=text,
            chunks=chunks,
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
        )

    def extract(
        self,
        file_content: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Return the cleaned plain text of a file.

        Raises:
            FileTooLargeError: more than max_file_size bytes
            UnsupportedFormatError: not a PDF, DOCX or text file
            ExtractionError: the file could not be read
            DocumentEmptyError: less than min_text_length characters of text
        """
        if len(file_content) > self.max_file_size:
            raise FileTooLargeError(
                f"{filename!r} is too large. Maximum size is {self.max_file_size} bytes."
            )

        ext = os.path.splitext(filename)[1].lower()

        if content_type == PDF_MIME or ext == ".pdf":
            text = self._extract_pdf(file_content)
        elif content_type == DOCX_MIME or ext == ".docx":
            text = self._extract_docx(file_content)
        elif content_type in TEXT_MIMES or ext in (".txt", ".md"):
            text = file_content.decode("utf-8", errors="ignore")
        else:
            raise UnsupportedFormatError(
                f"Unsupported file type for {filename!r}. Please upload PDF, DOCX, or TXT files."
            )

        text = self._clean(text)
        if len(text) < self.min_text_length:
            raise DocumentEmptyError(f"Could not extract readable text from {filename!r}")
        return text

    def _extract_pdf(self, content: bytes) -> str:
        try:
            reader = PdfReader(io.BytesIO(content))
            if reader.is_encrypted:
                raise ExtractionError("PDF is password-protected")
            parts = [page.extract_text() or "" for page in reader.pages]
        except (PdfReadError, ValueError, KeyError) as e:
            raise ExtractionError(f"Unable to read PDF file: {e}") from e
        return "\n\n".join(p for p in parts if p.strip())

    def _extract_docx(self, content: bytes) -> str:
        try:
            doc = DocxDocument(io.BytesIO(content))
        except Exception as e:
            # python-docx surfaces zip/xml errors of many kinds for a bad file
            raise ExtractionError(f"Unable to read DOCX file: {e}") from e
        return "\n\n".join(p.text for p in doc.paragraphs if p.text.strip())

    def _clean(self, text: str) -> str:
        text = text.replace("\r\n", "\n")
        text = re.sub(r" +", " ", text)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text.strip()
