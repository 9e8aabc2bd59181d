"""Document text extraction for question imports.

Responsibilities:
- Extract text from uploaded PDFs with selectable text (PyMuPDF)
- Decode plain-text uploads
- Fail with an informative error on protected, scanned or empty files

Dependencies:
- pymupdf (fitz)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath

import fitz
import structlog

logger = structlog.get_logger(__name__)

TEXT_SUFFIXES = {".txt", ".md", ".text"}
MIN_CHARS_PER_PAGE = 100  # Below this, a page counts as empty or scanned


@dataclass
class ExtractedDocument:
    """Text pulled out of an upload."""

    filename: str
    text: str
    pages: int
    empty_pages: int = 0


class ExtractionError(Exception):
    """Base exception for document extraction errors."""

    pass


class UnsupportedFormatError(ExtractionError):
    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(
            f"Formato de arquivo não suportado: {filename}. Envie um PDF ou um arquivo de texto."
        )


class ProtectedPdfError(ExtractionError):
    """Raised when the PDF is password-protected."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"PDF protegido por senha: {filename}")


class InvalidPdfError(ExtractionError):
    """Raised when the upload is not a readable PDF."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(
            f"Não foi possível abrir {filename}: o arquivo está corrompido ou não é um PDF."
        )


class EmptyDocumentError(ExtractionError):
    """Raised when no text could be extracted (scanned PDF or blank file)."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(
            f"Nenhum texto encontrado em {filename}. "
            "O arquivo pode estar vazio ou ser um PDF escaneado."
        )


def extract_document_text(data: bytes, filename: str) -> ExtractedDocument:
    """Extract text from an uploaded document.

    Args:
        data: Raw file bytes
        filename: Original file name (its suffix selects the reader)

    Returns:
        ExtractedDocument with the full text

    Raises:
        UnsupportedFormatError: If the suffix is neither PDF nor text
        InvalidPdfError: If the PDF is corrupt or not a PDF at all
        ProtectedPdfError: If the PDF is encrypted
        EmptyDocumentError: If no text was found
    """
    suffix = PurePath(filename).suffix.lower()

    if suffix == ".pdf":
        document = _extract_pdf(data, filename)
    elif suffix in TEXT_SUFFIXES:
        text = data.decode("utf-8", errors="replace")
        document = ExtractedDocument(filename=filename, text=text, pages=1)
    else:
        raise UnsupportedFormatError(filename)

    if not document.text.strip():
        raise EmptyDocumentError(filename)

    logger.info(
        "document_extractor.done",
        filename=filename,
        pages=document.pages,
        empty_pages=document.empty_pages,
        chars=len(document.text),
    )
    return document


def _extract_pdf(data: bytes, filename: str) -> ExtractedDocument:
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except fitz.FileDataError as e:
        logger.warning("document_extractor.invalid_pdf", filename=filename, error=str(e))
        raise InvalidPdfError(filename) from e

    try:
        if doc.is_encrypted:
            raise ProtectedPdfError(filename)

        parts = []
        empty_pages = 0
        for page in doc:
            page_text = page.get_text()
            if len(page_text.strip()) < MIN_CHARS_PER_PAGE:
                empty_pages += 1
            if page_text.strip():
                parts.append(page_text)
        total_pages = len(doc)
    finally:
        doc.close()

    if total_pages and empty_pages / total_pages > 0.5:
        logger.warning(
            "document_extractor.likely_scanned",
            filename=filename,
            empty_pages=empty_pages,
            total_pages=total_pages,
        )

    return ExtractedDocument(
        filename=filename,
        text="\n".join(parts),
        pages=total_pages,
        empty_pages=empty_pages,
    )
