"""Tests for upload text extraction."""

import fitz
import pytest

from eduportal.core.document_extractor import (
    EmptyDocumentError,
    InvalidPdfError,
    UnsupportedFormatError,
    extract_document_text,
)


def _pdf_bytes(*pages: str) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


class TestExtractDocumentText:
    def test_plain_text_is_decoded(self):
        doc = extract_document_text("1) Questão\nA) sim".encode("utf-8"), "prova.txt")
        assert doc.text.startswith("1) Questão")
        assert doc.pages == 1

    def test_pdf_pages_are_joined(self):
        doc = extract_document_text(_pdf_bytes("Primeira pagina", "Segunda pagina"), "prova.PDF")
        assert "Primeira pagina" in doc.text
        assert "Segunda pagina" in doc.text
        assert doc.pages == 2

    def test_blank_pdf_is_rejected(self):
        with pytest.raises(EmptyDocumentError):
            extract_document_text(_pdf_bytes(""), "vazio.pdf")

    def test_corrupt_pdf_is_rejected(self):
        with pytest.raises(InvalidPdfError, match="corrompido"):
            extract_document_text(b"not a pdf at all", "prova.pdf")

    def test_unsupported_suffix(self):
        with pytest.raises(UnsupportedFormatError):
            extract_document_text(b"PK", "prova.docx")
