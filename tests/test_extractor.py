"""Tests for document text extraction."""

import io
import zipfile

import docx
import pytest

import resume_intake.extractor as extractor
from resume_intake.errors import ExtractionError, UnsupportedFormatError
from resume_intake.extractor import detect_format, extract_text, guess_mime_type

from conftest import make_pdf


class FakePage:
    def __init__(self, text):
        self.text = text

    def extract_text(self):
        if isinstance(self.text, Exception):
            raise self.text
        return self.text


class FakePdf:
    def __init__(self, pages):
        self.pages = pages
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.closed = True


@pytest.fixture
def fake_pdf(monkeypatch):
    def install(pages):
        pdf = FakePdf([FakePage(t) for t in pages])
        monkeypatch.setattr(extractor.pdfplumber, "open", lambda stream: pdf)
        return pdf

    return install


def _docx_bytes() -> bytes:
    document = docx.Document()
    document.add_paragraph("Jane Roe")
    document.add_paragraph("Email: jane@example.com")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Skills"
    table.rows[0].cells[1].text = "React, CSS"
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


def test_detect_format_sniffs_magic_first():
    assert detect_format(b"%PDF-1.7 ...", "application/msword", "cv.doc") == "pdf"
    assert detect_format(b"PK\x03\x04rest", "application/pdf", "cv.pdf") == "docx"


def test_detect_format_falls_back_to_metadata():
    assert detect_format(b"????", "application/pdf", "") == "pdf"
    assert detect_format(b"????", "application/octet-stream", "CV.DOCX") == "docx"
    assert detect_format(b"????", "", "notes.txt") is None


def test_pdf_pages_joined(fake_pdf):
    pdf = fake_pdf(["Page one", None, "Page two"])
    assert extract_text(b"%PDF-1.4 data", "application/pdf", "cv.pdf") == "Page one\nPage two"
    assert pdf.closed is True


def test_pdf_parse_failure_releases_document(fake_pdf):
    pdf = fake_pdf([ValueError("broken xref")])
    with pytest.raises(ExtractionError, match="broken xref"):
        extract_text(b"%PDF-1.4 data", "application/pdf", "cv.pdf")
    assert pdf.closed is True


def test_docx_paragraphs_and_tables():
    text = extract_text(_docx_bytes(), "application/octet-stream", "resume.docx")
    assert "Jane Roe" in text
    assert "Email: jane@example.com" in text
    assert "Skills | React, CSS" in text


def test_zip_that_is_not_docx_fails():
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("hello.txt", "not a word document")
    with pytest.raises(ExtractionError, match="not a readable Word document"):
        extract_text(buf.getvalue(), "application/zip", "resume.docx")


def test_legacy_doc_unsupported():
    data = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 32
    with pytest.raises(UnsupportedFormatError, match=r"\.doc"):
        extract_text(data, "application/msword", "resume.doc")


def test_unknown_format_unsupported():
    with pytest.raises(UnsupportedFormatError, match="resume.rtf"):
        extract_text(b"{\\rtf1 hello}", "application/rtf", "resume.rtf")


def test_guess_mime_type():
    assert guess_mime_type("cv.PDF") == "application/pdf"
    assert guess_mime_type("cv.doc") == "application/msword"
    assert guess_mime_type("cv") == "application/octet-stream"


def test_real_pdf_text():
    data = make_pdf(["Arjun Mehta", "Backend Developer", "5 years of experience in Node, MongoDB"])
    text = extract_text(data, "application/pdf", "arjun_resume.pdf")
    lines = text.splitlines()
    assert lines[0] == "Arjun Mehta"
    assert "5 years of experience in Node, MongoDB" in text
