"""Unit tests for uploaded-file text extraction."""

import io

import pytest
from docx import Document

from auranotes.core.exceptions import FileParseError, UnsupportedFileTypeError
from auranotes.services.ingestion import UploadedFile, parse_file, parse_files


def _docx_bytes(*paragraphs: str) -> bytes:
    """Build a small Word document in memory."""
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


def _pdf_bytes(*pages: str) -> bytes:
    """Build a minimal PDF with one line of Helvetica text per page."""
    count = len(pages)
    font_ref = 3 + 2 * count
    kids = b" ".join(b"%d 0 R" % (3 + 2 * i) for i in range(count))
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [%s] /Count %d >>" % (kids, count),
    ]
    for i, text in enumerate(pages):
        stream = b"BT /F1 12 Tf 20 100 Td (%s) Tj ET" % text.encode("latin-1")
        objects.append(
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 300 144] /Contents %d 0 R "
            b"/Resources << /Font << /F1 %d 0 R >> >> >>" % (4 + 2 * i, font_ref)
        )
        objects.append(b"<< /Length %d >>\nstream\n%s\nendstream" % (len(stream), stream))
    objects.append(b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n%s\nendobj\n" % (number, body)
    xref_at = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        len(objects) + 1,
        xref_at,
    )
    return bytes(out)


class TestParseFile:
    def test_plain_text(self):
        assert parse_file("notes.txt", "héllo".encode()) == "héllo"

    def test_markdown_uppercase_extension(self):
        assert parse_file("README.MD", b"# Title") == "# Title"

    def test_invalid_utf8_replaced(self):
        assert parse_file("a.txt", b"ok \xff") == "ok �"

    def test_docx_paragraphs(self):
        data = _docx_bytes("First paragraph", "Second paragraph")
        assert parse_file("lecture.docx", data) == "First paragraph\nSecond paragraph"

    def test_corrupt_docx(self):
        with pytest.raises(FileParseError):
            parse_file("broken.docx", b"not a zip file")

    def test_pdf_pages_joined_by_blank_line(self):
        data = _pdf_bytes("First page", "Second page")
        assert parse_file("slides.pdf", data) == "First page\n\nSecond page"

    def test_corrupt_pdf(self):
        with pytest.raises(FileParseError):
            parse_file("broken.pdf", b"not a pdf at all")

    @pytest.mark.parametrize("name", ["slides.pptx", "image.png", "noextension"])
    def test_unsupported(self, name):
        with pytest.raises(UnsupportedFileTypeError):
            parse_file(name, b"data")


class TestParseFiles:
    def test_markers_around_each_file(self):
        text = parse_files(
            [UploadedFile("a.txt", b"alpha"), UploadedFile("b.docx", _docx_bytes("beta"))]
        )

        assert "--- START OF FILE: a.txt ---\n\nalpha\n\n--- END OF FILE: a.txt ---" in text
        assert "--- START OF FILE: b.docx ---\n\nbeta\n\n--- END OF FILE: b.docx ---" in text
        assert text.index("a.txt") < text.index("b.docx")

    def test_pdf_inside_combined_upload(self):
        text = parse_files([UploadedFile("deck.pdf", _pdf_bytes("Agenda"))])

        assert text.startswith("--- START OF FILE: deck.pdf ---\n\nAgenda\n\n")

    def test_bad_file_becomes_error_marker(self):
        text = parse_files([UploadedFile("x.pdf", b"%PDF"), UploadedFile("ok.txt", b"fine")])

        assert "--- ERROR PARSING FILE: x.pdf ---" in text
        assert "fine" in text

    def test_empty_list(self):
        assert parse_files([]) == ""
