"""
Text extraction from uploaded files.

Supports plain text (``.txt``, ``.md``), Word documents (``.docx`` via
python-docx) and PDFs (``.pdf`` via pypdf).  Several files can be combined
into one transcript with clear start / end markers so the curator can tell
the sources apart.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import PurePath

from docx import Document
from pypdf import PdfReader

from auranotes.core.exceptions import FileParseError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = {".txt", ".md"}
DOCX_EXTENSIONS = {".docx"}
PDF_EXTENSIONS = {".pdf"}


@dataclass(frozen=True)
class UploadedFile:
    """Name and raw bytes of one uploaded file."""

    filename: str
    data: bytes


def _parse_docx(filename: str, data: bytes) -> str:
    try:
        document = Document(io.BytesIO(data))
    except Exception as exc:
        raise FileParseError(filename, "not a readable Word document") from exc
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def _parse_pdf(filename: str, data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [(page.extract_text() or "").strip() for page in reader.pages]
    except Exception as exc:
        raise FileParseError(filename, "not a readable PDF") from exc
    return "\n\n".join(pages)


def parse_file(filename: str, data: bytes) -> str:
    """Extract the text of a single file.

    Args:
        filename: Original file name; its extension selects the parser.
        data: Raw file contents.

    Returns:
        The extracted text.

    Raises:
        UnsupportedFileTypeError: For extensions other than txt, md, docx, pdf.
        FileParseError: If a Word document or PDF cannot be read.
    """
    suffix = PurePath(filename).suffix.lower()
    if suffix in TEXT_EXTENSIONS:
        return data.decode("utf-8", errors="replace")
    if suffix in DOCX_EXTENSIONS:
        return _parse_docx(filename, data)
    if suffix in PDF_EXTENSIONS:
        return _parse_pdf(filename, data)
    raise UnsupportedFileTypeError(filename)


def parse_files(files: list[UploadedFile]) -> str:
    """Combine several files into one text block.

    A file that cannot be parsed is replaced by an error marker instead of
    failing the whole upload.
    """
    sections = []
    for upload in files:
        try:
            content = parse_file(upload.filename, upload.data)
        except (UnsupportedFileTypeError, FileParseError) as exc:
            logger.warning("Error parsing %s: %s", upload.filename, exc.detail)
            sections.append(f"--- ERROR PARSING FILE: {upload.filename} ---\n")
            continue
        sections.append(
            f"--- START OF FILE: {upload.filename} ---\n\n"
            f"{content}\n\n"
            f"--- END OF FILE: {upload.filename} ---\n"
        )
    return "\n".join(sections)
