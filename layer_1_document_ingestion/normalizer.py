"""
Document normalizer - converts uploaded PDF, DOCX, JSON and TXT files into plain text
"""
import io
import json
from typing import Callable, Dict

import docx
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph
import pdfplumber

from models.analysis import UploadedFile
from utils.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = ("pdf", "docx", "json", "txt")

# Separator inserted between the text of consecutive PDF pages
PAGE_SEPARATOR = "\n\n"


class NormalizationError(Exception):
    """Base class for errors raised while turning a file into text"""


class UnsupportedFileType(NormalizationError):
    """The file extension is not one of SUPPORTED_EXTENSIONS"""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(
            f"Unsupported file type: .{extension}. "
            "Please upload a .docx, .pdf, .json or .txt file."
        )


class UnsupportedJsonShape(NormalizationError):
    """The JSON parsed, but is neither a string nor an object with a 'text' string"""

    def __init__(self):
        super().__init__('JSON file must be a string or an object with a "text" property.')


class DocumentReadError(NormalizationError):
    """The PDF or DOCX decoder could not read the file"""


def _decode_text(data: bytes) -> str:
    # utf-8-sig drops a leading byte-order mark
    return data.decode("utf-8-sig", errors="replace")


def read_txt(file: UploadedFile) -> str:
    """Return the file's bytes decoded as text, unchanged"""
    return _decode_text(file.data)


def read_json(file: UploadedFile) -> str:
    """
    Extract text from a JSON file

    Accepts either a JSON string or an object with a string "text" field.
    Files that are not valid JSON are returned as raw text, since plain text
    files are often uploaded with a .json extension.

    Args:
        file: Uploaded JSON file

    Returns:
        Text content

    Raises:
        UnsupportedJsonShape: valid JSON of any other shape
    """
    raw_text = _decode_text(file.data)
    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError:
        logger.warning(f"{file.name} is not valid JSON, treating it as plain text")
        return raw_text

    if isinstance(parsed, str):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("text"), str):
        return parsed["text"]
    raise UnsupportedJsonShape()


def _table_lines(table: Table):
    """One tab-separated line per table row, skipping empty rows"""
    for row in table.rows:
        row_text = "\t".join(cell.text or "" for cell in row.cells)
        if row_text.strip():
            yield row_text


def read_docx(file: UploadedFile) -> str:
    """
    Extract raw text from a Word document in document order

    Each paragraph becomes one line and each table row one tab-separated
    line, so reviews kept in tables are not lost.
    """
    try:
        document = docx.Document(io.BytesIO(file.data))
    except Exception as e:
        raise DocumentReadError(f"Could not read Word document {file.name}: {e}") from e

    lines = []
    for child in document.element.body.iterchildren():
        if child.tag == qn("w:p"):
            lines.append(Paragraph(child, document).text)
        elif child.tag == qn("w:tbl"):
            lines.extend(_table_lines(Table(child, document)))
    return "\n".join(lines)


def read_pdf(file: UploadedFile) -> str:
    """
    Extract the text layer of every page, in page order

    Pages are joined with a blank line. Pages without a text layer
    (scanned images) contribute an empty string.
    """
    page_texts = []
    try:
        with pdfplumber.open(io.BytesIO(file.data)) as pdf:
            for page in pdf.pages:
                page_texts.append(page.extract_text() or "")
    except Exception as e:
        raise DocumentReadError(f"Could not read PDF {file.name}: {e}") from e

    logger.debug(f"Extracted {len(page_texts)} pages from {file.name}")
    return PAGE_SEPARATOR.join(page_texts)


READERS: Dict[str, Callable[[UploadedFile], str]] = {
    "txt": read_txt,
    "json": read_json,
    "docx": read_docx,
    "pdf": read_pdf,
}


def normalize(file: UploadedFile) -> str:
    """
    Convert an uploaded file into analyzable plain text

    Dispatches purely on the lowercased filename extension.

    Args:
        file: Uploaded file

    Returns:
        Plain text content of the file

    Raises:
        UnsupportedFileType: extension is not pdf, docx, json or txt
        UnsupportedJsonShape: JSON file with an unexpected structure
        DocumentReadError: PDF or DOCX decoding failed
    """
    reader = READERS.get(file.extension)
    if reader is None:
        raise UnsupportedFileType(file.extension)
    text = reader(file)
    logger.info(f"Normalized {file.name} ({file.extension}): {len(text)} characters")
    return text
