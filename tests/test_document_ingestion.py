"""
Unit tests for Layer 1: Document Ingestion
Tests the normalizer for every supported format and the file queue
"""
import sys
import os
import io
import json
from unittest.mock import MagicMock, patch

import docx
import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from layer_1_document_ingestion.normalizer import (
    normalize,
    DocumentReadError,
    NormalizationError,
    UnsupportedFileType,
    UnsupportedJsonShape,
    PAGE_SEPARATOR,
)
from layer_1_document_ingestion.file_queue import FileQueue
from models.analysis import UploadedFile


def make_file(name: str, content, last_modified: float = 1700000000.0) -> UploadedFile:
    data = content.encode("utf-8") if isinstance(content, str) else content
    return UploadedFile(name=name, data=data, last_modified=last_modified)


def make_docx(paragraphs) -> bytes:
    document = docx.Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def fake_pdf(page_texts):
    """Stand-in for pdfplumber.open() returning pages with the given text layers"""
    pages = []
    for text in page_texts:
        page = MagicMock()
        page.extract_text.return_value = text
        pages.append(page)
    pdf = MagicMock()
    pdf.pages = pages
    pdf.__enter__.return_value = pdf
    pdf.__exit__.return_value = False
    return pdf


class TestUploadedFile:
    """Test derived file attributes"""

    def test_extension_is_lowercased(self):
        assert make_file("Report.PDF", b"").extension == "pdf"

    def test_extension_uses_last_dot(self):
        assert make_file("reviews.backup.json", b"").extension == "json"

    def test_extension_missing(self):
        assert make_file("README", b"").extension == ""

    def test_id_combines_name_and_timestamp(self):
        assert make_file("a.txt", "x", last_modified=42).id == "a.txt-42"

    def test_same_upload_picked_twice_has_one_id(self):
        first = MagicMock(file_id="upload-1")
        first.name = "reviews.txt"
        first.getvalue.return_value = b"Great coffee."
        second = MagicMock(file_id="upload-2")
        second.name = "reviews.txt"
        second.getvalue.return_value = b"Great coffee."

        assert UploadedFile.from_upload(first).id == UploadedFile.from_upload(second).id

        queue = FileQueue()
        queue.add([UploadedFile.from_upload(first)])
        assert queue.add([UploadedFile.from_upload(second)]) == 0
        assert len(queue) == 1

    def test_upload_with_changed_content_has_new_id(self):
        first = MagicMock(file_id="upload-1")
        first.name = "reviews.txt"
        first.getvalue.return_value = b"Great coffee."
        edited = MagicMock(file_id="upload-2")
        edited.name = "reviews.txt"
        edited.getvalue.return_value = b"Great coffee, slow service."

        assert UploadedFile.from_upload(first).id != UploadedFile.from_upload(edited).id


class TestTxtNormalization:
    """Test plain text files"""

    def test_returns_text_verbatim(self):
        text = "  Loved it.\n\nWould buy again!  "
        assert normalize(make_file("review.txt", text)) == text

    def test_uppercase_extension(self):
        assert normalize(make_file("REVIEW.TXT", "hello")) == "hello"

    def test_byte_order_mark_is_dropped(self):
        file = make_file("review.txt", "\ufeffNice and quiet room.".encode("utf-8"))
        assert normalize(file) == "Nice and quiet room."


class TestJsonNormalization:
    """Test JSON files, including the plain-text fallback"""

    def test_text_field(self):
        file = make_file("review.json", json.dumps({"text": "Great product!"}))
        assert normalize(file) == "Great product!"

    def test_text_field_with_byte_order_mark(self):
        file = make_file("review.json", "\ufeff{\"text\": \"Great product!\"}".encode("utf-8"))
        assert normalize(file) == "Great product!"

    def test_json_string(self):
        file = make_file("review.json", json.dumps("Just a string"))
        assert normalize(file) == "Just a string"

    def test_invalid_json_falls_back_to_raw_text(self):
        raw = "{not json: this is a plain review"
        assert normalize(make_file("review.json", raw)) == raw

    def test_plain_text_with_json_extension(self):
        raw = "The delivery was late but the food was great."
        assert normalize(make_file("notes.json", raw)) == raw

    def test_object_without_text_field(self):
        file = make_file("review.json", json.dumps({"body": "hello"}))
        with pytest.raises(UnsupportedJsonShape):
            normalize(file)

    def test_non_string_text_field(self):
        file = make_file("review.json", json.dumps({"text": 42}))
        with pytest.raises(UnsupportedJsonShape):
            normalize(file)

    def test_list_is_unsupported(self):
        file = make_file("review.json", json.dumps(["a", "b"]))
        with pytest.raises(UnsupportedJsonShape) as exc_info:
            normalize(file)
        assert '"text"' in str(exc_info.value)

    def test_unsupported_shape_is_normalization_error(self):
        with pytest.raises(NormalizationError):
            normalize(make_file("review.json", "123"))


class TestReadDocx:
    """Test Word documents"""

    def test_paragraph_text(self):
        file = make_file("reviews.docx", make_docx(["First review.", "Second review."]))
        text = normalize(file)
        assert "First review." in text
        assert "Second review." in text
        assert text.index("First review.") < text.index("Second review.")

    def test_table_text_is_kept(self):
        document = docx.Document()
        document.add_paragraph("Reviews")
        table = document.add_table(rows=1, cols=1)
        table.cell(0, 0).text = "Terrible battery life, returned it."
        buffer = io.BytesIO()
        document.save(buffer)

        text = normalize(make_file("reviews.docx", buffer.getvalue()))

        assert "Reviews" in text
        assert "Terrible battery life, returned it." in text

    def test_tables_and_paragraphs_in_document_order(self):
        document = docx.Document()
        document.add_paragraph("Customer feedback")
        table = document.add_table(rows=2, cols=2)
        table.cell(0, 0).text = "Ana"
        table.cell(0, 1).text = "Loved the camera."
        table.cell(1, 0).text = "Raj"
        table.cell(1, 1).text = "Screen cracked in a week."
        document.add_paragraph("End of report")
        buffer = io.BytesIO()
        document.save(buffer)

        lines = normalize(make_file("reviews.docx", buffer.getvalue())).split("\n")

        assert lines == [
            "Customer feedback",
            "Ana\tLoved the camera.",
            "Raj\tScreen cracked in a week.",
            "End of report",
        ]

    def test_corrupt_docx(self):
        with pytest.raises(DocumentReadError):
            normalize(make_file("broken.docx", b"this is not a zip archive"))


class TestPdfNormalization:
    """Test PDF text extraction"""

    def test_pages_joined_in_order(self):
        with patch("layer_1_document_ingestion.normalizer.pdfplumber.open") as mock_open:
            mock_open.return_value = fake_pdf(["Page one", "Page two", "Page three"])
            text = normalize(make_file("doc.pdf", b"%PDF-1.4"))
        assert text == PAGE_SEPARATOR.join(["Page one", "Page two", "Page three"])
        assert text == "Page one\n\nPage two\n\nPage three"

    def test_page_without_text_layer(self):
        with patch("layer_1_document_ingestion.normalizer.pdfplumber.open") as mock_open:
            mock_open.return_value = fake_pdf(["Intro", None])
            assert normalize(make_file("doc.pdf", b"%PDF-1.4")) == "Intro\n\n"

    def test_single_page_has_no_separator(self):
        with patch("layer_1_document_ingestion.normalizer.pdfplumber.open") as mock_open:
            mock_open.return_value = fake_pdf(["Only page"])
            assert normalize(make_file("doc.pdf", b"%PDF-1.4")) == "Only page"

    def test_decoder_failure(self):
        with patch("layer_1_document_ingestion.normalizer.pdfplumber.open") as mock_open:
            mock_open.side_effect = Exception("No /Root object! - Is this really a PDF?")
            with pytest.raises(DocumentReadError) as exc_info:
                normalize(make_file("broken.pdf", b"garbage"))
        assert "broken.pdf" in str(exc_info.value)


class TestUnsupportedFiles:
    """Test rejection of unknown extensions"""

    def test_unknown_extension(self):
        with pytest.raises(UnsupportedFileType) as exc_info:
            normalize(make_file("data.xlsx", b"..."))
        assert exc_info.value.extension == "xlsx"
        assert ".xlsx" in str(exc_info.value)

    def test_no_extension(self):
        with pytest.raises(UnsupportedFileType):
            normalize(make_file("README", b"hello"))


class TestFileQueue:
    """Test queue ordering and de-duplication"""

    def test_add_preserves_order(self):
        queue = FileQueue()
        queue.add([make_file("a.txt", "a"), make_file("b.txt", "b"), make_file("c.txt", "c")])
        assert [f.name for f in queue] == ["a.txt", "b.txt", "c.txt"]

    def test_duplicate_name_and_timestamp_added_once(self):
        queue = FileQueue()
        assert queue.add([make_file("a.txt", "first", 1.0)]) == 1
        assert queue.add([make_file("a.txt", "second", 1.0)]) == 0
        assert len(queue) == 1

    def test_duplicates_within_one_selection(self):
        queue = FileQueue()
        added = queue.add([make_file("a.txt", "x", 1.0), make_file("a.txt", "x", 1.0)])
        assert added == 1
        assert len(queue) == 1

    def test_same_name_different_timestamp_kept(self):
        queue = FileQueue()
        queue.add([make_file("a.txt", "x", 1.0), make_file("a.txt", "x", 2.0)])
        assert len(queue) == 2

    def test_remove(self):
        queue = FileQueue([make_file("a.txt", "a", 1.0), make_file("b.txt", "b", 1.0)])
        assert queue.remove("a.txt-1.0") is True
        assert queue.remove("a.txt-1.0") is False
        assert [f.name for f in queue] == ["b.txt"]

    def test_contains(self):
        queue = FileQueue([make_file("a.txt", "a", 1.0)])
        assert "a.txt-1.0" in queue
        assert "b.txt-1.0" not in queue

    def test_clear(self):
        queue = FileQueue([make_file("a.txt", "a")])
        queue.clear()
        assert len(queue) == 0

    def test_snapshot_is_unaffected_by_later_changes(self):
        queue = FileQueue([make_file("a.txt", "a", 1.0)])
        snapshot = queue.snapshot()
        queue.add([make_file("b.txt", "b", 1.0)])
        queue.remove("a.txt-1.0")
        assert [f.name for f in snapshot] == ["a.txt"]
