"""Tests for PDF text extraction."""
import pytest
from pypdf.errors import PdfReadError

from pdfrag.errors import LoadError
from pdfrag.rag.pdf_loader import PDFLoader, load_pdf_text


def test_pages_are_joined_into_one_document(fake_pdf):
    path = fake_pdf(["First page.", "Second page.", "Third page."])

    docs = PDFLoader().load(path)

    assert len(docs) == 1
    assert docs[0].text == "First page.\n\nSecond page.\n\nThird page."
    assert docs[0].page_count == 3
    assert docs[0].page_number is None


def test_split_pages_returns_one_document_per_page(fake_pdf):
    path = fake_pdf(["alpha", "beta"])

    docs = PDFLoader(split_pages=True).load(path)

    assert [d.text for d in docs] == ["alpha", "beta"]
    assert [d.page_number for d in docs] == [1, 2]
    assert all(d.page_count == 2 for d in docs)


def test_pages_without_text_become_empty(fake_pdf):
    path = fake_pdf(["alpha", None, "gamma"])

    doc = load_pdf_text(path)

    assert doc.text == "alpha\n\n\n\ngamma"
    assert doc.pages == ["alpha", "", "gamma"]


def test_missing_file_raises_load_error(tmp_path):
    missing = tmp_path / "nope.pdf"

    with pytest.raises(LoadError) as exc_info:
        PDFLoader().load(missing)

    assert exc_info.value.path == str(missing)
    assert "not found" in exc_info.value.message


def test_directory_raises_load_error(tmp_path):
    with pytest.raises(LoadError):
        PDFLoader().load(tmp_path)


def test_document_without_text_raises_load_error(fake_pdf):
    path = fake_pdf(["", "   \n", None])

    with pytest.raises(LoadError, match="no extractable text"):
        PDFLoader().load(path)


def test_parser_failure_raises_load_error(tmp_path, monkeypatch):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"%PDF-1.4 truncated")

    def broken_reader(stream):
        raise PdfReadError("EOF marker not found")

    monkeypatch.setattr("pdfrag.rag.pdf_loader.PdfReader", broken_reader)

    with pytest.raises(LoadError, match="Failed to parse PDF") as exc_info:
        PDFLoader().load(path)

    assert isinstance(exc_info.value.__cause__, PdfReadError)


def test_empty_file_raises_load_error(tmp_path):
    path = tmp_path / "empty.pdf"
    path.write_bytes(b"")

    with pytest.raises(LoadError) as exc_info:
        PDFLoader().load(path)

    assert exc_info.value.path == str(path)
