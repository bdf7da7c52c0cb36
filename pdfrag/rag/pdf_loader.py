"""PDF loader for extracting raw text from a single document.

Handles:
- Page-by-page text extraction
- Concatenation of pages into one logical document
- Mapping of every failure to LoadError
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import structlog
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from pdfrag.errors import LoadError

logger = structlog.get_logger()

PAGE_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class LoadedDocument:
    """Extracted text of a PDF (or of one of its pages)."""

    path: Path
    text: str
    page_count: int
    pages: List[str] = field(default_factory=list)
    page_number: Optional[int] = None  # 1-based, set only when split per page


class PDFLoader:
    """Loads text content from PDF files."""

    def __init__(self, split_pages: bool = False):
        """Initialize the loader.

        Args:
            split_pages: If True return one document per page, otherwise
                concatenate all pages into a single document
        """
        self.split_pages = split_pages

    def load(self, file_path: Union[str, Path]) -> List[LoadedDocument]:
        """Load a PDF file.

        Args:
            file_path: Path to the PDF

        Returns:
            List of LoadedDocument (exactly one unless split_pages is set)

        Raises:
            LoadError: If the file is missing, unreadable, not a PDF, or has
                no extractable text
        """
        path = Path(file_path)

        if not path.exists():
            raise LoadError(f"PDF file not found: {path}", str(path))
        if not path.is_file():
            raise LoadError(f"Not a file: {path}", str(path))

        pages = self._extract_pages(path)

        if not any(page.strip() for page in pages):
            raise LoadError("PDF document contains no extractable text", str(path))

        logger.info(
            "pdf_loaded",
            path=str(path),
            page_count=len(pages),
            split_pages=self.split_pages,
            content_length=sum(len(p) for p in pages),
        )

        if self.split_pages:
            return [
                LoadedDocument(
                    path=path,
                    text=page,
                    page_count=len(pages),
                    pages=[page],
                    page_number=number,
                )
                for number, page in enumerate(pages, 1)
            ]

        return [
            LoadedDocument(
                path=path,
                text=PAGE_SEPARATOR.join(pages),
                page_count=len(pages),
                pages=pages,
            )
        ]

    def _extract_pages(self, path: Path) -> List[str]:
        try:
            reader = PdfReader(str(path))
            return [page.extract_text() or "" for page in reader.pages]
        except (PyPdfError, OSError, ValueError) as e:
            logger.error("pdf_read_failed", path=str(path), error=str(e))
            raise LoadError(f"Failed to parse PDF: {e}", str(path)) from e


def load_pdf_text(file_path: Union[str, Path]) -> LoadedDocument:
    """Load a PDF as one concatenated document (convenience function).

    Args:
        file_path: Path to the PDF

    Returns:
        LoadedDocument with all pages joined
    """
    return PDFLoader(split_pages=False).load(file_path)[0]
