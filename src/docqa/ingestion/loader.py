"""Document text extraction — bytes in, ordered page texts out."""

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from docqa.errors import ExtractionError

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"


class ExtractorBase(ABC):
    """Turns raw file bytes into an ordered list of page texts."""

    @abstractmethod
    def extract(self, data: bytes) -> list[str]:
        """Return one text entry per source page, in page order.

        Raises
        ------
        ExtractionError
            When the input is unsupported or corrupt.
        """
        ...


def load_pdf(path: str | Path) -> list[Document]:
    """Load a single PDF file, one ``Document`` per page."""
    from langchain_community.document_loaders import PyPDFLoader

    return PyPDFLoader(str(path)).load()


class PdfExtractor(ExtractorBase):
    """PDF extraction through LangChain's ``PyPDFLoader``.

    The loader only reads from disk, so the bytes are spooled to a
    temporary file first.
    """

    def extract(self, data: bytes) -> list[str]:
        if not data.startswith(PDF_MAGIC):
            raise ExtractionError(
                "Unsupported file type: expected a PDF document",
                details={"size": len(data)},
            )

        fd, tmp_path = tempfile.mkstemp(prefix="docqa_", suffix=".pdf")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            pages = load_pdf(tmp_path)
        except Exception as exc:
            raise ExtractionError(f"Failed to extract PDF text: {exc}") from exc
        finally:
            Path(tmp_path).unlink(missing_ok=True)

        logger.info("Extracted %d page(s) from PDF (%d bytes)", len(pages), len(data))
        return [page.page_content for page in pages]
