"""PDF text extraction backends"""

import logging
import os
from typing import List, Optional

from debt_snowball.config import Settings, settings
from debt_snowball.domain.models import PdfText
from debt_snowball.domain.pdf_parsing import (
    ManualEntryExtractor,
    PdfTextExtractor,
    file_name_from_path,
    manual_entry_placeholder,
)


class PdfPlumberExtractor:
    """
    Best-effort text extraction with pdfplumber.

    Scanned PDFs (images) have no text layer; those, unreadable files and
    missing paths fall back to the manual-entry sentinel.
    """

    def __init__(self, max_pages: Optional[int] = 20):
        self.max_pages = max_pages

    def extract_text(self, file_path: Optional[str]) -> PdfText:
        if not file_path or not os.path.isfile(file_path):
            return manual_entry_placeholder(file_path)

        import pdfplumber

        try:
            with pdfplumber.open(file_path) as pdf:
                total = len(pdf.pages)
                n = min(total, self.max_pages) if self.max_pages else total
                lines: List[str] = []
                for page in pdf.pages[:n]:
                    text = page.extract_text() or ""
                    if text:
                        lines.append(text)
        except Exception as e:
            logging.warning(
                f"PDF text extraction failed: {e}",
                extra={"step": "pdf_extract", "file_name": file_name_from_path(file_path)},
            )
            return manual_entry_placeholder(file_path)

        text = "\n".join(lines)
        if not text.strip():
            return manual_entry_placeholder(file_path)

        return PdfText(
            text=text,
            pages=total,
            info={"filename": file_name_from_path(file_path), "requires_manual_entry": False},
        )


def get_pdf_extractor(config: Settings = settings) -> PdfTextExtractor:
    """Provide the configured PDF text extractor"""
    if config.pdf_text_extraction:
        return PdfPlumberExtractor()
    return ManualEntryExtractor()
