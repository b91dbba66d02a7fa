# esgint/extract/pdf_text.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import fitz  # PyMuPDF


@dataclass
class ExtractedDoc:
    """
    Text of one report as handed to the scoring engine, plus page metadata.
    Page boundaries are flattened to newlines; reading order is PyMuPDF's.
    """
    text: str
    pages: int
    meta: Dict[str, Any]


def extract_pdf_text(
    pdf_path: str,
    *,
    max_pages: Optional[int] = None,
) -> ExtractedDoc:
    """
    Extract text from a PDF using PyMuPDF, one line break after each page.

    Args:
        pdf_path: path to PDF
        max_pages: if set, only extract from the first N pages

    Returns:
        ExtractedDoc
    """
    with fitz.open(pdf_path) as doc:
        total_pages = doc.page_count
        n = total_pages if max_pages is None else min(max_pages, total_pages)

        parts = []
        for i in range(n):
            page = doc.load_page(i)
            parts.append(page.get_text("text") or "")
            parts.append("\n")

    return ExtractedDoc(
        text="".join(parts),
        pages=total_pages,
        meta={
            "pdf_path": pdf_path,
            "extracted_pages": n,
            "total_pages": total_pages,
            "engine": "pymupdf",
        },
    )
