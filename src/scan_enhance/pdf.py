"""PDF to page image conversion using PyMuPDF.

The enhancement pipeline only ever sees single-page rasters; this module
splits a PDF into those pages before they reach it.
"""

from pathlib import Path
from typing import Optional, Sequence

import fitz  # PyMuPDF

from scan_enhance.errors import DecodeError

PAGE_MIME = "image/jpeg"


def pdf_to_images(
    pdf_path: Path,
    dpi: int = 144,
    pages: Optional[Sequence[int]] = None,
    jpeg_quality: int = 95,
) -> list[bytes]:
    """Render PDF pages to JPEG byte strings.

    144 DPI (twice the PDF base resolution) keeps handwriting legible once
    the pipeline caps the long edge at 1024 px.

    Args:
        pdf_path:     Path to the PDF file.
        dpi:          Render resolution.
        pages:        1-based page numbers to render, in the order given.
                      Defaults to every page.
        jpeg_quality: Pillow-style 1–100 quality for the rendered pages.

    Raises:
        DecodeError: the file is not a readable PDF, is password protected,
            or a requested page does not exist or fails to render.
    """
    try:
        doc = fitz.open(str(pdf_path))
    except (RuntimeError, OSError) as exc:
        raise DecodeError(f"Could not open PDF {pdf_path}: {exc}") from exc

    try:
        if doc.needs_pass:
            raise DecodeError(f"PDF {pdf_path} is password protected.")

        numbers = list(pages) if pages is not None else list(range(1, doc.page_count + 1))
        for number in numbers:
            if not 1 <= number <= doc.page_count:
                raise DecodeError(
                    f"Page {number} is out of range; {pdf_path} has {doc.page_count} page(s)."
                )

        matrix = fitz.Matrix(dpi / 72, dpi / 72)  # 72 is the base DPI in the PDF spec
        results = []
        for number in numbers:
            try:
                pixmap = doc[number - 1].get_pixmap(matrix=matrix, colorspace=fitz.csRGB)
                results.append(pixmap.tobytes("jpeg", jpg_quality=jpeg_quality))
            except (RuntimeError, ValueError) as exc:
                raise DecodeError(f"Could not render page {number} of {pdf_path}: {exc}") from exc
    finally:
        doc.close()
    return results


def parse_page_list(text: str) -> list[int]:
    """Parse ``"1,3,5-7"`` into ``[1, 3, 5, 6, 7]``."""
    numbers: list[int] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start, _, end = part.partition("-")
            first, last = int(start), int(end)
            if last < first:
                raise ValueError(f"Descending page range: {part}")
            numbers.extend(range(first, last + 1))
        else:
            numbers.append(int(part))
    if not numbers:
        raise ValueError("No pages selected.")
    return numbers
