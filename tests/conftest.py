"""Shared fixtures for the test suite.

All fixtures here produce real files / real bytes so tests exercise actual
code paths rather than hand-crafted stubs.
"""

import io
from pathlib import Path

import fitz  # PyMuPDF
import numpy as np
import pytest
from click.testing import CliRunner
from PIL import Image, ImageDraw

from scan_enhance.buffers import PixelBuffer


# ── CLI runner ─────────────────────────────────────────────────────────────


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


# ── Buffer helpers ─────────────────────────────────────────────────────────


def make_buffer(rgb, width: int = 0, height: int = 0) -> PixelBuffer:
    """Build an opaque buffer from an (H, W, 3) array, or fill one with a colour."""
    if isinstance(rgb, tuple):
        arr = np.empty((height, width, 3), dtype=np.uint8)
        arr[...] = rgb
        rgb = arr
    return PixelBuffer.from_rgb(np.asarray(rgb))


def gray_buffer(plane) -> PixelBuffer:
    """Opaque grayscale buffer from a 2-D array of 0–255 values."""
    return PixelBuffer.from_gray(np.asarray(plane, dtype=np.float64))


# ── Image fixtures ─────────────────────────────────────────────────────────


@pytest.fixture
def png_bytes() -> bytes:
    """A real, valid 10×10 red PNG image as raw bytes."""
    buf = io.BytesIO()
    Image.new("RGB", (10, 10), color=(255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_file(tmp_path: Path, png_bytes: bytes) -> Path:
    """The PNG written to a temporary file on disk."""
    path = tmp_path / "test.png"
    path.write_bytes(png_bytes)
    return path


@pytest.fixture
def page_image() -> Image.Image:
    """A 300×200 off-white page with three dark 'text lines' under uneven light."""
    img = Image.new("RGB", (300, 200), color=(235, 230, 220))
    draw = ImageDraw.Draw(img)
    # Shade the right half to simulate a shadow across the page.
    draw.rectangle((150, 0, 299, 199), fill=(170, 165, 160))
    for y in (50, 100, 150):
        draw.line((20, y, 280, y), fill=(40, 40, 60), width=3)
    return img


@pytest.fixture
def page_jpeg_bytes(page_image: Image.Image) -> bytes:
    buf = io.BytesIO()
    page_image.save(buf, format="JPEG", quality=95)
    return buf.getvalue()


@pytest.fixture
def page_png_bytes(page_image: Image.Image) -> bytes:
    buf = io.BytesIO()
    page_image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def page_file(tmp_path: Path, page_jpeg_bytes: bytes) -> Path:
    path = tmp_path / "homework.jpg"
    path.write_bytes(page_jpeg_bytes)
    return path


# ── PDF fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def single_page_pdf(tmp_path: Path) -> Path:
    """A real single-page PDF containing a text line."""
    path = tmp_path / "single.pdf"
    doc = fitz.open()
    page = doc.new_page(width=595, height=842)  # A4
    page.insert_text((72, 100), "Hello, OCR world!")
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def multi_page_pdf(tmp_path: Path) -> Path:
    """A real 3-page PDF with distinct text on each page."""
    path = tmp_path / "multi.pdf"
    doc = fitz.open()
    for i in range(3):
        page = doc.new_page(width=595, height=842)
        page.insert_text((72, 100), f"Page {i + 1} content")
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def encrypted_pdf(tmp_path: Path) -> Path:
    """A single-page PDF that needs a user password to open."""
    path = tmp_path / "locked.pdf"
    doc = fitz.open()
    page = doc.new_page(width=595, height=842)
    page.insert_text((72, 100), "Locked page")
    doc.save(
        str(path),
        encryption=fitz.PDF_ENCRYPT_AES_256,
        owner_pw="owner-secret",
        user_pw="user-secret",
    )
    doc.close()
    return path
