"""Tests for scan_enhance.pdf — pdf_to_images() and parse_page_list()."""

import io
from unittest.mock import patch

import pytest
from PIL import Image

from scan_enhance.errors import DecodeError
from scan_enhance.pdf import parse_page_list, pdf_to_images

# JPEG files always begin with the SOI marker followed by another marker.
JPEG_MAGIC = b"\xff\xd8\xff"


def _size(data: bytes) -> tuple[int, int]:
    return Image.open(io.BytesIO(data)).size


class TestPdfToImages:
    # ── Page count ────────────────────────────────────────────────────────

    def test_single_page_pdf_returns_one_image(self, single_page_pdf):
        images = pdf_to_images(single_page_pdf)
        assert len(images) == 1

    def test_multi_page_pdf_returns_one_image_per_page(self, multi_page_pdf):
        images = pdf_to_images(multi_page_pdf)
        assert len(images) == 3

    # ── Output types ──────────────────────────────────────────────────────

    def test_returns_list_of_bytes(self, single_page_pdf):
        images = pdf_to_images(single_page_pdf)
        assert isinstance(images, list)
        for img in images:
            assert isinstance(img, bytes)

    def test_all_pages_are_valid_jpeg(self, multi_page_pdf):
        for img in pdf_to_images(multi_page_pdf):
            assert img[:3] == JPEG_MAGIC

    # ── Page selection ────────────────────────────────────────────────────

    def test_selected_pages_only(self, multi_page_pdf):
        assert len(pdf_to_images(multi_page_pdf, pages=[1, 3])) == 2

    def test_selected_pages_in_given_order(self, multi_page_pdf):
        every = pdf_to_images(multi_page_pdf)
        picked = pdf_to_images(multi_page_pdf, pages=[3, 1])
        assert picked == [every[2], every[0]]

    def test_out_of_range_page_raises(self, single_page_pdf):
        with pytest.raises(DecodeError, match="out of range"):
            pdf_to_images(single_page_pdf, pages=[2])

    def test_zero_page_raises(self, single_page_pdf):
        with pytest.raises(DecodeError):
            pdf_to_images(single_page_pdf, pages=[0])

    # ── DPI parameter ─────────────────────────────────────────────────────

    def test_doubling_dpi_doubles_pixel_dimensions(self, single_page_pdf):
        """72 → 144 DPI should double width and height (within 5% rounding error)."""
        lo = _size(pdf_to_images(single_page_pdf, dpi=72)[0])
        hi = _size(pdf_to_images(single_page_pdf, dpi=144)[0])
        assert abs(hi[0] / lo[0] - 2.0) < 0.05
        assert abs(hi[1] / lo[1] - 2.0) < 0.05

    def test_default_dpi_is_twice_base_resolution(self, single_page_pdf):
        width, height = _size(pdf_to_images(single_page_pdf)[0])
        assert abs(width - 595 * 2) <= 2
        assert abs(height - 842 * 2) <= 2

    # ── Invalid input ─────────────────────────────────────────────────────

    def test_corrupt_pdf_raises_decode_error(self, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"not really a pdf")
        with pytest.raises(DecodeError):
            pdf_to_images(path)

    def test_encrypted_pdf_raises_decode_error(self, encrypted_pdf):
        with pytest.raises(DecodeError, match="password"):
            pdf_to_images(encrypted_pdf)

    def test_render_failure_raises_decode_error(self, single_page_pdf):
        with patch("fitz.Page.get_pixmap", side_effect=ValueError("document closed or encrypted")):
            with pytest.raises(DecodeError) as info:
                pdf_to_images(single_page_pdf)
        assert isinstance(info.value.__cause__, ValueError)


class TestParsePageList:
    def test_single_page(self):
        assert parse_page_list("2") == [2]

    def test_list(self):
        assert parse_page_list("1,3") == [1, 3]

    def test_range(self):
        assert parse_page_list("2-4") == [2, 3, 4]

    def test_mixed_with_spaces(self):
        assert parse_page_list(" 1, 3-4 ,6") == [1, 3, 4, 6]

    def test_descending_range_rejected(self):
        with pytest.raises(ValueError):
            parse_page_list("4-2")

    def test_non_numeric_rejected(self):
        with pytest.raises(ValueError):
            parse_page_list("first")

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            parse_page_list(" , ")
