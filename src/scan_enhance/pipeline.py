"""Page enhancement pipeline.

Turns one photographed or scanned page into a clean, deskewed, black-on-white
bitmap for a vision model.

Pipeline
--------
1. Decode / resize   — RGBA, long edge capped (1024 px by default).
2. Gamma             — darkens faint strokes relative to the paper.
3. Median denoise    — removes salt-and-pepper noise, keeps edges.
4. Equalise          — global histogram equalisation; output is grayscale.
5. Sharpen           — 3×3 Laplacian high-pass.
6. Binarise          — adaptive threshold against an integral-image mean.
7. Close strokes     — ink dilate then ink erode to bridge broken strokes.
8. Deskew            — projection-profile angle search, rotate onto white.

Every stage is a pure function of its input buffer.  Any failure aborts the
page; nothing partial is returned.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Callable, Optional, Sequence

from scan_enhance.buffers import PixelBuffer
from scan_enhance.codec import decode_image, encode_image, resolve_mime, to_base64
from scan_enhance.compositor import composite_rotated
from scan_enhance.config import EnhanceConfig
from scan_enhance.errors import BatchError, EnhancementError, SurfaceUnavailable
from scan_enhance.filters import equalize_histogram, gamma_correct, median_denoise, sharpen
from scan_enhance.morphology import close_strokes
from scan_enhance.skew import estimate_skew
from scan_enhance.threshold import adaptive_threshold

logger = logging.getLogger(__name__)

PROCESSED_MIME = "image/jpeg"

# Browsers encode canvas JPEGs at 0.92 when no quality is given.
ORIGINAL_JPEG_QUALITY = 0.92


@dataclass(frozen=True)
class EnhancedPage:
    """Both renditions of a page, as base64 text without a ``data:`` prefix."""

    original_base64: str
    processed_base64: str
    original_mime_type: str
    width: int
    height: int
    skew_angle: int
    processed_mime_type: str = PROCESSED_MIME

    def data_url(self, which: str = "processed") -> str:
        if which == "processed":
            return f"data:{self.processed_mime_type};base64,{self.processed_base64}"
        if which == "original":
            return f"data:{self.original_mime_type};base64,{self.original_base64}"
        raise ValueError(f"Unknown rendition: {which!r}")

    def to_dict(self) -> dict:
        return asdict(self)


def enhance_buffer(buffer: PixelBuffer, config: EnhanceConfig) -> tuple[PixelBuffer, int]:
    """Run stages 2–8 on an already decoded buffer.

    Returns the enhanced, deskewed buffer and the skew angle that was applied.
    """
    stages: list[tuple[str, Callable[[PixelBuffer], PixelBuffer]]] = [
        ("gamma", lambda b: gamma_correct(b, config.gamma)),
        ("median", median_denoise),
        ("equalize", equalize_histogram),
        ("sharpen", sharpen),
        ("threshold", lambda b: adaptive_threshold(
            b, window=config.window_size(b.width), bias=config.threshold_bias,
        )),
        ("close", close_strokes),
    ]
    for name, stage in stages:
        buffer = _timed(name, stage, buffer)

    angle = _timed(
        "skew", lambda b: estimate_skew(b, config.skew_max_angle, config.skew_sample_stride), buffer,
    )
    return _timed("deskew", lambda b: composite_rotated(b, angle), buffer), angle


def enhance_page(
    data: bytes,
    mime_type: str,
    config: Optional[EnhanceConfig] = None,
) -> EnhancedPage:
    """Enhance a single-page image.

    Args:
        data:      Raw image bytes.
        mime_type: Declared type of *data*; the resized original is re-encoded
                   in this format (PNG if the type cannot be written).
        config:    Pipeline parameters.  Defaults to ``EnhanceConfig()``.

    Raises:
        DecodeError, SurfaceUnavailable, EncodeError: see ``scan_enhance.errors``.
    """
    config = config or EnhanceConfig()

    original = decode_image(data, mime_type, config.max_long_edge)
    logger.debug("Decoded %s page at %dx%d", mime_type, original.width, original.height)
    enhanced, angle = enhance_buffer(original, config)

    original_mime = resolve_mime(mime_type)
    original_bytes = encode_image(original, original_mime, ORIGINAL_JPEG_QUALITY)
    processed_bytes = encode_image(enhanced, PROCESSED_MIME, config.jpeg_quality)

    return EnhancedPage(
        original_base64=to_base64(original_bytes),
        processed_base64=to_base64(processed_bytes),
        original_mime_type=original_mime,
        width=original.width,
        height=original.height,
        skew_angle=angle,
    )


def enhance_pages(
    pages: Sequence[tuple[bytes, str]],
    config: Optional[EnhanceConfig] = None,
    workers: int = 1,
) -> list[EnhancedPage]:
    """Enhance several pages, returning results in input order.

    With ``workers > 1`` whole pages run concurrently in a thread pool; a
    single page is never split.  The first failing page aborts the batch with
    a ``BatchError`` chained to the underlying error; queued pages are
    cancelled.
    """
    config = config or EnhanceConfig()

    def run(item: tuple[int, tuple[bytes, str]]) -> EnhancedPage:
        index, (data, mime_type) = item
        try:
            return enhance_page(data, mime_type, config)
        except EnhancementError as exc:
            raise BatchError(index + 1, str(exc)) from exc

    if workers <= 1 or len(pages) <= 1:
        return [run(item) for item in enumerate(pages)]

    pool = ThreadPoolExecutor(max_workers=workers)
    try:
        results = list(pool.map(run, enumerate(pages)))
    except BaseException:
        pool.shutdown(cancel_futures=True)
        raise
    pool.shutdown()
    return results


def _timed(name, stage, buffer):
    start = time.perf_counter()
    try:
        result = stage(buffer)
    except MemoryError as exc:
        raise SurfaceUnavailable(f"Not enough memory for the {name} stage.") from exc
    logger.debug("%s took %.1f ms", name, (time.perf_counter() - start) * 1000)
    return result
