"""Adaptive binarisation using an integral image (summed-area table).

Pipeline
--------
1. Luminance   — collapse RGB to a single float plane.
2. Integral    — ``S[y, x]`` holds the sum of every luminance value in the
                 rectangle ``(0, 0)..(x, y)`` inclusive.
3. Local mean  — each pixel's square window (half-size ``window``) is clipped
                 to the image and its sum read with four lookups:
                 ``D - B - C + A``.  Cost per pixel is constant whatever the
                 window size.
4. Decision    — a pixel is paper (255) when its luminance is above
                 ``mean - bias`` and ink (0) otherwise.  The threshold never
                 drops below zero, so pure black is always ink.
"""

from typing import Optional

import numpy as np

from scan_enhance.buffers import PixelBuffer, luminance
from scan_enhance.config import EnhanceConfig


def integral_image(plane: np.ndarray) -> np.ndarray:
    """Summed-area table of *plane* in float64."""
    return np.cumsum(np.cumsum(plane, axis=1, dtype=np.float64), axis=0)


def window_sums(table: np.ndarray, window: int) -> tuple[np.ndarray, np.ndarray]:
    """Sum and pixel count of the clipped ``(2 * window + 1)`` square around every pixel."""
    height, width = table.shape
    ys = np.arange(height)
    xs = np.arange(width)

    top = np.maximum(0, ys - window)
    bottom = np.minimum(height - 1, ys + window)
    left = np.maximum(0, xs - window)
    right = np.minimum(width - 1, xs + window)

    # Pad with a leading zero row and column so that "row top - 1" and
    # "column left - 1" are valid indices even when the window touches an edge.
    padded = np.zeros((height + 1, width + 1), dtype=np.float64)
    padded[1:, 1:] = table

    d = padded[np.ix_(bottom + 1, right + 1)]
    b = padded[np.ix_(top, right + 1)]
    c = padded[np.ix_(bottom + 1, left)]
    a = padded[np.ix_(top, left)]

    counts = np.outer(bottom - top + 1, right - left + 1)
    return d - b - c + a, counts


def adaptive_threshold(
    buffer: PixelBuffer,
    window: Optional[int] = None,
    bias: Optional[float] = None,
) -> PixelBuffer:
    """Binarise *buffer* against its local mean luminance.

    Args:
        buffer: Input image; only R, G and B are read.
        window: Half-size of the averaging window.  Defaults to
                ``EnhanceConfig().window_size(width)``.
        bias:   Constant subtracted from the local mean.  Defaults to
                ``EnhanceConfig().threshold_bias``.

    Returns:
        An opaque buffer whose pixels are all (0, 0, 0) or (255, 255, 255).
    """
    defaults = EnhanceConfig()
    if window is None:
        window = defaults.window_size(buffer.width)
    if bias is None:
        bias = defaults.threshold_bias

    gray = luminance(buffer)
    sums, counts = window_sums(integral_image(gray), window)
    threshold = np.maximum(sums / counts - bias, 0.0)

    return PixelBuffer.from_gray(np.where(gray > threshold, 255, 0).astype(np.uint8))
