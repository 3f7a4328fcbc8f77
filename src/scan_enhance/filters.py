"""Tone, noise, contrast and edge filters applied before binarisation.

Each filter is a pure function ``PixelBuffer -> PixelBuffer``.  Neighbourhood
operations only look at in-bounds pixels: nothing wraps around and no
padding value is invented at the borders.
"""

import numpy as np

from scan_enhance.buffers import PixelBuffer, luminance, neighbourhood

# Laplacian high-pass sharpen.
SHARPEN_KERNEL = np.array([
    [0, -1, 0],
    [-1, 5, -1],
    [0, -1, 0],
])


def gamma_correct(buffer: PixelBuffer, gamma: float = 0.8) -> PixelBuffer:
    """Map every colour sample through ``255 * (v / 255) ** (1 / gamma)``.

    With the default gamma of 0.8 mid-tones are pulled down, which darkens
    faint pencil strokes relative to the paper.  Alpha is left alone.
    """
    rgb = buffer.rgb.astype(np.float64) / 255.0
    return PixelBuffer.from_rgb(255.0 * rgb ** (1.0 / gamma), buffer.alpha)


def median_denoise(buffer: PixelBuffer) -> PixelBuffer:
    """3×3 median filter applied to R, G and B independently.

    Border pixels take the median of their 4 or 6 in-bounds neighbours; for
    an even count the upper middle value is used.
    """
    channels = [_median3x3(buffer.rgb[..., c].astype(np.float64)) for c in range(3)]
    return PixelBuffer.from_rgb(np.stack(channels, axis=2), buffer.alpha)


def _median3x3(plane: np.ndarray) -> np.ndarray:
    window = neighbourhood(plane, np.nan)
    window.sort(axis=0)  # NaNs sort last
    counts = np.count_nonzero(~np.isnan(window), axis=0)
    return np.take_along_axis(window, (counts // 2)[np.newaxis], axis=0)[0]


def equalize_histogram(buffer: PixelBuffer) -> PixelBuffer:
    """Global histogram equalisation of luminance.

    The equalised luminance is written to all three colour channels, so the
    result is grayscale.  A single-tone image maps to itself.
    """
    levels = np.clip(np.floor(luminance(buffer) + 0.5), 0, 255).astype(np.intp)
    cdf = np.cumsum(np.bincount(levels.ravel(), minlength=256))
    total = levels.size
    cdf_min = cdf[np.flatnonzero(cdf)[0]]

    if total == cdf_min:
        equalised = levels.astype(np.float64)
    else:
        equalised = np.floor((cdf[levels] - cdf_min) / (total - cdf_min) * 255.0 + 0.5)
    return PixelBuffer.from_gray(equalised, buffer.alpha)


def sharpen(buffer: PixelBuffer, kernel: np.ndarray = SHARPEN_KERNEL) -> PixelBuffer:
    """Convolve R, G and B with *kernel*, clamping to 0–255.

    Taps that fall outside the image contribute nothing, so border pixels
    are effectively convolved with a truncated kernel.
    """
    rgb = buffer.rgb.astype(np.float64)
    height, width = rgb.shape[:2]
    half = kernel.shape[0] // 2
    out = np.zeros_like(rgb)

    for ky in range(kernel.shape[0]):
        for kx in range(kernel.shape[1]):
            weight = kernel[ky, kx]
            if weight == 0:
                continue
            dst_y, src_y = _shifted(ky - half, height)
            dst_x, src_x = _shifted(kx - half, width)
            out[dst_y, dst_x] += weight * rgb[src_y, src_x]

    return PixelBuffer.from_rgb(out, buffer.alpha)


def _shifted(offset: int, size: int) -> tuple[slice, slice]:
    """Destination and source slices pairing index ``i`` with ``i + offset``."""
    return (
        slice(max(0, -offset), size - max(0, offset)),
        slice(max(0, offset), size - max(0, -offset)),
    )
