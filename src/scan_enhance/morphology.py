"""Morphological clean-up of a binarised page.

Helpers are named for what they do to the ink (black), not to the white
foreground that classical dilation/erosion vocabulary assumes:

* ``dilate_ink`` — 3×3 minimum; ink grows and narrow white gaps close.
* ``erode_ink``  — 3×3 maximum; ink shrinks back toward its old outline.

Running one after the other is a closing of the ink: one-pixel breaks in a
stroke are bridged while the stroke ends up no thicker than it started.
"""

import numpy as np

from scan_enhance.buffers import PixelBuffer, neighbourhood


def dilate_ink(buffer: PixelBuffer) -> PixelBuffer:
    """Replace each pixel with the darkest value in its 3×3 neighbourhood."""
    red = buffer.data[..., 0].astype(np.float64)
    return PixelBuffer.from_gray(neighbourhood(red, np.inf).min(axis=0))


def erode_ink(buffer: PixelBuffer) -> PixelBuffer:
    """Replace each pixel with the lightest value in its 3×3 neighbourhood."""
    red = buffer.data[..., 0].astype(np.float64)
    return PixelBuffer.from_gray(neighbourhood(red, -np.inf).max(axis=0))


def close_strokes(buffer: PixelBuffer) -> PixelBuffer:
    """Bridge small gaps in ink strokes without thickening them."""
    return erode_ink(dilate_ink(buffer))
