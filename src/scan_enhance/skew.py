"""Skew estimation by projection-profile variance.

For each candidate angle the sampled ink pixels are projected onto the rows
of the page as if it were rotated by that angle.  When the rotation lines the
text up with the rows, ink piles into a few sharp bands and the variance of
the row counts peaks.
"""

import logging
import math

import numpy as np

from scan_enhance.buffers import PixelBuffer

logger = logging.getLogger(__name__)

INK_LEVEL = 128


def candidate_angles(max_angle: int = 5) -> list[int]:
    """Whole-degree angles from ``-max_angle`` to ``max_angle``, without 0."""
    return [angle for angle in range(-max_angle, max_angle + 1) if angle != 0]


def projection_profile(ink: np.ndarray, angle: int, stride: int = 4) -> np.ndarray:
    """Row counts of ink for the page rotated by *angle* degrees.

    Only every *stride*-th pixel in each direction is sampled.  Samples that
    project outside ``[0, height)`` are dropped.
    """
    height = ink.shape[0]
    ys, xs = np.nonzero(ink[::stride, ::stride])
    ys, xs = ys * stride, xs * stride

    radians = math.radians(angle)
    rows = np.floor(xs * math.sin(radians) + ys * math.cos(radians)).astype(np.intp)
    rows = rows[(rows >= 0) & (rows < height)]
    return np.bincount(rows, minlength=height).astype(np.float64)


def estimate_skew(buffer: PixelBuffer, max_angle: int = 5, stride: int = 4) -> int:
    """Return the candidate angle whose projection profile has the highest variance.

    0° is not a candidate, so the result is never zero.  Ties go to the
    smallest rotation, negative before positive, so a blank page returns -1.
    """
    ink = buffer.data[..., 0] < INK_LEVEL
    best_angle = None
    best_variance = -math.inf

    for angle in sorted(candidate_angles(max_angle), key=abs):
        profile = projection_profile(ink, angle, stride)
        variance = np.mean(profile ** 2) - np.mean(profile) ** 2
        if variance > best_variance:
            best_angle, best_variance = angle, variance

    logger.debug("Estimated skew %d° (variance %.4f)", best_angle, best_variance)
    return best_angle
