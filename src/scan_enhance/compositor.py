"""Deskew a cleaned bitmap onto a white page."""

import numpy as np
from PIL import Image

from scan_enhance.buffers import PixelBuffer
from scan_enhance.errors import SurfaceUnavailable


def composite_rotated(buffer: PixelBuffer, angle: float) -> PixelBuffer:
    """Rotate *buffer* by *angle* degrees about its centre over a white canvas.

    Positive angles turn the image clockwise on screen.  The canvas keeps the
    input's size, so corners rotated out of frame are cropped and the
    uncovered area stays white.  The result is fully opaque.
    """
    try:
        canvas = Image.new("RGBA", (buffer.width, buffer.height), (255, 255, 255, 255))
    except (MemoryError, ValueError) as exc:
        raise SurfaceUnavailable(
            f"Could not allocate a {buffer.width}x{buffer.height} canvas."
        ) from exc

    page = Image.fromarray(buffer.data)
    if angle:
        # Pillow rotates counter-clockwise for positive angles.
        page = page.rotate(-angle, resample=Image.Resampling.BILINEAR, expand=False)
    canvas.alpha_composite(page)

    out = np.asarray(canvas, dtype=np.uint8).copy()
    out[..., 3] = 255
    return PixelBuffer(out)
