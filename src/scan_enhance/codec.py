"""Image decoding, resizing and encoding with Pillow.

This is the only module that converts between compressed bytes and
``PixelBuffer`` objects.  Pillow's own exceptions never escape from here:
they are re-raised as ``DecodeError``, ``SurfaceUnavailable`` or
``EncodeError`` so callers deal with a single error vocabulary.
"""

import base64
import io
import logging

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from scan_enhance.buffers import PixelBuffer
from scan_enhance.errors import DecodeError, EncodeError, SurfaceUnavailable

logger = logging.getLogger(__name__)

# MIME type → Pillow format name.  Anything else is written as PNG, which is
# what a browser canvas does for types it cannot encode.
MIME_FORMATS = {
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
    "image/gif": "GIF",
    "image/bmp": "BMP",
    "image/tiff": "TIFF",
}

FALLBACK_MIME = "image/png"

# Formats whose encoders take a quality setting.
_LOSSY = {"JPEG", "WEBP"}


def resolve_mime(mime_type: str) -> str:
    """Return the MIME type an image declared as *mime_type* is encoded with."""
    mime = (mime_type or "").strip().lower()
    if mime == "image/jpg":
        return "image/jpeg"
    return mime if mime in MIME_FORMATS else FALLBACK_MIME


def decode_image(data: bytes, mime_type: str, max_long_edge: int = 1024) -> PixelBuffer:
    """Decode *data* to RGBA and shrink it so the long edge is at most *max_long_edge*.

    The aspect ratio is kept and images are never enlarged.  *mime_type* is
    only advisory: the actual format is sniffed from the bytes.

    Raises:
        DecodeError: empty payload, unrecognised or truncated image data, or an
            image that is 1 px or less in either dimension.
        SurfaceUnavailable: the decoded image is too large to allocate.
    """
    if not data:
        raise DecodeError("Image payload is empty.")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            source_format = img.format
            img = ImageOps.exif_transpose(img)
            rgba = img.convert("RGBA")
    except Image.DecompressionBombError as exc:
        raise SurfaceUnavailable(f"Image is too large to decode: {exc}") from exc
    except MemoryError as exc:
        raise SurfaceUnavailable("Not enough memory to decode image.") from exc
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError, EOFError) as exc:
        raise DecodeError(f"Could not decode {mime_type or 'image'} data: {exc}") from exc

    if resolve_mime(mime_type) != resolve_mime(f"image/{(source_format or '').lower()}"):
        logger.debug("Declared type %s but bytes are %s", mime_type, source_format)

    width, height = rgba.size
    _check_dimensions(width, height)

    scale = min(1.0, max_long_edge / max(width, height))
    if scale < 1.0:
        size = (max(1, round(width * scale)), max(1, round(height * scale)))
        logger.debug("Resizing %dx%d -> %dx%d (scale %.3f)", width, height, *size, scale)
        rgba = rgba.resize(size, Image.Resampling.LANCZOS)
        _check_dimensions(*size)

    return PixelBuffer(np.asarray(rgba, dtype=np.uint8).copy())


def encode_image(buffer: PixelBuffer, mime_type: str, quality: float = 0.9) -> bytes:
    """Compress *buffer* to the format named by *mime_type*.

    *quality* is a 0–1 fraction and only affects lossy formats.  JPEG has no
    alpha channel, so transparent areas are flattened onto white.
    """
    fmt = MIME_FORMATS[resolve_mime(mime_type)]
    try:
        img = Image.fromarray(buffer.data)
        if fmt == "JPEG":
            img = flatten_onto_white(img)
        save_kwargs = {}
        if fmt in _LOSSY:
            save_kwargs["quality"] = max(1, min(100, round(quality * 100)))
        out = io.BytesIO()
        img.save(out, format=fmt, **save_kwargs)
    except MemoryError as exc:
        raise SurfaceUnavailable("Not enough memory to encode image.") from exc
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"Could not encode image as {fmt}: {exc}") from exc
    return out.getvalue()


def flatten_onto_white(img: Image.Image) -> Image.Image:
    """Composite an RGBA image onto an opaque white RGB background."""
    try:
        background = Image.new("RGB", img.size, (255, 255, 255))
    except (MemoryError, ValueError) as exc:
        raise SurfaceUnavailable(f"Could not allocate a {img.size} canvas.") from exc
    background.paste(img, mask=img.getchannel("A"))
    return background


def to_base64(data: bytes) -> str:
    """Base64 text without any ``data:`` URL prefix."""
    return base64.standard_b64encode(data).decode("ascii")


def _check_dimensions(width: int, height: int) -> None:
    if width <= 1 or height <= 1:
        raise DecodeError(f"Image is too small to process ({width}x{height}).")
