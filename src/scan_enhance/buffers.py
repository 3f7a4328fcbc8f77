"""Pixel buffer type shared by every pipeline stage.

A ``PixelBuffer`` is an immutable-by-convention wrapper around a
``(height, width, 4)`` uint8 RGBA array, row-major with the origin at the top
left.  Stages never write into a buffer they were given; they allocate a new
array and wrap it.
"""

from dataclasses import dataclass

import numpy as np

# ITU-R BT.601 luma weights.
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    data: np.ndarray

    def __post_init__(self) -> None:
        if self.data.ndim != 3 or self.data.shape[2] != 4:
            raise ValueError(f"Expected an (H, W, 4) array, got shape {self.data.shape}")
        if self.data.dtype != np.uint8:
            raise ValueError(f"Expected uint8 samples, got {self.data.dtype}")
        if self.data.shape[0] < 1 or self.data.shape[1] < 1:
            raise ValueError("Buffers must be at least 1×1")

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def rgb(self) -> np.ndarray:
        return self.data[..., :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.data[..., 3]

    def tobytes(self) -> bytes:
        """Flat interleaved RGBA bytes, ``width * height * 4`` long."""
        return self.data.tobytes()

    @classmethod
    def from_rgb(cls, rgb: np.ndarray, alpha=None) -> "PixelBuffer":
        """Assemble a buffer from an ``(H, W, 3)`` array and optional alpha plane.

        Values are rounded and clamped to 0–255.  Alpha defaults to fully opaque.
        """
        height, width = rgb.shape[:2]
        out = np.empty((height, width, 4), dtype=np.uint8)
        out[..., :3] = to_uint8(rgb)
        out[..., 3] = 255 if alpha is None else alpha
        return cls(out)

    @classmethod
    def from_gray(cls, gray: np.ndarray, alpha=None) -> "PixelBuffer":
        """Replicate a single ``(H, W)`` plane into R, G and B."""
        return cls.from_rgb(np.repeat(gray[..., np.newaxis], 3, axis=2), alpha)

    @classmethod
    def filled(cls, width: int, height: int, value: int = 255) -> "PixelBuffer":
        """A uniform opaque buffer, white by default."""
        out = np.full((height, width, 4), value, dtype=np.uint8)
        out[..., 3] = 255
        return cls(out)


def to_uint8(values: np.ndarray) -> np.ndarray:
    if values.dtype == np.uint8:
        return values.copy()
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def luminance(buffer: PixelBuffer) -> np.ndarray:
    """Float luminance plane ``0.299R + 0.587G + 0.114B`` of shape (H, W)."""
    return buffer.rgb.astype(np.float64) @ LUMA_WEIGHTS


def neighbourhood(plane: np.ndarray, fill: float) -> np.ndarray:
    """Stack the 3×3 neighbourhood of every sample along a new leading axis.

    Returns an array of shape ``(9, H, W)``.  Positions that fall outside the
    plane hold *fill*, so callers pick a value the reduction ignores (NaN for
    sorting, +inf for a minimum, -inf for a maximum).
    """
    height, width = plane.shape
    padded = np.full((height + 2, width + 2), fill, dtype=np.float64)
    padded[1:-1, 1:-1] = plane
    return np.stack([
        padded[dy:dy + height, dx:dx + width]
        for dy in range(3)
        for dx in range(3)
    ])
