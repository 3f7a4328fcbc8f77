"""Document image enhancement for vision-model grading."""

from scan_enhance.config import EnhanceConfig
from scan_enhance.errors import (
    BatchError,
    DecodeError,
    EncodeError,
    EnhancementError,
    SurfaceUnavailable,
)
from scan_enhance.pipeline import EnhancedPage, enhance_page, enhance_pages

__all__ = [
    "BatchError",
    "DecodeError",
    "EncodeError",
    "EnhanceConfig",
    "EnhancedPage",
    "EnhancementError",
    "SurfaceUnavailable",
    "enhance_page",
    "enhance_pages",
]
