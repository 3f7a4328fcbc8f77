"""Exceptions raised by the enhancement pipeline.

Every failure aborts processing of the whole page; nothing is retried and no
partially enhanced image is ever returned.
"""


class EnhancementError(RuntimeError):
    """Base class for all pipeline failures."""


class DecodeError(EnhancementError):
    """The input bytes could not be interpreted as a usable single-page image."""


class SurfaceUnavailable(EnhancementError):
    """A drawing surface or pixel buffer could not be allocated."""


class EncodeError(EnhancementError):
    """The final bitmap could not be compressed."""


class BatchError(EnhancementError):
    """A page in a multi-page batch failed, aborting the whole batch."""

    def __init__(self, page_number: int, message: str) -> None:
        super().__init__(f"Page {page_number}: {message}")
        self.page_number = page_number
