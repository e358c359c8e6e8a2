"""Exception types raised or recorded by the tag overlay."""

from __future__ import annotations


class TagOverlayError(Exception):
    """Base class for tag overlay errors."""


class InvalidGeometryError(TagOverlayError, ValueError):
    """Container dimensions cannot be used to normalize a click."""


class InvalidTagError(TagOverlayError, ValueError):
    """A confirmed tag supplied by the store does not match the Tag record."""

    def __init__(self, message: str, *, index: int | None = None) -> None:
        if index is not None:
            message = f"tag[{index}]: {message}"
        super().__init__(message)
        self.index = index


class MentionFormatError(TagOverlayError):
    """The typed identifier was rejected by the configured validator."""

    def __init__(self, value: str) -> None:
        super().__init__(f"'{value}' is not a valid username")
        self.value = value


class TagRequestError(TagOverlayError):
    """An add request failed or was never confirmed."""

    def __init__(self, token: str, reason: str) -> None:
        super().__init__(f"add request {token} failed: {reason}")
        self.token = token
        self.reason = reason


__all__ = [
    "TagOverlayError",
    "InvalidGeometryError",
    "InvalidTagError",
    "MentionFormatError",
    "TagRequestError",
]
