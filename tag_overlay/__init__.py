"""Tag overlay: click-to-tag markers positioned over an image."""

from .coordinate_math import AnchoredOffsets, clamp_unit, to_anchored_offsets, to_normalized
from .errors import InvalidGeometryError, InvalidTagError, MentionFormatError, TagOverlayError, TagRequestError
from .mention import validate_instagram_mention
from .tag_model import EditorDraft, Tag, TransientTag, coerce_tags

__version__ = "0.1.0"

__all__ = [
    "AnchoredOffsets",
    "EditorDraft",
    "InvalidGeometryError",
    "InvalidTagError",
    "MentionFormatError",
    "Tag",
    "TagOverlayError",
    "TagRequestError",
    "TransientTag",
    "clamp_unit",
    "coerce_tags",
    "to_anchored_offsets",
    "to_normalized",
    "validate_instagram_mention",
]
