from .keyboard_filter import QtKeyboardSource
from .tag_surface import TagChip, TagOverlayWidget

__all__ = ["QtKeyboardSource", "TagChip", "TagOverlayWidget"]
