"""Scoped keyboard subscriptions for overlay instances."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from tag_overlay.controller.utils import log_exception

ESCAPE_KEY_CODE = 27
ENTER_KEY_CODE = 13

_LOGGER = logging.getLogger("TagOverlay.Keyboard")


@dataclass
class KeyEvent:
    key: str = ""
    key_code: Optional[int] = None
    handled: bool = False

    @property
    def is_escape(self) -> bool:
        return self.key_code == ESCAPE_KEY_CODE or self.key in {"Escape", "Esc"}

    @property
    def is_enter(self) -> bool:
        return self.key_code == ENTER_KEY_CODE or self.key in {"Enter", "Return"}


KeyHandler = Callable[[KeyEvent], None]


class Subscription:
    """Handle returned by a keyboard source; closing it releases the listener."""

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Optional[Callable[[], None]] = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def close(self) -> None:
        release = self._release
        self._release = None
        if release is not None:
            release()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class KeyboardSource(Protocol):
    def subscribe(self, handler: KeyHandler) -> Subscription: ...


class KeyboardEvents:
    """In-process key-down broadcaster that handlers subscribe to and leave."""

    def __init__(self) -> None:
        self._handlers: List[KeyHandler] = []

    @property
    def listener_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: KeyHandler) -> Subscription:
        self._handlers.append(handler)

        def _release() -> None:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass

        return Subscription(_release)

    def emit(self, event: KeyEvent) -> KeyEvent:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as exc:
                log_exception(_LOGGER, "Key handler failed", exc)
        return event

    def key_down(self, key: str = "", key_code: Optional[int] = None) -> KeyEvent:
        return self.emit(KeyEvent(key=key, key_code=key_code))


__all__ = [
    "ENTER_KEY_CODE",
    "ESCAPE_KEY_CODE",
    "KeyEvent",
    "KeyHandler",
    "KeyboardEvents",
    "KeyboardSource",
    "Subscription",
]
