from __future__ import annotations

import logging
from typing import List, Optional

from PyQt6.QtCore import QEvent, QObject, Qt
from PyQt6.QtWidgets import QApplication

from tag_overlay.controller.keyboard import (
    ENTER_KEY_CODE,
    ESCAPE_KEY_CODE,
    KeyEvent,
    KeyHandler,
    Subscription,
)
from tag_overlay.controller.utils import log_exception

_LOGGER = logging.getLogger("TagOverlay.Surface")

_KEY_NAMES = {
    Qt.Key.Key_Escape: ("Escape", ESCAPE_KEY_CODE),
    Qt.Key.Key_Return: ("Enter", ENTER_KEY_CODE),
    Qt.Key.Key_Enter: ("Enter", ENTER_KEY_CODE),
}


class QtKeyboardSource(QObject):
    """Application-wide key-down listener, installed only while someone subscribes."""

    def __init__(self, app: Optional[QApplication] = None, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._app = app
        self._handlers: List[KeyHandler] = []
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def subscribe(self, handler: KeyHandler) -> Subscription:
        self._handlers.append(handler)
        self._install()

        def _release() -> None:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass
            if not self._handlers:
                self._uninstall()

        return Subscription(_release)

    def _application(self) -> Optional[QApplication]:
        return self._app or QApplication.instance()

    def _install(self) -> None:
        if self._installed:
            return
        app = self._application()
        if app is None:
            _LOGGER.debug("No QApplication; key listener not installed")
            return
        app.installEventFilter(self)
        self._installed = True

    def _uninstall(self) -> None:
        if not self._installed:
            return
        app = self._application()
        if app is not None:
            app.removeEventFilter(self)
        self._installed = False

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
        if event.type() != QEvent.Type.KeyPress:
            return False
        try:
            key = Qt.Key(event.key())  # type: ignore[attr-defined]
        except ValueError:
            return False
        mapped = _KEY_NAMES.get(key)
        if mapped is None:
            return False
        key_event = KeyEvent(key=mapped[0], key_code=mapped[1])
        for handler in list(self._handlers):
            try:
                handler(key_event)
            except Exception as exc:
                log_exception(_LOGGER, "Key handler failed", exc)
        return key_event.handled
