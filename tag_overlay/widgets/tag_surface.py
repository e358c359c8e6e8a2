"""Qt surface that draws an image with its tags and the tag editor."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from PyQt6.QtCore import QTimer, Qt, pyqtSignal
from PyQt6.QtGui import QMouseEvent, QPainter, QPixmap
from PyQt6.QtWidgets import QFrame, QHBoxLayout, QLabel, QLineEdit, QToolButton, QWidget

from tag_overlay.controller.keyboard import KeyboardSource
from tag_overlay.controller.overlay_controller import (
    TARGET_REMOVE,
    TARGET_SURFACE,
    EditorView,
    OverlayController,
    PointerEvent,
    TagView,
)
from tag_overlay.settings import OverlaySettings
from tag_overlay.widgets.keyboard_filter import QtKeyboardSource

_LOGGER = logging.getLogger("TagOverlay.Surface")
TIMEOUT_POLL_MS = 250


class TagChip(QFrame):
    """Label plus remove affordance for one tag; swallows its own clicks."""

    remove_requested = pyqtSignal(str)

    def __init__(self, view: TagView, settings: OverlaySettings, parent: QWidget) -> None:
        super().__init__(parent)
        self.tag_id = view.id
        self.transient = view.transient
        text_color = settings.transient_text_color if view.transient else settings.tag_text_color
        remove_color = settings.remove_muted_color if view.remove_muted else settings.tag_text_color
        self.setObjectName("tagChip")
        self.setStyleSheet(
            f"#tagChip {{ background-color: {settings.tag_background}; border-radius: 3px; }}"
            f"QLabel {{ color: {text_color}; background: transparent; }}"
            f"QToolButton {{ color: {remove_color}; background: transparent; border: none; }}"
        )
        layout = QHBoxLayout(self)
        layout.setContentsMargins(10, 5, 10, 5)
        layout.setSpacing(10)
        self.label = QLabel(view.label, self)
        layout.addWidget(self.label)
        self.remove_button = QToolButton(self)
        self.remove_button.setText("×")
        self.remove_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self.remove_button.clicked.connect(lambda: self.remove_requested.emit(self.tag_id))
        layout.addWidget(self.remove_button)

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        event.accept()


class TagOverlayWidget(QWidget):
    """Image surface: click to open the editor, Enter to tag, Escape to cancel."""

    def __init__(
        self,
        controller: OverlayController,
        *,
        pixmap: Optional[QPixmap] = None,
        keyboard: Optional[KeyboardSource] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._controller = controller
        self._settings = controller.settings
        self._pixmap = pixmap
        self._keyboard: KeyboardSource = keyboard or QtKeyboardSource(parent=self)
        self._chips: List[TagChip] = []

        self.editor = QLineEdit(self)
        self.editor.setFixedSize(self._settings.editor_width, self._settings.editor_height)
        self.editor.setPlaceholderText(self._settings.placeholder)
        self.editor.textEdited.connect(controller.on_editor_change)
        self.editor.returnPressed.connect(controller.submit)
        self.editor.hide()

        self._timeout_timer: Optional[QTimer] = None
        if self._settings.pending_timeout_seconds:
            self._timeout_timer = QTimer(self)
            self._timeout_timer.setInterval(TIMEOUT_POLL_MS)
            self._timeout_timer.timeout.connect(controller.poll)
            self._timeout_timer.start()

        controller.on_change = self.refresh
        controller.on_focus_request = self._focus_editor
        self.refresh()

    @property
    def controller(self) -> OverlayController:
        return self._controller

    @property
    def chips(self) -> List[TagChip]:
        return list(self._chips)

    def set_pixmap(self, pixmap: Optional[QPixmap]) -> None:
        self._pixmap = pixmap
        self.updateGeometry()
        self.update()

    def set_tags(self, tags: Iterable[Any]) -> None:
        self._controller.update_tags(tags)

    def sizeHint(self):  # noqa: N802
        if self._pixmap is not None and not self._pixmap.isNull():
            return self._pixmap.size()
        return super().sizeHint()

    # ---------------------------------------------------------------- render

    def refresh(self) -> None:
        view = self._controller.render()
        self._rebuild_chips(view.tags)
        self._apply_editor(view.editor)
        self.setToolTip(view.error or "")

    def _rebuild_chips(self, views: Iterable[TagView]) -> None:
        for chip in self._chips:
            chip.hide()
            chip.deleteLater()
        self._chips = []
        for tag_view in views:
            chip = TagChip(tag_view, self._settings, self)
            chip.remove_requested.connect(self._handle_remove)
            chip.adjustSize()
            x, y = tag_view.placement.resolve(self.width(), self.height(), chip.width(), chip.height())
            chip.move(int(round(x)), int(round(y)))
            chip.show()
            self._chips.append(chip)

    def _apply_editor(self, editor_view: Optional[EditorView]) -> None:
        if editor_view is None:
            self.editor.hide()
            return
        if self.editor.text() != editor_view.value:
            self.editor.setText(editor_view.value)
        self.editor.setFixedSize(editor_view.width, editor_view.height)
        self.editor.setPlaceholderText(editor_view.placeholder)
        self.editor.setToolTip(editor_view.error or "")
        border = "#d04040" if editor_view.error else "#c0c0c0"
        self.editor.setStyleSheet(
            f"QLineEdit {{ background: #ffffff; border: 1px solid {border}; border-radius: 3px; padding: 5px 10px; }}"
        )
        x, y = editor_view.placement.resolve(self.width(), self.height(), editor_view.width, editor_view.height)
        self.editor.move(int(round(x)), int(round(y)))
        self.editor.show()
        self.editor.raise_()

    def _focus_editor(self) -> None:
        if self.editor.isVisible():
            self.editor.setFocus(Qt.FocusReason.MouseFocusReason)

    # ---------------------------------------------------------------- events

    def _handle_remove(self, tag_id: str) -> None:
        event = PointerEvent(0.0, 0.0, float(self.width()), float(self.height()), target=TARGET_REMOVE, tag_id=tag_id)
        self._controller.dispatch_click(event)

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return
        pos = event.position()
        pointer = PointerEvent(
            float(pos.x()),
            float(pos.y()),
            float(self.width()),
            float(self.height()),
            target=TARGET_SURFACE,
        )
        self._controller.dispatch_click(pointer)
        event.accept()

    def paintEvent(self, event) -> None:  # noqa: N802
        if self._pixmap is None or self._pixmap.isNull():
            return
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
            painter.drawPixmap(self.rect(), self._pixmap)
        finally:
            painter.end()

    def resizeEvent(self, event) -> None:  # noqa: N802
        super().resizeEvent(event)
        self.refresh()

    def showEvent(self, event) -> None:  # noqa: N802
        super().showEvent(event)
        self._controller.mount(self._keyboard)

    def hideEvent(self, event) -> None:  # noqa: N802
        self._controller.unmount()
        super().hideEvent(event)

    def closeEvent(self, event) -> None:  # noqa: N802
        self._controller.unmount()
        if self._timeout_timer is not None:
            self._timeout_timer.stop()
        super().closeEvent(event)
