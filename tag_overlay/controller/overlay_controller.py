"""Composes confirmed tags, the creation lifecycle and placement into a render model."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Tuple

from tag_overlay.controller.keyboard import KeyboardSource, KeyEvent, Subscription
from tag_overlay.controller.lifecycle import (
    AddTagFn,
    ConfirmationPolicy,
    LifecycleState,
    RemoveTagFn,
    TagLifecycle,
)
from tag_overlay.controller.utils import log_exception
from tag_overlay.coordinate_math import AnchoredOffsets, to_anchored_offsets, to_normalized
from tag_overlay.errors import InvalidGeometryError
from tag_overlay.mention import MentionValidator, validate_instagram_mention
from tag_overlay.settings import OverlaySettings
from tag_overlay.tag_model import Tag

_LOGGER = logging.getLogger("TagOverlay.Controller")

TARGET_SURFACE = "surface"
TARGET_TAG = "tag"
TARGET_REMOVE = "remove"


@dataclass
class PointerEvent:
    """Click carrying element-relative offsets and the target element's size."""

    offset_x: float
    offset_y: float
    target_width: float
    target_height: float
    target: str = TARGET_SURFACE
    tag_id: Optional[str] = None
    propagation_stopped: bool = False
    default_prevented: bool = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclass(frozen=True)
class TagView:
    id: str
    label: str
    transient: bool
    placement: AnchoredOffsets
    remove_muted: bool
    removable: bool


@dataclass(frozen=True)
class EditorView:
    placement: AnchoredOffsets
    value: str
    placeholder: str
    width: int
    height: int
    error: Optional[str] = None


@dataclass(frozen=True)
class OverlayView:
    tags: Tuple[TagView, ...]
    editor: Optional[EditorView]
    state: LifecycleState
    error: Optional[str] = None


class OverlayController:
    def __init__(
        self,
        *,
        container_id: str,
        item_id: str,
        add_tag: AddTagFn,
        remove_tag: RemoveTagFn,
        tags: Optional[Iterable[Any]] = None,
        settings: Optional[OverlaySettings] = None,
        validator: Optional[MentionValidator] = None,
        time_source: Callable[[], float] = time.monotonic,
        token_factory: Optional[Callable[[], str]] = None,
        on_change: Optional[Callable[[], None]] = None,
        on_focus_request: Optional[Callable[[], None]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.container_id = container_id
        self.item_id = item_id
        self._settings = settings or OverlaySettings()
        self._logger = logger or _LOGGER
        self.on_change = on_change
        self.on_focus_request = on_focus_request
        if validator is None and self._settings.enforce_mention_format:
            validator = validate_instagram_mention
        self._lifecycle = TagLifecycle(
            container_id=container_id,
            item_id=item_id,
            add_tag=add_tag,
            remove_tag=remove_tag,
            validator=validator,
            confirmation=ConfirmationPolicy.parse(self._settings.confirmation),
            position_tolerance=self._settings.position_tolerance,
            pending_timeout=self._settings.pending_timeout_seconds,
            time_source=time_source,
            token_factory=token_factory,
            focus_requested=self._request_focus,
            logger=self._logger,
        )
        self._lifecycle.sync_confirmed(tags or ())
        self._key_subscription: Optional[Subscription] = None
        self._focus_pending = False

    @property
    def lifecycle(self) -> TagLifecycle:
        return self._lifecycle

    @property
    def state(self) -> LifecycleState:
        return self._lifecycle.state

    @property
    def settings(self) -> OverlaySettings:
        return self._settings

    @property
    def mounted(self) -> bool:
        return self._key_subscription is not None and self._key_subscription.active

    # ---------------------------------------------------------------- mount

    def mount(self, keyboard: KeyboardSource) -> None:
        if self.mounted:
            return
        self._key_subscription = keyboard.subscribe(self.on_key_down)

    def unmount(self) -> None:
        subscription = self._key_subscription
        self._key_subscription = None
        if subscription is not None:
            subscription.close()

    # ----------------------------------------------------------------- input

    def update_tags(self, tags: Iterable[Any]) -> None:
        self._lifecycle.sync_confirmed(tags)
        self._notify()

    def poll(self) -> bool:
        """Expire a pending add that outlived the configured timeout."""
        expired = self._lifecycle.check_timeout()
        if expired:
            self._notify()
        return expired

    def on_container_click(self, event: PointerEvent) -> bool:
        if event.propagation_stopped:
            return False
        try:
            x, y = to_normalized(event.offset_x, event.offset_y, event.target_width, event.target_height)
        except InvalidGeometryError as exc:
            self._logger.debug("Ignoring click: %s", exc)
            return False
        opened = self._lifecycle.container_clicked(x, y)
        if opened:
            self._notify()
            self._flush_focus()
        return opened

    def on_tag_click(self, event: PointerEvent) -> None:
        event.stop_propagation()

    def on_remove_click(self, event: PointerEvent, tag_id: str) -> bool:
        event.prevent_default()
        event.stop_propagation()
        return self._lifecycle.remove_clicked(tag_id)

    def dispatch_click(self, event: PointerEvent) -> None:
        """Deliver a click from its target outward: remove affordance, tag, surface."""
        if event.target == TARGET_REMOVE and event.tag_id is not None:
            self.on_remove_click(event, event.tag_id)
        if event.target in (TARGET_REMOVE, TARGET_TAG) and not event.propagation_stopped:
            self.on_tag_click(event)
        if not event.propagation_stopped:
            self.on_container_click(event)

    def on_editor_change(self, value: str) -> None:
        if self._lifecycle.keystroke(value):
            self._notify()

    def on_editor_key(self, event: KeyEvent) -> None:
        if not event.is_enter:
            return
        event.handled = True
        self.submit()

    def submit(self) -> None:
        self._lifecycle.submit()
        self._notify()

    def on_key_down(self, event: KeyEvent) -> None:
        if not event.is_escape:
            return
        if self._lifecycle.escape():
            event.handled = True
            self._notify()

    # ---------------------------------------------------------------- render

    def render(self) -> OverlayView:
        lifecycle = self._lifecycle
        transient = lifecycle.transient
        in_progress = transient is not None
        views = [self._tag_view(tag, transient=False, muted=in_progress) for tag in lifecycle.confirmed]
        if transient is not None:
            views.append(self._tag_view(transient, transient=True, muted=True))

        last_error = lifecycle.last_error
        message = str(last_error) if last_error is not None else None
        editor: Optional[EditorView] = None
        draft = lifecycle.draft
        if draft is not None and not in_progress:
            editor = EditorView(
                placement=to_anchored_offsets(draft.x, draft.y),
                value=draft.value,
                placeholder=self._settings.placeholder,
                width=self._settings.editor_width,
                height=self._settings.editor_height,
                error=message,
            )
        # The editor carries its own error; otherwise it belongs to the surface.
        surface_error = message if editor is None else None
        return OverlayView(tags=tuple(views), editor=editor, state=lifecycle.state, error=surface_error)

    @staticmethod
    def _tag_view(tag: Tag, *, transient: bool, muted: bool) -> TagView:
        return TagView(
            id=tag.id,
            label=tag.id,
            transient=transient,
            placement=to_anchored_offsets(tag.x, tag.y),
            remove_muted=muted,
            removable=not transient,
        )

    # --------------------------------------------------------------- helpers

    def _request_focus(self) -> None:
        # Deferred until the editor has been rendered.
        self._focus_pending = True

    def _flush_focus(self) -> None:
        if not self._focus_pending:
            return
        self._focus_pending = False
        callback = self.on_focus_request
        if callback is None:
            return
        try:
            callback()
        except Exception as exc:
            log_exception(self._logger, "Focus request failed", exc)

    def _notify(self) -> None:
        callback = self.on_change
        if callback is None:
            return
        try:
            callback()
        except Exception as exc:
            log_exception(self._logger, "Overlay change callback failed", exc)


__all__ = [
    "EditorView",
    "OverlayController",
    "OverlayView",
    "PointerEvent",
    "TARGET_REMOVE",
    "TARGET_SURFACE",
    "TARGET_TAG",
    "TagView",
]
