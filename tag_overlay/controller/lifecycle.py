"""Tag creation lifecycle: editor draft, optimistic transient tag, confirmation."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from tag_overlay.controller.utils import log_exception
from tag_overlay.errors import MentionFormatError, TagOverlayError, TagRequestError
from tag_overlay.mention import MentionValidator
from tag_overlay.tag_model import EditorDraft, Tag, TransientTag, coerce_tags

AddTagFn = Callable[[str, str, Dict[str, object]], Any]
RemoveTagFn = Callable[[str, str, str], Any]

_LOGGER = logging.getLogger("TagOverlay.Controller")


class LifecycleState(Enum):
    IDLE = "idle"
    EDITING = "editing"
    PENDING = "pending"


class RequestStatus(Enum):
    SENT = "sent"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class ConfirmationPolicy(Enum):
    """How a pending add is recognised as landed in the store."""

    IDENTITY = "identity"
    COUNT = "count"

    @classmethod
    def parse(cls, value: "ConfirmationPolicy | str | None") -> "ConfirmationPolicy":
        if isinstance(value, cls):
            return value
        token = (value or "").strip().lower() if isinstance(value, str) else ""
        for policy in cls:
            if policy.value == token:
                return policy
        return cls.IDENTITY


@dataclass(frozen=True)
class AddRequest:
    token: str
    tag: Tag
    status: RequestStatus
    sent_at: float
    baseline: Tuple[Tag, ...] = ()
    error: Optional[TagRequestError] = None


class TagLifecycle:
    """Owns the editor draft and the single in-flight transient tag.

    Store callbacks are fire-and-forget; results are observed only through
    later calls to :meth:`sync_confirmed`.
    """

    def __init__(
        self,
        *,
        container_id: str,
        item_id: str,
        add_tag: AddTagFn,
        remove_tag: RemoveTagFn,
        validator: Optional[MentionValidator] = None,
        confirmation: ConfirmationPolicy | str = ConfirmationPolicy.IDENTITY,
        position_tolerance: float = 1e-3,
        pending_timeout: Optional[float] = None,
        time_source: Callable[[], float] = time.monotonic,
        token_factory: Optional[Callable[[], str]] = None,
        focus_requested: Optional[Callable[[], None]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._container_id = container_id
        self._item_id = item_id
        self._add_tag = add_tag
        self._remove_tag = remove_tag
        self._validator = validator
        self._confirmation = ConfirmationPolicy.parse(confirmation)
        self._tolerance = max(0.0, float(position_tolerance))
        self._pending_timeout = pending_timeout if pending_timeout and pending_timeout > 0 else None
        self._time = time_source
        self._new_token = token_factory or (lambda: uuid.uuid4().hex)
        self._focus_requested = focus_requested
        self._logger = logger or _LOGGER

        self._draft: Optional[EditorDraft] = None
        self._transient: Optional[TransientTag] = None
        self._request: Optional[AddRequest] = None
        self._confirmed: Tuple[Tag, ...] = ()
        self._last_error: Optional[TagOverlayError] = None

    # ------------------------------------------------------------------ state

    @property
    def state(self) -> LifecycleState:
        if self._transient is not None:
            return LifecycleState.PENDING
        if self._draft is not None:
            return LifecycleState.EDITING
        return LifecycleState.IDLE

    @property
    def draft(self) -> Optional[EditorDraft]:
        return self._draft

    @property
    def transient(self) -> Optional[TransientTag]:
        return self._transient

    @property
    def request(self) -> Optional[AddRequest]:
        return self._request

    @property
    def confirmed(self) -> Tuple[Tag, ...]:
        return self._confirmed

    @property
    def last_error(self) -> Optional[TagOverlayError]:
        return self._last_error

    @property
    def confirmation(self) -> ConfirmationPolicy:
        return self._confirmation

    def set_validator(self, validator: Optional[MentionValidator]) -> None:
        self._validator = validator

    # ------------------------------------------------------------ transitions

    def container_clicked(self, x: float, y: float) -> bool:
        """Open (or move) the editor at a normalized position."""
        if self._transient is not None:
            self._logger.debug("Click at (%.3f, %.3f) ignored; add %s pending", x, y, self._transient.token)
            return False
        if self._draft is None:
            self._draft = EditorDraft(x, y, "")
            self._last_error = None
        else:
            self._draft = self._draft.moved_to(x, y)
        if self._focus_requested is not None:
            try:
                self._focus_requested()
            except Exception as exc:
                log_exception(self._logger, "Focus request failed", exc)
        return True

    def keystroke(self, value: str) -> bool:
        if self._draft is None or self._transient is not None:
            return False
        self._draft = self._draft.with_value(value)
        if isinstance(self._last_error, MentionFormatError):
            self._last_error = None
        return True

    def submit(self) -> Optional[TransientTag]:
        """Dispatch the draft to the store and hold it as a transient tag."""
        draft = self._draft
        if draft is None or self._transient is not None:
            return None
        if not draft.value:
            self._draft = draft.with_value("")
            return None
        if self._validator is not None and not self._validator(draft.value):
            self._last_error = MentionFormatError(draft.value)
            self._logger.debug("Rejected tag id %r: invalid format", draft.value)
            return None

        token = self._new_token()
        tag = Tag(draft.value, draft.x, draft.y)
        transient = TransientTag(tag.id, tag.x, tag.y, token=token)
        self._draft = None
        self._transient = transient
        self._last_error = None
        self._request = AddRequest(
            token=token,
            tag=tag,
            status=RequestStatus.SENT,
            sent_at=self._time(),
            baseline=self._confirmed,
        )
        self._logger.debug("Add %s sent: id=%s x=%.4f y=%.4f", token, tag.id, tag.x, tag.y)
        try:
            self._add_tag(self._container_id, self._item_id, tag.to_record())
        except Exception as exc:
            log_exception(self._logger, f"add_tag failed for {tag.id}", exc)
            self.fail_pending(str(exc) or type(exc).__name__)
        return self._transient

    def escape(self) -> bool:
        if self._draft is None or self._transient is not None:
            return False
        self._draft = None
        return True

    def remove_clicked(self, tag_id: str) -> bool:
        if not any(tag.id == tag_id for tag in self._confirmed):
            self._logger.debug("Remove ignored for unconfirmed tag %r", tag_id)
            return False
        try:
            self._remove_tag(self._container_id, self._item_id, tag_id)
        except Exception as exc:
            log_exception(self._logger, f"remove_tag failed for {tag_id}", exc)
            return False
        return True

    # --------------------------------------------------------- reconciliation

    def sync_confirmed(self, tags: Iterable[Any]) -> bool:
        """Take a new confirmed collection; return True when the transient tag cleared."""
        previous = self._confirmed
        current = coerce_tags(tags)
        self._confirmed = current
        if self._transient is None or self._request is None:
            return False
        if self._confirmation is ConfirmationPolicy.COUNT:
            landed = len(current) != len(previous)
        else:
            landed = self._identity_landed(self._request, previous, current)
        if landed:
            self._request = replace(self._request, status=RequestStatus.CONFIRMED)
            self._transient = None
            self._logger.debug("Add %s confirmed (%s)", self._request.token, self._confirmation.value)
            return True
        return self.check_timeout()

    def _identity_landed(self, request: AddRequest, previous: Tuple[Tag, ...], current: Tuple[Tag, ...]) -> bool:
        wanted = request.tag
        if not any(tag.matches(wanted, self._tolerance) for tag in current):
            return False
        if not any(tag.matches(wanted, self._tolerance) for tag in request.baseline):
            return True
        # Re-adding a stored tag is a no-op write: the store echoes an unchanged
        # collection, while unrelated edits change it.
        return set(current) == set(previous)

    def fail_pending(self, reason: str) -> bool:
        request = self._request
        if self._transient is None or request is None:
            return False
        error = TagRequestError(request.token, reason)
        self._request = replace(request, status=RequestStatus.FAILED, error=error)
        self._transient = None
        self._last_error = error
        self._logger.warning("Add %s for %r failed: %s", request.token, request.tag.id, reason)
        return True

    def check_timeout(self) -> bool:
        request = self._request
        if self._pending_timeout is None or self._transient is None or request is None:
            return False
        elapsed = self._time() - request.sent_at
        if elapsed < self._pending_timeout:
            return False
        return self.fail_pending(f"not confirmed after {elapsed:.1f}s")


__all__ = [
    "AddRequest",
    "AddTagFn",
    "ConfirmationPolicy",
    "LifecycleState",
    "RemoveTagFn",
    "RequestStatus",
    "TagLifecycle",
]
