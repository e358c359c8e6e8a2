from .keyboard import KeyboardEvents, KeyboardSource, KeyEvent, Subscription
from .lifecycle import AddRequest, ConfirmationPolicy, LifecycleState, RequestStatus, TagLifecycle
from .overlay_controller import EditorView, OverlayController, OverlayView, PointerEvent, TagView
from .utils import log_exception, safe_call

__all__ = [
    "AddRequest",
    "ConfirmationPolicy",
    "EditorView",
    "KeyEvent",
    "KeyboardEvents",
    "KeyboardSource",
    "LifecycleState",
    "OverlayController",
    "OverlayView",
    "PointerEvent",
    "RequestStatus",
    "Subscription",
    "TagLifecycle",
    "TagView",
    "log_exception",
    "safe_call",
]
