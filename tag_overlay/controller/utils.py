from __future__ import annotations

import logging
from typing import Any, Callable, Optional


def log_exception(logger: Optional[logging.Logger], context: str, exc: BaseException) -> None:
    """Log an unexpected exception with its traceback to the provided logger."""
    if logger is None:
        return
    try:
        logger.error("%s: %s", context, exc, exc_info=(type(exc), exc, exc.__traceback__))
    except Exception:
        pass


def safe_call(
    callback: Optional[Callable[..., Any]],
    *args: Any,
    logger: Optional[logging.Logger] = None,
    context: str = "callback failed",
) -> bool:
    """Invoke a host callback; failures are logged and reported as False."""
    if callback is None:
        return False
    try:
        callback(*args)
    except Exception as exc:
        log_exception(logger, context, exc)
        return False
    return True
