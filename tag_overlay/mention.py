from __future__ import annotations

import re
from typing import Callable

MentionValidator = Callable[[str], bool]

# Basic Instagram-style username: no leading period.
_MENTION_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.]*$")


def validate_instagram_mention(mention: object) -> bool:
    """Return True when ``mention`` looks like a username; never raises."""

    if not mention or not isinstance(mention, str):
        return False
    return _MENTION_RE.match(mention.strip()) is not None


__all__ = ["MentionValidator", "validate_instagram_mention"]
