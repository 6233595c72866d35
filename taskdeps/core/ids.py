"""Id and timestamp factories for newly constructed dependency records."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]


def new_dependency_id() -> str:
    return f"dep-{uuid.uuid4().hex}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def sequential_ids(prefix: str = "dep") -> IdFactory:
    """Deterministic id factory: ``dep-1``, ``dep-2``, ..."""
    counter = 0

    def _next() -> str:
        nonlocal counter
        counter += 1
        return f"{prefix}-{counter}"

    return _next
