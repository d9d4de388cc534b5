from __future__ import annotations

import contextvars
from collections.abc import Generator
from contextlib import contextmanager

_analytics_suppressed: contextvars.ContextVar[bool] = contextvars.ContextVar(
    "_analytics_suppressed", default=False
)


def is_suppressed() -> bool:
    """Return True when analytics capture is suppressed in this
    context."""
    return _analytics_suppressed.get()


@contextmanager
def suppress_analytics() -> Generator[None, None, None]:
    """Context manager to suppress analytics for nested calls."""
    token = _analytics_suppressed.set(True)
    try:
        yield
    finally:
        _analytics_suppressed.reset(token)
