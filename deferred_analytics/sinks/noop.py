from __future__ import annotations

from deferred_analytics.sinks.base import AnalyticsBackend
from deferred_analytics.typing import Properties


class NoopBackend(AnalyticsBackend):
    """Backend that discards all page views and events."""

    def emit_pageview(self, uri: str, properties: Properties) -> None:
        """Discard the page view."""
        return

    def emit_event(self, name: str, properties: Properties) -> None:
        """Discard the event."""
        return

    def set_authenticated_user(self, user_id: str) -> None:
        return

    def flush(self) -> None:
        return

    def shutdown(self) -> None:
        return
