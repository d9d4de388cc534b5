from __future__ import annotations

from typing import Protocol

from deferred_analytics.typing import Properties


class TelemetrySink(Protocol):
    """Protocol for destinations of page views and events."""

    def emit_pageview(self, uri: str, properties: Properties) -> None:
        """Send a page view."""
        ...

    def emit_event(self, name: str, properties: Properties) -> None:
        """Send a discrete event."""
        ...


class AnalyticsBackend(TelemetrySink, Protocol):
    """Protocol for full analytics backends owned by an adapter."""

    def set_authenticated_user(self, user_id: str) -> None:
        """Attach an (already anonymized) user id to later hits."""
        ...

    def flush(self) -> None:
        """Flush any buffered hits."""
        ...

    def shutdown(self) -> None:
        """Shutdown backend resources and flush pending hits."""
        ...
