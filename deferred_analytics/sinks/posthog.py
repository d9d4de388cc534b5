from __future__ import annotations

from typing import Any

from deferred_analytics.guard_extras import guard_missing_extra
from deferred_analytics.sinks.base import AnalyticsBackend
from deferred_analytics.typing import Properties

PAGEVIEW_EVENT = "$pageview"


class PostHogBackend(AnalyticsBackend):
    """PostHog backend using the official python package."""

    def __init__(self, *, api_key: str, host: str | None = None) -> None:
        """Initialize the PostHog client.

        @type api_key: str
        @param api_key: PostHog project API key.
        @type host: Optional[str]
        @param host: Optional PostHog host URL.
        @raise ValueError: If no API key is given.
        @raise ImportError: If the C{posthog} extra is not installed.
        """
        if not api_key:
            raise ValueError("PostHog backend requires an API key.")
        with guard_missing_extra("posthog"):
            from posthog import Posthog
        kwargs: dict[str, Any] = {
            "project_api_key": api_key,
            "disable_geoip": True,
        }
        if host:
            kwargs["host"] = host
        self._client = Posthog(**kwargs)
        self._user_id: str | None = None

    @property
    def distinct_id(self) -> str:
        return self._user_id or "anonymous"

    def emit_pageview(self, uri: str, properties: Properties) -> None:
        """Capture a page view as the C{$pageview} event."""
        self._client.capture(
            distinct_id=self.distinct_id,
            event=PAGEVIEW_EVENT,
            properties={**properties, "$current_url": uri},
        )

    def emit_event(self, name: str, properties: Properties) -> None:
        """Capture an event using the PostHog client."""
        self._client.capture(
            distinct_id=self.distinct_id,
            event=name,
            properties=dict(properties),
        )

    def set_authenticated_user(self, user_id: str) -> None:
        self._user_id = user_id

    def flush(self) -> None:
        """Flush buffered PostHog events if supported."""
        if hasattr(self._client, "flush"):
            self._client.flush()

    def shutdown(self) -> None:
        if hasattr(self._client, "shutdown"):
            self._client.shutdown()
        else:
            self.flush()
