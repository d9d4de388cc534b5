from __future__ import annotations

import json
import logging

from deferred_analytics.sinks.base import AnalyticsBackend
from deferred_analytics.typing import Properties


class StdoutBackend(AnalyticsBackend):
    """Backend that logs page views and events as JSON."""

    def __init__(self) -> None:
        """Initialize the stdout backend."""
        self._logger = logging.getLogger("deferred_analytics.sinks")
        self._user_id: str | None = None

    def emit_pageview(self, uri: str, properties: Properties) -> None:
        """Log a page view as JSON."""
        payload = {
            "uri": uri,
            "properties": dict(properties),
            "user_id": self._user_id,
        }
        self._logger.info(
            "pageview %s", json.dumps(payload, sort_keys=True, default=str)
        )

    def emit_event(self, name: str, properties: Properties) -> None:
        """Log an event as JSON."""
        payload = {
            "name": name,
            "properties": dict(properties),
            "user_id": self._user_id,
        }
        self._logger.info(
            "event %s", json.dumps(payload, sort_keys=True, default=str)
        )

    def set_authenticated_user(self, user_id: str) -> None:
        self._user_id = user_id
        self._logger.info("authenticated_user %s", json.dumps(user_id))

    def flush(self) -> None:
        return

    def shutdown(self) -> None:
        return
