from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from deferred_analytics.typing import Properties

NAVIGATE_ACTION = "navigate"
APP_EXTENSION = "App"


@dataclass(frozen=True)
class AnalyticsContext:
    """Where in the host application an event originated."""

    extension: str | None = None
    plugin_id: str | None = None
    route_ref: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AnalyticsEvent:
    """An analytics event emitted by the host application.

    @type action: str
    @ivar action: What happened, I{e.g.} C{"click"} or C{"navigate"}.
    @type subject: str
    @ivar subject: What it happened to. For navigation this is the
        target URI.
    @type context: L{AnalyticsContext}
    @ivar context: Origin of the event.
    @type value: Optional[float]
    @ivar value: Optional numeric value attached to the event.
    @type attributes: Optional[Mapping[str, Any]]
    @ivar attributes: Optional free-form attributes.
    """

    action: str
    subject: str
    context: AnalyticsContext = field(default_factory=AnalyticsContext)
    value: float | None = None
    attributes: Properties | None = None

    @property
    def is_pageview(self) -> bool:
        """Navigation events of the app shell are tracked as page
        views."""
        return (
            self.action == NAVIGATE_ACTION
            and self.context.extension == APP_EXTENSION
        )
