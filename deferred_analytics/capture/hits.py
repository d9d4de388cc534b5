from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias

from deferred_analytics.typing import Properties


@dataclass(frozen=True)
class PageViewHit:
    """A page view recorded while capture was deferred."""

    uri: str
    properties: Properties
    kind: Literal["pageview"] = "pageview"


@dataclass(frozen=True)
class EventHit:
    """A discrete event recorded while capture was deferred."""

    name: str
    properties: Properties
    kind: Literal["event"] = "event"


Hit: TypeAlias = PageViewHit | EventHit
"""A single telemetry occurrence waiting in the backlog."""
