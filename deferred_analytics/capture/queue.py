from __future__ import annotations

import threading
from collections import deque

from loguru import logger

from deferred_analytics.capture.hits import EventHit, Hit, PageViewHit
from deferred_analytics.sinks.base import TelemetrySink
from deferred_analytics.typing import Properties


class DeferredCapture:
    """Forwards page views and events to a sink, holding them back
    until the sink may receive data.

    While deferred, every recorded hit is appended to a backlog. Once
    L{mark_ready} is called the backlog is delivered in arrival order
    and the queue switches permanently to pass-through mode, in which
    hits go straight to the sink.
    """

    def __init__(
        self,
        sink: TelemetrySink,
        *,
        defer: bool = False,
        max_backlog: int | None = None,
    ) -> None:
        """Create a capture queue.

        @type sink: L{TelemetrySink}
        @param sink: Destination of page views and events.
        @type defer: bool
        @param defer: If C{True}, hits are held back until
            L{mark_ready} is called.
        @type max_backlog: Optional[int]
        @param max_backlog: Maximum number of pending hits. When full,
            the oldest pending hit is dropped. C{None} means unbounded.
        @raise ValueError: If C{max_backlog} is not positive.
        """
        if max_backlog is not None and max_backlog <= 0:
            raise ValueError(
                f"`max_backlog` must be a positive integer, got {max_backlog}."
            )
        self._sink = sink
        # None once the queue passes hits through.
        self._backlog: deque[Hit] | None = deque() if defer else None
        self._max_backlog = max_backlog
        self._dropped = 0
        self._lock = threading.RLock()

    @property
    def is_ready(self) -> bool:
        """Whether hits are delivered without delay."""
        return self._backlog is None

    @property
    def pending(self) -> int:
        """Number of hits waiting in the backlog."""
        with self._lock:
            return len(self._backlog) if self._backlog is not None else 0

    @property
    def dropped(self) -> int:
        """Number of hits dropped because the backlog was full."""
        return self._dropped

    def record_pageview(self, uri: str, properties: Properties) -> None:
        """Either forwards the page view to the sink or enqueues it to
        be delivered when ready."""
        if self._enqueue(PageViewHit(uri=uri, properties=properties)):
            return
        self._sink.emit_pageview(uri, properties)

    def record_event(self, name: str, properties: Properties) -> None:
        """Either forwards the event to the sink or enqueues it to be
        delivered when ready."""
        if self._enqueue(EventHit(name=name, properties=properties)):
            return
        self._sink.emit_event(name, properties)

    def mark_ready(self) -> None:
        """Indicates that deferred capture may now proceed.

        Delivers the backlog in the order the hits were recorded and
        switches to pass-through mode. Calling it again is a no-op.

        If the sink raises while draining, the exception propagates and
        the hits after the failing one stay queued; calling
        C{mark_ready} again resumes delivery from there.
        """
        with self._lock:
            if self._backlog is None:
                return
            if self._backlog:
                logger.debug(f"Delivering {len(self._backlog)} deferred hits")
            while self._backlog:
                self._send(self._backlog.popleft())
            self._backlog = None

    def _enqueue(self, hit: Hit) -> bool:
        """Appends the hit to the backlog if capture is deferred.

        Returns C{False} when the hit should be delivered directly.
        """
        with self._lock:
            if self._backlog is None:
                return False
            if (
                self._max_backlog is not None
                and len(self._backlog) >= self._max_backlog
            ):
                self._backlog.popleft()
                self._dropped += 1
                logger.warning(
                    f"Deferred capture backlog is full ({self._max_backlog} "
                    "hits), dropping the oldest one."
                )
            self._backlog.append(hit)
            return True

    def _send(self, hit: Hit) -> None:
        """Sends a deferred hit to the sink."""
        if hit.kind == "pageview":
            self._sink.emit_pageview(hit.uri, hit.properties)
        elif hit.kind == "event":
            self._sink.emit_event(hit.name, hit.properties)
        else:  # pragma: no cover
            raise TypeError(f"Unknown hit kind: {hit.kind!r}")
