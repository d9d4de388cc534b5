from .hits import EventHit, Hit, PageViewHit
from .queue import DeferredCapture

__all__ = ["DeferredCapture", "EventHit", "Hit", "PageViewHit"]
