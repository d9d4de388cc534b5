from deferred_analytics.sinks.base import AnalyticsBackend, TelemetrySink
from deferred_analytics.sinks.noop import NoopBackend
from deferred_analytics.sinks.stdout import StdoutBackend

__all__ = [
    "AnalyticsBackend",
    "NoopBackend",
    "StdoutBackend",
    "TelemetrySink",
]
