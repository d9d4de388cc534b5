from deferred_analytics.analytics.adapter import (
    AnalyticsApi,
    DeferredAnalytics,
    NoopAnalytics,
)
from deferred_analytics.analytics.config import (
    AnalyticsAppConfig,
    AnalyticsSettings,
)
from deferred_analytics.analytics.events import (
    AnalyticsContext,
    AnalyticsEvent,
)
from deferred_analytics.analytics.identity import (
    IdentityProvider,
    StaticIdentityProvider,
    UserIdentity,
    hash_user_ref,
)
from deferred_analytics.analytics.singleton import (
    get_analytics,
    initialize_analytics,
    shutdown_on_exit,
)
from deferred_analytics.analytics.suppression import suppress_analytics

__all__ = [
    "AnalyticsApi",
    "AnalyticsAppConfig",
    "AnalyticsContext",
    "AnalyticsEvent",
    "AnalyticsSettings",
    "DeferredAnalytics",
    "IdentityProvider",
    "NoopAnalytics",
    "StaticIdentityProvider",
    "UserIdentity",
    "get_analytics",
    "hash_user_ref",
    "initialize_analytics",
    "shutdown_on_exit",
    "suppress_analytics",
]
