from __future__ import annotations

from pydantic import BaseModel, ConfigDict, PositiveInt

from deferred_analytics.utils.config import Config
from deferred_analytics.utils.environ import environ
from deferred_analytics.utils.pydantic_utils import BaseModelExtraForbid


class AnalyticsSettings(BaseModelExtraForbid):
    """Settings of the C{app.analytics} config section.

    @type backend: str
    @param backend: Backend name to use (e.g., "posthog", "stdout").
    @type api_key: Optional[str]
    @param api_key: API key for the backend, if applicable.
    @type endpoint: Optional[str]
    @param endpoint: Custom endpoint/host for the backend, if
        applicable.
    @type defer_until_identified: bool
    @param defer_until_identified: Hold hits back until the current
        user has been identified.
    @type max_backlog: Optional[int]
    @param max_backlog: Cap on hits held back while waiting for the
        user. Unbounded if not set.
    @type allowlist: Optional[Set[str]]
    @param allowlist: If set, only these event attributes are sent.
    """

    backend: str = "posthog"
    api_key: str | None = None
    endpoint: str | None = None
    defer_until_identified: bool = True
    max_backlog: PositiveInt | None = None
    allowlist: set[str] | None = None

    @classmethod
    def from_environ(cls) -> AnalyticsSettings | None:
        """Build settings from environment variables.

        This reads the C{ANALYTICS_*} settings. Returns C{None} when
        C{ANALYTICS_ENABLED} is not set, which disables analytics.
        """
        if not environ.ANALYTICS_ENABLED:
            return None
        api_key = (
            environ.ANALYTICS_API_KEY.get_secret_value()
            if environ.ANALYTICS_API_KEY is not None
            else None
        )
        return cls(
            backend=environ.ANALYTICS_BACKEND or "posthog",
            api_key=api_key,
            endpoint=environ.ANALYTICS_ENDPOINT,
            defer_until_identified=environ.ANALYTICS_DEFER_UNTIL_IDENTIFIED,
            max_backlog=environ.ANALYTICS_MAX_BACKLOG,
        )


class AppSection(BaseModel):
    model_config = ConfigDict(extra="ignore")

    analytics: AnalyticsSettings | None = None


class AnalyticsAppConfig(Config):
    """Application config holding an optional C{app.analytics}
    section.

    Unrelated top-level keys of the host application's config are
    ignored.
    """

    model_config = ConfigDict(extra="ignore")

    app: AppSection = AppSection()
