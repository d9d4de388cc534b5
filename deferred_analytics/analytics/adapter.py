from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol

from loguru import logger

from deferred_analytics.analytics.config import (
    AnalyticsAppConfig,
    AnalyticsSettings,
)
from deferred_analytics.analytics.events import AnalyticsEvent
from deferred_analytics.analytics.identity import (
    IdentityProvider,
    UserHasher,
    hash_user_ref,
)
from deferred_analytics.analytics.redaction import sanitize_properties
from deferred_analytics.analytics.suppression import is_suppressed
from deferred_analytics.capture import DeferredCapture
from deferred_analytics.sinks.base import AnalyticsBackend
from deferred_analytics.sinks.noop import NoopBackend
from deferred_analytics.sinks.posthog import PostHogBackend
from deferred_analytics.sinks.stdout import StdoutBackend
from deferred_analytics.typing import Params

BackendFactory = Callable[[AnalyticsSettings], AnalyticsBackend]


class AnalyticsApi(Protocol):
    """What the host application calls to report analytics."""

    @property
    def is_ready(self) -> bool: ...

    def capture_event(self, event: AnalyticsEvent) -> None: ...

    async def resolve_user(self) -> str | None: ...

    def start(self) -> asyncio.Task[str | None]: ...

    def identify(self, user_entity_ref: str) -> str | None: ...

    def flush(self) -> None: ...

    def shutdown(self) -> None: ...


class NoopAnalytics(AnalyticsApi):
    """Analytics API used when analytics are not configured.

    Nothing is ever held back, so it reports itself as ready and user
    resolution finishes immediately without a user id.
    """

    @property
    def is_ready(self) -> bool:
        return True

    def capture_event(self, event: AnalyticsEvent) -> None:
        return

    async def resolve_user(self) -> str | None:
        return None

    def start(self) -> asyncio.Task[str | None]:
        return asyncio.get_running_loop().create_task(self.resolve_user())

    def identify(self, user_entity_ref: str) -> str | None:
        return None

    def flush(self) -> None:
        return

    def shutdown(self) -> None:
        return


class DeferredAnalytics(AnalyticsApi):
    """Analytics API forwarding page views and events to a backend
    once the current user is known.

    Hits captured before the user has been identified are held back by
    a L{DeferredCapture} queue and released, in order, as soon as the
    hashed user id has been set on the backend.
    """

    _backend_factories: dict[str, BackendFactory] = {}

    def __init__(
        self,
        backend: AnalyticsBackend,
        identity_provider: IdentityProvider | None = None,
        *,
        hasher: UserHasher = hash_user_ref,
        defer: bool = True,
        max_backlog: int | None = None,
        allowlist: set[str] | None = None,
    ) -> None:
        """Initialize the analytics adapter.

        @type backend: L{AnalyticsBackend}
        @param backend: Backend receiving page views and events.
        @type identity_provider: Optional[L{IdentityProvider}]
        @param identity_provider: Resolves the current user, see
            L{resolve_user}.
        @type hasher: Callable[[str], str]
        @param hasher: One-way function applied to the user reference
            before it is handed to the backend.
        @type defer: bool
        @param defer: Hold hits back until the user is identified.
        @type max_backlog: Optional[int]
        @param max_backlog: Cap on held back hits. Unbounded if C{None}.
        @type allowlist: Optional[set]
        @param allowlist: If set, only these event attributes are sent.
        """
        self._backend = backend
        self._identity_provider = identity_provider
        self._hasher = hasher
        self._allowlist = allowlist
        self._capture = DeferredCapture(
            backend, defer=defer, max_backlog=max_backlog
        )

    @classmethod
    def from_config(
        cls,
        config: AnalyticsAppConfig | Params,
        identity_provider: IdentityProvider | None = None,
    ) -> DeferredAnalytics | NoopAnalytics:
        """Create the analytics API from the application config.

        Returns a L{NoopAnalytics} if the config has no
        C{app.analytics} section.

        @type config: Union[L{AnalyticsAppConfig}, dict]
        @param config: Application config or its raw dictionary.
        @type identity_provider: Optional[L{IdentityProvider}]
        @param identity_provider: Resolves the current user.
        """
        if not isinstance(config, AnalyticsAppConfig):
            config = AnalyticsAppConfig.get_config(config)
        settings: AnalyticsSettings | None = config.get("app.analytics")
        return cls.from_settings(settings, identity_provider)

    @classmethod
    def from_settings(
        cls,
        settings: AnalyticsSettings | None,
        identity_provider: IdentityProvider | None = None,
    ) -> DeferredAnalytics | NoopAnalytics:
        """Create the analytics API from the analytics settings alone.

        @type settings: Optional[L{AnalyticsSettings}]
        @param settings: Analytics settings, C{None} disables analytics.
        @type identity_provider: Optional[L{IdentityProvider}]
        @param identity_provider: Resolves the current user.
        """
        if settings is None:
            return NoopAnalytics()
        return cls(
            cls._init_backend(settings),
            identity_provider,
            defer=settings.defer_until_identified,
            max_backlog=settings.max_backlog,
            allowlist=settings.allowlist,
        )

    @classmethod
    def register_backend(cls, name: str, factory: BackendFactory) -> None:
        """Register a custom backend factory.

        @type name: str
        @param name: Backend name used in C{AnalyticsSettings.backend}.
        @type factory: Callable
        @param factory: Callable that builds a backend from
            L{AnalyticsSettings}.
        """
        cls._backend_factories[name] = factory

    @property
    def backend(self) -> AnalyticsBackend:
        return self._backend

    @property
    def capture(self) -> DeferredCapture:
        return self._capture

    @property
    def is_ready(self) -> bool:
        return self._capture.is_ready

    def capture_event(self, event: AnalyticsEvent) -> None:
        """Capture an analytics event.

        Navigation of the app shell is tracked as a page view, anything
        else as an event named after the action. Backend failures are
        logged and do not reach the caller.

        @type event: L{AnalyticsEvent}
        @param event: Event emitted by the host application.
        """
        if is_suppressed():
            return
        context = event.context
        try:
            if event.is_pageview:
                self._capture.record_pageview(
                    event.subject,
                    sanitize_properties(
                        {
                            "pluginId": context.plugin_id,
                            "routeRef": context.route_ref,
                        }
                    ),
                )
                return

            attributes = event.attributes
            if attributes is not None and self._allowlist is not None:
                attributes = {
                    key: value
                    for key, value in attributes.items()
                    if key in self._allowlist
                }
            self._capture.record_event(
                event.action,
                sanitize_properties(
                    {
                        "category": context.extension or "App",
                        "label": event.subject,
                        "attributes": attributes,
                        "value": event.value,
                    }
                ),
            )
        except Exception:
            logger.opt(exception=True).debug(
                f"Failed to capture analytics event '{event.action}'; skipping."
            )

    async def resolve_user(self) -> str | None:
        """Resolve the current user and release held back hits.

        @rtype: Optional[str]
        @return: The hashed user id handed to the backend.
        @raise ValueError: If no identity provider was given.
        """
        if self._identity_provider is None:
            raise ValueError(
                "Cannot resolve the user without an identity provider."
            )
        try:
            identity = await self._identity_provider.get_identity()
        except Exception:
            logger.opt(exception=True).warning(
                "Failed to resolve the user identity; "
                f"{self._capture.pending} analytics hits stay deferred."
            )
            raise
        return self.identify(identity.user_entity_ref)

    def start(self) -> asyncio.Task[str | None]:
        """Schedule L{resolve_user} on the running event loop."""
        return asyncio.get_running_loop().create_task(self.resolve_user())

    def identify(self, user_entity_ref: str) -> str | None:
        """Set the user on the backend and release held back hits.

        The reference is hashed first so that no personally
        identifiable information reaches the backend. A held back hit
        the backend fails to accept is logged and skipped, the rest are
        still delivered and capture switches to pass-through.

        @type user_entity_ref: str
        @param user_entity_ref: Reference of the signed-in user.
        @rtype: Optional[str]
        @return: The hashed user id.
        """
        user_id = self._hasher(user_entity_ref)
        self._backend.set_authenticated_user(user_id)
        logger.debug(
            f"User identified, releasing {self._capture.pending} deferred hits"
        )
        # Each failed attempt has already taken the failing hit off the
        # backlog, so this ends.
        while not self._capture.is_ready:
            try:
                self._capture.mark_ready()
            except Exception:
                logger.opt(exception=True).debug(
                    "Failed to deliver a deferred analytics hit; skipping."
                )
        return user_id

    def flush(self) -> None:
        """Flush any buffered hits of the backend."""
        self._backend.flush()

    def shutdown(self) -> None:
        """Shutdown the backend.

        Hits still held back because the user was never identified are
        discarded.
        """
        if self._capture.pending:
            logger.warning(
                f"Shutting down with {self._capture.pending} analytics hits "
                "still waiting for the user to be identified."
            )
        self._backend.shutdown()

    @classmethod
    def _init_backend(cls, settings: AnalyticsSettings) -> AnalyticsBackend:
        """Initialize the configured backend or fall back to
        NoopBackend."""
        name = settings.backend.lower()
        cls._ensure_default_backends()
        factory = cls._backend_factories.get(name)
        if factory is None:
            logger.warning(
                f"Unknown analytics backend '{settings.backend}', "
                "analytics are disabled."
            )
            return NoopBackend()
        try:
            return factory(settings)
        except Exception:
            logger.opt(exception=True).warning(
                f"Failed to initialize analytics backend '{name}', "
                "analytics are disabled."
            )
            return NoopBackend()

    @classmethod
    def _ensure_default_backends(cls) -> None:
        """Register built-in backend factories not overridden by a
        custom registration."""
        defaults: dict[str, BackendFactory] = {
            "noop": lambda _: NoopBackend(),
            "stdout": lambda _: StdoutBackend(),
            "posthog": lambda cfg: PostHogBackend(
                api_key=cfg.api_key or "", host=cfg.endpoint
            ),
        }
        for name, factory in defaults.items():
            cls._backend_factories.setdefault(name, factory)


def backend_names() -> list[str]:
    """Names of all registered backends."""
    DeferredAnalytics._ensure_default_backends()
    return sorted(DeferredAnalytics._backend_factories)
