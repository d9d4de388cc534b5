from __future__ import annotations

import atexit
from contextlib import suppress

from deferred_analytics.analytics.adapter import (
    DeferredAnalytics,
    NoopAnalytics,
)
from deferred_analytics.analytics.config import (
    AnalyticsAppConfig,
    AnalyticsSettings,
)
from deferred_analytics.analytics.identity import IdentityProvider
from deferred_analytics.typing import Params

_analytics_by_name: dict[str, DeferredAnalytics | NoopAnalytics] = {}
_singleton_state = {"exit_handler_registered": False}


def get_analytics(
    name: str | None = None,
) -> DeferredAnalytics | NoopAnalytics | None:
    """Return an analytics instance by name, if initialized.

    @type name: Optional[str]
    @param name: Name used to initialize the analytics instance. If
        C{None} and only one instance exists, that instance is
        returned.
    """
    if name is None:
        if len(_analytics_by_name) == 1:
            return next(iter(_analytics_by_name.values()))
        return None
    return _analytics_by_name.get(name)


def initialize_analytics(
    *,
    name: str,
    config: AnalyticsAppConfig | Params | None = None,
    identity_provider: IdentityProvider | None = None,
    register_exit_handler: bool = True,
) -> DeferredAnalytics | NoopAnalytics:
    """Initialize and return an analytics instance for an application.

    Repeated calls with the same name return the first instance.

    @type name: str
    @param name: Name of the application reporting analytics.
    @type config: Optional[Union[L{AnalyticsAppConfig}, dict]]
    @param config: Application config. If C{None}, settings are read
        from C{ANALYTICS_*} environment variables.
    @type identity_provider: Optional[L{IdentityProvider}]
    @param identity_provider: Resolves the current user.
    @type register_exit_handler: bool
    @param register_exit_handler: If True, shut the backend down on
        process exit.
    """
    if name not in _analytics_by_name:
        if config is None:
            analytics = DeferredAnalytics.from_settings(
                AnalyticsSettings.from_environ(), identity_provider
            )
        else:
            analytics = DeferredAnalytics.from_config(
                config, identity_provider
            )
        _analytics_by_name[name] = analytics
        if register_exit_handler:
            shutdown_on_exit()
    return _analytics_by_name[name]


def shutdown_on_exit() -> None:
    """Register an exit handler to shut analytics down on exit."""
    if not _singleton_state["exit_handler_registered"]:
        atexit.register(_shutdown_on_exit)
        _singleton_state["exit_handler_registered"] = True


def _shutdown_on_exit() -> None:
    """Shut down all registered analytics instances."""
    for analytics in list(_analytics_by_name.values()):
        with suppress(Exception):
            analytics.shutdown()
