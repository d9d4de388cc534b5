import asyncio
from collections.abc import Generator
from typing import Any

import pytest

from deferred_analytics.analytics import (
    AnalyticsContext,
    AnalyticsEvent,
    AnalyticsSettings,
    DeferredAnalytics,
    NoopAnalytics,
    StaticIdentityProvider,
    UserIdentity,
    hash_user_ref,
    suppress_analytics,
)
from deferred_analytics.sinks import NoopBackend
from deferred_analytics.typing import Properties

USER_REF = "User:default/someone"

CLICK = AnalyticsEvent(
    action="click",
    subject="subject",
    value=6,
    context=AnalyticsContext(
        extension="extension", plugin_id="pluginId", route_ref="routeRef"
    ),
)
NAVIGATE = AnalyticsEvent(
    action="navigate",
    subject="/url-thing",
    context=AnalyticsContext(
        extension="App", plugin_id="pluginId", route_ref="routeRef"
    ),
)


class RecordingBackend:
    """Keeps every backend call in memory, in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.user_id: str | None = None
        self.flush_count = 0
        self.shutdown_count = 0

    def emit_pageview(self, uri: str, properties: Properties) -> None:
        self.calls.append(("pageview", uri, dict(properties)))

    def emit_event(self, name: str, properties: Properties) -> None:
        self.calls.append(("event", name, dict(properties)))

    def set_authenticated_user(self, user_id: str) -> None:
        self.user_id = user_id

    def flush(self) -> None:
        self.flush_count += 1

    def shutdown(self) -> None:
        self.shutdown_count += 1


class FailingIdentityProvider:
    async def get_identity(self) -> UserIdentity:
        raise ConnectionError("identity service unavailable")


class ExplodingBackend(RecordingBackend):
    def emit_event(self, name: str, properties: Any) -> None:
        raise RuntimeError("backend down")


class FlakyBackend(RecordingBackend):
    """Fails to send the first event only."""

    def __init__(self) -> None:
        super().__init__()
        self.failed = False

    def emit_event(self, name: str, properties: Any) -> None:
        if not self.failed:
            self.failed = True
            raise ConnectionError("transient")
        super().emit_event(name, properties)


@pytest.fixture
def recording_backend(
    reset_backend_registry: Generator[None, None, None],
) -> RecordingBackend:
    backend = RecordingBackend()
    DeferredAnalytics.register_backend("recording", lambda cfg: backend)
    return backend


def test_from_config_returns_implementation(
    recording_backend: RecordingBackend,
):
    config = {
        "app": {
            "title": "Host application",
            "analytics": {"backend": "recording", "api_key": "key"},
        },
        "backend": {"baseUrl": "http://localhost"},
    }
    api = DeferredAnalytics.from_config(
        config, StaticIdentityProvider(USER_REF)
    )
    assert isinstance(api, DeferredAnalytics)
    assert api.backend is recording_backend

    api.capture_event(CLICK)
    api.capture_event(NAVIGATE)
    assert recording_backend.calls == []

    asyncio.run(api.resolve_user())

    assert recording_backend.user_id == hash_user_ref(USER_REF)
    assert recording_backend.calls == [
        (
            "event",
            "click",
            {
                "category": "extension",
                "label": "subject",
                "attributes": None,
                "value": 6,
            },
        ),
        ("pageview", "/url-thing", {"pluginId": "pluginId", "routeRef": "routeRef"}),
    ]


def test_from_config_without_section_is_noop():
    api = DeferredAnalytics.from_config({"app": {"title": "Host"}})
    assert isinstance(api, NoopAnalytics)
    api.capture_event(CLICK)


def test_hits_after_identification_pass_through():
    backend = RecordingBackend()
    api = DeferredAnalytics(backend, StaticIdentityProvider(USER_REF))
    asyncio.run(api.resolve_user())
    assert api.is_ready

    api.capture_event(NAVIGATE)
    assert backend.calls == [
        ("pageview", "/url-thing", {"pluginId": "pluginId", "routeRef": "routeRef"})
    ]


def test_start_schedules_identification():
    backend = RecordingBackend()
    api = DeferredAnalytics(backend, StaticIdentityProvider(USER_REF))

    async def main() -> str:
        task = api.start()
        api.capture_event(CLICK)
        assert backend.calls == []
        return await task

    user_id = asyncio.run(main())
    assert user_id == hash_user_ref(USER_REF)
    assert [call[1] for call in backend.calls] == ["click"]


def test_not_deferred_sends_immediately():
    backend = RecordingBackend()
    api = DeferredAnalytics(backend, defer=False)
    api.capture_event(CLICK)
    assert len(backend.calls) == 1


def test_event_defaults():
    backend = RecordingBackend()
    api = DeferredAnalytics(backend, defer=False)
    api.capture_event(
        AnalyticsEvent(
            action="navigate",
            subject="/somewhere",
            attributes={"to": "/somewhere", "password": "hunter2"},
        )
    )
    assert backend.calls == [
        (
            "event",
            "navigate",
            {
                "category": "App",
                "label": "/somewhere",
                "attributes": {"to": "/somewhere", "password": "<redacted>"},
                "value": None,
            },
        )
    ]


def test_attribute_allowlist():
    backend = RecordingBackend()
    api = DeferredAnalytics(backend, defer=False, allowlist={"keep"})
    api.capture_event(
        AnalyticsEvent(action="click", subject="s", attributes={"keep": 1, "drop": 2})
    )
    assert backend.calls[0][2]["attributes"] == {"keep": 1}


def test_identify_uses_custom_hasher():
    backend = RecordingBackend()
    api = DeferredAnalytics(backend, hasher=lambda value: value.upper())
    api.capture_event(CLICK)
    assert api.identify("jane") == "JANE"
    assert backend.user_id == "JANE"
    assert len(backend.calls) == 1


def test_backend_failure_during_release_still_switches_to_pass_through():
    backend = FlakyBackend()
    api = DeferredAnalytics(backend, StaticIdentityProvider(USER_REF))
    api.capture_event(AnalyticsEvent(action="first", subject="s"))
    api.capture_event(AnalyticsEvent(action="second", subject="s"))

    asyncio.run(api.resolve_user())

    assert api.is_ready
    assert api.capture.pending == 0
    assert backend.user_id == hash_user_ref(USER_REF)
    assert [call[1] for call in backend.calls] == ["second"]

    for action in ("third", "fourth", "fifth"):
        api.capture_event(AnalyticsEvent(action=action, subject="s"))
    assert [call[1] for call in backend.calls] == [
        "second",
        "third",
        "fourth",
        "fifth",
    ]


def test_noop_analytics_can_be_started():
    api = DeferredAnalytics.from_config(
        {"app": {}}, StaticIdentityProvider(USER_REF)
    )
    assert isinstance(api, NoopAnalytics)
    assert api.is_ready

    async def main() -> str | None:
        return await api.start()

    assert asyncio.run(main()) is None
    assert api.identify(USER_REF) is None


def test_long_attributes_truncated_once():
    backend = RecordingBackend()
    api = DeferredAnalytics(backend, defer=False, allowlist={"query"})
    api.capture_event(
        AnalyticsEvent(
            action="search",
            subject="s",
            attributes={"query": "q" * 150 + "z" * 150, "other": 1},
        )
    )
    assert backend.calls[0][2]["attributes"] == {
        "query": "q" * 150 + "z" * 50 + "..."
    }


def test_resolve_user_requires_provider():
    api = DeferredAnalytics(RecordingBackend())
    with pytest.raises(ValueError, match="identity provider"):
        asyncio.run(api.resolve_user())


def test_failed_identity_keeps_hits_deferred():
    backend = RecordingBackend()
    api = DeferredAnalytics(backend, FailingIdentityProvider())
    api.capture_event(CLICK)

    with pytest.raises(ConnectionError):
        asyncio.run(api.resolve_user())

    assert not api.is_ready
    assert backend.calls == []
    assert backend.user_id is None
    assert api.capture.pending == 1


def test_backend_errors_do_not_reach_caller():
    backend = ExplodingBackend()
    api = DeferredAnalytics(backend, defer=False)
    api.capture_event(CLICK)
    api.capture_event(NAVIGATE)
    assert [call[0] for call in backend.calls] == ["pageview"]


def test_suppression_skips_capture():
    backend = RecordingBackend()
    api = DeferredAnalytics(backend, defer=False)

    api.capture_event(CLICK)
    with suppress_analytics():
        api.capture_event(CLICK)
    api.capture_event(CLICK)

    assert len(backend.calls) == 2


def test_unknown_backend_falls_back_to_noop(
    reset_backend_registry: Generator[None, None, None],
):
    api = DeferredAnalytics.from_settings(AnalyticsSettings(backend="nope"))
    assert isinstance(api, DeferredAnalytics)
    assert isinstance(api.backend, NoopBackend)


def test_failing_backend_factory_falls_back_to_noop(
    reset_backend_registry: Generator[None, None, None],
):
    # posthog refuses to start without an API key
    api = DeferredAnalytics.from_settings(AnalyticsSettings(backend="posthog"))
    assert isinstance(api, DeferredAnalytics)
    assert isinstance(api.backend, NoopBackend)


def test_settings_are_applied(recording_backend: RecordingBackend):
    api = DeferredAnalytics.from_settings(
        AnalyticsSettings(
            backend="recording", defer_until_identified=False, max_backlog=5
        )
    )
    assert isinstance(api, DeferredAnalytics)
    assert api.is_ready


def test_custom_backend_keeps_builtin_backends(
    recording_backend: RecordingBackend,
):
    api = DeferredAnalytics.from_settings(AnalyticsSettings(backend="stdout"))
    assert isinstance(api, DeferredAnalytics)
    assert not isinstance(api.backend, (NoopBackend, RecordingBackend))


def test_flush_and_shutdown_forwarded():
    backend = RecordingBackend()
    api = DeferredAnalytics(backend)
    api.capture_event(CLICK)
    api.flush()
    api.shutdown()
    assert backend.flush_count == 1
    assert backend.shutdown_count == 1
    assert backend.calls == []


def test_hash_user_ref():
    hashed = hash_user_ref(USER_REF)
    assert len(hashed) == 64
    assert hashed == hash_user_ref(USER_REF)
    assert hashed != hash_user_ref("User:default/someone-else")
    assert USER_REF not in hashed
