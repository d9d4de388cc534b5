from collections.abc import Generator

import pytest

from deferred_analytics.analytics import DeferredAnalytics


@pytest.fixture
def reset_backend_registry() -> Generator[None, None, None]:
    original = dict(DeferredAnalytics._backend_factories)
    DeferredAnalytics._backend_factories = {}
    yield
    DeferredAnalytics._backend_factories = original
