from functools import lru_cache
from typing import Any, Literal

from pydantic import PositiveInt, SecretStr, model_serializer
from pydantic_settings import BaseSettings, SettingsConfigDict

from deferred_analytics.typing import Params

__all__ = ["Environ", "environ"]


class Environ(BaseSettings):
    """A L{BaseSettings} subclass for storing environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    ANALYTICS_ENABLED: bool = False
    ANALYTICS_BACKEND: str | None = None
    ANALYTICS_API_KEY: SecretStr | None = None
    ANALYTICS_ENDPOINT: str | None = None
    ANALYTICS_DEFER_UNTIL_IDENTIFIED: bool = True
    ANALYTICS_MAX_BACKLOG: PositiveInt | None = None

    DEFERRED_ANALYTICS_DISABLE_SETUP_LOGGING: bool = False

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = (
        "INFO"
    )

    @model_serializer(when_used="always", mode="plain")
    def _serialize_environ(self) -> Params:
        return {}


@lru_cache(maxsize=1)
def _load_environ() -> Environ:
    """Return a cached Environ instance, reading .env and os.environ
    once."""
    return Environ()


class _EnvironProxy:
    def __getattr__(self, name: str) -> Any:
        _load_environ.cache_clear()
        real = _load_environ()
        return getattr(real, name)

    def __repr__(self) -> str:
        return "<EnvironProxy loading from .env>"


environ = _EnvironProxy()
