from typing import Final

from pydantic_extra_types.semantic_version import SemanticVersion

__version__: Final[str] = "0.1.0"
__semver__: Final[SemanticVersion] = SemanticVersion.parse(__version__)

from .utils.environ import environ
from .utils.logging import setup_logging

if not environ.DEFERRED_ANALYTICS_DISABLE_SETUP_LOGGING:
    setup_logging()

from .capture import DeferredCapture, EventHit, Hit, PageViewHit

__all__ = [
    "DeferredCapture",
    "EventHit",
    "Hit",
    "PageViewHit",
    "__version__",
]
