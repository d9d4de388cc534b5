from .config import Config
from .environ import Environ, environ
from .logging import setup_logging
from .pydantic_utils import BaseModelExtraForbid

__all__ = [
    "BaseModelExtraForbid",
    "Config",
    "Environ",
    "environ",
    "setup_logging",
]
