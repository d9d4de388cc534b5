from contextlib import contextmanager
from typing import Generator


@contextmanager
def guard_missing_extra(name: str) -> Generator[None, None, None]:
    try:
        yield
    except ImportError as e:
        raise ImportError(
            f"Error importing the `{name}` backend of `deferred-analytics`. This can mean that some of the dependencies of `deferred-analytics[{name}]` are not installed. "
            f"Ensure you installed the package with the `[{name}]` or `[all]` extra specified. "
            f"Use `pip install deferred-analytics[{name}]` to install dependencies for the `{name}` backend.",
            str(e),
        ) from e


__all__ = ["guard_missing_extra"]
