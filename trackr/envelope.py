"""
Uniform result envelope handed to the UI collaborator.

Every public service operation returns Envelope(data, error). On failure
`data` is the operation's zero value (empty list, zero-filled dict), never
None, so rendering code can proceed without extra checks.
"""
import functools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from trackr.exceptions import (
    TrackrError,
    ValidationError,
    get_error_message,
)
from trackr.observability import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class Envelope(Generic[T]):
    data: T
    error: Optional[str] = None
    # Set when the caller's input was rejected, so HTTP can answer 400
    invalid: bool = field(default=False, compare=False, repr=False)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self, key: str = "data") -> Dict[str, Any]:
        return {key: self.data, "error": self.error}


def enveloped(default: Callable[[], Any], reraise: tuple = ()):
    """
    Wrap an async operation so failures become Envelope(default(), message).

    Exceptions listed in `reraise` propagate. Cancellation is a BaseException and is
    never caught here.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Envelope:
            try:
                return Envelope(await func(*args, **kwargs))
            except reraise:
                raise
            except ValidationError as e:
                logger.info(f"{func.__name__} rejected input: {e}")
                return Envelope(default(), get_error_message(e), invalid=True)
            except TrackrError as e:
                logger.error(f"{func.__name__} failed: {e}")
                return Envelope(default(), get_error_message(e))
            except Exception as e:
                logger.exception(f"{func.__name__} failed unexpectedly")
                return Envelope(default(), get_error_message(e))

        return wrapper

    return decorator
