"""Utility functions for Mail Archive Viewer."""

import re
import time
from functools import wraps
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])

_QUOTED_NAME = re.compile(r'"([^"]+)"')
_NAMED_ADDRESS = re.compile(r'"([^"]+)"\s*<([^>]+)>')
_ANGLE_ADDRESS = re.compile(r"<([^>]+)>")

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def retry_on_failure(
    max_retries: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
) -> Callable[[F], F]:
    """Decorator to retry a function on failure with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts.
        delay: Initial delay between retries in seconds.
        backoff: Multiplier for delay after each retry.
        exceptions: Exception types that trigger a retry; anything else
            propagates immediately.

    Returns:
        Decorated function with retry logic.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            current_delay = delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        logger.error(
                            "function_retry_exhausted",
                            function=func.__name__,
                            attempts=max_retries + 1,
                            error=str(e),
                        )
                        raise
                    logger.warning(
                        "function_retry",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay=current_delay,
                        error=str(e),
                    )
                    time.sleep(current_delay)
                    current_delay *= backoff

        return wrapper  # type: ignore

    return decorator


def display_sender(value: str) -> str:
    """Short form of a From header: the quoted display name, else the address."""

    match = _QUOTED_NAME.search(value)
    if match:
        return match.group(1)
    match = _ANGLE_ADDRESS.search(value)
    if match:
        return match.group(1)
    return value


def split_address(value: str) -> tuple[str, str]:
    """Split an address header into ``(name, address)``.

    Falls back to the raw value for whichever part cannot be found.
    """

    match = _NAMED_ADDRESS.search(value)
    if match:
        return match.group(1), match.group(2)
    match = _ANGLE_ADDRESS.search(value)
    if match:
        return match.group(1), match.group(1)
    return value, value


def format_file_size(size: int) -> str:
    """Human readable size, e.g. ``1.5 KB``."""

    if size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[unit]}"
