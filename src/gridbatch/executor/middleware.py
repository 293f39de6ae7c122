"""
Call middleware.

Every remote call an executor makes goes through ``run_with_middleware``.
A middleware is a plain callable ``(call, description) -> result`` that
decides how (and whether, and how often) to invoke ``call``. Middleware are
configured explicitly on ``BatchConfig.middleware`` and applied outermost
first.
"""

import functools
import logging
import time
from typing import Any, Callable, Sequence, Tuple, Type

from gspread.exceptions import APIError

logger = logging.getLogger(__name__)

Call = Callable[[], Any]
Middleware = Callable[[Call, str], Any]


def run_with_middleware(call: Call, description: str, middleware: Sequence[Middleware] = ()) -> Any:
    """Invoke ``call`` wrapped by ``middleware`` (first entry outermost)."""
    wrapped = call
    for layer in reversed(middleware):
        wrapped = functools.partial(layer, wrapped, description)
    return wrapped()


def log_timing(call: Call, description: str) -> Any:
    """Log how long each remote call took, including failed ones."""
    start = time.perf_counter()
    try:
        return call()
    finally:
        logger.info("%s took %.3fs", description, time.perf_counter() - start)


def is_transient(error: BaseException) -> bool:
    """True for API errors worth retrying: rate limits (429) and server errors (5xx).

    Other ``APIError`` codes, such as 400 for a range outside the grid or
    403 for missing permissions, fail the same way on every attempt.
    Non-API exceptions listed in ``retry_on`` always count as transient.
    """
    if not isinstance(error, APIError):
        return True
    code = getattr(error, "code", None)
    if code is None:
        code = getattr(error.response, "status_code", None)
    return code == 429 or (isinstance(code, int) and code >= 500)


def retrying(
    max_retries: int = 3,
    base_delay: float = 1.0,
    retry_on: Tuple[Type[BaseException], ...] = (APIError,),
    retry_if: Callable[[BaseException], bool] = is_transient,
) -> Middleware:
    """Build a middleware retrying failed calls with exponential backoff.

    The last error is re-raised unchanged once retries are exhausted, and
    errors ``retry_if`` rejects are re-raised at once.
    Appends are not idempotent: a retried append whose first attempt did
    reach the server writes its rows twice.

    Args:
        max_retries: Maximum retry attempts (default: 3)
        base_delay: Base delay for exponential backoff in seconds (default: 1.0)
        retry_on: Exception types that trigger a retry
        retry_if: Predicate deciding whether a caught error is retried
            (default: 429 and 5xx API errors only)
    """
    def middleware(call: Call, description: str) -> Any:
        for attempt in range(max_retries + 1):
            try:
                return call()
            except retry_on as e:
                if attempt >= max_retries or not retry_if(e):
                    raise
                delay = base_delay * (2 ** attempt)
                logger.warning(
                    "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                    description, attempt + 1, max_retries + 1, e, delay,
                )
                time.sleep(delay)

    return middleware
