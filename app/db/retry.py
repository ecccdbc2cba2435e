from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from sqlalchemy.exc import InterfaceError, OperationalError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

TRANSIENT_DB_ERRORS = (OperationalError, InterfaceError)


async def run_read_with_retry(operation: Callable[[], Awaitable[T]], *, name: str) -> T:
    """Runs an idempotent read, retrying it once on a transient store failure.

    ``operation`` must open its own session so the retry gets a fresh connection.
    """
    try:
        return await operation()
    except TRANSIENT_DB_ERRORS as exc:
        logger.warning("db_read_retry", operation=name, error_type=type(exc).__name__)
    return await operation()
