"""Refresh-and-retry for stale schema metadata.

The hosted store serves queries through a layer that caches table structure.
Right after a migration, a column or function can exist in Postgres but still
be missing from that cache, and requests fail with "schema cache" errors or
undefined column/function errors. The fix is to ask the cache to reload and
try again, a small fixed number of times.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

import asyncpg

from database.exceptions import SchemaCacheError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RELOAD_SQL = "NOTIFY pgrst, 'reload schema'"

_SCHEMA_ERRORS = (
    asyncpg.UndefinedColumnError,
    asyncpg.UndefinedFunctionError,
    asyncpg.UndefinedTableError,
)


def is_schema_cache_error(exc: BaseException) -> bool:
    """True for errors caused by structure the query layer cannot see yet."""
    if isinstance(exc, _SCHEMA_ERRORS):
        return True
    message = str(exc).lower()
    return "schema cache" in message or "pgrst204" in message


def is_missing_column(exc: BaseException, column: str) -> bool:
    """True when exc complains about one specific column."""
    if isinstance(exc, asyncpg.UndefinedColumnError) or is_schema_cache_error(exc):
        return column in str(exc)
    return False


async def refresh_schema_cache(pool) -> None:
    """Ask the query layer to reload table definitions."""
    async with pool.acquire() as conn:
        await conn.execute(RELOAD_SQL)


async def retry_on_schema_cache(
    operation: Callable[[], Awaitable[T]],
    pool,
    *,
    attempts: int = 3,
    delay: float = 1.0,
    label: str = "operation",
    refresh: Optional[Callable[[], Awaitable[None]]] = None,
) -> T:
    """Run operation, refreshing the schema cache between failed attempts.

    Only schema-cache shaped errors are retried; anything else propagates on
    the first failure. After `attempts` refreshes the last error is raised as
    SchemaCacheError.
    """
    refresh = refresh or (lambda: refresh_schema_cache(pool))
    try:
        return await operation()
    except Exception as exc:
        if not is_schema_cache_error(exc):
            raise
        last_error: Exception = exc

    for attempt in range(1, attempts + 1):
        logger.warning(
            "%s hit a schema cache error (%s); refreshing, attempt %d of %d",
            label, last_error, attempt, attempts,
        )
        await refresh()
        if delay:
            await asyncio.sleep(delay)
        try:
            return await operation()
        except Exception as exc:
            if not is_schema_cache_error(exc):
                raise
            last_error = exc

    raise SchemaCacheError(
        f"{label} failed after {attempts} schema cache refreshes: {last_error}"
    ) from last_error
