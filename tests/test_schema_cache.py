import asyncpg
import pytest
from unittest.mock import AsyncMock

from database.exceptions import SchemaCacheError
from database.schema_cache import (
    RELOAD_SQL,
    is_missing_column,
    is_schema_cache_error,
    refresh_schema_cache,
    retry_on_schema_cache,
)


# ================================================================
# Error classification
# ================================================================

@pytest.mark.parametrize("exc, expected", [
    (asyncpg.UndefinedColumnError('column "website" does not exist'), True),
    (asyncpg.UndefinedFunctionError("function insert_course_with_active does not exist"), True),
    (RuntimeError("Could not find the 'is_active' column of 'courses' in the schema cache"), True),
    (RuntimeError("PGRST204"), True),
    (asyncpg.UniqueViolationError("duplicate key"), False),
    (ValueError("bad input"), False),
])
def test_is_schema_cache_error(exc, expected):
    assert is_schema_cache_error(exc) is expected


def test_is_missing_column_names_the_column():
    exc = asyncpg.UndefinedColumnError('column "is_active" of relation "courses" does not exist')
    assert is_missing_column(exc, "is_active")
    assert not is_missing_column(exc, "website")
    assert not is_missing_column(ValueError("is_active"), "is_active")


# ================================================================
# Refresh and retry
# ================================================================

@pytest.mark.asyncio
async def test_refresh_schema_cache_notifies(mock_pool):
    pool, conn = mock_pool
    await refresh_schema_cache(pool)
    conn.execute.assert_awaited_once_with(RELOAD_SQL)


@pytest.mark.asyncio
async def test_retry_returns_first_success_without_refresh():
    operation = AsyncMock(return_value="ok")
    refresh = AsyncMock()
    assert await retry_on_schema_cache(operation, None, refresh=refresh, delay=0) == "ok"
    refresh.assert_not_awaited()


@pytest.mark.asyncio
async def test_retry_refreshes_then_succeeds():
    operation = AsyncMock(side_effect=[
        asyncpg.UndefinedColumnError('column "notes" does not exist'),
        "ok",
    ])
    refresh = AsyncMock()
    assert await retry_on_schema_cache(operation, None, refresh=refresh, delay=0) == "ok"
    assert refresh.await_count == 1
    assert operation.await_count == 2


@pytest.mark.asyncio
async def test_retry_gives_up_after_attempts():
    missing = asyncpg.UndefinedTableError('relation "tee_set_distances" does not exist')
    operation = AsyncMock(side_effect=missing)
    refresh = AsyncMock()

    with pytest.raises(SchemaCacheError) as info:
        await retry_on_schema_cache(operation, None, attempts=3, refresh=refresh, delay=0, label="holes")

    assert refresh.await_count == 3
    assert operation.await_count == 4
    assert info.value.__cause__ is missing
    assert "holes" in str(info.value)


@pytest.mark.asyncio
async def test_other_errors_are_not_retried():
    operation = AsyncMock(side_effect=asyncpg.CheckViolationError("par out of range"))
    refresh = AsyncMock()
    with pytest.raises(asyncpg.CheckViolationError):
        await retry_on_schema_cache(operation, None, refresh=refresh, delay=0)
    refresh.assert_not_awaited()


@pytest.mark.asyncio
async def test_non_schema_error_after_refresh_propagates():
    operation = AsyncMock(side_effect=[
        asyncpg.UndefinedFunctionError("function missing"),
        asyncpg.NotNullViolationError("name is null"),
    ])
    with pytest.raises(asyncpg.NotNullViolationError):
        await retry_on_schema_cache(operation, None, refresh=AsyncMock(), delay=0)
