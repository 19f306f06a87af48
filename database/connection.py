import logging
import asyncpg
from typing import Optional

logger = logging.getLogger(__name__)

APPLICATION_NAME = "course-admin"


class DatabasePool:
    """The app-wide asyncpg pool, created in the FastAPI lifespan."""

    def __init__(self):
        self._pool: Optional[asyncpg.Pool] = None

    async def initialize(
        self,
        dsn: Optional[str] = None,
        *,
        min_size: int = 2,
        max_size: int = 10,
        statement_cache_size: int = 100,
        command_timeout: Optional[float] = 30.0,
    ) -> None:
        """Open the pool (no-op when already open).

        Without a DSN asyncpg falls back to the PG* environment variables.
        Hosted Postgres behind a transaction-mode pooler needs
        statement_cache_size=0.
        """
        if self._pool is not None:
            return
        self._pool = await asyncpg.create_pool(
            dsn=dsn,
            min_size=min_size,
            max_size=max_size,
            statement_cache_size=statement_cache_size,
            command_timeout=command_timeout,
            server_settings={"application_name": APPLICATION_NAME},
        )
        logger.info(
            "Database pool ready (min=%d, max=%d, statement cache=%d)",
            min_size, max_size, statement_cache_size,
        )

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("Database pool closed")

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database pool is not open; the app lifespan has not started")
        return self._pool

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    async def health_check(self) -> bool:
        """True when a pooled connection answers SELECT 1."""
        try:
            async with self.pool.acquire() as conn:
                return await conn.fetchval("SELECT 1") == 1
        except (OSError, RuntimeError, asyncpg.PostgresError) as e:
            logger.warning("Database health check failed: %s", e)
            return False


db = DatabasePool()
