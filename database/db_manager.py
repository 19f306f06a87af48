import logging
from pathlib import Path
from typing import Optional

import asyncpg

from database.repositories import (
    CourseRepositoryDB,
    EquipmentRepositoryDB,
    EventRepositoryDB,
    ProfileRepositoryDB,
    RoundRepositoryDB,
    SeriesRepositoryDB,
)
from database.schema_cache import refresh_schema_cache

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Groups the async repositories around one asyncpg pool.

    Notes:
    - Raw SQL throughout (no ORM) to keep behavior explicit.
    - `courses` also serves as the course form's persistence store.
    """

    def __init__(
        self,
        pool: asyncpg.Pool,
        *,
        schema_retries: int = 3,
        schema_retry_delay: float = 1.0,
        schema_path: Optional[str] = None,
    ) -> None:
        self._pool = pool
        self.schema_path = Path(
            schema_path or Path(__file__).with_name("schema.sql")
        ).resolve()
        self.courses = CourseRepositoryDB(
            pool,
            schema_retries=schema_retries,
            schema_retry_delay=schema_retry_delay,
        )
        self.series = SeriesRepositoryDB(pool)
        self.events = EventRepositoryDB(pool)
        self.equipment = EquipmentRepositoryDB(pool)
        self.profiles = ProfileRepositoryDB(pool)
        self.rounds = RoundRepositoryDB(pool)

    async def initialize_schema(self) -> None:
        """Execute schema.sql, then ask PostgREST (if listening) to reload."""
        sql = self.schema_path.read_text(encoding="utf-8")
        async with self._pool.acquire() as conn:
            await conn.execute(sql)
        logger.info("Applied schema from %s", self.schema_path)
        await refresh_schema_cache(self._pool)
