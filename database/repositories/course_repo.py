"""CRUD for courses and their scorecard tables (tee_sets, holes, tee_set_distances)."""

import logging
import asyncpg
from typing import Dict, List, Optional, Sequence, Set, Tuple
from uuid import UUID

from models import Course, Hole, TeeSet, TeeSetDistance
from database.converters import (
    course_from_row,
    course_to_row,
    distance_from_row,
    distance_to_row,
    hole_to_row,
    holes_from_rows,
    tee_set_from_row,
    tee_set_to_row,
)
from database.exceptions import (
    DatabaseError,
    DuplicateError,
    IntegrityError,
    NotFoundError,
    SchemaCacheError,
)
from database.schema_cache import is_missing_column, retry_on_schema_cache

logger = logging.getLogger(__name__)

# Argument order of insert_course_with_active / update_course_with_active
_RPC_COLUMNS = (
    "name", "location", "city", "state", "par", "holes",
    "amenities", "website", "phone_number", "is_active",
)


class CourseRepositoryDB:
    """Async CRUD for courses and their child tables.

    Child collections are replaced wholesale: each save deletes the rows for
    the parent key and inserts the submitted list inside one transaction, so
    a failed insert rolls the delete back.
    """

    def __init__(
        self,
        pool: asyncpg.Pool,
        *,
        schema_retries: int = 3,
        schema_retry_delay: float = 1.0,
    ):
        self._pool = pool
        self._schema_retries = schema_retries
        self._schema_retry_delay = schema_retry_delay

    # ================================================================
    # Private helpers
    # ================================================================

    async def _with_schema_retry(self, operation, label: str):
        return await retry_on_schema_cache(
            operation,
            self._pool,
            attempts=self._schema_retries,
            delay=self._schema_retry_delay,
            label=label,
        )

    async def _call_course_rpc(self, function: str, row: dict, course_id: Optional[UUID] = None):
        args = [row[c] for c in _RPC_COLUMNS]
        if course_id is not None:
            args.insert(0, course_id)
        placeholders = ", ".join(f"${i}" for i in range(1, len(args) + 1))
        async with self._pool.acquire() as conn:
            return await conn.fetchrow(
                f"SELECT * FROM public.{function}({placeholders})", *args
            )

    async def _insert_course_row(self, row: dict, *, include_active: bool = True):
        cols = [c for c in row if include_active or c != "is_active"]
        placeholders = ", ".join(f"${i}" for i in range(1, len(cols) + 1))
        async with self._pool.acquire() as conn:
            return await conn.fetchrow(
                f"INSERT INTO public.courses ({', '.join(cols)}) "
                f"VALUES ({placeholders}) RETURNING *",
                *[row[c] for c in cols],
            )

    async def _update_course_row(self, course_id: UUID, row: dict, *, include_active: bool = True):
        cols = [c for c in row if include_active or c != "is_active"]
        set_clause = ", ".join(f"{c} = ${i + 2}" for i, c in enumerate(cols))
        async with self._pool.acquire() as conn:
            return await conn.fetchrow(
                f"UPDATE public.courses SET {set_clause}, updated_at = now() "
                f"WHERE id = $1 RETURNING *",
                course_id, *[row[c] for c in cols],
            )

    async def _write_active_flag_separately(self, course_id, is_active: bool) -> None:
        try:
            await self.set_course_active(str(course_id), is_active)
        except (asyncpg.PostgresError, DatabaseError) as e:
            logger.warning(
                "Course %s was saved but its active status may not have been stored: %s",
                course_id, e,
            )

    async def _direct_write(self, write, label: str) -> Tuple[Optional[asyncpg.Record], bool]:
        """Direct table write with schema-cache retry and the is_active fallback.

        Returns (row, active_written).
        """
        try:
            return await self._with_schema_retry(lambda: write(True), label), True
        except SchemaCacheError as e:
            if not is_missing_column(e.__cause__, "is_active"):
                raise
            logger.warning("%s: is_active not visible, writing it separately", label)
            return await write(False), False

    # ================================================================
    # Read
    # ================================================================

    async def fetch_course(self, course_id: str) -> Optional[Course]:
        """Get a Course by ID, or None."""
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM public.courses WHERE id = $1", UUID(course_id)
            )
            return course_from_row(row) if row else None

    async def list_courses(
        self, *, active_only: bool = False, limit: int = 50, offset: int = 0
    ) -> List[Course]:
        """List courses by name. active_only limits to courses open for events."""
        async with self._pool.acquire() as conn:
            if active_only:
                rows = await conn.fetch(
                    """SELECT * FROM public.courses WHERE is_active
                       ORDER BY name LIMIT $1 OFFSET $2""",
                    limit, offset,
                )
            else:
                rows = await conn.fetch(
                    "SELECT * FROM public.courses ORDER BY name LIMIT $1 OFFSET $2",
                    limit, offset,
                )
            return [course_from_row(r) for r in rows]

    async def search_courses(self, query: str) -> List[Course]:
        """Search courses by name or location substring."""
        pattern = f"%{query}%"
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT * FROM public.courses
                   WHERE name ILIKE $1 OR location ILIKE $1 OR city ILIKE $1
                   ORDER BY name LIMIT 20""",
                pattern,
            )
            return [course_from_row(r) for r in rows]

    async def fetch_tee_sets(self, course_id: str) -> List[TeeSet]:
        """All tee sets for a course (empty list when none)."""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM public.tee_sets WHERE course_id = $1 ORDER BY rating DESC NULLS LAST, name",
                UUID(course_id),
            )
            return [tee_set_from_row(r) for r in rows]

    async def fetch_holes(self, course_id: str) -> List[Hole]:
        """All holes for a course, ordered by number, with distances attached."""
        async with self._pool.acquire() as conn:
            hole_rows = await conn.fetch(
                "SELECT * FROM public.holes WHERE course_id = $1 ORDER BY hole_number",
                UUID(course_id),
            )
            hole_ids = [r["id"] for r in hole_rows]
            if hole_ids:
                distance_rows = await conn.fetch(
                    "SELECT * FROM public.tee_set_distances WHERE hole_id = ANY($1::uuid[])",
                    hole_ids,
                )
            else:
                distance_rows = []
            return holes_from_rows(hole_rows, distance_rows)

    async def fetch_distances(self, hole_ids: Sequence[str]) -> List[TeeSetDistance]:
        """Distance rows for the given holes (empty list for no holes)."""
        if not hole_ids:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM public.tee_set_distances WHERE hole_id = ANY($1::uuid[])",
                [UUID(h) for h in hole_ids],
            )
            return [distance_from_row(r) for r in rows]

    # ================================================================
    # Create / update
    # ================================================================

    async def create_course(self, course: Course) -> Course:
        """Insert a course.

        Tries the insert_course_with_active procedure first and falls back to a
        direct INSERT when the procedure call fails.
        """
        row = course_to_row(course)
        try:
            try:
                created = await self._call_course_rpc("insert_course_with_active", row)
            except asyncpg.PostgresError as e:
                logger.warning("insert_course_with_active failed (%s); using direct insert", e)
                created, active_written = await self._direct_write(
                    lambda with_active: self._insert_course_row(row, include_active=with_active),
                    "course insert",
                )
                if created is not None and not active_written:
                    await self._write_active_flag_separately(created["id"], row["is_active"])
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(f"Course already exists: {e}") from e
        except (asyncpg.CheckViolationError, asyncpg.NotNullViolationError) as e:
            raise IntegrityError(str(e)) from e

        if created is None:
            raise DatabaseError("Course insert returned no row")
        return course_from_row(created)

    async def update_course(self, course_id: str, course: Course) -> Course:
        """Overwrite a course's fields, via update_course_with_active when available."""
        cid = UUID(course_id)
        row = course_to_row(course)
        try:
            try:
                updated = await self._call_course_rpc("update_course_with_active", row, cid)
            except asyncpg.PostgresError as e:
                logger.warning("update_course_with_active failed (%s); using direct update", e)
                updated, active_written = await self._direct_write(
                    lambda with_active: self._update_course_row(cid, row, include_active=with_active),
                    "course update",
                )
                if updated is not None and not active_written:
                    await self._write_active_flag_separately(cid, row["is_active"])
        except (asyncpg.CheckViolationError, asyncpg.NotNullViolationError) as e:
            raise IntegrityError(str(e)) from e

        if updated is None:
            raise NotFoundError(f"Course {course_id} not found")
        return course_from_row(updated)

    async def save_course(self, course: Course, course_id: Optional[str] = None) -> str:
        """Insert or update a course and return its id."""
        if course_id:
            saved = await self.update_course(course_id, course)
        else:
            saved = await self.create_course(course)
        return saved.id

    async def set_course_active(self, course_id: str, is_active: bool) -> Course:
        """Toggle whether a course can be used for new events."""
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """UPDATE public.courses SET is_active = $2, updated_at = now()
                   WHERE id = $1 RETURNING *""",
                UUID(str(course_id)), is_active,
            )
            if not row:
                raise NotFoundError(f"Course {course_id} not found")
            return course_from_row(row)

    # ================================================================
    # Child collections (whole-collection replace)
    # ================================================================

    async def _write_tee_sets(self, conn, cid: UUID, tee_sets: List[TeeSet]) -> None:
        """Upsert tee sets by their client-assigned id and drop the rest.

        Kept tee sets keep their row, so their distances survive.
        """
        keep = [UUID(t.id) for t in tee_sets]
        foreign = await conn.fetch(
            "SELECT id FROM public.tee_sets WHERE id = ANY($1::uuid[]) AND course_id <> $2",
            keep, cid,
        )
        if foreign:
            raise IntegrityError(
                f"Tee set {foreign[0]['id']} belongs to another course"
            )
        await conn.execute(
            "DELETE FROM public.tee_sets WHERE course_id = $1 AND NOT (id = ANY($2::uuid[]))",
            cid, keep,
        )
        if tee_sets:
            await conn.executemany(
                """INSERT INTO public.tee_sets
                   (id, course_id, name, color, rating, slope, par, distance)
                   VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                   ON CONFLICT (id) DO UPDATE SET
                       name = EXCLUDED.name, color = EXCLUDED.color,
                       rating = EXCLUDED.rating, slope = EXCLUDED.slope,
                       par = EXCLUDED.par, distance = EXCLUDED.distance""",
                [tee_set_to_row(t, cid) for t in tee_sets],
            )

    async def _write_holes(self, conn, cid: UUID, holes: List[Hole]) -> Dict[int, UUID]:
        """Upsert holes by number and drop the rest. Returns hole_number -> id."""
        await conn.execute(
            "DELETE FROM public.holes WHERE course_id = $1 AND NOT (hole_number = ANY($2::int[]))",
            cid, [h.number for h in holes],
        )
        ids = {}
        for hole in holes:
            row = await conn.fetchrow(
                """INSERT INTO public.holes
                   (course_id, hole_number, par, handicap_index, notes)
                   VALUES ($1, $2, $3, $4, $5)
                   ON CONFLICT (course_id, hole_number) DO UPDATE SET
                       par = EXCLUDED.par, handicap_index = EXCLUDED.handicap_index,
                       notes = EXCLUDED.notes
                   RETURNING id, hole_number""",
                *hole_to_row(hole, cid),
            )
            ids[row["hole_number"]] = row["id"]
        return ids

    async def _course_tee_ids(self, conn, cid: UUID) -> Set[str]:
        rows = await conn.fetch("SELECT id FROM public.tee_sets WHERE course_id = $1", cid)
        return {str(r["id"]) for r in rows}

    async def _write_distances(
        self, conn, hole_ids: Sequence[UUID], distances: List[TeeSetDistance]
    ) -> None:
        if hole_ids:
            await conn.execute(
                "DELETE FROM public.tee_set_distances WHERE hole_id = ANY($1::uuid[])",
                list(hole_ids),
            )
        if distances:
            await conn.executemany(
                """INSERT INTO public.tee_set_distances (hole_id, tee_set_id, length)
                   VALUES ($1, $2, $3)""",
                [distance_to_row(d) for d in distances],
            )

    async def save_tee_sets(self, course_id: str, tee_sets: List[TeeSet]) -> List[TeeSet]:
        """Make the course's tee sets exactly tee_sets.

        Distances are only lost for tee sets that are no longer in the list.
        """
        cid = UUID(course_id)
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    await self._write_tee_sets(conn, cid, tee_sets)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(f"Duplicate tee set id: {e}") from e
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(f"Course {course_id} not found") from e
        logger.info("Saved %d tee sets for course %s", len(tee_sets), course_id)
        return await self.fetch_tee_sets(course_id)

    async def save_holes(self, course_id: str, holes: List[Hole]) -> List[Hole]:
        """Make the course's holes exactly holes (matched by number).

        Removed holes take their distances with them; kept holes keep theirs.
        """
        cid = UUID(course_id)
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    await self._write_holes(conn, cid, holes)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(f"Duplicate hole number: {e}") from e
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(f"Course {course_id} not found") from e
        except asyncpg.CheckViolationError as e:
            raise IntegrityError(str(e)) from e
        logger.info("Saved %d holes for course %s", len(holes), course_id)
        return await self.fetch_holes(course_id)

    async def save_distances(
        self, course_id: str, distances: List[TeeSetDistance]
    ) -> int:
        """Replace all hole/tee-set distances of a course. Returns rows written.

        Every row must reference a hole and a tee set of this course.
        """
        cid = UUID(course_id)
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                hole_rows = await conn.fetch(
                    "SELECT id FROM public.holes WHERE course_id = $1", cid
                )
                hole_ids = {str(r["id"]) for r in hole_rows}
                tee_ids = await self._course_tee_ids(conn, cid)
                for d in distances:
                    if d.hole_id not in hole_ids:
                        raise IntegrityError(f"Hole {d.hole_id} does not belong to course {course_id}")
                    if d.tee_set_id not in tee_ids:
                        raise IntegrityError(f"Tee set {d.tee_set_id} does not belong to course {course_id}")
                await self._write_distances(conn, [UUID(h) for h in hole_ids], distances)
        return len(distances)

    async def save_scorecard(self, course_id: str, holes: List[Hole]) -> List[Hole]:
        """Save holes and their distances maps together in one transaction.

        Distances must name tee sets of this course; a bad reference is
        rejected before anything is written.
        """
        cid = UUID(course_id)
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    tee_ids = await self._course_tee_ids(conn, cid)
                    for hole in holes:
                        unknown = set(hole.distances) - tee_ids
                        if unknown:
                            raise IntegrityError(
                                f"Tee set {sorted(unknown)[0]} does not belong to course {course_id}"
                            )
                    hole_ids = await self._write_holes(conn, cid, holes)
                    distances = [
                        TeeSetDistance(
                            hole_id=str(hole_ids[h.number]), tee_set_id=tee_id, length=yards
                        )
                        for h in holes
                        for tee_id, yards in h.distances.items()
                    ]
                    await self._write_distances(conn, list(hole_ids.values()), distances)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(f"Duplicate hole number: {e}") from e
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(f"Course {course_id} not found") from e
        except asyncpg.CheckViolationError as e:
            raise IntegrityError(str(e)) from e
        logger.info("Saved scorecard (%d holes) for course %s", len(holes), course_id)
        return await self.fetch_holes(course_id)

    # ================================================================
    # Delete
    # ================================================================

    async def delete_course(self, course_id: str) -> bool:
        """Delete a course and all children (CASCADE). Returns True if deleted."""
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM public.courses WHERE id = $1", UUID(course_id)
            )
            return result == "DELETE 1"
