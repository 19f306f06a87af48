"""CRUD operations for rounds and hole_scores."""

import asyncpg
import logging
from typing import Dict, List, Optional
from uuid import UUID

from models import HoleScore, Round, round_totals
from database.converters import hole_score_from_row, round_from_row
from database.exceptions import DuplicateError, IntegrityError, NotFoundError

logger = logging.getLogger(__name__)


class RoundRepositoryDB:
    """Async CRUD for public.rounds and public.hole_scores.

    Round totals are recomputed from the hole scores in the same transaction
    as every score write.
    """

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Private helpers
    # ================================================================

    async def _fetch_round(self, conn, rid: UUID) -> Optional[Round]:
        row = await conn.fetchrow("SELECT * FROM public.rounds WHERE id = $1", rid)
        if not row:
            return None
        score_rows = await conn.fetch(
            "SELECT * FROM public.hole_scores WHERE round_id = $1 ORDER BY hole_number",
            rid,
        )
        return round_from_row(row, score_rows)

    async def _refresh_totals(self, conn, rid: UUID) -> None:
        score_rows = await conn.fetch(
            "SELECT * FROM public.hole_scores WHERE round_id = $1", rid
        )
        totals = round_totals([hole_score_from_row(r) for r in score_rows])
        await conn.execute(
            """UPDATE public.rounds
               SET total_score = $2, total_putts = $3, fairways_hit = $4,
                   greens_in_regulation = $5, updated_at = now()
               WHERE id = $1""",
            rid, totals.total_score, totals.total_putts,
            totals.fairways_hit, totals.greens_in_regulation,
        )

    async def _require_round(self, conn, rid: UUID) -> None:
        exists = await conn.fetchval(
            "SELECT 1 FROM public.rounds WHERE id = $1 FOR UPDATE", rid
        )
        if not exists:
            raise NotFoundError(f"Round {rid} not found")

    # ================================================================
    # Read
    # ================================================================

    async def get_round(self, round_id: str) -> Optional[Round]:
        """A round with its hole scores."""
        async with self._pool.acquire() as conn:
            return await self._fetch_round(conn, UUID(round_id))

    async def list_rounds(
        self,
        *,
        user_id: Optional[str] = None,
        event_id: Optional[str] = None,
        course_id: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Round]:
        """Rounds newest first, each with its hole scores."""
        clauses, args = [], []
        for column, value in (("user_id", user_id), ("event_id", event_id), ("course_id", course_id)):
            if value:
                args.append(UUID(value))
                clauses.append(f"{column} = ${len(args)}")
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        args.extend([limit, offset])
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"""SELECT * FROM public.rounds {where}
                    ORDER BY round_date DESC, created_at DESC
                    LIMIT ${len(args) - 1} OFFSET ${len(args)}""",
                *args,
            )
            if not rows:
                return []
            score_rows = await conn.fetch(
                """SELECT * FROM public.hole_scores
                   WHERE round_id = ANY($1::uuid[]) ORDER BY hole_number""",
                [r["id"] for r in rows],
            )
        by_round: Dict[str, list] = {}
        for s in score_rows:
            by_round.setdefault(str(s["round_id"]), []).append(s)
        return [round_from_row(r, by_round.get(str(r["id"]), [])) for r in rows]

    # ================================================================
    # Create
    # ================================================================

    async def create_round(self, round_: Round) -> Round:
        """Insert a round and any hole scores it carries, in one transaction.

        The tee set must belong to the round's course. An event round must be
        played at the event's course while the event is in progress. Without a
        bag_id the player's default bag (if any) is used.
        """
        course_id, tee_id = UUID(round_.course_id), UUID(round_.tee_set_id)
        user_id = UUID(round_.user_id)
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    tee_course = await conn.fetchval(
                        "SELECT course_id FROM public.tee_sets WHERE id = $1", tee_id
                    )
                    if tee_course is None:
                        raise NotFoundError(f"Tee set {round_.tee_set_id} not found")
                    if tee_course != course_id:
                        raise IntegrityError(
                            f"Tee set {round_.tee_set_id} does not belong to course {round_.course_id}"
                        )

                    event_id = UUID(round_.event_id) if round_.event_id else None
                    if event_id:
                        event = await conn.fetchrow(
                            "SELECT status, course_id FROM public.events WHERE id = $1",
                            event_id,
                        )
                        if not event:
                            raise NotFoundError(f"Event {round_.event_id} not found")
                        if event["status"] != "in_progress":
                            raise IntegrityError(
                                f"Event {round_.event_id} is not in progress ({event['status']})"
                            )
                        if event["course_id"] != course_id:
                            raise IntegrityError(
                                f"Event {round_.event_id} is not played at course {round_.course_id}"
                            )

                    bag_id = UUID(round_.bag_id) if round_.bag_id else await conn.fetchval(
                        "SELECT id FROM public.bags WHERE user_id = $1 AND is_default",
                        user_id,
                    )

                    row = await conn.fetchrow(
                        """INSERT INTO public.rounds
                           (user_id, event_id, course_id, tee_set_id, bag_id,
                            round_date, notes)
                           VALUES ($1, $2, $3, $4, $5, $6, $7) RETURNING id""",
                        user_id, event_id, course_id, tee_id, bag_id,
                        round_.round_date, round_.notes,
                    )
                    rid = row["id"]
                    if round_.scores:
                        await conn.executemany(
                            """INSERT INTO public.hole_scores
                               (round_id, hole_number, strokes, putts, fairway_hit,
                                green_in_regulation, penalty_strokes, notes)
                               VALUES ($1, $2, $3, $4, $5, $6, $7, $8)""",
                            [_score_args(rid, s) for s in round_.scores],
                        )
                    await self._refresh_totals(conn, rid)
                    created = await self._fetch_round(conn, rid)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError("A hole was scored twice in this round") from e
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(str(e)) from e
        except asyncpg.CheckViolationError as e:
            raise IntegrityError(str(e)) from e
        logger.info("Created round %s for user %s", rid, round_.user_id)
        return created

    # ================================================================
    # Update
    # ================================================================

    async def update_round(self, round_id: str, **fields) -> Round:
        """Update round-level fields. Totals follow the scores and are not editable."""
        allowed = {"round_date", "notes", "bag_id"}
        updates = {
            k: (UUID(v) if k == "bag_id" and v else v)
            for k, v in fields.items() if k in allowed
        }
        rid = UUID(round_id)
        async with self._pool.acquire() as conn:
            if updates:
                set_clause = ", ".join(f"{k} = ${i+2}" for i, k in enumerate(updates))
                try:
                    result = await conn.execute(
                        f"UPDATE public.rounds SET {set_clause}, updated_at = now() WHERE id = $1",
                        rid, *updates.values(),
                    )
                except asyncpg.ForeignKeyViolationError as e:
                    raise NotFoundError(str(e)) from e
                if result == "UPDATE 0":
                    raise NotFoundError(f"Round {round_id} not found")
            round_ = await self._fetch_round(conn, rid)
        if not round_:
            raise NotFoundError(f"Round {round_id} not found")
        return round_

    # ================================================================
    # Delete
    # ================================================================

    async def delete_round(self, round_id: str) -> bool:
        """Delete round and its hole_scores (CASCADE). Returns True if deleted."""
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM public.rounds WHERE id = $1", UUID(round_id)
            )
            return result == "DELETE 1"

    # ================================================================
    # Hole scores
    # ================================================================

    async def add_score(self, round_id: str, score: HoleScore) -> HoleScore:
        """Score one hole of a round. A hole can only be scored once."""
        rid = UUID(round_id)
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    await self._require_round(conn, rid)
                    row = await conn.fetchrow(
                        """INSERT INTO public.hole_scores
                           (round_id, hole_number, strokes, putts, fairway_hit,
                            green_in_regulation, penalty_strokes, notes)
                           VALUES ($1, $2, $3, $4, $5, $6, $7, $8) RETURNING *""",
                        *_score_args(rid, score),
                    )
                    await self._refresh_totals(conn, rid)
                    return hole_score_from_row(row)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(
                f"Hole {score.hole_number} is already scored in round {round_id}"
            ) from e
        except asyncpg.CheckViolationError as e:
            raise IntegrityError(str(e)) from e

    async def update_score(self, round_id: str, score_id: str, **fields) -> HoleScore:
        """Update one hole score of this round. A score of another round matches no row."""
        allowed = {"strokes", "putts", "fairway_hit", "green_in_regulation",
                   "penalty_strokes", "notes"}
        updates = {k: v for k, v in fields.items() if k in allowed}
        if not updates:
            raise IntegrityError("No score fields to update")

        rid = UUID(round_id)
        set_clause = ", ".join(f"{k} = ${i+3}" for i, k in enumerate(updates))
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        f"UPDATE public.hole_scores SET {set_clause} "
                        f"WHERE id = $1 AND round_id = $2 RETURNING *",
                        UUID(score_id), rid, *updates.values(),
                    )
                    if not row:
                        raise NotFoundError(f"Score {score_id} not found in round {round_id}")
                    await self._refresh_totals(conn, rid)
                    return hole_score_from_row(row)
        except asyncpg.CheckViolationError as e:
            raise IntegrityError(str(e)) from e

    async def remove_score(self, round_id: str, score_id: str) -> bool:
        rid = UUID(round_id)
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                result = await conn.execute(
                    "DELETE FROM public.hole_scores WHERE id = $1 AND round_id = $2",
                    UUID(score_id), rid,
                )
                if result != "DELETE 1":
                    return False
                await self._refresh_totals(conn, rid)
                return True


def _score_args(rid: UUID, s: HoleScore) -> tuple:
    return (
        rid, s.hole_number, s.strokes, s.putts, s.fairway_hit,
        s.green_in_regulation, s.penalty_strokes, s.notes,
    )
