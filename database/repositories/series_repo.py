"""CRUD for series and series participants."""

import asyncpg
from typing import List, Optional, Tuple
from uuid import UUID

from models import Series, SeriesParticipant, SeriesParticipantStatus
from database.converters import series_from_row, series_participant_from_row
from database.exceptions import DuplicateError, IntegrityError, NotFoundError


class SeriesRepositoryDB:
    """Async CRUD for public.series and public.series_participants."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Series
    # ================================================================

    async def list_series(self, *, status: Optional[str] = None) -> List[Series]:
        """All series, newest start date first."""
        async with self._pool.acquire() as conn:
            if status:
                rows = await conn.fetch(
                    "SELECT * FROM public.series WHERE status = $1 ORDER BY start_date DESC",
                    status,
                )
            else:
                rows = await conn.fetch(
                    "SELECT * FROM public.series ORDER BY start_date DESC"
                )
            return [series_from_row(r) for r in rows]

    async def get_series(self, series_id: str) -> Optional[Series]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM public.series WHERE id = $1", UUID(series_id)
            )
            return series_from_row(row) if row else None

    async def create_series(self, series: Series) -> Series:
        """Insert a series. The creator is enrolled as an active admin participant."""
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        """INSERT INTO public.series
                           (name, description, start_date, end_date, series_type,
                            status, is_active, created_by)
                           VALUES ($1, $2, $3, $4, $5, $6, $7, $8) RETURNING *""",
                        series.name, series.description, series.start_date,
                        series.end_date, series.series_type.value, series.status.value,
                        series.is_active,
                        UUID(series.created_by) if series.created_by else None,
                    )
                    if series.created_by:
                        await conn.execute(
                            """INSERT INTO public.series_participants
                               (series_id, user_id, role, status)
                               VALUES ($1, $2, 'admin', 'active')""",
                            row["id"], UUID(series.created_by),
                        )
                    return series_from_row(row)
        except asyncpg.ForeignKeyViolationError as e:
            raise IntegrityError(str(e)) from e
        except asyncpg.CheckViolationError as e:
            raise IntegrityError(str(e)) from e

    async def update_series(self, series_id: str, **fields) -> Series:
        """Update top-level series fields."""
        allowed = {"name", "description", "start_date", "end_date",
                   "series_type", "status", "is_active"}
        updates = {k: getattr(v, "value", v) for k, v in fields.items() if k in allowed}
        if not updates:
            existing = await self.get_series(series_id)
            if not existing:
                raise NotFoundError(f"Series {series_id} not found")
            return existing

        set_clause = ", ".join(f"{k} = ${i+2}" for i, k in enumerate(updates))
        values = [UUID(series_id)] + list(updates.values())
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"UPDATE public.series SET {set_clause}, updated_at = now() "
                    f"WHERE id = $1 RETURNING *",
                    *values,
                )
        except asyncpg.CheckViolationError as e:
            raise IntegrityError(str(e)) from e
        if not row:
            raise NotFoundError(f"Series {series_id} not found")
        return series_from_row(row)

    async def delete_series(self, series_id: str) -> bool:
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM public.series WHERE id = $1", UUID(series_id)
            )
            return result == "DELETE 1"

    # ================================================================
    # Participants
    # ================================================================

    async def list_participants(self, series_id: str) -> List[SeriesParticipant]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT * FROM public.series_participants
                   WHERE series_id = $1 ORDER BY created_at""",
                UUID(series_id),
            )
            return [series_participant_from_row(r) for r in rows]

    async def invite_participant(
        self,
        series_id: str,
        user_id: str,
        *,
        invited_by: Optional[str] = None,
        role: str = "participant",
    ) -> SeriesParticipant:
        """Add a user to a series in the invited state."""
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """INSERT INTO public.series_participants
                       (series_id, user_id, role, status, invited_by)
                       VALUES ($1, $2, $3, 'invited', $4) RETURNING *""",
                    UUID(series_id), UUID(user_id), role,
                    UUID(invited_by) if invited_by else None,
                )
                return series_participant_from_row(row)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(f"User {user_id} is already in series {series_id}") from e
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(str(e)) from e

    async def update_participant_status(
        self, series_id: str, participant_id: str, status: SeriesParticipantStatus
    ) -> SeriesParticipant:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """UPDATE public.series_participants SET status = $3
                   WHERE id = $1 AND series_id = $2 RETURNING *""",
                UUID(participant_id), UUID(series_id),
                SeriesParticipantStatus(status).value,
            )
            if not row:
                raise NotFoundError(
                    f"Participant {participant_id} not found in series {series_id}"
                )
            return series_participant_from_row(row)

    async def list_user_invitations(
        self, user_id: str
    ) -> List[Tuple[SeriesParticipant, Series]]:
        """A user's pending invitations, each with the series it is for."""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT * FROM public.series_participants
                   WHERE user_id = $1 AND status = 'invited' ORDER BY created_at""",
                UUID(user_id),
            )
            if not rows:
                return []
            series_rows = await conn.fetch(
                "SELECT * FROM public.series WHERE id = ANY($1::uuid[])",
                list({r["series_id"] for r in rows}),
            )
        series = {str(r["id"]): series_from_row(r) for r in series_rows}
        invitations = []
        for r in rows:
            participant = series_participant_from_row(r)
            if participant.series_id in series:
                invitations.append((participant, series[participant.series_id]))
        return invitations

    async def respond_to_invitation(self, participant_id: str, accept: bool) -> SeriesParticipant:
        """Accept (-> active) or decline (-> withdrawn) a pending invitation."""
        new_status = SeriesParticipantStatus.ACTIVE if accept else SeriesParticipantStatus.WITHDRAWN
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """UPDATE public.series_participants
                   SET status = $2, responded_at = now()
                   WHERE id = $1 AND status = 'invited' RETURNING *""",
                UUID(participant_id), new_status.value,
            )
            if not row:
                raise NotFoundError(f"No pending invitation {participant_id}")
            return series_participant_from_row(row)
