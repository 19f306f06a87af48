"""CRUD for events and event participants."""

import asyncpg
from typing import List, Optional
from uuid import UUID

from models import Event, EventParticipant, EventParticipantStatus
from database.converters import event_from_row, event_participant_from_row
from database.exceptions import DuplicateError, IntegrityError, NotFoundError


class EventRepositoryDB:
    """Async CRUD for public.events and public.event_participants."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def list_events(
        self, *, series_id: Optional[str] = None, status: Optional[str] = None
    ) -> List[Event]:
        clauses, args = [], []
        if series_id:
            args.append(UUID(series_id))
            clauses.append(f"series_id = ${len(args)}")
        if status:
            args.append(status)
            clauses.append(f"status = ${len(args)}")
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT * FROM public.events {where} ORDER BY event_date", *args
            )
            return [event_from_row(r) for r in rows]

    async def get_event(self, event_id: str) -> Optional[Event]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM public.events WHERE id = $1", UUID(event_id)
            )
            return event_from_row(row) if row else None

    async def create_event(self, event: Event) -> Event:
        """Insert an event. Only active courses can host new events."""
        async with self._pool.acquire() as conn:
            course = await conn.fetchrow(
                "SELECT id, is_active FROM public.courses WHERE id = $1",
                UUID(event.course_id),
            )
            if not course:
                raise NotFoundError(f"Course {event.course_id} not found")
            if not course["is_active"]:
                raise IntegrityError(
                    f"Course {event.course_id} is inactive and cannot be used for events"
                )
            try:
                row = await conn.fetchrow(
                    """INSERT INTO public.events
                       (series_id, name, description, event_date, registration_close_date,
                        course_id, event_format, status, max_participants, scoring_type,
                        is_standalone, is_active, created_by)
                       VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13)
                       RETURNING *""",
                    UUID(event.series_id) if event.series_id else None,
                    event.name, event.description, event.event_date,
                    event.registration_close_date, UUID(event.course_id),
                    event.event_format.value, event.status.value,
                    event.max_participants, event.scoring_type.value,
                    event.series_id is None, event.is_active,
                    UUID(event.created_by) if event.created_by else None,
                )
            except asyncpg.ForeignKeyViolationError as e:
                raise NotFoundError(str(e)) from e
            return event_from_row(row)

    async def update_event(self, event_id: str, **fields) -> Event:
        allowed = {"name", "description", "event_date", "registration_close_date",
                   "event_format", "status", "max_participants", "scoring_type", "is_active"}
        updates = {k: getattr(v, "value", v) for k, v in fields.items() if k in allowed}
        if not updates:
            existing = await self.get_event(event_id)
            if not existing:
                raise NotFoundError(f"Event {event_id} not found")
            return existing

        set_clause = ", ".join(f"{k} = ${i+2}" for i, k in enumerate(updates))
        values = [UUID(event_id)] + list(updates.values())
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"UPDATE public.events SET {set_clause} WHERE id = $1 RETURNING *",
                    *values,
                )
        except asyncpg.CheckViolationError as e:
            raise IntegrityError(str(e)) from e
        if not row:
            raise NotFoundError(f"Event {event_id} not found")
        return event_from_row(row)

    async def start_event(self, event_id: str) -> Event:
        """Move an upcoming event to in_progress so rounds can be posted to it."""
        eid = UUID(event_id)
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    """UPDATE public.events SET status = 'in_progress'
                       WHERE id = $1 AND status = 'upcoming' RETURNING *""",
                    eid,
                )
                if row:
                    return event_from_row(row)
                status = await conn.fetchval(
                    "SELECT status FROM public.events WHERE id = $1", eid
                )
        if status is None:
            raise NotFoundError(f"Event {event_id} not found")
        raise IntegrityError(f"Event {event_id} cannot be started from status {status}")

    async def delete_event(self, event_id: str) -> bool:
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM public.events WHERE id = $1", UUID(event_id)
            )
            return result == "DELETE 1"

    # ================================================================
    # Participants
    # ================================================================

    async def list_participants(self, event_id: str) -> List[EventParticipant]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT * FROM public.event_participants
                   WHERE event_id = $1 ORDER BY registration_date""",
                UUID(event_id),
            )
            return [event_participant_from_row(r) for r in rows]

    async def register_participant(self, participant: EventParticipant) -> EventParticipant:
        """Register a user for an event, honouring max_participants.

        Withdrawn and no-show registrations do not count toward the limit.
        """
        eid = UUID(participant.event_id)
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    event = await conn.fetchrow(
                        "SELECT max_participants FROM public.events WHERE id = $1 FOR UPDATE",
                        eid,
                    )
                    if not event:
                        raise NotFoundError(f"Event {participant.event_id} not found")
                    limit = event["max_participants"]
                    if limit is not None:
                        taken = await conn.fetchval(
                            """SELECT count(*) FROM public.event_participants
                               WHERE event_id = $1 AND status IN ('registered', 'confirmed')""",
                            eid,
                        )
                        if taken >= limit:
                            raise IntegrityError(
                                f"Event {participant.event_id} is full ({limit} participants)"
                            )
                    row = await conn.fetchrow(
                        """INSERT INTO public.event_participants
                           (event_id, user_id, status, tee_time, starting_hole,
                            group_number, handicap_index)
                           VALUES ($1, $2, $3, $4, $5, $6, $7) RETURNING *""",
                        eid, UUID(participant.user_id), participant.status.value,
                        participant.tee_time, participant.starting_hole,
                        participant.group_number, participant.handicap_index,
                    )
                    return event_participant_from_row(row)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(
                f"User {participant.user_id} is already registered for this event"
            ) from e
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(str(e)) from e

    async def update_participant(
        self,
        event_id: str,
        participant_id: str,
        *,
        status: Optional[EventParticipantStatus] = None,
        **fields,
    ) -> EventParticipant:
        """Update one registration. A participant of another event matches no row."""
        allowed = {"tee_time", "starting_hole", "group_number", "handicap_index"}
        updates = {k: v for k, v in fields.items() if k in allowed and v is not None}
        if status is not None:
            updates["status"] = EventParticipantStatus(status).value
        if not updates:
            raise IntegrityError("No participant fields to update")

        set_clause = ", ".join(f"{k} = ${i+3}" for i, k in enumerate(updates))
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"UPDATE public.event_participants SET {set_clause} "
                f"WHERE id = $1 AND event_id = $2 RETURNING *",
                UUID(participant_id), UUID(event_id), *updates.values(),
            )
            if not row:
                raise NotFoundError(
                    f"Participant {participant_id} not found in event {event_id}"
                )
            return event_participant_from_row(row)
