"""Event and event registration endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from database.db_manager import DatabaseManager
from api.dependencies import get_db
from api.schemas import (
    EventParticipantUpdateRequest,
    EventUpdateRequest,
    RegistrationRequest,
)
from models import Event, EventParticipant, EventStatus, Round

router = APIRouter()


async def _require_event(db: DatabaseManager, event_id: str) -> Event:
    event = await db.events.get_event(event_id)
    if not event:
        raise HTTPException(404, "Event not found")
    return event


@router.get("", response_model=List[Event])
async def list_events(
    series_id: Optional[str] = Query(None),
    status: Optional[EventStatus] = Query(None),
    db: DatabaseManager = Depends(get_db),
):
    return await db.events.list_events(
        series_id=series_id, status=status.value if status else None
    )


@router.post("", status_code=201, response_model=Event)
async def create_event(event: Event, db: DatabaseManager = Depends(get_db)):
    """Create an event (standalone unless series_id is set). The course must be active."""
    return await db.events.create_event(event)


@router.get("/{event_id}", response_model=Event)
async def get_event(event_id: str, db: DatabaseManager = Depends(get_db)):
    return await _require_event(db, event_id)


@router.put("/{event_id}", response_model=Event)
async def update_event(
    event_id: str,
    req: EventUpdateRequest,
    db: DatabaseManager = Depends(get_db),
):
    updates = req.model_dump(exclude_none=True)
    if "event_date" in updates or "registration_close_date" in updates:
        current = await _require_event(db, event_id)
        event_date = updates.get("event_date", current.event_date)
        closes = updates.get("registration_close_date", current.registration_close_date)
        if closes and closes > event_date:
            raise HTTPException(422, "Registration must close on or before the event date")
    return await db.events.update_event(event_id, **updates)


@router.post("/{event_id}/start", response_model=Event)
async def start_event(event_id: str, db: DatabaseManager = Depends(get_db)):
    """upcoming -> in_progress. Any other status is rejected."""
    return await db.events.start_event(event_id)


@router.get("/{event_id}/rounds", response_model=List[Round])
async def list_event_rounds(
    event_id: str,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: DatabaseManager = Depends(get_db),
):
    await _require_event(db, event_id)
    return await db.rounds.list_rounds(event_id=event_id, limit=limit, offset=offset)


@router.delete("/{event_id}", status_code=204)
async def delete_event(event_id: str, db: DatabaseManager = Depends(get_db)):
    if not await db.events.delete_event(event_id):
        raise HTTPException(404, "Event not found")


@router.get("/{event_id}/participants", response_model=List[EventParticipant])
async def list_participants(event_id: str, db: DatabaseManager = Depends(get_db)):
    await _require_event(db, event_id)
    return await db.events.list_participants(event_id)


@router.post("/{event_id}/participants", status_code=201, response_model=EventParticipant)
async def register_participant(
    event_id: str,
    req: RegistrationRequest,
    db: DatabaseManager = Depends(get_db),
):
    participant = EventParticipant(event_id=event_id, **req.model_dump())
    return await db.events.register_participant(participant)


@router.patch("/{event_id}/participants/{participant_id}", response_model=EventParticipant)
async def update_participant(
    event_id: str,
    participant_id: str,
    req: EventParticipantUpdateRequest,
    db: DatabaseManager = Depends(get_db),
):
    updates = req.model_dump(exclude_none=True)
    status = updates.pop("status", None)
    return await db.events.update_participant(
        event_id, participant_id, status=status, **updates
    )
