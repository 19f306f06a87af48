"""Series, series participants and series events."""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from database.db_manager import DatabaseManager
from api.dependencies import get_db
from api.schemas import (
    InviteRequest,
    RespondRequest,
    SeriesParticipantStatusRequest,
    SeriesUpdateRequest,
)
from models import Event, Series, SeriesParticipant, SeriesStatus

router = APIRouter()


async def _require_series(db: DatabaseManager, series_id: str) -> Series:
    series = await db.series.get_series(series_id)
    if not series:
        raise HTTPException(404, "Series not found")
    return series


@router.get("", response_model=List[Series])
async def list_series(
    status: Optional[SeriesStatus] = Query(None),
    db: DatabaseManager = Depends(get_db),
):
    return await db.series.list_series(status=status.value if status else None)


@router.post("", status_code=201, response_model=Series)
async def create_series(series: Series, db: DatabaseManager = Depends(get_db)):
    return await db.series.create_series(series)


@router.get("/{series_id}", response_model=Series)
async def get_series(series_id: str, db: DatabaseManager = Depends(get_db)):
    return await _require_series(db, series_id)


@router.put("/{series_id}", response_model=Series)
async def update_series(
    series_id: str,
    req: SeriesUpdateRequest,
    db: DatabaseManager = Depends(get_db),
):
    updates = req.model_dump(exclude_none=True)
    if "start_date" in updates or "end_date" in updates:
        current = await _require_series(db, series_id)
        start = updates.get("start_date", current.start_date)
        end = updates.get("end_date", current.end_date)
        if end < start:
            raise HTTPException(422, "Series end date is before its start date")
    return await db.series.update_series(series_id, **updates)


@router.delete("/{series_id}", status_code=204)
async def delete_series(series_id: str, db: DatabaseManager = Depends(get_db)):
    if not await db.series.delete_series(series_id):
        raise HTTPException(404, "Series not found")


# --- participants ---

@router.get("/{series_id}/participants", response_model=List[SeriesParticipant])
async def list_participants(series_id: str, db: DatabaseManager = Depends(get_db)):
    await _require_series(db, series_id)
    return await db.series.list_participants(series_id)


@router.post("/{series_id}/participants", status_code=201, response_model=SeriesParticipant)
async def invite_participant(
    series_id: str,
    req: InviteRequest,
    db: DatabaseManager = Depends(get_db),
):
    await _require_series(db, series_id)
    return await db.series.invite_participant(
        series_id, req.user_id, invited_by=req.invited_by, role=req.role.value,
    )


@router.patch("/{series_id}/participants/{participant_id}", response_model=SeriesParticipant)
async def update_participant_status(
    series_id: str,
    participant_id: str,
    req: SeriesParticipantStatusRequest,
    db: DatabaseManager = Depends(get_db),
):
    return await db.series.update_participant_status(series_id, participant_id, req.status)


@router.post("/participants/{participant_id}/respond", response_model=SeriesParticipant)
async def respond_to_invitation(
    participant_id: str,
    req: RespondRequest,
    db: DatabaseManager = Depends(get_db),
):
    """Accept or decline a pending series invitation."""
    return await db.series.respond_to_invitation(participant_id, req.accept)


# --- events ---

@router.get("/{series_id}/events", response_model=List[Event])
async def list_series_events(series_id: str, db: DatabaseManager = Depends(get_db)):
    await _require_series(db, series_id)
    return await db.events.list_events(series_id=series_id)


@router.post("/{series_id}/events", status_code=201, response_model=Event)
async def create_series_event(
    series_id: str,
    event: Event,
    db: DatabaseManager = Depends(get_db),
):
    await _require_series(db, series_id)
    event = event.model_copy(update={"series_id": series_id, "is_standalone": False})
    return await db.events.create_event(event)
