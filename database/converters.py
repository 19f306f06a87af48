"""Conversion between asyncpg database rows and Pydantic domain models.

Centralizes all mapping logic between the normalized DB schema and the
models. Older rows and payloads used drifted column names (hole_number vs
holeNumber, handicap_index vs handicapIndex, length vs distance); they are
accepted here on the way in and never written back.
"""

from typing import Dict, List, Optional
from uuid import UUID

from models import (
    Bag,
    Club,
    Course,
    Event,
    EventParticipant,
    Hole,
    HoleScore,
    Profile,
    Round,
    Series,
    SeriesParticipant,
    TeeSet,
    TeeSetDistance,
)

_MISSING = object()


def _pick(row, *keys, default=None):
    """First present column among keys (handles legacy column names)."""
    for key in keys:
        value = row.get(key, _MISSING)
        if value is not _MISSING:
            return value
    return default


def _str_id(value) -> Optional[str]:
    return str(value) if value is not None else None


def _uuid(value) -> Optional[UUID]:
    if value is None or isinstance(value, UUID):
        return value
    return UUID(str(value))


def _float(value) -> Optional[float]:
    return float(value) if value is not None else None


# ================================================================
# Row -> Model (reads)
# ================================================================

def course_from_row(row) -> Course:
    """courses row -> Course model."""
    return Course(
        id=_str_id(row["id"]),
        name=row["name"],
        location=_pick(row, "location"),
        city=_pick(row, "city"),
        state=_pick(row, "state"),
        holes=_pick(row, "holes", "total_holes") or 18,
        par=_pick(row, "par"),
        amenities=_pick(row, "amenities"),
        website=_pick(row, "website"),
        phone_number=_pick(row, "phone_number", "phoneNumber"),
        is_active=_pick(row, "is_active", default=True) is not False,
        created_at=_pick(row, "created_at"),
        updated_at=_pick(row, "updated_at"),
    )


def tee_set_from_row(row) -> TeeSet:
    """tee_sets row -> TeeSet model."""
    return TeeSet(
        id=str(row["id"]),
        course_id=_str_id(_pick(row, "course_id")),
        name=row["name"],
        color=_pick(row, "color"),
        rating=_float(_pick(row, "rating", "course_rating")),
        slope=_pick(row, "slope", "slope_rating"),
        par=_pick(row, "par"),
        distance=_pick(row, "distance", "length", "yardage"),
    )


def hole_from_row(row, distances: Optional[Dict[str, int]] = None) -> Hole:
    """holes row (+ its distance rows) -> Hole model."""
    return Hole(
        id=_str_id(_pick(row, "id")),
        course_id=_str_id(_pick(row, "course_id")),
        number=_pick(row, "hole_number", "holeNumber", "number"),
        par=_pick(row, "par"),
        handicap_index=_pick(row, "handicap_index", "handicapIndex"),
        notes=_pick(row, "notes"),
        distances=distances or {},
    )


def distance_from_row(row) -> TeeSetDistance:
    """tee_set_distances (or legacy tee_set_lengths) row -> TeeSetDistance."""
    return TeeSetDistance(
        id=_str_id(_pick(row, "id")),
        hole_id=str(row["hole_id"]),
        tee_set_id=str(row["tee_set_id"]),
        length=_pick(row, "length", "distance"),
    )


def holes_from_rows(hole_rows: list, distance_rows: list) -> List[Hole]:
    """Assemble holes sorted by number with their distances attached."""
    by_hole: Dict[str, Dict[str, int]] = {}
    for d in (distance_from_row(r) for r in distance_rows):
        by_hole.setdefault(d.hole_id, {})[d.tee_set_id] = d.length
    holes = [
        hole_from_row(r, by_hole.get(str(r["id"]), {}))
        for r in hole_rows
    ]
    return sorted(holes, key=lambda h: h.number)


def series_from_row(row) -> Series:
    return Series(
        id=str(row["id"]),
        name=row["name"],
        description=row["description"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        series_type=row["series_type"],
        status=row["status"],
        is_active=row["is_active"],
        created_by=_str_id(row["created_by"]),
        created_at=_pick(row, "created_at"),
        updated_at=_pick(row, "updated_at"),
    )


def series_participant_from_row(row) -> SeriesParticipant:
    return SeriesParticipant(
        id=str(row["id"]),
        series_id=str(row["series_id"]),
        user_id=str(row["user_id"]),
        role=row["role"],
        status=row["status"],
        invited_by=_str_id(_pick(row, "invited_by")),
        created_at=_pick(row, "created_at"),
        responded_at=_pick(row, "responded_at"),
    )


def event_from_row(row) -> Event:
    return Event(
        id=str(row["id"]),
        series_id=_str_id(row["series_id"]),
        name=row["name"],
        description=row["description"],
        event_date=row["event_date"],
        registration_close_date=row["registration_close_date"],
        course_id=str(row["course_id"]),
        event_format=row["event_format"],
        status=row["status"],
        max_participants=row["max_participants"],
        scoring_type=row["scoring_type"],
        is_standalone=row["is_standalone"],
        is_active=row["is_active"],
        created_by=_str_id(_pick(row, "created_by")),
        created_at=_pick(row, "created_at"),
    )


def event_participant_from_row(row) -> EventParticipant:
    return EventParticipant(
        id=str(row["id"]),
        event_id=str(row["event_id"]),
        user_id=str(row["user_id"]),
        status=row["status"],
        tee_time=_pick(row, "tee_time"),
        starting_hole=_pick(row, "starting_hole"),
        group_number=_pick(row, "group_number"),
        handicap_index=_float(_pick(row, "handicap_index")),
        registration_date=_pick(row, "registration_date"),
    )


def club_from_row(row) -> Club:
    return Club(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        name=row["name"],
        brand=row["brand"],
        type=row["type"],
        loft=row["loft"],
        notes=row["notes"],
        created_at=_pick(row, "created_at"),
    )


def bag_from_row(row, club_ids: Optional[List] = None) -> Bag:
    return Bag(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        name=row["name"],
        description=row["description"],
        is_default=row["is_default"],
        handicap=_float(row["handicap"]),
        club_ids=[str(c) for c in (club_ids or [])],
        created_at=_pick(row, "created_at"),
    )


def profile_from_row(row) -> Profile:
    return Profile(
        id=str(row["id"]),
        email=row["email"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        username=row["username"],
        handicap=_float(row["handicap"]),
        is_admin=bool(row["is_admin"]),
        created_at=_pick(row, "created_at"),
    )


def hole_score_from_row(row) -> HoleScore:
    return HoleScore(
        id=str(row["id"]),
        round_id=str(row["round_id"]),
        hole_number=row["hole_number"],
        strokes=row["strokes"],
        putts=_pick(row, "putts"),
        fairway_hit=_pick(row, "fairway_hit"),
        green_in_regulation=_pick(row, "green_in_regulation"),
        penalty_strokes=_pick(row, "penalty_strokes") or 0,
        notes=_pick(row, "notes"),
    )


def round_from_row(row, score_rows: Optional[list] = None) -> Round:
    """rounds row (+ its hole_scores rows) -> Round, scores sorted by hole."""
    scores = sorted(
        (hole_score_from_row(r) for r in (score_rows or [])),
        key=lambda s: s.hole_number,
    )
    return Round(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        event_id=_str_id(_pick(row, "event_id")),
        course_id=str(row["course_id"]),
        tee_set_id=str(row["tee_set_id"]),
        bag_id=_str_id(_pick(row, "bag_id")),
        round_date=row["round_date"],
        notes=_pick(row, "notes"),
        total_score=_pick(row, "total_score"),
        total_putts=_pick(row, "total_putts"),
        fairways_hit=_pick(row, "fairways_hit"),
        greens_in_regulation=_pick(row, "greens_in_regulation"),
        scores=scores,
        created_at=_pick(row, "created_at"),
        updated_at=_pick(row, "updated_at"),
    )


# ================================================================
# Model -> Row (writes)
# ================================================================

def course_to_row(course: Course) -> dict:
    """Course -> dict for courses INSERT/UPDATE (canonical column names)."""
    return {
        "name": course.name,
        "location": course.display_location,
        "city": course.city,
        "state": course.state,
        "holes": course.holes,
        "par": course.par,
        "amenities": list(course.amenities),
        "website": course.website,
        "phone_number": course.phone_number,
        "is_active": course.is_active,
    }


def tee_set_to_row(tee: TeeSet, course_id: UUID) -> tuple:
    """TeeSet -> tuple for tee_sets INSERT (for executemany)."""
    return (
        _uuid(tee.id), course_id, tee.name, tee.color,
        tee.rating, tee.slope, tee.par, tee.distance,
    )


def hole_to_row(hole: Hole, course_id: UUID) -> tuple:
    """Hole -> tuple for holes INSERT (for executemany)."""
    return (
        course_id, hole.number, hole.par,
        hole.handicap_index or None, hole.notes or None,
    )


def distance_to_row(distance: TeeSetDistance) -> tuple:
    """TeeSetDistance -> tuple for tee_set_distances INSERT."""
    return (_uuid(distance.hole_id), _uuid(distance.tee_set_id), distance.length)
