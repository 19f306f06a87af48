from datetime import date, datetime
from enum import Enum
from pydantic import Field, model_validator
from typing import Optional

from .base import BaseGolfModel


class EventFormat(str, Enum):
    STROKE_PLAY = "stroke_play"
    MATCH_PLAY = "match_play"
    STABLEFORD = "stableford"
    SCRAMBLE = "scramble"
    BEST_BALL = "best_ball"


class EventStatus(str, Enum):
    UPCOMING = "upcoming"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ScoringType(str, Enum):
    GROSS = "gross"
    NET = "net"
    BOTH = "both"


class EventParticipantStatus(str, Enum):
    REGISTERED = "registered"
    CONFIRMED = "confirmed"
    WITHDRAWN = "withdrawn"
    NO_SHOW = "no_show"


class Event(BaseGolfModel):
    """A single competition day, optionally part of a series."""
    id: Optional[str] = None
    series_id: Optional[str] = None
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    event_date: date
    registration_close_date: Optional[date] = None
    course_id: str
    event_format: EventFormat = EventFormat.STROKE_PLAY
    status: EventStatus = EventStatus.UPCOMING
    max_participants: Optional[int] = Field(None, ge=1)
    scoring_type: ScoringType = ScoringType.GROSS
    is_standalone: bool = True
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @model_validator(mode='after')
    def validate_registration_window(self):
        if self.registration_close_date and self.registration_close_date > self.event_date:
            raise ValueError("Registration must close on or before the event date")
        return self


class EventParticipant(BaseGolfModel):
    """A user's registration for an event."""
    id: Optional[str] = None
    event_id: str
    user_id: str
    status: EventParticipantStatus = EventParticipantStatus.REGISTERED
    tee_time: Optional[str] = None
    starting_hole: Optional[int] = Field(None, ge=1, le=18)
    group_number: Optional[int] = Field(None, ge=1)
    handicap_index: Optional[float] = Field(None, ge=-10, le=54)
    registration_date: Optional[datetime] = None
