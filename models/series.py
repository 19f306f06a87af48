from datetime import date, datetime
from enum import Enum
from pydantic import Field, model_validator
from typing import Optional

from .base import BaseGolfModel


class SeriesType(str, Enum):
    SEASON_LONG = "season_long"
    MATCH_PLAY = "match_play"
    TOURNAMENT = "tournament"


class SeriesStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"


class ParticipantRole(str, Enum):
    PARTICIPANT = "participant"
    ADMIN = "admin"


class SeriesParticipantStatus(str, Enum):
    INVITED = "invited"
    ACTIVE = "active"
    WITHDRAWN = "withdrawn"


class Series(BaseGolfModel):
    """A season or tournament grouping several events."""
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_date: date
    end_date: date
    series_type: SeriesType = SeriesType.SEASON_LONG
    status: SeriesStatus = SeriesStatus.UPCOMING
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode='after')
    def validate_date_range(self):
        if self.end_date < self.start_date:
            raise ValueError(
                f"Series end date {self.end_date} is before start date {self.start_date}"
            )
        return self


class SeriesParticipant(BaseGolfModel):
    """Links a user to a series."""
    id: Optional[str] = None
    series_id: str
    user_id: str
    role: ParticipantRole = ParticipantRole.PARTICIPANT
    status: SeriesParticipantStatus = SeriesParticipantStatus.INVITED
    invited_by: Optional[str] = None
    created_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
