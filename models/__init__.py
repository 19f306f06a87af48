from .base import BaseGolfModel
from .course import Course
from .equipment import Bag, Club, ClubType
from .event import (
    Event,
    EventFormat,
    EventParticipant,
    EventParticipantStatus,
    EventStatus,
    ScoringType,
)
from .hole import Hole, TeeSetDistance
from .round import HoleScore, Round, RoundTotals, round_totals
from .series import (
    ParticipantRole,
    Series,
    SeriesParticipant,
    SeriesParticipantStatus,
    SeriesStatus,
    SeriesType,
)
from .tee_set import TeeSet
from .user import Profile

__all__ = [
    "BaseGolfModel",
    "Bag",
    "Club",
    "ClubType",
    "Course",
    "Event",
    "EventFormat",
    "EventParticipant",
    "EventParticipantStatus",
    "EventStatus",
    "Hole",
    "HoleScore",
    "ParticipantRole",
    "Profile",
    "Round",
    "RoundTotals",
    "ScoringType",
    "Series",
    "SeriesParticipant",
    "SeriesParticipantStatus",
    "SeriesStatus",
    "SeriesType",
    "TeeSet",
    "TeeSetDistance",
    "round_totals",
]
