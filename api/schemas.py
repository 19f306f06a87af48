"""API-specific request/response models."""

from datetime import date
from pydantic import AliasChoices, BaseModel, Field
from typing import Any, Dict, List, Optional, Union

from models import (
    ClubType,
    Course,
    EventFormat,
    EventParticipantStatus,
    EventStatus,
    HoleScore,
    Hole,
    ParticipantRole,
    ScoringType,
    Series,
    SeriesParticipant,
    SeriesParticipantStatus,
    SeriesStatus,
    SeriesType,
    TeeSet,
)


# ================================================================
# Courses
# ================================================================

class CourseSummaryResponse(BaseModel):
    """Course for card/list views."""
    id: str
    name: Optional[str] = None
    location: Optional[str] = None
    par: Optional[int] = None
    holes: int = 18
    is_active: bool = True


class CourseInput(BaseModel):
    name: str = Field(..., min_length=1)
    location: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    holes: int = Field(18, ge=1, le=36)
    par: Optional[int] = Field(72, ge=27, le=80)
    amenities: Union[List[str], str, None] = None
    website: Optional[str] = None
    phone_number: Optional[str] = Field(
        None, validation_alias=AliasChoices("phone_number", "phoneNumber"),
    )
    is_active: bool = Field(True, validation_alias=AliasChoices("is_active", "isActive"))

    def to_course(self) -> Course:
        return Course(**self.model_dump())


class CourseActiveRequest(BaseModel):
    is_active: bool = Field(..., validation_alias=AliasChoices("is_active", "isActive"))


class CourseDetailResponse(BaseModel):
    course: Course
    tee_sets: List[TeeSet]
    holes: List[Hole]


# ================================================================
# Scorecard extraction
# ================================================================

class ExtractionResponse(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None


# ================================================================
# Wizard
# ================================================================

class CreateWizardRequest(BaseModel):
    course_id: Optional[str] = None
    initial_step: int = Field(0, ge=0, le=2)


class NotificationResponse(BaseModel):
    message: str
    level: str
    auto_hide: Optional[float] = None


class TotalsResponse(BaseModel):
    par: int
    out_par: Optional[int] = None
    in_par: Optional[int] = None
    distances: Dict[str, int]


class WizardStateResponse(BaseModel):
    session_id: str
    active_step: int
    step_title: str
    course_id: Optional[str] = None
    is_edit_mode: bool
    loading: bool
    error: Optional[str] = None
    field_errors: Dict[str, str] = {}
    success: bool
    notifications: List[NotificationResponse] = []
    redirect_to: Optional[str] = None
    redirect_delay: float
    form: Dict[str, Any]
    tee_sets: List[TeeSet]
    holes: List[Hole]
    totals: TotalsResponse
    duplicate_handicaps: List[int] = []


class WizardExtractResponse(BaseModel):
    extraction: ExtractionResponse
    state: WizardStateResponse


# ================================================================
# Series and events
# ================================================================

class SeriesUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    series_type: Optional[SeriesType] = None
    status: Optional[SeriesStatus] = None
    is_active: Optional[bool] = None


class InviteRequest(BaseModel):
    user_id: str
    invited_by: Optional[str] = None
    role: ParticipantRole = ParticipantRole.PARTICIPANT


class SeriesParticipantStatusRequest(BaseModel):
    status: SeriesParticipantStatus


class RespondRequest(BaseModel):
    accept: bool


class EventUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    event_date: Optional[date] = None
    registration_close_date: Optional[date] = None
    event_format: Optional[EventFormat] = None
    status: Optional[EventStatus] = None
    max_participants: Optional[int] = Field(None, ge=1)
    scoring_type: Optional[ScoringType] = None
    is_active: Optional[bool] = None


class RegistrationRequest(BaseModel):
    user_id: str
    status: EventParticipantStatus = EventParticipantStatus.REGISTERED
    tee_time: Optional[str] = None
    starting_hole: Optional[int] = Field(None, ge=1, le=18)
    group_number: Optional[int] = Field(None, ge=1)
    handicap_index: Optional[float] = Field(None, ge=-10, le=54)


class EventParticipantUpdateRequest(BaseModel):
    status: Optional[EventParticipantStatus] = None
    tee_time: Optional[str] = None
    starting_hole: Optional[int] = Field(None, ge=1, le=18)
    group_number: Optional[int] = Field(None, ge=1)
    handicap_index: Optional[float] = Field(None, ge=-10, le=54)


class InvitationResponse(BaseModel):
    """A pending series invitation together with its series."""
    participant: SeriesParticipant
    series: Series


# ================================================================
# Rounds
# ================================================================

class RoundCreateRequest(BaseModel):
    user_id: str
    course_id: str
    tee_set_id: str = Field(
        ..., validation_alias=AliasChoices("tee_set_id", "course_tee_id"),
    )
    event_id: Optional[str] = None
    bag_id: Optional[str] = None
    round_date: Optional[date] = None
    notes: Optional[str] = None
    scores: List[HoleScore] = Field(default_factory=list)


class RoundUpdateRequest(BaseModel):
    round_date: Optional[date] = None
    notes: Optional[str] = None
    bag_id: Optional[str] = None


class HoleScoreUpdateRequest(BaseModel):
    strokes: Optional[int] = Field(None, ge=1, le=20)
    putts: Optional[int] = Field(None, ge=0, le=10)
    fairway_hit: Optional[bool] = None
    green_in_regulation: Optional[bool] = None
    penalty_strokes: Optional[int] = Field(None, ge=0, le=5)
    notes: Optional[str] = None


# ================================================================
# Profile and equipment
# ================================================================

class ProfileUpdateRequest(BaseModel):
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    handicap: Optional[float] = Field(None, ge=-10, le=54)


class ClubInput(BaseModel):
    name: str = Field(..., min_length=1)
    brand: Optional[str] = None
    type: ClubType
    loft: Optional[str] = None
    notes: Optional[str] = None


class BagInput(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_default: bool = False
    handicap: Optional[float] = Field(None, ge=-10, le=54)
    club_ids: List[str] = Field(default_factory=list, max_length=14)
