import re
from pydantic import AliasChoices, Field
from typing import Any, Dict, Mapping, Optional

from models import Course
from models.base import BaseGolfModel
from models.course import parse_amenities

_CITY_STATE = re.compile(r"^\s*([^,]+?)\s*,\s*([A-Za-z .]+?)\s*$")

# Extraction payload keys -> form field names
_PAYLOAD_KEYS = {
    "phoneNumber": "phone_number",
    "isActive": "is_active",
    "totalHoles": "holes",
}


class FormValidationError(Exception):
    """A required form field is missing or invalid."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class CourseFormData(BaseGolfModel):
    """Editable state of the course-info step.

    Amenities are held as the comma-joined text the user types.
    """
    name: str = ""
    location: str = ""
    city: Optional[str] = None
    state: Optional[str] = None
    holes: int = Field(18, ge=1, le=36)
    par: Optional[int] = Field(72, ge=27, le=80)
    amenities: str = ""
    website: Optional[str] = None
    phone_number: Optional[str] = Field(
        None, validation_alias=AliasChoices("phone_number", "phoneNumber"),
    )
    is_active: bool = Field(True, validation_alias=AliasChoices("is_active", "isActive"))

    def validate_required(self) -> None:
        """Raise FormValidationError for the first missing required field."""
        if not self.name.strip():
            raise FormValidationError("name", "Course name is required")
        if not (self.location.strip() or (self.city or "").strip()):
            raise FormValidationError("location", "Location is required")

    def to_course(self) -> Course:
        return Course(
            name=self.name.strip(),
            location=self.location.strip() or None,
            city=self.city or None,
            state=self.state or None,
            holes=self.holes,
            par=self.par,
            amenities=parse_amenities(self.amenities),
            website=self.website or None,
            phone_number=self.phone_number or None,
            is_active=self.is_active,
        )

    @classmethod
    def from_course(cls, course: Course) -> "CourseFormData":
        return cls(
            name=course.name or "",
            location=course.display_location or "",
            city=course.city,
            state=course.state,
            holes=course.holes,
            par=course.par,
            amenities=", ".join(course.amenities),
            website=course.website,
            phone_number=course.phone_number,
            is_active=course.is_active,
        )


def split_city_state(location: Optional[str]):
    """("City", "ST") from "City, ST", else (None, None)."""
    match = _CITY_STATE.match(location or "")
    if not match:
        return None, None
    return match.group(1), match.group(2)


def merge_extracted(form: CourseFormData, payload: Mapping[str, Any]) -> CourseFormData:
    """Overlay non-null payload values onto the form; everything else is kept.

    Unknown payload keys (email, teeSets, ...) are ignored. A "City, ST"
    location also fills city and state when those are still empty.
    """
    updates: Dict[str, Any] = {}
    for key, value in payload.items():
        if value is None:
            continue
        field = _PAYLOAD_KEYS.get(key, key)
        if field not in CourseFormData.model_fields:
            continue
        if field == "amenities" and not isinstance(value, str):
            value = ", ".join(parse_amenities(value))
        updates[field] = value

    merged = CourseFormData.model_validate({**form.model_dump(), **updates})
    if "location" in updates:
        city, state = split_city_state(merged.location)
        if city and not merged.city:
            merged.city = city
        if state and not merged.state:
            merged.state = state
    return merged
