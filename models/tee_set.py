from uuid import UUID, uuid4
from pydantic import AliasChoices, Field, field_validator
from typing import Optional

from .base import BaseGolfModel


def new_id() -> str:
    return str(uuid4())


class TeeSet(BaseGolfModel):
    """A named/colored set of tees with its course and slope ratings.

    Ids are assigned client-side so per-hole distances can reference a tee set
    before it has been persisted.
    """
    id: str = Field(default_factory=new_id)
    course_id: Optional[str] = None
    name: str = Field(..., min_length=1)
    color: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=85.0)
    slope: Optional[int] = Field(None, ge=0, le=155)
    par: Optional[int] = Field(None, ge=27, le=80)
    distance: Optional[int] = Field(
        None, ge=0, validation_alias=AliasChoices("distance", "length", "yardage"),
    )

    @field_validator('id', mode='before')
    @classmethod
    def validate_id(cls, v):
        """Ids become tee_sets primary keys, so they must be UUIDs (stored lower-case)."""
        try:
            return str(UUID(str(v)))
        except ValueError:
            raise ValueError(f"Tee set id {v!r} is not a UUID")

    def matches(self, key: str) -> bool:
        """True when key names this tee set by id, color or name (case-insensitive)."""
        if key == self.id:
            return True
        lowered = key.strip().lower()
        return lowered in {
            (self.color or "").strip().lower(),
            (self.name or "").strip().lower(),
        }
