from pydantic import AliasChoices, Field, field_validator
from typing import Dict, List, Optional

from .base import BaseGolfModel

MAX_HOLE_DISTANCE = 999


class Hole(BaseGolfModel):
    """Represents a single hole on a golf course."""
    id: Optional[str] = None
    course_id: Optional[str] = None
    number: int = Field(
        ..., ge=1, le=36,
        validation_alias=AliasChoices("number", "hole_number", "holeNumber"),
    )
    par: Optional[int] = Field(4, ge=3, le=6)
    handicap_index: Optional[int] = Field(
        None, ge=0, le=36,
        validation_alias=AliasChoices("handicap_index", "handicapIndex", "handicap"),
    )
    notes: Optional[str] = None
    distances: Dict[str, int] = Field(default_factory=dict)  # {tee_set_id: yards}

    @field_validator('distances')
    @classmethod
    def validate_distances(cls, v):
        for tee_set_id, yards in v.items():
            if yards < 0:
                raise ValueError(f"Distance for tee set {tee_set_id} cannot be negative")
            if yards > MAX_HOLE_DISTANCE:
                raise ValueError(f"Distance {yards} for tee set {tee_set_id} seems too high. Please verify.")
        return v


class TeeSetDistance(BaseGolfModel):
    """Length of one hole from one tee set."""
    id: Optional[str] = None
    hole_id: str
    tee_set_id: str
    length: int = Field(..., ge=0, validation_alias=AliasChoices("length", "distance"))


def check_unique_numbers(holes: List[Hole]) -> List[Hole]:
    """Raise ValueError when two holes share a number."""
    seen = set()
    for hole in holes:
        if hole.number in seen:
            raise ValueError(f"Hole number {hole.number} appears more than once")
        seen.add(hole.number)
    return holes


def duplicate_handicaps(holes: List[Hole]) -> List[int]:
    """Handicap indexes used by more than one hole (reported, not enforced)."""
    counts: Dict[int, int] = {}
    for hole in holes:
        if hole.handicap_index:
            counts[hole.handicap_index] = counts.get(hole.handicap_index, 0) + 1
    return sorted(k for k, n in counts.items() if n > 1)


def default_holes(count: int, par: int = 4) -> List[Hole]:
    """Blank scorecard rows numbered 1..count."""
    return [Hole(number=i, par=par) for i in range(1, count + 1)]
