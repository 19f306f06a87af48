from datetime import date, datetime
from pydantic import Field, model_validator
from typing import List, Optional

from .base import BaseGolfModel


class HoleScore(BaseGolfModel):
    """A player's score on one hole of a round."""
    id: Optional[str] = None
    round_id: Optional[str] = None
    hole_number: int = Field(..., ge=1, le=18)
    strokes: int = Field(..., ge=1, le=20)
    putts: Optional[int] = Field(None, ge=0, le=10)
    fairway_hit: Optional[bool] = None  # None on par 3s
    green_in_regulation: Optional[bool] = None
    penalty_strokes: int = Field(0, ge=0, le=5)
    notes: Optional[str] = None

    @model_validator(mode='after')
    def validate_score_consistency(self):
        if self.putts is not None and self.putts > self.strokes:
            raise ValueError(f"Putts ({self.putts}) cannot exceed strokes ({self.strokes})")
        return self


class Round(BaseGolfModel):
    """A round played on one tee set, optionally as part of an event.

    The totals are derived from the hole scores and stored on the round row.
    """
    id: Optional[str] = None
    user_id: str
    event_id: Optional[str] = None
    course_id: str
    tee_set_id: str
    bag_id: Optional[str] = None
    round_date: date = Field(default_factory=date.today)
    notes: Optional[str] = None
    total_score: Optional[int] = None
    total_putts: Optional[int] = None
    fairways_hit: Optional[int] = None
    greens_in_regulation: Optional[int] = None
    scores: List[HoleScore] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def get_score(self, hole_number: int) -> Optional[HoleScore]:
        for score in self.scores:
            if score.hole_number == hole_number:
                return score
        return None

    def calculate_totals(self) -> "RoundTotals":
        return round_totals(self.scores)

    def is_complete(self, holes: int = 18) -> bool:
        """Every hole 1..holes has a score."""
        return {s.hole_number for s in self.scores} >= set(range(1, holes + 1))


class RoundTotals(BaseGolfModel):
    total_score: Optional[int] = None
    total_putts: Optional[int] = None
    fairways_hit: int = 0
    greens_in_regulation: int = 0


def round_totals(scores: List[HoleScore]) -> RoundTotals:
    """Strokes (penalties included), putts, fairways and greens over the scored holes."""
    if not scores:
        return RoundTotals()
    putts = [s.putts for s in scores if s.putts is not None]
    return RoundTotals(
        total_score=sum(s.strokes + s.penalty_strokes for s in scores),
        total_putts=sum(putts) if putts else None,
        fairways_hit=sum(1 for s in scores if s.fairway_hit),
        greens_in_regulation=sum(1 for s in scores if s.green_in_regulation),
    )
