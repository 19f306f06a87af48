from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional, Sequence, Union


class ExtractTarget(str, Enum):
    """Which part of the course form an image should fill."""
    COURSE_INFO = "courseInfo"
    TEE_SETS = "teeSets"
    SCORECARD = "scorecard"
    ALL = "all"


# ================================================================
# Shared prompt fragments
# ================================================================

_PREAMBLE = "You are a golf course data extraction assistant."

_JSON_ONLY = """
Your response must be ONLY valid JSON in the following format. Use null for any field you cannot read."""

_COURSE_INFO_JSON = """{
  "name": "Golf Course Name",
  "location": "City, State",
  "phoneNumber": "555-123-4567",
  "email": "contact@golfcourse.com",
  "website": "www.golfcourse.com"
}"""

_TEE_SETS_JSON = """[
  {"name": "Blue", "color": "Blue", "rating": 72.3, "slope": 135},
  {"name": "White", "color": "White", "rating": 70.1, "slope": 128}
]"""

_HOLES_JSON = """[
  {"number": 1, "par": 4, "handicapIndex": 5, "distances": {"Blue": 425, "White": 410, "Red": 380}},
  {"number": 2, "par": 3, "handicapIndex": 17, "distances": {"Blue": 185, "White": 165, "Red": 145}}
]"""

_ALL_JSON = """{
  "name": "Course Name",
  "location": "City, State",
  "teeSets": [
    {"name": "Blue", "color": "Blue", "rating": 72.3, "slope": 135}
  ],
  "holeDetails": [
    {"number": 1, "par": 4, "handicapIndex": 5, "distances": {"Blue": 425, "White": 410}}
  ]
}"""

_HOLE_RULES = """
Guidelines:
1. Extract data for ALL holes visible in the scorecard (typically 9 or 18 holes).
2. For each hole, include number, par, handicap index (if available), and distances for each tee color.
3. If you can't determine a par, use 4.
4. Convert all text-based numbers to numeric values.
5. The "distances" object must contain an entry for EVERY tee color on the card.
6. If the card has a front/back nine layout, combine them into a single array of 18 holes."""

_TEE_RULES = """
The tee "name" is often the same as its color. Rating is the course rating (e.g. 71.4) and slope the slope rating (55-155)."""


def _tee_colors_context(tee_colors: Optional[Sequence[str]]) -> str:
    if not tee_colors:
        return ""
    return f"\nThe scorecard has the following tee colors: {', '.join(tee_colors)}.\n"


# ================================================================
# Per-target prompts
# ================================================================

def build_course_info_prompt() -> str:
    return (
        _PREAMBLE
        + " Extract the golf course name, location, and contact details from the scorecard image.\n"
        + _JSON_ONLY + "\n" + _COURSE_INFO_JSON
    )


def build_tee_sets_prompt() -> str:
    return (
        _PREAMBLE
        + " Extract the tee set information from the scorecard image.\n"
        + _TEE_RULES + "\n" + _JSON_ONLY + "\n" + _TEE_SETS_JSON
    )


def build_scorecard_prompt(tee_colors: Optional[Sequence[str]] = None) -> str:
    """Hole-by-hole prompt. Known tee colors are named so the model keys distances by them."""
    return (
        _PREAMBLE
        + " Extract the hole-by-hole information from the scorecard image.\n"
        + "Focus ONLY on hole numbers, pars, handicap indices, and distances for each tee color.\n"
        + _tee_colors_context(tee_colors)
        + _JSON_ONLY + "\n" + _HOLES_JSON + "\n" + _HOLE_RULES
    )


def build_full_extraction_prompt(tee_colors: Optional[Sequence[str]] = None) -> str:
    return (
        _PREAMBLE
        + " Extract all course information from the scorecard image.\n"
        + _tee_colors_context(tee_colors)
        + _TEE_RULES + "\n" + _JSON_ONLY + "\n" + _ALL_JSON + "\n" + _HOLE_RULES
    )


def build_extraction_prompt(
    target: ExtractTarget, tee_colors: Optional[Sequence[str]] = None
) -> str:
    target = ExtractTarget(target)
    if target == ExtractTarget.COURSE_INFO:
        return build_course_info_prompt()
    if target == ExtractTarget.TEE_SETS:
        return build_tee_sets_prompt()
    if target == ExtractTarget.SCORECARD:
        return build_scorecard_prompt(tee_colors)
    return build_full_extraction_prompt(tee_colors)


# ================================================================
# Raw LLM response models (wire keys as the prompts show them)
# ================================================================

class _RawModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RawCourseInfo(_RawModel):
    name: Optional[str] = None
    location: Optional[str] = None
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    email: Optional[str] = None
    website: Optional[str] = None


class RawTeeSet(_RawModel):
    name: Optional[str] = None
    color: Optional[str] = None
    rating: Optional[float] = None
    slope: Optional[float] = None


class RawHole(_RawModel):
    number: Optional[int] = None
    par: Optional[int] = None
    handicap_index: Optional[int] = Field(None, alias="handicapIndex")
    distances: Optional[Dict[str, Union[int, float, str, None]]] = None


class RawFullExtraction(_RawModel):
    name: Optional[str] = None
    location: Optional[str] = None
    tee_sets: List[RawTeeSet] = Field(default_factory=list, alias="teeSets")
    hole_details: List[RawHole] = Field(default_factory=list, alias="holeDetails")
