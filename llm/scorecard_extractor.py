import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import TypeAdapter, ValidationError

from dotenv import load_dotenv
load_dotenv()

from google import genai
from google.genai import errors, types

from models.base import BaseGolfModel
from llm.prompts import (
    ExtractTarget,
    RawCourseInfo,
    RawFullExtraction,
    RawHole,
    RawTeeSet,
    build_extraction_prompt,
)

logger = logging.getLogger(__name__)


# --- Configuration ---

GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n([\s\S]*?)\n\s*```")
_LEADING_NUMBER = re.compile(r"^\s*(-?\d+)")

_RESPONSE_TYPES = {
    ExtractTarget.COURSE_INFO: TypeAdapter(RawCourseInfo),
    ExtractTarget.TEE_SETS: TypeAdapter(List[RawTeeSet]),
    ExtractTarget.SCORECARD: TypeAdapter(List[RawHole]),
    ExtractTarget.ALL: TypeAdapter(RawFullExtraction),
}


class ExtractionError(Exception):
    """The vision model's output could not be turned into form data."""

    def __init__(self, message: str, status_code: int = 422):
        super().__init__(message)
        self.status_code = status_code


class ExtractionResult(BaseGolfModel):
    """Outcome of one extraction. data mirrors the form shapes (camelCase keys)."""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    status_code: Optional[int] = None


# --- API Interaction ---

def _create_client(api_key: Optional[str] = None) -> genai.Client:
    api_key = api_key or os.environ.get("GOOGLE_API_KEY")
    if not api_key:
        raise EnvironmentError(
            "GOOGLE_API_KEY environment variable is not set. "
            "Get an API key at https://aistudio.google.com/apikey"
        )
    return genai.Client(api_key=api_key)


def _call_gemini(
    client: genai.Client,
    image_part: types.Part,
    prompt: str,
    target: ExtractTarget,
    model: str = GEMINI_MODEL,
) -> str:
    """Send prompt + image and return the raw response text."""
    response = client.models.generate_content(
        model=model,
        contents=[image_part, prompt],
        config=types.GenerateContentConfig(
            response_mime_type="application/json",
            response_json_schema=_RESPONSE_TYPES[target].json_schema(),
            temperature=0.1,
        ),
    )
    if not response.text:
        raise ExtractionError("The model returned an empty response for this image.")
    return response.text


# --- Response parsing ---

def locate_json(text: str) -> str:
    """Pull the JSON document out of a model reply.

    Prefers a fenced ```json block, then the span from the first { or [ to the
    matching last } or ]; otherwise the whole reply.
    """
    fenced = _FENCED_JSON.search(text)
    if fenced:
        return fenced.group(1).strip()

    first_brace, first_bracket = text.find("{"), text.find("[")
    if first_brace != -1 and (first_bracket == -1 or first_brace < first_bracket):
        last = text.rfind("}")
        if last > first_brace:
            return text[first_brace:last + 1].strip()
    elif first_bracket != -1:
        last = text.rfind("]")
        if last > first_bracket:
            return text[first_bracket:last + 1].strip()
    return text.strip()


def parse_json(text: str) -> Any:
    try:
        return json.loads(locate_json(text))
    except json.JSONDecodeError as e:
        raise ExtractionError(
            "Failed to parse extracted data from the image. "
            f"The response could not be converted to valid JSON. {e}"
        ) from e


def _to_yards(value) -> int:
    """Integer yardage from a number or a string like "425 yds"; 0 when unreadable."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    match = _LEADING_NUMBER.match(str(value))
    return int(match.group(1)) if match else 0


def standardize_distances(
    distances: Optional[Dict[str, Any]], tee_colors: Optional[Sequence[str]] = None
) -> Dict[str, int]:
    """Key distances by the caller's tee colors (case-insensitive); absent colors get 0."""
    distances = distances or {}
    if not tee_colors:
        return {k: _to_yards(v) for k, v in distances.items()}
    lowered = {k.lower(): v for k, v in distances.items()}
    return {color: _to_yards(lowered.get(color.lower())) for color in tee_colors}


def _check_scorecard_shape(holes: List[RawHole]) -> None:
    if not holes:
        raise ExtractionError(
            "No holes could be identified in the scorecard image. "
            "Try a clearer image or enter the data manually."
        )
    first = holes[0]
    if not first.number or not first.par or not first.distances:
        raise ExtractionError(
            "The extracted data does not match the expected hole format. "
            "Try a clearer image or enter the data manually."
        )


def _hole_payload(hole: RawHole, tee_colors: Optional[Sequence[str]]) -> dict:
    return {
        "number": hole.number,
        "par": hole.par,
        "handicapIndex": hole.handicap_index,
        "distances": standardize_distances(hole.distances, tee_colors),
    }


def build_payload(
    raw: Any, target: ExtractTarget, tee_colors: Optional[Sequence[str]] = None
) -> Any:
    """Validate parsed JSON for target and shape it like the form data."""
    target = ExtractTarget(target)
    try:
        parsed = _RESPONSE_TYPES[target].validate_python(raw)
    except ValidationError as e:
        raise ExtractionError(
            f"The extracted data does not match the expected {target.value} format: "
            f"{e.error_count()} problem(s)"
        ) from e

    if target == ExtractTarget.COURSE_INFO:
        return parsed.model_dump(by_alias=True)
    if target == ExtractTarget.TEE_SETS:
        return [t.model_dump(by_alias=True) for t in parsed]
    if target == ExtractTarget.SCORECARD:
        _check_scorecard_shape(parsed)
        return [_hole_payload(h, tee_colors) for h in parsed]
    return {
        "name": parsed.name,
        "location": parsed.location,
        "teeSets": [t.model_dump(by_alias=True) for t in parsed.tee_sets],
        "holeDetails": [_hole_payload(h, tee_colors) for h in parsed.hole_details],
    }


# --- Public entry point ---

def extract_course_data(
    image_bytes: bytes,
    mime_type: str,
    target: ExtractTarget = ExtractTarget.ALL,
    tee_colors: Optional[Sequence[str]] = None,
    *,
    client: Optional[genai.Client] = None,
    model: Optional[str] = None,
    api_key: Optional[str] = None,
) -> ExtractionResult:
    """Extract course data for one wizard step from a scorecard image.

    Args:
        image_bytes: Raw image content.
        mime_type: Must be an image/* type.
        target: courseInfo, teeSets, scorecard or all.
        tee_colors: Tee colors already on the form; scorecard distances are
            re-keyed to exactly these.
        client: Optional pre-built genai client (tests inject a mock).
        model: Gemini model name; defaults to GEMINI_MODEL.
        api_key: Key for a new client; defaults to GOOGLE_API_KEY.

    Returns:
        ExtractionResult. Failures never raise; they come back with
        success=False and a message so callers can leave form state alone.
    """
    try:
        target = ExtractTarget(target)
    except ValueError:
        return ExtractionResult(
            success=False, error=f"Unknown extraction target: {target}", status_code=400
        )
    if not (mime_type or "").startswith("image/"):
        return ExtractionResult(success=False, error="File must be an image", status_code=400)

    try:
        client = client or _create_client(api_key)
        image_part = types.Part.from_bytes(data=image_bytes, mime_type=mime_type)
        prompt = build_extraction_prompt(target, tee_colors)
        text = _call_gemini(client, image_part, prompt, target, model or GEMINI_MODEL)
        data = build_payload(parse_json(text), target, tee_colors)
    except ExtractionError as e:
        logger.warning("Extraction (%s) produced unusable output: %s", target.value, e)
        return ExtractionResult(success=False, error=str(e), status_code=e.status_code)
    except errors.APIError as e:
        logger.error("Gemini call failed during %s extraction: %s", target.value, e)
        return ExtractionResult(
            success=False, error=f"Error calling the vision model: {e}", status_code=502
        )
    except httpx.HTTPError as e:
        logger.error("Could not reach Gemini during %s extraction: %s", target.value, e)
        return ExtractionResult(
            success=False, error=f"Could not reach the vision model: {e}", status_code=502
        )
    except EnvironmentError as e:
        logger.error("Extraction unavailable: %s", e)
        return ExtractionResult(success=False, error=str(e), status_code=503)

    return ExtractionResult(success=True, data=data)
