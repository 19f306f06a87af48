from .prompts import ExtractTarget
from .scorecard_extractor import (
    ExtractionError,
    ExtractionResult,
    extract_course_data,
    locate_json,
    standardize_distances,
)

__all__ = [
    "ExtractTarget",
    "ExtractionError",
    "ExtractionResult",
    "extract_course_data",
    "locate_json",
    "standardize_distances",
]
