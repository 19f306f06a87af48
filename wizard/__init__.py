from .container import (
    COURSE_INFO,
    SCORECARD,
    STEP_TITLES,
    TEE_BOXES,
    CourseFormContainer,
    Notification,
    target_for_step,
)
from .form_data import CourseFormData, FormValidationError, merge_extracted
from .grid import Cell, ScorecardGrid
from .sessions import WizardSessionStore
from .steps import CourseInfoStep, ScorecardStep, ScorecardTotals, TeeBoxesStep
from .store import CourseStore

__all__ = [
    "COURSE_INFO",
    "SCORECARD",
    "STEP_TITLES",
    "TEE_BOXES",
    "Cell",
    "CourseFormContainer",
    "CourseFormData",
    "CourseInfoStep",
    "CourseStore",
    "FormValidationError",
    "Notification",
    "ScorecardGrid",
    "ScorecardStep",
    "ScorecardTotals",
    "TeeBoxesStep",
    "WizardSessionStore",
    "merge_extracted",
    "target_for_step",
]
