"""Course wizard state machine.

Owns the wizard state and persists the active step through a CourseStore
before advancing. The course id returned by the first save is kept on the
container and passed explicitly to every follow-up call.
"""

import logging
from typing import Any, List, NamedTuple, Optional

import asyncpg
from pydantic import ValidationError

from database.exceptions import DatabaseError
from llm.prompts import ExtractTarget
from models import Hole, TeeSet
from wizard.form_data import CourseFormData, FormValidationError
from wizard.steps import CourseInfoStep, ScorecardStep, TeeBoxesStep
from wizard.store import CourseStore

logger = logging.getLogger(__name__)

COURSE_INFO, TEE_BOXES, SCORECARD = 0, 1, 2
STEP_TITLES = (CourseInfoStep.title, TeeBoxesStep.title, ScorecardStep.title)
SUCCESS_AUTO_HIDE = 6.0

_STORE_ERRORS = (DatabaseError, asyncpg.PostgresError, ValidationError, OSError)


class Notification(NamedTuple):
    message: str
    level: str = "success"
    auto_hide: Optional[float] = SUCCESS_AUTO_HIDE


class CourseFormContainer:
    """Three-step course form: Course Info -> Tee Boxes -> Scorecard.

    Forward moves only through handle_submit(), which saves the active step and
    advances on success. Every handler is a no-op while a save is in flight.
    """

    def __init__(
        self,
        store: CourseStore,
        *,
        course_id: Optional[str] = None,
        initial_step: int = COURSE_INFO,
        redirect_to: str = "/admin/courses",
        redirect_delay: float = 1.5,
    ):
        if initial_step not in (COURSE_INFO, TEE_BOXES, SCORECARD):
            raise ValueError(f"initial_step must be 0, 1 or 2, got {initial_step}")
        self.store = store
        self.course_id = course_id
        self.is_edit_mode = course_id is not None
        self.active_step = initial_step if course_id else COURSE_INFO

        self.course_info = CourseInfoStep()
        self.tee_boxes = TeeBoxesStep()
        self.scorecard = ScorecardStep(self.tee_boxes)

        self.loading = False
        self.error: Optional[str] = None
        self.success = False
        self.notifications: List[Notification] = []
        self.redirect_path = redirect_to
        self.redirect_to: Optional[str] = None
        self.redirect_delay = redirect_delay
        self._children_loaded = False

    # --- convenience views ---

    @property
    def form_data(self) -> CourseFormData:
        return self.course_info.form

    @property
    def tee_sets(self) -> List[TeeSet]:
        return self.tee_boxes.tee_sets

    @property
    def holes(self) -> List[Hole]:
        return self.scorecard.holes

    @property
    def step_title(self) -> str:
        return STEP_TITLES[self.active_step]

    def _notify(self, message: str) -> None:
        self.notifications.append(Notification(message))

    def drain_notifications(self) -> List[Notification]:
        """Hand out pending notifications once."""
        pending, self.notifications = self.notifications, []
        return pending

    def clear_error(self) -> None:
        self.error = None

    def _fail(self, message: str) -> bool:
        self.error = message
        return False

    # --- loading ---

    async def _load_children(self, course_id: str) -> None:
        self.tee_boxes.tee_sets = await self.store.fetch_tee_sets(course_id)
        self.scorecard.holes = await self.store.fetch_holes(course_id)
        self._children_loaded = True

    async def load(self) -> bool:
        """Edit mode: fill the form from the stored course (and children when deep-linked)."""
        if self.loading or not self.course_id:
            return False
        self.loading = True
        try:
            course = await self.store.fetch_course(self.course_id)
            if course is None:
                return self._fail(f"Course {self.course_id} not found")
            self.course_info.form = CourseFormData.from_course(course)
            if self.active_step > COURSE_INFO:
                await self._load_children(self.course_id)
            return True
        except _STORE_ERRORS as e:
            logger.exception("Failed to load course %s", self.course_id)
            return self._fail(f"Failed to load course data: {e}")
        finally:
            self.loading = False

    # --- navigation ---

    def back(self) -> bool:
        if self.loading or self.active_step == COURSE_INFO:
            return False
        self.active_step -= 1
        self.error = None
        return True

    async def handle_submit(self) -> bool:
        """Save the active step and advance. Returns True on success."""
        if self.loading:
            return False
        self.loading = True
        self.error = None
        self.success = False
        try:
            if self.active_step == COURSE_INFO:
                return await self._submit_course_info()
            if self.active_step == TEE_BOXES:
                return await self._submit_tee_boxes()
            return await self._submit_scorecard()
        finally:
            self.loading = False

    async def _submit_course_info(self) -> bool:
        try:
            self.course_info.validate()
        except FormValidationError as e:
            return self._fail(e.message)

        try:
            course_id = await self.store.save_course(
                self.form_data.to_course(), self.course_id
            )
        except _STORE_ERRORS as e:
            logger.error("Course save failed: %s", e)
            return self._fail(f"Failed to save course: {e}")
        if not course_id:
            return self._fail("Failed to save course information. Please try again.")

        self.course_id = str(course_id)
        self._notify("Course saved successfully")
        self.active_step = TEE_BOXES

        if not self._children_loaded:
            try:
                await self._load_children(self.course_id)
            except _STORE_ERRORS as e:
                logger.error("Loading tee sets/holes for %s failed: %s", self.course_id, e)
                self.error = f"Failed to load course data: {e}"
        return True

    def _require_course(self) -> bool:
        if self.course_id:
            return True
        self.active_step = COURSE_INFO
        return self._fail(
            "No course ID available. Please save the course information first."
        )

    async def _submit_tee_boxes(self) -> bool:
        if not self._require_course():
            return False
        try:
            saved = await self.store.save_tee_sets(self.course_id, self.tee_sets)
        except _STORE_ERRORS as e:
            logger.error("Tee set save failed for %s: %s", self.course_id, e)
            return self._fail(f"Failed to save tee boxes: {e}")

        self.tee_boxes.tee_sets = saved
        self._notify("Tee boxes saved successfully")
        self.active_step = SCORECARD
        self.scorecard.seed(self.form_data.holes)
        return True

    def _holes_to_save(self) -> List[Hole]:
        """Holes with distances only for tee sets still on the card."""
        tee_ids = {t.id for t in self.tee_sets}
        return [
            h.model_copy(update={
                "distances": {k: v for k, v in h.distances.items() if k in tee_ids}
            })
            for h in self.holes
        ]

    async def _submit_scorecard(self) -> bool:
        if not self._require_course():
            return False
        if not self.holes:
            return self._fail("No holes data available to save. Please add holes first.")

        try:
            saved = await self.store.save_scorecard(self.course_id, self._holes_to_save())
        except _STORE_ERRORS as e:
            logger.error("Scorecard save failed for %s: %s", self.course_id, e)
            return self._fail(f"Failed to save scorecard: {e}")

        stored_ids = {h.number: h.id for h in saved}
        for hole in self.holes:
            hole.id = stored_ids.get(hole.number)
            hole.course_id = self.course_id
        self.scorecard.unsaved_changes = False

        self.success = True
        self._notify("Course saved successfully")
        self.redirect_to = self.redirect_path
        return True

    # --- image extraction ---

    def apply_extraction(self, target: ExtractTarget, data: Any) -> None:
        """Merge a successful extraction payload into the matching step(s)."""
        target = ExtractTarget(target)
        if target == ExtractTarget.COURSE_INFO:
            self.course_info.apply_extraction(data)
        elif target == ExtractTarget.TEE_SETS:
            self.tee_boxes.replace_from_extraction(data)
        elif target == ExtractTarget.SCORECARD:
            self.scorecard.apply_extraction(data)
        else:
            self.course_info.apply_extraction(
                {k: v for k, v in data.items() if k not in ("teeSets", "holeDetails")}
            )
            if data.get("teeSets"):
                self.tee_boxes.replace_from_extraction(data["teeSets"])
            if data.get("holeDetails"):
                self.scorecard.apply_extraction(data["holeDetails"])


def target_for_step(step: int) -> ExtractTarget:
    """Extraction target that fills the given wizard step."""
    return (ExtractTarget.COURSE_INFO, ExtractTarget.TEE_SETS, ExtractTarget.SCORECARD)[step]
