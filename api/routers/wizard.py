"""Course wizard sessions: drive the three-step course form over HTTP."""

from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from database.db_manager import DatabaseManager
from api.dependencies import get_db, get_extractor, get_wizard, get_wizard_sessions
from api.routers.scorecard import parse_target, parse_tee_colors, run_extraction
from api.schemas import (
    CreateWizardRequest,
    ExtractionResponse,
    NotificationResponse,
    TotalsResponse,
    WizardExtractResponse,
    WizardStateResponse,
)
from models import Hole, TeeSet
from models.hole import check_unique_numbers, duplicate_handicaps
from wizard.container import CourseFormContainer, target_for_step
from wizard.form_data import FormValidationError
from wizard.sessions import WizardSessionStore

router = APIRouter()


def _state(container: CourseFormContainer, session_id: str) -> WizardStateResponse:
    """Snapshot of a wizard session. Pending notifications are handed out once."""
    totals = container.scorecard.totals()
    return WizardStateResponse(
        session_id=session_id,
        active_step=container.active_step,
        step_title=container.step_title,
        course_id=container.course_id,
        is_edit_mode=container.is_edit_mode,
        loading=container.loading,
        error=container.error,
        field_errors=dict(container.course_info.errors),
        success=container.success,
        notifications=[
            NotificationResponse(**n._asdict()) for n in container.drain_notifications()
        ],
        redirect_to=container.redirect_to,
        redirect_delay=container.redirect_delay,
        form=container.form_data.model_dump(),
        tee_sets=container.tee_sets,
        holes=container.holes,
        totals=TotalsResponse(**totals._asdict()),
        duplicate_handicaps=duplicate_handicaps(container.holes),
    )


@router.post("", status_code=201, response_model=WizardStateResponse)
async def start_wizard(
    req: Optional[CreateWizardRequest] = Body(None),
    db: DatabaseManager = Depends(get_db),
    sessions: WizardSessionStore = Depends(get_wizard_sessions),
):
    """Start a new course (no course_id) or edit an existing one."""
    req = req or CreateWizardRequest()
    session_id, container = sessions.create(
        db.courses, course_id=req.course_id, initial_step=req.initial_step,
    )
    if req.course_id and not await container.load():
        sessions.delete(session_id)
        raise HTTPException(404, container.error or "Course not found")
    return _state(container, session_id)


@router.get("/{session_id}", response_model=WizardStateResponse)
async def get_wizard_state(
    session_id: str, container: CourseFormContainer = Depends(get_wizard)
):
    return _state(container, session_id)


@router.patch("/{session_id}/course", response_model=WizardStateResponse)
async def update_course_fields(
    session_id: str,
    fields: Dict[str, Any],
    container: CourseFormContainer = Depends(get_wizard),
):
    try:
        container.course_info.update(**fields)
    except FormValidationError as e:
        raise HTTPException(422, {"field": e.field, "message": e.message})
    return _state(container, session_id)


@router.put("/{session_id}/tees", response_model=WizardStateResponse)
async def set_tee_sets(
    session_id: str,
    tee_sets: List[TeeSet],
    container: CourseFormContainer = Depends(get_wizard),
):
    """Replace the in-memory tee set list (saved on the next submit)."""
    container.tee_boxes.tee_sets = tee_sets
    return _state(container, session_id)


@router.put("/{session_id}/holes", response_model=WizardStateResponse)
async def set_holes(
    session_id: str,
    holes: List[Hole],
    container: CourseFormContainer = Depends(get_wizard),
):
    try:
        check_unique_numbers(holes)
    except ValueError as e:
        raise HTTPException(422, str(e))
    container.scorecard.holes = sorted(holes, key=lambda h: h.number)
    container.scorecard.unsaved_changes = True
    return _state(container, session_id)


@router.post("/{session_id}/submit", response_model=WizardStateResponse)
async def submit_step(
    session_id: str,
    container: CourseFormContainer = Depends(get_wizard),
    sessions: WizardSessionStore = Depends(get_wizard_sessions),
):
    """Save the active step and advance. Failures come back in `error`.

    The session ends once the scorecard is saved; the response carries the
    final state and the redirect.
    """
    if container.loading:
        raise HTTPException(409, "A save is already in progress")
    await container.handle_submit()
    state = _state(container, session_id)
    if container.success:
        sessions.delete(session_id)
    return state


@router.post("/{session_id}/back", response_model=WizardStateResponse)
async def previous_step(
    session_id: str, container: CourseFormContainer = Depends(get_wizard)
):
    container.back()
    return _state(container, session_id)


@router.post("/{session_id}/extract", response_model=WizardExtractResponse)
async def extract_into_wizard(
    session_id: str,
    file: Optional[UploadFile] = File(None),
    extract_type: Optional[str] = Form(None, alias="extractType"),
    tee_colors: Optional[str] = Form(None, alias="teeColors"),
    container: CourseFormContainer = Depends(get_wizard),
    extractor: Callable = Depends(get_extractor),
):
    """Fill the active step from a scorecard image. Form state is untouched on failure."""
    target = parse_target(extract_type) if extract_type else target_for_step(container.active_step)
    colors = parse_tee_colors(tee_colors) or [
        t.color or t.name for t in container.tee_sets
    ]
    result = await run_extraction(file, target, colors, extractor)
    if result.success:
        container.apply_extraction(target, result.data)

    body = WizardExtractResponse(
        extraction=ExtractionResponse(
            success=result.success, data=result.data, error=result.error
        ),
        state=_state(container, session_id),
    )
    if not result.success:
        return JSONResponse(
            status_code=result.status_code or 422, content=body.model_dump(mode="json")
        )
    return body


@router.delete("/{session_id}", status_code=204)
async def end_wizard(
    session_id: str,
    sessions: WizardSessionStore = Depends(get_wizard_sessions),
):
    if not sessions.delete(session_id):
        raise HTTPException(404, "Wizard session not found")
