from functools import partial
from typing import Callable

from fastapi import Depends, HTTPException, Request

from database.db_manager import DatabaseManager
from llm.scorecard_extractor import extract_course_data
from wizard.container import CourseFormContainer
from wizard.sessions import WizardSessionStore
from api.config import Settings, get_settings


def get_db(request: Request) -> DatabaseManager:
    """FastAPI dependency that provides the DatabaseManager."""
    return request.app.state.db_manager


def get_wizard_sessions(request: Request) -> WizardSessionStore:
    return request.app.state.wizard_sessions


def get_extractor(settings: Settings = Depends(get_settings)) -> Callable:
    """The image extraction callable, bound to the configured key and model (overridden in tests)."""
    return partial(
        extract_course_data,
        api_key=settings.google_api_key,
        model=settings.gemini_model,
    )


def get_wizard(
    session_id: str,
    sessions: WizardSessionStore = Depends(get_wizard_sessions),
) -> CourseFormContainer:
    container = sessions.get(session_id)
    if container is None:
        raise HTTPException(404, "Wizard session not found")
    return container
