"""Course API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from database.db_manager import DatabaseManager
from api.dependencies import get_db
from api.schemas import (
    CourseActiveRequest,
    CourseDetailResponse,
    CourseInput,
    CourseSummaryResponse,
)
from models import Course, Hole, TeeSet
from models.hole import check_unique_numbers

router = APIRouter()


def _summarize_course(c: Course) -> CourseSummaryResponse:
    return CourseSummaryResponse(
        id=c.id,
        name=c.name,
        location=c.display_location,
        par=c.par,
        holes=c.holes,
        is_active=c.is_active,
    )


async def _require_course(db: DatabaseManager, course_id: str) -> Course:
    course = await db.courses.fetch_course(course_id)
    if not course:
        raise HTTPException(404, "Course not found")
    return course


@router.get("", response_model=List[CourseSummaryResponse])
async def list_courses(
    active_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: DatabaseManager = Depends(get_db),
):
    courses = await db.courses.list_courses(active_only=active_only, limit=limit, offset=offset)
    return [_summarize_course(c) for c in courses]


@router.get("/search", response_model=List[CourseSummaryResponse])
async def search_courses(
    q: str = Query(..., min_length=1),
    db: DatabaseManager = Depends(get_db),
):
    courses = await db.courses.search_courses(q)
    return [_summarize_course(c) for c in courses]


@router.get("/{course_id}", response_model=CourseDetailResponse)
async def get_course(course_id: str, db: DatabaseManager = Depends(get_db)):
    """Course with its tee sets and holes (holes carry per-tee distances)."""
    course = await _require_course(db, course_id)
    return CourseDetailResponse(
        course=course,
        tee_sets=await db.courses.fetch_tee_sets(course_id),
        holes=await db.courses.fetch_holes(course_id),
    )


@router.post("", status_code=201, response_model=Course)
async def create_course(req: CourseInput, db: DatabaseManager = Depends(get_db)):
    return await db.courses.create_course(req.to_course())


@router.put("/{course_id}", response_model=Course)
async def update_course(
    course_id: str,
    req: CourseInput,
    db: DatabaseManager = Depends(get_db),
):
    return await db.courses.update_course(course_id, req.to_course())


@router.patch("/{course_id}/active", response_model=Course)
async def set_course_active(
    course_id: str,
    req: CourseActiveRequest,
    db: DatabaseManager = Depends(get_db),
):
    """Enable/disable a course for new events."""
    return await db.courses.set_course_active(course_id, req.is_active)


@router.delete("/{course_id}", status_code=204)
async def delete_course(course_id: str, db: DatabaseManager = Depends(get_db)):
    if not await db.courses.delete_course(course_id):
        raise HTTPException(404, "Course not found")


@router.get("/{course_id}/tees", response_model=List[TeeSet])
async def get_tee_sets(course_id: str, db: DatabaseManager = Depends(get_db)):
    await _require_course(db, course_id)
    return await db.courses.fetch_tee_sets(course_id)


@router.put("/{course_id}/tees", response_model=List[TeeSet])
async def replace_tee_sets(
    course_id: str,
    tee_sets: List[TeeSet],
    db: DatabaseManager = Depends(get_db),
):
    """Replace the course's tee sets with exactly this list."""
    await _require_course(db, course_id)
    return await db.courses.save_tee_sets(course_id, tee_sets)


@router.get("/{course_id}/holes", response_model=List[Hole])
async def get_holes(course_id: str, db: DatabaseManager = Depends(get_db)):
    await _require_course(db, course_id)
    return await db.courses.fetch_holes(course_id)


@router.put("/{course_id}/holes", response_model=List[Hole])
async def replace_holes(
    course_id: str,
    holes: List[Hole],
    db: DatabaseManager = Depends(get_db),
):
    """Replace the course's holes; each hole's distances map is keyed by tee set id."""
    await _require_course(db, course_id)
    try:
        check_unique_numbers(holes)
    except ValueError as e:
        raise HTTPException(422, str(e))

    return await db.courses.save_scorecard(course_id, holes)
