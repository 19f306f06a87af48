import pytest
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from models import Course, Hole, TeeSet, TeeSetDistance
from database.exceptions import DatabaseError


@pytest.fixture
def mock_pool():
    pool = MagicMock()
    conn = AsyncMock()
    conn.transaction = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    return pool, conn


class FakeCourseStore:
    """In-memory CourseStore with call recording and injectable failures."""

    def __init__(self):
        self.courses: Dict[str, Course] = {}
        self.tee_sets: Dict[str, List[TeeSet]] = {}
        self.holes: Dict[str, List[Hole]] = {}
        self.distances: Dict[str, List[TeeSetDistance]] = {}
        self.calls: List[str] = []
        self.fail_on: Dict[str, Exception] = {}
        self.return_no_id = False

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    async def fetch_course(self, course_id: str) -> Optional[Course]:
        self._record("fetch_course")
        return self.courses.get(course_id)

    async def fetch_tee_sets(self, course_id: str) -> List[TeeSet]:
        self._record("fetch_tee_sets")
        return [t.model_copy() for t in self.tee_sets.get(course_id, [])]

    async def fetch_holes(self, course_id: str) -> List[Hole]:
        self._record("fetch_holes")
        by_hole: Dict[str, Dict[str, int]] = {}
        for d in self.distances.get(course_id, []):
            by_hole.setdefault(d.hole_id, {})[d.tee_set_id] = d.length
        holes = [
            h.model_copy(update={"distances": by_hole.get(h.id, {})})
            for h in self.holes.get(course_id, [])
        ]
        return sorted(holes, key=lambda h: h.number)

    async def fetch_distances(self, hole_ids) -> List[TeeSetDistance]:
        self._record("fetch_distances")
        wanted = set(hole_ids)
        return [d for rows in self.distances.values() for d in rows if d.hole_id in wanted]

    async def save_course(self, course: Course, course_id: Optional[str] = None) -> str:
        self._record("save_course")
        if self.return_no_id:
            return ""
        course_id = course_id or str(uuid4())
        self.courses[course_id] = course.model_copy(update={"id": course_id})
        return course_id

    async def save_tee_sets(self, course_id: str, tee_sets: List[TeeSet]) -> List[TeeSet]:
        self._record("save_tee_sets")
        self.tee_sets[course_id] = [
            t.model_copy(update={"course_id": course_id}) for t in tee_sets
        ]
        kept = {t.id for t in tee_sets}
        self.distances[course_id] = [
            d for d in self.distances.get(course_id, []) if d.tee_set_id in kept
        ]
        return await self.fetch_tee_sets(course_id)

    async def save_holes(self, course_id: str, holes: List[Hole]) -> List[Hole]:
        self._record("save_holes")
        self.holes[course_id] = [
            h.model_copy(update={"id": str(uuid4()), "course_id": course_id, "distances": {}})
            for h in holes
        ]
        self.distances.pop(course_id, None)
        return await self.fetch_holes(course_id)

    async def save_distances(self, course_id: str, distances: List[TeeSetDistance]) -> int:
        self._record("save_distances")
        self.distances[course_id] = list(distances)
        return len(distances)

    async def save_scorecard(self, course_id: str, holes: List[Hole]) -> List[Hole]:
        self._record("save_scorecard")
        tee_ids = {t.id for t in self.tee_sets.get(course_id, [])}
        for hole in holes:
            if set(hole.distances) - tee_ids:
                raise DatabaseError(f"Hole {hole.number} names a tee set of another course")
        stored = [
            h.model_copy(update={"id": str(uuid4()), "course_id": course_id, "distances": {}})
            for h in holes
        ]
        self.holes[course_id] = stored
        self.distances[course_id] = [
            TeeSetDistance(hole_id=s.id, tee_set_id=tee_id, length=yards)
            for s, h in zip(stored, holes)
            for tee_id, yards in h.distances.items()
        ]
        return await self.fetch_holes(course_id)


@pytest.fixture
def store():
    return FakeCourseStore()


@pytest.fixture
def store_error():
    return DatabaseError("connection refused")
