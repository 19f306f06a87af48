from typing import List, Optional, Protocol, Sequence

from models import Course, Hole, TeeSet, TeeSetDistance


class CourseStore(Protocol):
    """Persistence the course wizard needs.

    CourseRepositoryDB satisfies this; tests use an in-memory fake.
    Any class with matching method signatures satisfies this protocol.
    """

    async def fetch_course(self, course_id: str) -> Optional[Course]:
        ...

    async def fetch_tee_sets(self, course_id: str) -> List[TeeSet]:
        ...

    async def fetch_holes(self, course_id: str) -> List[Hole]:
        """Holes ordered by number, each with its distances map filled."""
        ...

    async def fetch_distances(self, hole_ids: Sequence[str]) -> List[TeeSetDistance]:
        ...

    async def save_course(self, course: Course, course_id: Optional[str] = None) -> str:
        """Insert (no course_id) or update; returns the course id."""
        ...

    async def save_tee_sets(self, course_id: str, tee_sets: List[TeeSet]) -> List[TeeSet]:
        """Make the course's tee sets exactly tee_sets, keyed by their ids.

        Distances of tee sets that stay on the list are kept.
        """
        ...

    async def save_holes(self, course_id: str, holes: List[Hole]) -> List[Hole]:
        """Replace the course's holes; returns them with their stored ids."""
        ...

    async def save_distances(self, course_id: str, distances: List[TeeSetDistance]) -> int:
        ...

    async def save_scorecard(self, course_id: str, holes: List[Hole]) -> List[Hole]:
        """Replace holes and their distances maps as one unit; nothing is written on failure."""
        ...
