from .course_repo import CourseRepositoryDB
from .equipment_repo import EquipmentRepositoryDB
from .event_repo import EventRepositoryDB
from .profile_repo import ProfileRepositoryDB
from .round_repo import RoundRepositoryDB
from .series_repo import SeriesRepositoryDB

__all__ = [
    "CourseRepositoryDB",
    "EquipmentRepositoryDB",
    "EventRepositoryDB",
    "ProfileRepositoryDB",
    "RoundRepositoryDB",
    "SeriesRepositoryDB",
]
