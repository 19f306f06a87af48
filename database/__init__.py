from database.connection import DatabasePool, db
from database.db_manager import DatabaseManager
from database.repositories import (
    CourseRepositoryDB,
    EquipmentRepositoryDB,
    EventRepositoryDB,
    ProfileRepositoryDB,
    SeriesRepositoryDB,
)
from database.exceptions import (
    DatabaseError,
    DuplicateError,
    IntegrityError,
    NotFoundError,
    SchemaCacheError,
)

__all__ = [
    "DatabasePool",
    "db",
    "DatabaseManager",
    "CourseRepositoryDB",
    "EquipmentRepositoryDB",
    "EventRepositoryDB",
    "ProfileRepositoryDB",
    "SeriesRepositoryDB",
    "DatabaseError",
    "DuplicateError",
    "IntegrityError",
    "NotFoundError",
    "SchemaCacheError",
]
