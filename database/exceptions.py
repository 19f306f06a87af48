class DatabaseError(Exception):
    """Base for store failures. status_code is what the API answers with."""
    status_code = 500


class NotFoundError(DatabaseError):
    """Course, tee set, series, event or profile does not exist."""
    status_code = 404


class DuplicateError(DatabaseError):
    """Unique constraint violation (duplicate hole number, repeat registration...)."""
    status_code = 409


class IntegrityError(DatabaseError):
    """Write rejected by a business rule or a foreign key/check constraint."""
    status_code = 400


class SchemaCacheError(DatabaseError):
    """Table structure still not visible after refreshing the schema cache."""
    status_code = 503
