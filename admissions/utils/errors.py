# utils/errors.py
"""
Domain error types and database error classification.

Services raise AppError with a machine-readable code; the HTTP layer turns it
into a JSON error envelope. Driver exceptions are classified into a closed set
of kinds so callers never inspect driver-specific attributes themselves.
"""

import enum

from sqlalchemy.exc import DBAPIError, IntegrityError


class ErrorCode:
    """Machine-readable error codes exposed to API clients."""
    APPLICATION_NOT_FOUND = 'APPLICATION_NOT_FOUND'
    APPLICATION_ALREADY_REVIEWED = 'APPLICATION_ALREADY_REVIEWED'
    VALIDATION_ERROR = 'VALIDATION_ERROR'
    COHORT_CAPACITY_EXCEEDED = 'COHORT_CAPACITY_EXCEEDED'
    COHORT_NOT_FOUND = 'COHORT_NOT_FOUND'
    DUPLICATE_APPLICATION = 'DUPLICATE_APPLICATION'
    NOT_FOUND = 'NOT_FOUND'
    UNAUTHORIZED = 'UNAUTHORIZED'
    FORBIDDEN = 'FORBIDDEN'
    INTERNAL_ERROR = 'INTERNAL_ERROR'


_DEFAULT_CODE_BY_STATUS = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.VALIDATION_ERROR,
    422: ErrorCode.VALIDATION_ERROR,
}


class AppError(Exception):
    """
    Error raised by services for expected failure conditions.

    Args:
        status_code: HTTP-equivalent status (404, 409, ...)
        code: Value from ErrorCode; derived from status_code when omitted
        message: Human-readable message
        details: Optional structured context
    """

    def __init__(self, status_code, code=None, message=None, details=None):
        self.status_code = status_code
        self.code = code or _DEFAULT_CODE_BY_STATUS.get(status_code, ErrorCode.INTERNAL_ERROR)
        self.message = message or self.code
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        error = {'code': self.code, 'message': self.message}
        if self.details is not None:
            error['details'] = self.details
        return error

    def __repr__(self):
        return f'<AppError {self.status_code} {self.code}: {self.message}>'


class DbErrorKind(enum.Enum):
    """Semantic kinds of database errors."""
    UNIQUE_VIOLATION = 'unique_violation'
    FOREIGN_KEY_VIOLATION = 'foreign_key_violation'
    NOT_NULL_VIOLATION = 'not_null_violation'
    OTHER = 'other'


# PostgreSQL SQLSTATE codes
_SQLSTATE_KINDS = {
    '23505': DbErrorKind.UNIQUE_VIOLATION,
    '23503': DbErrorKind.FOREIGN_KEY_VIOLATION,
    '23502': DbErrorKind.NOT_NULL_VIOLATION,
}

# SQLite reports constraint failures only through the message text
_SQLITE_MESSAGE_KINDS = (
    ('unique constraint failed', DbErrorKind.UNIQUE_VIOLATION),
    ('foreign key constraint failed', DbErrorKind.FOREIGN_KEY_VIOLATION),
    ('not null constraint failed', DbErrorKind.NOT_NULL_VIOLATION),
)


def _sqlstate(orig):
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    return getattr(orig, 'pgcode', None) or getattr(orig, 'sqlstate', None)


def classify_db_error(error):
    """
    Map a database exception to a DbErrorKind.

    Accepts SQLAlchemy-wrapped errors (IntegrityError, DBAPIError) as well as
    raw driver exceptions. Anything unrecognized is DbErrorKind.OTHER.
    """
    orig = error.orig if isinstance(error, DBAPIError) else error

    state = _sqlstate(orig)
    if state:
        return _SQLSTATE_KINDS.get(state, DbErrorKind.OTHER)

    if isinstance(error, IntegrityError) or type(orig).__name__ == 'IntegrityError':
        message = str(orig).lower()
        for fragment, kind in _SQLITE_MESSAGE_KINDS:
            if fragment in message:
                return kind

    return DbErrorKind.OTHER


def is_unique_violation(error):
    return classify_db_error(error) is DbErrorKind.UNIQUE_VIOLATION
