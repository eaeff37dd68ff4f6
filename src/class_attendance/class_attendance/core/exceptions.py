class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a session, timetable entry or student does not exist."""


class AuthorizationError(DomainError):
    """Raised when a user is neither the instructor nor an assistant for an action."""


class ConflictError(DomainError):
    """Raised when an action collides with existing state."""


class DuplicateActiveSessionError(ConflictError):
    """An active session already exists for the same entry and date."""


class InstructorSessionExistsError(ConflictError):
    """An assistant tried to open a session while the instructor's one is active."""


class DuplicateAssignmentError(ConflictError):
    """An instructor or assistant assignment would break its uniqueness rule."""


class SessionNotActiveError(ConflictError):
    """A closed or canceled session cannot change any more."""


class InvalidQRPayloadError(DomainError):
    """Scanned payload does not belong to the session."""


class NotEnrolledError(DomainError):
    """Student is not a member of the entry's cohort."""


class AuthenticationError(DomainError):
    """Raised when the caller identity headers are missing or malformed."""
