class DomainError(Exception):
    """Base exception for business rule violations.

    ``status_code`` is the HTTP status the API answers with; the class name is
    echoed back as the machine readable error kind.
    """

    status_code = 400
    default_message = "Request rejected"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def detail(self) -> str:
        return str(self)


class NotFound(DomainError):
    status_code = 404
    default_message = "Not found"


class EventNotFound(NotFound):
    default_message = "Event not found"


class TicketNotFound(NotFound):
    default_message = "Ticket not found"


class BookingNotFound(NotFound):
    default_message = "Booking not found"


class OrganizerNotFound(NotFound):
    default_message = "Organizer not found"


class TaskNotFound(NotFound):
    default_message = "Task not found"


class Unauthenticated(DomainError):
    """Raised when the caller cannot be identified."""

    status_code = 401
    default_message = "Invalid or missing token"


class InvalidOTP(Unauthenticated):
    default_message = "Invalid or expired OTP"


class Unauthorized(DomainError):
    """Raised when the caller's role or ownership does not allow the action."""

    status_code = 403
    default_message = "Not allowed"


class NotAStudent(Unauthorized):
    default_message = "Not a student"


class OrganizerNotApproved(Unauthorized):
    default_message = "Organizer not approved"


class InvalidState(DomainError):
    status_code = 409
    default_message = "Invalid state"


class AlreadyScanned(InvalidState):
    default_message = "Ticket already scanned"


class CapacityExceeded(InvalidState):
    default_message = "Event is sold out"


class EventNotOpen(InvalidState):
    default_message = "Event is not open for booking"


class OrganizerCodeUsed(InvalidState):
    default_message = "Organizer code already used"


class UpstreamFailure(DomainError):
    status_code = 502
    default_message = "Upstream service unavailable"
