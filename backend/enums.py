from enum import Enum


class Role(str, Enum):
    """Capabilities a signed-in user can hold."""

    STUDENT = "STUDENT"
    ORGANIZER = "ORGANIZER"
    ADMIN = "ADMIN"
    GUEST = "GUEST"


class EventStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class BookingStatus(str, Enum):
    # Payment is not processed; every checkout lands as PAID.
    PAID = "PAID"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class RevenueMode(str, Enum):
    EVENT_PRICE = "event_price"
    FLAT = "flat"
