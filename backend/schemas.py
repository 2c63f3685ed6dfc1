from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

from enums import EventStatus, Role, TaskStatus


class UserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    full_name: Optional[str] = None
    college_name: Optional[str] = None
    role: Role
    is_verified: bool

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse


class OTPSendRequest(BaseModel):
    phone: str = Field(min_length=6)


class OTPVerifyRequest(BaseModel):
    phone: str
    otp: str


class OrganizerRegisterRequest(BaseModel):
    code: str
    full_name: Optional[str] = None
    email: Optional[str] = None


class EventBase(BaseModel):
    title: str
    description: Optional[str] = None
    date: datetime
    venue: str
    category: Optional[str] = None
    capacity: int = Field(gt=0)
    price: int = Field(default=0, ge=0)
    banner_url: Optional[str] = None


class EventCreate(EventBase):
    pass


class Event(EventBase):
    id: str
    status: EventStatus
    organizer_id: str

    model_config = ConfigDict(from_attributes=True)


class EventWithCount(Event):
    booking_count: int = 0


class EventStatusUpdate(BaseModel):
    status: EventStatus


class OrganizerCodeRequest(BaseModel):
    college_name: str


class OrganizerCodeResponse(BaseModel):
    id: str
    code: str
    college_name: str
    is_used: bool

    model_config = ConfigDict(from_attributes=True)


class Organizer(BaseModel):
    id: str
    user_id: str
    college_name: Optional[str] = None
    is_approved: bool
    admin_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AdminResponse(BaseModel):
    id: str
    college_name: Optional[str] = None
    user: UserResponse

    model_config = ConfigDict(from_attributes=True)


class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    deadline: datetime
    organizer_id: str


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class Task(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    status: TaskStatus
    organizer_id: str
    admin_id: str
    created_at: datetime
    admin: Optional[AdminResponse] = None

    model_config = ConfigDict(from_attributes=True)


class OrganizerProfileResponse(BaseModel):
    organizer: Organizer
    tasks: List[Task]
    admin: Optional[AdminResponse] = None


class BookingCreate(BaseModel):
    event_id: str


class Booking(BaseModel):
    id: str
    student_id: str
    event_id: str
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Ticket(BaseModel):
    id: str
    booking_id: str
    qr_code: str
    is_scanned: bool
    scanned_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BookingResponse(BaseModel):
    booking: Booking
    ticket: Ticket


class BookingWithTicket(Booking):
    ticket: Optional[Ticket] = None
    event: Event


class ScanRequest(BaseModel):
    ticket_code: str


class Student(BaseModel):
    id: str
    user_id: str
    full_name: Optional[str] = None


class ScanResponse(BaseModel):
    success: bool
    student: Student
    event_id: str
    scanned_at: datetime


class OrganizerStatsResponse(BaseModel):
    total_events: int
    total_registrations: int
    total_revenue: int
    attendance_rate: float


class UploadResponse(BaseModel):
    url: str


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)


class ChatResponse(BaseModel):
    message: str
