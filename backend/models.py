import uuid
from sqlalchemy import Boolean, CheckConstraint, Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base
from enums import BookingStatus, EventStatus, Role, TaskStatus


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, unique=True, nullable=True)
    phone = Column(String, unique=True, nullable=True, index=True)
    full_name = Column(String, nullable=True)
    college_name = Column(String, nullable=True)
    role = Column(String, default=Role.GUEST.value)  # STUDENT, ORGANIZER, ADMIN, GUEST
    is_verified = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    student = relationship("Student", back_populates="user", uselist=False)
    organizer = relationship("Organizer", back_populates="user", uselist=False)
    admin = relationship("Admin", back_populates="user", uselist=False)


class Student(Base):
    __tablename__ = "students"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"), unique=True, index=True)
    college_name = Column(String, nullable=True)

    user = relationship("User", back_populates="student")


class Admin(Base):
    __tablename__ = "admins"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"), unique=True, index=True)
    college_name = Column(String, nullable=True)

    user = relationship("User", back_populates="admin")


class Organizer(Base):
    __tablename__ = "organizers"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"), unique=True, index=True)
    college_name = Column(String, nullable=True)
    is_approved = Column(Boolean, default=False)
    admin_id = Column(String, ForeignKey("admins.id"), nullable=True)

    user = relationship("User", back_populates="organizer")
    tasks = relationship("Task", back_populates="organizer", order_by="Task.created_at.desc()")


class OrganizerCode(Base):
    __tablename__ = "organizer_codes"

    id = Column(String, primary_key=True, default=new_id)
    code = Column(String, unique=True, index=True)
    college_name = Column(String)
    admin_id = Column(String, ForeignKey("admins.id"), nullable=True)
    is_used = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=new_id)
    title = Column(String)
    description = Column(String, nullable=True)
    deadline = Column(DateTime(timezone=True), nullable=True)
    status = Column(String, default=TaskStatus.PENDING.value)  # PENDING, IN_PROGRESS, COMPLETED
    organizer_id = Column(String, ForeignKey("organizers.id"), index=True)
    admin_id = Column(String, ForeignKey("admins.id"), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    organizer = relationship("Organizer", back_populates="tasks")
    admin = relationship("Admin")


class Event(Base):
    __tablename__ = "events"

    id = Column(String, primary_key=True, default=new_id)
    title = Column(String, index=True)
    description = Column(String, nullable=True)
    date = Column(DateTime(timezone=True))
    venue = Column(String)
    category = Column(String, nullable=True)
    capacity = Column(Integer, nullable=False)
    price = Column(Integer, default=0)
    banner_url = Column(String, nullable=True)
    status = Column(String, default=EventStatus.PENDING.value)  # PENDING, APPROVED, REJECTED
    organizer_id = Column(String, ForeignKey("organizers.id"), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    organizer = relationship("Organizer")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_event_capacity_positive"),
    )


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String, primary_key=True, default=new_id)
    student_id = Column(String, ForeignKey("students.id"), index=True)
    event_id = Column(String, ForeignKey("events.id"), index=True)
    status = Column(String, default=BookingStatus.PAID.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    student = relationship("Student")
    event = relationship("Event")
    ticket = relationship("Ticket", back_populates="booking", uselist=False)


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(String, primary_key=True, default=new_id)
    booking_id = Column(String, ForeignKey("bookings.id"), unique=True, index=True)
    qr_code = Column(String, unique=True, index=True, nullable=False)
    is_scanned = Column(Boolean, default=False, nullable=False)
    scanned_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    booking = relationship("Booking", back_populates="ticket")


class Attendance(Base):
    __tablename__ = "attendance"

    id = Column(String, primary_key=True, default=new_id)
    student_id = Column(String, ForeignKey("students.id"), index=True)
    event_id = Column(String, ForeignKey("events.id"), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class OTPLog(Base):
    __tablename__ = "otp_logs"

    id = Column(String, primary_key=True, default=new_id)
    phone = Column(String, index=True)
    otp = Column(String)
    expires_at = Column(DateTime(timezone=True))
    is_used = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"), index=True)
    role = Column(String)  # user, assistant
    message = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
