"""Booking issuance: one checkout creates one booking and exactly one ticket."""
import logging
import secrets

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
from auth import Actor, get_student
from enums import BookingStatus, EventStatus
from exceptions import CapacityExceeded, EventNotFound, EventNotOpen

logger = logging.getLogger(__name__)


def generate_ticket_code() -> str:
    return f"TKT-{secrets.token_urlsafe(24)}"


def count_confirmed_bookings(db: Session, event_id: str) -> int:
    return (
        db.query(models.Booking)
        .filter(models.Booking.event_id == event_id, models.Booking.status == BookingStatus.PAID.value)
        .count()
    )


def create_booking(
    db: Session,
    actor: Actor,
    event_id: str,
    *,
    enforce_capacity: bool = True,
) -> tuple[models.Booking, models.Ticket]:
    """Book ``event_id`` for the calling student and mint its ticket.

    All validation happens before the first write. The booking and the ticket
    are committed together; if the ticket insert fails the booking is rolled
    back with it.
    """
    student = get_student(actor, db)

    event = db.query(models.Event).filter(models.Event.id == event_id).first()
    if not event:
        raise EventNotFound()
    if event.status != EventStatus.APPROVED.value:
        raise EventNotOpen()
    if enforce_capacity and count_confirmed_bookings(db, event.id) >= event.capacity:
        raise CapacityExceeded(f"Event {event.title!r} has reached its capacity of {event.capacity}")

    booking = models.Booking(
        student_id=student.id,
        event_id=event.id,
        status=BookingStatus.PAID.value,
    )
    db.add(booking)
    try:
        db.flush()
        ticket = models.Ticket(booking_id=booking.id, qr_code=generate_ticket_code())
        db.add(ticket)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Booking for event %s by student %s failed; rolled back", event_id, student.id)
        raise

    db.refresh(booking)
    db.refresh(ticket)
    logger.info("Issued ticket %s for booking %s (event %s)", ticket.id, booking.id, event.id)
    return booking, ticket


def list_student_bookings(db: Session, actor: Actor) -> list[models.Booking]:
    student = get_student(actor, db)
    return (
        db.query(models.Booking)
        .filter(models.Booking.student_id == student.id)
        .order_by(models.Booking.created_at.desc())
        .all()
    )
