"""Attendance scanning.

A ticket moves from unscanned to scanned exactly once. The transition is a
conditional UPDATE on ``is_scanned`` so two concurrent scans of the same code
cannot both win; the loser sees zero affected rows and gets AlreadyScanned.
The attendance row is written in the same transaction as the flag.
"""
import logging
from datetime import datetime

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
from auth import Actor, get_organizer
from exceptions import AlreadyScanned, TicketNotFound, Unauthorized

logger = logging.getLogger(__name__)


def find_ticket(db: Session, ticket_code: str) -> models.Ticket | None:
    # organizers may key in either the printed ticket id or the QR payload
    return (
        db.query(models.Ticket)
        .filter(or_(models.Ticket.qr_code == ticket_code, models.Ticket.id == ticket_code))
        .first()
    )


def mark_scanned(db: Session, ticket_id: str, scanned_at: datetime) -> bool:
    """Flip ``is_scanned`` if nobody else has. Returns False when the ticket was already scanned."""
    result = db.execute(
        update(models.Ticket)
        .where(models.Ticket.id == ticket_id, models.Ticket.is_scanned.is_(False))
        .values(is_scanned=True, scanned_at=scanned_at)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def scan_ticket(db: Session, actor: Actor, ticket_code: str) -> tuple[models.Ticket, models.Student]:
    organizer = get_organizer(actor, db)

    ticket = find_ticket(db, ticket_code)
    if not ticket:
        raise TicketNotFound()
    booking = ticket.booking
    if booking.event.organizer_id != organizer.id:
        raise Unauthorized("Ticket belongs to another organizer's event")
    if ticket.is_scanned:
        raise AlreadyScanned()

    now = datetime.utcnow()
    try:
        if not mark_scanned(db, ticket.id, now):
            db.rollback()
            raise AlreadyScanned()
        db.add(models.Attendance(student_id=booking.student_id, event_id=booking.event_id))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Scan of ticket %s failed; rolled back", ticket.id)
        raise

    db.refresh(ticket)
    logger.info("Ticket %s scanned for event %s by organizer %s", ticket.id, booking.event_id, organizer.id)
    return ticket, booking.student
