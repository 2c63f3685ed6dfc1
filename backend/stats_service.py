from sqlalchemy import func
from sqlalchemy.orm import Session

import models
from enums import RevenueMode


def attendance_rate(attended: int, registrations: int) -> float:
    if registrations <= 0:
        return 0.0
    return min(100.0, max(0.0, attended / registrations * 100))


def organizer_stats(
    db: Session,
    organizer_id: str,
    *,
    revenue_mode: RevenueMode = RevenueMode.EVENT_PRICE,
    flat_ticket_price: int = 100,
) -> dict:
    """Read-only summary over the organizer's events, bookings and attendance."""
    total_events = (
        db.query(func.count(models.Event.id)).filter(models.Event.organizer_id == organizer_id).scalar() or 0
    )
    total_registrations = (
        db.query(func.count(models.Booking.id))
        .select_from(models.Booking)
        .join(models.Event, models.Event.id == models.Booking.event_id)
        .filter(models.Event.organizer_id == organizer_id)
        .scalar()
        or 0
    )
    attended = (
        db.query(func.count(models.Attendance.id))
        .select_from(models.Attendance)
        .join(models.Event, models.Event.id == models.Attendance.event_id)
        .filter(models.Event.organizer_id == organizer_id)
        .scalar()
        or 0
    )

    if RevenueMode(revenue_mode) is RevenueMode.FLAT:
        total_revenue = total_registrations * flat_ticket_price
    else:
        total_revenue = (
            db.query(func.coalesce(func.sum(models.Event.price), 0))
            .select_from(models.Event)
            .join(models.Booking, models.Booking.event_id == models.Event.id)
            .filter(models.Event.organizer_id == organizer_id)
            .scalar()
            or 0
        )

    return {
        "total_events": total_events,
        "total_registrations": total_registrations,
        "total_revenue": int(total_revenue),
        "attendance_rate": attendance_rate(attended, total_registrations),
    }
