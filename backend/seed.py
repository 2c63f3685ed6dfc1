"""Reset the database and load demo data.

Run with ``python seed.py`` from the ``backend`` directory.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

import models
from database import SessionLocal, engine
from enums import EventStatus, Role

logger = logging.getLogger(__name__)

DEMO_EVENTS = [
    {
        "title": "TechX 2024",
        "description": "The ultimate technical symposium featuring hackathons, coding challenges, and tech talks from industry leaders.",
        "date": datetime(2024, 10, 15, 9, 0),
        "venue": "Main Auditorium",
        "category": "Technical",
        "capacity": 500,
        "price": 299,
        "banner_url": "https://picsum.photos/seed/tech/1200/600",
    },
    {
        "title": "Rhythm & Beats",
        "description": "A grand cultural night showcasing the best of music, dance, and drama from across the campus.",
        "date": datetime(2024, 10, 20, 18, 0),
        "venue": "Open Air Theater",
        "category": "Cultural",
        "capacity": 1000,
        "price": 150,
        "banner_url": "https://picsum.photos/seed/dance/1200/600",
    },
    {
        "title": "Startup Pitch Fest",
        "description": "Pitch your ideas to real investors and win seed funding for your college startup.",
        "date": datetime(2024, 11, 5, 10, 0),
        "venue": "Seminar Hall 1",
        "category": "Entrepreneurship",
        "capacity": 200,
        "price": 0,
        "banner_url": "https://picsum.photos/seed/startup/1200/600",
    },
]

# children before parents so foreign keys never dangle
WIPE_ORDER = [
    models.ChatMessage,
    models.Attendance,
    models.Ticket,
    models.Booking,
    models.Event,
    models.Task,
    models.OrganizerCode,
    models.Organizer,
    models.Student,
    models.Admin,
    models.OTPLog,
    models.User,
]


def seed(db: Session) -> dict:
    for model in WIPE_ORDER:
        db.query(model).delete()

    college = "IIT Bombay"
    admin_user = models.User(
        email="admin@college.edu", full_name="Admin User", college_name=college,
        role=Role.ADMIN.value, is_verified=True,
    )
    organizer_user = models.User(
        email="organizer@college.edu", full_name="Event Lead", college_name=college,
        role=Role.ORGANIZER.value, is_verified=True,
    )
    student_user = models.User(
        email="student@college.edu", phone="9999999999", full_name="Demo Student", college_name=college,
        role=Role.STUDENT.value, is_verified=True,
    )
    db.add_all([admin_user, organizer_user, student_user])
    db.flush()

    admin = models.Admin(user_id=admin_user.id, college_name=college)
    db.add(admin)
    db.flush()
    organizer = models.Organizer(user_id=organizer_user.id, college_name=college, is_approved=True, admin_id=admin.id)
    student = models.Student(user_id=student_user.id, college_name=college)
    db.add_all([organizer, student])
    db.flush()

    events = [
        models.Event(**data, status=EventStatus.APPROVED.value, organizer_id=organizer.id)
        for data in DEMO_EVENTS
    ]
    db.add_all(events)
    db.commit()
    logger.info("Seeded %d events", len(events))
    return {"admin": admin, "organizer": organizer, "student": student, "events": events}


def main():
    logging.basicConfig(level=logging.INFO)
    models.Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        logger.info("Seeding data...")
        seed(db)
        logger.info("Seeding completed!")
    finally:
        db.close()


if __name__ == "__main__":
    main()
