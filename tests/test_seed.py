import models
import seed
from enums import EventStatus, Role


def test_seed_loads_demo_data(db):
    seeded = seed.seed(db)

    events = db.query(models.Event).all()
    assert sorted((e.title, e.capacity, e.price) for e in events) == [
        ("Rhythm & Beats", 1000, 150),
        ("Startup Pitch Fest", 200, 0),
        ("TechX 2024", 500, 299),
    ]
    assert {e.status for e in events} == {EventStatus.APPROVED.value}
    assert seeded["organizer"].is_approved is True
    assert {u.role for u in db.query(models.User)} == {Role.ADMIN.value, Role.ORGANIZER.value, Role.STUDENT.value}


def test_seed_is_repeatable(db):
    seed.seed(db)
    seed.seed(db)

    assert db.query(models.Event).count() == 3
    assert db.query(models.User).count() == 3
