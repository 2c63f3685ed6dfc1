from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import auth
import models
from auth import Actor
from database import Base, build_engine, get_db
from enums import EventStatus, Role
from main import app


class Factory:
    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def user(self, role: Role, full_name: str | None = None) -> models.User:
        n = self._next()
        user = models.User(
            email=f"user{n}@college.edu",
            full_name=full_name or f"User {n}",
            role=role.value,
            is_verified=True,
        )
        self.db.add(user)
        self.db.flush()
        return user

    def student(self, full_name: str | None = None) -> models.Student:
        user = self.user(Role.STUDENT, full_name)
        student = models.Student(user_id=user.id)
        self.db.add(student)
        self.db.commit()
        return student

    def admin(self) -> models.Admin:
        user = self.user(Role.ADMIN, "Admin User")
        admin = models.Admin(user_id=user.id, college_name="IIT Bombay")
        self.db.add(admin)
        self.db.commit()
        return admin

    def organizer(self, approved: bool = True) -> models.Organizer:
        user = self.user(Role.ORGANIZER, "Event Lead")
        organizer = models.Organizer(user_id=user.id, college_name="IIT Bombay", is_approved=approved)
        self.db.add(organizer)
        self.db.commit()
        return organizer

    def event(
        self,
        organizer: models.Organizer,
        *,
        capacity: int = 500,
        price: int = 0,
        status: EventStatus = EventStatus.APPROVED,
    ) -> models.Event:
        event = models.Event(
            title=f"Event {self._next()}",
            description="Demo event",
            date=datetime(2030, 10, 15, 9, 0),
            venue="Main Auditorium",
            category="Technical",
            capacity=capacity,
            price=price,
            status=status.value,
            organizer_id=organizer.id,
        )
        self.db.add(event)
        self.db.commit()
        return event


def actor_for(profile) -> Actor:
    user = profile.user if hasattr(profile, "user") else profile
    return Actor(user_id=user.id, role=Role(user.role))


def auth_headers(profile) -> dict:
    user = profile.user if hasattr(profile, "user") else profile
    return {"Authorization": f"Bearer {auth.issue_token(user)}"}


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def file_sessions(tmp_path):
    """Session factory over an on-disk database so each session gets its own connection."""
    engine = build_engine(f"sqlite:///{tmp_path / 'collevento-test.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
