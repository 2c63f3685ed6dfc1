from dataclasses import dataclass
from datetime import datetime, timedelta

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

import config
import models
from database import get_db
from enums import Role
from exceptions import NotAStudent, OrganizerNotApproved, Unauthenticated, Unauthorized

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of an operation."""

    user_id: str
    role: Role


def create_access_token(data: dict, expires_delta: timedelta | None = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(hours=config.ACCESS_TOKEN_HOURS)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def issue_token(user: models.User) -> str:
    return create_access_token({"sub": user.id, "role": user.role})


def resolve_actor(token: str | None, db: Session) -> Actor:
    if not token:
        raise Unauthenticated("Missing token")
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError as exc:
        raise Unauthenticated("Token expired or invalid") from exc
    user_id: str | None = payload.get("sub")
    if not user_id:
        raise Unauthenticated("Token expired or invalid")
    # the stored role wins over the claim so promotions apply immediately
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise Unauthenticated("Unknown user")
    return Actor(user_id=user.id, role=Role(user.role))


def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> Actor:
    return resolve_actor(credentials.credentials if credentials else None, db)


def authorize(actor: Actor, *allowed: Role) -> None:
    if actor.role not in allowed:
        raise Unauthorized(f"Requires role {' or '.join(role.value for role in allowed)}")


def require_roles(*allowed: Role):
    def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        authorize(actor, *allowed)
        return actor

    return dependency


def get_student(actor: Actor, db: Session) -> models.Student:
    if actor.role != Role.STUDENT:
        raise NotAStudent()
    student = db.query(models.Student).filter(models.Student.user_id == actor.user_id).first()
    if not student:
        raise NotAStudent()
    return student


def get_organizer(actor: Actor, db: Session, *, approved: bool = False) -> models.Organizer:
    authorize(actor, Role.ORGANIZER)
    organizer = db.query(models.Organizer).filter(models.Organizer.user_id == actor.user_id).first()
    if not organizer:
        raise Unauthorized("Not an organizer")
    if approved and not organizer.is_approved:
        raise OrganizerNotApproved()
    return organizer


def get_admin(actor: Actor, db: Session) -> models.Admin:
    authorize(actor, Role.ADMIN)
    admin = db.query(models.Admin).filter(models.Admin.user_id == actor.user_id).first()
    if not admin:
        raise Unauthorized("Not an admin")
    return admin
