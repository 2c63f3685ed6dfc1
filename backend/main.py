from contextlib import asynccontextmanager, suppress
from datetime import datetime, timedelta
import asyncio
import json
import logging
import secrets
import string
from typing import List

from fastapi import Depends, FastAPI, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy import func
from sqlalchemy.orm import Session

import auth
import booking_service
import chat_service
import config
import models
import scan_service
import schemas
import stats_service
import ticket_pdf
from auth import Actor, get_current_actor, require_roles
from database import engine, get_db
from enums import EventStatus, RevenueMode, Role
from exceptions import (
    DomainError,
    EventNotFound,
    InvalidOTP,
    InvalidState,
    NotFound,
    OrganizerCodeUsed,
    OrganizerNotFound,
    TaskNotFound,
    TicketNotFound,
)

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

ORGANIZER_CODE_ALPHABET = string.ascii_uppercase + string.digits


@asynccontextmanager
async def lifespan(_: FastAPI):
    models.Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="Collevento API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

chat_manager = chat_service.ConnectionManager()
assistant = chat_service.build_assistant()


def get_assistant() -> chat_service.ChatAssistant:
    return assistant


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": type(exc).__name__},
    )


@app.get("/")
def read_root():
    return {"message": "Welcome to Collevento API"}


# ------------- Auth -------------

@app.post("/api/auth/guest", response_model=schemas.AuthResponse)
def guest_login(db: Session = Depends(get_db)):
    user = models.User(role=Role.GUEST.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return schemas.AuthResponse(token=auth.issue_token(user), user=user)


@app.post("/api/auth/otp/send")
def send_otp(req: schemas.OTPSendRequest, db: Session = Depends(get_db)):
    otp = f"{secrets.randbelow(900000) + 100000}"
    db.add(
        models.OTPLog(
            phone=req.phone,
            otp=otp,
            expires_at=datetime.utcnow() + timedelta(minutes=config.OTP_TTL_MINUTES),
        )
    )
    db.commit()
    # SMS delivery is mocked; the log line is the delivery channel
    logger.info("[OTP] Sent %s to %s", otp, req.phone)
    return {"message": "OTP sent"}


@app.post("/api/auth/otp/verify", response_model=schemas.AuthResponse)
def verify_otp(req: schemas.OTPVerifyRequest, db: Session = Depends(get_db)):
    log = (
        db.query(models.OTPLog)
        .filter(
            models.OTPLog.phone == req.phone,
            models.OTPLog.otp == req.otp,
            models.OTPLog.is_used.is_(False),
            models.OTPLog.expires_at > datetime.utcnow(),
        )
        .order_by(models.OTPLog.created_at.desc())
        .first()
    )
    if not log:
        raise InvalidOTP()
    log.is_used = True

    user = db.query(models.User).filter(models.User.phone == req.phone).first()
    if not user:
        user = models.User(phone=req.phone, role=Role.STUDENT.value, is_verified=True)
        db.add(user)
        db.flush()
        db.add(models.Student(user_id=user.id))
    db.commit()
    db.refresh(user)
    return schemas.AuthResponse(token=auth.issue_token(user), user=user)


@app.post("/api/auth/organizer/register", response_model=schemas.Organizer)
def register_organizer(
    req: schemas.OrganizerRegisterRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    code = db.query(models.OrganizerCode).filter(models.OrganizerCode.code == req.code.strip().upper()).first()
    if not code:
        raise NotFound("Organizer code not found")
    if code.is_used:
        raise OrganizerCodeUsed()
    if db.query(models.Organizer).filter(models.Organizer.user_id == actor.user_id).first():
        raise InvalidState("Already registered as an organizer")

    user = db.query(models.User).filter(models.User.id == actor.user_id).first()
    user.role = Role.ORGANIZER.value
    user.college_name = code.college_name
    if req.full_name:
        user.full_name = req.full_name
    if req.email:
        user.email = req.email

    organizer = models.Organizer(
        user_id=user.id,
        college_name=code.college_name,
        is_approved=False,
        admin_id=code.admin_id,
    )
    code.is_used = True
    db.add(organizer)
    db.commit()
    db.refresh(organizer)
    logger.info("User %s registered as organizer for %s", user.id, code.college_name)
    return organizer


# ------------- Admin -------------

@app.post("/api/admin/generate-code", response_model=schemas.OrganizerCodeResponse)
def generate_organizer_code(
    req: schemas.OrganizerCodeRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles(Role.ADMIN)),
):
    admin = auth.get_admin(actor, db)
    code = "".join(secrets.choice(ORGANIZER_CODE_ALPHABET) for _ in range(6))
    organizer_code = models.OrganizerCode(code=code, college_name=req.college_name, admin_id=admin.id)
    db.add(organizer_code)
    db.commit()
    db.refresh(organizer_code)
    return organizer_code


@app.post("/api/admin/organizers/{organizer_id}/approve", response_model=schemas.Organizer)
def approve_organizer(
    organizer_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles(Role.ADMIN)),
):
    admin = auth.get_admin(actor, db)
    organizer = db.query(models.Organizer).filter(models.Organizer.id == organizer_id).first()
    if not organizer:
        raise OrganizerNotFound()
    organizer.is_approved = True
    if organizer.admin_id is None:
        organizer.admin_id = admin.id
    organizer.user.is_verified = True
    db.commit()
    db.refresh(organizer)
    return organizer


@app.post("/api/admin/events/{event_id}/status", response_model=schemas.Event)
def update_event_status(
    event_id: str,
    req: schemas.EventStatusUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles(Role.ADMIN)),
):
    event = db.query(models.Event).filter(models.Event.id == event_id).first()
    if not event:
        raise EventNotFound()
    event.status = req.status.value
    db.commit()
    db.refresh(event)
    return event


@app.post("/api/admin/tasks", response_model=schemas.Task)
def assign_task(
    req: schemas.TaskCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles(Role.ADMIN)),
):
    admin = auth.get_admin(actor, db)
    organizer = db.query(models.Organizer).filter(models.Organizer.id == req.organizer_id).first()
    if not organizer:
        raise OrganizerNotFound()
    task = models.Task(
        title=req.title,
        description=req.description,
        deadline=req.deadline,
        organizer_id=organizer.id,
        admin_id=admin.id,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


# ------------- Organizer -------------

@app.get("/api/organizer/tasks", response_model=List[schemas.Task])
def list_organizer_tasks(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    organizer = auth.get_organizer(actor, db)
    return (
        db.query(models.Task)
        .filter(models.Task.organizer_id == organizer.id)
        .order_by(models.Task.created_at.desc())
        .all()
    )


@app.patch("/api/organizer/tasks/{task_id}", response_model=schemas.Task)
def update_task_status(
    task_id: str,
    req: schemas.TaskStatusUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    organizer = auth.get_organizer(actor, db)
    task = (
        db.query(models.Task)
        .filter(models.Task.id == task_id, models.Task.organizer_id == organizer.id)
        .first()
    )
    if not task:
        raise TaskNotFound()
    task.status = req.status.value
    db.commit()
    db.refresh(task)
    return task


@app.get("/api/organizer/profile", response_model=schemas.OrganizerProfileResponse)
def organizer_profile(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    organizer = auth.get_organizer(actor, db)
    admin = None
    if organizer.admin_id:
        admin = db.query(models.Admin).filter(models.Admin.id == organizer.admin_id).first()
    return schemas.OrganizerProfileResponse(organizer=organizer, tasks=organizer.tasks, admin=admin)


@app.post("/api/organizer/scan", response_model=schemas.ScanResponse)
def scan_ticket(
    req: schemas.ScanRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    ticket, student = scan_service.scan_ticket(db, actor, req.ticket_code)
    return schemas.ScanResponse(
        success=True,
        student=schemas.Student(id=student.id, user_id=student.user_id, full_name=student.user.full_name),
        event_id=ticket.booking.event_id,
        scanned_at=ticket.scanned_at,
    )


@app.get("/api/organizer/stats", response_model=schemas.OrganizerStatsResponse)
def organizer_stats(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    organizer = auth.get_organizer(actor, db)
    return stats_service.organizer_stats(
        db,
        organizer.id,
        revenue_mode=RevenueMode(config.REVENUE_MODE),
        flat_ticket_price=config.FLAT_TICKET_PRICE,
    )


# ------------- Events -------------

def with_booking_count(db: Session, events: List[models.Event]) -> List[schemas.EventWithCount]:
    ids = [event.id for event in events]
    counts = {}
    if ids:
        counts = dict(
            db.query(models.Booking.event_id, func.count(models.Booking.id))
            .filter(models.Booking.event_id.in_(ids))
            .group_by(models.Booking.event_id)
            .all()
        )
    return [
        schemas.EventWithCount.model_validate(event).model_copy(update={"booking_count": counts.get(event.id, 0)})
        for event in events
    ]


@app.get("/api/events", response_model=List[schemas.EventWithCount])
def list_events(db: Session = Depends(get_db)):
    events = (
        db.query(models.Event)
        .filter(models.Event.status == EventStatus.APPROVED.value)
        .order_by(models.Event.date.asc())
        .all()
    )
    return with_booking_count(db, events)


@app.get("/api/events/{event_id}", response_model=schemas.EventWithCount)
def get_event(event_id: str, db: Session = Depends(get_db)):
    event = db.query(models.Event).filter(models.Event.id == event_id).first()
    if not event:
        raise EventNotFound()
    return with_booking_count(db, [event])[0]


@app.post("/api/events", response_model=schemas.Event)
def create_event(
    event: schemas.EventCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    organizer = auth.get_organizer(actor, db, approved=True)
    db_event = models.Event(**event.model_dump(), organizer_id=organizer.id, status=EventStatus.PENDING.value)
    db.add(db_event)
    db.commit()
    db.refresh(db_event)
    return db_event


@app.post("/api/upload", response_model=schemas.UploadResponse)
def upload_banner(actor: Actor = Depends(get_current_actor)):
    # no file storage: hand back a placeholder image keyed by a random seed
    seed = secrets.token_hex(4)
    return schemas.UploadResponse(url=config.UPLOAD_PLACEHOLDER_URL.format(seed=seed))


# ------------- Bookings & tickets -------------

@app.post("/api/bookings", response_model=schemas.BookingResponse)
def create_booking(
    req: schemas.BookingCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    booking, ticket = booking_service.create_booking(
        db, actor, req.event_id, enforce_capacity=config.ENFORCE_CAPACITY
    )
    return schemas.BookingResponse(booking=booking, ticket=ticket)


@app.get("/api/bookings/me", response_model=List[schemas.BookingWithTicket])
def my_bookings(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return booking_service.list_student_bookings(db, actor)


@app.get("/api/tickets/{ticket_id}/pdf")
def ticket_pdf_download(ticket_id: str, db: Session = Depends(get_db)):
    ticket = db.query(models.Ticket).filter(models.Ticket.id == ticket_id).first()
    if not ticket:
        raise TicketNotFound()
    return Response(
        content=ticket_pdf.render_ticket_pdf(ticket),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={ticket_pdf.ticket_filename(ticket)}"},
    )


# ------------- Chat -------------

@app.post("/api/chat", response_model=schemas.ChatResponse)
async def chat_with_assistant(
    req: schemas.ChatRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    chat_assistant: chat_service.ChatAssistant = Depends(get_assistant),
):
    reply = await chat_service.answer(db, chat_assistant, actor, req.message)
    return schemas.ChatResponse(message=reply)


@app.websocket("/ws/chat")
async def chat_socket(
    websocket: WebSocket,
    token: str | None = Query(default=None),
    db: Session = Depends(get_db),
    chat_assistant: chat_service.ChatAssistant = Depends(get_assistant),
):
    try:
        actor = auth.resolve_actor(token, db)
    except DomainError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    connection = await chat_manager.connect(websocket, actor, db, chat_assistant, config.CHAT_MAX_PENDING)
    worker = asyncio.create_task(connection.run())
    try:
        while True:
            try:
                data = await websocket.receive_json()
            except json.JSONDecodeError:
                await websocket.send_json({"type": "chat:error", "error": "Invalid message"})
                continue
            message = str(data.get("message") or "").strip() if isinstance(data, dict) else ""
            if not message:
                await websocket.send_json({"type": "chat:error", "error": "Empty message"})
                continue
            if not connection.offer(message):
                await websocket.send_json({"type": "chat:error", "error": "Too many pending messages"})
    except WebSocketDisconnect:
        pass
    finally:
        worker.cancel()
        with suppress(asyncio.CancelledError):
            await worker
        chat_manager.disconnect(connection)
