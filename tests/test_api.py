import models
from conftest import auth_headers
from enums import EventStatus, Role


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "Collevento" in response.json()["message"]


def test_guest_login(client):
    response = client.post("/api/auth/guest")

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["role"] == Role.GUEST.value
    assert body["token"]


def test_otp_login_creates_student_who_can_book(client, db, factory):
    event = factory.event(factory.organizer())
    assert client.post("/api/auth/otp/send", json={"phone": "9876543210"}).status_code == 200
    otp = db.query(models.OTPLog).filter(models.OTPLog.phone == "9876543210").one().otp

    response = client.post("/api/auth/otp/verify", json={"phone": "9876543210", "otp": otp})
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["role"] == Role.STUDENT.value
    headers = {"Authorization": f"Bearer {body['token']}"}

    booked = client.post("/api/bookings", json={"event_id": event.id}, headers=headers)
    assert booked.status_code == 200
    assert booked.json()["ticket"]["booking_id"] == booked.json()["booking"]["id"]

    mine = client.get("/api/bookings/me", headers=headers).json()
    assert [b["event"]["id"] for b in mine] == [event.id]


def test_otp_cannot_be_reused(client, db):
    client.post("/api/auth/otp/send", json={"phone": "9876543210"})
    otp = db.query(models.OTPLog).one().otp
    assert client.post("/api/auth/otp/verify", json={"phone": "9876543210", "otp": otp}).status_code == 200

    response = client.post("/api/auth/otp/verify", json={"phone": "9876543210", "otp": otp})

    assert response.status_code == 401
    assert response.json()["error"] == "InvalidOTP"


def test_missing_or_bad_token(client):
    assert client.post("/api/bookings", json={"event_id": "x"}).status_code == 401
    response = client.post("/api/bookings", json={"event_id": "x"}, headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json()["error"] == "Unauthenticated"


def test_book_scan_rescan_scenario(client, factory):
    organizer = factory.organizer()
    event = factory.event(organizer, capacity=500)
    student = factory.student("Asha Rao")

    booked = client.post("/api/bookings", json={"event_id": event.id}, headers=auth_headers(student))
    assert booked.status_code == 200
    code = booked.json()["ticket"]["qr_code"]

    scanned = client.post("/api/organizer/scan", json={"ticket_code": code}, headers=auth_headers(organizer))
    assert scanned.status_code == 200
    assert scanned.json()["success"] is True
    assert scanned.json()["student"]["full_name"] == "Asha Rao"

    stats = client.get("/api/organizer/stats", headers=auth_headers(organizer)).json()
    assert stats["total_registrations"] == 1
    assert stats["attendance_rate"] == 100.0

    again = client.post("/api/organizer/scan", json={"ticket_code": code}, headers=auth_headers(organizer))
    assert again.status_code == 409
    assert again.json()["error"] == "AlreadyScanned"


def test_student_cannot_scan(client, db, factory):
    organizer = factory.organizer()
    student = factory.student()
    event = factory.event(organizer)
    code = client.post(
        "/api/bookings", json={"event_id": event.id}, headers=auth_headers(student)
    ).json()["ticket"]["qr_code"]

    response = client.post("/api/organizer/scan", json={"ticket_code": code}, headers=auth_headers(student))

    assert response.status_code == 403
    assert db.query(models.Attendance).count() == 0


def test_organizer_cannot_book(client, factory):
    organizer = factory.organizer()
    event = factory.event(organizer)

    response = client.post("/api/bookings", json={"event_id": event.id}, headers=auth_headers(organizer))

    assert response.status_code == 403
    assert response.json()["error"] == "NotAStudent"


def test_booking_unknown_event(client, factory):
    response = client.post("/api/bookings", json={"event_id": "nope"}, headers=auth_headers(factory.student()))

    assert response.status_code == 404
    assert response.json()["error"] == "EventNotFound"


def test_event_lifecycle(client, factory):
    admin = factory.admin()
    pending_organizer = factory.organizer(approved=False)
    organizer = factory.organizer()
    payload = {
        "title": "Hack Night",
        "date": "2030-11-05T10:00:00",
        "venue": "Seminar Hall 1",
        "capacity": 200,
        "price": 0,
    }

    rejected = client.post("/api/events", json=payload, headers=auth_headers(pending_organizer))
    assert rejected.status_code == 403
    assert rejected.json()["error"] == "OrganizerNotApproved"

    created = client.post("/api/events", json=payload, headers=auth_headers(organizer))
    assert created.status_code == 200
    event_id = created.json()["id"]
    assert created.json()["status"] == EventStatus.PENDING.value
    assert client.get("/api/events").json() == []

    approved = client.post(
        f"/api/admin/events/{event_id}/status", json={"status": "APPROVED"}, headers=auth_headers(admin)
    )
    assert approved.status_code == 200

    listed = client.get("/api/events").json()
    assert [(e["id"], e["booking_count"]) for e in listed] == [(event_id, 0)]
    assert client.get(f"/api/events/{event_id}").json()["title"] == "Hack Night"


def test_event_capacity_must_be_positive(client, factory):
    organizer = factory.organizer()
    payload = {"title": "Zero", "date": "2030-11-05T10:00:00", "venue": "Hall", "capacity": 0}

    assert client.post("/api/events", json=payload, headers=auth_headers(organizer)).status_code == 422


def test_missing_event_is_404(client):
    response = client.get("/api/events/does-not-exist")
    assert response.status_code == 404


def test_organizer_code_registration_and_approval(client, factory):
    admin = factory.admin()
    code = client.post(
        "/api/admin/generate-code", json={"college_name": "IIT Bombay"}, headers=auth_headers(admin)
    ).json()["code"]
    assert len(code) == 6

    guest_token = client.post("/api/auth/guest").json()["token"]
    guest = {"Authorization": f"Bearer {guest_token}"}
    registered = client.post(
        "/api/auth/organizer/register", json={"code": code, "full_name": "New Lead"}, headers=guest
    )
    assert registered.status_code == 200
    organizer = registered.json()
    assert organizer["is_approved"] is False

    reused = client.post("/api/auth/organizer/register", json={"code": code}, headers=guest)
    assert reused.status_code == 409

    approved = client.post(f"/api/admin/organizers/{organizer['id']}/approve", headers=auth_headers(admin))
    assert approved.json()["is_approved"] is True


def test_only_admins_generate_codes(client, factory):
    response = client.post(
        "/api/admin/generate-code", json={"college_name": "X"}, headers=auth_headers(factory.organizer())
    )
    assert response.status_code == 403


def test_tasks_and_profile(client, factory):
    admin = factory.admin()
    organizer = factory.organizer()
    created = client.post(
        "/api/admin/tasks",
        json={
            "title": "Book sound system",
            "description": "For Rhythm & Beats",
            "deadline": "2030-10-01T00:00:00",
            "organizer_id": organizer.id,
        },
        headers=auth_headers(admin),
    )
    assert created.status_code == 200
    task_id = created.json()["id"]

    tasks = client.get("/api/organizer/tasks", headers=auth_headers(organizer)).json()
    assert [t["id"] for t in tasks] == [task_id]
    assert tasks[0]["admin"]["user"]["full_name"] == "Admin User"

    updated = client.patch(
        f"/api/organizer/tasks/{task_id}", json={"status": "COMPLETED"}, headers=auth_headers(organizer)
    )
    assert updated.json()["status"] == "COMPLETED"

    other = factory.organizer()
    hidden = client.patch(
        f"/api/organizer/tasks/{task_id}", json={"status": "PENDING"}, headers=auth_headers(other)
    )
    assert hidden.status_code == 404

    profile = client.get("/api/organizer/profile", headers=auth_headers(organizer)).json()
    assert profile["organizer"]["id"] == organizer.id
    assert [t["status"] for t in profile["tasks"]] == ["COMPLETED"]


def test_ticket_pdf(client, factory):
    event = factory.event(factory.organizer())
    student = factory.student()
    ticket_id = client.post(
        "/api/bookings", json={"event_id": event.id}, headers=auth_headers(student)
    ).json()["ticket"]["id"]

    response = client.get(f"/api/tickets/{ticket_id}/pdf")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert client.get("/api/tickets/missing/pdf").status_code == 404


def test_upload_returns_placeholder_url(client, factory):
    response = client.post("/api/upload", headers=auth_headers(factory.student()))

    assert response.status_code == 200
    assert response.json()["url"].startswith("https://")
