import io

from reportlab.graphics import renderPDF
from reportlab.graphics.barcode import qr
from reportlab.graphics.shapes import Drawing
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

import models

BRAND = HexColor("#6C63FF")
DARK_TEXT = HexColor("#1e293b")
GRAY_TEXT = HexColor("#64748b")


def ticket_filename(ticket: models.Ticket) -> str:
    return f"ticket-{ticket.id}.pdf"


def _qr_drawing(payload: str, size: float) -> Drawing:
    widget = qr.QrCodeWidget(payload)
    x1, y1, x2, y2 = widget.getBounds()
    drawing = Drawing(size, size, transform=[size / (x2 - x1), 0, 0, size / (y2 - y1), 0, 0])
    drawing.add(widget)
    return drawing


def render_ticket_pdf(ticket: models.Ticket) -> bytes:
    """Render a one-page entry ticket for ``ticket`` and return the PDF bytes."""
    booking = ticket.booking
    event = booking.event
    student_user = booking.student.user if booking.student else None

    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    c.setFillColor(BRAND)
    c.rect(0, height - 40 * mm, width, 40 * mm, fill=True, stroke=False)
    c.setFillColor(HexColor("#ffffff"))
    c.setFont("Helvetica-Bold", 24)
    c.drawCentredString(width / 2, height - 25 * mm, "COLLEVENTO TICKET")

    c.setFillColor(DARK_TEXT)
    c.setFont("Helvetica-Bold", 18)
    c.drawString(20 * mm, height - 60 * mm, event.title or "Event")

    rows = [
        ("Student", (student_user.full_name if student_user else None) or "Student"),
        ("Venue", event.venue or "-"),
        ("Date", event.date.strftime("%a %b %d %Y") if event.date else "-"),
        ("Status", "SCANNED" if ticket.is_scanned else "VALID"),
    ]
    y = height - 75 * mm
    for label, value in rows:
        c.setFont("Helvetica-Bold", 11)
        c.setFillColor(DARK_TEXT)
        c.drawString(20 * mm, y, f"{label}:")
        c.setFont("Helvetica", 11)
        c.setFillColor(GRAY_TEXT)
        c.drawString(50 * mm, y, str(value))
        y -= 8 * mm

    qr_size = 60 * mm
    renderPDF.draw(_qr_drawing(ticket.qr_code, qr_size), c, (width - qr_size) / 2, y - qr_size - 10 * mm)

    c.setFillColor(DARK_TEXT)
    c.setFont("Helvetica", 10)
    c.drawCentredString(width / 2, y - qr_size - 20 * mm, f"Ticket ID: {ticket.id}")

    c.showPage()
    c.save()
    return buffer.getvalue()
