# app/services/email_templates.py
"""
Guest emails sent after triage: acceptance (confirmed) and decline (rejected).
Both need first name, date, time, party size and area; the decline also carries the reason.
"""

from dataclasses import dataclass
from html import escape
from typing import Optional

from app.config import settings
from app.schemas.reservation import Reservation, ReservationStatus

DEFAULT_FIRST_NAME = "Gast"
DEFAULT_DECLINE_REASON = "Der Termin ist leider nicht mehr verfügbar."

ACCEPTANCE = "acceptance"
DECLINE = "decline"

TEMPLATE_FOR_STATUS = {
    ReservationStatus.CONFIRMED: ACCEPTANCE,
    ReservationStatus.REJECTED: DECLINE,
}


@dataclass(frozen=True)
class EmailContent:
    to: str
    subject: str
    text: str
    html: str
    template: str


def _fields(reservation: Reservation) -> dict:
    return {
        "first_name": (reservation.first_name or "").strip() or DEFAULT_FIRST_NAME,
        "date": reservation.date.strftime("%d.%m.%Y"),
        "time": reservation.time.strftime("%H:%M"),
        "party_size": reservation.party_size,
        "area": reservation.area or "Innenbereich",
    }


def _details_text(f: dict) -> str:
    return (
        f"  Datum:    {f['date']}\n"
        f"  Uhrzeit:  {f['time']} Uhr\n"
        f"  Personen: {f['party_size']}\n"
        f"  Bereich:  {f['area']}\n"
    )


def _details_html(f: dict) -> str:
    rows = [("Datum", f["date"]), ("Uhrzeit", f"{f['time']} Uhr"),
            ("Personen", f["party_size"]), ("Bereich", f["area"])]
    cells = "".join(
        f"<tr><td style=\"padding:4px 12px 4px 0;color:#6b7280;\">{label}</td>"
        f"<td style=\"padding:4px 0;font-weight:600;\">{escape(str(value))}</td></tr>"
        for label, value in rows
    )
    return f"<table style=\"border-collapse:collapse;\">{cells}</table>"


def _footer_text() -> str:
    return (
        f"\n{settings.RESTAURANT_NAME}\n"
        f"{settings.RESTAURANT_ADDRESS}\n"
        f"Tel. {settings.RESTAURANT_PHONE}\n"
    )


def _wrap_html(body: str) -> str:
    return (
        "<div style=\"margin:0;padding:24px;background:#f9fafb;"
        "font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;color:#111827;\">"
        f"{body}"
        f"<p style=\"margin-top:24px;color:#6b7280;font-size:13px;\">{escape(settings.RESTAURANT_NAME)}<br>"
        f"{escape(settings.RESTAURANT_ADDRESS)}<br>Tel. {escape(settings.RESTAURANT_PHONE)}</p>"
        "</div>"
    )


def render_acceptance(reservation: Reservation) -> EmailContent:
    f = _fields(reservation)
    text = (
        f"Hallo {f['first_name']},\n\n"
        f"Ihre Reservierung im {settings.RESTAURANT_NAME} ist bestätigt:\n\n"
        f"{_details_text(f)}\n"
        "Wir freuen uns auf Ihren Besuch!\n"
        f"{_footer_text()}"
    )
    html = _wrap_html(
        f"<h2 style=\"margin-top:0;\">Hallo {escape(f['first_name'])},</h2>"
        f"<p>Ihre Reservierung im {escape(settings.RESTAURANT_NAME)} ist bestätigt.</p>"
        f"{_details_html(f)}"
        "<p>Wir freuen uns auf Ihren Besuch!</p>"
    )
    return EmailContent(
        to=reservation.email,
        subject=f"✓ Ihre Reservierung wurde bestätigt - {f['date']}",
        text=text, html=html, template=ACCEPTANCE,
    )


def render_decline(reservation: Reservation, reason: Optional[str]) -> EmailContent:
    f = _fields(reservation)
    reason = (reason or "").strip() or DEFAULT_DECLINE_REASON
    text = (
        f"Hallo {f['first_name']},\n\n"
        "leider können wir Ihre Reservierung nicht bestätigen:\n\n"
        f"{_details_text(f)}\n"
        f"Grund: {reason}\n\n"
        "Gerne schlagen wir Ihnen einen Alternativtermin vor – antworten Sie einfach auf diese E-Mail.\n"
        f"{_footer_text()}"
    )
    html = _wrap_html(
        f"<h2 style=\"margin-top:0;\">Hallo {escape(f['first_name'])},</h2>"
        "<p>leider können wir Ihre Reservierung nicht bestätigen.</p>"
        f"{_details_html(f)}"
        f"<p style=\"padding:12px;background:#fef3c7;border-radius:6px;\"><strong>Grund:</strong> {escape(reason)}</p>"
        "<p>Gerne schlagen wir Ihnen einen Alternativtermin vor – antworten Sie einfach auf diese E-Mail.</p>"
    )
    return EmailContent(
        to=reservation.email,
        subject="⚠️ Reservierung nicht möglich - Alternativtermin?",
        text=text, html=html, template=DECLINE,
    )


def render_for_status(reservation: Reservation, status: ReservationStatus,
                      reason: Optional[str] = None) -> EmailContent:
    if status == ReservationStatus.CONFIRMED:
        return render_acceptance(reservation)
    if status == ReservationStatus.REJECTED:
        return render_decline(reservation, reason)
    raise ValueError(f"No guest email for status {status.value}")
