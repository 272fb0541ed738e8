# tests/test_notification_dispatcher.py
"""Guest email templates, dispatch, and the notification log."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from datetime import date, datetime, time
from app.exceptions import NotificationError
from app.models.notification_log import NotificationLog
from app.schemas.reservation import Reservation, ReservationStatus
from app.services.email_templates import (
    DEFAULT_DECLINE_REASON,
    render_acceptance,
    render_decline,
    render_for_status,
)
from app.services.notification_dispatcher import (
    LogEmailBackend,
    NotificationDispatcher,
    SmtpEmailBackend,
    build_email_backend,
)


def make_reservation(first_name="Lea", status="confirmed", reason=None):
    return Reservation(
        id="r-42", first_name=first_name, last_name="Hoffmann", email="lea@example.com",
        date=date(2026, 12, 24), time=time(18, 0), party_size=6, area="Außenbereich",
        status=status, rejection_reason=reason, created_at=datetime(2026, 10, 19, 12, 0),
    )


class TestTemplates:
    def test_acceptance_carries_booking_details(self):
        email = render_acceptance(make_reservation())

        assert email.to == "lea@example.com"
        assert email.template == "acceptance"
        assert "24.12.2026" in email.subject
        for part in ("Hallo Lea", "24.12.2026", "18:00", "6", "Außenbereich"):
            assert part in email.text
        assert "Außenbereich" in email.html

    def test_decline_carries_reason(self):
        email = render_decline(make_reservation(status="rejected", reason="Fully booked"), "Fully booked")

        assert email.template == "decline"
        assert "Grund: Fully booked" in email.text
        assert "Fully booked" in email.html

    def test_decline_without_reason_uses_default(self):
        email = render_decline(make_reservation(), None)
        assert DEFAULT_DECLINE_REASON in email.text

    def test_missing_first_name_falls_back(self):
        email = render_acceptance(make_reservation(first_name=None))
        assert "Hallo Gast" in email.text

    def test_html_is_escaped(self):
        email = render_decline(make_reservation(first_name="<b>Lea</b>"), "<script>x</script>")
        assert "<script>" not in email.html
        assert "&lt;b&gt;Lea&lt;/b&gt;" in email.html

    def test_no_email_for_pending(self):
        with pytest.raises(ValueError):
            render_for_status(make_reservation(), ReservationStatus.PENDING)


class TestNotificationDispatcher:
    @pytest.mark.asyncio
    async def test_dispatch_sends_one_message_and_logs(self, db):
        backend = LogEmailBackend()
        dispatcher = NotificationDispatcher(backend, db=db)

        message_id = await dispatcher.dispatch(make_reservation(), ReservationStatus.CONFIRMED)

        assert len(backend.sent) == 1
        assert backend.sent[0].template == "acceptance"
        row = db.query(NotificationLog).one()
        assert row.success is True
        assert row.message_id == message_id
        assert row.recipient == "lea@example.com"

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_raised(self, db):
        backend = MagicMock()
        backend.send = AsyncMock(side_effect=ConnectionRefusedError("smtp refused"))
        dispatcher = NotificationDispatcher(backend, db=db)

        with pytest.raises(NotificationError):
            await dispatcher.dispatch(make_reservation(status="rejected", reason="Ausgebucht"),
                                      ReservationStatus.REJECTED, "Ausgebucht")

        backend.send.assert_awaited_once()
        row = db.query(NotificationLog).one()
        assert row.success is False
        assert row.template == "decline"
        assert "smtp refused" in row.error

    @pytest.mark.asyncio
    async def test_dispatch_without_db(self):
        backend = LogEmailBackend()
        await NotificationDispatcher(backend).dispatch(make_reservation(), ReservationStatus.CONFIRMED)
        assert len(backend.sent) == 1


class TestBackends:
    def test_build_backend(self):
        assert isinstance(build_email_backend("log"), LogEmailBackend)
        assert isinstance(build_email_backend("smtp"), SmtpEmailBackend)
        with pytest.raises(ValueError):
            build_email_backend("carrier-pigeon")

    @pytest.mark.asyncio
    async def test_smtp_without_credentials_fails(self):
        backend = SmtpEmailBackend(user="", password="")
        with pytest.raises(NotificationError):
            await backend.send(render_acceptance(make_reservation()))

    @pytest.mark.asyncio
    async def test_smtp_sends_multipart_message(self):
        backend = SmtpEmailBackend(host="smtp.test", port=587, user="u@test", password="pw",
                                   sender="noreply@test")
        smtp = MagicMock()
        with patch("app.services.notification_dispatcher.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = smtp
            message_id = await backend.send(render_acceptance(make_reservation()))

        smtp_cls.assert_called_once_with("smtp.test", 587, timeout=backend.timeout)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("u@test", "pw")
        sent = smtp.send_message.call_args[0][0]
        assert sent["To"] == "lea@example.com"
        assert sent.is_multipart()
        assert message_id.endswith("@test>")
