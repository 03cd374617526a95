"""
Email notification tests.

Test blocks:
  1. Ticket confirmation (PDF attachment, QR payload)
  2. Account, booking and support emails
  3. Failure handling on the dispatcher
"""

import pytest

from src.notifications.exceptions import EmailSendError
from src.notifications.schemas import UserProfile
from src.notifications.service import TICKET_PDF_FILENAME
from src.notifications.templates import SafeHtml, multiline, render
from src.notifications.ticket_pdf import TicketDocumentService, build_qr_payload


# ── 1. Ticket confirmation ───────────────────────────────────────────────────

def test_ticket_email_has_single_pdf_attachment(email_service, tickets):
    message = email_service.build_ticket_email("khach@gmail.com", "Nguyễn Văn An", tickets)

    assert message.subject == "Xác nhận đặt vé của bạn"
    assert len(message.attachments) == 1
    attachment = message.attachments[0]
    assert attachment.filename == TICKET_PDF_FILENAME
    assert attachment.mime_type == "application/pdf"
    assert attachment.content.startswith(b"%PDF")


def test_ticket_email_qr_payload(email_service, tickets, monkeypatch):
    payloads = []
    original = TicketDocumentService.generate_qr_code

    def capture(self, content, size=300):
        payloads.append(content)
        return original(self, content, size)

    monkeypatch.setattr(TicketDocumentService, "generate_qr_code", capture)

    email_service.build_ticket_email("khach@gmail.com", "Nguyễn Văn An", tickets)

    assert payloads == [build_qr_payload("BK-20250110-7F3A", "Nguyễn Văn An")]
    assert "BK-20250110-7F3A" in payloads[0]
    assert "Nguyễn Văn An" in payloads[0]


def test_ticket_email_body_lists_every_ticket(email_service, tickets):
    html = email_service.build_ticket_email("khach@gmail.com", "Nguyễn Văn An", tickets).html_body

    assert "TK-0001" in html
    assert "TK-0002" in html
    assert "250.000 VND" in html
    # 01:30 UTC departure shown in Vietnam time
    assert "08:30 10/01/2025" in html


def test_send_ticket_email_requires_tickets(email_service, transport):
    with pytest.raises(ValueError):
        email_service.send_ticket_email("khach@gmail.com", "An", [])
    assert transport.sent == []


def test_send_ticket_email_delivers(email_service, transport, tickets):
    future = email_service.send_ticket_email("khach@gmail.com", "Nguyễn Văn An", tickets)

    assert future.result().to == "khach@gmail.com"
    assert len(transport.sent) == 1
    assert transport.sent[0].sender == "Busify <no-reply@busify.test>"


# ── 2. Other emails ──────────────────────────────────────────────────────────

def test_verification_email_link(email_service):
    user = UserProfile(email="khach@gmail.com", full_name="Trần Thị Bình")

    message = email_service.build_verification_email(user, "tok123")

    assert message.to == "khach@gmail.com"
    assert "https://busify.test/verify-email?token=tok123" in message.html_body
    assert "Trần Thị Bình" in message.html_body


def test_password_reset_email_link(email_service):
    user = UserProfile(email="khach@gmail.com", full_name="Bình")

    message = email_service.build_password_reset_email(user, "reset-1")

    assert "https://busify.test/reset-password?token=reset-1" in message.html_body


def test_customer_support_email(email_service):
    message = email_service.build_customer_support_email(
        "khach@gmail.com", "Bình", "Phản hồi yêu cầu", "Dòng 1\nDòng 2",
        case_number="CS-42", cs_rep_name="Lan"
    )

    assert message.subject == "Phản hồi yêu cầu"
    assert "Dòng 1<br>Dòng 2" in message.html_body
    assert "CS-42" in message.html_body
    assert "Lan" in message.html_body


def test_customer_support_email_without_case_number(email_service):
    message = email_service.build_customer_support_email("khach@gmail.com", "Bình", "Hi", None)
    assert "Mã tham chiếu" not in message.html_body


def test_user_values_are_escaped(email_service, transport):
    email_service.send_simple_email("khach@gmail.com", "Chào", "<script>alert(1)</script>")

    html = transport.sent[0].html_body
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_render_trusts_only_safe_html():
    html = render("{card}{note}", "Vé", card=SafeHtml("<b>A1</b>"), note="<b>trễ</b>")

    assert "<b>A1</b>" in html
    assert "&lt;b&gt;trễ&lt;/b&gt;" in html
    assert isinstance(multiline("a\nb"), SafeHtml)


@pytest.mark.parametrize("send,expected", [
    (lambda s, t: s.send_ticket_cancelled_email("khach@gmail.com", "An", t[0]), "TK-0001"),
    (lambda s, t: s.send_booking_cancelled_email("khach@gmail.com", "An", t), "TK-0002"),
    (lambda s, t: s.send_booking_updated_email("khach@gmail.com", "An", t), "Số ghế: A2"),
    (lambda s, t: s.send_complaint_status_email("khach@gmail.com", "An", "Đã giải quyết", "Xe trễ"),
     "Đã giải quyết"),
    (lambda s, t: s.send_operator_account_email("owner@phuongtrang.vn", "owner", "Temp-1"), "Temp-1"),
])
def test_notification_types_render(email_service, transport, tickets, send, expected):
    send(email_service, tickets)

    assert len(transport.sent) == 1
    assert expected in transport.sent[0].html_body


# ── 3. Failures ──────────────────────────────────────────────────────────────

def test_transport_failure_is_wrapped(email_service, transport, caplog):
    transport.error = ConnectionRefusedError("smtp down")

    future = email_service.send_simple_email("khach@gmail.com", "Chào", "Nội dung")

    error = future.exception()
    assert isinstance(error, EmailSendError)
    assert str(error) == "Failed to send simple email"
    assert isinstance(error.__cause__, ConnectionRefusedError)
    assert "Failed to send simple email" in caplog.text


def test_render_failure_is_wrapped(email_service, tickets, monkeypatch):
    def broken(self, full_name, tickets):
        raise RuntimeError("pdf engine crashed")

    monkeypatch.setattr(TicketDocumentService, "generate_ticket_pdf", broken)

    future = email_service.send_ticket_email("khach@gmail.com", "An", tickets)

    assert isinstance(future.exception(), EmailSendError)
    assert str(future.exception()) == "Failed to send ticket email"
