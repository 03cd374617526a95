import pytest

from src.config import Settings
from src.notifications import mailer
from src.notifications.mailer import SmtpTransport, build_mime_message
from src.notifications.schemas import EmailAttachment, OutgoingEmail


@pytest.fixture
def message():
    return OutgoingEmail(
        to="khach@gmail.com",
        subject="Xác nhận đặt vé của bạn",
        html_body="<p>Xin chào</p>",
        attachments=[EmailAttachment(filename="ve-xe-busify.pdf", content=b"%PDF-1.4", mime_type="application/pdf")]
    )


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(("login", username, password))

    def send_message(self, mime):
        self.calls.append(("send", mime))


def test_build_mime_message(message):
    mime = build_mime_message(message, "Busify <no-reply@busify.com>")

    assert mime["To"] == "khach@gmail.com"
    assert mime["From"] == "Busify <no-reply@busify.com>"

    parts = mime.get_payload()
    assert parts[0].get_content_type() == "text/html"
    assert parts[1].get_content_type() == "application/pdf"
    assert parts[1].get_filename() == "ve-xe-busify.pdf"
    assert parts[1].get_payload(decode=True) == b"%PDF-1.4"


def test_explicit_sender_wins(message):
    message.sender = "Ops <ops@busify.com>"
    assert build_mime_message(message, "Busify <no-reply@busify.com>")["From"] == "Ops <ops@busify.com>"


def test_log_only_without_server(message, monkeypatch, caplog):
    FakeSMTP.instances = []
    monkeypatch.setattr(mailer.smtplib, "SMTP", FakeSMTP)
    caplog.set_level("INFO")

    SmtpTransport(Settings(SECRET_KEY="x", MAIL_SERVER=None)).send(message)

    assert FakeSMTP.instances == []
    assert "log-only mode" in caplog.text


def test_sends_through_smtp(message, monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(mailer.smtplib, "SMTP", FakeSMTP)
    config = Settings(
        SECRET_KEY="x",
        MAIL_SERVER="smtp.busify.com",
        MAIL_PORT=2525,
        MAIL_USERNAME="mailer",
        MAIL_PASSWORD="secret"
    )

    SmtpTransport(config).send(message)

    smtp = FakeSMTP.instances[0]
    assert (smtp.host, smtp.port) == ("smtp.busify.com", 2525)
    assert smtp.calls[0] == "starttls"
    assert smtp.calls[1] == ("login", "mailer", "secret")
    assert smtp.calls[2][0] == "send"
