from concurrent.futures import Future
from functools import lru_cache
from typing import List, Optional
import logging

from src.config import settings
from src.notifications import templates
from src.notifications.dispatcher import EmailDispatcher
from src.notifications.mailer import SmtpTransport
from src.notifications.schemas import EmailAttachment, OutgoingEmail, TicketInfo, UserProfile
from src.notifications.templates import SafeHtml, multiline, render
from src.notifications.ticket_pdf import TicketDocumentService

logger = logging.getLogger(__name__)

TICKET_PDF_FILENAME = "ve-xe-busify.pdf"


class EmailService:
    """Transactional emails for accounts, bookings, complaints and operators.

    ``build_*`` methods render a message synchronously. ``send_*`` methods
    hand the build and the delivery to the dispatcher and return at once;
    failures surface only in the worker's log (and on the returned Future).
    """

    def __init__(
        self,
        dispatcher: EmailDispatcher,
        documents: Optional[TicketDocumentService] = None,
        frontend_url: Optional[str] = None,
        sender: Optional[str] = None,
        tz_name: Optional[str] = None
    ):
        self.dispatcher = dispatcher
        self.documents = documents or TicketDocumentService()
        self.frontend_url = (frontend_url or settings.FRONTEND_URL).rstrip("/")
        self.sender = sender or settings.MAIL_FROM
        self.tz_name = tz_name or settings.DISPLAY_TIMEZONE

    # Account emails
    def build_verification_email(self, user: UserProfile, token: str) -> OutgoingEmail:
        url = f"{self.frontend_url}/verify-email?token={token}"
        return self._message(
            user.email,
            "Xác thực email của bạn",
            render(templates.VERIFICATION, "Xác thực Email", full_name=user.full_name, url=url)
        )

    def send_verification_email(self, user: UserProfile, token: str) -> Future:
        return self.dispatcher.dispatch(
            lambda: self.build_verification_email(user, token),
            "Failed to send verification email"
        )

    def build_password_reset_email(self, user: UserProfile, token: str) -> OutgoingEmail:
        url = f"{self.frontend_url}/reset-password?token={token}"
        return self._message(
            user.email,
            "Đặt lại mật khẩu",
            render(templates.PASSWORD_RESET, "Đặt lại mật khẩu", full_name=user.full_name, url=url)
        )

    def send_password_reset_email(self, user: UserProfile, token: str) -> Future:
        return self.dispatcher.dispatch(
            lambda: self.build_password_reset_email(user, token),
            "Failed to send password reset email"
        )

    # Booking emails
    def build_ticket_email(self, to_email: str, full_name: str, tickets: List[TicketInfo]) -> OutgoingEmail:
        """Booking confirmation with the PDF ticket (QR code included) attached"""
        if not tickets:
            raise ValueError("At least one ticket is required")

        html = render(
            templates.TICKET_CONFIRMATION,
            "Vé đặt thành công",
            full_name=full_name,
            ticket_cards=templates.ticket_cards(tickets, self.tz_name)
        )
        pdf = self.documents.generate_ticket_pdf(full_name, tickets)

        message = self._message(to_email, "Xác nhận đặt vé của bạn", html)
        message.attachments.append(
            EmailAttachment(filename=TICKET_PDF_FILENAME, content=pdf, mime_type="application/pdf")
        )
        return message

    def send_ticket_email(self, to_email: str, full_name: str, tickets: List[TicketInfo]) -> Future:
        if not tickets:
            raise ValueError("At least one ticket is required")
        logger.info("Queueing ticket email to %s (%d tickets)", to_email, len(tickets))
        return self.dispatcher.dispatch(
            lambda: self.build_ticket_email(to_email, full_name, tickets),
            "Failed to send ticket email"
        )

    def send_ticket_cancelled_email(self, to_email: str, full_name: str, ticket: TicketInfo) -> Future:
        def build():
            return self._message(
                to_email,
                "Thông báo hủy vé",
                render(templates.TICKET_CANCELLED, "Vé bị hủy",
                       full_name=full_name, ticket_code=ticket.ticket_code)
            )
        return self.dispatcher.dispatch(build, "Failed to send ticket cancelled email")

    def send_booking_cancelled_email(self, to_email: str, full_name: str, tickets: List[TicketInfo]) -> Future:
        def build():
            return self._message(
                to_email,
                "Thông báo hủy booking",
                render(templates.BOOKING_CANCELLED, "Booking bị hủy",
                       full_name=full_name, ticket_list=templates.ticket_list(tickets))
            )
        return self.dispatcher.dispatch(build, "Failed to send booking cancelled email")

    def send_booking_updated_email(self, to_email: str, full_name: str, tickets: List[TicketInfo]) -> Future:
        def build():
            return self._message(
                to_email,
                "Thông báo cập nhật booking",
                render(templates.BOOKING_UPDATED, "Booking được cập nhật",
                       full_name=full_name, ticket_list=templates.ticket_list(tickets))
            )
        return self.dispatcher.dispatch(build, "Failed to send booking updated email")

    # Support emails
    def send_simple_email(self, to_email: str, subject: str, content: str) -> Future:
        def build():
            return self._message(to_email, subject, render("{content}", subject, content=multiline(content)))
        return self.dispatcher.dispatch(build, "Failed to send simple email")

    def send_complaint_status_email(
        self,
        to_email: str,
        full_name: str,
        complaint_status: str,
        complaint_content: str
    ) -> Future:
        def build():
            return self._message(
                to_email,
                "Thông báo về khiếu nại",
                render(templates.COMPLAINT_STATUS, "Trạng thái khiếu nại",
                       full_name=full_name,
                       complaint_status=complaint_status,
                       complaint_content=multiline(complaint_content))
            )
        return self.dispatcher.dispatch(build, "Failed to send complaint status email")

    def build_customer_support_email(
        self,
        to_email: str,
        user_name: str,
        subject: str,
        message: Optional[str],
        case_number: Optional[str] = None,
        cs_rep_name: Optional[str] = None
    ) -> OutgoingEmail:
        case_reference = SafeHtml("")
        if case_number:
            case_reference = SafeHtml(
                f'<p style="margin: 0 0 15px;"><strong>Mã tham chiếu:</strong> {templates.escape(case_number)}</p>'
            )
        return self._message(
            to_email,
            subject,
            render(templates.CUSTOMER_SUPPORT, "Thông báo từ Busify",
                   user_name=user_name,
                   case_reference=case_reference,
                   message=multiline(message or ""),
                   cs_rep_name=cs_rep_name or "")
        )

    def send_customer_support_email(
        self,
        to_email: str,
        user_name: str,
        subject: str,
        message: Optional[str],
        case_number: Optional[str] = None,
        cs_rep_name: Optional[str] = None
    ) -> Future:
        logger.info("Queueing customer support email to %s", to_email)
        return self.dispatcher.dispatch(
            lambda: self.build_customer_support_email(
                to_email, user_name, subject, message, case_number, cs_rep_name
            ),
            "Failed to send customer support email"
        )

    # Operator onboarding
    def send_operator_account_email(self, to_email: str, full_name: str, temporary_password: str) -> Future:
        def build():
            return self._message(
                to_email,
                "Tài khoản nhà xe Busify đã được tạo",
                render(templates.OPERATOR_ACCOUNT, "Tài khoản nhà xe",
                       full_name=full_name,
                       email=to_email,
                       temporary_password=temporary_password,
                       login_url=f"{self.frontend_url}/login")
            )
        return self.dispatcher.dispatch(build, "Failed to send operator account email")

    def _message(self, to_email: str, subject: str, html: str) -> OutgoingEmail:
        return OutgoingEmail(to=to_email, subject=subject, html_body=html, sender=self.sender)


@lru_cache
def get_email_dispatcher() -> EmailDispatcher:
    return EmailDispatcher(SmtpTransport(), max_workers=settings.EMAIL_WORKERS)


def get_email_service() -> EmailService:
    return EmailService(get_email_dispatcher())
