"""
HTML email templates.

Every template is a ``str.format`` string; ``render`` HTML-escapes the values
it interpolates, except for the pre-rendered fragments passed through
``SafeHtml`` (ticket cards, ticket lists, multi-line bodies).
"""

from datetime import datetime, timezone
from decimal import Decimal
from html import escape
from typing import Iterable, Mapping
from zoneinfo import ZoneInfo

from src.notifications.schemas import TicketInfo


class SafeHtml(str):
    """Already-safe HTML fragment; render() leaves it unescaped"""


_FOOTER = (
    '<p style="font-size: 12px; color: #666;">'
    "Email này được gửi tự động, vui lòng không trả lời.</p>"
)

_PAGE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>{title}</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        {body}
    </div>
</body>
</html>
"""

VERIFICATION = """
<h2 style="color: #4CAF50;">Xác thực Email của bạn</h2>
<p>Xin chào <strong>{full_name}</strong>,</p>
<p>Cảm ơn bạn đã đăng ký tài khoản. Vui lòng click vào link bên dưới để xác thực email:</p>
<div style="text-align: center; margin: 30px 0;">
    <a href="{url}" style="background-color: #4CAF50; color: white; padding: 12px 30px;
       text-decoration: none; border-radius: 5px; display: inline-block;">Xác thực Email</a>
</div>
<p>Hoặc copy link sau vào trình duyệt:</p>
<p style="word-break: break-all; background-color: #f5f5f5; padding: 10px; border-radius: 3px;">{url}</p>
<p><strong>Lưu ý:</strong> Link này sẽ hết hạn sau 24 giờ.</p>
<p>Nếu bạn không đăng ký tài khoản này, vui lòng bỏ qua email này.</p>
<hr style="margin: 30px 0;">
{footer}
"""

PASSWORD_RESET = """
<h2 style="color: #FF6B6B;">Đặt lại mật khẩu</h2>
<p>Xin chào <strong>{full_name}</strong>,</p>
<p>Chúng tôi nhận được yêu cầu đặt lại mật khẩu cho tài khoản của bạn.</p>
<div style="text-align: center; margin: 30px 0;">
    <a href="{url}" style="background-color: #FF6B6B; color: white; padding: 12px 30px;
       text-decoration: none; border-radius: 5px; display: inline-block;">Đặt lại mật khẩu</a>
</div>
<p>Hoặc copy link sau vào trình duyệt:</p>
<p style="word-break: break-all; background-color: #f5f5f5; padding: 10px; border-radius: 3px;">{url}</p>
<p><strong>Lưu ý:</strong> Link này sẽ hết hạn sau 24 giờ.</p>
<p>Nếu bạn không yêu cầu đặt lại mật khẩu, vui lòng bỏ qua email này.</p>
"""

TICKET_CARD = """
<div style="border: 2px dashed #4CAF50; border-radius: 10px; padding: 15px; margin-bottom: 20px; background-color: #f9fff9;">
    <h3 style="margin: 0; color: #4CAF50;">🎫 Mã vé: {ticket_code}</h3>
    <p style="margin: 5px 0;"><strong>Số ghế:</strong> {seat_number}</p>
    <p style="margin: 5px 0;"><strong>Giá:</strong> {price} VND</p>
    <p style="margin: 5px 0;"><strong>Giờ khởi hành:</strong> {departure}</p>
    <p style="margin: 5px 0;"><strong>Giờ đến dự kiến:</strong> {arrival}</p>
    <p style="margin: 5px 0;"><strong>Điểm đi:</strong> {start_location}</p>
    <p style="margin: 5px 0;"><strong>Điểm đến:</strong> {end_location}</p>
    <p style="margin: 5px 0;"><strong>Biển số xe:</strong> {license_plate}</p>
</div>
"""

TICKET_CONFIRMATION = """
<h2 style="color: #4CAF50;">Xin chào {full_name},</h2>
<p>Cảm ơn bạn đã đặt vé tại <strong>Busify</strong>. Dưới đây là thông tin vé của bạn:</p>
{ticket_cards}
<p style="margin-top: 20px;"><strong>📎 File PDF với QR code đã được đính kèm trong email này.</strong></p>
<p>Chúc bạn có chuyến đi an toàn và vui vẻ! 🚌</p>
{footer}
"""

TICKET_CANCELLED = """
<h2 style="color: #FF6B6B;">Vé của bạn đã bị hủy</h2>
<p>Xin chào <strong>{full_name}</strong>,</p>
<p>Vé với mã <strong>{ticket_code}</strong> đã bị hủy. Nếu bạn có thắc mắc, vui lòng liên hệ hỗ trợ.</p>
{footer}
"""

BOOKING_CANCELLED = """
<h2 style="color: #FF6B6B;">Booking của bạn đã bị hủy</h2>
<p>Xin chào <strong>{full_name}</strong>,</p>
<p>Booking của bạn đã bị hủy. Danh sách vé:</p>
<ul>{ticket_list}</ul>
<p>Nếu bạn có thắc mắc, vui lòng liên hệ hỗ trợ.</p>
{footer}
"""

BOOKING_UPDATED = """
<h2 style="color: #4CAF50;">Booking của bạn đã được cập nhật</h2>
<p>Xin chào <strong>{full_name}</strong>,</p>
<p>Thông tin booking của bạn đã được thay đổi. Danh sách vé mới:</p>
<ul>{ticket_list}</ul>
<p>Nếu bạn có thắc mắc, vui lòng liên hệ hỗ trợ.</p>
{footer}
"""

COMPLAINT_STATUS = """
<h2 style="color: #2196F3;">Thông báo về khiếu nại</h2>
<p>Xin chào <strong>{full_name}</strong>,</p>
<p>Trạng thái khiếu nại của bạn: <strong>{complaint_status}</strong></p>
<p>Nội dung khiếu nại:</p>
<div style="background-color: #f5f5f5; padding: 10px; border-radius: 3px;">{complaint_content}</div>
<p>Nếu bạn cần hỗ trợ thêm, vui lòng liên hệ với chúng tôi.</p>
{footer}
"""

CUSTOMER_SUPPORT = """
<div style="background: linear-gradient(90deg, #4285F4, #34A853); padding: 20px; text-align: center; border-radius: 8px 8px 0 0;">
    <h2 style="color: #ffffff; margin: 10px 0 0; font-size: 24px;">Busify Customer Support</h2>
</div>
<div style="padding: 25px;">
    <p style="margin: 0 0 15px;">Kính gửi <strong>{user_name}</strong>,</p>
    {case_reference}
    <div style="padding: 15px 15px 15px 0; margin: 20px 0;">{message}</div>
    <p style="margin: 0 0 15px;">Nếu bạn có câu hỏi hoặc cần hỗ trợ thêm, vui lòng phản hồi email này.</p>
    <p style="margin: 0;">Trân trọng,<br>{cs_rep_name}<br>Nhân viên Chăm sóc Khách hàng Busify</p>
</div>
<hr style="border: none; border-top: 1px solid #e2e8f0; margin: 20px 0;">
<div style="font-size: 12px; color: #6b7280; text-align: center; padding: 15px;">
    <p style="margin: 0;">© Busify. Tất cả các quyền được bảo lưu.</p>
</div>
"""

OPERATOR_ACCOUNT = """
<h2 style="color: #4CAF50;">Hợp đồng của bạn đã được duyệt</h2>
<p>Xin chào <strong>{full_name}</strong>,</p>
<p>Tài khoản nhà xe của bạn trên <strong>Busify</strong> đã được tạo.</p>
<p><strong>Email đăng nhập:</strong> {email}<br>
<strong>Mật khẩu tạm thời:</strong> {temporary_password}</p>
<p>Vui lòng đăng nhập tại <a href="{login_url}">{login_url}</a> và đổi mật khẩu ngay.</p>
{footer}
"""


def render(template: str, title: str, **values) -> str:
    """Fill a body template and wrap it in the page layout"""
    safe = {key: _escape(value) for key, value in values.items()}
    safe.setdefault("footer", SafeHtml(_FOOTER))
    return _PAGE.format(title=escape(title), body=template.format(**safe))


def _escape(value) -> str:
    if isinstance(value, SafeHtml):
        return value
    return escape("" if value is None else str(value))


def multiline(text: str) -> SafeHtml:
    """Escape free text and keep its line breaks"""
    return SafeHtml(escape(text or "").replace("\n", "<br>"))


def format_datetime(value: datetime, tz_name: str) -> str:
    """HH:MM dd/mm/YYYY in the display zone; naive values are taken as UTC"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ZoneInfo(tz_name)).strftime("%H:%M %d/%m/%Y")


def format_vnd(amount: Decimal) -> str:
    """Vietnamese number format: '.' groups thousands, ',' marks decimals"""
    text = f"{Decimal(amount):,.3f}".rstrip("0").rstrip(".")
    return text.replace(",", "\x00").replace(".", ",").replace("\x00", ".")


def ticket_cards(tickets: Iterable[TicketInfo], tz_name: str) -> SafeHtml:
    cards = []
    for ticket in tickets:
        cards.append(TICKET_CARD.format(**{
            key: _escape(value) for key, value in _ticket_fields(ticket, tz_name).items()
        }))
    return SafeHtml("".join(cards))


def ticket_list(tickets: Iterable[TicketInfo]) -> SafeHtml:
    return SafeHtml("".join(
        f"<li>Mã vé: {escape(t.ticket_code)}, Số ghế: {escape(t.seat_number)}</li>"
        for t in tickets
    ))


def _ticket_fields(ticket: TicketInfo, tz_name: str) -> Mapping[str, str]:
    return {
        "ticket_code": ticket.ticket_code,
        "seat_number": ticket.seat_number,
        "price": format_vnd(ticket.price),
        "departure": format_datetime(ticket.departure_time, tz_name),
        "arrival": format_datetime(ticket.estimated_arrival_time, tz_name),
        "start_location": ticket.start_location,
        "end_location": ticket.end_location,
        "license_plate": ticket.license_plate,
    }
