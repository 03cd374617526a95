from typing import List, Optional
from io import BytesIO
from xml.sax.saxutils import escape
import logging
import os

import qrcode
from qrcode import constants
from PIL import Image

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.platypus import Image as PdfImage

from src.config import settings
from src.notifications.schemas import TicketInfo
from src.notifications.templates import format_datetime, format_vnd

logger = logging.getLogger(__name__)

TICKET_PAGE_SIZE = (80 * mm, 100 * mm)
QR_SIZE_POINTS = 60
QR_IMAGE_PIXELS = 300
# Above this many tickets the QR block is stacked above the list so the table can split
SIDE_BY_SIDE_MAX_TICKETS = 6

_FONT_NAME = "BusifySans"


def build_qr_payload(booking_code: str, full_name: str) -> str:
    """QR content shared by every ticket of a booking"""
    return f"Mã đặt chỗ: {booking_code}\nHành khách: {full_name}"


class TicketDocumentService:
    """Renders the ticket PDF attached to booking confirmation emails"""

    def __init__(self, font_path: Optional[str] = None, tz_name: Optional[str] = None):
        self.font_path = font_path if font_path is not None else settings.PDF_FONT_PATH
        self.tz_name = tz_name or settings.DISPLAY_TIMEZONE
        self.font_name, self.bold_font_name = self._load_fonts()

    def generate_qr_code(self, content: str, size: int = QR_IMAGE_PIXELS) -> bytes:
        """Encode content as a QR code PNG"""

        qr = qrcode.QRCode(
            version=None,
            error_correction=constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(content)
        qr.make(fit=True)

        qr_image = qr.make_image(fill_color="black", back_color="white")
        qr_image = qr_image.resize((size, size), Image.LANCZOS)

        buffer = BytesIO()
        qr_image.save(buffer, format="PNG")
        return buffer.getvalue()

    def generate_ticket_pdf(self, full_name: str, tickets: List[TicketInfo]) -> bytes:
        """Build the booking's ticket PDF; trip details come from the first ticket"""

        if not tickets:
            raise ValueError("At least one ticket is required")

        first = tickets[0]
        buffer = BytesIO()

        doc = SimpleDocTemplate(
            buffer,
            pagesize=TICKET_PAGE_SIZE,
            leftMargin=5, rightMargin=5, topMargin=5, bottomMargin=5,
            title="Vé xe Busify"
        )
        width = doc.width - 12  # frame padding

        title_style = self._style("TicketTitle", 7, bold=True, alignment=TA_CENTER)
        center_style = self._style("TicketCenter", 5, alignment=TA_CENTER)
        text_style = self._style("TicketText", 5)
        bold_style = self._style("TicketBold", 5, bold=True)

        story = []

        # Header
        story.append(Paragraph("VÉ XE KHÁCH BUSIFY", title_style))
        story.append(Paragraph(f"Xin chào {escape(full_name)}", center_style))
        story.append(Spacer(1, 3))

        # Trip details
        trip_rows = [
            ("Tuyến đi", f"{first.start_location} → {first.end_location}"),
            ("Ngày đi", format_datetime(first.departure_time, self.tz_name)),
            ("Dự kiến đến", format_datetime(first.estimated_arrival_time, self.tz_name)),
            ("Xe/ Biển số", first.license_plate),
            ("Giá vé", f"{format_vnd(first.price)} VND"),
            ("Hành khách", full_name),
            ("Số điện thoại", first.passenger_phone or ""),
        ]
        trip_table = Table(
            [[Paragraph(label, bold_style), Paragraph(escape(value), text_style)]
             for label, value in trip_rows],
            colWidths=[width * 2 / 6, width * 4 / 6]
        )
        trip_table.setStyle(self._grid_style())
        story.append(trip_table)
        story.append(Spacer(1, 3))

        # Ticket list and booking QR
        ticket_table = Table(
            [[Paragraph("Mã vé", bold_style), Paragraph("Ghế", bold_style)]]
            + [[Paragraph(escape(t.ticket_code), text_style), Paragraph(escape(t.seat_number), text_style)]
               for t in tickets],
            repeatRows=1
        )
        ticket_table.setStyle(self._grid_style())

        qr_png = self.generate_qr_code(build_qr_payload(first.booking_code, full_name))
        qr_block = [
            Paragraph(f"Mã đặt chỗ: {escape(first.booking_code)}", self._style("TicketCode", 5, bold=True, alignment=TA_CENTER)),
            Spacer(1, 2),
            PdfImage(BytesIO(qr_png), width=QR_SIZE_POINTS, height=QR_SIZE_POINTS),
        ]

        if len(tickets) <= SIDE_BY_SIDE_MAX_TICKETS:
            main_table = Table([[ticket_table, qr_block]], colWidths=[width * 2 / 3, width / 3])
            main_table.setStyle(TableStyle([
                ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
                ('ALIGN', (1, 0), (1, 0), 'CENTER'),
                ('LEFTPADDING', (0, 0), (-1, -1), 0),
                ('RIGHTPADDING', (0, 0), (-1, -1), 0),
            ]))
            story.append(main_table)
        else:
            story.extend(qr_block)
            story.append(Spacer(1, 3))
            story.append(ticket_table)

        story.append(Spacer(1, 3))

        # Footer
        story.append(Paragraph("Lưu ý:", bold_style))
        for note in (
            "- Vui lòng mang theo giấy tờ tùy thân khi lên xe",
            "- Có mặt tại điểm đón trước giờ khởi hành 15 phút",
            "- Liên hệ tổng đài nếu cần hỗ trợ",
        ):
            story.append(Paragraph(note, text_style))

        doc.build(story)
        return buffer.getvalue()

    def _style(self, name: str, size: float, bold: bool = False, alignment: int = 0) -> ParagraphStyle:
        return ParagraphStyle(
            name,
            fontName=self.bold_font_name if bold else self.font_name,
            fontSize=size,
            leading=size * 1.25,
            alignment=alignment,
        )

    def _grid_style(self) -> TableStyle:
        return TableStyle([
            ('GRID', (0, 0), (-1, -1), 0.25, colors.black),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('TOPPADDING', (0, 0), (-1, -1), 1),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 1),
            ('LEFTPADDING', (0, 0), (-1, -1), 2),
            ('RIGHTPADDING', (0, 0), (-1, -1), 2),
        ])

    def _load_fonts(self):
        """Use the configured TTF (Vietnamese glyphs) when present, else Helvetica"""
        if _FONT_NAME in pdfmetrics.getRegisteredFontNames():
            return _FONT_NAME, _FONT_NAME

        if self.font_path and os.path.isfile(self.font_path):
            try:
                pdfmetrics.registerFont(TTFont(_FONT_NAME, self.font_path))
                return _FONT_NAME, _FONT_NAME
            except Exception as e:
                logger.warning("Could not load PDF font %s: %s", self.font_path, e)
        else:
            logger.debug("PDF font %s not found, falling back to Helvetica", self.font_path)

        return "Helvetica", "Helvetica-Bold"
