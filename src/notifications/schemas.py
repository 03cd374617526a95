from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

# Recipients and consumed booking data
class UserProfile(BaseModel):
    """Recipient of account emails"""
    email: EmailStr
    full_name: str

class TicketInfo(BaseModel):
    """Read-only view of an issued ticket, as needed by emails and the PDF"""
    ticket_code: str
    seat_number: str
    price: Decimal
    passenger_phone: Optional[str] = None
    booking_code: str
    departure_time: datetime
    estimated_arrival_time: datetime
    start_location: str
    end_location: str
    license_plate: str

# Outgoing mail
class EmailAttachment(BaseModel):
    filename: str
    content: bytes
    mime_type: str = "application/octet-stream"

class OutgoingEmail(BaseModel):
    to: str
    subject: str
    html_body: str
    sender: Optional[str] = None
    attachments: List[EmailAttachment] = []

# API requests
class SimpleEmailRequest(BaseModel):
    to_email: EmailStr
    subject: str = Field(..., min_length=1, max_length=255)
    content: str

class CustomerSupportEmailRequest(BaseModel):
    to_email: EmailStr
    user_name: str
    subject: str = Field(..., min_length=1, max_length=255)
    message: Optional[str] = None
    case_number: Optional[str] = None
    cs_rep_name: Optional[str] = None

class TicketEmailRequest(BaseModel):
    to_email: EmailStr
    full_name: str
    tickets: List[TicketInfo] = Field(..., min_length=1)

class NotificationAccepted(BaseModel):
    message: str
    to_email: str
