from fastapi import APIRouter, Depends, HTTPException, status

from src.auth.dependencies import require_admin
from src.auth.schemas import CallerIdentity
from src.notifications.schemas import (
    CustomerSupportEmailRequest, NotificationAccepted, SimpleEmailRequest, TicketEmailRequest
)
from src.notifications.service import EmailService, get_email_service

router = APIRouter()

@router.post("/simple", response_model=NotificationAccepted, status_code=status.HTTP_202_ACCEPTED)
def send_simple_email(
    request: SimpleEmailRequest,
    admin: CallerIdentity = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service)
):
    """Queue a plain email"""
    email_service.send_simple_email(request.to_email, request.subject, request.content)
    return NotificationAccepted(message="Email queued", to_email=request.to_email)

@router.post("/customer-support", response_model=NotificationAccepted, status_code=status.HTTP_202_ACCEPTED)
def send_customer_support_email(
    request: CustomerSupportEmailRequest,
    admin: CallerIdentity = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service)
):
    """Queue a customer support reply"""
    email_service.send_customer_support_email(
        request.to_email,
        request.user_name,
        request.subject,
        request.message,
        case_number=request.case_number,
        cs_rep_name=request.cs_rep_name or admin.email
    )
    return NotificationAccepted(message="Customer support email queued", to_email=request.to_email)

@router.post("/tickets", response_model=NotificationAccepted, status_code=status.HTTP_202_ACCEPTED)
def send_ticket_email(
    request: TicketEmailRequest,
    admin: CallerIdentity = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service)
):
    """Queue a booking confirmation with the PDF ticket attached"""
    try:
        email_service.send_ticket_email(request.to_email, request.full_name, request.tickets)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return NotificationAccepted(message="Ticket email queued", to_email=request.to_email)
