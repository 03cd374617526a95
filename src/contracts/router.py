from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from src.auth.dependencies import get_current_identity, require_admin
from src.auth.schemas import CallerIdentity
from src.contracts.enums import ContractStatus
from src.contracts.exceptions import (
    ContractAttachmentError, ContractError, ContractNotFoundError, ContractReviewError,
    ContractUpdateError
)
from src.contracts.provisioning import OperatorProvisioningService
from src.contracts.schemas import (
    Attachment, ContractCount, ContractPage, ContractRequest, ContractResponse, ContractReview
)
from src.contracts.service import ContractService
from src.database import get_db
from src.notifications.service import EmailService, get_email_service
from src.storage import FileStorage, get_file_storage

router = APIRouter()

ALLOWED_LICENSE_EXTENSIONS = ('.pdf', '.jpg', '.jpeg', '.png')

def get_contract_service(
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
    email_service: EmailService = Depends(get_email_service)
) -> ContractService:
    return ContractService(
        db,
        storage,
        provisioner=OperatorProvisioningService(db),
        notifier=email_service
    )

def _http_error(e: ContractError) -> HTTPException:
    """Map a contract workflow failure onto its HTTP status"""
    if isinstance(e, ContractNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, ContractUpdateError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(e, ContractReviewError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(e, ContractAttachmentError):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        # ContractProvisioningError and anything unexpected
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(e))

def _contract_request(
    vat_code: str,
    email: str,
    phone: str,
    address: str,
    operation_area: str,
    start_date: Optional[date],
    end_date: Optional[date]
) -> ContractRequest:
    try:
        return ContractRequest(
            vat_code=vat_code,
            email=email,
            phone=phone,
            address=address,
            operation_area=operation_area,
            start_date=start_date,
            end_date=end_date
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )

def _ensure_owner(email: str, identity: CallerIdentity) -> None:
    """Non-admin callers may only act on contracts filed under their own email"""
    if not identity.is_admin and email.lower() != identity.email.lower():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )

def _read_attachment(file: Optional[UploadFile]) -> Optional[Attachment]:
    if file is None or not file.filename:
        return None
    if not file.filename.lower().endswith(ALLOWED_LICENSE_EXTENSIONS):
        raise HTTPException(status_code=400, detail="Only PDF, JPG and PNG license files are supported")
    return Attachment(
        filename=file.filename,
        content=file.file.read(),
        content_type=file.content_type
    )

@router.post("", response_model=ContractResponse, status_code=status.HTTP_201_CREATED)
def create_contract(
    vat_code: str = Form(...),
    email: str = Form(...),
    phone: str = Form(...),
    address: str = Form(...),
    operation_area: str = Form(...),
    start_date: Optional[date] = Form(None),
    end_date: Optional[date] = Form(None),
    license_file: Optional[UploadFile] = File(None),
    identity: CallerIdentity = Depends(get_current_identity),
    service: ContractService = Depends(get_contract_service)
):
    """Submit a contract for review"""
    request = _contract_request(vat_code, email, phone, address, operation_area, start_date, end_date)
    _ensure_owner(request.email, identity)
    attachment = _read_attachment(license_file)

    try:
        return service.create_contract(request, identity, attachment)
    except ContractError as e:
        raise _http_error(e)

@router.get("/me", response_model=List[ContractResponse])
def get_my_contracts(
    identity: CallerIdentity = Depends(get_current_identity),
    service: ContractService = Depends(get_contract_service)
):
    """Contracts submitted with the caller's email"""
    return service.get_contracts_by_operator_email(identity)

@router.get("/count", response_model=ContractCount)
def count_contracts(
    contract_status: ContractStatus = Query(..., alias="status"),
    admin: CallerIdentity = Depends(require_admin),
    service: ContractService = Depends(get_contract_service)
):
    return ContractCount(status=contract_status, count=service.count_contracts_by_status(contract_status))

@router.get("/status/{contract_status}", response_model=ContractPage)
def get_contracts_by_status(
    contract_status: ContractStatus,
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(10, ge=1, le=100, description="Contracts per page"),
    admin: CallerIdentity = Depends(require_admin),
    service: ContractService = Depends(get_contract_service)
):
    return service.get_contracts_by_status(contract_status, page, limit)

@router.get("", response_model=ContractPage)
def get_contracts(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(10, ge=1, le=100, description="Contracts per page"),
    contract_status: Optional[ContractStatus] = Query(None, alias="status", description="Filter by status"),
    email: Optional[str] = Query(None, description="Filter by email (substring)"),
    operation_area: Optional[str] = Query(None, description="Filter by operation area (substring)"),
    admin: CallerIdentity = Depends(require_admin),
    service: ContractService = Depends(get_contract_service)
):
    """List contracts for admins with optional filters"""
    return service.get_all_contracts_with_filters(page, limit, contract_status, email, operation_area)

@router.get("/{contract_id}", response_model=ContractResponse)
def get_contract(
    contract_id: int,
    identity: CallerIdentity = Depends(get_current_identity),
    service: ContractService = Depends(get_contract_service)
):
    try:
        contract = service.get_contract_by_id(contract_id)
    except ContractError as e:
        raise _http_error(e)

    _ensure_owner(contract.email, identity)
    return contract

@router.put("/{contract_id}", response_model=ContractResponse)
def update_contract(
    contract_id: int,
    vat_code: str = Form(...),
    email: str = Form(...),
    phone: str = Form(...),
    address: str = Form(...),
    operation_area: str = Form(...),
    start_date: Optional[date] = Form(None),
    end_date: Optional[date] = Form(None),
    license_file: Optional[UploadFile] = File(None),
    identity: CallerIdentity = Depends(get_current_identity),
    service: ContractService = Depends(get_contract_service)
):
    """Resubmit a pending or returned contract"""
    request = _contract_request(vat_code, email, phone, address, operation_area, start_date, end_date)
    _ensure_owner(request.email, identity)
    attachment = _read_attachment(license_file)

    try:
        _ensure_owner(service.get_contract_by_id(contract_id).email, identity)
        return service.update_contract(contract_id, request, identity, attachment)
    except ContractError as e:
        raise _http_error(e)

@router.post("/{contract_id}/review", response_model=ContractResponse)
def review_contract(
    contract_id: int,
    review: ContractReview,
    admin: CallerIdentity = Depends(require_admin),
    service: ContractService = Depends(get_contract_service)
):
    """Apply an admin review decision"""
    try:
        return service.review_contract(contract_id, review, admin)
    except ContractError as e:
        raise _http_error(e)
