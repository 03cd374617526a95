from typing import List, Optional
from datetime import datetime, timezone
import logging
import math

from sqlalchemy import func
from sqlalchemy.orm import Session

from src.auth.schemas import CallerIdentity
from src.contracts.enums import ContractStatus, ReviewAction
from src.contracts.exceptions import (
    ContractAttachmentError, ContractNotFoundError, ContractProvisioningError,
    ContractUpdateError
)
from src.contracts.provisioning import OperatorProvisioner, OperatorProvisioningService
from src.contracts.schemas import (
    Attachment, ContractPage, ContractRequest, ContractResponse, ContractReview
)
from src.models import Contract
from src.storage import FileStorage

logger = logging.getLogger(__name__)

LICENSE_FOLDER = "licenses"

class ContractService:
    """Operator contract submission and admin review workflow"""

    def __init__(
        self,
        db: Session,
        storage: FileStorage,
        provisioner: Optional[OperatorProvisioner] = None,
        notifier=None
    ):
        self.db = db
        self.storage = storage
        self.provisioner = provisioner or OperatorProvisioningService(db)
        self.notifier = notifier

    def create_contract(
        self,
        request: ContractRequest,
        identity: CallerIdentity,
        attachment: Optional[Attachment] = None
    ) -> ContractResponse:
        """Submit a new contract; it starts in PENDING"""

        now = datetime.now(timezone.utc)
        contract = Contract(
            status=ContractStatus.PENDING,
            created_date=now,
            created_by=identity.actor,
            last_modified=now,
            last_modified_by=identity.actor
        )
        self._apply_request(contract, request)

        if attachment is not None:
            contract.license_url = self._upload_license(attachment)

        self.db.add(contract)
        try:
            self._commit()
        except Exception:
            self._discard_upload(contract.license_url)
            raise
        self.db.refresh(contract)

        logger.info(
            "Contract %s submitted by %s", contract.id, identity.actor,
            extra={"contract_id": contract.id, "actor": identity.actor}
        )
        return ContractResponse.model_validate(contract)

    def get_contracts_by_operator_email(self, identity: CallerIdentity) -> List[ContractResponse]:
        """Contracts submitted under the caller's email, newest first"""
        contracts = self.db.query(Contract).filter(
            func.lower(Contract.email) == identity.email.lower()
        ).order_by(Contract.created_date.desc(), Contract.id.desc()).all()
        return [ContractResponse.model_validate(c) for c in contracts]

    def get_contract_by_id(self, contract_id: int) -> ContractResponse:
        return ContractResponse.model_validate(self._get_contract(contract_id))

    def update_contract(
        self,
        contract_id: int,
        request: ContractRequest,
        identity: CallerIdentity,
        attachment: Optional[Attachment] = None
    ) -> ContractResponse:
        """Resubmit a contract; only PENDING or NEED_REVISION contracts are editable"""

        contract = self._get_contract(contract_id)

        if not contract.status.is_editable:
            raise ContractUpdateError.invalid_status(contract_id, contract.status.value)

        old_url = contract.license_url
        new_url = None
        if attachment is not None:
            new_url = self._upload_license(attachment)
            contract.license_url = new_url

        self._apply_request(contract, request)

        # Resubmission always goes back to the review queue
        contract.status = ContractStatus.PENDING
        contract.last_modified = datetime.now(timezone.utc)
        contract.last_modified_by = identity.actor

        try:
            self._commit()
        except Exception:
            self._discard_upload(new_url)
            raise
        self.db.refresh(contract)

        # The replaced license is removed only once the new one is committed
        if new_url and old_url and old_url != new_url:
            self._discard_upload(old_url)

        logger.info(
            "Contract %s updated by %s", contract_id, identity.actor,
            extra={"contract_id": contract_id, "actor": identity.actor}
        )
        return ContractResponse.model_validate(contract)

    def get_all_contracts(self, page: int = 1, limit: int = 10) -> ContractPage:
        return self._paginate(self.db.query(Contract), page, limit)

    def get_all_contracts_with_filters(
        self,
        page: int = 1,
        limit: int = 10,
        status: Optional[ContractStatus] = None,
        email: Optional[str] = None,
        operation_area: Optional[str] = None
    ) -> ContractPage:
        """List contracts, falling back to the unfiltered listing when no filter is set"""
        if status is None and not (email or "").strip() and not (operation_area or "").strip():
            return self.get_all_contracts(page, limit)
        return self.search_contracts(email, status, operation_area, page, limit)

    def get_contracts_by_status(
        self,
        status: ContractStatus,
        page: int = 1,
        limit: int = 10
    ) -> ContractPage:
        query = self.db.query(Contract).filter(Contract.status == status)
        return self._paginate(query, page, limit)

    def search_contracts(
        self,
        email: Optional[str] = None,
        status: Optional[ContractStatus] = None,
        operation_area: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> ContractPage:
        """Filter by email and operation area substrings (case-insensitive) and exact status"""

        query = self.db.query(Contract)

        if email and email.strip():
            query = query.filter(Contract.email.ilike(f"%{email.strip()}%"))

        if status is not None:
            query = query.filter(Contract.status == status)

        if operation_area and operation_area.strip():
            query = query.filter(Contract.operation_area.ilike(f"%{operation_area.strip()}%"))

        return self._paginate(query, page, limit)

    def review_contract(
        self,
        contract_id: int,
        review: ContractReview,
        identity: CallerIdentity
    ) -> ContractResponse:
        """Apply an admin decision to a contract under review"""

        contract = self._get_contract(contract_id)
        action = ReviewAction.parse(review.action)

        if not contract.status.is_editable:
            raise ContractUpdateError.invalid_status(contract_id, contract.status.value)

        now = datetime.now(timezone.utc)
        contract.admin_note = review.admin_note
        contract.last_modified = now
        contract.last_modified_by = identity.actor

        provisioned = None

        match action:
            case ReviewAction.APPROVE:
                contract.status = ContractStatus.ACCEPTED
                contract.approved_date = now
                try:
                    provisioned = self.provisioner.process_accepted_contract(contract)
                except Exception as e:
                    email = contract.email
                    self.db.rollback()
                    logger.error(
                        "Provisioning failed for contract %s: %s", contract_id, e,
                        extra={"contract_id": contract_id, "actor": identity.actor}
                    )
                    raise ContractProvisioningError.user_creation_failed(
                        contract_id, email, e
                    ) from e
            case ReviewAction.REJECT:
                contract.status = ContractStatus.REJECTED
            case ReviewAction.REQUEST_REVISION:
                contract.status = ContractStatus.NEED_REVISION

        self._commit()
        self.db.refresh(contract)

        logger.info(
            "Contract %s reviewed by %s: %s -> %s",
            contract_id, identity.actor, action.value, contract.status.value,
            extra={"contract_id": contract_id, "actor": identity.actor}
        )

        if provisioned and provisioned.temporary_password and self.notifier:
            self.notifier.send_operator_account_email(
                provisioned.email, provisioned.name, provisioned.temporary_password
            )

        return ContractResponse.model_validate(contract)

    def count_contracts_by_status(self, status: ContractStatus) -> int:
        return self.db.query(Contract).filter(Contract.status == status).count()

    def _get_contract(self, contract_id: int) -> Contract:
        contract = self.db.query(Contract).filter(Contract.id == contract_id).first()
        if not contract:
            raise ContractNotFoundError.with_id(contract_id)
        return contract

    def _apply_request(self, contract: Contract, request: ContractRequest) -> None:
        contract.vat_code = request.vat_code
        contract.email = request.email
        contract.phone = request.phone
        contract.address = request.address
        contract.start_date = request.start_date
        contract.end_date = request.end_date
        contract.operation_area = request.operation_area

    def _upload_license(self, attachment: Attachment) -> str:
        try:
            return self.storage.upload(attachment.content, attachment.filename, LICENSE_FOLDER)
        except Exception as e:
            raise ContractAttachmentError.upload_failed(attachment.filename, e) from e

    def _discard_upload(self, url: Optional[str]) -> None:
        """Best-effort removal of a stored license; failures only leave an orphaned file"""
        if not url:
            return
        public_id = self.storage.extract_public_id(url)
        if not public_id:
            return
        try:
            self.storage.delete(public_id)
        except Exception as e:
            logger.warning("Could not delete license %s: %s", public_id, e)

    def _paginate(self, query, page: int, limit: int) -> ContractPage:
        """1-based page over a query, newest contracts first"""
        if page < 1:
            raise ValueError("page must be >= 1")
        if limit < 1:
            raise ValueError("limit must be >= 1")

        total = query.count()
        contracts = query.order_by(
            Contract.created_date.desc(), Contract.id.desc()
        ).offset((page - 1) * limit).limit(limit).all()

        return ContractPage(
            items=[ContractResponse.model_validate(c) for c in contracts],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0
        )

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
