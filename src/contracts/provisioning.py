from dataclasses import dataclass
from typing import Optional, Protocol
import logging
import secrets

from sqlalchemy.orm import Session

from src.auth.utils import get_password_hash
from src.models import BusOperator, Contract, Role, User, UserHasRole

logger = logging.getLogger(__name__)

OPERATOR_ROLE = "operator"


@dataclass
class ProvisionedOperator:
    """Outcome of provisioning; temporary_password is set only for new accounts"""
    operator_id: int
    user_id: int
    email: str
    name: str
    temporary_password: Optional[str] = None


class OperatorProvisioner(Protocol):
    def process_accepted_contract(self, contract: Contract) -> ProvisionedOperator: ...


class OperatorProvisioningService:
    """Creates the operator's user account and bus operator for an accepted contract.

    Works inside the caller's session and only flushes; committing (or rolling
    back) is left to the contract workflow so the status change and the new
    records land together.
    """

    def __init__(self, db: Session):
        self.db = db

    def process_accepted_contract(self, contract: Contract) -> ProvisionedOperator:
        existing = self.db.query(BusOperator).filter(BusOperator.contract_id == contract.id).first()
        if existing:
            raise ValueError(f"Contract {contract.id} already has bus operator {existing.id}")

        user = self.db.query(User).filter(User.email == contract.email).first()
        temporary_password = None

        if user is None:
            temporary_password = secrets.token_urlsafe(9)
            user = User(
                name=contract.email.split("@")[0],
                email=contract.email,
                password=get_password_hash(temporary_password),
                phone=contract.phone,
                address=contract.address
            )
            self.db.add(user)
            self.db.flush()
            logger.info("Created user %s for contract %s", user.id, contract.id)

        self._ensure_role(user, OPERATOR_ROLE)

        operator = BusOperator(
            owner_id=user.id,
            contract_id=contract.id,
            name=user.name,
            email=contract.email,
            hotline=contract.phone,
            address=contract.address,
            license_path=contract.license_url,
            status="active"
        )
        self.db.add(operator)
        self.db.flush()

        logger.info(
            "Provisioned bus operator %s (user %s) from contract %s",
            operator.id, user.id, contract.id
        )

        return ProvisionedOperator(
            operator_id=operator.id,
            user_id=user.id,
            email=user.email,
            name=user.name,
            temporary_password=temporary_password
        )

    def _ensure_role(self, user: User, role_name: str) -> None:
        role = self.db.query(Role).filter(Role.name == role_name).first()
        if role is None:
            role = Role(name=role_name)
            self.db.add(role)
            self.db.flush()

        linked = self.db.query(UserHasRole).filter(
            UserHasRole.user_id == user.id,
            UserHasRole.role_id == role.id
        ).first()
        if linked is None:
            self.db.add(UserHasRole(user_id=user.id, role_id=role.id))
            self.db.flush()
