"""
Contract workflow errors.

Each error wraps the failing cause (when there is one) and carries the
identifiers the router needs to build a response. Nothing here is retried;
callers decide how to surface the failure.
"""

from typing import Optional


class ContractError(Exception):
    """Base class for contract workflow failures"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class ContractNotFoundError(ContractError):
    def __init__(self, contract_id: int):
        super().__init__(f"Contract not found with id: {contract_id}")
        self.contract_id = contract_id

    @classmethod
    def with_id(cls, contract_id: int) -> "ContractNotFoundError":
        return cls(contract_id)


class ContractUpdateError(ContractError):
    def __init__(self, contract_id: int, status: str):
        super().__init__(
            f"Contract {contract_id} cannot be updated in status {status}; "
            "only PENDING or NEED_REVISION contracts are editable"
        )
        self.contract_id = contract_id
        self.status = status

    @classmethod
    def invalid_status(cls, contract_id: int, status: str) -> "ContractUpdateError":
        return cls(contract_id, status)


class ContractReviewError(ContractError):
    def __init__(self, action):
        super().__init__(
            f"Invalid review action: {action}. Expected one of APPROVE, REJECT, REQUEST_REVISION"
        )
        self.action = action

    @classmethod
    def invalid_action(cls, action) -> "ContractReviewError":
        return cls(action)


class ContractAttachmentError(ContractError):
    def __init__(self, filename: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to upload contract attachment: {filename}", cause)
        self.filename = filename

    @classmethod
    def upload_failed(cls, filename: Optional[str], cause: BaseException) -> "ContractAttachmentError":
        return cls(filename or "unknown", cause)


class ContractProvisioningError(ContractError):
    def __init__(self, contract_id: int, email: str, cause: Optional[BaseException] = None):
        super().__init__(
            f"Failed to create operator account for contract {contract_id} ({email})", cause
        )
        self.contract_id = contract_id
        self.email = email

    @classmethod
    def user_creation_failed(
        cls, contract_id: int, email: str, cause: BaseException
    ) -> "ContractProvisioningError":
        return cls(contract_id, email, cause)
