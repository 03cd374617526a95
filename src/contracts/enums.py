from enum import Enum

from src.contracts.exceptions import ContractReviewError


class ContractStatus(str, Enum):
    """Contract review status"""
    PENDING = "PENDING"
    NEED_REVISION = "NEED_REVISION"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"

    @property
    def is_editable(self) -> bool:
        return self in (ContractStatus.PENDING, ContractStatus.NEED_REVISION)


class ReviewAction(str, Enum):
    """Admin decision on a submitted contract"""
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    REQUEST_REVISION = "REQUEST_REVISION"

    @classmethod
    def parse(cls, action: str) -> "ReviewAction":
        """Case-insensitive lookup; unknown actions raise ContractReviewError"""
        try:
            return cls(action.strip().upper())
        except (AttributeError, ValueError):
            raise ContractReviewError.invalid_action(action) from None
