from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from loan_pipeline.errors import MalformedMessageError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoanStatus(str, Enum):
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    VERIFIED = "VERIFIED"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Action(str, Enum):
    VERIFY_DOCUMENTS = "VERIFY_DOCUMENTS"
    CHECK_ELIGIBILITY = "CHECK_ELIGIBILITY"


class LoanRecord(BaseModel):
    id: int
    user_id: int
    amount: Optional[Decimal] = None
    address: str = ""
    status: LoanStatus
    created_at: datetime


class MessageEnvelope(BaseModel):
    """Queue message body. Serialized as ``{loanId, userId, action, timestamp}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    loan_id: int = Field(alias="loanId")
    user_id: int = Field(alias="userId")
    action: Action
    timestamp: datetime = Field(default_factory=utcnow)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, body) -> "MessageEnvelope":
        try:
            return cls.model_validate_json(body)
        except ValidationError as e:
            raise MalformedMessageError(f"Invalid message body: {e}") from e


class NotificationEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    loan_id: int = Field(alias="loanId")
    user_id: int = Field(alias="userId")
    status: LoanStatus = LoanStatus.APPROVED
    reason: str
    timestamp: datetime = Field(default_factory=utcnow)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class Decision(BaseModel):
    """Outcome of a verification or eligibility policy."""

    passed: bool
    reason: str


@dataclass(frozen=True)
class ReceivedMessage:
    body: str
    receipt: str  # delete token, valid until the visibility timeout expires
