from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.domain.contract_state import (
    ConsentStatus,
    ContractStatus,
    TerminationStatus,
    TerminationType,
)
from app.schemas.contract import OTP_PATTERN


class TerminationConsent(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    party_id: int
    user_id: int
    status: ConsentStatus
    method: str | None = None
    signed_at: datetime | None = None


class TerminationRequest(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    contract_id: int
    initiator_party_id: int
    type: TerminationType
    reason: str
    status: TerminationStatus
    previous_status: ContractStatus
    expires_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    consents: list[TerminationConsent]


class TerminationCreate(BaseModel):
    type: TerminationType
    reason: str | None = Field(
        None, max_length=2000, description="Required for EARLY_TERMINATE; ignored for NORMAL_EXPIRE"
    )


class TerminationOtpRequest(BaseModel):
    party_id: int


class TerminationConsentSubmit(BaseModel):
    party_id: int
    otp: str = Field(..., pattern=OTP_PATTERN, description="6-digit one-time password")
