from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from app.domain.contract_state import ContractStatus, PartyRole

OTP_PATTERN = r"^\d{6}$"


class Contract(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    unit_id: int
    landlord_id: int
    tenant_id: int
    start_date: date
    end_date: date
    pending_end_date: date | None = None
    deposit_amount: Decimal
    fee_detail: str | None = None
    template_code: str
    content: str
    status: ContractStatus
    created_at: datetime
    updated_at: datetime | None = None


class ContractParty(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role: PartyRole
    user_id: int
    email: str
    phone: str | None = None


class ContractSignature(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    party_id: int
    signed_at: datetime
    signature_data: str


class ContractVersion(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    version_no: int
    template_code: str
    content: str
    created_at: datetime


class ContractDetail(BaseModel):
    """Read model: the contract with everything needed to derive workflow flags."""

    contract: Contract
    versions: list[ContractVersion]
    parties: list[ContractParty]
    signatures: list[ContractSignature]

    @classmethod
    def from_model(cls, contract) -> "ContractDetail":
        return cls(
            contract=Contract.model_validate(contract),
            versions=[ContractVersion.model_validate(v) for v in contract.versions],
            parties=[ContractParty.model_validate(p) for p in contract.parties],
            signatures=[ContractSignature.model_validate(s) for s in contract.signatures],
        )


class ContractCreate(BaseModel):
    unit_id: int
    tenant_email: EmailStr
    start_date: date
    end_date: date
    deposit_amount: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    fee_detail: str | None = None
    template_code: str = Field(..., min_length=1, max_length=64)
    content: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_end_date_after_start_date(self):
        """Ensure end_date is after start_date. The minimum term is a business rule checked later."""
        if self.end_date <= self.start_date:
            raise ValueError(f"end_date ({self.end_date}) must be after start_date ({self.start_date})")
        return self


class ContractUpdate(BaseModel):
    unit_id: int | None = None
    tenant_email: EmailStr | None = None
    start_date: date | None = None
    end_date: date | None = None
    deposit_amount: Decimal | None = Field(None, ge=0, max_digits=14, decimal_places=2)
    fee_detail: str | None = None
    template_code: str | None = Field(None, min_length=1, max_length=64)
    content: str | None = Field(None, min_length=1)


class OtpRequest(BaseModel):
    party_id: int


class OtpIssued(BaseModel):
    party_id: int
    expires_at: datetime
    delivered: bool
    message: str

    @classmethod
    def for_party(cls, party_id: int, expires_at: datetime, delivered: bool) -> "OtpIssued":
        if delivered:
            message = "OTP sent to the party's registered email"
        else:
            message = "OTP issued but the email could not be delivered, request a new code later"
        return cls(party_id=party_id, expires_at=expires_at, delivered=delivered, message=message)


class SignRequest(BaseModel):
    party_id: int
    otp: str = Field(..., pattern=OTP_PATTERN, description="6-digit one-time password")
    role: PartyRole
