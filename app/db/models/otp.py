from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String

from app.db.base import Base
from app.domain.contract_state import OtpPurpose


class ContractOtp(Base):
    __tablename__ = "contract_otps"

    id = Column(Integer, primary_key=True, index=True)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False, index=True)
    party_id = Column(Integer, ForeignKey("contract_parties.id"), nullable=False, index=True)
    purpose = Column(Enum(OtpPurpose, native_enum=False, length=16), nullable=False)
    termination_request_id = Column(
        Integer, ForeignKey("termination_requests.id"), nullable=True
    )
    code_hash = Column(String(64), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    consumed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False)
