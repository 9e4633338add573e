from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.domain.contract_state import (
    ConsentStatus,
    ContractStatus,
    TerminationStatus,
    TerminationType,
)


class TerminationRequest(Base):
    __tablename__ = "termination_requests"

    id = Column(Integer, primary_key=True, index=True)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False, index=True)
    initiator_party_id = Column(Integer, ForeignKey("contract_parties.id"), nullable=False)
    type = Column(Enum(TerminationType, native_enum=False, length=32), nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(Enum(TerminationStatus, native_enum=False, length=16), nullable=False)
    previous_status = Column(Enum(ContractStatus, native_enum=False, length=32), nullable=False)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    # Relationships
    contract = relationship("Contract", backref="termination_requests")
    consents = relationship(
        "TerminationConsent",
        back_populates="termination_request",
        order_by="TerminationConsent.id",
        cascade="all, delete-orphan",
    )


class TerminationConsent(Base):
    __tablename__ = "termination_consents"
    __table_args__ = (
        UniqueConstraint(
            "termination_request_id", "party_id", name="uq_termination_consents_request_party"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    termination_request_id = Column(
        Integer, ForeignKey("termination_requests.id"), nullable=False, index=True
    )
    party_id = Column(Integer, ForeignKey("contract_parties.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(Enum(ConsentStatus, native_enum=False, length=16), nullable=False)
    method = Column(String(16), nullable=True)
    signed_at = Column(DateTime, nullable=True)

    termination_request = relationship("TerminationRequest", back_populates="consents")
