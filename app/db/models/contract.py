from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.domain.contract_state import ContractStatus, PartyRole


class Contract(Base):
    __tablename__ = "contracts"

    id = Column(Integer, primary_key=True, index=True)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=False, index=True)
    landlord_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    tenant_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    pending_end_date = Column(Date, nullable=True)
    deposit_amount = Column(Numeric(14, 2), nullable=False)
    fee_detail = Column(Text, nullable=True)
    template_code = Column(String(64), nullable=False)
    content = Column(Text, nullable=False)
    status = Column(
        Enum(ContractStatus, native_enum=False, length=32),
        nullable=False,
        default=ContractStatus.DRAFT,
    )
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)

    # Relationships
    unit = relationship("Unit", backref="contracts")
    landlord = relationship("User", foreign_keys=[landlord_id])
    tenant = relationship("User", foreign_keys=[tenant_id])
    parties = relationship(
        "ContractParty",
        back_populates="contract",
        order_by="ContractParty.id",
        cascade="all, delete-orphan",
    )
    signatures = relationship(
        "ContractSignature",
        back_populates="contract",
        order_by="ContractSignature.id",
        cascade="all, delete-orphan",
    )
    versions = relationship(
        "ContractVersion",
        back_populates="contract",
        order_by="ContractVersion.version_no",
        cascade="all, delete-orphan",
    )


class ContractParty(Base):
    __tablename__ = "contract_parties"
    __table_args__ = (
        UniqueConstraint("contract_id", "role", name="uq_contract_parties_contract_role"),
    )

    id = Column(Integer, primary_key=True, index=True)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False, index=True)
    role = Column(Enum(PartyRole, native_enum=False, length=16), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    email = Column(String(320), nullable=False)
    phone = Column(String(32), nullable=True)

    contract = relationship("Contract", back_populates="parties")
    user = relationship("User")


class ContractSignature(Base):
    __tablename__ = "contract_signatures"
    __table_args__ = (
        UniqueConstraint("contract_id", "party_id", name="uq_contract_signatures_contract_party"),
    )

    id = Column(Integer, primary_key=True, index=True)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False, index=True)
    party_id = Column(Integer, ForeignKey("contract_parties.id"), nullable=False)
    signed_at = Column(DateTime, nullable=False)
    signature_data = Column(String(128), nullable=False)

    contract = relationship("Contract", back_populates="signatures")
    party = relationship("ContractParty")


class ContractVersion(Base):
    __tablename__ = "contract_versions"
    __table_args__ = (
        UniqueConstraint("contract_id", "version_no", name="uq_contract_versions_contract_version"),
    )

    id = Column(Integer, primary_key=True, index=True)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False, index=True)
    version_no = Column(Integer, nullable=False)
    template_code = Column(String(64), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False)

    contract = relationship("Contract", back_populates="versions")
