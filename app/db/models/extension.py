from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.domain.contract_state import ExtensionStatus


class ExtensionRequest(Base):
    __tablename__ = "extension_requests"

    id = Column(Integer, primary_key=True, index=True)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False, index=True)
    requested_by_party_id = Column(Integer, ForeignKey("contract_parties.id"), nullable=False)
    current_end_date = Column(Date, nullable=False)
    requested_end_date = Column(Date, nullable=False)
    note = Column(Text, nullable=True)
    status = Column(Enum(ExtensionStatus, native_enum=False, length=16), nullable=False)
    decision_note = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)
    decided_at = Column(DateTime, nullable=True)

    # Relationships
    contract = relationship("Contract", backref="extension_requests")
