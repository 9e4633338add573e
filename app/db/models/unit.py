from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from app.db.base import Base


class Unit(Base):
    __tablename__ = "units"

    id = Column(Integer, primary_key=True, index=True)
    landlord_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    code = Column(String(64), nullable=False)
    property_name = Column(String(255), nullable=False)
    address_line = Column(String(512), nullable=True)

    # Relationships
    landlord = relationship("User", backref="units")
