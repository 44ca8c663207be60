from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from calltraffic.core.database import Base
from calltraffic.models.enums import OwnerRole


class Owner(Base):
    __tablename__ = "owners"

    id = Column(Integer, primary_key=True)
    name = Column(String(150), nullable=False)
    role = Column(Enum(OwnerRole), nullable=False, default=OwnerRole.CLIENT)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    numbers = relationship(
        "OwnerNumber", back_populates="owner", cascade="all, delete-orphan", order_by="OwnerNumber.id"
    )


class OwnerNumber(Base):
    __tablename__ = "owner_numbers"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True)
    number = Column(String(64), nullable=False)

    owner = relationship("Owner", back_populates="numbers")
