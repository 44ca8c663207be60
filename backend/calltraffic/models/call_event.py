from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Index, Integer, JSON, String

from calltraffic.core.database import Base
from calltraffic.models.enums import CallStatus, IntentCode


class CallEvent(Base):
    __tablename__ = "call_events"
    __table_args__ = (Index("ix_call_events_owner_created", "owner_id", "created_at"),)

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("owners.id", ondelete="CASCADE"), nullable=False)
    caller = Column(String(64))
    called = Column(String(64))
    intent_code = Column(Enum(IntentCode), nullable=False, index=True)
    status = Column(Enum(CallStatus), nullable=False, default=CallStatus.COMPLETED)
    duration_seconds = Column(Integer, nullable=False, default=0)
    first_name = Column(String(120))
    last_name = Column(String(120))
    birthdate = Column(Date)
    created_at = Column(DateTime, nullable=False)
    steps = Column(JSON, nullable=False, default=list)
    stats = Column(JSON, nullable=False, default=dict)
