from datetime import datetime
from typing import Callable, List, Optional, Protocol, Sequence

from sqlalchemy.orm import Session

from calltraffic.models import CallEvent, Owner, OwnerNumber
from calltraffic.models.enums import IntentCode, OwnerRole


class EventStore(Protocol):
    def insert_many(self, events: Sequence[CallEvent]) -> None: ...

    def insert_one(self, event: CallEvent) -> CallEvent: ...

    def delete_many(self, owner_id: int, from_time: datetime, to_time: datetime) -> int: ...

    def find_many(
        self,
        owner_id: int,
        from_time: datetime,
        to_time: datetime,
        intent_filter: Optional[IntentCode] = None,
    ) -> List[CallEvent]: ...

    def find_owner_contact_number(self, owner_id: int) -> Optional[str]: ...

    def owner_exists(self, owner_id: int) -> bool: ...

    def owner_names(self, owner_ids: Sequence[int]) -> dict: ...

    def list_owner_ids(self, role: Optional[OwnerRole] = None) -> List[int]: ...


class SqlEventStore:
    """Event store backed by the SQLAlchemy session factory.

    Every operation opens its own session so owners can be seeded or
    aggregated from separate threads.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self.session_factory = session_factory

    def insert_many(self, events: Sequence[CallEvent]) -> None:
        db = self.session_factory()
        try:
            db.add_all(list(events))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def insert_one(self, event: CallEvent) -> CallEvent:
        db = self.session_factory()
        try:
            db.add(event)
            db.commit()
            db.refresh(event)
            db.expunge(event)
            return event
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def delete_many(self, owner_id: int, from_time: datetime, to_time: datetime) -> int:
        db = self.session_factory()
        try:
            deleted = (
                db.query(CallEvent)
                .filter(
                    CallEvent.owner_id == owner_id,
                    CallEvent.created_at >= from_time,
                    CallEvent.created_at <= to_time,
                )
                .delete(synchronize_session=False)
            )
            db.commit()
            return deleted
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def find_many(
        self,
        owner_id: int,
        from_time: datetime,
        to_time: datetime,
        intent_filter: Optional[IntentCode] = None,
    ) -> List[CallEvent]:
        db = self.session_factory()
        try:
            query = db.query(CallEvent).filter(
                CallEvent.owner_id == owner_id,
                CallEvent.created_at >= from_time,
                CallEvent.created_at <= to_time,
            )
            if intent_filter is not None:
                query = query.filter(CallEvent.intent_code == intent_filter)
            return query.order_by(CallEvent.created_at.desc()).all()
        finally:
            db.close()

    def find_owner_contact_number(self, owner_id: int) -> Optional[str]:
        db = self.session_factory()
        try:
            row = (
                db.query(OwnerNumber.number)
                .filter(OwnerNumber.owner_id == owner_id)
                .order_by(OwnerNumber.id)
                .first()
            )
            return row[0] if row else None
        finally:
            db.close()

    def owner_exists(self, owner_id: int) -> bool:
        db = self.session_factory()
        try:
            return db.query(Owner.id).filter(Owner.id == owner_id).first() is not None
        finally:
            db.close()

    def owner_names(self, owner_ids: Sequence[int]) -> dict:
        db = self.session_factory()
        try:
            rows = db.query(Owner.id, Owner.name).filter(Owner.id.in_(list(owner_ids))).all()
            return {row[0]: row[1] for row in rows}
        finally:
            db.close()

    def list_owner_ids(self, role: Optional[OwnerRole] = None) -> List[int]:
        db = self.session_factory()
        try:
            query = db.query(Owner.id)
            if role is not None:
                query = query.filter(Owner.role == role)
            return [row[0] for row in query.order_by(Owner.id).all()]
        finally:
            db.close()
