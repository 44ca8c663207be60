from datetime import datetime
from typing import Callable, Dict, Optional

from fastapi import Header

from calltraffic.core.database import SessionLocal
from calltraffic.services.events import EventPublisher
from calltraffic.services.query import AggregationCoordinator
from calltraffic.services.store import SqlEventStore

MAX_DASHBOARD_SESSIONS = 1024

_coordinators: Dict[str, AggregationCoordinator] = {}


def get_store() -> SqlEventStore:
    return SqlEventStore(SessionLocal)


def get_clock() -> Callable[[], datetime]:
    return datetime.now


def get_publisher() -> Optional[Callable[[dict], None]]:
    return EventPublisher()


def coordinator_for(
    store: SqlEventStore, clock: Callable[[], datetime], session_key: Optional[str]
) -> AggregationCoordinator:
    if not session_key:
        return AggregationCoordinator(store, clock)
    coordinator = _coordinators.get(session_key)
    if coordinator is None:
        coordinator = AggregationCoordinator(store, clock)
        if len(_coordinators) >= MAX_DASHBOARD_SESSIONS:
            _coordinators.pop(next(iter(_coordinators)))
        _coordinators[session_key] = coordinator
    return coordinator


def dashboard_session(x_dashboard_session: Optional[str] = Header(default=None)) -> Optional[str]:
    return x_dashboard_session
