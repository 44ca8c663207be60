import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import time
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from calltraffic.core import deps
from calltraffic.core.database import Base, SessionLocal, engine
from calltraffic.main import app
from calltraffic.models import CallEvent, Owner, OwnerNumber
from calltraffic.models.enums import OwnerRole
from calltraffic.services.store import SqlEventStore

NOW = datetime(2026, 10, 15, 18, 0)


class MemoryStore:
    """In-process event store with optional latency and insert failures."""

    def __init__(self, owners=None, numbers=None, delay=0.0, fail_on_insert=None):
        self.owners = dict(owners or {1: ("Centre Nord", OwnerRole.CLIENT)})
        self.numbers = dict(numbers or {})
        self.events = []
        self.delay = delay
        self.fail_on_insert = fail_on_insert or {}
        self.insert_calls = {}
        self._next_id = 1

    def insert_many(self, events):
        events = list(events)
        owner_ids = {event.owner_id for event in events}
        for owner_id in owner_ids:
            self.insert_calls[owner_id] = self.insert_calls.get(owner_id, 0) + 1
            if self.insert_calls[owner_id] == self.fail_on_insert.get(owner_id):
                raise RuntimeError("disk full")
        for event in events:
            event.id = self._next_id
            self._next_id += 1
            self.events.append(event)

    def insert_one(self, event):
        self.insert_many([event])
        return event

    def delete_many(self, owner_id, from_time, to_time):
        kept = [
            event
            for event in self.events
            if not (event.owner_id == owner_id and from_time <= event.created_at <= to_time)
        ]
        deleted = len(self.events) - len(kept)
        self.events = kept
        return deleted

    def find_many(self, owner_id, from_time, to_time, intent_filter=None):
        if self.delay:
            time.sleep(self.delay)
        found = [
            event
            for event in self.events
            if event.owner_id == owner_id
            and from_time <= event.created_at <= to_time
            and (intent_filter is None or event.intent_code == intent_filter)
        ]
        return sorted(found, key=lambda event: event.created_at, reverse=True)

    def find_owner_contact_number(self, owner_id):
        return self.numbers.get(owner_id)

    def owner_exists(self, owner_id):
        return owner_id in self.owners

    def owner_names(self, owner_ids):
        return {owner_id: self.owners[owner_id][0] for owner_id in owner_ids if owner_id in self.owners}

    def list_owner_ids(self, role=None):
        return sorted(owner_id for owner_id, (_, owner_role) in self.owners.items() if role in (None, owner_role))


@pytest.fixture()
def make_store():
    return MemoryStore


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def owners():
    db = SessionLocal()
    centre = Owner(name="Centre Nord", role=OwnerRole.CLIENT)
    centre.numbers.append(OwnerNumber(number="0145000000"))
    other = Owner(name="Centre Sud", role=OwnerRole.CLIENT)
    admin = Owner(name="Siège", role=OwnerRole.ADMIN)
    db.add_all([admin, centre, other])
    db.commit()
    ids = {"admin": admin.id, "centre": centre.id, "other": other.id}
    db.close()
    yield ids
    db = SessionLocal()
    db.query(CallEvent).delete()
    db.query(OwnerNumber).delete()
    db.query(Owner).delete()
    db.commit()
    db.close()


@pytest.fixture()
def published():
    return []


@pytest.fixture()
def client(published):
    app.dependency_overrides[deps.get_store] = lambda: SqlEventStore(SessionLocal)
    app.dependency_overrides[deps.get_clock] = lambda: (lambda: NOW)
    app.dependency_overrides[deps.get_publisher] = lambda: published.append
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
