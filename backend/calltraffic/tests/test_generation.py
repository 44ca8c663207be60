from datetime import date, datetime, time

import pytest

from calltraffic.core.errors import NotFoundError, ValidationError
from calltraffic.models import CallEvent
from calltraffic.models.enums import IntentCode, OwnerRole
from calltraffic.services.generation import (
    TrafficGenerator,
    regenerate,
    regeneration_window,
    resolve_target_owner_ids,
    window_days_list,
)
from calltraffic.services.profile import default_profile
from calltraffic.services.sampling import volume_envelope
from calltraffic.utils import js_weekday

NOW = datetime(2026, 10, 15, 18, 0)


def make_event(owner_id, created_at):
    return CallEvent(
        owner_id=owner_id,
        intent_code=IntentCode.INFO,
        duration_seconds=60,
        created_at=created_at,
        steps=[],
        stats={"intents": ["renseignements"], "duration": 60},
    )


def generator_for(store, **kwargs):
    kwargs.setdefault("clock", lambda: NOW)
    return TrafficGenerator(store, kwargs.pop("profile", default_profile()), **kwargs)


def envelope_total(profile, days):
    low = high = 0
    for day in days:
        day_low, day_high = volume_envelope(js_weekday(day), profile.weekday_bands, profile.base_min, profile.base_max)
        low += day_low
        high += day_high
    return low, high


def test_window_bounds():
    start, end = regeneration_window(NOW, 3)
    assert start == datetime(2026, 10, 11, 18, 0)
    assert end == datetime.combine(date(2026, 10, 15), time.max)
    assert window_days_list(NOW.date(), 3) == [date(2026, 10, 13), date(2026, 10, 14), date(2026, 10, 15)]


def test_regenerate_seeds_every_day(make_store):
    store = make_store(numbers={1: "0145000000"})
    report = generator_for(store, seed=1).regenerate([1], 7)
    assert not report.failed
    result = report.owners[0]
    assert result.days_seeded == 7
    assert result.events_inserted == len(store.events)
    low, high = envelope_total(default_profile(), window_days_list(NOW.date(), 7))
    assert low <= len(store.events) <= high
    days = {event.created_at.date() for event in store.events}
    assert days <= set(window_days_list(NOW.date(), 7))
    assert {event.called for event in store.events} == {"0145000000"}


def test_default_called_number(make_store):
    store = make_store()
    generator_for(store, seed=1).regenerate([1], 1)
    assert {event.called for event in store.events} == {"0140000000"}


def test_rerun_replaces_window(make_store):
    store = make_store()
    old = make_event(1, datetime(2026, 9, 1, 10, 0))
    late_today = make_event(1, datetime(2026, 10, 15, 22, 30))
    other_owner = make_event(2, datetime(2026, 10, 14, 10, 0))
    store.events.extend([old, late_today, other_owner])

    generator_for(store, seed=1).regenerate([1], 5)
    second = generator_for(store, seed=2).regenerate([1], 5)

    assert old in store.events
    assert other_owner in store.events
    assert late_today not in store.events
    regenerated = [e for e in store.events if e.owner_id == 1 and e is not old]
    assert len(regenerated) == second.owners[0].events_inserted
    low, high = envelope_total(default_profile(), window_days_list(NOW.date(), 5))
    assert low <= len(regenerated) <= high


def test_same_seed_is_reproducible(make_store):
    first, second = make_store(), make_store()
    generator_for(first, seed=42).regenerate([1], 3)
    generator_for(second, seed=42).regenerate([1], 3)
    signature = lambda store: [(e.created_at, e.intent_code, e.duration_seconds, e.caller) for e in store.events]
    assert signature(first) == signature(second)


def test_parallel_workers_match_sequential(make_store):
    owners = {1: ("A", OwnerRole.CLIENT), 2: ("B", OwnerRole.CLIENT), 3: ("C", OwnerRole.CLIENT)}
    sequential, parallel = make_store(owners=owners), make_store(owners=owners)
    generator_for(sequential, seed=5).regenerate([1, 2, 3], 2)
    report = generator_for(parallel, seed=5, max_workers=3).regenerate([1, 2, 3], 2)
    assert [owner.owner_id for owner in report.owners] == [1, 2, 3]
    for owner_id in (1, 2, 3):
        ours = sorted((e.created_at, e.caller) for e in sequential.events if e.owner_id == owner_id)
        theirs = sorted((e.created_at, e.caller) for e in parallel.events if e.owner_id == owner_id)
        assert ours == theirs


def test_unknown_owner_does_not_stop_others(make_store):
    store = make_store()
    published = []
    report = generator_for(store, seed=1, publish=published.append).regenerate([99, 1], 2)
    missing, ok = report.owners
    assert missing.owner_id == 99 and not missing.ok
    assert "99" in missing.error
    assert ok.ok and ok.events_inserted == len(store.events)
    assert [message["type"] for message in published] == ["traffic_regeneration_failed", "traffic_regenerated"]


def test_write_failure_aborts_only_that_owner(make_store):
    owners = {1: ("A", OwnerRole.CLIENT), 2: ("B", OwnerRole.CLIENT)}
    store = make_store(owners=owners, fail_on_insert={2: 2})
    report = generator_for(store, seed=1).regenerate([1, 2], 3)
    first, second = report.owners
    assert first.ok and first.days_seeded == 3
    assert not second.ok
    assert second.days_seeded == 1
    assert "2026-10-14" in second.error
    assert [owner.owner_id for owner in report.failed] == [2]


def test_publisher_errors_are_logged(make_store, caplog):
    def broken(_payload):
        raise RuntimeError("no broker")

    report = generator_for(make_store(), seed=1, publish=broken).regenerate([1], 1)
    assert report.owners[0].ok
    assert "Failed to publish" in caplog.text


def test_empty_distribution_generates_nothing(make_store):
    store = make_store()
    report = generator_for(store, profile=default_profile({"intent_distribution": []})).regenerate([1], 3)
    assert report.owners[0].ok
    assert report.owners[0].days_seeded == 3
    assert store.events == []


@pytest.mark.parametrize("owner_ids", [[], [0], [-1], ["1"], [True], "1", None])
def test_invalid_owner_ids(make_store, owner_ids):
    with pytest.raises(ValidationError):
        generator_for(make_store()).regenerate(owner_ids, 3)


@pytest.mark.parametrize("window_days", [0, -3, 2.5, True, None])
def test_invalid_window(make_store, window_days):
    with pytest.raises(ValidationError):
        generator_for(make_store()).regenerate([1], window_days)


def test_duplicate_owner_ids_seeded_once(make_store):
    report = generator_for(make_store(), seed=1).regenerate([1, 1], 1)
    assert len(report.owners) == 1


def test_resolve_targets(make_store):
    store = make_store(owners={1: ("HQ", OwnerRole.ADMIN), 3: ("A", OwnerRole.CLIENT), 5: ("B", OwnerRole.CLIENT)})
    assert resolve_target_owner_ids(store, [5]) == [5]
    assert resolve_target_owner_ids(store, None, [1, 3]) == [1, 3]
    assert resolve_target_owner_ids(store) == [3]
    with pytest.raises(NotFoundError):
        resolve_target_owner_ids(make_store(owners={1: ("HQ", OwnerRole.ADMIN)}))


def test_module_level_regenerate(make_store):
    store = make_store()
    report = regenerate([1], 1, default_profile(), store, seed=1)
    assert report.owners[0].ok
    assert report.owners[0].events_inserted == len(store.events)
