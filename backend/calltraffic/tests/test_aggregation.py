import math
import random
from datetime import date, datetime, timedelta

import pytest

from calltraffic.core.errors import AggregationError
from calltraffic.models import CallEvent
from calltraffic.models.enums import Category, IntentCode, Period
from calltraffic.services.aggregation import PLACEHOLDER_LABEL, aggregate, aggregate_events

NOW = datetime(2026, 10, 15, 18, 0)  # Thursday


def event(created_at, duration=60, owner_id=1, **stats):
    stats.setdefault("duration", duration)
    return CallEvent(
        owner_id=owner_id,
        intent_code=IntentCode.INFO,
        duration_seconds=duration,
        created_at=created_at,
        steps=[],
        stats=stats,
    )


def test_empty_window():
    result = aggregate_events([], Period.WEEK, NOW)
    assert result.total == 0
    assert result.performance_index == 100
    assert result.performance_index_defined is False
    assert result.hours_handled == 0
    assert result.average_durations == []
    assert all(count == 0 for count in result.category_counts.values())
    assert len(result.category_counts) == len(Category)
    assert result.transfer_breakdown.is_empty
    assert result.transfer_breakdown.items[0].label == PLACEHOLDER_LABEL
    assert result.category_breakdown.is_empty
    assert [point.value for point in result.hourly_activity] == [0] * 24
    assert result.window_start == NOW - timedelta(days=7)
    assert result.window_end == NOW


def test_month_histogram_averages_per_weekday():
    mondays = [date(2026, 9, 21), date(2026, 9, 28), date(2026, 10, 5), date(2026, 10, 12)]
    events = []
    for day in mondays:
        events.append(event(datetime.combine(day, datetime.min.time()).replace(hour=9), end_reason="transfer"))
        for _ in range(2):
            events.append(event(datetime.combine(day, datetime.min.time()).replace(hour=10)))
    result = aggregate_events(events, Period.MONTH, NOW)
    histogram = {bucket.weekday: bucket for bucket in result.weekday_histogram}
    assert [bucket.label for bucket in result.weekday_histogram] == ["Lun", "Mar", "Mer", "Jeu", "Ven", "Sam", "Dim"]
    assert histogram[1].total == 3.0
    assert histogram[1].redirected == 1.0
    assert histogram[1].handled == 2.0
    assert histogram[2].total == 0


def test_week_histogram_counts_each_date():
    events = [event(datetime(2026, 10, 15, 9, 0)) for _ in range(3)]
    events.append(event(datetime(2026, 10, 9, 11, 0), end_reason="transfer", transferReason="doctor"))
    events.append(event(datetime(2026, 10, 1, 11, 0)))
    result = aggregate_events(events, Period.WEEK, NOW)
    histogram = result.weekday_histogram
    assert [bucket.day for bucket in histogram] == [date(2026, 10, 9) + timedelta(days=n) for n in range(7)]
    assert histogram[0].label == "09/10"
    assert (histogram[0].total, histogram[0].redirected, histogram[0].handled) == (1, 1, 0)
    assert histogram[-1].total == 3
    assert histogram[-1].weekday == 4


def test_performance_index():
    events = [event(NOW - timedelta(hours=n)) for n in range(3)]
    events[0].stats = {"error_logic": 2, "duration": 60}
    result = aggregate_events(events, Period.DAY, NOW)
    assert result.performance_index == 67
    assert result.performance_index_defined is True


def test_performance_index_is_zero_when_every_call_errs():
    events = [event(NOW - timedelta(minutes=n), error_logic=n + 1) for n in range(5)]
    assert aggregate_events(events, Period.DAY, NOW).performance_index == 0


@pytest.mark.parametrize("seed", range(20))
def test_performance_index_stays_in_bounds(seed):
    rng = random.Random(seed)
    size = rng.randint(1, 40)
    events = [event(NOW, error_logic=rng.choice([0, 0, 1, 3])) for _ in range(size)]
    errors = sum(1 for e in events if e.stats["error_logic"] > 0)
    index = aggregate_events(events, Period.DAY, NOW).performance_index
    assert 0 <= index <= 100
    assert index == math.floor((1 - errors / size) * 100 + 0.5)


def test_month_histogram_ignores_partial_oldest_date():
    now = datetime(2026, 10, 19, 18, 0)  # Monday
    events = [event(datetime(2026, 9, 19, 20, 0)) for _ in range(4)]
    events.append(event(datetime(2026, 10, 17, 9, 0)))
    histogram = {bucket.weekday: bucket for bucket in aggregate_events(events, Period.MONTH, now).weekday_histogram}
    assert histogram[6].total == 0.25


def test_hours_handled_prefers_stats_duration():
    events = [event(NOW, duration=1800), event(NOW, duration=1800)]
    events[1].stats = {}
    events[1].duration_seconds = 1800
    result = aggregate_events(events, Period.DAY, NOW)
    assert result.hours_handled == 1.0
    assert result.hours_handled_label == "1.00 h"


def test_category_counts_and_average_durations():
    events = [
        event(NOW, duration=90, rdv_booked=1),
        event(NOW, duration=150, rdv_booked=1, emergency=True),
        event(NOW, duration=45, emergency=True),
        event(NOW, duration=600, intents=["consultation"]),
    ]
    result = aggregate_events(events, Period.DAY, NOW)
    assert result.category_counts[Category.RDV] == 2
    assert result.category_counts[Category.URGENCE] == 1
    assert result.category_counts[Category.AUTRE] == 1
    durations = {row.category: row for row in result.average_durations}
    assert set(durations) == {Category.RDV, Category.URGENCE}
    assert durations[Category.RDV].avg_seconds == 120
    assert durations[Category.RDV].duration_label == "2min00"
    assert durations[Category.URGENCE].duration_label == "0min45"
    labels = {item.key: item.value for item in result.category_breakdown.items}
    assert labels["rdv"] == 2 and labels["urgence"] == 1
    assert "autre" not in labels


def test_transfer_breakdown():
    events = [
        event(NOW, end_reason="transfer", transferReason="emergency", emergency=True),
        event(NOW, end_reason="transfer", transferReason="emergency", emergency=True),
        event(NOW, end_reason="transfer", transferReason="doctor"),
    ]
    breakdown = aggregate_events(events, Period.DAY, NOW).transfer_breakdown
    assert not breakdown.is_empty
    values = {item.key: item.value for item in breakdown.items}
    assert values["emergency"] == 2
    assert values["doctor"] == 1
    assert values["admin"] == 0


def test_hourly_activity_is_averaged_per_day():
    events = [event(datetime(2026, 10, 9 + n % 7, 10, 15)) for n in range(14)]
    result = aggregate_events(events, Period.WEEK, NOW)
    assert result.hourly_activity[10].value == 2.0
    assert result.hourly_activity[10].label == "10h"
    assert result.hourly_activity[11].value == 0


def test_bad_stats_rows_do_not_break_the_window(caplog):
    events = [
        event(NOW, rdv_booked=1),
        event(NOW, emergency=None),
        event(NOW, end_reason="transfer", transferReason="other"),
        event(NOW, end_reason="hangup", transferReason="doctor"),
        event(NOW, end_reason="transfer", transferReason="doctor"),
        event(NOW, error_logic=-1),
    ]
    events[-1].stats["intents"] = None
    result = aggregate_events(events, Period.DAY, NOW)
    assert result.total == 6
    assert result.category_counts[Category.RDV] == 1
    assert result.category_counts[Category.AUTRE] == 5
    assert result.performance_index == 100
    values = {item.key: item.value for item in result.transfer_breakdown.items}
    assert values["doctor"] == 1
    assert sum(values.values()) == 1
    assert result.weekday_histogram[-1].redirected == 2
    assert "Ignoring invalid stats fields" in caplog.text


def test_non_object_stats_count_as_empty():
    broken = event(NOW)
    broken.stats = "not-json"
    result = aggregate_events([broken, event(NOW, rdv_booked=1)], Period.DAY, NOW)
    assert result.total == 2
    assert result.category_counts[Category.AUTRE] == 1


def test_aggregate_reads_window_from_store(make_store):
    store = make_store()
    store.events.extend([event(NOW - timedelta(days=2)), event(NOW - timedelta(days=10)), event(NOW, owner_id=2)])
    assert aggregate(1, Period.WEEK, store, clock=lambda: NOW).total == 1
    assert aggregate(1, "30d", store, clock=lambda: NOW).total == 2


def test_store_failure_becomes_aggregation_error(make_store):
    class BrokenStore(make_store):
        def find_many(self, *args, **kwargs):
            raise RuntimeError("connection reset")

    with pytest.raises(AggregationError):
        aggregate(1, Period.WEEK, BrokenStore(), clock=lambda: NOW)
