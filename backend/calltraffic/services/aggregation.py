"""Dashboard metrics computed from a window of call events.

Functions accept any objects exposing ``created_at``, ``duration_seconds``
and a ``stats`` mapping, so SQLAlchemy rows and test doubles work alike.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import pydantic

from calltraffic.core.errors import AggregationError
from calltraffic.models.enums import CATEGORY_LABELS, TRANSFER_LABELS, Category, EndReason, Period, TransferReason
from calltraffic.schemas import (
    AggregateResult,
    Breakdown,
    BreakdownItem,
    CallStats,
    CategoryDuration,
    HourlyPoint,
    WeekdayBucket,
)
from calltraffic.services.classification import as_stats, classify
from calltraffic.services.store import EventStore
from calltraffic.utils import js_weekday, round_half_up, seconds_to_min_label

logger = logging.getLogger(__name__)

WEEKDAY_LABELS = {1: "Lun", 2: "Mar", 3: "Mer", 4: "Jeu", 5: "Ven", 6: "Sam", 0: "Dim"}
WEEKDAY_ORDER = [1, 2, 3, 4, 5, 6, 0]
DURATION_CATEGORIES = [category for category in Category if category != Category.AUTRE]
PLACEHOLDER_LABEL = "Aucune donnée"
TRANSFER_KEYS = ("transferReason", "transfer_reason")
MAX_STATS_REPAIRS = 8

Parsed = Tuple[Any, CallStats, Category]


def window_for(period: Period, now: datetime) -> Tuple[datetime, datetime]:
    return now - timedelta(days=period.days), now


def lenient_stats(raw: Any, event_id: Any = None) -> CallStats:
    """Parse stats for metrics, dropping fields that fail validation.

    Dropped fields fall back to their defaults, so a stray or unknown
    ``transferReason`` counts as no reason. One warning is logged per bad row.
    """
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.warning("Ignoring non-object stats on event %s", event_id)
        return CallStats()
    data = {key: value for key, value in raw.items() if value is not None}
    dropped: List[str] = []
    for _ in range(MAX_STATS_REPAIRS):
        try:
            stats = as_stats(data)
        except pydantic.ValidationError as exc:
            fields = {str(error["loc"][0]) for error in exc.errors() if error["loc"]} or set(TRANSFER_KEYS)
            fields &= set(data)
            if not fields:
                break
            for field in fields:
                data.pop(field)
            dropped.extend(sorted(fields))
            continue
        if dropped:
            logger.warning("Ignoring invalid stats fields %s on event %s", ", ".join(dropped), event_id)
        return stats
    logger.warning("Ignoring unparseable stats on event %s", event_id)
    return CallStats()


def parse_events(events: Sequence[Any]) -> List[Parsed]:
    parsed: List[Parsed] = []
    for event in events:
        stats = lenient_stats(event.stats, getattr(event, "id", None))
        parsed.append((event, stats, classify(stats)))
    return parsed


def event_duration(event: Any, stats: CallStats) -> int:
    if stats.duration is not None:
        return stats.duration
    return event.duration_seconds or 0


def is_redirected(stats: CallStats) -> bool:
    return stats.end_reason == EndReason.TRANSFER


def category_counts(parsed: Sequence[Parsed]) -> Dict[Category, int]:
    counts = Counter(category for _, _, category in parsed)
    return {category: counts.get(category, 0) for category in Category}


def performance_index(parsed: Sequence[Parsed]) -> int:
    """Share of calls without logic errors, as a percentage.

    An empty window scores 100: no errors were observed because there is no
    data. ``performance_index_defined`` on the result tells the two apart.
    """
    total = len(parsed)
    if total == 0:
        return 100
    errors = sum(1 for _, stats, _ in parsed if stats.error_logic > 0)
    return min(100, max(0, round_half_up((1 - errors / total) * 100)))


def hours_handled(parsed: Sequence[Parsed]) -> float:
    return sum(event_duration(event, stats) for event, stats, _ in parsed) / 3600


def weekday_histogram(parsed: Sequence[Parsed], period: Period, now: datetime) -> List[WeekdayBucket]:
    if period == Period.MONTH:
        walked = {now.date() - timedelta(days=offset) for offset in range(period.days)}
        occurrences = Counter(js_weekday(day) for day in walked)
        totals: Counter = Counter()
        redirected: Counter = Counter()
        for event, stats, _ in parsed:
            if event.created_at.date() not in walked:
                continue
            weekday = js_weekday(event.created_at)
            totals[weekday] += 1
            if is_redirected(stats):
                redirected[weekday] += 1
        buckets = []
        for weekday in WEEKDAY_ORDER:
            days = max(1, occurrences.get(weekday, 0))
            avg_total = totals[weekday] / days
            avg_redirected = redirected[weekday] / days
            buckets.append(
                WeekdayBucket(
                    weekday=weekday,
                    label=WEEKDAY_LABELS[weekday],
                    handled=round(avg_total - avg_redirected, 2),
                    redirected=round(avg_redirected, 2),
                    total=round(avg_total, 2),
                )
            )
        return buckets

    last_days = [now.date() - timedelta(days=offset) for offset in range(6, -1, -1)]
    per_day = {day: [0, 0] for day in last_days}
    for event, stats, _ in parsed:
        bucket = per_day.get(event.created_at.date())
        if bucket is None:
            continue
        bucket[0] += 1
        if is_redirected(stats):
            bucket[1] += 1
    return [
        WeekdayBucket(
            weekday=js_weekday(day),
            label=day.strftime("%d/%m"),
            day=day,
            handled=total - redirected_count,
            redirected=redirected_count,
            total=total,
        )
        for day, (total, redirected_count) in per_day.items()
    ]


def hourly_activity(parsed: Sequence[Parsed], period: Period) -> List[HourlyPoint]:
    counts = Counter(event.created_at.hour for event, _, _ in parsed)
    return [
        HourlyPoint(hour=hour, label=f"{hour:02d}h", value=round(counts.get(hour, 0) / period.days, 2))
        for hour in range(24)
    ]


def average_durations(parsed: Sequence[Parsed]) -> List[CategoryDuration]:
    sums: Counter = Counter()
    counts: Counter = Counter()
    for event, stats, category in parsed:
        if category == Category.AUTRE:
            continue
        sums[category] += event_duration(event, stats)
        counts[category] += 1
    result = []
    for category in DURATION_CATEGORIES:
        count = counts.get(category, 0)
        if not count:
            continue
        avg_seconds = sums[category] / count
        result.append(
            CategoryDuration(
                category=category,
                label=CATEGORY_LABELS[category],
                count=count,
                avg_seconds=round(avg_seconds, 2),
                avg_minutes=round(avg_seconds / 60, 1),
                duration_label=seconds_to_min_label(avg_seconds),
            )
        )
    return result


def _with_placeholder(items: List[BreakdownItem]) -> Breakdown:
    if sum(item.value for item in items) == 0:
        return Breakdown(items=[BreakdownItem(key=None, label=PLACEHOLDER_LABEL, value=1, placeholder=True)], is_empty=True)
    return Breakdown(items=items, is_empty=False)


def transfer_breakdown(parsed: Sequence[Parsed]) -> Breakdown:
    counts = Counter(stats.transfer_reason for _, stats, _ in parsed if stats.transfer_reason is not None)
    items = [
        BreakdownItem(key=reason.value, label=TRANSFER_LABELS[reason], value=counts.get(reason, 0))
        for reason in TransferReason
    ]
    return _with_placeholder(items)


def category_breakdown(counts: Dict[Category, int]) -> Breakdown:
    items = [
        BreakdownItem(key=category.value, label=CATEGORY_LABELS[category], value=counts[category])
        for category in DURATION_CATEGORIES
    ]
    return _with_placeholder(items)


def aggregate_events(
    events: Sequence[Any],
    period: Period,
    now: datetime,
    owner_id: Optional[int] = None,
) -> AggregateResult:
    period = Period(period)
    start, end = window_for(period, now)
    parsed = parse_events(events)
    counts = category_counts(parsed)
    hours = hours_handled(parsed)
    return AggregateResult(
        owner_id=owner_id,
        period=period,
        window_start=start,
        window_end=end,
        total=len(parsed),
        category_counts=counts,
        performance_index=performance_index(parsed),
        performance_index_defined=bool(parsed),
        hours_handled=round(hours, 2),
        hours_handled_label=f"{hours:.2f} h",
        weekday_histogram=weekday_histogram(parsed, period, now),
        hourly_activity=hourly_activity(parsed, period),
        average_durations=average_durations(parsed),
        transfer_breakdown=transfer_breakdown(parsed),
        category_breakdown=category_breakdown(counts),
    )


def aggregate(
    owner_id: int,
    period: Period,
    store: EventStore,
    clock: Callable[[], datetime] = datetime.now,
) -> AggregateResult:
    period = Period(period)
    now = clock()
    start, end = window_for(period, now)
    try:
        events = store.find_many(owner_id, start, end)
    except Exception as exc:
        logger.exception("Failed to load events for owner_id=%s", owner_id)
        raise AggregationError(f"Could not load events for owner {owner_id}: {exc}", owner_id=owner_id) from exc
    return aggregate_events(events, period, now, owner_id=owner_id)
