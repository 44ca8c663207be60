"""Weighted random draws behind the synthetic traffic generator.

Every sampler takes the random source explicitly so test suites can pass a
seeded ``random.Random`` and get reproducible traffic.
"""

import random
from datetime import date
from typing import Dict, Mapping, Optional, Sequence, Tuple

from calltraffic.models.enums import IntentCode
from calltraffic.schemas import DurationRange, IntentShare, WeekdayBand
from calltraffic.utils import js_weekday, round_half_up

DEFAULT_BAND = WeekdayBand(min_multiplier=1, max_multiplier=1)
FALLBACK_HOUR = 12
FALLBACK_DURATION = (60, 240)


def day_bounds(band: WeekdayBand, multiplier: float, base_min: int, base_max: int) -> Tuple[int, int]:
    low = max(0, round_half_up(base_min * multiplier))
    high = max(low, round_half_up(base_max * multiplier))
    return low, high


def volume_envelope(
    weekday: int, bands: Mapping[int, WeekdayBand], base_min: int, base_max: int
) -> Tuple[int, int]:
    """Smallest and largest volume ``sample_day_volume`` can return for a weekday."""
    band = bands.get(weekday, DEFAULT_BAND)
    low, _ = day_bounds(band, band.min_multiplier, base_min, base_max)
    _, high = day_bounds(band, band.max_multiplier, base_min, base_max)
    return low, high


def sample_day_volume(
    day: date,
    bands: Mapping[int, WeekdayBand],
    base_min: int,
    base_max: int,
    rng: random.Random,
) -> int:
    band = bands.get(js_weekday(day), DEFAULT_BAND)
    multiplier = band.min_multiplier + rng.random() * (band.max_multiplier - band.min_multiplier)
    low, high = day_bounds(band, multiplier, base_min, base_max)
    return rng.randint(low, high)


def sample_hour(hour_weights: Mapping[int, float], rng: random.Random) -> int:
    weights = [(hour, hour_weights.get(hour, 0.0)) for hour in range(24)]
    total = sum(weight for _, weight in weights)
    if total <= 0:
        return FALLBACK_HOUR
    remaining = rng.random() * total
    last_active = FALLBACK_HOUR
    for hour, weight in weights:
        if weight <= 0:
            continue
        last_active = hour
        remaining -= weight
        if remaining <= 0:
            return hour
    return last_active


def sample_intent(distribution: Sequence[IntentShare], rng: random.Random) -> Optional[IntentCode]:
    if not distribution:
        return None
    r = rng.random()
    cumulative = 0.0
    for share in distribution:
        if share.probability <= 0:
            continue
        cumulative += share.probability
        if cumulative >= r:
            return share.intent_code
    return distribution[-1].intent_code


def sample_duration(
    intent: IntentCode, ranges: Dict[IntentCode, DurationRange], rng: random.Random
) -> int:
    bounds = ranges.get(intent)
    if bounds is None:
        low, high = FALLBACK_DURATION
    else:
        low, high = bounds.low, bounds.high
    return rng.randint(low, high)
