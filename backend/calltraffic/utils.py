import math


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def js_weekday(value) -> int:
    """Day of week with 0=Sunday..6=Saturday."""
    return value.isoweekday() % 7


def seconds_to_min_label(total_seconds: float) -> str:
    seconds = max(0, round_half_up(total_seconds))
    return f"{seconds // 60}min{seconds % 60:02d}"
