"""Maps a call's outcome signals to one dashboard category.

Rules are evaluated in order and the first match wins, so an event that
booked an appointment and was flagged as an emergency counts as ``rdv``.
"""

from typing import Any, Callable, List, Mapping, Tuple, Union

from calltraffic.models.enums import Category
from calltraffic.schemas import CallStats

Rule = Tuple[Category, Callable[[CallStats], bool]]

RULES: List[Rule] = [
    (Category.RDV, lambda stats: stats.rdv_booked != 0),
    (Category.RDV_INTENT, lambda stats: "prise_rdv" in stats.intents),
    (Category.INFO, lambda stats: "renseignements" in stats.intents),
    (Category.MODIFICATION, lambda stats: "modification_rdv" in stats.intents),
    (Category.ANNULATION, lambda stats: "annulation_rdv" in stats.intents),
    (Category.URGENCE, lambda stats: stats.emergency),
]


def as_stats(stats: Union[CallStats, Mapping[str, Any], None]) -> CallStats:
    if isinstance(stats, CallStats):
        return stats
    return CallStats.model_validate(dict(stats or {}))


def classify(stats: Union[CallStats, Mapping[str, Any], None]) -> Category:
    parsed = as_stats(stats)
    for category, matches in RULES:
        if matches(parsed):
            return category
    return Category.AUTRE
