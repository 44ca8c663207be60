import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

import pydantic

from calltraffic.core.errors import ValidationError
from calltraffic.models.enums import IntentCode
from calltraffic.schemas import TrafficProfile

logger = logging.getLogger(__name__)

DEFAULT_FIRST_NAMES = ["Marie", "Lucas", "Chloé", "Enzo", "Léa", "Hugo", "Manon", "Nina", "Paul", "Zoé"]
DEFAULT_LAST_NAMES = ["Martin", "Bernard", "Dubois", "Thomas", "Robert", "Richard", "Petit", "Durand", "Leroy", "Moreau"]


def _default_hour_weights() -> dict:
    weights = {hour: 0.0 for hour in range(24)}
    for hour in range(6, 22):
        weights[hour] = 1.0
    weights.update({6: 0.6, 7: 0.7, 8: 0.8, 12: 2.5, 13: 2.5, 16: 2.2, 17: 2.2, 20: 0.8, 21: 0.7})
    return weights


def default_profile_data() -> dict:
    """Demo-centre traffic: busy Mondays to Thursdays, quiet weekends, lunch and late-afternoon peaks."""
    return {
        "base_min": 100,
        "base_max": 150,
        "weekday_bands": {
            0: {"min_multiplier": 0.05, "max_multiplier": 0.15},
            1: {"min_multiplier": 1.40, "max_multiplier": 1.70},
            2: {"min_multiplier": 0.90, "max_multiplier": 1.10},
            3: {"min_multiplier": 1.20, "max_multiplier": 1.50},
            4: {"min_multiplier": 1.20, "max_multiplier": 1.50},
            5: {"min_multiplier": 0.90, "max_multiplier": 1.10},
            6: {"min_multiplier": 0.10, "max_multiplier": 0.25},
        },
        "hour_weights": _default_hour_weights(),
        "intent_distribution": [
            {"intent_code": IntentCode.RDV, "probability": 0.55},
            {"intent_code": IntentCode.INFO, "probability": 0.20},
            {"intent_code": IntentCode.URGENCE, "probability": 0.10},
            {"intent_code": IntentCode.ANNULATION, "probability": 0.10},
            {"intent_code": IntentCode.CONSULTATION, "probability": 0.05},
        ],
        "duration_ranges": {
            IntentCode.RDV: {"low": 120, "high": 320},
            IntentCode.INFO: {"low": 60, "high": 180},
            IntentCode.URGENCE: {"low": 30, "high": 60},
            IntentCode.ANNULATION: {"low": 30, "high": 120},
            IntentCode.CONSULTATION: {"low": 45, "high": 150},
        },
        "steps": {
            IntentCode.RDV: ["Identification", "Type d’examen", "Créneau"],
            IntentCode.INFO: [],
            IntentCode.URGENCE: ["Identification"],
            IntentCode.ANNULATION: ["Identification", "Annulation"],
            IntentCode.CONSULTATION: ["Identification", "Consultation"],
        },
        "first_names": DEFAULT_FIRST_NAMES,
        "last_names": DEFAULT_LAST_NAMES,
        "birth_year_min": 1950,
        "birth_year_max": 2010,
    }


def load_profile(data: Mapping[str, Any]) -> TrafficProfile:
    try:
        return TrafficProfile.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid traffic profile: {exc}") from exc


def default_profile(overrides: Optional[Mapping[str, Any]] = None) -> TrafficProfile:
    data = default_profile_data()
    if overrides:
        data.update(overrides)
    return load_profile(data)


def load_profile_file(path: str) -> TrafficProfile:
    profile_path = Path(path)
    try:
        data = json.loads(profile_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValidationError(f"Cannot read traffic profile {profile_path}: {exc}") from exc
    logger.info("Loaded traffic profile from %s", profile_path)
    return load_profile(data)


def resolve_profile(path: Optional[str]) -> TrafficProfile:
    if path:
        return load_profile_file(path)
    return default_profile()
