from datetime import datetime
from typing import Any, List, Optional, Sequence

from calltraffic.core.config import settings
from calltraffic.core.errors import NotFoundError
from calltraffic.models import CallEvent
from calltraffic.models.enums import CallStatus, IntentCode
from calltraffic.schemas import CallStats, CallSummaryIn
from calltraffic.services.store import EventStore

SPEAKERS = ("Lyrae", "User")
MIN_DISPLAY_DURATION = 15


def intent_from_stats(stats: CallStats) -> IntentCode:
    if "prise_rdv" in stats.intents or "modification_rdv" in stats.intents or stats.rdv_booked:
        return IntentCode.RDV
    if "renseignements" in stats.intents:
        return IntentCode.INFO
    if "annulation_rdv" in stats.intents:
        return IntentCode.ANNULATION
    if stats.emergency:
        return IntentCode.URGENCE
    return IntentCode.CONSULTATION


def local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def transcript_turns(lines: Sequence[str]) -> List[dict]:
    return [{"speaker": SPEAKERS[index % 2], "text": text} for index, text in enumerate(lines)]


def record_call(
    summary: CallSummaryIn, store: EventStore, clock=datetime.now, default_called_number: Optional[str] = None
) -> CallEvent:
    if not store.owner_exists(summary.owner_id):
        raise NotFoundError(f"Owner {summary.owner_id} does not exist", owner_id=summary.owner_id)
    called = summary.called or store.find_owner_contact_number(summary.owner_id)
    duration = summary.stats.duration or 0
    event = CallEvent(
        owner_id=summary.owner_id,
        caller=summary.caller,
        called=called or default_called_number or settings.default_called_number,
        intent_code=intent_from_stats(summary.stats),
        status=CallStatus.COMPLETED,
        duration_seconds=duration,
        first_name=summary.first_name,
        last_name=summary.last_name,
        birthdate=summary.birthdate,
        created_at=local_naive(summary.created_at) if summary.created_at else clock(),
        steps=transcript_turns(summary.steps),
        stats=summary.stats.to_json(),
    )
    return store.insert_one(event)


def is_displayable(event: Any) -> bool:
    stats = event.stats or {}
    duration = stats.get("duration")
    if not duration or int(duration) <= MIN_DISPLAY_DURATION:
        return False
    return bool(event.steps) and len(event.steps) > 1
