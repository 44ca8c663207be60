import random
from datetime import date, datetime, time
from typing import List, Optional

from calltraffic.models import CallEvent
from calltraffic.models.enums import CallStatus, EndReason, IntentCode, TransferReason
from calltraffic.schemas import CallStats, TrafficProfile
from calltraffic.services.sampling import sample_duration, sample_hour, sample_intent

SUB_INTENTS = {
    IntentCode.RDV: ["prise_rdv"],
    IntentCode.INFO: ["renseignements"],
    IntentCode.URGENCE: [],
    IntentCode.ANNULATION: ["annulation_rdv"],
    IntentCode.CONSULTATION: ["consultation"],
}


def random_mobile_number(rng: random.Random) -> str:
    prefix = "06" if rng.random() < 0.5 else "07"
    return prefix + "".join(str(rng.randint(0, 9)) for _ in range(8))


class EventSynthesizer:
    def __init__(self, profile: TrafficProfile, rng: random.Random) -> None:
        self.profile = profile
        self.rng = rng

    def random_birthdate(self) -> date:
        year = self.rng.randint(self.profile.birth_year_min, self.profile.birth_year_max)
        return date(year, self.rng.randint(1, 12), self.rng.randint(1, 28))

    def steps_for(self, intent: IntentCode) -> List[str]:
        return list(self.profile.steps.get(intent, []))

    def build_stats(self, intent: IntentCode, duration: int) -> CallStats:
        stats = CallStats(
            intents=list(SUB_INTENTS[intent]),
            end_reason=EndReason.HANGUP,
            duration=duration,
        )
        if intent == IntentCode.RDV and self.rng.random() < self.profile.rdv_booking_rate:
            stats.rdv_booked = 1
        if intent == IntentCode.URGENCE and self.profile.flag_emergencies:
            stats.emergency = True
            stats.end_reason = EndReason.TRANSFER
            stats.transfer_reason = TransferReason.EMERGENCY
        return stats

    def synthesize(self, owner_id: int, day: date, called: str) -> Optional[CallEvent]:
        intent = sample_intent(self.profile.intent_distribution, self.rng)
        if intent is None:
            return None
        occurred_at = time(
            sample_hour(self.profile.hour_weights, self.rng),
            self.rng.randint(0, 59),
            self.rng.randint(0, 59),
        )
        duration = sample_duration(intent, self.profile.duration_ranges, self.rng)
        return CallEvent(
            owner_id=owner_id,
            caller=random_mobile_number(self.rng),
            called=called,
            intent_code=intent,
            status=CallStatus.COMPLETED,
            duration_seconds=duration,
            first_name=self.rng.choice(self.profile.first_names),
            last_name=self.rng.choice(self.profile.last_names),
            birthdate=self.random_birthdate(),
            created_at=datetime.combine(day, occurred_at),
            steps=self.steps_for(intent),
            stats=self.build_stats(intent, duration).to_json(),
        )

    def synthesize_day(self, owner_id: int, day: date, called: str, volume: int) -> List[CallEvent]:
        events = []
        for _ in range(volume):
            event = self.synthesize(owner_id, day, called)
            if event is not None:
                events.append(event)
        return events
