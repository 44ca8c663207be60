import logging
import random
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, time, timedelta
from typing import Callable, List, Optional, Sequence, Tuple

from calltraffic.core.config import settings
from calltraffic.core.errors import GenerationError, NotFoundError, ValidationError
from calltraffic.models.enums import OwnerRole
from calltraffic.schemas import OwnerRegeneration, RegenerationReport, TrafficProfile
from calltraffic.services.sampling import sample_day_volume
from calltraffic.services.store import EventStore
from calltraffic.services.synthesizer import EventSynthesizer

logger = logging.getLogger(__name__)


def validate_owner_ids(owner_ids: object) -> List[int]:
    if not isinstance(owner_ids, (list, tuple)) or not owner_ids:
        raise ValidationError("owner_ids must be a non-empty list of integers")
    cleaned: List[int] = []
    for owner_id in owner_ids:
        if isinstance(owner_id, bool) or not isinstance(owner_id, int) or owner_id <= 0:
            raise ValidationError(f"Invalid owner id: {owner_id!r}")
        if owner_id not in cleaned:
            cleaned.append(owner_id)
    return cleaned


def validate_window_days(window_days: object) -> int:
    if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days <= 0:
        raise ValidationError(f"window_days must be a positive integer, got {window_days!r}")
    return window_days


def regeneration_window(now: datetime, window_days: int) -> Tuple[datetime, datetime]:
    """Range cleared before reseeding.

    The upper bound is the end of the current day: synthesized events for
    today may be stamped later than ``now`` and must not survive a rerun.
    """
    start = now - timedelta(days=window_days + 1)
    end = datetime.combine(now.date(), time.max)
    return start, end


def window_days_list(today: date, window_days: int) -> List[date]:
    return [today - timedelta(days=back) for back in range(window_days - 1, -1, -1)]


def resolve_target_owner_ids(
    store: EventStore, explicit: Optional[Sequence[int]] = None, configured: Optional[Sequence[int]] = None
) -> List[int]:
    if explicit:
        return validate_owner_ids(list(explicit))
    if configured:
        return validate_owner_ids(list(configured))
    clients = store.list_owner_ids(role=OwnerRole.CLIENT)
    if not clients:
        raise NotFoundError("No CLIENT owner found; pass owner ids explicitly")
    return [clients[0]]


class TrafficGenerator:
    def __init__(
        self,
        store: EventStore,
        profile: TrafficProfile,
        seed: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.now,
        publish: Optional[Callable[[dict], None]] = None,
        default_called_number: Optional[str] = None,
        max_workers: int = 1,
    ) -> None:
        self.store = store
        self.profile = profile
        self.seed = seed
        self.clock = clock
        self.publish = publish
        self.default_called_number = default_called_number or settings.default_called_number
        self.max_workers = max(1, max_workers)

    def rng_for(self, owner_id: int) -> random.Random:
        if self.seed is None:
            return random.Random()
        return random.Random(f"{self.seed}:{owner_id}")

    def regenerate(self, owner_ids: Sequence[int], window_days: int) -> RegenerationReport:
        owners = validate_owner_ids(owner_ids)
        window_days = validate_window_days(window_days)
        if not self.profile.intent_distribution:
            logger.warning("Traffic profile has no intent distribution; no events will be generated")
        now = self.clock()
        if self.max_workers > 1 and len(owners) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(lambda owner_id: self._run_owner(owner_id, window_days, now), owners))
        else:
            results = [self._run_owner(owner_id, window_days, now) for owner_id in owners]
        return RegenerationReport(window_days=window_days, owners=results)

    def _run_owner(self, owner_id: int, window_days: int, now: datetime) -> OwnerRegeneration:
        result = OwnerRegeneration(owner_id=owner_id)
        try:
            self.regenerate_owner(owner_id, window_days, now, result)
        except (NotFoundError, GenerationError) as exc:
            result.error = str(exc)
            logger.error("Regeneration failed for owner_id=%s: %s", owner_id, exc)
            self._publish(
                {"type": "traffic_regeneration_failed", "payload": {"owner_id": owner_id, "message": str(exc)}}
            )
            return result
        self._publish(
            {
                "type": "traffic_regenerated",
                "payload": {"owner_id": owner_id, "events": result.events_inserted, "days": result.days_seeded},
            }
        )
        return result

    def regenerate_owner(
        self,
        owner_id: int,
        window_days: int,
        now: Optional[datetime] = None,
        result: Optional[OwnerRegeneration] = None,
    ) -> OwnerRegeneration:
        now = now or self.clock()
        result = result or OwnerRegeneration(owner_id=owner_id)
        if not self.store.owner_exists(owner_id):
            raise NotFoundError(f"Owner {owner_id} does not exist", owner_id=owner_id)
        called = self.store.find_owner_contact_number(owner_id) or self.default_called_number

        start, end = regeneration_window(now, window_days)
        try:
            deleted = self.store.delete_many(owner_id, start, end)
        except Exception as exc:
            raise GenerationError(f"Could not clear window for owner {owner_id}: {exc}", owner_id=owner_id) from exc
        logger.info("Seeding %s days for owner_id=%s (cleared %s events)", window_days, owner_id, deleted)

        rng = self.rng_for(owner_id)
        synthesizer = EventSynthesizer(self.profile, rng)
        for day in window_days_list(now.date(), window_days):
            volume = sample_day_volume(day, self.profile.weekday_bands, self.profile.base_min, self.profile.base_max, rng)
            events = synthesizer.synthesize_day(owner_id, day, called, volume)
            try:
                self.store.insert_many(events)
            except Exception as exc:
                raise GenerationError(
                    f"Insert failed for owner {owner_id} on {day.isoformat()}: {exc}",
                    owner_id=owner_id,
                    day=day.isoformat(),
                ) from exc
            result.days_seeded += 1
            result.events_inserted += len(events)
            logger.info("%s - %s calls for owner_id=%s", day.isoformat(), len(events), owner_id)
        logger.info("Seed complete for owner_id=%s: %s events", owner_id, result.events_inserted)
        return result

    def _publish(self, payload: dict) -> None:
        if not self.publish:
            return
        try:
            self.publish(payload)
        except Exception:
            logger.exception("Failed to publish %s", payload.get("type"))


def regenerate(
    owner_ids: Sequence[int],
    window_days: int,
    profile: TrafficProfile,
    store: EventStore,
    seed: Optional[int] = None,
    publish: Optional[Callable[[dict], None]] = None,
) -> RegenerationReport:
    generator = TrafficGenerator(
        store,
        profile,
        seed=seed,
        publish=publish,
        max_workers=settings.regeneration_max_workers,
    )
    return generator.regenerate(owner_ids, window_days)
