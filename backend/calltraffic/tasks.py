from typing import List, Optional

from celery import shared_task

from calltraffic.core.config import settings
from calltraffic.core.database import SessionLocal
from calltraffic.core.errors import GenerationError
from calltraffic.services.events import EventPublisher
from calltraffic.services.generation import TrafficGenerator, resolve_target_owner_ids
from calltraffic.services.profile import resolve_profile
from calltraffic.services.store import SqlEventStore


@shared_task(
    name="calltraffic.tasks.regenerate_demo_traffic",
    bind=True,
    autoretry_for=(GenerationError,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def regenerate_demo_traffic(
    self, owner_ids: Optional[List[int]] = None, window_days: Optional[int] = None, seed: Optional[int] = None
) -> dict:
    store = SqlEventStore(SessionLocal)
    targets = resolve_target_owner_ids(store, owner_ids, settings.demo_owner_ids)
    generator = TrafficGenerator(
        store,
        resolve_profile(settings.traffic_profile_path),
        seed=seed,
        publish=EventPublisher(),
        max_workers=settings.regeneration_max_workers,
    )
    report = generator.regenerate(targets, window_days or settings.demo_window_days)
    if report.failed:
        failed = ", ".join(str(owner.owner_id) for owner in report.failed)
        raise GenerationError(f"Regeneration failed for owner(s) {failed}")
    return report.model_dump()
