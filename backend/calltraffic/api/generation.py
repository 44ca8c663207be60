import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Query

from calltraffic.core.config import settings
from calltraffic.core.deps import get_clock, get_publisher, get_store
from calltraffic.schemas import RegenerateRequest, RegenerationReport
from calltraffic.services.generation import TrafficGenerator, resolve_target_owner_ids
from calltraffic.services.profile import resolve_profile
from calltraffic.services.store import SqlEventStore

router = APIRouter(prefix="/generation", tags=["generation"])

logger = logging.getLogger(__name__)


@router.post("/regenerate")
def regenerate_traffic(
    data: RegenerateRequest,
    background: bool = Query(False),
    store: SqlEventStore = Depends(get_store),
    clock: Callable[[], datetime] = Depends(get_clock),
    publish: Optional[Callable[[dict], None]] = Depends(get_publisher),
):
    window_days = data.window_days if data.window_days is not None else settings.demo_window_days
    owner_ids = resolve_target_owner_ids(store, data.owner_ids, settings.demo_owner_ids)
    if background:
        from calltraffic.tasks import regenerate_demo_traffic

        regenerate_demo_traffic.delay(owner_ids=owner_ids, window_days=window_days, seed=data.seed)
        return {"status": "queued", "owner_ids": owner_ids}
    generator = TrafficGenerator(
        store,
        resolve_profile(settings.traffic_profile_path),
        seed=data.seed,
        clock=clock,
        publish=publish,
        max_workers=settings.regeneration_max_workers,
    )
    report: RegenerationReport = generator.regenerate(owner_ids, window_days)
    logger.info("Regenerated %s owner(s), %s failed", len(report.owners), len(report.failed))
    return report
