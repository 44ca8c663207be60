from datetime import datetime
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from calltraffic.core.deps import coordinator_for, dashboard_session, get_clock, get_store
from calltraffic.models.enums import Period
from calltraffic.schemas import AggregateResult, FanOutResult
from calltraffic.services.aggregation import aggregate
from calltraffic.services.store import SqlEventStore

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/aggregate", response_model=AggregateResult)
def aggregate_owner(
    owner_id: int = Query(..., gt=0),
    period: Period = Query(Period.WEEK),
    store: SqlEventStore = Depends(get_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AggregateResult:
    return aggregate(owner_id, period, store, clock)


@router.get("/centres", response_model=FanOutResult)
async def aggregate_centres(
    owner_ids: List[int] = Query(...),
    period: Period = Query(Period.WEEK),
    session_key: Optional[str] = Depends(dashboard_session),
    store: SqlEventStore = Depends(get_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> FanOutResult:
    coordinator = coordinator_for(store, clock, session_key)
    result = await coordinator.request(owner_ids, period)
    if result is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Superseded by a newer request")
    return result
