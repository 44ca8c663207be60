from datetime import datetime, timedelta
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, Query

from calltraffic.core.deps import get_clock, get_store
from calltraffic.models.enums import IntentCode
from calltraffic.schemas import CallEventOut, CallSummaryIn
from calltraffic.services.ingestion import is_displayable, record_call
from calltraffic.services.store import SqlEventStore

router = APIRouter(prefix="/calls", tags=["calls"])


@router.get("", response_model=List[CallEventOut])
def list_calls(
    owner_id: int = Query(..., gt=0),
    from_date: Optional[datetime] = Query(default=None, alias="from"),
    to_date: Optional[datetime] = Query(default=None, alias="to"),
    days: int = Query(7, ge=1, le=90),
    intent: Optional[IntentCode] = None,
    displayable: bool = False,
    store: SqlEventStore = Depends(get_store),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    end = to_date or clock()
    start = from_date or end - timedelta(days=days)
    events = store.find_many(owner_id, start, end, intent_filter=intent)
    if displayable:
        events = [event for event in events if is_displayable(event)]
    return events


@router.post("/summary")
def create_call_summary(
    summary: CallSummaryIn,
    store: SqlEventStore = Depends(get_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> dict:
    event = record_call(summary, store, clock=clock)
    return {"success": True, "id": event.id, "intent_code": event.intent_code.value}
