"""Concurrent dashboard queries across several owners.

Each call to ``AggregationCoordinator.request`` gets a sequence number. When
a newer request starts, the in-flight fan-out is cancelled and any result it
still produces is discarded instead of replacing fresher state.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from calltraffic.core.errors import AggregationError
from calltraffic.models.enums import Period
from calltraffic.schemas import AggregateResult, CentreCount, FanOutResult
from calltraffic.services.aggregation import aggregate
from calltraffic.services.generation import validate_owner_ids
from calltraffic.services.store import EventStore

logger = logging.getLogger(__name__)


async def fan_out(
    owner_ids: Sequence[int],
    period: Period,
    store: EventStore,
    clock: Callable[[], datetime] = datetime.now,
) -> Dict[int, AggregateResult]:
    tasks = [asyncio.create_task(asyncio.to_thread(aggregate, owner_id, period, store, clock)) for owner_id in owner_ids]
    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise
    return dict(zip(owner_ids, results))


class AggregationCoordinator:
    def __init__(self, store: EventStore, clock: Callable[[], datetime] = datetime.now) -> None:
        self.store = store
        self.clock = clock
        self._seq = 0
        self._inflight: Optional[asyncio.Task] = None
        self.latest: Optional[FanOutResult] = None

    @property
    def seq(self) -> int:
        return self._seq

    def cancel(self) -> None:
        if self._inflight and not self._inflight.done():
            self._inflight.cancel()

    async def request(self, owner_ids: Sequence[int], period: Period) -> Optional[FanOutResult]:
        """Aggregate every owner concurrently.

        Returns ``None`` when a newer request superseded this one.
        """
        owners: List[int] = validate_owner_ids(list(owner_ids))
        period = Period(period)
        self._seq += 1
        seq = self._seq
        self.cancel()
        task = asyncio.create_task(fan_out(owners, period, self.store, self.clock))
        self._inflight = task
        try:
            results = await task
        except asyncio.CancelledError:
            if seq != self._seq:
                logger.debug("Request %s cancelled by request %s", seq, self._seq)
                return None
            raise
        except AggregationError:
            if seq != self._seq:
                return None
            raise
        finally:
            if self._inflight is task:
                self._inflight = None
        if seq != self._seq:
            logger.debug("Discarding stale result for request %s (latest %s)", seq, self._seq)
            return None
        names = await asyncio.to_thread(self.store.owner_names, owners)
        if seq != self._seq:
            return None
        centre_counts = [
            CentreCount(owner_id=owner_id, name=names.get(owner_id) or f"Centre {owner_id}", count=results[owner_id].total)
            for owner_id in owners
        ]
        self.latest = FanOutResult(seq=seq, period=period, results=results, centre_counts=centre_counts)
        return self.latest
