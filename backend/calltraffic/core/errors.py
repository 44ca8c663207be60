"""Exceptions raised by the traffic generator and the aggregation engine."""

from typing import Optional


class TrafficError(Exception):
    """Base class for call-traffic errors."""


class ValidationError(TrafficError):
    """Rejected input: bad owner ids, window size or traffic profile."""


class NotFoundError(TrafficError):
    def __init__(self, message: str, owner_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.owner_id = owner_id


class GenerationError(TrafficError):
    """A store write failed while seeding an owner's window."""

    def __init__(self, message: str, owner_id: Optional[int] = None, day: Optional[str] = None) -> None:
        super().__init__(message)
        self.owner_id = owner_id
        self.day = day


class AggregationError(TrafficError):
    """A store read failed; no metrics are returned."""

    def __init__(self, message: str, owner_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.owner_id = owner_id
