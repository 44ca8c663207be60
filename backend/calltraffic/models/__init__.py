from calltraffic.models.owner import Owner, OwnerNumber
from calltraffic.models.call_event import CallEvent

__all__ = ["Owner", "OwnerNumber", "CallEvent"]
