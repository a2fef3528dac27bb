from .bus import Event, EventBus, Subscription
from .list_events import (
    DomainEvent,
    ItemsChangedEvent,
    ReloadFailedEvent,
    ReloadRequestedEvent,
    StructureReloadedEvent,
)

__all__ = [
    "DomainEvent",
    "Event",
    "EventBus",
    "ItemsChangedEvent",
    "ReloadFailedEvent",
    "ReloadRequestedEvent",
    "StructureReloadedEvent",
    "Subscription",
]
