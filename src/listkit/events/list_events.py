"""Events published by list view models.

They are frozen so that one instance can be handed to several subscribers,
including ones running on the bus's worker threads.
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from ..domain.models.path import PathAddress


@dataclass(frozen=True)
class DomainEvent:
    """Common fields; ``source`` is the name of the publishing view model."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)
    source: str = ""


@dataclass(frozen=True)
class StructureReloadedEvent(DomainEvent):
    generation: int = 0
    count: int = 0


@dataclass(frozen=True)
class ReloadFailedEvent(DomainEvent):
    generation: int = 0
    message: str = ""


@dataclass(frozen=True)
class ItemsChangedEvent(DomainEvent):
    """``kind`` is ``"delete"``, ``"insert"`` or ``"move"``."""

    kind: str = ""
    addresses: tuple[PathAddress, ...] = ()


@dataclass(frozen=True)
class ReloadRequestedEvent(DomainEvent):
    """Ask list view models to reload; an empty ``target`` addresses all of them."""

    target: str = ""
