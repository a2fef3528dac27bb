"""Base class shared by the pure Python view models.

Tracks ``EventBus`` subscriptions and the signals a view model owns so that
``dispose()`` can release both.
"""

from __future__ import annotations

from typing import Callable, Optional

from ...events.bus import EventBus, Subscription
from .signal import Signal


class BaseViewModel:
    """ViewModel base class; has no Qt dependency."""

    def __init__(self, event_bus: Optional[EventBus] = None) -> None:
        self._event_bus = event_bus
        self._subscriptions: list[Subscription] = []
        self._signals: list[Signal] = []

    @property
    def event_bus(self) -> Optional[EventBus]:
        return self._event_bus

    def make_signal(self, name: str = "") -> Signal:
        """Create a signal that is disconnected when the view model is disposed."""
        signal = Signal(name)
        self._signals.append(signal)
        return signal

    def subscribe_event(self, event_type: type, handler: Callable) -> Optional[Subscription]:
        """Subscribe to *event_type* on the view model's bus and track it."""
        if self._event_bus is None:
            return None
        sub = self._event_bus.subscribe(event_type, handler)
        self._subscriptions.append(sub)
        return sub

    def publish_event(self, event: object) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event)

    def dispose(self) -> None:
        """Cancel tracked subscriptions and detach every signal handler."""
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions.clear()
        for signal in self._signals:
            signal.disconnect_all()
