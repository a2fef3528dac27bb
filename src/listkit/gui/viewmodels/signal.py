"""Pure Python notifications for list view models.

``Signal`` carries one-shot notifications (``reloaded``, ``reload_failed``)
and ``ObservableProperty`` carries state that views bind to (``loading``,
``results_count``). Neither depends on Qt, so reloads can complete on a worker
thread and still notify subscribers.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Tuple

_logger = logging.getLogger(__name__)


class Signal:
    """Observer list safe to connect to and emit from several threads.

    Connections are stored as an immutable tuple that is replaced on every
    change, so ``emit`` never holds the lock while handlers run. A handler
    that raises is logged and skipped; the remaining handlers still run.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._handlers: Tuple[Callable, ...] = ()
        self._lock = threading.Lock()

    def connect(self, handler: Callable) -> None:
        with self._lock:
            if handler not in self._handlers:
                self._handlers = self._handlers + (handler,)

    def disconnect(self, handler: Callable) -> None:
        """Remove *handler*; raises ``ValueError`` when it was never connected."""
        with self._lock:
            if handler not in self._handlers:
                raise ValueError(f"{handler!r} is not connected to {self!r}")
            self._handlers = tuple(h for h in self._handlers if h != handler)

    def disconnect_all(self) -> None:
        with self._lock:
            self._handlers = ()

    def emit(self, *args: Any, **kwargs: Any) -> None:
        for handler in self._handlers:
            try:
                handler(*args, **kwargs)
            except Exception:
                _logger.exception("Handler %r of signal %r failed", handler, self.name)

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"Signal({self.name!r}, handlers={len(self._handlers)})"


class ObservableProperty:
    """Value holder that emits ``changed(new_value, old_value)`` on change."""

    def __init__(self, initial_value: Any = None, name: str = "") -> None:
        self._value = initial_value
        self.changed = Signal(name)

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new_value: Any) -> None:
        old_value = self._value
        if old_value == new_value:
            return
        self._value = new_value
        self.changed.emit(new_value, old_value)
