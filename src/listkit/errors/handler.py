"""Central reporting of errors that are recovered from rather than raised."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ..events.bus import Event, EventBus


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(ErrorSeverity).index(self)


@dataclass(kw_only=True)
class ErrorOccurredEvent(Event):
    error: Exception
    severity: ErrorSeverity
    context: dict = field(default_factory=dict)


class ErrorHandler:
    """Log an error, publish it on the bus and, when severe enough, tell the UI.

    ``ui_threshold`` is the lowest severity forwarded to the callback
    registered with :meth:`register_ui_callback`.
    """

    def __init__(
        self,
        logger: logging.Logger,
        event_bus: Optional[EventBus] = None,
        ui_threshold: ErrorSeverity = ErrorSeverity.ERROR,
    ):
        self._logger = logger
        self._events = event_bus
        self._ui_threshold = ui_threshold
        self._ui_callback: Optional[Callable[[str, ErrorSeverity], None]] = None

    def register_ui_callback(self, callback: Callable[[str, ErrorSeverity], None]):
        self._ui_callback = callback

    def handle(self, error: Exception, severity: ErrorSeverity = ErrorSeverity.ERROR, context: dict = None):
        context = dict(context or {})
        cause = error.__cause__
        if cause is not None:
            context.setdefault("cause", f"{cause.__class__.__name__}: {cause}")

        log = getattr(self._logger, severity.value)
        log("%s: %s", error.__class__.__name__, error, extra={"context": context})

        if self._events is not None:
            self._events.publish(ErrorOccurredEvent(error=error, severity=severity, context=context))

        if self._ui_callback is not None and severity.rank >= self._ui_threshold.rank:
            self._ui_callback(str(error), severity)
