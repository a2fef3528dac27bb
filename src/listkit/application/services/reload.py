"""Reload outcomes and the fetch step shared by every reload path."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ...domain.models.structure import TreeStructure
from ...errors import FetchError, InvalidStructureError

LOGGER = logging.getLogger(__name__)


class ReloadStatus(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class ReloadOutcome:
    """Result of one reload request.

    ``SUPERSEDED`` means a newer reload was requested before this one
    finished; its structure (or error) was discarded.
    """

    status: ReloadStatus
    generation: int
    structure: Optional[TreeStructure] = None
    error: Optional[FetchError] = None

    @property
    def succeeded(self) -> bool:
        return self.status is ReloadStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status is ReloadStatus.FAILED

    @property
    def superseded(self) -> bool:
        return self.status is ReloadStatus.SUPERSEDED


def build_structure(payload: Any) -> TreeStructure:
    """Turn whatever a fetcher returned into a :class:`TreeStructure`.

    Structures pass through, ``None`` becomes an empty structure and any other
    iterable becomes a flat leaf. Strings and mappings are rejected.
    """
    if isinstance(payload, TreeStructure):
        return payload
    if payload is None:
        return TreeStructure.empty()
    if isinstance(payload, (str, bytes, Mapping)) or not isinstance(payload, Iterable):
        raise InvalidStructureError(
            f"fetcher returned {type(payload).__name__}, expected a sequence or TreeStructure"
        )
    return TreeStructure.from_items(payload)


def run_fetch(fetch: Callable[[], Any], generation: int) -> ReloadOutcome:
    """Call *fetch* and wrap the result; never raises."""
    try:
        structure = build_structure(fetch())
    except FetchError as exc:
        return ReloadOutcome(ReloadStatus.FAILED, generation, error=exc)
    except Exception as exc:
        LOGGER.debug("Fetch for generation %d raised", generation, exc_info=True)
        error = FetchError(str(exc) or type(exc).__name__, exc)
        error.__cause__ = exc
        return ReloadOutcome(ReloadStatus.FAILED, generation, error=error)
    return ReloadOutcome(ReloadStatus.SUCCEEDED, generation, structure=structure)
