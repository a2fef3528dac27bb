"""Coordinate a list structure, its view cache and background reloads.

Rendering adapters talk to :class:`ListViewModel` only. It owns the current
:class:`TreeStructure` together with the :class:`ViewCache` derived from it,
runs the fetch collaborator off the caller's thread and applies results with
"latest wins" semantics: every reload request bumps a generation counter and
only the outcome of the newest request is applied.

The structure and its cache live in a single attribute, so a successful
reload swaps both with one assignment. Readers see either the old snapshot or
the new one.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Hashable, List, Mapping, Optional

from ...application.interfaces import Fetcher, SectionTranslator, Translator, as_fetch_callable
from ...application.services.reload import ReloadOutcome, ReloadStatus, run_fetch
from ...application.services.view_cache import ViewCache
from ...config import SECTION_MODEL_TAG
from ...domain.models.path import PathAddress, as_address
from ...domain.models.structure import TreeStructure
from ...errors.handler import ErrorHandler, ErrorSeverity
from ...events.list_events import (
    ItemsChangedEvent,
    ReloadFailedEvent,
    ReloadRequestedEvent,
    StructureReloadedEvent,
)
from ...events.bus import EventBus
from ...settings.schema import merge_with_defaults
from .base import BaseViewModel
from .item_viewmodel import ItemViewModel, identifier_of, passthrough_translate
from .signal import ObservableProperty


class ListViewModel(BaseViewModel):
    """Expose a hierarchical list to rendering adapters.

    Signals:

    * ``reloaded(structure)``: once per applied reload.
    * ``reload_failed(error)``: once per failed reload, with a
      :class:`~listkit.errors.FetchError`; state is left untouched.
    * ``items_changed(kind, addresses)``: after ``delete``, ``insert`` or ``move``.

    Edits are synchronous and must be issued from the thread that owns the
    view model; there is no locking around them.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        translate: Optional[Translator] = None,
        *,
        section_translate: Optional[SectionTranslator] = None,
        executor: Optional[Executor] = None,
        event_bus: Optional[EventBus] = None,
        error_handler: Optional[ErrorHandler] = None,
        options: Optional[Mapping[str, Any]] = None,
        structure: Optional[TreeStructure] = None,
        name: str = "",
    ) -> None:
        super().__init__(event_bus)
        self._fetch = as_fetch_callable(fetcher)
        self._translate = translate or passthrough_translate
        self._section_translate = section_translate
        self._options = merge_with_defaults(options)
        self._error_handler = error_handler
        self._name = name
        self._logger = logging.getLogger(__name__)

        self._executor = executor
        self._owns_executor = executor is None
        # Reentrant: ``loading`` handlers run under it and may request a reload.
        self._state_lock = threading.RLock()
        self._apply_lock = threading.RLock()
        self._generation = 0
        initial = structure if structure is not None else TreeStructure.empty()
        self._cache = self._make_cache(initial)

        # Observable properties
        self.loading = ObservableProperty(False, "loading")
        self.results_count = ObservableProperty(initial.count, "results_count")

        # Signals
        self.reloaded = self.make_signal("reloaded")
        self.reload_failed = self.make_signal("reload_failed")
        self.items_changed = self.make_signal("items_changed")

        self.subscribe_event(ReloadRequestedEvent, self._on_reload_requested)

    # ------------------------------------------------------------------
    # Snapshot accessors
    # ------------------------------------------------------------------
    @property
    def name(self) -> str:
        return self._name

    @property
    def options(self) -> dict[str, Any]:
        return self._options

    @property
    def structure(self) -> TreeStructure:
        """The current structure. Adapters must treat it as read-only."""
        return self._cache.structure

    @property
    def view_cache(self) -> ViewCache:
        return self._cache

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def count(self) -> int:
        return self._cache.structure.count

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def resolve(self, address: Any) -> Optional[Any]:
        return self._cache.structure.resolve(address)

    def lookup(self, address: Any) -> Optional[Any]:
        """Return the item view model at *address*, creating it on first use."""
        return self._cache.lookup(address)

    def identifier_for(self, address: Any) -> Optional[Hashable]:
        """Return the type tag of the view at *address* (derives the view if needed)."""
        return identifier_of(self.lookup(address))

    def reuse_identifier(self, identifier: Hashable, address: Any) -> Optional[str]:
        """Override to force a custom reuse identifier for *identifier* at *address*.

        ``None`` lets adapters fall back to the identifier's own name.
        """
        return None

    def unwrap(self, address: Any) -> Optional[Any]:
        """Return the model at *address*, unwrapping one stored view model level.

        Structures may hold item view models directly (e.g. prebuilt header
        rows); for those the wrapped domain model is returned instead.
        """
        model = self.resolve(address)
        if isinstance(model, ItemViewModel):
            return model.model
        return model

    def auxiliary_model(self, address: Any = (), tag: str = SECTION_MODEL_TAG) -> Optional[Any]:
        return self._cache.structure.auxiliary_model(address, tag)

    def section_lookup(self, address: Any = (), tag: str = SECTION_MODEL_TAG) -> Optional[Any]:
        """Return the view model for the side-model *tag* of the section at *address*."""
        return self._cache.lookup_section(address, tag)

    def enumerate_addresses(self) -> List[PathAddress]:
        return self._cache.structure.enumerate_addresses()

    def node_at(self, prefix: Any) -> Optional[TreeStructure]:
        return self._cache.structure.node_at(prefix)

    def section_count(self) -> int:
        """Number of top-level sections; a flat list counts as one section."""
        structure = self._cache.structure
        return structure.child_count if structure.child_count else 1

    def item_count(self, section: int = 0) -> int:
        """Number of items directly inside *section*."""
        structure = self._cache.structure
        if not structure.child_count:
            return structure.item_count
        node = structure.node_at((section,))
        return node.item_count if node is not None else 0

    # ------------------------------------------------------------------
    # Reloading
    # ------------------------------------------------------------------
    def reload(self) -> "Future[ReloadOutcome]":
        """Fetch fresh data in the background.

        The returned future resolves once the outcome has been applied (or
        discarded because a newer reload was requested meanwhile).
        """
        generation = self._next_generation()
        return self._pool().submit(self._perform_reload, generation)

    def reload_now(self) -> ReloadOutcome:
        """Fetch and apply fresh data on the calling thread."""
        generation = self._next_generation()
        return self._perform_reload(generation)

    def set_structure(self, structure: TreeStructure) -> ReloadOutcome:
        """Replace the data directly; pending reloads become stale."""
        generation = self._next_generation()
        return self._apply(ReloadOutcome(ReloadStatus.SUCCEEDED, generation, structure=structure))

    def _next_generation(self) -> int:
        with self._state_lock:
            self._generation += 1
            generation = self._generation
            self.loading.value = True
        return generation

    def _perform_reload(self, generation: int) -> ReloadOutcome:
        return self._apply(run_fetch(self._fetch, generation))

    def _apply(self, outcome: ReloadOutcome) -> ReloadOutcome:
        with self._apply_lock:
            with self._state_lock:
                current = outcome.generation == self._generation
                if current and outcome.succeeded:
                    self._cache = self._make_cache(outcome.structure)
                if current:
                    self.loading.value = False
            if not current:
                self._logger.debug(
                    "Discarding reload %d; generation %d is newer",
                    outcome.generation,
                    self._generation,
                )
                return ReloadOutcome(
                    ReloadStatus.SUPERSEDED,
                    outcome.generation,
                    structure=outcome.structure,
                    error=outcome.error,
                )

            if outcome.succeeded:
                count = outcome.structure.count
                self.results_count.value = count
                self._logger.debug("Reload %d applied with %d items", outcome.generation, count)
                self.reloaded.emit(outcome.structure)
                self.publish_event(
                    StructureReloadedEvent(generation=outcome.generation, count=count, source=self._name)
                )
            else:
                self._report_failure(outcome)
            return outcome

    def _report_failure(self, outcome: ReloadOutcome) -> None:
        error = outcome.error
        if self._error_handler is not None:
            self._error_handler.handle(
                error,
                ErrorSeverity.WARNING,
                context={"generation": outcome.generation, "source": self._name},
            )
        else:
            self._logger.warning("Reload %d failed: %s", outcome.generation, error)
        self.reload_failed.emit(error)
        self.publish_event(
            ReloadFailedEvent(generation=outcome.generation, message=str(error), source=self._name)
        )

    def _make_cache(self, structure: TreeStructure) -> ViewCache:
        return ViewCache(structure, self._translate, self._section_translate)

    def _pool(self) -> Executor:
        with self._state_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._options["reload_workers"],
                    thread_name_prefix="listkit-reload",
                )
            return self._executor

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    def can_delete(self, address: Any) -> bool:
        return bool(self._options["editing"]["delete"]) and self.resolve(address) is not None

    def can_insert(self, address: Any) -> bool:
        return bool(self._options["editing"]["insert"]) and self._cache.structure.locate(address) is not None

    def can_move(self, address: Any) -> bool:
        return bool(self._options["editing"]["move"]) and self.resolve(address) is not None

    def can_edit(self, address: Any) -> bool:
        return self.can_delete(address) or self.can_insert(address) or self.can_move(address)

    def delete_item(self, address: Any) -> Optional[Any]:
        """Remove and return the model at *address*."""
        found, removed = self._cache.structure.pop(address)
        if found:
            self._after_edit("delete", [address])
        return removed

    def insert_item(self, item: Any, address: Any) -> bool:
        """Insert *item* at *address*; returns ``False`` when nothing was inserted.

        Observers are told the address the item actually landed on.
        """
        landed = self._cache.structure.insert_at(item, address)
        if landed is None:
            return False
        self._after_edit("insert", [landed])
        return True

    def move_item(self, from_address: Any, to_address: Any) -> Optional[Any]:
        """Move the model at *from_address* so it ends up at *to_address*."""
        moved = self._cache.structure.relocate(from_address, to_address)
        if moved is None:
            return None
        item, landed = moved
        self._after_edit("move", [from_address, landed])
        return item

    def _after_edit(self, kind: str, addresses: List[Any]) -> None:
        cache = self._cache
        normalised = tuple(as_address(address) for address in addresses)
        if self._options["invalidate_on_edit"]:
            for address in normalised:
                cache.invalidate_from(address)
        self.results_count.value = cache.structure.count
        self.items_changed.emit(kind, normalised)
        self.publish_event(ItemsChangedEvent(kind=kind, addresses=normalised, source=self._name))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def shutdown(self, wait: bool = True) -> None:
        """Release the private reload executor, if one was created."""
        with self._state_lock:
            executor = self._executor if self._owns_executor else None
            if executor is not None:
                self._executor = None
        if executor is not None:
            executor.shutdown(wait=wait)

    def dispose(self) -> None:
        super().dispose()
        self.shutdown(wait=False)

    # -- EventBus handlers --------------------------------------------------

    def _on_reload_requested(self, event: ReloadRequestedEvent) -> None:
        if not event.target or event.target == self._name:
            self.reload()


ListCoordinator = ListViewModel
