"""Tests for ListViewModel: reloads, queries, cache lifetime and edits."""

from __future__ import annotations

import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from listkit.application.services.reload import ReloadStatus
from listkit.config import HEADER_TAG
from listkit.domain.models.structure import Leaf, TreeStructure
from listkit.errors import FetchError, OptionsValidationError
from listkit.errors.handler import ErrorHandler, ErrorSeverity
from listkit.events import (
    EventBus,
    ItemsChangedEvent,
    ReloadFailedEvent,
    ReloadRequestedEvent,
    StructureReloadedEvent,
)
from listkit.gui.viewmodels import (
    ItemIdentifier,
    ItemViewModel,
    ListCoordinator,
    ListViewModel,
)

WAIT = 5.0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TitleView(ItemViewModel):
    identifier = ItemIdentifier("title")


class HeaderView(ItemViewModel):
    identifier = ItemIdentifier("header")


def _sections():
    return TreeStructure.sections([["m1", "m2"], ["m3"]], headers=["first", "second"])


def _make_vm(fetcher=None, **kwargs) -> ListViewModel:
    if fetcher is None:
        fetcher = _sections
    return ListViewModel(fetcher, TitleView, **kwargs)


class _Recorder:
    def __init__(self, vm: ListViewModel) -> None:
        self.reloaded = []
        self.failed = []
        self.changed = []
        vm.reloaded.connect(self.reloaded.append)
        vm.reload_failed.connect(self.failed.append)
        vm.items_changed.connect(lambda kind, addresses: self.changed.append((kind, addresses)))


def _blocking_fetcher(first_result, later_result):
    """Return ``(fetch, started, release)``; the first call blocks until released."""
    counter = itertools.count()
    started = threading.Event()
    release = threading.Event()

    def fetch():
        if next(counter) == 0:
            started.set()
            release.wait(WAIT)
            return first_result
        return later_result

    return fetch, started, release


# ---------------------------------------------------------------------------
# Reload
# ---------------------------------------------------------------------------

class TestReload:
    def test_initial_state_is_empty(self):
        vm = _make_vm()
        assert vm.count == 0
        assert vm.is_empty
        assert vm.generation == 0
        assert vm.loading.value is False
        assert vm.results_count.value == 0

    def test_initial_structure_is_used(self):
        vm = _make_vm(structure=Leaf(["a"]))
        assert vm.count == 1
        assert vm.results_count.value == 1

    def test_reload_now_applies_structure(self):
        vm = _make_vm()
        rec = _Recorder(vm)

        outcome = vm.reload_now()

        assert outcome.status is ReloadStatus.SUCCEEDED
        assert vm.count == 3
        assert not vm.is_empty
        assert vm.results_count.value == 3
        assert vm.loading.value is False
        assert rec.reloaded == [vm.structure]

    def test_reload_accepts_plain_sequences(self):
        vm = _make_vm(lambda: ("a", "b"))
        vm.reload_now()
        assert vm.enumerate_addresses() == [(0,), (1,)]
        assert vm.resolve((1,)) == "b"

    def test_reload_accepts_data_source_objects(self):
        class Source:
            calls = 0

            def fetch(self):
                self.calls += 1
                return ["x"]

        source = Source()
        vm = _make_vm(source)

        vm.reload_now()

        assert source.calls == 1
        assert vm.resolve((0,)) == "x"

    def test_background_reload_future_resolves_after_apply(self):
        vm = _make_vm()
        rec = _Recorder(vm)
        try:
            outcome = vm.reload().result(timeout=WAIT)
        finally:
            vm.shutdown()

        assert outcome.succeeded
        assert vm.count == 3
        assert len(rec.reloaded) == 1

    def test_loading_toggles_during_reload(self):
        vm = _make_vm()
        states = []
        vm.loading.changed.connect(lambda new, old: states.append(new))

        vm.reload_now()

        assert states == [True, False]

    def test_failure_keeps_state_and_notifies_once(self):
        calls = itertools.count()

        def fetch():
            if next(calls) == 0:
                return ["a", "b"]
            raise ConnectionError("offline")

        bus = EventBus()
        events = []
        bus.subscribe(ReloadFailedEvent, events.append)
        vm = _make_vm(fetch, event_bus=bus, name="feed")
        rec = _Recorder(vm)
        vm.reload_now()
        structure = vm.structure
        view = vm.lookup((0,))

        outcome = vm.reload_now()

        assert outcome.failed
        assert vm.structure is structure
        assert vm.lookup((0,)) is view
        assert vm.count == 2
        assert vm.loading.value is False
        assert len(rec.failed) == 1
        assert isinstance(rec.failed[0], FetchError)
        assert isinstance(rec.failed[0].original, ConnectionError)
        assert len(rec.reloaded) == 1
        assert [(e.generation, e.message, e.source) for e in events] == [(2, "offline", "feed")]

    def test_failure_is_routed_through_error_handler(self):
        def fetch():
            raise ValueError("bad payload")

        handler = Mock(spec=ErrorHandler)
        vm = _make_vm(fetch, error_handler=handler, name="feed")

        outcome = vm.reload_now()

        handler.handle.assert_called_once()
        args, kwargs = handler.handle.call_args
        assert args[0] is outcome.error
        assert args[1] is ErrorSeverity.WARNING
        assert kwargs["context"] == {"generation": 1, "source": "feed"}

    def test_failure_without_handler_logs_warning(self, caplog):
        def fetch():
            raise ValueError("bad payload")

        vm = _make_vm(fetch)
        with caplog.at_level(logging.WARNING, logger="listkit"):
            vm.reload_now()

        assert "bad payload" in caplog.text

    def test_reloaded_event_is_published(self):
        bus = EventBus()
        events = []
        bus.subscribe(StructureReloadedEvent, events.append)
        vm = _make_vm(event_bus=bus, name="feed")

        vm.reload_now()

        assert [(e.generation, e.count, e.source) for e in events] == [(1, 3, "feed")]


class TestLatestWins:
    def test_older_reload_is_discarded(self):
        fetch, started, release = _blocking_fetcher(["stale"], ["fresh"])
        vm = _make_vm(fetch, options={"reload_workers": 2})
        rec = _Recorder(vm)
        try:
            older = vm.reload()
            assert started.wait(WAIT)
            newer = vm.reload()

            newer_outcome = newer.result(timeout=WAIT)
            assert vm.loading.value is False
            release.set()
            older_outcome = older.result(timeout=WAIT)
        finally:
            release.set()
            vm.shutdown()

        assert newer_outcome.status is ReloadStatus.SUCCEEDED
        assert older_outcome.status is ReloadStatus.SUPERSEDED
        assert older_outcome.structure.flatten() == ["stale"]
        assert vm.structure.flatten() == ["fresh"]
        assert vm.generation == 2
        assert len(rec.reloaded) == 1

    def test_superseded_failure_is_not_reported(self):
        counter = itertools.count()
        started = threading.Event()
        release = threading.Event()

        def fetch():
            if next(counter) == 0:
                started.set()
                release.wait(WAIT)
                raise RuntimeError("late failure")
            return ["fresh"]

        vm = _make_vm(fetch, options={"reload_workers": 2})
        rec = _Recorder(vm)
        try:
            older = vm.reload()
            assert started.wait(WAIT)
            vm.reload().result(timeout=WAIT)
            release.set()
            outcome = older.result(timeout=WAIT)
        finally:
            release.set()
            vm.shutdown()

        assert outcome.superseded
        assert isinstance(outcome.error, FetchError)
        assert rec.failed == []
        assert vm.structure.flatten() == ["fresh"]

    def test_set_structure_supersedes_pending_reload(self):
        fetch, started, release = _blocking_fetcher(["stale"], ["unused"])
        vm = _make_vm(fetch)
        rec = _Recorder(vm)
        try:
            pending = vm.reload()
            assert started.wait(WAIT)
            vm.set_structure(Leaf(["direct"]))
            release.set()
            outcome = pending.result(timeout=WAIT)
        finally:
            release.set()
            vm.shutdown()

        assert outcome.superseded
        assert vm.structure.flatten() == ["direct"]
        assert len(rec.reloaded) == 1


    def test_loading_stays_true_for_reload_requested_during_apply(self):
        gate = threading.Event()
        calls = itertools.count()
        racers = []

        def fetch():
            if next(calls) > 0:
                gate.wait(WAIT)
            return ["x"]

        class RacingViewModel(ListViewModel):
            def _make_cache(self, structure):
                # Ask for a newer reload from another thread mid-apply.
                if hasattr(self, "loading") and not racers:
                    racer = threading.Thread(target=self.reload)
                    racers.append(racer)
                    racer.start()
                    racer.join(0.2)
                return super()._make_cache(structure)

        vm = RacingViewModel(fetch, TitleView)
        try:
            outcome = vm.reload_now()
            racers[0].join(WAIT)

            assert outcome.succeeded
            assert vm.generation == 2
            assert vm.loading.value is True
        finally:
            gate.set()
            vm.shutdown()

        assert vm.loading.value is False


# ---------------------------------------------------------------------------
# Cache lifetime
# ---------------------------------------------------------------------------

class TestLookup:
    def test_lookup_is_memoised_until_reload(self):
        vm = _make_vm()
        vm.reload_now()

        first = vm.lookup((0, 1))
        second = vm.lookup((0, 1))
        assert first is second
        assert isinstance(first, TitleView)
        assert first.model == "m2"

        vm.reload_now()
        third = vm.lookup((0, 1))

        assert third is not first
        assert third.model == "m2"

    def test_lookup_misses(self):
        vm = _make_vm()
        vm.reload_now()
        assert vm.lookup((2, 0)) is None
        assert vm.lookup(()) is None
        assert vm.lookup("0,1") is None
        assert vm.identifier_for((5, 5)) is None

    def test_identifier_for(self):
        vm = _make_vm()
        vm.reload_now()
        assert vm.identifier_for((1, 0)) == ItemIdentifier("title")
        assert str(vm.identifier_for((1, 0))) == "title"

    def test_reuse_identifier_defaults_to_none(self):
        vm = _make_vm()
        vm.reload_now()
        assert vm.reuse_identifier(ItemIdentifier("title"), (0, 0)) is None

    def test_default_translator_passes_view_models_through(self):
        stored = HeaderView("inner")
        vm = ListViewModel(lambda: [stored, "raw"])
        vm.reload_now()

        assert vm.lookup((0,)) is stored
        assert vm.lookup((1,)) is None
        assert vm.identifier_for((0,)) == ItemIdentifier("header")
        assert vm.unwrap((0,)) == "inner"
        assert vm.unwrap((1,)) == "raw"

    def test_section_queries(self):
        vm = ListViewModel(_sections, TitleView, section_translate=lambda model, tag: HeaderView(model))
        vm.reload_now()

        assert vm.section_count() == 2
        assert vm.item_count(0) == 2
        assert vm.item_count(1) == 1
        assert vm.item_count(7) == 0
        assert vm.auxiliary_model((1, 0)) == "second"
        assert vm.auxiliary_model((1, 0), HEADER_TAG) is None
        header = vm.section_lookup((0,))
        assert isinstance(header, HeaderView)
        assert header.model == "first"
        assert vm.section_lookup((0, 1)) is header
        assert vm.node_at((1,)).flatten() == ["m3"]

    def test_flat_list_counts_as_one_section(self):
        vm = _make_vm(lambda: ["a", "b", "c"])
        vm.reload_now()
        assert vm.section_count() == 1
        assert vm.item_count() == 3


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------

class TestEditing:
    def test_default_permissions(self):
        vm = _make_vm()
        vm.reload_now()
        assert vm.can_delete((0, 0))
        assert not vm.can_delete((0, 9))
        assert not vm.can_insert((0, 0))
        assert not vm.can_move((0, 0))
        assert vm.can_edit((0, 0))

    def test_permissions_from_options(self):
        vm = _make_vm(options={"editing": {"delete": False, "insert": True, "move": True}})
        vm.reload_now()
        assert not vm.can_delete((0, 0))
        assert vm.can_insert((0, 9))
        assert not vm.can_insert((4, 0))
        assert vm.can_move((1, 0))
        assert not vm.can_move((1, 1))

    def test_delete_item_invalidates_trailing_views(self):
        bus = EventBus()
        events = []
        bus.subscribe(ItemsChangedEvent, events.append)
        vm = _make_vm(lambda: ["a", "b", "c"], event_bus=bus)
        rec = _Recorder(vm)
        vm.reload_now()
        views = [vm.lookup((n,)) for n in range(3)]

        removed = vm.delete_item((1,))

        assert removed == "b"
        assert vm.count == 2
        assert vm.results_count.value == 2
        assert vm.lookup((0,)) is views[0]
        assert vm.lookup((1,)) is not views[2]
        assert vm.lookup((1,)).model == "c"
        assert rec.changed == [("delete", ((1,),))]
        assert [(e.kind, e.addresses) for e in events] == [("delete", ((1,),))]

    def test_delete_invalid_address_emits_nothing(self):
        vm = _make_vm()
        rec = _Recorder(vm)
        vm.reload_now()
        assert vm.delete_item((0, 5)) is None
        assert rec.changed == []
        assert vm.count == 3

    def test_delete_none_model_still_notifies(self):
        vm = _make_vm(lambda: ["a", None, "c"])
        rec = _Recorder(vm)
        vm.reload_now()
        trailing = vm.lookup((2,))

        assert vm.delete_item((1,)) is None

        assert vm.count == 2
        assert vm.results_count.value == 2
        assert vm.lookup((2,)) is None
        assert vm.lookup((1,)) is not trailing
        assert vm.lookup((1,)).model == "c"
        assert rec.changed == [("delete", ((1,),))]

    def test_move_none_model_still_notifies(self):
        vm = _make_vm(lambda: ["a", None, "c"])
        rec = _Recorder(vm)
        vm.reload_now()

        assert vm.move_item((1,), (0,)) is None

        assert vm.count == 3
        assert vm.resolve((0,)) is None
        assert vm.resolve((1,)) == "a"
        assert rec.changed == [("move", ((1,), (0,)))]

    def test_insert_past_end_reports_landed_address(self):
        bus = EventBus()
        events = []
        bus.subscribe(ItemsChangedEvent, events.append)
        vm = _make_vm(event_bus=bus)
        rec = _Recorder(vm)
        vm.reload_now()

        assert vm.insert_item("new", (1, 9)) is True

        assert vm.resolve((1, 1)) == "new"
        assert rec.changed == [("insert", ((1, 1),))]
        assert [e.addresses for e in events] == [((1, 1),)]

    def test_insert_item(self):
        vm = _make_vm()
        rec = _Recorder(vm)
        vm.reload_now()
        before = vm.lookup((1, 0))

        assert vm.insert_item("new", (1, 0)) is True

        assert vm.count == 4
        assert vm.resolve((1, 0)) == "new"
        assert vm.lookup((1, 0)).model == "new"
        assert vm.lookup((1, 1)) is not before
        assert rec.changed == [("insert", ((1, 0),))]

    def test_insert_without_leaf_returns_false(self):
        vm = _make_vm()
        rec = _Recorder(vm)
        vm.reload_now()
        assert vm.insert_item("new", (9, 0)) is False
        assert rec.changed == []

    def test_move_item_between_sections(self):
        vm = _make_vm()
        rec = _Recorder(vm)
        vm.reload_now()
        first = vm.lookup((0, 0))

        moved = vm.move_item((0, 1), (1, 0))

        assert moved == "m2"
        assert vm.count == 3
        assert [vm.resolve(a) for a in vm.enumerate_addresses()] == ["m1", "m2", "m3"]
        assert vm.lookup((0, 0)) is first
        assert vm.lookup((1, 0)).model == "m2"
        assert vm.lookup((1, 1)).model == "m3"
        assert rec.changed == [("move", ((0, 1), (1, 0)))]

    def test_edits_can_keep_cache(self):
        vm = _make_vm(lambda: ["a", "b"], options={"invalidate_on_edit": False})
        vm.reload_now()
        stale = vm.lookup((0,))

        vm.delete_item((0,))

        assert vm.lookup((0,)) is stale


# ---------------------------------------------------------------------------
# Options, events and lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    @pytest.mark.parametrize(
        "options",
        [{"reload_workers": 0}, {"editing": {"delete": "yes"}}, {"unknown": True}],
    )
    def test_invalid_options_raise(self, options):
        with pytest.raises(OptionsValidationError):
            _make_vm(options=options)

    def test_reload_requested_event_targets_by_name(self):
        bus = EventBus()
        vm = _make_vm(event_bus=bus, name="feed")

        bus.publish(ReloadRequestedEvent(target="other"))
        assert vm.generation == 0

        bus.publish(ReloadRequestedEvent(target="feed"))
        bus.publish(ReloadRequestedEvent())
        vm.shutdown(wait=True)

        assert vm.generation == 2
        assert vm.count == 3

    def test_external_executor_is_not_shut_down(self):
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            vm = _make_vm(executor=executor)
            vm.reload().result(timeout=WAIT)
            vm.shutdown()
            assert executor.submit(lambda: 7).result(timeout=WAIT) == 7
        finally:
            executor.shutdown()

    def test_dispose_detaches_everything(self):
        bus = EventBus()
        vm = _make_vm(event_bus=bus, name="feed")
        rec = _Recorder(vm)

        vm.dispose()
        bus.publish(ReloadRequestedEvent(target="feed"))
        vm.reload_now()

        assert vm.generation == 1
        assert rec.reloaded == []

    def test_coordinator_alias(self):
        assert ListCoordinator is ListViewModel
