"""Address-keyed cache of item view models derived from a structure.

The cache is a side table: nothing is stored on the tree nodes or on the
models themselves. A cache is bound to exactly one :class:`TreeStructure`;
replacing the structure means replacing the cache, which is how a reload
swaps data and drops derived views in one step.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from ...config import SECTION_MODEL_TAG
from ...domain.models.path import PathAddress, as_address
from ...domain.models.structure import TreeStructure
from ..interfaces import SectionTranslator, Translator

LOGGER = logging.getLogger(__name__)


class ViewCache:
    """Lazily derive and memoise one view per address."""

    def __init__(
        self,
        structure: TreeStructure,
        translate: Translator,
        section_translate: Optional[SectionTranslator] = None,
    ) -> None:
        self._structure = structure
        self._translate = translate
        self._section_translate = section_translate
        self._views: Dict[PathAddress, Any] = {}
        self._section_views: Dict[Tuple[PathAddress, str], Any] = {}

    @property
    def structure(self) -> TreeStructure:
        return self._structure

    def __len__(self) -> int:
        return len(self._views)

    def __contains__(self, address: object) -> bool:
        key = as_address(address)
        return key is not None and key in self._views

    def peek(self, address: Any) -> Optional[Any]:
        """Return the cached view for *address* without deriving one."""
        key = as_address(address)
        if key is None:
            return None
        return self._views.get(key)

    def lookup(self, address: Any) -> Optional[Any]:
        """Return the view for *address*, deriving and caching it on a miss.

        ``None`` results from the translator are not cached, so a later call
        asks again.
        """
        key = as_address(address)
        if key is None:
            return None
        cached = self._views.get(key)
        if cached is not None:
            return cached
        model = self._structure.resolve(key)
        if model is None:
            return None
        view = self._translate(model)
        if view is not None:
            self._views[key] = view
        return view

    def lookup_section(self, address: Any, tag: str = SECTION_MODEL_TAG) -> Optional[Any]:
        """Return the view for the side-model *tag* of the leaf at *address*."""
        section = self._structure.section_path(address)
        if section is None:
            return None
        key = (section, tag)
        cached = self._section_views.get(key)
        if cached is not None:
            return cached
        model = self._structure.auxiliary_model(address, tag)
        if model is None:
            return None
        if self._section_translate is not None:
            view = self._section_translate(model, tag)
        else:
            view = self._translate(model)
        if view is not None:
            self._section_views[key] = view
        return view

    def invalidate_from(self, address: Any) -> int:
        """Drop views at or after the slot *address* points to in its leaf.

        Entries that no longer resolve are dropped as well. Returns the number
        of item views removed.
        """
        located = self._structure.locate(address)
        if located is None:
            return 0
        leaf_path, index = located
        stale = []
        for key in self._views:
            key_location = self._structure.locate(key)
            if key_location is None or self._structure.resolve(key) is None:
                stale.append(key)
                continue
            key_path, key_index = key_location
            if key_path == leaf_path and key_index >= index:
                stale.append(key)
        for key in stale:
            del self._views[key]
        if stale:
            LOGGER.debug("Invalidated %d cached views from %r", len(stale), address)
        return len(stale)

    def clear(self) -> None:
        self._views.clear()
        self._section_views.clear()
