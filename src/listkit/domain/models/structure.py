"""Recursive, path-addressable container behind every list surface.

A :class:`TreeStructure` is either a :class:`Leaf` holding a flat list of
models (plus optional named side-models such as a section header) or a
:class:`Branch` holding child structures. One addressing scheme covers flat
lists (``(row,)``), sectioned lists (``(section, row)``) and deeper groupings:
branches consume leading components to pick a child, and the leaf that is
finally reached uses the *last* component to pick an item.

Addressing misses never raise. Every lookup and mutation returns ``None`` (or
``False``) when the address does not fit the current shape.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ...config import SECTION_MODEL_TAG
from .path import PathAddress, as_address

LOGGER = logging.getLogger(__name__)


class TreeStructure(ABC):
    """Base class of the :class:`Leaf` / :class:`Branch` union."""

    preferred_address: Optional[PathAddress]

    # -- construction ------------------------------------------------------

    @staticmethod
    def empty() -> "Leaf":
        return Leaf()

    @staticmethod
    def from_items(
        items: Iterable[Any], auxiliary: Optional[Mapping[str, Any]] = None
    ) -> "Leaf":
        """Wrap a flat sequence of models into a single leaf."""
        return Leaf(list(items), dict(auxiliary or {}))

    @staticmethod
    def sections(
        groups: Iterable[Iterable[Any]],
        headers: Optional[Sequence[Any]] = None,
        tag: str = SECTION_MODEL_TAG,
    ) -> "Branch":
        """Build a sectioned structure, one leaf per group.

        When *headers* is given, ``headers[i]`` becomes the side-model of
        section ``i`` under *tag*. ``None`` headers are skipped.
        """
        children: List[TreeStructure] = []
        for index, group in enumerate(groups):
            auxiliary: Dict[str, Any] = {}
            if headers is not None and index < len(headers) and headers[index] is not None:
                auxiliary[tag] = headers[index]
            children.append(Leaf(list(group), auxiliary))
        return Branch(children)

    # -- shape -------------------------------------------------------------

    @property
    @abstractmethod
    def count(self) -> int:
        """Total number of items below this node."""

    @property
    def child_count(self) -> int:
        return 0

    @property
    def item_count(self) -> int:
        return 0

    @abstractmethod
    def flatten(self) -> List[Any]:
        """Return every item, depth first, in child order."""

    @abstractmethod
    def copy(self) -> "TreeStructure":
        """Copy the containers; the models themselves are shared."""

    @abstractmethod
    def _collect_addresses(self, prefix: PathAddress, out: List[PathAddress]) -> None:
        ...

    def enumerate_addresses(self) -> List[PathAddress]:
        """Return the address of every item, depth first, left to right."""
        out: List[PathAddress] = []
        self._collect_addresses((), out)
        return out

    def __len__(self) -> int:
        return self.count

    # -- addressing --------------------------------------------------------

    def _descend(self, address: Any) -> Optional[Tuple["Leaf", PathAddress, PathAddress]]:
        # Walk branches with the leading components until a leaf is reached.
        # Returns (leaf, consumed components, remaining components).
        components = as_address(address)
        if components is None:
            return None
        node: TreeStructure = self
        consumed: List[int] = []
        remaining = components
        while isinstance(node, Branch):
            if not remaining:
                return None
            head = remaining[0]
            if head >= len(node.children):
                return None
            node = node.children[head]
            consumed.append(head)
            remaining = remaining[1:]
        assert isinstance(node, Leaf)
        return node, tuple(consumed), remaining

    def _find_leaf(self, address: Any) -> Optional[Tuple["Leaf", PathAddress, int]]:
        found = self._descend(address)
        if found is None:
            return None
        leaf, consumed, remaining = found
        if not remaining:
            return None
        return leaf, consumed, remaining[-1]

    def section_path(self, address: Any) -> Optional[PathAddress]:
        """Return the branch components *address* uses to reach its leaf."""
        found = self._descend(address)
        if found is None:
            return None
        return found[1]

    def locate(self, address: Any) -> Optional[Tuple[PathAddress, int]]:
        """Return ``(leaf_path, index)`` for *address* without bounds-checking the index.

        ``leaf_path`` holds the branch components that were consumed to
        reach the leaf; ``index`` is the item-selecting component.
        """
        found = self._find_leaf(address)
        if found is None:
            return None
        _, leaf_path, index = found
        return leaf_path, index

    def node_at(self, prefix: Any) -> Optional["TreeStructure"]:
        """Return the node reached by following *prefix* through branches."""
        components = as_address(prefix)
        if components is None:
            return None
        node: TreeStructure = self
        for head in components:
            if not isinstance(node, Branch) or head >= len(node.children):
                return None
            node = node.children[head]
        return node

    def resolve(self, address: Any) -> Optional[Any]:
        """Return the item at *address*, or ``None`` when there is none."""
        found = self._find_leaf(address)
        if found is None:
            return None
        leaf, _, index = found
        if index >= len(leaf.items):
            return None
        return leaf.items[index]

    def auxiliary_models(self, address: Any = ()) -> Optional[Dict[str, Any]]:
        """Return a copy of the side-models of the leaf selected by *address*.

        Only the branch-selecting prefix of *address* is used; whatever is
        left once a leaf is reached is ignored.
        """
        found = self._descend(address)
        if found is None:
            return None
        return dict(found[0].auxiliary)

    def auxiliary_model(self, address: Any = (), tag: str = SECTION_MODEL_TAG) -> Optional[Any]:
        """Return the side-model stored under *tag* for the leaf at *address*."""
        models = self.auxiliary_models(address)
        if models is None:
            return None
        return models.get(tag)

    # -- mutation ----------------------------------------------------------

    def pop(self, address: Any) -> Tuple[bool, Any]:
        """Remove the item at *address* and return ``(found, item)``.

        ``found`` tells a miss apart from a stored ``None`` model.
        """
        found = self._find_leaf(address)
        if found is None:
            LOGGER.debug("delete: no leaf for %r", address)
            return False, None
        leaf, _, index = found
        if index >= len(leaf.items):
            LOGGER.debug("delete: index %d out of range for %r", index, address)
            return False, None
        return True, leaf.items.pop(index)

    def delete(self, address: Any) -> Optional[Any]:
        """Remove and return the item at *address*; ``None`` when invalid."""
        return self.pop(address)[1]

    def insert_at(self, item: Any, address: Any) -> Optional[PathAddress]:
        """Insert *item* and return the address it now occupies.

        The selecting component is the insertion position; positions past the
        end append, and the returned address reflects that. Returns ``None``
        (and changes nothing) when no leaf can be reached.
        """
        components = as_address(address)
        found = self._find_leaf(components) if components is not None else None
        if found is None:
            LOGGER.debug("insert: no leaf for %r", address)
            return None
        leaf, _, index = found
        position = min(index, len(leaf.items))
        leaf.items.insert(position, item)
        return components[:-1] + (position,)

    def insert(self, item: Any, address: Any) -> bool:
        """Insert *item* into the leaf reached by *address*; see :meth:`insert_at`."""
        return self.insert_at(item, address) is not None

    def relocate(self, from_address: Any, to_address: Any) -> Optional[Tuple[Any, PathAddress]]:
        """Move an item and return ``(item, landed_address)``, or ``None`` on a miss.

        The item is removed first and then inserted, so *to_address* is read
        against the structure without the moved item. That makes moves inside
        one leaf land exactly on *to_address*. When the destination cannot be
        reached the item is put back where it was.
        """
        origin = self._find_leaf(from_address)
        found, item = self.pop(from_address)
        if not found or origin is None:
            return None
        landed = self.insert_at(item, to_address)
        if landed is not None:
            return item, landed
        leaf, _, index = origin
        leaf.items.insert(index, item)
        return None

    def move(self, from_address: Any, to_address: Any) -> Optional[Any]:
        """Move the item at *from_address* so that it ends up at *to_address*.

        Returns the moved model, or ``None`` when nothing moved. A stored
        ``None`` model is moved too; use :meth:`relocate` to tell the cases
        apart.
        """
        moved = self.relocate(from_address, to_address)
        return moved[0] if moved is not None else None

    def merge(self, other: Optional["TreeStructure"]) -> "TreeStructure":
        """Merge *other* into this structure and return ``self``.

        When ``other.preferred_address`` points inside the current shape the
        flattened items of *other* are spliced in at that position; otherwise
        *other* is appended as in :meth:`extend`.
        """
        if other is None:
            return self
        preferred = other.preferred_address
        if preferred is not None and self._splice(other.flatten(), preferred):
            return self
        return self.extend(other)

    def _splice(self, models: List[Any], address: Any) -> bool:
        found = self._find_leaf(address)
        if found is None:
            return False
        leaf, _, position = found
        if position > len(leaf.items):
            return False
        leaf.items[position:position] = models
        return True

    @abstractmethod
    def extend(self, other: Optional["TreeStructure"]) -> "TreeStructure":
        """Append *other* to this structure in place and return ``self``."""

    def __iadd__(self, other: "TreeStructure") -> "TreeStructure":
        if not isinstance(other, TreeStructure):
            return NotImplemented
        return self.extend(other)

    def __add__(self, other: "TreeStructure") -> "TreeStructure":
        if not isinstance(other, TreeStructure):
            return NotImplemented
        return self.copy().extend(other)


@dataclass(eq=True)
class Leaf(TreeStructure):
    """Flat list of models with optional named side-models."""

    items: List[Any] = field(default_factory=list)
    auxiliary: Dict[str, Any] = field(default_factory=dict)
    preferred_address: Optional[PathAddress] = None

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def section_model(self) -> Optional[Any]:
        return self.auxiliary.get(SECTION_MODEL_TAG)

    def flatten(self) -> List[Any]:
        return list(self.items)

    def copy(self) -> "Leaf":
        return Leaf(list(self.items), dict(self.auxiliary), self.preferred_address)

    def _collect_addresses(self, prefix: PathAddress, out: List[PathAddress]) -> None:
        out.extend(prefix + (index,) for index in range(len(self.items)))

    def extend(self, other: Optional[TreeStructure]) -> "Leaf":
        if other is not None:
            self.items.extend(other.flatten())
        return self


@dataclass(eq=True)
class Branch(TreeStructure):
    """Ordered group of child structures."""

    children: List[TreeStructure] = field(default_factory=list)
    preferred_address: Optional[PathAddress] = None

    @property
    def count(self) -> int:
        return sum(child.count for child in self.children)

    @property
    def child_count(self) -> int:
        return len(self.children)

    def flatten(self) -> List[Any]:
        flattened: List[Any] = []
        for child in self.children:
            flattened.extend(child.flatten())
        return flattened

    def copy(self) -> "Branch":
        return Branch([child.copy() for child in self.children], self.preferred_address)

    def _collect_addresses(self, prefix: PathAddress, out: List[PathAddress]) -> None:
        for index, child in enumerate(self.children):
            child._collect_addresses(prefix + (index,), out)

    def extend(self, other: Optional[TreeStructure]) -> "Branch":
        if other is None:
            return self
        if isinstance(other, Branch):
            # Copy first; ``other`` may be ``self``.
            children = [child.copy() for child in other.children]
            self.children.extend(children)
        else:
            assert isinstance(other, Leaf)
            self.children.append(Leaf(list(other.items), dict(other.auxiliary)))
        return self
