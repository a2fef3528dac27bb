"""Path-addressable list structures and list view models."""

from .domain.models import Branch, Leaf, PathAddress, TreeStructure, address, as_address
from .errors import FetchError, ListKitError
from .gui.viewmodels import ItemIdentifier, ItemViewModel, ListCoordinator, ListViewModel

__all__ = [
    "Branch",
    "FetchError",
    "ItemIdentifier",
    "ItemViewModel",
    "Leaf",
    "ListCoordinator",
    "ListKitError",
    "ListViewModel",
    "PathAddress",
    "TreeStructure",
    "address",
    "as_address",
]
