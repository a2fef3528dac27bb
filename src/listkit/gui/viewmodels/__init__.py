from .signal import Signal, ObservableProperty
from .base import BaseViewModel
from .item_viewmodel import ItemIdentifier, ItemViewModel, identifier_of, passthrough_translate
from .list_viewmodel import ListCoordinator, ListViewModel

__all__ = [
    "BaseViewModel",
    "ItemIdentifier",
    "ItemViewModel",
    "ListCoordinator",
    "ListViewModel",
    "ObservableProperty",
    "Signal",
    "identifier_of",
    "passthrough_translate",
]
