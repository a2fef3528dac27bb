from .path import PathAddress, address, as_address
from .structure import Branch, Leaf, TreeStructure

__all__ = [
    "Branch",
    "Leaf",
    "PathAddress",
    "TreeStructure",
    "address",
    "as_address",
]
