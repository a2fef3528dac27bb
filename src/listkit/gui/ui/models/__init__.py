from .roles import Roles, role_names
from .structure_item_model import StructureItemModel

__all__ = ["Roles", "StructureItemModel", "role_names"]
