"""Qt item model presenting a :class:`ListViewModel` to item views."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from PySide6.QtCore import QAbstractItemModel, QByteArray, QModelIndex, QObject, Qt, Signal

from ....domain.models.path import PathAddress, as_address
from ....domain.models.structure import Branch, TreeStructure
from ...viewmodels.list_viewmodel import ListViewModel
from .roles import Roles, role_names


@dataclass(slots=True, eq=False)
class _StructureItem:
    """Row backing one node of the mirrored structure.

    Section rows stand for child structures of a branch, item rows for the
    models stored in a leaf. ``address`` is the path the view model
    understands for that row.
    """

    address: PathAddress
    is_section: bool = False
    parent: Optional["_StructureItem"] = None
    children: List["_StructureItem"] = field(default_factory=list)

    def add_child(self, item: "_StructureItem") -> None:
        item.parent = self
        self.children.append(item)

    def child(self, index: int) -> Optional["_StructureItem"]:
        if 0 <= index < len(self.children):
            return self.children[index]
        return None

    def row(self) -> int:
        if not self.address:
            return 0
        return self.address[-1]


class StructureItemModel(QAbstractItemModel):
    """Tree model mirroring the structure owned by a list view model.

    Branch children become section rows and leaf items become item rows, so a
    flat list is a plain list model and a sectioned list is a two level tree.
    Reloads reset the model; those finishing on a worker thread are
    marshalled to the model's thread through :attr:`structureReplaced`.
    Single-row deletes and inserts are reported as row removals/insertions,
    other edits fall back to a reset.
    """

    structureReplaced = Signal()  # noqa: N815

    def __init__(self, view_model: ListViewModel, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._view_model = view_model
        self._root_item = _StructureItem(())
        self.structureReplaced.connect(self.refresh)
        view_model.reloaded.connect(self._on_reloaded)
        view_model.items_changed.connect(self._on_items_changed)
        self._rebuild()

    @property
    def view_model(self) -> ListViewModel:
        return self._view_model

    # ------------------------------------------------------------------
    # QAbstractItemModel API
    # ------------------------------------------------------------------
    def columnCount(self, _parent: QModelIndex = QModelIndex()) -> int:  # noqa: N802
        return 1

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:  # noqa: N802
        if parent.isValid() and parent.column() != 0:
            return 0
        return len(self._item_from_index(parent).children)

    def index(self, row: int, column: int, parent: QModelIndex = QModelIndex()):  # noqa: N802
        if column != 0:
            return QModelIndex()
        child = self._item_from_index(parent).child(row)
        if child is None:
            return QModelIndex()
        return self.createIndex(row, column, child)

    def parent(self, index: QModelIndex) -> QModelIndex:  # noqa: N802
        if not index.isValid():
            return QModelIndex()
        item = self._item_from_index(index)
        if item.parent is None or item.parent is self._root_item:
            return QModelIndex()
        return self.createIndex(item.parent.row(), 0, item.parent)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):  # noqa: N802
        if not index.isValid():
            return None
        item = self._item_from_index(index)
        if item.is_section:
            return self._section_data(item, role)
        return self._item_data(item, role)

    def roleNames(self) -> dict[int, QByteArray]:  # type: ignore[override]
        names = role_names({int(Qt.ItemDataRole.DisplayRole): b"display"})
        return {int(role): QByteArray(name) for role, name in names.items()}

    def flags(self, index: QModelIndex) -> Qt.ItemFlag:  # noqa: N802
        if not index.isValid():
            return Qt.ItemFlag.NoItemFlags
        item = self._item_from_index(index)
        if item.is_section:
            return Qt.ItemFlag.ItemIsEnabled
        flags = Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable
        if self._view_model.can_move(item.address):
            flags |= Qt.ItemFlag.ItemIsDragEnabled
        return flags

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def refresh(self) -> None:
        """Rebuild the rows from the view model's current structure."""

        self.beginResetModel()
        self._rebuild()
        self.endResetModel()

    def address_for_index(self, index: QModelIndex) -> Optional[PathAddress]:
        if not index.isValid():
            return None
        return self._item_from_index(index).address

    def index_for_address(self, address: Any) -> QModelIndex:
        """Return the index of the row at *address*, or an invalid index."""

        components = as_address(address)
        if not components:
            return QModelIndex()
        item = self._root_item
        index = QModelIndex()
        for component in components:
            child = item.child(component)
            if child is None:
                return QModelIndex()
            index = self.createIndex(component, 0, child)
            item = child
        return index

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _item_from_index(self, index: QModelIndex) -> _StructureItem:
        if index.isValid():
            item = index.internalPointer()
            if isinstance(item, _StructureItem):
                return item
        return self._root_item

    def _rebuild(self) -> None:
        self._root_item = _StructureItem(())
        self._populate(self._root_item, self._view_model.structure)

    def _populate(self, parent: _StructureItem, node: TreeStructure) -> None:
        if isinstance(node, Branch):
            for position, child in enumerate(node.children):
                section = _StructureItem(parent.address + (position,), is_section=True)
                parent.add_child(section)
                self._populate(section, child)
            return
        for position in range(node.item_count):
            parent.add_child(_StructureItem(parent.address + (position,)))

    def _item_data(self, item: _StructureItem, role: int) -> Any:
        view_model = self._view_model
        if role == Qt.ItemDataRole.DisplayRole:
            model = view_model.unwrap(item.address)
            return None if model is None else str(model)
        if role == Roles.ITEM_VIEW:
            return view_model.lookup(item.address)
        if role == Roles.IDENTIFIER:
            return view_model.identifier_for(item.address)
        if role == Roles.REUSE_IDENTIFIER:
            identifier = view_model.identifier_for(item.address)
            if identifier is None:
                return None
            custom = view_model.reuse_identifier(identifier, item.address)
            return custom if custom is not None else str(identifier)
        if role == Roles.MODEL:
            return view_model.unwrap(item.address)
        if role == Roles.ADDRESS:
            return list(item.address)
        if role == Roles.IS_SECTION:
            return False
        return None

    def _section_data(self, item: _StructureItem, role: int) -> Any:
        view_model = self._view_model
        if role == Qt.ItemDataRole.DisplayRole:
            model = view_model.auxiliary_model(item.address)
            return None if model is None else str(model)
        if role == Roles.SECTION_MODEL:
            return view_model.auxiliary_model(item.address)
        if role == Roles.ITEM_VIEW:
            return view_model.section_lookup(item.address)
        if role == Roles.ADDRESS:
            return list(item.address)
        if role == Roles.IS_SECTION:
            return True
        return None

    # -- view model callbacks ----------------------------------------------

    def _on_reloaded(self, _structure: TreeStructure) -> None:
        # May run on a reload worker; the queued emission lands on our thread.
        self.structureReplaced.emit()

    def _on_items_changed(self, kind: str, addresses: tuple) -> None:
        # Edits run on the owning thread while the row mirror still holds the
        # pre-edit shape, so single-row edits are patched into it in place.
        location = self._view_model.structure.locate(addresses[0]) if addresses else None
        if kind not in ("delete", "insert") or location is None:
            self.refresh()
            return
        leaf_path, position = location
        parent_item = self._mirror_item(leaf_path)
        if parent_item is None:
            self.refresh()
            return
        parent_index = self.index_for_address(leaf_path)
        rows = parent_item.children
        if kind == "delete":
            if position >= len(rows):
                self.refresh()
                return
            self.beginRemoveRows(parent_index, position, position)
            removed = rows.pop(position)
            removed.parent = None
            self._renumber(parent_item, position)
            self.endRemoveRows()
            return
        row = min(position, len(rows))
        self.beginInsertRows(parent_index, row, row)
        item = _StructureItem(leaf_path + (row,), parent=parent_item)
        rows.insert(row, item)
        self._renumber(parent_item, row + 1)
        self.endInsertRows()

    def _mirror_item(self, path: PathAddress) -> Optional[_StructureItem]:
        item = self._root_item
        for component in path:
            child = item.child(component)
            if child is None or not child.is_section:
                return None
            item = child
        return item

    @staticmethod
    def _renumber(parent: _StructureItem, start: int) -> None:
        for row in range(start, len(parent.children)):
            parent.children[row].address = parent.address + (row,)
