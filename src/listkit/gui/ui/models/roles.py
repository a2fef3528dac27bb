"""Role definitions exposed by the structure item model."""

from __future__ import annotations

from enum import IntEnum
from typing import Dict

from PySide6.QtCore import Qt


class Roles(IntEnum):
    """Custom roles exposed to QML or widgets."""

    ITEM_VIEW = Qt.UserRole + 1
    IDENTIFIER = Qt.UserRole + 2
    MODEL = Qt.UserRole + 3
    ADDRESS = Qt.UserRole + 4
    SECTION_MODEL = Qt.UserRole + 5
    IS_SECTION = Qt.UserRole + 6
    REUSE_IDENTIFIER = Qt.UserRole + 7


def role_names(base: Dict[int, bytes] | None = None) -> Dict[int, bytes]:
    """Return a mapping of Qt role numbers to byte names."""

    mapping: Dict[int, bytes] = {} if base is None else dict(base)
    mapping.update(
        {
            Roles.ITEM_VIEW: b"itemView",
            Roles.IDENTIFIER: b"identifier",
            Roles.MODEL: b"model",
            Roles.ADDRESS: b"address",
            Roles.SECTION_MODEL: b"sectionModel",
            Roles.IS_SECTION: b"isSection",
            Roles.REUSE_IDENTIFIER: b"reuseIdentifier",
        }
    )
    return mapping
