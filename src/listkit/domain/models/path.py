"""Integer path addresses used to reach items inside a :class:`TreeStructure`."""

from __future__ import annotations

from typing import Any, Optional, Tuple

PathAddress = Tuple[int, ...]


def address(*components: int) -> PathAddress:
    """Build a :data:`PathAddress` from positional components."""
    return tuple(components)


def as_address(value: Any) -> Optional[PathAddress]:
    """Normalise *value* to a :data:`PathAddress`.

    Returns ``None`` for anything that is not a sequence of non-negative
    integers. Booleans are rejected even though they subclass ``int``.
    """
    if value is None or isinstance(value, (str, bytes)):
        return None
    try:
        components = tuple(value)
    except TypeError:
        return None
    for component in components:
        if isinstance(component, bool) or not isinstance(component, int):
            return None
        if component < 0:
            return None
    return components
