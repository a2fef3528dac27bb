"""Item view models: the presentation wrappers derived per address."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Hashable, Optional


@dataclass(frozen=True)
class ItemIdentifier:
    """Identifies the view template an item should be rendered with.

    ``name`` doubles as the default reuse identifier. ``embeddable`` marks
    templates that are hosted inside a generic container cell instead of
    being instantiated directly.
    """

    name: str
    embeddable: bool = False

    def __str__(self) -> str:
        return self.name


class ItemViewModel:
    """Base class for per-item view models.

    Subclasses set :attr:`identifier` (the type tag used to pick a template)
    and expose the wrapped domain object through :attr:`model`.
    """

    identifier: Hashable = ItemIdentifier("item")

    def __init__(self, model: Any = None) -> None:
        self._model = model

    @property
    def model(self) -> Any:
        return self._model

    def __repr__(self) -> str:
        return f"{type(self).__name__}(identifier={self.identifier!r}, model={self._model!r})"


def passthrough_translate(model: Any) -> Optional[ItemViewModel]:
    """Default translator: models that already are view models are used as is."""
    return model if isinstance(model, ItemViewModel) else None


def identifier_of(view: Any) -> Optional[Hashable]:
    """Return the type tag of *view*, or ``None`` when it carries none."""
    if view is None:
        return None
    return getattr(view, "identifier", None)
