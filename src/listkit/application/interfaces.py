"""Contracts for the collaborators a list view model depends on."""

from typing import Any, Callable, Optional, Protocol, Sequence, Union, runtime_checkable

from ..domain.models.structure import TreeStructure

FetchResult = Union[Sequence[Any], TreeStructure]

# Domain model -> item view model (``None`` when the model has no view).
Translator = Callable[[Any], Optional[Any]]

# (side-model, tag) -> section view model, e.g. for "header" / "footer".
SectionTranslator = Callable[[Any, str], Optional[Any]]


@runtime_checkable
class ListDataSource(Protocol):
    """Object-style fetch collaborator.

    ``fetch`` may block; it runs on the reload executor. Raising any exception
    is the failure outcome.
    """

    def fetch(self) -> FetchResult: ...


Fetcher = Union[Callable[[], FetchResult], ListDataSource]


def as_fetch_callable(source: Fetcher) -> Callable[[], FetchResult]:
    """Return a zero-argument callable for either flavour of fetcher."""
    if isinstance(source, ListDataSource):
        return source.fetch
    if not callable(source):
        raise TypeError(f"fetcher must be callable or expose fetch(), got {source!r}")
    return source
