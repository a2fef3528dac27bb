from .reload import ReloadOutcome, ReloadStatus, build_structure, run_fetch
from .view_cache import ViewCache

__all__ = [
    "ReloadOutcome",
    "ReloadStatus",
    "ViewCache",
    "build_structure",
    "run_fetch",
]
