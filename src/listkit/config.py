"""Default configuration values for listkit."""

from __future__ import annotations

from typing import Final

# Side-model tag used when a section carries a single anonymous model (the
# "section model"). Header and footer payloads use their own named tags so a
# section can hold both at once.
SECTION_MODEL_TAG: Final[str] = ""
HEADER_TAG: Final[str] = "header"
FOOTER_TAG: Final[str] = "footer"

# Reloads run on a private thread pool unless the caller supplies an executor.
# One worker is enough: only the newest reload is ever applied.
DEFAULT_RELOAD_WORKERS: Final[int] = 1

# Edit permissions granted to rendering adapters when no options are passed.
# Deleting is allowed by default; inserting and moving are opt-in.
DEFAULT_EDIT_PERMISSIONS: Final[dict[str, bool]] = {
    "delete": True,
    "insert": False,
    "move": False,
}
