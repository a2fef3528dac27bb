"""Schema helpers for list view model options."""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Mapping

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from ..config import DEFAULT_EDIT_PERMISSIONS, DEFAULT_RELOAD_WORKERS
from ..errors import OptionsValidationError

OPTIONS_SCHEMA: dict[str, Any] = {
    "$id": "listkit/options.schema.json",
    "type": "object",
    "required": ["editing", "invalidate_on_edit", "reload_workers"],
    "properties": {
        "editing": {
            "type": "object",
            "properties": {
                "delete": {"type": "boolean"},
                "insert": {"type": "boolean"},
                "move": {"type": "boolean"},
            },
            "additionalProperties": False,
        },
        "invalidate_on_edit": {"type": "boolean"},
        "reload_workers": {"type": "integer", "minimum": 1},
    },
    "additionalProperties": False,
}

DEFAULT_OPTIONS: dict[str, Any] = {
    "editing": dict(DEFAULT_EDIT_PERMISSIONS),
    "invalidate_on_edit": True,
    "reload_workers": DEFAULT_RELOAD_WORKERS,
}

_validator = Draft202012Validator(OPTIONS_SCHEMA)


def merge_with_defaults(data: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_OPTIONS` and validate the result.

    ``editing`` is merged key by key so callers can flip a single permission.
    """

    merged = deepcopy(DEFAULT_OPTIONS)
    if data:
        for key, value in data.items():
            if key == "editing" and isinstance(value, Mapping):
                merged["editing"].update(value)
                continue
            merged[key] = value
    validate_options(merged)
    return merged


def validate_options(data: Mapping[str, Any]) -> None:
    """Validate *data* against the options schema."""

    try:
        _validator.validate(dict(data))
    except ValidationError as exc:
        raise OptionsValidationError(exc.message) from exc


__all__ = ["DEFAULT_OPTIONS", "OPTIONS_SCHEMA", "merge_with_defaults", "validate_options"]
