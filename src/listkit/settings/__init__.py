from .schema import DEFAULT_OPTIONS, OPTIONS_SCHEMA, merge_with_defaults, validate_options

__all__ = ["DEFAULT_OPTIONS", "OPTIONS_SCHEMA", "merge_with_defaults", "validate_options"]
