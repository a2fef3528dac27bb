"""Qt-facing adapters for list view models."""
