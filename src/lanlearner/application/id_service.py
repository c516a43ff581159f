"""Stable ids for categories and learning items."""

from ulid import ULID


def generate_id() -> str:
    """Generate a sortable unique id using ULID."""
    return str(ULID())
