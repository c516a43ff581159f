"""
Ports (interfaces) for the collaborators the core depends on.

Infrastructure adapters implement these; application services depend only on
the abstractions.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any

from .models import WordDefinition


class KeyValueStore(ABC):
    """
    Port for persisting entity collections.

    Implementations:
        - JsonFileStore: one JSON document per key under a data directory.
    """

    @abstractmethod
    def load(self, key: str, default: Any) -> Any:
        """
        Return the stored value for ``key``.

        Any read or decode failure degrades to ``default``.
        """
        pass

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """
        Persist ``value`` under ``key``.

        Raises:
            StorageQuotaExceeded: The write would exceed the storage budget.
        """
        pass

    @abstractmethod
    def batch(self) -> AbstractContextManager[None]:
        """
        Group several saves into one commit.

        Saves made inside the block are buffered and written together on exit.
        If the block raises, or the combined write exceeds the quota, nothing
        is written.
        """
        pass


class DefinitionLookup(ABC):
    """Port for looking up a headword's definition, part of speech and example."""

    @abstractmethod
    async def lookup(self, headword: str) -> WordDefinition:
        """
        Returns a WordDefinition; on failure its ``error`` is set so the caller
        can fall back to manual entry.
        """
        pass

    async def close(self) -> None:
        """Release any held connections."""
        pass


class PageExporter(ABC):
    """Port for publishing a nested block structure as a remote page."""

    @abstractmethod
    async def create_page(self, title: str, blocks: list[dict[str, Any]]) -> dict[str, str]:
        """
        Create a page holding ``blocks``.

        Returns:
            Dict with the created page's ``id`` and ``url``.
        """
        pass

    async def close(self) -> None:
        """Release any held connections."""
        pass
