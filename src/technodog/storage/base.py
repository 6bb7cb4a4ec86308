"""Abstract base class for document stores."""

from __future__ import annotations

from abc import ABC, abstractmethod

from technodog.storage.schemas import DocumentRecord


class DocumentStore(ABC):
    """Interface for document storage backends."""

    @abstractmethod
    def add(self, record: DocumentRecord) -> str:
        """Insert one record.

        Returns:
            The id assigned by the store.

        Raises:
            StorageError: if the backend rejects the write.
        """

    @abstractmethod
    def count(self) -> int:
        """Return the number of records in the store."""

    @classmethod
    def store_name(cls) -> str:
        """Return human-readable store name."""
        return cls.__name__
