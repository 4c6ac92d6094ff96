from abc import ABC, abstractmethod
from urllib.parse import quote


class BaseBlobStore(ABC):
    """Contract for all blob storage adapters."""

    @abstractmethod
    def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Write bytes under ``key`` exactly as given.

        Returns:
            The stored path, addressable by ``get_public_url`` and ``remove``.

        Raises:
            StorageWriteError: if the backend rejects or fails the write.
        """

    @abstractmethod
    def get_public_url(self, stored_path: str) -> str | None:
        """Derive a retrievable URL without a network round trip.

        Returns None when the store cannot expose the object publicly.
        """

    @abstractmethod
    def remove(self, stored_path: str) -> None:
        """Delete an object. Removing an absent object is not an error.

        Raises:
            StorageDeleteError: if an existing object could not be removed.
        """


def public_url_for(base_url: str, bucket: str, stored_path: str) -> str | None:
    """Join a configured public base URL with bucket and object path."""
    if not base_url:
        return None
    return f"{base_url.rstrip('/')}/{quote(bucket)}/{quote(stored_path)}"
