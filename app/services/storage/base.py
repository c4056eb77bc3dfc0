from abc import ABC, abstractmethod
from typing import Any

class StagingStore(ABC):
    """Keyed namespace holding per-session chunk files.

    A session exists iff its directory exists, so the backing medium only has
    to offer directory and whole-file operations.
    """

    @abstractmethod
    async def ensure_dir(self, path: str) -> None:
        pass

    @abstractmethod
    async def write_file(self, path: str, data: bytes) -> None:
        """Replace the whole file at ``path`` with ``data``."""
        pass

    @abstractmethod
    async def read_file(self, path: str) -> bytes:
        pass

    @abstractmethod
    async def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    async def remove_dir_recursive(self, path: str) -> None:
        """Delete ``path`` and everything below it; a missing path is not an error."""
        pass


class DestinationStore(ABC):
    """Sequential sink for assembled files."""

    @abstractmethod
    async def open_append_stream(self, name: str) -> Any:
        pass

    @abstractmethod
    async def append(self, handle: Any, data: bytes) -> None:
        pass

    @abstractmethod
    async def close_and_flush(self, handle: Any) -> str:
        """Durably flush and close the stream, returning where the file landed."""
        pass

    @abstractmethod
    async def discard(self, handle: Any) -> None:
        """Release a stream whose assembly failed."""
        pass
