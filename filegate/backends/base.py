"""
Abstract base class for object-storage backend clients.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Sequence, Union

from filegate.models import BackendConfig

DEFAULT_STORAGE_CLASS = "Standard"

HeaderValue = Union[str, Sequence[str]]


@dataclass(frozen=True)
class ObjectEntry:
    """One object as reported by a backend listing."""

    key: str
    size: int
    last_modified: Union[datetime, float, str, None] = None


@dataclass(frozen=True)
class ObjectPage:
    """Raw listing page, ordered by key as the backend returned it."""

    entries: List[ObjectEntry] = field(default_factory=list)
    is_truncated: bool = False


class ObjectReader(ABC):
    """Backend body stream, read in chunks and closed by the owner."""

    @abstractmethod
    async def read(self, size: int = -1) -> bytes:
        """
        Read up to `size` bytes; -1 reads to the end.

        Returns:
            Bytes read, b"" at end of stream
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        pass


class ObjectClient(ABC):
    """
    Authenticated connection to one backend endpoint.

    Exposes only the five calls the facade needs. Adapters raise their SDK's
    native exceptions; the facade normalizes them.
    """

    backend_type = "unknown"

    def __init__(self, config: BackendConfig):
        """
        Initialize backend client.

        Args:
            config: Validated backend declaration
        """
        self.config = config
        self.endpoint = config.endpoint_id

    async def connect(self) -> None:
        """
        Build the SDK client and authenticate.

        Called once by the registry before the client is used. Any exception
        aborts registry initialization.
        """
        pass

    @abstractmethod
    async def put_object(
        self, bucket: str, key: str, data: bytes, storage_class: str = DEFAULT_STORAGE_CLASS
    ) -> None:
        """
        Create or overwrite an object.

        Args:
            bucket: Bucket name
            key: Object key
            data: Full object content
            storage_class: Storage-class hint in OSS vocabulary ("Standard", "IA", ...)
        """
        pass

    @abstractmethod
    async def get_object(self, bucket: str, key: str) -> ObjectReader:
        """Open an object for reading."""
        pass

    @abstractmethod
    async def list_objects(
        self, bucket: str, prefix: str, marker: str, max_keys: int
    ) -> ObjectPage:
        """
        List keys under a prefix strictly after `marker`.

        Args:
            bucket: Bucket name
            prefix: Key prefix, "" for the whole bucket
            marker: Continue after this key, "" to start from the beginning
            max_keys: Page size

        Returns:
            One listing page
        """
        pass

    @abstractmethod
    async def delete_object(self, bucket: str, key: str) -> None:
        pass

    @abstractmethod
    async def head_object(self, bucket: str, key: str) -> Dict[str, HeaderValue]:
        """
        Fetch object metadata headers.

        Returns:
            Header name to value(s); must include Content-Length and Last-Modified
        """
        pass

    def is_not_found(self, exc: BaseException) -> bool:
        """Whether an SDK exception means the object is absent."""
        return False

    async def get_status(self) -> Dict[str, Any]:
        """
        Get client status.

        Returns:
            Dictionary with client status information
        """
        return {
            "endpoint": self.endpoint,
            "type": self.backend_type,
            "region": self.config.region,
        }

    async def cleanup(self) -> None:
        """Release SDK resources."""
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} endpoint={self.endpoint}>"
