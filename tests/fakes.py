"""In-memory backend client for facade and registry tests."""

from datetime import datetime, timezone
from email.utils import format_datetime
from hashlib import md5
from io import BytesIO
from typing import Dict, List, Optional, Tuple

from filegate.backends.base import (
    DEFAULT_STORAGE_CLASS,
    ObjectClient,
    ObjectEntry,
    ObjectPage,
    ObjectReader,
)
from filegate.models import BackendConfig


class FakeServiceError(Exception):
    """Mimics an SDK error carrying an HTTP status."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status


class BytesReader(ObjectReader):
    def __init__(self, data: bytes):
        self._buffer = BytesIO(data)
        self.closed = False

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)

    async def close(self) -> None:
        self.closed = True


class InMemoryObjectClient(ObjectClient):
    """Stores objects per bucket in dictionaries; records every call."""

    backend_type = "memory"

    def __init__(self, config: BackendConfig, fail_connect: bool = False):
        super().__init__(config)
        self.fail_connect = fail_connect
        self.objects: Dict[str, Dict[str, Tuple[bytes, datetime, str]]] = {}
        self.calls: List[Tuple[str, ...]] = []
        self.failures: Dict[str, Exception] = {}
        self.connected = False
        self.closed = False
        self.readers: List[BytesReader] = []

    def _maybe_fail(self, operation: str) -> None:
        error = self.failures.get(operation)
        if error is not None:
            raise error

    def _lookup(self, bucket: str, key: str) -> Tuple[bytes, datetime, str]:
        try:
            return self.objects[bucket][key]
        except KeyError:
            raise FakeServiceError(404, "The specified key does not exist.")

    async def connect(self) -> None:
        if self.fail_connect:
            raise ConnectionError("dial tcp: connection refused")
        self.connected = True

    async def put_object(
        self, bucket: str, key: str, data: bytes, storage_class: str = DEFAULT_STORAGE_CLASS
    ) -> None:
        self.calls.append(("put_object", bucket, key, storage_class))
        self._maybe_fail("put_object")
        self.objects.setdefault(bucket, {})[key] = (
            data,
            datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
            storage_class,
        )

    async def get_object(self, bucket: str, key: str) -> ObjectReader:
        self.calls.append(("get_object", bucket, key))
        self._maybe_fail("get_object")
        data, _, _ = self._lookup(bucket, key)
        reader = BytesReader(data)
        self.readers.append(reader)
        return reader

    async def list_objects(
        self, bucket: str, prefix: str, marker: str, max_keys: int
    ) -> ObjectPage:
        self.calls.append(("list_objects", bucket, prefix, marker, str(max_keys)))
        self._maybe_fail("list_objects")
        keys = sorted(
            key
            for key in self.objects.get(bucket, {})
            if key.startswith(prefix) and key > marker
        )
        page = keys[:max_keys]
        entries = [
            ObjectEntry(
                key=key,
                size=len(self.objects[bucket][key][0]),
                last_modified=self.objects[bucket][key][1],
            )
            for key in page
        ]
        return ObjectPage(entries=entries, is_truncated=len(keys) > max_keys)

    async def delete_object(self, bucket: str, key: str) -> None:
        self.calls.append(("delete_object", bucket, key))
        self._maybe_fail("delete_object")
        self._lookup(bucket, key)
        del self.objects[bucket][key]

    async def head_object(self, bucket: str, key: str):
        self.calls.append(("head_object", bucket, key))
        self._maybe_fail("head_object")
        data, modified, storage_class = self._lookup(bucket, key)
        return {
            "Content-Length": str(len(data)),
            "Last-Modified": format_datetime(modified, usegmt=True),
            "ETag": '"%s"' % md5(data).hexdigest(),
            "x-oss-storage-class": storage_class,
            "x-oss-meta-tag": ["first", "second"],
        }

    async def cleanup(self) -> None:
        self.closed = True


class MemoryClientFactory:
    """Client factory that keeps every client it builds, by endpoint."""

    def __init__(self, failing: Optional[List[str]] = None):
        self.failing = set(failing or [])
        self.created: Dict[str, InMemoryObjectClient] = {}

    def __call__(self, config: BackendConfig, backend_type: Optional[str] = None) -> InMemoryObjectClient:
        client = InMemoryObjectClient(config, fail_connect=config.endpoint_id in self.failing)
        self.created[config.endpoint_id] = client
        return client


def declaration(endpoint: str, **overrides):
    """Complete backend declaration in the JSON field naming."""
    entry = {"endpoint": endpoint, "accessKeyID": "A", "accessKeySecret": "S"}
    entry.update(overrides)
    return entry
