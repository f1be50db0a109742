"""
Uniform put/get/list/delete/stat over the registered backends.

Each operation parses the path, selects one client and makes exactly one
backend call, whose result or error is normalized before returning.
"""
import inspect
from typing import Any, AsyncIterable, Awaitable, Callable, Iterable, Mapping, Optional, TypeVar, Union

import structlog

from filegate.address import parse_object_address, parse_prefix_address
from filegate.backends.base import ObjectClient
from filegate.config import Settings, get_settings, load_backend_configs
from filegate.errors import FileGateError, NotFound, WriteFailed
from filegate.logger import setup_logging
from filegate.models import BackendDeclarations, ListResult, ObjectMetadata
from filegate.normalize import build_list_result, metadata_from_headers, translate_error
from filegate.registry import ClientRegistry
from filegate.stream import ObjectStream

logger = structlog.get_logger()

STORAGE_TYPE_KEY = "storageType"

T = TypeVar("T")
CallMetadata = Optional[Mapping[str, str]]
PutData = Union[bytes, bytearray, str, Any, Iterable[bytes], AsyncIterable[bytes]]


def _as_bytes(chunk: Any) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk)


async def read_payload(data: PutData) -> bytes:
    """
    Collect a put payload into bytes.

    Accepts bytes, str, a file-like object (sync or async read()), or a sync
    or async iterable of chunks.
    """
    if isinstance(data, (bytes, bytearray, memoryview, str)):
        return _as_bytes(data)

    if hasattr(data, "read"):
        content = data.read()
        if inspect.isawaitable(content):
            content = await content
        return _as_bytes(content or b"")

    chunks = []
    if hasattr(data, "__aiter__"):
        async for chunk in data:
            chunks.append(_as_bytes(chunk))
    else:
        for chunk in data:
            chunks.append(_as_bytes(chunk))
    return b"".join(chunks)


class FileService:
    """Storage facade over a ClientRegistry."""

    def __init__(self, registry: Optional[ClientRegistry] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        if registry is None:
            registry = ClientRegistry(backend_type=self.settings.DEFAULT_BACKEND)
        self.registry = registry

    @classmethod
    async def from_settings(cls, settings: Optional[Settings] = None) -> "FileService":
        """Configure logging, then build a service from configured declarations and initialize it."""
        settings = settings or get_settings()
        setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
        service = cls(settings=settings)
        await service.init(load_backend_configs(settings))
        return service

    async def init(self, declarations: BackendDeclarations) -> None:
        """Register and connect the declared backends."""
        await self.registry.initialize(declarations)
        logger.info("File service initialized", endpoints=self.registry.endpoints)

    async def _invoke(
        self,
        operation: str,
        path: str,
        client: ObjectClient,
        call: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            return await call()
        except Exception as e:
            error = translate_error(e, operation, path, client)
            if isinstance(error, NotFound):
                logger.debug("Object not found", operation=operation, path=path, endpoint=client.endpoint)
            else:
                logger.warning(
                    "Backend call failed",
                    operation=operation,
                    path=path,
                    endpoint=client.endpoint,
                    error=str(e),
                )
            if error is e:
                raise
            raise error from e

    async def put(self, path: str, data: PutData, metadata: CallMetadata = None) -> None:
        """
        Write `data` to "<bucket>/<key>".

        Raises:
            InvalidAddress, AmbiguousEndpoint, UnknownEndpoint: before any backend call
            WriteFailed: reading `data` failed; nothing was sent
            BackendError: the backend rejected the write
        """
        bucket, key = parse_object_address(path)
        client = self.registry.select(metadata)
        storage_class = (metadata or {}).get(STORAGE_TYPE_KEY) or self.settings.DEFAULT_STORAGE_CLASS

        try:
            payload = await read_payload(data)
        except FileGateError:
            raise
        except Exception as e:
            raise WriteFailed("put", path, str(e)) from e

        await self._invoke(
            "put", path, client,
            lambda: client.put_object(bucket, key, payload, storage_class),
        )
        logger.debug("Object written", path=path, endpoint=client.endpoint, size=len(payload))

    async def get(self, path: str, metadata: CallMetadata = None) -> ObjectStream:
        """
        Open "<bucket>/<key>" for reading.

        Returns:
            ObjectStream owned by the caller, who must close it

        Raises:
            NotFound: the object does not exist
        """
        bucket, key = parse_object_address(path)
        client = self.registry.select(metadata)
        reader = await self._invoke("get", path, client, lambda: client.get_object(bucket, key))
        return ObjectStream(reader, path, chunk_size=self.settings.READ_CHUNK_SIZE)

    async def list(
        self,
        path: str,
        marker: str = "",
        page_size: int = 0,
        metadata: CallMetadata = None,
    ) -> ListResult:
        """
        List one page of keys under "<bucket>/<prefix>".

        Args:
            path: Directory path; "bucket/" lists the whole bucket
            marker: Marker from the previous page, "" for the first page
            page_size: Maximum entries; <= 0 uses DEFAULT_PAGE_SIZE

        Returns:
            ListResult whose marker continues the listing while is_truncated
        """
        bucket, prefix = parse_prefix_address(path)
        client = self.registry.select(metadata)

        if page_size <= 0:
            page_size = self.settings.DEFAULT_PAGE_SIZE
        page_size = min(page_size, self.settings.MAX_PAGE_SIZE)

        page = await self._invoke(
            "list", path, client,
            lambda: client.list_objects(bucket, prefix, marker or "", page_size),
        )
        return build_list_result(page, page_size)

    async def delete(self, path: str, metadata: CallMetadata = None) -> None:
        """Delete "<bucket>/<key>". Deleting a missing object succeeds."""
        bucket, key = parse_object_address(path)
        client = self.registry.select(metadata)
        try:
            await self._invoke("del", path, client, lambda: client.delete_object(bucket, key))
        except NotFound:
            pass

    async def stat(self, path: str, metadata: CallMetadata = None) -> ObjectMetadata:
        """
        Fetch size, last-modified time and headers of "<bucket>/<key>".

        Raises:
            NotFound: the object does not exist
            BackendError: any other backend failure
        """
        bucket, key = parse_object_address(path)
        client = self.registry.select(metadata)
        headers = await self._invoke("stat", path, client, lambda: client.head_object(bucket, key))
        return metadata_from_headers(headers)

    async def get_status(self):
        return {
            "endpoints": self.registry.describe(),
            "clients": await self.registry.get_status(),
        }

    async def cleanup(self) -> None:
        await self.registry.cleanup()
