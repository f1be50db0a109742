"""
Caller-owned read stream returned by FileService.get.
"""
from typing import AsyncIterator

import structlog

from filegate.backends.base import ObjectReader
from filegate.errors import BackendError

logger = structlog.get_logger()

DEFAULT_CHUNK_SIZE = 8192  # 8KB chunks


class ObjectStream:
    """
    Readable object body.

    The caller owns the stream and must close it, either explicitly or with
    `async with`. Iterating yields chunks of `chunk_size` bytes.
    """

    def __init__(self, reader: ObjectReader, path: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._reader = reader
        self.path = path
        self.chunk_size = chunk_size
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self, size: int = -1) -> bytes:
        """Read up to `size` bytes, or everything left when size is -1."""
        if self._closed:
            raise ValueError("I/O operation on closed stream")
        try:
            return await self._reader.read(size)
        except Exception as e:
            raise BackendError("get", self.path, str(e)) from e

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self.read(self.chunk_size)
            if not chunk:
                break
            yield chunk

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.iter_chunks()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._reader.close()

    async def __aenter__(self) -> "ObjectStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<ObjectStream path={self.path} closed={self._closed}>"
