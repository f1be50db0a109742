"""
AliCloud OSS backend client.

oss2 is a blocking SDK; every call is dispatched with asyncio.to_thread.
"""
import asyncio
from typing import Any, Dict, List

import oss2
import structlog

from filegate.backends.base import (
    DEFAULT_STORAGE_CLASS,
    HeaderValue,
    ObjectClient,
    ObjectEntry,
    ObjectPage,
    ObjectReader,
)
from filegate.models import BackendConfig

logger = structlog.get_logger()

STORAGE_CLASS_HEADER = "x-oss-storage-class"


class OSSObjectReader(ObjectReader):
    """Wraps an oss2 GetObjectResult."""

    def __init__(self, result: Any):
        self._result = result

    async def read(self, size: int = -1) -> bytes:
        amt = None if size is None or size < 0 else size
        return await asyncio.to_thread(self._result.read, amt)

    async def close(self) -> None:
        await asyncio.to_thread(self._result.close)


class AliCloudObjectClient(ObjectClient):
    """AliCloud OSS backend client."""

    backend_type = "alicloud"

    def __init__(self, config: BackendConfig):
        """
        Initialize OSS client.

        Args:
            config: Declaration with:
                - endpoint: OSS endpoint, e.g. oss-cn-hangzhou.aliyuncs.com
                - accessKeyID / accessKeySecret: static credentials
        """
        super().__init__(config)
        self._auth = None

    async def connect(self) -> None:
        self._auth = oss2.Auth(self.config.access_key_id, self.config.access_key_secret)
        logger.debug("OSS client ready", endpoint=self.endpoint)

    def _bucket(self, name: str) -> Any:
        if self._auth is None:
            raise RuntimeError(f"OSS client for endpoint {self.endpoint} is not connected")
        return oss2.Bucket(self._auth, self.endpoint, name)

    async def put_object(
        self, bucket: str, key: str, data: bytes, storage_class: str = DEFAULT_STORAGE_CLASS
    ) -> None:
        headers = {STORAGE_CLASS_HEADER: storage_class or DEFAULT_STORAGE_CLASS}
        await asyncio.to_thread(self._bucket(bucket).put_object, key, data, headers=headers)

    async def get_object(self, bucket: str, key: str) -> ObjectReader:
        result = await asyncio.to_thread(self._bucket(bucket).get_object, key)
        return OSSObjectReader(result)

    async def list_objects(
        self, bucket: str, prefix: str, marker: str, max_keys: int
    ) -> ObjectPage:
        result = await asyncio.to_thread(
            self._bucket(bucket).list_objects_v2,
            prefix=prefix,
            start_after=marker,
            max_keys=max_keys,
        )
        entries: List[ObjectEntry] = [
            ObjectEntry(key=obj.key, size=obj.size, last_modified=obj.last_modified)
            for obj in result.object_list
        ]
        return ObjectPage(entries=entries, is_truncated=bool(result.is_truncated))

    async def delete_object(self, bucket: str, key: str) -> None:
        await asyncio.to_thread(self._bucket(bucket).delete_object, key)

    async def head_object(self, bucket: str, key: str) -> Dict[str, HeaderValue]:
        result = await asyncio.to_thread(self._bucket(bucket).head_object, key)
        return {name: value for name, value in result.headers.items()}

    def is_not_found(self, exc: BaseException) -> bool:
        if isinstance(exc, oss2.exceptions.NoSuchBucket):
            return False
        if isinstance(exc, oss2.exceptions.NotFound):
            return True
        return isinstance(exc, oss2.exceptions.ServerError) and exc.status == 404

    async def get_status(self) -> Dict[str, Any]:
        """Get client status."""
        return {
            "endpoint": self.endpoint,
            "type": self.backend_type,
            "region": self.config.region,
            "connected": self._auth is not None,
        }

    async def cleanup(self) -> None:
        self._auth = None
