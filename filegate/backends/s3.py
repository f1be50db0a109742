"""
S3-compatible backend client.

Supports AWS S3, MinIO, and other S3-compatible object stores.
"""
from contextlib import AsyncExitStack
from datetime import datetime
from typing import Any, Dict, List, Optional

import aioboto3
import structlog
from botocore.exceptions import ClientError

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

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
MISSING_BUCKET_CODE = "NoSuchBucket"
USER_METADATA_PREFIX = "x-amz-meta-"

# OSS-style hint -> S3 StorageClass
STORAGE_CLASSES = {
    "standard": "STANDARD",
    "ia": "STANDARD_IA",
    "archive": "GLACIER",
    "coldarchive": "DEEP_ARCHIVE",
}


def s3_storage_class(hint: Optional[str]) -> str:
    """Map a storage-class hint onto an S3 StorageClass name."""
    if not hint:
        return STORAGE_CLASSES["standard"]
    return STORAGE_CLASSES.get(hint.lower(), hint.upper())


class S3ObjectReader(ObjectReader):
    """Wraps the StreamingBody of a GetObject response."""

    def __init__(self, body: Any):
        self._body = body

    async def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            return await self._body.read()
        return await self._body.read(size)

    async def close(self) -> None:
        self._body.close()


class S3ObjectClient(ObjectClient):
    """S3-compatible backend client."""

    backend_type = "s3"

    def __init__(self, config: BackendConfig):
        """
        Initialize S3 client.

        Args:
            config: Declaration with:
                - endpoint: Endpoint id; a value with an http(s):// scheme is
                  also used as endpoint_url for MinIO/compatible stores
                - region: AWS region (optional)
                - accessKeyID / accessKeySecret: static credentials
        """
        super().__init__(config)
        self.region = config.region or None
        self.endpoint_url = self.endpoint if self.endpoint.startswith(("http://", "https://")) else None

        self._client = None
        self._exit_stack: Optional[AsyncExitStack] = None

    async def connect(self) -> None:
        """Open one S3 client for the lifetime of the registry."""
        session = aioboto3.Session(
            aws_access_key_id=self.config.access_key_id,
            aws_secret_access_key=self.config.access_key_secret,
            region_name=self.region,
        )

        client_kwargs: Dict[str, Any] = {}
        if self.endpoint_url:
            client_kwargs["endpoint_url"] = self.endpoint_url

        stack = AsyncExitStack()
        self._client = await stack.enter_async_context(session.client("s3", **client_kwargs))
        self._exit_stack = stack

    @property
    def client(self) -> Any:
        if self._client is None:
            raise RuntimeError(f"S3 client for endpoint {self.endpoint} is not connected")
        return self._client

    async def put_object(
        self, bucket: str, key: str, data: bytes, storage_class: str = DEFAULT_STORAGE_CLASS
    ) -> None:
        await self.client.put_object(
            Bucket=bucket,
            Key=key,
            Body=data,
            StorageClass=s3_storage_class(storage_class),
        )

    async def get_object(self, bucket: str, key: str) -> ObjectReader:
        response = await self.client.get_object(Bucket=bucket, Key=key)
        return S3ObjectReader(response["Body"])

    async def list_objects(
        self, bucket: str, prefix: str, marker: str, max_keys: int
    ) -> ObjectPage:
        params: Dict[str, Any] = {"Bucket": bucket, "Prefix": prefix, "MaxKeys": max_keys}
        if marker:
            params["Marker"] = marker

        response = await self.client.list_objects(**params)

        entries: List[ObjectEntry] = [
            ObjectEntry(
                key=obj["Key"],
                size=obj.get("Size", 0),
                last_modified=obj.get("LastModified"),
            )
            for obj in response.get("Contents", [])
        ]
        return ObjectPage(entries=entries, is_truncated=bool(response.get("IsTruncated", False)))

    async def delete_object(self, bucket: str, key: str) -> None:
        await self.client.delete_object(Bucket=bucket, Key=key)

    async def head_object(self, bucket: str, key: str) -> Dict[str, HeaderValue]:
        response = await self.client.head_object(Bucket=bucket, Key=key)

        last_modified = response.get("LastModified")
        if isinstance(last_modified, datetime):
            last_modified = last_modified.isoformat()

        headers: Dict[str, List[str]] = {
            "Content-Length": [str(response.get("ContentLength", 0))],
            "Last-Modified": [last_modified or ""],
        }
        if response.get("ETag"):
            headers["ETag"] = [response["ETag"]]
        if response.get("ContentType"):
            headers["Content-Type"] = [response["ContentType"]]
        # User metadata keeps its wire name so it never shadows a system header
        for name, value in (response.get("Metadata") or {}).items():
            headers.setdefault(USER_METADATA_PREFIX + name, []).append(value)
        return headers

    def is_not_found(self, exc: BaseException) -> bool:
        if not isinstance(exc, ClientError):
            return False
        code = str(exc.response.get("Error", {}).get("Code", ""))
        if code == MISSING_BUCKET_CODE:
            return False
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        return code in NOT_FOUND_CODES or status == 404

    async def get_status(self) -> Dict[str, Any]:
        """Get client status."""
        return {
            "endpoint": self.endpoint,
            "type": self.backend_type,
            "region": self.region,
            "endpoint_url": self.endpoint_url,
            "connected": self._client is not None,
        }

    async def cleanup(self) -> None:
        """Close the S3 client."""
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            logger.debug("S3 client closed", endpoint=self.endpoint)
        self._exit_stack = None
        self._client = None
