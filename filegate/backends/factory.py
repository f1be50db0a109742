"""
Factory for creating backend clients.
"""
from typing import Optional

from filegate.backends.base import ObjectClient
from filegate.errors import InvalidConfig
from filegate.models import BackendConfig

AWS_TYPES = ("aws", "s3", "minio")
ALICLOUD_TYPES = ("alicloud", "aliyun", "oss")


def create_object_client(config: BackendConfig, backend_type: Optional[str] = None) -> ObjectClient:
    """
    Create a backend client from a declaration.

    Args:
        config: Validated backend declaration
        backend_type: Backend kind used when the declaration has no `type`

    Returns:
        Unconnected ObjectClient instance

    Raises:
        InvalidConfig: If backend type is missing or unknown
    """
    kind = (config.type or backend_type or "").lower()

    if not kind:
        raise InvalidConfig(f"backend[{config.endpoint_id}] declares no type")

    if kind in AWS_TYPES:
        from filegate.backends.s3 import S3ObjectClient
        return S3ObjectClient(config)

    elif kind in ALICLOUD_TYPES:
        from filegate.backends.alicloud import AliCloudObjectClient
        return AliCloudObjectClient(config)

    else:
        raise InvalidConfig(f"Unknown storage backend type: {kind}")
