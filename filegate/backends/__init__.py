"""
Backend clients for the object-storage facade.

Supports AWS S3 (and S3-compatible stores) and AliCloud OSS.
"""
from filegate.backends.base import ObjectClient, ObjectEntry, ObjectPage, ObjectReader
from filegate.backends.factory import create_object_client

__all__ = ["ObjectClient", "ObjectEntry", "ObjectPage", "ObjectReader", "create_object_client"]
