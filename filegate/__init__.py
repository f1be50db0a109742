"""
filegate: one object-storage interface over several cloud backends.

Paths are "<bucket>/<key>"; calls are routed to a registered endpoint by
the "endpoint" call-metadata hint, or to the only registered endpoint.
"""
from filegate.errors import (
    AmbiguousEndpoint,
    BackendError,
    BackendUnavailable,
    FileGateError,
    InvalidAddress,
    InvalidConfig,
    NotFound,
    UnknownEndpoint,
    WriteFailed,
)
from filegate.models import BackendConfig, FileInfo, ListingCursor, ListResult, ObjectMetadata
from filegate.registry import ClientRegistry
from filegate.service import FileService
from filegate.stream import ObjectStream

__version__ = "0.1.0"

__all__ = [
    "AmbiguousEndpoint",
    "BackendConfig",
    "BackendError",
    "BackendUnavailable",
    "ClientRegistry",
    "FileGateError",
    "FileInfo",
    "FileService",
    "InvalidAddress",
    "InvalidConfig",
    "ListResult",
    "ListingCursor",
    "NotFound",
    "ObjectMetadata",
    "ObjectStream",
    "UnknownEndpoint",
    "WriteFailed",
]
