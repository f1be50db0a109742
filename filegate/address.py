"""
Address parsing for "<bucket>/<key...>" paths.
"""
from typing import NamedTuple, Tuple

from filegate.errors import InvalidAddress

SEPARATOR = "/"


class StorageAddress(NamedTuple):
    """Bucket plus key (object operations) or prefix (listing)."""

    bucket: str
    key: str


def _split(path: str) -> Tuple[str, str]:
    if not path:
        raise InvalidAddress("path cannot be empty")

    bucket, sep, rest = path.partition(SEPARATOR)
    if not sep:
        raise InvalidAddress(f"path[{path}] has no bucket separator")
    if not bucket:
        raise InvalidAddress(f"path[{path}] has an empty bucket name")
    return bucket, rest


def get_bucket_name(path: str) -> str:
    """Return the bucket segment of a path."""
    return _split(path)[0]


def get_file_name(path: str) -> str:
    """Return the object key of a path (everything after the bucket)."""
    _, key = _split(path)
    if not key:
        raise InvalidAddress(f"path[{path}] has no object key")
    return key


def get_file_prefix_name(path: str) -> str:
    """
    Return the listing prefix of a path.

    Never fails: a path without a separator, or with nothing after it,
    lists the whole bucket.
    """
    _, sep, rest = (path or "").partition(SEPARATOR)
    return rest if sep else ""


def parse_object_address(path: str) -> StorageAddress:
    """Split an object path into (bucket, key)."""
    return StorageAddress(get_bucket_name(path), get_file_name(path))


def parse_prefix_address(path: str) -> StorageAddress:
    """Split a directory path into (bucket, prefix); "bucket/" lists everything."""
    return StorageAddress(get_bucket_name(path), get_file_prefix_name(path))
