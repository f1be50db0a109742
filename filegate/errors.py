"""
Error taxonomy shared by every backend.

Configuration and addressing errors are raised before any backend call;
NotFound and BackendError carry the operation and target path of the call
that produced them.
"""
from typing import Optional


class FileGateError(Exception):
    """Base class for all facade errors."""

    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidConfig(FileGateError):
    """Malformed or incomplete backend declaration."""

    code = "invalid_config"


class BackendUnavailable(FileGateError):
    """A declared backend could not be connected at initialization."""

    code = "backend_unavailable"

    def __init__(self, endpoint: str, message: str):
        super().__init__(f"backend[{endpoint}] unavailable, err: {message}")
        self.endpoint = endpoint


class InvalidAddress(FileGateError):
    """Path has no parseable bucket or key."""

    code = "invalid_address"


class AmbiguousEndpoint(FileGateError):
    """No endpoint hint and the registry cannot pick a single default."""

    code = "ambiguous_endpoint"


class UnknownEndpoint(FileGateError):
    """Endpoint hint names a backend that is not registered."""

    code = "unknown_endpoint"

    def __init__(self, endpoint: str):
        super().__init__(f"endpoint[{endpoint}] is not registered")
        self.endpoint = endpoint


class _OperationError(FileGateError):
    def __init__(self, operation: str, path: str, message: str):
        super().__init__(f"{operation} file[{path}] fail, err: {message}")
        self.operation = operation
        self.path = path
        self.reason = message


class NotFound(_OperationError):
    """Object or key absent on the backend."""

    code = "not_found"

    def __init__(self, operation: str, path: str, message: Optional[str] = None):
        super().__init__(operation, path, message or "file not exist")


class BackendError(_OperationError):
    """Any other failure reported by a backend, original message preserved."""

    code = "backend_error"


class WriteFailed(_OperationError):
    """The caller's data stream failed while being transferred."""

    code = "write_failed"
