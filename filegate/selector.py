"""
Client selection for a single call.
"""
from typing import Mapping, Optional

from filegate.backends.base import ObjectClient
from filegate.errors import AmbiguousEndpoint, UnknownEndpoint

ENDPOINT_KEY = "endpoint"


def endpoint_hint(metadata: Optional[Mapping[str, str]]) -> str:
    """Endpoint requested by the caller, "" when none."""
    if not metadata:
        return ""
    return (metadata.get(ENDPOINT_KEY) or "").strip()


def select_client(
    clients: Mapping[str, ObjectClient],
    metadata: Optional[Mapping[str, str]] = None,
) -> ObjectClient:
    """
    Pick the client that serves a call.

    An explicit endpoint hint must name a registered endpoint. Without a
    hint, a registry holding exactly one client uses it.

    Raises:
        UnknownEndpoint: Hint names an endpoint that is not registered
        AmbiguousEndpoint: No hint and not exactly one registered client
    """
    hint = endpoint_hint(metadata)
    if hint:
        client = clients.get(hint)
        if client is None:
            raise UnknownEndpoint(hint)
        return client

    if len(clients) == 1:
        return next(iter(clients.values()))

    raise AmbiguousEndpoint(
        f"must specify endpoint when multiple are registered "
        f"(registered: {len(clients)})"
    )
