"""
Registry of authenticated backend clients, keyed by endpoint id.

Built once by `initialize` and read-only afterwards.
"""
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from filegate.backends.base import ObjectClient
from filegate.backends.factory import create_object_client
from filegate.errors import BackendUnavailable, FileGateError, InvalidConfig
from filegate.models import BackendConfig, BackendDeclarations, parse_backend_configs
from filegate.selector import select_client

logger = structlog.get_logger()

ClientFactory = Callable[[BackendConfig, Optional[str]], ObjectClient]


def validate_backend_config(config: BackendConfig) -> bool:
    """Whether a declaration carries a complete identity (endpoint, key id, secret)."""
    for value in (config.endpoint_id, config.access_key_id, config.access_key_secret):
        if not value or not value.strip():
            return False
    return True


class ClientRegistry:
    """Endpoint id -> ObjectClient, plus the declaration each was built from."""

    def __init__(
        self,
        backend_type: Optional[str] = "aws",
        client_factory: Optional[ClientFactory] = None,
    ):
        """
        Args:
            backend_type: Backend kind for declarations without a `type`
            client_factory: Builds an unconnected client from a declaration;
                defaults to the backend factory
        """
        self.backend_type = backend_type
        self._client_factory = client_factory or create_object_client
        self._clients: Dict[str, ObjectClient] = {}
        self._configs: Dict[str, BackendConfig] = {}

    @property
    def initialized(self) -> bool:
        return bool(self._clients)

    @property
    def endpoints(self) -> List[str]:
        return list(self._clients)

    @property
    def clients(self) -> Mapping[str, ObjectClient]:
        return dict(self._clients)

    async def initialize(self, declarations: BackendDeclarations) -> None:
        """
        Validate every declaration, then build and connect its client.

        Aborts on the first failure; clients connected so far are cleaned up
        and the registry stays empty.

        Raises:
            InvalidConfig: Malformed list, incomplete or duplicate declaration
            BackendUnavailable: A client could not be built or connected
        """
        if self.initialized:
            raise InvalidConfig("client registry is already initialized")

        configs = parse_backend_configs(declarations)

        clients: Dict[str, ObjectClient] = {}
        registered: Dict[str, BackendConfig] = {}
        try:
            for config in configs:
                if not validate_backend_config(config):
                    raise InvalidConfig(
                        f"backend[{config.endpoint_id}] requires endpoint, accessKeyID and accessKeySecret"
                    )
                if config.endpoint_id in registered:
                    raise InvalidConfig(f"backend[{config.endpoint_id}] is declared more than once")

                try:
                    client = self._client_factory(config, self.backend_type)
                    await client.connect()
                except FileGateError:
                    raise
                except Exception as e:
                    raise BackendUnavailable(config.endpoint_id, str(e)) from e

                clients[config.endpoint_id] = client
                registered[config.endpoint_id] = config
                logger.info(
                    "Backend registered",
                    endpoint=config.endpoint_id,
                    type=client.backend_type,
                    region=config.region,
                )
        except FileGateError as e:
            logger.error("Client registry initialization failed", error=str(e))
            for client in clients.values():
                await client.cleanup()
            raise

        self._clients = clients
        self._configs = registered

    def select(self, metadata: Optional[Mapping[str, str]] = None) -> ObjectClient:
        """Resolve the client for one call; see `select_client`."""
        return select_client(self._clients, metadata)

    def get_config(self, endpoint: str) -> Optional[BackendConfig]:
        return self._configs.get(endpoint)

    def describe(self) -> List[Dict[str, Any]]:
        """Registered declarations with secrets masked."""
        return [config.masked() for config in self._configs.values()]

    async def get_status(self) -> Dict[str, Dict[str, Any]]:
        return {endpoint: await client.get_status() for endpoint, client in self._clients.items()}

    async def cleanup(self) -> None:
        """Release every client; the registry is empty afterwards."""
        clients, self._clients, self._configs = self._clients, {}, {}
        for client in clients.values():
            await client.cleanup()

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, endpoint: object) -> bool:
        return endpoint in self._clients

    def __repr__(self) -> str:
        return f"<ClientRegistry endpoints={self.endpoints}>"
