"""Connection backends that provision and open graph collections."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Coroutine, Protocol, runtime_checkable
from urllib.parse import urlparse

import aiohttp
from azure.core.exceptions import ServiceRequestError
from azure.cosmos import PartitionKey
from azure.cosmos.aio import CosmosClient
from gremlin_python.driver import client, serializer

from .config import DEFAULT_PARTITION_KEY
from .models import ConnectionConfig

LOG = logging.getLogger(__name__)

EMULATOR_GREMLIN_PORT = 8901

_NETWORK_ERRORS: tuple[type[BaseException], ...] = (
    ServiceRequestError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
    OSError,
)


class ConnectionBackendError(RuntimeError):
    """Raised when a backend cannot provision or open a collection."""


class ConnectionNetworkError(ConnectionBackendError):
    """Raised when the service endpoint could not be reached at all."""

    def __init__(self, message: str, *, reason: str = "") -> None:
        super().__init__(message)
        self.reason = reason


class ActiveConnection:
    """Live handle bound to one database + collection."""

    def __init__(
        self,
        config: ConnectionConfig,
        collection_id: str,
        *,
        read_endpoint: str | None = None,
        client: Any = None,
    ) -> None:
        self.config = config
        self.collection_id = collection_id
        self.read_endpoint = read_endpoint or config.endpoint
        self.client = client
        self._closed = False

    @property
    def database(self) -> str:
        return self.config.database

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the underlying client; the handle is unusable afterwards."""

        if self._closed:
            return
        self._closed = True
        if self.client is not None:
            try:
                self.client.close()
            except Exception:  # pragma: no cover - best effort cleanup
                LOG.warning("Failed to close gremlin client", exc_info=True)


@runtime_checkable
class ConnectionBackend(Protocol):
    """Protocol implemented by connection backends."""

    def open(
        self,
        config: ConnectionConfig,
        *,
        offer_throughput: int | None = None,
    ) -> ActiveConnection:
        """Ensure database/collection exist and return a live handle.

        `offer_throughput` is only used when the collection is created;
        `config.throughput`, when set, overwrites the provisioned throughput
        of the collection on every successful open.
        """


def gremlin_endpoint_for(config: ConnectionConfig) -> str:
    """Gremlin websocket endpoint for an account endpoint."""

    if config.gremlin_endpoint:
        return config.gremlin_endpoint
    host = urlparse(config.endpoint).hostname or "localhost"
    if host in ("localhost", "127.0.0.1"):
        return f"ws://{host}:{EMULATOR_GREMLIN_PORT}/"
    account = host.split(".", 1)[0]
    return f"wss://{account}.gremlin.cosmos.azure.com:443/"


def _read_endpoint(cosmos: Any) -> str | None:
    # Regional endpoint resolved by endpoint discovery, if any.
    connection = getattr(cosmos, "client_connection", None)
    endpoint = getattr(connection, "ReadEndpoint", None)
    return endpoint if isinstance(endpoint, str) and endpoint else None


class CosmosConnectionBackend:
    """Connection backend for the Cosmos DB Gremlin API.

    Provisioning goes through the async Cosmos SDK on a private event loop so
    callers stay synchronous; queries go through a gremlinpython client.
    """

    def __init__(self) -> None:
        self._loop = asyncio.new_event_loop()
        self._loop_thread = threading.Thread(
            target=self._loop.run_forever,
            name="gremlinconsole-cosmos-backend",
            daemon=True,
        )
        self._loop_thread.start()

    def open(
        self,
        config: ConnectionConfig,
        *,
        offer_throughput: int | None = None,
    ) -> ActiveConnection:
        try:
            collection_id, read_endpoint = self._run(self._provision(config, offer_throughput))
        except _NETWORK_ERRORS as exc:
            raise ConnectionNetworkError(
                f"Failed to reach {config.endpoint}: {exc}",
                reason=str(exc),
            ) from exc
        except Exception as exc:
            raise ConnectionBackendError(str(exc)) from exc

        try:
            gremlin = self._create_gremlin_client(config, collection_id)
        except _NETWORK_ERRORS as exc:
            raise ConnectionNetworkError(
                f"Failed to reach {gremlin_endpoint_for(config)}: {exc}",
                reason=str(exc),
            ) from exc
        except Exception as exc:
            raise ConnectionBackendError(str(exc)) from exc
        return ActiveConnection(config, collection_id, read_endpoint=read_endpoint, client=gremlin)

    def shutdown(self) -> None:
        """Stop the background event loop."""

        if not self._loop.is_running():  # pragma: no cover - defensive
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._loop_thread.join(timeout=1)

    def __del__(self) -> None:  # pragma: no cover - best effort cleanup
        try:
            self.shutdown()
        except Exception:
            pass

    def _run(self, coro: Coroutine[Any, Any, tuple[str, str]]) -> tuple[str, str]:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    async def _provision(
        self, config: ConnectionConfig, offer_throughput: int | None
    ) -> tuple[str, str]:
        async with CosmosClient(
            config.endpoint,
            credential=config.auth_key,
            connection_verify=config.verify_tls,
            enable_endpoint_discovery=config.enable_endpoint_discovery,
        ) as cosmos:
            database = await cosmos.create_database_if_not_exists(id=config.database)
            kwargs: dict[str, object] = {}
            if offer_throughput is not None:
                kwargs["offer_throughput"] = offer_throughput
            container = await database.create_container_if_not_exists(
                id=config.collection,
                partition_key=PartitionKey(path=config.partition_key or DEFAULT_PARTITION_KEY),
                **kwargs,
            )
            if config.throughput is not None:
                current = await container.get_throughput()
                LOG.info(
                    "Replacing provisioned throughput",
                    extra={
                        "collection": container.id,
                        "previous": getattr(current, "offer_throughput", None),
                        "target": config.throughput,
                    },
                )
                await container.replace_throughput(config.throughput)
            return container.id, _read_endpoint(cosmos) or config.endpoint

    @staticmethod
    def _create_gremlin_client(config: ConnectionConfig, collection_id: str) -> Any:
        return client.Client(
            gremlin_endpoint_for(config),
            "g",
            username=f"/dbs/{config.database}/colls/{collection_id}",
            password=config.auth_key,
            message_serializer=serializer.GraphSONSerializersV2d0(),
        )


class DemoConnectionBackend:
    """Offline backend that accepts any configuration.

    `failures` queues errors raised by the next `open` calls, in order.
    """

    def __init__(self, failures: list[BaseException] | None = None) -> None:
        self._failures = list(failures or ())
        self.opened: list[ConnectionConfig] = []
        self.created_with: list[int | None] = []

    def open(
        self,
        config: ConnectionConfig,
        *,
        offer_throughput: int | None = None,
    ) -> ActiveConnection:
        if self._failures:
            raise self._failures.pop(0)
        self.opened.append(config)
        self.created_with.append(offer_throughput)
        return ActiveConnection(config, config.collection)

    def shutdown(self) -> None:
        return None


__all__ = [
    "ActiveConnection",
    "ConnectionBackend",
    "ConnectionBackendError",
    "ConnectionNetworkError",
    "CosmosConnectionBackend",
    "DemoConnectionBackend",
    "gremlin_endpoint_for",
]
