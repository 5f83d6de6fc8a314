"""Local snapshot of the server's services, kept in sync after mutations."""

import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Tuple, Union

from ..models.service import Config, Service, ServiceConfig
from .client import SignedApiClient

logger = logging.getLogger(__name__)

Snapshot = Tuple[Service, ...]
SnapshotListener = Callable[[Snapshot], Union[None, Awaitable[None]]]


class SyncedStore:
    """Holds the sorted list of services last reported by the server.

    The store subscribes to its client's update listeners, so every
    successful mutation made through the client is followed by a full
    :meth:`refresh`. The snapshot is only ever replaced as a whole.
    """

    def __init__(self, client: SignedApiClient):
        """Initialize the store.

        Args:
            client: API client to read from and write through; not owned by the store
        """
        self._collection: Snapshot = ()
        self._listeners: List[SnapshotListener] = []
        self._client = client
        self._unsubscribe = client.subscribe(self.refresh)

    @property
    def client(self) -> SignedApiClient:
        return self._client

    @property
    def collection(self) -> Snapshot:
        return self._collection

    def current_snapshot(self) -> Snapshot:
        """Get the services from the last successful refresh, sorted by name."""
        return self._collection

    def get(self, name: str) -> Optional[Service]:
        """Get a service from the current snapshot by name.

        Args:
            name: Service name

        Returns:
            Service if present, None otherwise
        """
        for service in self._collection:
            if service.config.name == name:
                return service
        return None

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener called with each new snapshot.

        Args:
            listener: Function or coroutine function taking the new snapshot

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_client(self, client: SignedApiClient):
        """Switch to another client, e.g. after the address or secret changed.

        The previous client is neither closed nor refreshed from again. The
        current snapshot is kept until the next refresh.

        Args:
            client: New API client
        """
        self._unsubscribe()
        self._client = client
        self._unsubscribe = client.subscribe(self.refresh)
        logger.info(f"Store now uses {client.address}")

    async def refresh(self):
        """Fetch all services and replace the snapshot with them.

        Raises:
            HotifyError: if fetching fails; the snapshot is left untouched
        """
        services = await self._client.services()
        collection = tuple(sorted(services, key=lambda s: s.config.name))

        # Single assignment, concurrent refreshes never mix two responses
        self._collection = collection
        logger.debug(f"Loaded {len(collection)} services")

        for listener in list(self._listeners):
            result = listener(collection)
            if inspect.isawaitable(result):
                await result

    async def get_config(self) -> Config:
        return await self._client.get_config()

    async def service(self, name: str) -> Service:
        return await self._client.service(name)

    async def start_service(self, name: str):
        await self._client.start_service(name)

    async def stop_service(self, name: str):
        await self._client.stop_service(name)

    async def update_service(self, name: str):
        await self._client.update_service(name)

    async def create_service(self, config: ServiceConfig):
        await self._client.create_service(config)

    async def delete_service(self, name: str):
        await self._client.delete_service(name)

    async def restart_service(self, name: str):
        await self._client.restart_service(name)
