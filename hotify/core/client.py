"""Signed client for the hotify management API.

Every request carries an ``X-Signature-256`` header holding the hex encoded
HMAC-SHA256 of the request body, keyed with the shared API secret. Requests
without a body are signed over the empty string.
"""

import asyncio
import hashlib
import hmac
import inspect
import json
import logging
from typing import Any, Awaitable, Callable, List, Optional, Union

import aiohttp
from yarl import URL

from ..models.service import Config, Service, ServiceConfig
from ..utils.constants import CONTENT_TYPE, DEFAULT_TIMEOUT, SIGNATURE_HEADER, SIGNATURE_PREFIX
from .exceptions import DecodeFailure, TransportFailure, UnexpectedStatus

logger = logging.getLogger(__name__)

UpdateListener = Callable[[], Union[None, Awaitable[None]]]


def serialize_body(body: Any) -> str:
    """Serialize a request body the way it is sent and signed.

    Args:
        body: JSON-compatible payload, or None for bodyless requests

    Returns:
        Compact JSON text, or the empty string when there is no body
    """
    if body is None:
        return ""
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


def sign(secret: str, payload: str) -> str:
    """Compute the ``X-Signature-256`` header value for a payload.

    Args:
        secret: Shared API secret
        payload: Exact request body text (empty string for no body)

    Returns:
        Header value of the form ``sha256=<64 lowercase hex chars>``
    """
    digest = hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def _services_from_json(data: Any) -> List[Service]:
    if not isinstance(data, list):
        raise TypeError(f"Service list must be a JSON array, got {type(data).__name__}")
    return [Service.from_dict(item) for item in data]


class SignedApiClient:
    """Async client for the hotify API.

    ``address`` and ``secret`` are fixed for the lifetime of the client; to
    use a different server or a rotated secret, create a new client.

    Listeners registered with :meth:`subscribe` are called after every
    successful mutating call (start, stop, update, create, delete, restart),
    in registration order and before the call returns. Coroutine listeners
    are awaited. An exception raised by a listener is raised from the
    mutating call even though the server already applied the mutation.
    """

    def __init__(
        self,
        address: str,
        secret: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        on_update: Optional[UpdateListener] = None,
    ):
        """Initialize the client.

        Args:
            address: Base URL of the server, without a trailing slash
            secret: Shared secret used to sign requests
            timeout: Total timeout of one request in seconds
            session: Optional aiohttp session to use; it is not closed by the client
            on_update: Optional listener, same as calling subscribe()
        """
        self._address = address
        self._secret = secret
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None
        self._listeners: List[UpdateListener] = []

        if on_update is not None:
            self.subscribe(on_update)

    @property
    def address(self) -> str:
        return self._address

    @property
    def secret(self) -> str:
        return self._secret

    def subscribe(self, listener: UpdateListener) -> Callable[[], None]:
        """Register a listener called after each successful mutation.

        Args:
            listener: Function or coroutine function taking no arguments

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def close(self):
        """Close the HTTP session if the client opened it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> 'SignedApiClient':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _fetch(self, method: str, path: str, body: Any = None) -> str:
        """Send one signed request and return the response body.

        Raises:
            UnexpectedStatus: the server answered with a non-2xx status
            TransportFailure: no response was received
        """
        payload = serialize_body(body)
        headers = {
            "Content-Type": CONTENT_TYPE,
            SIGNATURE_HEADER: sign(self._secret, payload),
        }
        # Path segments are inserted as given, the URL must not be requoted
        url = URL(f"{self._address}/{path}", encoded=True)

        logger.debug(f"{method} {path}")
        session = self._get_session()

        try:
            async with session.request(
                method,
                url,
                headers=headers,
                data=payload.encode("utf-8") if payload else None,
                timeout=self._timeout,
            ) as response:
                text = await response.text(errors="replace")
                status = response.status
        except asyncio.TimeoutError as e:
            logger.error(f"Timeout during {method} {path}")
            raise TransportFailure(f"Timeout during {method} {path}") from e
        except aiohttp.ClientError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TransportFailure(f"{method} {path} failed: {e}") from e

        if not 200 <= status < 300:
            logger.warning(f"{method} {path} returned {status}")
            raise UnexpectedStatus(status, text)

        return text

    async def _fetch_json(self, method: str, path: str, parse: Callable[[Any], Any]) -> Any:
        text = await self._fetch(method, path)
        try:
            return parse(json.loads(text))
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Could not decode response of {method} {path}: {e}")
            raise DecodeFailure(f"Could not decode response of {method} {path}: {e}") from e

    async def _mutate(self, method: str, path: str, body: Any = None):
        await self._fetch(method, path, body)

        for listener in list(self._listeners):
            result = listener()
            if inspect.isawaitable(result):
                await result

    async def get_config(self) -> Config:
        return await self._fetch_json("GET", "api/config", Config.from_dict)

    async def services(self) -> List[Service]:
        return await self._fetch_json("GET", "api/services", _services_from_json)

    async def service(self, name: str) -> Service:
        return await self._fetch_json("GET", f"api/services/{name}", Service.from_dict)

    async def start_service(self, name: str):
        await self._mutate("GET", f"api/services/{name}/start")

    async def stop_service(self, name: str):
        await self._mutate("GET", f"api/services/{name}/stop")

    async def update_service(self, name: str):
        await self._mutate("GET", f"api/services/{name}/update")

    async def create_service(self, config: ServiceConfig):
        await self._mutate("POST", "api/services", config.to_dict())

    async def delete_service(self, name: str):
        await self._mutate("DELETE", f"api/services/{name}")

    async def restart_service(self, name: str):
        await self._mutate("GET", f"api/services/{name}/restart")
