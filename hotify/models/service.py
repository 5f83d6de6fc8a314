"""Data models for hotify services and server configuration.

The field names used by ``to_dict``/``from_dict`` are the ones the hotify
server puts on the wire (camelCase), the attribute names are Python ones.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..utils.constants import STATUS_LABELS


def _get(data: dict, key: str, kind: type, default: Any = None) -> Any:
    """Read ``key`` from a decoded JSON object and check its type.

    Missing keys and ``null`` fall back to ``default`` (the server's zero
    value) when one is given.

    Raises:
        KeyError: if the key is missing and there is no default
        TypeError: if the value has the wrong type
    """
    value = data.get(key)
    if value is None:
        if default is None:
            raise KeyError(key)
        return default

    # bool is a subclass of int, reject it where a count is expected
    if kind is int and isinstance(value, bool) or not isinstance(value, kind):
        raise TypeError(f"Field '{key}' must be {kind.__name__}, got {type(value).__name__}")
    return value


def _get_object(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise TypeError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


class ServiceStatus(Enum):
    """Enumeration of service states reported by the server."""

    RUNNING = 0
    STOPPED = 1

    @classmethod
    def from_code(cls, code: Any) -> 'ServiceStatus':
        """Convert the server's integer status code to a ServiceStatus.

        Args:
            code: Integer status from the API

        Returns:
            ServiceStatus enum value

        Raises:
            ValueError: if the code is not a known status
        """
        if isinstance(code, bool) or not isinstance(code, int):
            raise ValueError(f"Invalid service status: {code!r}")
        return cls(code)

    @property
    def label(self) -> str:
        return STATUS_LABELS[self.value]


@dataclass(frozen=True)
class ProxyConfig:
    """Routing rule for a service's reverse proxy entry.

    Attributes:
        match: Address or path to match, empty when the service has no proxy
        upstream: Upstream address requests are forwarded to
    """

    match: str = ""
    upstream: str = ""

    def to_dict(self) -> dict:
        return {"match": self.match, "upstream": self.upstream}

    @classmethod
    def from_dict(cls, data: dict) -> 'ProxyConfig':
        data = _get_object(data, "proxy")
        return cls(
            match=_get(data, "match", str, ""),
            upstream=_get(data, "upstream", str, ""),
        )


@dataclass(frozen=True)
class ServiceConfig:
    """Configuration of a service managed by the server.

    Attributes:
        name: Unique service name, also used as the folder name on the server
        repo: Git repository URL
        exec: Command used to run the service
        build: Command used to build the service
        restart: Whether the server restarts the service when it exits
        max_restarts: Maximum number of restarts before giving up
        secret: Webhook secret used to trigger updates of this service
        proxy: Reverse proxy rule
    """

    name: str
    repo: str = ""
    exec: str = ""
    build: str = ""
    restart: bool = False
    max_restarts: int = 0
    secret: str = ""
    proxy: ProxyConfig = field(default_factory=ProxyConfig)

    def __post_init__(self):
        """Validate service configuration after initialization."""
        if not self.name:
            raise ValueError("Service name cannot be empty")

        if self.max_restarts < 0:
            raise ValueError(f"Invalid max_restarts: {self.max_restarts}. Must be non-negative")

    def to_dict(self) -> dict:
        """Convert to the JSON object sent to the server.

        Returns:
            Dictionary representation of the service config
        """
        return {
            "name": self.name,
            "repo": self.repo,
            "exec": self.exec,
            "build": self.build,
            "restart": self.restart,
            "maxRestarts": self.max_restarts,
            "secret": self.secret,
            "proxy": self.proxy.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ServiceConfig':
        """Create ServiceConfig from a decoded JSON object.

        Args:
            data: Dictionary with service configuration

        Returns:
            ServiceConfig instance
        """
        data = _get_object(data, "service config")
        return cls(
            name=_get(data, "name", str),
            repo=_get(data, "repo", str, ""),
            exec=_get(data, "exec", str, ""),
            build=_get(data, "build", str, ""),
            restart=_get(data, "restart", bool, False),
            max_restarts=_get(data, "maxRestarts", int, 0),
            secret=_get(data, "secret", str, ""),
            proxy=ProxyConfig.from_dict(data.get("proxy") or {}),
        )


@dataclass(frozen=True)
class Service:
    """Runtime information about a service.

    Attributes:
        config: Service configuration
        path: Folder the service is checked out and built in on the server
        status: Current service status
        restarts: Number of automatic restarts so far
        logs: Recent output of the service, oldest first
    """

    config: ServiceConfig
    path: str = ""
    status: ServiceStatus = ServiceStatus.STOPPED
    restarts: int = 0
    logs: Tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.config.name

    @classmethod
    def from_dict(cls, data: dict) -> 'Service':
        data = _get_object(data, "service")
        logs = data.get("logs") or []
        if not isinstance(logs, list) or not all(isinstance(line, str) for line in logs):
            raise TypeError("Field 'logs' must be a list of strings")

        return cls(
            config=ServiceConfig.from_dict(_get(data, "config", dict)),
            path=_get(data, "path", str, ""),
            status=ServiceStatus.from_code(_get(data, "status", int, ServiceStatus.RUNNING.value)),
            restarts=_get(data, "restarts", int, 0),
            logs=tuple(logs),
        )


@dataclass(frozen=True)
class Config:
    """Server-wide configuration snapshot.

    Attributes:
        services: Service configurations keyed by service name
        address: Address the management API listens on
        services_path: Folder the server clones and builds services in
        secret: Secret the server verifies API requests with
        load_path: Path of the file the config was loaded from, if any
    """

    services: Dict[str, ServiceConfig] = field(default_factory=dict)
    address: str = ""
    services_path: str = ""
    secret: str = ""
    load_path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        data = _get_object(data, "config")
        raw_services = _get(data, "services", dict, {})

        services = {}
        for key, service_data in raw_services.items():
            service_data = _get_object(service_data, f"service '{key}'")
            # Services declared without a name are named after their key
            if not service_data.get("name"):
                service_data = {**service_data, "name": key}
            services[key] = ServiceConfig.from_dict(service_data)

        return cls(
            services=services,
            address=_get(data, "address", str, ""),
            services_path=_get(data, "servicesPath", str, ""),
            secret=_get(data, "secret", str, ""),
            load_path=_get(data, "loadPath", str, "") or None,
        )
