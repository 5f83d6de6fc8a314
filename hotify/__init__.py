"""Client library and CLI for the hotify service manager."""

from .core import (
    DecodeFailure, HotifyError, SignedApiClient, SyncedStore, TransportFailure, UnexpectedStatus
)
from .models import Config, ProxyConfig, Service, ServiceConfig, ServiceStatus

__version__ = "1.0.0"

__all__ = [
    "SignedApiClient", "SyncedStore",
    "HotifyError", "TransportFailure", "UnexpectedStatus", "DecodeFailure",
    "Config", "ProxyConfig", "Service", "ServiceConfig", "ServiceStatus",
]
