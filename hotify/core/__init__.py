"""Core functionality for talking to a hotify server."""

from .client import SignedApiClient
from .config_manager import ConfigManager
from .exceptions import DecodeFailure, HotifyError, TransportFailure, UnexpectedStatus
from .store import SyncedStore

__all__ = [
    "SignedApiClient", "SyncedStore", "ConfigManager",
    "HotifyError", "TransportFailure", "UnexpectedStatus", "DecodeFailure",
]
