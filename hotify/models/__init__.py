"""Data models for hotify services."""

from .service import Config, ProxyConfig, Service, ServiceConfig, ServiceStatus

__all__ = ["Config", "ProxyConfig", "Service", "ServiceConfig", "ServiceStatus"]
