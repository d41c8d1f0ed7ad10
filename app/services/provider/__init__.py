"""Generative provider access: immutable config plus the resilient call gateway."""
from .config import ProviderConfig
from .gateway import ProviderGateway, build_client

__all__ = [
    "ProviderConfig",
    "ProviderGateway",
    "build_client",
]
