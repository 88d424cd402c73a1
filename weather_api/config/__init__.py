"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: EnvConfigProvider and the typed config dataclasses
Hidden: Environment parsing and validation

Can be replaced with any other provider implementing ConfigProvider.
"""

from .provider import (
    APIConfig,
    AuthConfig,
    ConfigProvider,
    EnvConfigProvider,
    ReadingsConfig,
    StoreConfig,
)

__all__ = [
    "APIConfig",
    "AuthConfig",
    "ConfigProvider",
    "EnvConfigProvider",
    "ReadingsConfig",
    "StoreConfig",
]
