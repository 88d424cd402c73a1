"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

DEFAULT_DEVICE_NAMES = ["Woodford_Sensor", "Noosa_Sensor", "Yandina_Sensor"]


@dataclass
class StoreConfig:
    """Document store (Redis) configuration."""
    url: str
    password: Optional[str] = None


@dataclass
class APIConfig:
    """API configuration."""
    port: int
    host: str
    debug: bool
    log_level: str
    cors_origins: List[str]


@dataclass
class AuthConfig:
    """Authentication configuration."""
    header_name: str
    bcrypt_rounds: int


@dataclass
class ReadingsConfig:
    """Weather reading query configuration."""
    allowed_device_names: List[str] = field(default_factory=lambda: list(DEFAULT_DEVICE_NAMES))
    precipitation_window_months: int = 5


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_store_config(self) -> StoreConfig:
        """Get document store configuration."""
        ...

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration."""
        ...

    def get_readings_config(self) -> ReadingsConfig:
        """Get weather reading configuration."""
        ...


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _get_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_store_config(self) -> StoreConfig:
        """Get store configuration from environment variables."""
        return StoreConfig(
            url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            # Passed separately to avoid URL encoding issues
            password=os.getenv("REDIS_PASSWORD") or None,
        )

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            port=_get_int("API_PORT", "8080"),
            host=os.getenv("API_HOST", "0.0.0.0"),
            debug=os.getenv("API_DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=_split_list(os.getenv("CORS_ORIGINS", "https://localhost:8080")),
        )

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration from environment variables."""
        rounds = _get_int("BCRYPT_ROUNDS", "12")
        if not 4 <= rounds <= 31:
            raise ValueError(f"BCRYPT_ROUNDS must be between 4 and 31, got {rounds}")

        return AuthConfig(
            header_name=os.getenv("AUTH_HEADER", "X-AUTH-KEY"),
            bcrypt_rounds=rounds,
        )

    def get_readings_config(self) -> ReadingsConfig:
        """Get weather reading configuration from environment variables."""
        devices_env = os.getenv("ALLOWED_DEVICE_NAMES")
        months = _get_int("PRECIPITATION_WINDOW_MONTHS", "5")
        if months < 1:
            raise ValueError(f"PRECIPITATION_WINDOW_MONTHS must be positive, got {months}")

        return ReadingsConfig(
            allowed_device_names=_split_list(devices_env) if devices_env else list(DEFAULT_DEVICE_NAMES),
            precipitation_window_months=months,
        )
