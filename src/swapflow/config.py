"""Application configuration using pydantic-settings.

Timing values are in seconds. Tests construct ``Settings`` directly with
zero delays instead of going through the cached accessor.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SWAPFLOW_",
        extra="ignore",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    # ======================
    # Route discovery
    # ======================
    discovery_latency_seconds: float = Field(
        default=1.2, ge=0, description="Simulated network round trip per discovery call"
    )
    debounce_seconds: float = Field(
        default=0.5, ge=0, description="Quiescence window before a quote refresh fires"
    )
    default_slippage_percent: Decimal = Field(
        default=Decimal("0.5"), ge=0, le=50, description="Default slippage tolerance in percent"
    )
    time_jitter_enabled: bool = Field(
        default=False, description="Add bounded random jitter to provider settle times"
    )

    # ======================
    # Execution
    # ======================
    exchange_step_seconds: float = Field(
        default=1.5, ge=0, description="Simulated confirmation wait per EXCHANGE step"
    )
    bridge_step_seconds: float = Field(
        default=3.0, ge=0, description="Simulated finality wait per BRIDGE step"
    )

    # ======================
    # Limit orders
    # ======================
    limit_order_horizon_hours: int = Field(
        default=24, gt=0, description="Limit order expiry horizon in hours"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_safe_dict(self) -> dict:
        """Return settings dict suitable for a health endpoint."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "discovery": {
                "latency_seconds": self.discovery_latency_seconds,
                "debounce_seconds": self.debounce_seconds,
                "default_slippage_percent": str(self.default_slippage_percent),
                "time_jitter": self.time_jitter_enabled,
            },
            "execution": {
                "exchange_step_seconds": self.exchange_step_seconds,
                "bridge_step_seconds": self.bridge_step_seconds,
            },
            "limit_orders": {
                "horizon_hours": self.limit_order_horizon_hours,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
