"""
Configuration management for the tendering engine.

Handles loading and accessing:
- Business configuration (config.yaml): scoring, tendering, notifications,
  carrier master snapshot and carrier pools
- Environment variables
"""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tendering.data.models.carrier import CarrierPool, CarrierProfile


class ScoringConfig(BaseModel):
    """Normalization constants for bid scoring."""

    cost_slack_factor: float = Field(1.5, gt=0)
    reference_max_transit_days: float = Field(7.0, gt=0)
    rating_scale: float = Field(5.0, gt=0)
    on_time_scale: float = Field(100.0, gt=0)
    threshold_partial_band: float = Field(0.0, ge=0, le=1)


class TenderingConfig(BaseModel):
    """Lifecycle timing."""

    default_response_window_minutes: int = Field(240, gt=0)
    max_decision_attempts: int = Field(3, ge=1)
    scheduler_poll_seconds: float = Field(1.0, gt=0)


class NotificationConfig(BaseModel):
    """Outbound event delivery."""

    max_attempts: int = Field(5, ge=1)
    backoff_base_seconds: float = Field(0.5, ge=0)
    backoff_max_seconds: float = Field(30.0, ge=0)
    workers: int = Field(4, ge=1)


class EnvironmentSettings(BaseSettings):
    """Environment variables configuration."""

    config_dir: Optional[Path] = Field(None, alias="TENDERING_CONFIG_DIR")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(True, alias="LOG_JSON")
    award_webhook_url: Optional[str] = Field(None, alias="AWARD_WEBHOOK_URL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class ConfigManager:
    """
    Central configuration manager for the tendering engine.

    Loads and provides access to:
    - Business configuration from config/config.yaml
    - Environment variables from .env
    """

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_dir: Optional path to config directory. Defaults to
                TENDERING_CONFIG_DIR, then project root/config.
        """
        self._env_settings: Optional[EnvironmentSettings] = None
        if config_dir is None:
            config_dir = self.env.config_dir
        if config_dir is None:
            project_root = Path(__file__).parent.parent.parent
            config_dir = project_root / "config"

        self.config_dir = Path(config_dir)
        self._business_config: Optional[dict[str, Any]] = None

    @property
    def business_config(self) -> dict[str, Any]:
        """Load and return business configuration from config.yaml."""
        if self._business_config is None:
            config_path = self.config_dir / "config.yaml"
            with open(config_path, "r") as f:
                self._business_config = yaml.safe_load(f) or {}
        return self._business_config

    @property
    def env(self) -> EnvironmentSettings:
        """Load and return environment settings."""
        if self._env_settings is None:
            self._env_settings = EnvironmentSettings()
        return self._env_settings

    def get_scoring_config(self) -> ScoringConfig:
        """Get scoring normalization constants."""
        return ScoringConfig(**self.business_config.get("scoring", {}))

    def get_tendering_config(self) -> TenderingConfig:
        """Get lifecycle timing settings."""
        return TenderingConfig(**self.business_config.get("tendering", {}))

    def get_notification_config(self) -> NotificationConfig:
        """Get outbound delivery settings."""
        return NotificationConfig(**self.business_config.get("notifications", {}))

    def get_carrier_profiles(self) -> dict[str, CarrierProfile]:
        """
        Get the carrier master snapshot keyed by carrier id.

        Raises:
            ValueError: If a carrier id appears twice
        """
        profiles: dict[str, CarrierProfile] = {}
        for entry in self.business_config.get("carriers", []):
            profile = CarrierProfile(**entry)
            if profile.carrier_id in profiles:
                raise ValueError(f"Duplicate carrier id in config: {profile.carrier_id}")
            profiles[profile.carrier_id] = profile
        return profiles

    def get_carrier_pools(self) -> list[CarrierPool]:
        """Get all configured carrier pools."""
        return [CarrierPool(**entry) for entry in self.business_config.get("carrier_pools", [])]


# Global config instance
_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """
    Get the global configuration manager instance.

    Returns:
        ConfigManager singleton instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def reset_config() -> None:
    """Drop the global instance so the next ``get_config()`` reloads."""
    global _config_manager
    _config_manager = None
