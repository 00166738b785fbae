"""
Configuration management for Custodia

Loads settings from:
1. config/config.yaml (optional)
2. Environment variables prefixed with CUSTODIA_ (and .env)
3. Default values
"""

from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Load environment variables
load_dotenv()


class Config(BaseSettings):
    """Custodia configuration settings"""

    model_config = SettingsConfigDict(
        env_prefix="CUSTODIA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Ledger ---
    admin_id: str = Field(
        default="admin",
        min_length=1,
        description="Administrator identity fixed when the ledger is first created",
    )
    state_path: Optional[Path] = Field(
        default=None,
        description="JSON snapshot file; in-memory only when unset",
    )
    event_history_size: int = Field(default=1000, ge=1)

    # --- API ---
    api_key: str = Field(default="")
    demo_mode: bool = False
    cors_origins: str = "http://localhost:3000"  # Comma-separated string
    rate_limit_per_minute: int = Field(default=60, ge=1)

    # --- Logging ---
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @classmethod
    def from_yaml(cls, yaml_path: str | Path = "config/config.yaml") -> "Config":
        """Load configuration from YAML file; environment variables still apply."""
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            return cls()

        with open(yaml_path) as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global configuration instance"""
    global _config
    if _config is None:
        _config = Config.from_yaml()
    return _config


def reload_config(yaml_path: Optional[str | Path] = None) -> Config:
    """Reload configuration from file"""
    global _config
    _config = Config.from_yaml(yaml_path) if yaml_path else Config.from_yaml()
    return _config
