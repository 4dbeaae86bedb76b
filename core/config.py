"""Configuration loader -- reads config.yaml + .env, validates with Pydantic.

Resolves ${ENV_VAR} references in YAML values from environment variables.
Fails fast with clear errors if a value is invalid.
"""

from __future__ import annotations

import logging
import os
import re
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from core.duration import parse_duration
from core.money import Money

logger = logging.getLogger(__name__)

# Default home directory for all state files
DEFAULT_HOME = Path.home() / ".investlearn"

DEFAULT_INSTRUMENTS: dict[str, Decimal] = {
    "ACME": Decimal("120.00"),
    "NOVA": Decimal("42.00"),
    "SPARK": Decimal("8.50"),
    "ORION": Decimal("320.00"),
}


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ${ENV_VAR} references in config values."""
    if isinstance(value, str):
        pattern = re.compile(r"\$\{(\w+)\}")
        def replacer(match: re.Match) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                logger.warning("Environment variable %s not set", var_name)
                return match.group(0)  # leave unresolved
            return env_value
        return pattern.sub(replacer, value)
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# Config models (Pydantic)
# ---------------------------------------------------------------------------

class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8321


class MarketConfig(BaseModel):
    instruments: dict[str, Money] = Field(default_factory=lambda: dict(DEFAULT_INSTRUMENTS))
    history_length: int = Field(default=30, ge=1)
    max_history: int = Field(default=100, ge=1)
    price_floor: Money = Field(default=Decimal("0.10"), gt=0)
    drift_pct: float = Field(default=0.01, ge=0)
    jump_probability: float = Field(default=0.02, ge=0, le=1)
    jump_size: float = Field(default=5.0, ge=0)
    # None means an unseeded generator
    seed: int | None = None

    @field_validator("instruments")
    @classmethod
    def _positive_prices(cls, value: dict[str, Decimal]) -> dict[str, Decimal]:
        for symbol, price in value.items():
            if price <= 0:
                raise ValueError(f"Starting price for {symbol} must be positive")
        return value


class LedgerConfig(BaseModel):
    starting_cash: Money = Field(default=Decimal("10000.00"), ge=0)
    xp_reward_buy: int = Field(default=5, ge=0)
    xp_reward_sell: int = Field(default=2, ge=0)


class ClockConfig(BaseModel):
    tick_interval: str = "5s"

    @field_validator("tick_interval")
    @classmethod
    def _valid_duration(cls, value: str) -> str:
        if parse_duration(value).total_seconds() <= 0:
            raise ValueError("tick_interval must be positive")
        return value


class StorageConfig(BaseModel):
    storage_key: str = "user"
    audit_events: bool = True


class LoggingConfig(BaseModel):
    level: str = "INFO"


class AppConfig(BaseModel):
    """Top-level application configuration."""

    home_dir: str = str(DEFAULT_HOME)
    server: ServerConfig = Field(default_factory=ServerConfig)
    market: MarketConfig = Field(default_factory=MarketConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    clock: ClockConfig = Field(default_factory=ClockConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def home_path(self) -> Path:
        """Resolved home directory as a Path."""
        return Path(self.home_dir).expanduser()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_config(
    config_path: str | Path | None = None,
    env_path: str | Path | None = None,
) -> AppConfig:
    """Load configuration from YAML + .env files.

    1. Load .env into environment variables
    2. Load config.yaml and resolve ${ENV_VAR} references
    3. Validate against Pydantic models
    4. Create home directory structure if needed
    """
    home = Path(os.environ.get("INVESTLEARN_HOME", str(DEFAULT_HOME))).expanduser()

    if env_path is None:
        env_path = home / ".env"
    if config_path is None:
        config_path = home / "config.yaml"

    env_path = Path(env_path)
    config_path = Path(config_path)

    if env_path.exists():
        load_dotenv(env_path)
        logger.info("Loaded environment from %s", env_path)
    else:
        logger.debug("No .env file at %s", env_path)

    raw_config: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            raw_config = yaml.safe_load(f) or {}
        logger.info("Loaded config from %s", config_path)
    else:
        logger.warning("No config file at %s, using defaults", config_path)

    resolved = _resolve_env_vars(raw_config)

    # Override home_dir if set via env
    if "INVESTLEARN_HOME" in os.environ:
        resolved["home_dir"] = os.environ["INVESTLEARN_HOME"]

    config = AppConfig(**resolved)

    _ensure_directories(config.home_path)

    return config


def _ensure_directories(home: Path) -> None:
    """Create the state directory structure if it doesn't exist."""
    for d in (home, home / "state", home / "events"):
        d.mkdir(parents=True, exist_ok=True)
