"""
Configuration for TxGraph.

All settings are loaded from environment variables prefixed with TXGRAPH_,
with fallbacks that match the thresholds observed in the dashboard data.

Example:
    TXGRAPH_ENVIRONMENT=production
    TXGRAPH_MIN_FAN_DEGREE=5
    TXGRAPH_USE_INFERRED=true
"""

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Callable, Optional, TypeVar

from txgraph.exceptions import ConfigurationError


T = TypeVar("T")

ENV_PREFIX = "TXGRAPH_"
PACKAGE_LOGGER = "txgraph"


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _env(name: str, default: Optional[str], parse: Callable[[str], T]) -> T:
    raw = os.getenv(ENV_PREFIX + name, default)
    if raw is None:
        return None  # type: ignore[return-value]
    try:
        return parse(raw)
    except (ValueError, InvalidOperation) as exc:
        raise ConfigurationError(
            f"Invalid value for {ENV_PREFIX}{name}: {raw!r}",
            details={"variable": ENV_PREFIX + name, "value": raw},
        ) from exc


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(raw)


def _parse_optional_float(raw: str) -> Optional[float]:
    if raw.strip() == "":
        return None
    return float(raw)


@dataclass
class Config:
    """Central configuration object for TxGraph."""

    environment: Environment = field(
        default_factory=lambda: _env("ENVIRONMENT", "development", Environment)
    )
    log_level: LogLevel = field(
        default_factory=lambda: _env("LOG_LEVEL", "INFO", lambda v: LogLevel(v.upper()))
    )
    api_version: str = field(
        default_factory=lambda: _env("API_VERSION", "1.0.0", str)
    )

    # Pattern detection
    min_fan_degree: int = field(
        default_factory=lambda: _env("MIN_FAN_DEGREE", "5", int)
    )
    min_volume: Decimal = field(
        default_factory=lambda: _env("MIN_VOLUME", "0", Decimal)
    )
    use_inferred: bool = field(
        default_factory=lambda: _env("USE_INFERRED", "false", _parse_bool)
    )
    anomaly_ratio: float = field(
        default_factory=lambda: _env("ANOMALY_RATIO", "3.0", float)
    )

    # Analysis limits
    analysis_budget_seconds: Optional[float] = field(
        default_factory=lambda: _env("ANALYSIS_BUDGET_SECONDS", None, _parse_optional_float)
    )
    top_k: int = field(default_factory=lambda: _env("TOP_K", "5", int))
    parallel_degree_threshold: int = field(
        default_factory=lambda: _env("PARALLEL_DEGREE_THRESHOLD", "100000", int)
    )
    max_extra_attributes: int = field(
        default_factory=lambda: _env("MAX_EXTRA_ATTRIBUTES", "32", int)
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.top_k < 0:
            raise ConfigurationError("TXGRAPH_TOP_K must not be negative")
        if self.max_extra_attributes < 0:
            raise ConfigurationError(
                "TXGRAPH_MAX_EXTRA_ATTRIBUTES must not be negative"
            )
        if self.analysis_budget_seconds is not None and self.analysis_budget_seconds <= 0:
            raise ConfigurationError(
                "TXGRAPH_ANALYSIS_BUDGET_SECONDS must be positive when set"
            )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION


# Singleton instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
        logging.getLogger(PACKAGE_LOGGER).setLevel(_config.log_level.value)
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
