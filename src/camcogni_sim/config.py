"""Configuration management for the telemetry simulator."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError
from .historic import HistoricRange


@dataclass
class APIConfig:
    """Remote analysis service configuration."""

    base_url: str = "http://3.83.15.74:8000"
    timeout_s: float = 30.0
    run_analysis_path: str = "/run-analysis"
    reports_path: str = "/reports"


@dataclass
class SessionConfig:
    """Dashboard session parameters."""

    random_seed: Optional[int] = None
    settle_delay_ms: int = 5000  # Wait after the save trigger before Saved


@dataclass
class HistoricConfig:
    """Historic summary screen parameters."""

    default_range: str = "7d"
    days_shown: int = 7

    def __post_init__(self):
        allowed = [r.value for r in HistoricRange]
        if self.default_range not in allowed:
            raise ConfigError(
                f"Invalid historic range {self.default_range!r}, expected one of {allowed}"
            )


@dataclass
class Config:
    """Main configuration container."""

    api: APIConfig = field(default_factory=APIConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    historic: HistoricConfig = field(default_factory=HistoricConfig)

    @classmethod
    def from_yaml(cls, config_path: Path) -> "Config":
        """Load configuration from YAML file."""
        if not config_path.exists():
            return cls.default()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls._from_dict(data)

    @classmethod
    def from_env(cls, base: Optional["Config"] = None) -> "Config":
        """Apply environment variable overrides (to ``base`` or the defaults)."""
        config = base or cls.default()

        # Analysis service
        config.api.base_url = os.getenv("CAMCOGNI_BASE_URL", config.api.base_url)
        config.api.timeout_s = float(os.getenv("CAMCOGNI_TIMEOUT_S", config.api.timeout_s))

        # Session
        seed = os.getenv("CAMCOGNI_SEED")
        if seed:
            config.session.random_seed = int(seed)
        config.session.settle_delay_ms = int(
            os.getenv("CAMCOGNI_SETTLE_DELAY_MS", config.session.settle_delay_ms)
        )

        # Historic summary
        config.historic = HistoricConfig(
            default_range=os.getenv("CAMCOGNI_HISTORIC_RANGE", config.historic.default_range),
            days_shown=config.historic.days_shown,
        )

        return config

    @classmethod
    def default(cls) -> "Config":
        """Create default configuration."""
        return cls()

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        config = cls.default()

        if "api" in data:
            api_data = data["api"]
            config.api = APIConfig(
                base_url=api_data.get("base_url", config.api.base_url),
                timeout_s=float(api_data.get("timeout_s", config.api.timeout_s)),
                run_analysis_path=api_data.get(
                    "run_analysis_path", config.api.run_analysis_path
                ),
                reports_path=api_data.get("reports_path", config.api.reports_path),
            )

        if "session" in data:
            session_data = data["session"]
            config.session = SessionConfig(
                random_seed=session_data.get("random_seed"),
                settle_delay_ms=session_data.get(
                    "settle_delay_ms", config.session.settle_delay_ms
                ),
            )

        if "historic" in data:
            historic_data = data["historic"]
            config.historic = HistoricConfig(
                default_range=historic_data.get(
                    "default_range", config.historic.default_range
                ),
                days_shown=historic_data.get("days_shown", config.historic.days_shown),
            )

        # Top-level 'seed' overrides session.random_seed
        if "seed" in data:
            config.session.random_seed = int(data["seed"])

        return config

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file."""
        data = {
            "api": {
                "base_url": self.api.base_url,
                "timeout_s": self.api.timeout_s,
                "run_analysis_path": self.api.run_analysis_path,
                "reports_path": self.api.reports_path,
            },
            "session": {
                "random_seed": self.session.random_seed,
                "settle_delay_ms": self.session.settle_delay_ms,
            },
            "historic": {
                "default_range": self.historic.default_range,
                "days_shown": self.historic.days_shown,
            },
        }

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
