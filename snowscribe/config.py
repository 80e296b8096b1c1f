"""Environment-driven application configuration."""

import os
from dataclasses import dataclass, field


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


@dataclass
class OrchestratorConfig:
    """Behaviour knobs for the send-message pipeline."""

    # Balance required before a call is attempted; 0 disables the check
    min_credit_balance: float = 0.0
    fallback_charge: float = 1.0
    credits_per_dollar: float = 100.0


@dataclass
class AppConfig:
    """Top-level configuration for the service."""

    ai_config_path: str | None = None
    starting_credits: float = 100.0
    session_timeout_minutes: int = 60
    shutdown_drain_seconds: float = 10.0
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build configuration from SNOWSCRIBE_* environment variables."""
        return cls(
            ai_config_path=os.getenv("SNOWSCRIBE_AI_CONFIG") or None,
            starting_credits=_env_float("SNOWSCRIBE_STARTING_CREDITS", 100.0),
            session_timeout_minutes=_env_int("SNOWSCRIBE_SESSION_TIMEOUT_MINUTES", 60),
            shutdown_drain_seconds=_env_float("SNOWSCRIBE_SHUTDOWN_DRAIN_SECONDS", 10.0),
            orchestrator=OrchestratorConfig(
                min_credit_balance=_env_float("SNOWSCRIBE_MIN_CREDIT_BALANCE", 0.0),
            ),
        )
