"""Central configuration — loads .env and exposes typed settings.

Only the command-line entry point reads settings. The engine functions take
their parameters explicitly and never consult this module.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stockfactors.contracts import ScoreConfig
from stockfactors.signals.scoring import DEFAULT_WEIGHTS

logger = logging.getLogger(__name__)

# Resolve project root (parent of stockfactors/)
PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_PATH = PROJECT_ROOT / ".env"

LOG_FORMATS = {"text", "json"}


class Settings(BaseSettings):
    # --- Transactions ---
    min_pct_change: float = 4.0  # % gain that makes a day a "transaction"

    # --- Scoring gates (weights stay at the built-in table) ---
    score_threshold: float = 0.45
    min_factors_required: int | None = Field(default=2, ge=0)

    # --- Logging ---
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"

    model_config = SettingsConfigDict(
        env_prefix="STOCKFACTORS_",
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_format")
    @classmethod
    def _known_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in LOG_FORMATS:
            logger.warning("Unknown log_format '%s', falling back to text", value)
            return "text"
        return value

    def score_config(
        self,
        threshold: float | None = None,
        min_factors_required: int | None = None,
    ) -> ScoreConfig:
        """Default weight table with this environment's threshold and minimum.

        Arguments that are given take precedence over the settings; pass
        ``min_factors_required=0`` to disable the minimum-factor gate.
        """
        return ScoreConfig.from_mapping(
            DEFAULT_WEIGHTS,
            threshold=self.score_threshold if threshold is None else threshold,
            min_factors_required=(
                self.min_factors_required if min_factors_required is None
                else min_factors_required
            ),
        )


# Singleton
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
