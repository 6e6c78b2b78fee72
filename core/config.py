"""Configuration loading and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigValidationError
from schemas.candidate import CandidateCoin


class PipelineConfig(BaseModel):
    """Per-deployment pipeline overrides from YAML."""

    target_count: int | None = Field(None, gt=0)
    scan_size: int | None = Field(None, gt=0)
    high_confidence_threshold: int | None = Field(None, ge=0, le=100)
    notify: bool | None = None

    # Static candidate list used instead of the provider's top-coins ranking
    watchlist: list[CandidateCoin] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_sizes(self) -> PipelineConfig:
        if (
            self.target_count is not None
            and self.scan_size is not None
            and self.scan_size < self.target_count
        ):
            raise ValueError("scan_size must be >= target_count")
        return self


class Settings(BaseSettings):
    """Application settings from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Data provider
    lunarcrush_api_key: str = ""
    lunarcrush_base_url: str = "https://lunarcrush.com/api4/public"

    # LLM
    llm_model: str = "gemini/gemini-2.5-flash-lite"
    llm_timeout_seconds: float = 30.0

    # Alerts
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    notify_enabled: bool = True

    # Storage
    data_dir: str = "./data"

    # Pipeline
    candidate_count: int = Field(10, gt=0)
    target_count: int = Field(3, gt=0)
    high_confidence_threshold: int = Field(70, ge=0, le=100)
    scoring_timeout_seconds: float | None = 60.0

    # Runtime
    verbose: int = 0
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("verbose", mode="before")
    @classmethod
    def _coerce_verbose(cls, v: Any) -> int:
        if isinstance(v, bool):
            return 2 if v else 0
        if isinstance(v, str):
            low = v.strip().lower()
            try:
                return int(low)
            except ValueError:
                pass
            if low in ("true", "yes"):
                return 2
            return 0
        return int(v)

    # HTTP client defaults
    default_timeout: float = 10.0
    default_rate_limit: float = 2.0

    @property
    def jobs_dir(self) -> Path:
        return Path(self.data_dir) / "analysis_jobs"

    @property
    def signals_dir(self) -> Path:
        return Path(self.data_dir) / "trading_signals"

    @property
    def has_telegram(self) -> bool:
        """Check if Telegram credentials are configured."""
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    def apply(self, pipeline: PipelineConfig) -> Settings:
        """Return a copy with YAML overrides applied."""
        updates: dict[str, Any] = {}
        if pipeline.target_count is not None:
            updates["target_count"] = pipeline.target_count
        if pipeline.scan_size is not None:
            updates["candidate_count"] = pipeline.scan_size
        if pipeline.high_confidence_threshold is not None:
            updates["high_confidence_threshold"] = pipeline.high_confidence_threshold
        if pipeline.notify is not None:
            updates["notify_enabled"] = pipeline.notify
        return self.model_copy(update=updates)


def load_pipeline_config(path: Path) -> PipelineConfig:
    """Load pipeline overrides from a YAML file."""
    if not path.exists():
        return PipelineConfig()

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    try:
        return PipelineConfig(**data)
    except ValidationError as e:
        raise ConfigValidationError(
            f"Invalid pipeline config: {path}",
            errors=[dict(err) for err in e.errors()],
        ) from e


def load_config(
    pipeline_path: Path | None = None,
    settings: Settings | None = None,
) -> tuple[Settings, PipelineConfig]:
    """Load all configuration.

    Returns:
        Tuple of (Settings with overrides applied, PipelineConfig)
    """
    settings = settings or Settings()
    pipeline_path = pipeline_path or Path("config/pipeline.yaml")
    pipeline = load_pipeline_config(pipeline_path)

    return settings.apply(pipeline), pipeline


def snapshot_config(settings: Settings) -> dict[str, Any]:
    """Create a serializable snapshot of the current configuration."""
    data = settings.model_dump(mode="json")
    for secret in ("lunarcrush_api_key", "telegram_bot_token"):
        if data.get(secret):
            data[secret] = "***"
    return data
