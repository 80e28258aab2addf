"""
Application settings management.

Settings are loaded from environment variables with .env file support.
Gate behaviour (lockout constants, time-lock windows, classifier keywords,
redirection messages) comes from config/gate_config.yaml.
All configuration is validated using Pydantic.
"""

from pathlib import Path
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from parentgate.core.exceptions import ConfigurationError
from parentgate.domain.models.intent import IntentLabel
from parentgate.domain.models.schedule import TimeLockSchedule, TimeLockWindow


class Settings(BaseSettings):
    """
    Application settings loaded from environment.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================

    config_dir: Path = Field(
        default=Path("config"),
        description="Directory containing YAML configuration files",
    )
    data_dir: Path = Field(
        default=Path("data"), description="Directory for database and other data files"
    )
    database_path: Path = Field(
        default=Path("data/parentgate.db"), description="Path to SQLite database file"
    )
    gate_config_path: Optional[Path] = Field(
        default=None,
        description="Explicit gate_config.yaml path (default: <config_dir>/gate_config.yaml)",
    )

    # ==========================================================================
    # Gate runtime
    # ==========================================================================

    timezone: str = Field(
        default="UTC",
        description="IANA timezone used to evaluate time-lock windows",
    )
    credential_store_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        le=30,
        description="Upper bound for a single credential store call",
    )

    # ==========================================================================
    # Server Configuration
    # ==========================================================================

    host: str = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")

    @field_validator("timezone")
    @classmethod
    def timezone_exists(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


# ============================================================================
# Gate Configuration (from YAML)
# ============================================================================


class PinConfig(BaseModel):
    """PIN format policy."""

    length: int = Field(default=6, ge=4, le=12, description="Exact number of digits")
    reject_weak: bool = Field(
        default=True, description="Refuse sequential or repeated-digit PINs at setup"
    )


class LockoutConfig(BaseModel):
    """Failed-attempt lockout constants.

    The retention window bounds which failures count toward a lockout. It
    must cover at least the lockout itself, otherwise the failure that
    triggered a lockout could age out while the lockout is still running.
    """

    failure_threshold: int = Field(default=3, ge=1, le=20)
    lockout_seconds: int = Field(default=300, ge=1)
    retention_seconds: int = Field(default=300, ge=1)

    @model_validator(mode="after")
    def retention_covers_lockout(self) -> "LockoutConfig":
        if self.retention_seconds < self.lockout_seconds:
            raise ValueError(
                f"retention_seconds ({self.retention_seconds}) must be >= "
                f"lockout_seconds ({self.lockout_seconds})"
            )
        return self


class TimeLockConfig(BaseModel):
    """Recurring windows during which the parent console cannot be entered."""

    windows: List[TimeLockWindow] = Field(default_factory=list)
    emergency_override_seconds: int = Field(default=900, ge=60, le=24 * 3600)

    def schedule(self) -> TimeLockSchedule:
        return TimeLockSchedule(windows=tuple(self.windows))


class SessionConfig(BaseModel):
    """Parent-console session configuration."""

    inactivity_timeout_seconds: int = Field(
        default=1800, ge=60, description="Idle time before the console relocks"
    )


class ClassifierConfig(BaseModel):
    """Keyword and heuristic parameters for session intent detection."""

    window_size: int = Field(default=6, ge=2, le=50, description="Recent turns kept")
    min_confidence: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Below this the intent is UNKNOWN"
    )
    topic_keywords: List[str] = Field(
        default_factory=list,
        description="Vocabulary of the current activity; empty disables topic tracking",
    )
    off_topic_keywords: List[str] = Field(default_factory=list)
    distress_keywords: List[str] = Field(
        default_factory=lambda: [
            "sad", "scared", "worried", "upset", "lonely", "hurt", "cry",
            "crying", "afraid", "nervous", "anxious", "feel bad", "not good",
            "nobody likes me", "help me", "i miss",
        ]
    )
    disengagement_keywords: List[str] = Field(
        default_factory=lambda: [
            "bored", "boring", "whatever", "idk", "i don't know", "don't care",
            "stop", "go away", "leave me alone", "i want to stop",
        ]
    )
    distress_weight: float = Field(default=1.2, ge=0.0, le=3.0)
    short_reply_words: int = Field(
        default=2, ge=1, le=10, description="Replies this short count as disengaged"
    )
    repetition_similarity: float = Field(default=0.8, ge=0.0, le=1.0)


class RedirectionConfig(BaseModel):
    """Suggestion thresholds and per-intent message templates."""

    confidence_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    history_size: int = Field(
        default=50, ge=1, description="Resolved suggestions remembered for id lookups"
    )
    messages: Dict[IntentLabel, str] = Field(
        default_factory=lambda: {
            IntentLabel.DISTRESS: "Is everything okay? It might be a good moment to check in and talk.",
            IntentLabel.DISENGAGEMENT: "Ready for a break? Let's try something fun together.",
            IntentLabel.REPETITION: "We keep coming back to the same thing. Want to try something new?",
            IntentLabel.OFF_TOPIC: "The conversation has wandered. Want to steer back to the activity?",
        }
    )

    @field_validator("messages")
    @classmethod
    def only_actionable(cls, v: Dict[IntentLabel, str]) -> Dict[IntentLabel, str]:
        extra = [label.value for label in v if not label.is_actionable]
        if extra:
            raise ValueError(f"Messages configured for non-actionable intents: {extra}")
        return v


class GateConfig(BaseModel):
    """
    Complete gate configuration loaded from gate_config.yaml.
    """

    pin: PinConfig = Field(default_factory=PinConfig)
    lockout: LockoutConfig = Field(default_factory=LockoutConfig)
    time_lock: TimeLockConfig = Field(default_factory=TimeLockConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    redirection: RedirectionConfig = Field(default_factory=RedirectionConfig)


def load_gate_config(config_path: Optional[Path] = None) -> GateConfig:
    """
    Load gate configuration from YAML file.

    Args:
        config_path: Path to gate_config.yaml. If None, looks under the
            configured config_dir, then the project root.

    Returns:
        GateConfig with validated settings (defaults if no file exists)

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation
    """
    if config_path is None:
        candidates = [
            settings.gate_config_path,
            settings.config_dir / "gate_config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config" / "gate_config.yaml",
        ]
        config_path = next((p for p in candidates if p is not None and p.exists()), None)
        if config_path is None:
            return GateConfig()

    config_path = Path(config_path).resolve()

    if not config_path.exists():
        return GateConfig()

    try:
        with open(str(config_path)) as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if not config_data:
        return GateConfig()

    try:
        return GateConfig(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid gate configuration in {config_path}: {e}") from e


# Global settings instance
settings = Settings()
