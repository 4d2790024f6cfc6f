"""Application settings with validation."""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

MARGINS_DIR = Path(__file__).parent / "margins"
PERIOD_KEYS = ("full", "first_half", "second_half", "correct_score", "htft")
HALF_SPLITS = ("complementary", "symmetric")


class EngineSettings(BaseSettings):
    """Probability engine configuration."""

    model_config = SettingsConfigDict(env_prefix="ENGINE_")

    max_goals: int = 7  # Scorelines 0-0 to 7-7
    goal_lines: list[float] = Field(
        default_factory=lambda: [0.5, 1.5, 2.5, 3.5, 4.5, 5.5]
    )
    tail_warning_threshold: float = 0.01
    price_epsilon: float = 0.0001

    # Half-period scaling of full-match expectancy
    half_factor: float = 0.45
    half_split: str = "complementary"

    @field_validator("max_goals")
    @classmethod
    def validate_max_goals(cls, v: int) -> int:
        """Keep the grid small enough for exact factorials."""
        if not 0 <= v <= 15:
            raise ValueError(f"max_goals must be between 0 and 15, got {v}")
        return v

    @field_validator("goal_lines")
    @classmethod
    def validate_goal_lines(cls, v: list[float]) -> list[float]:
        """Goal lines must be half-integers so a push is impossible."""
        for line in v:
            if line < 0 or (line * 2) % 2 != 1:
                raise ValueError(f"Invalid goal line: {line}. Must be x.5 and >= 0")
        return sorted(v)

    @field_validator("half_factor")
    @classmethod
    def validate_half_factor(cls, v: float) -> float:
        if not 0 < v < 1:
            raise ValueError(f"half_factor must be strictly between 0 and 1, got {v}")
        return v

    @field_validator("half_split")
    @classmethod
    def validate_half_split(cls, v: str) -> str:
        if v.lower() not in HALF_SPLITS:
            raise ValueError(f"Invalid half split: {v}. Must be one of {list(HALF_SPLITS)}")
        return v.lower()


class AppSettings(BaseSettings):
    """Application-wide settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_file: Optional[Path] = None

    default_margin_pct: float = 5.0
    margin_profile: str = "single"

    # Nested settings
    engine: EngineSettings = Field(default_factory=EngineSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("default_margin_pct")
    @classmethod
    def clamp_margin(cls, v: float) -> float:
        """Negative margins are treated as zero."""
        return max(0.0, v)


@dataclass(frozen=True)
class MarginProfile:
    """Margin percentages applied per period and per market family."""
    name: str
    full: float
    first_half: float
    second_half: float
    correct_score: float
    htft: float
    description: str = ""

    @classmethod
    def single(cls, margin_pct: float, name: str = "single") -> "MarginProfile":
        """Build a profile that uses one margin everywhere."""
        margin_pct = max(0.0, margin_pct)
        return cls(
            name=name,
            full=margin_pct,
            first_half=margin_pct,
            second_half=margin_pct,
            correct_score=margin_pct,
            htft=margin_pct,
        )

    def for_period(self, period: str) -> float:
        """Margin for 'full', 'first_half' or 'second_half'."""
        return getattr(self, period)


def load_margin_profiles(margins_file: Optional[Path] = None) -> dict:
    """Load margin profile configuration.

    Args:
        margins_file: YAML file to read, defaults to the bundled profiles

    Returns:
        Dictionary of profile name -> raw profile mapping
    """
    margins_file = margins_file or MARGINS_DIR / "margin_profiles.yaml"

    if not margins_file.exists():
        raise FileNotFoundError(f"Margin config not found: {margins_file}")

    try:
        with open(margins_file) as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        raise
    except Exception as e:
        raise RuntimeError(f"Failed to load margin config {margins_file}: {e}")

    if not isinstance(config, dict):
        raise RuntimeError(f"Margin config {margins_file} must be a mapping of profiles")

    for profile_name, profile in config.items():
        if not isinstance(profile, dict):
            raise RuntimeError(f"Margin profile {profile_name} must be a mapping")
        if "full" not in profile:
            raise ValueError(f"Margin profile {profile_name} is missing 'full'")
        for key in PERIOD_KEYS:
            value = profile.get(key)
            if value is not None and value < 0:
                raise ValueError(
                    f"Margin {profile_name}/{key} is {value}, expected >= 0"
                )

    return config


def get_margin_profile(name: str, margins_file: Optional[Path] = None) -> MarginProfile:
    """Get a named margin profile.

    Periods missing from the profile fall back to its 'full' margin.
    """
    config = load_margin_profiles(margins_file)
    if name not in config:
        raise KeyError(f"Unknown margin profile: {name}. Available: {sorted(config)}")

    profile = config[name]
    full = float(profile["full"])
    return MarginProfile(
        name=name,
        full=full,
        first_half=float(profile.get("first_half", full)),
        second_half=float(profile.get("second_half", full)),
        correct_score=float(profile.get("correct_score", full)),
        htft=float(profile.get("htft", full)),
        description=profile.get("description", ""),
    )


# Singleton instance
settings = AppSettings()
