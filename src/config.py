"""
Configuration management for the Adaptive Response Engine.

This module centralizes all configuration settings:
- Secrets and tunables loaded from environment variables
- Sensible defaults for development
- Immutable adaptation tables (age bands, token budgets, thresholds)
- Logging setup driven by LoggingConfig
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

# Load environment variables from .env file
try:
    from dotenv import load_dotenv

    load_dotenv()
except ImportError:
    pass  # dotenv is optional


@dataclass
class ModelConfig:
    """LLM settings for the upstream response generator."""

    api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    model_name: str = field(
        default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
    )
    base_url: Optional[str] = field(
        default_factory=lambda: os.getenv("OPENAI_BASE_URL")
    )

    temperature: float = 0.7
    top_p: float = 0.9

    max_retries: int = 2
    request_timeout: float = field(
        default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "60.0"))
    )


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class AdaptationConfig:
    """
    Immutable tuning tables for level classification and token budgeting.

    Built once and handed to the engine explicitly. Level keys are the
    string values of DevelopmentLevel / PerformanceLevel so this module
    stays free of model imports.
    """

    # Inclusive age ranges, youngest first. Must be contiguous.
    age_bands: Mapping = field(
        default_factory=lambda: _frozen(
            {
                "EARLY_ELEMENTARY": (5, 8),
                "LATE_ELEMENTARY": (9, 11),
                "MIDDLE_SCHOOL": (12, 14),
                "HIGH_SCHOOL": (15, 18),
            }
        )
    )
    default_level: str = "MIDDLE_SCHOOL"

    # Average accuracy cut-offs used when no age is known
    performance_level_cutoffs: Mapping = field(
        default_factory=lambda: _frozen(
            {
                "EARLY_ELEMENTARY": 0.4,
                "LATE_ELEMENTARY": 0.6,
                "MIDDLE_SCHOOL": 0.8,
            }
        )
    )

    # Minimum average accuracy for each performance level
    performance_thresholds: Mapping = field(
        default_factory=lambda: _frozen(
            {
                "ADVANCED": 0.9,
                "PROFICIENT": 0.8,
                "DEVELOPING": 0.6,
                "STRUGGLING": 0.4,
            }
        )
    )

    # Token budgeting
    base_token_budgets: Mapping = field(
        default_factory=lambda: _frozen(
            {
                "EARLY_ELEMENTARY": 300,
                "LATE_ELEMENTARY": 500,
                "MIDDLE_SCHOOL": 800,
                "HIGH_SCHOOL": 1200,
            }
        )
    )
    token_budget_ranges: Mapping = field(
        default_factory=lambda: _frozen(
            {
                "EARLY_ELEMENTARY": (200, 450),
                "LATE_ELEMENTARY": (350, 750),
                "MIDDLE_SCHOOL": (600, 1200),
                "HIGH_SCHOOL": (900, 1800),
            }
        )
    )
    performance_multipliers: Mapping = field(
        default_factory=lambda: _frozen(
            {
                "STRUGGLING": 0.8,
                "DEVELOPING": 1.0,
                "PROFICIENT": 1.2,
                "ADVANCED": 1.5,
            }
        )
    )
    default_token_budget: int = 600

    # History lookups
    history_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("HISTORY_TIMEOUT", "2.0"))
    )
    history_window_days: int = 30
    history_max_interactions: int = 10

    # Fallback text
    fallback_prompt_preview_chars: int = 200

    def __post_init__(self):
        """Check that age bands are contiguous and non-overlapping."""
        bands = sorted(self.age_bands.values())
        for (_, upper), (lower, _) in zip(bands, bands[1:]):
            if lower != upper + 1:
                raise ValueError(
                    f"age_bands must be contiguous, found gap/overlap at {upper} -> {lower}"
                )
        for level, (low, high) in self.token_budget_ranges.items():
            if low <= 0 or high < low:
                raise ValueError(
                    f"token_budget_ranges[{level}] must satisfy 0 < min <= max, got ({low}, {high})"
                )

    @property
    def youngest_age(self) -> int:
        return min(low for low, _ in self.age_bands.values())

    @property
    def oldest_age(self) -> int:
        return max(high for _, high in self.age_bands.values())


@dataclass
class PathConfig:
    """File system paths - single source of truth for all directories."""

    project_root: Path = field(default_factory=lambda: Path(__file__).parent.parent)
    data_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("ADAPTIVE_DATA_DIR", str(Path(__file__).parent.parent / "data"))
        )
    )

    history_dir: Path = field(init=False)
    schemas_dir: Path = field(init=False)
    request_schema: Path = field(init=False)
    interaction_schema: Path = field(init=False)

    def __post_init__(self):
        """Initialize computed paths."""
        self.history_dir = self.data_dir / "history"
        self.schemas_dir = self.project_root / "schemas"
        self.request_schema = self.schemas_dir / "adaptive_request.schema.json"
        self.interaction_schema = self.schemas_dir / "interaction.schema.json"

    def prepare_filesystem(self):
        """
        Create directories if they don't exist.

        Separated from __post_init__ to avoid side-effects on import.
        """
        for directory in [self.data_dir, self.history_dir]:
            directory.mkdir(parents=True, exist_ok=True)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    log_adaptations: bool = True


class Config:
    """
    Main configuration class. Singleton pattern.

    Usage:
        from src.config import config

        timeout = config.adaptation.history_timeout_seconds
        config.prepare_fs()
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.paths = PathConfig()
            cls._instance.model = ModelConfig()
            cls._instance.adaptation = AdaptationConfig()
            cls._instance.logging = LoggingConfig()

        return cls._instance

    def prepare_fs(self):
        """Prepare filesystem (create directories). Call once at startup."""
        self.paths.prepare_filesystem()

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if not self.model.api_key:
            errors.append("OPENAI_API_KEY not set in environment")

        if not (0 <= self.model.temperature <= 2):
            errors.append(f"temperature must be in [0, 2], got {self.model.temperature}")

        if not (0 < self.model.top_p <= 1):
            errors.append(f"top_p must be in (0, 1], got {self.model.top_p}")

        if self.adaptation.history_timeout_seconds <= 0:
            errors.append(
                f"history_timeout_seconds must be > 0, got {self.adaptation.history_timeout_seconds}"
            )

        if self.adaptation.default_level not in self.adaptation.age_bands:
            errors.append(
                f"default_level '{self.adaptation.default_level}' is not a configured level"
            )

        missing_budgets = set(self.adaptation.age_bands) - set(
            self.adaptation.base_token_budgets
        )
        if missing_budgets:
            errors.append(f"No base token budget for levels: {sorted(missing_budgets)}")

        if logging.getLevelName(self.logging.log_level.upper()) == (
            f"Level {self.logging.log_level.upper()}"
        ):
            errors.append(f"Unknown log level: {self.logging.log_level}")

        for schema in (self.paths.request_schema, self.paths.interaction_schema):
            if not schema.exists():
                errors.append(f"Schema not found: {schema}")

        return errors


# Global config instance
config = Config()


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging from LoggingConfig.

    Call once from an application entrypoint; library modules only create
    their own loggers.
    """
    logging.basicConfig(
        level=(level or config.logging.log_level).upper(),
        format=config.logging.log_format,
    )
