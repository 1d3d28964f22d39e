"""Configuration loader with Pydantic validation and defaults.

This module loads config/config.yaml, validates all keys, and provides
a typed Settings object with sane defaults if keys are missing.
"""

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LegalConfig(BaseSettings):
    """Jurisdiction limits for the small-claims forum."""

    model_config = SettingsConfigDict(env_prefix="CLAIMGRAPH_LEGAL_")

    max_claim_amount: float = 39900      # Ceiling for a small claim
    court_fee_percent: float = 0.01
    court_fee_min: float = 50
    currency_symbol: str = "₪"
    alternative_courts: dict[str, str] = Field(
        default_factory=lambda: {
            "class_action": "District Court",
            "government_defendant": "Administrative Affairs Court",
            "real_estate": "Magistrate Court (real estate)",
            "amount_too_high": "Magistrate Court",
            "default": "Magistrate Court",
        }
    )

    @field_validator("max_claim_amount")
    @classmethod
    def validate_ceiling(cls, v: float) -> float:
        """Ensure the ceiling is a positive amount."""
        if v <= 0:
            raise ValueError("max_claim_amount must be positive")
        return v

    @field_validator("court_fee_percent")
    @classmethod
    def validate_fee_percent(cls, v: float) -> float:
        """Ensure the fee percent is in [0.0, 1.0]."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("court_fee_percent must be between 0.0 and 1.0")
        return v


class GraphConfig(BaseSettings):
    """Case graph configuration."""

    model_config = SettingsConfigDict(env_prefix="CLAIMGRAPH_GRAPH_")

    version: int = 1
    label_max_length: int = 60           # Display labels are truncated to this

    @field_validator("label_max_length")
    @classmethod
    def validate_label_length(cls, v: int) -> int:
        if v < 1:
            raise ValueError("label_max_length must be >= 1")
        return v


class RulesConfig(BaseSettings):
    """Rules engine thresholds."""

    model_config = SettingsConfigDict(env_prefix="CLAIMGRAPH_RULES_")

    min_narrative_chars: int = 100       # Below this the narrative is "vague"
    contract_terms: list[str] = Field(
        default_factory=lambda: ["contract", "agreement", "חוזה", "הסכם", "התחייבות"]
    )
    contract_evidence_tags: list[str] = Field(
        default_factory=lambda: ["contract", "agreement"]
    )


class ScoringConfig(BaseSettings):
    """Strength classification thresholds."""

    model_config = SettingsConfigDict(env_prefix="CLAIMGRAPH_SCORING_")

    strong_threshold: float = 70
    medium_threshold: float = 40
    blocker_penalty: int = 15
    warning_penalty: int = 5

    @model_validator(mode="after")
    def validate_thresholds(self) -> "ScoringConfig":
        """Ensure strong >= medium."""
        if self.strong_threshold < self.medium_threshold:
            raise ValueError("strong_threshold must be >= medium_threshold")
        return self


class StorageConfig(BaseSettings):
    """Graph document store configuration."""

    model_config = SettingsConfigDict(env_prefix="CLAIMGRAPH_STORAGE_")

    graph_dir: str = "data/graphs"


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="CLAIMGRAPH_LOGGING_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """Main settings class with all configuration sections."""

    model_config = SettingsConfigDict(env_prefix="CLAIMGRAPH_", extra="ignore")

    legal: LegalConfig = Field(default_factory=LegalConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    rules: RulesConfig = Field(default_factory=RulesConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "Settings":
        """Load settings from a YAML file.

        Args:
            config_path: Path to config.yaml file

        Returns:
            Settings instance with loaded configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML is invalid
            ValidationError: If configuration doesn't match schema
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f) or {}

        # Recursively merge with defaults
        return cls(**cls._merge_with_defaults(config_dict))

    @classmethod
    def _merge_with_defaults(cls, config_dict: dict) -> dict:
        """Merge config dict with default settings.

        This ensures missing keys get default values from Pydantic models.

        Args:
            config_dict: Dictionary loaded from YAML file

        Returns:
            Merged dictionary with defaults filled in
        """
        defaults = cls().model_dump()

        def deep_merge(base: dict, override: dict) -> dict:
            """Recursively merge override into base."""
            result = base.copy()
            for key, value in override.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value
            return result

        return deep_merge(defaults, config_dict)


_default_settings: Settings | None = None


def get_settings(config_path: str | Path | None = None) -> Settings:
    """Get settings instance, loading from config file or using defaults.

    Args:
        config_path: Optional path to config.yaml. If None, uses the
                     CLAIMGRAPH_CONFIG environment variable, then
                     config/config.yaml relative to project root, then
                     falls back to defaults.

    Returns:
        Settings instance
    """
    if config_path is None:
        env_path = os.environ.get("CLAIMGRAPH_CONFIG")
        if env_path:
            config_path = Path(env_path)
        else:
            project_root = Path(__file__).parent.parent
            config_path = project_root / "config" / "config.yaml"

    config_path = Path(config_path)
    if config_path.exists():
        return Settings.from_yaml(config_path)

    # Return defaults if config file doesn't exist
    return Settings()


def default_settings() -> Settings:
    """Return a process-wide cached default Settings (no file lookup)."""
    global _default_settings
    if _default_settings is None:
        _default_settings = Settings()
    return _default_settings
