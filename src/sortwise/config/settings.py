"""Core configuration settings for sortwise."""

import logging
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field
from enum import Enum

from sortwise.classification.engine import EnsembleThresholds
from sortwise.domain.exceptions import ConfigurationError
from sortwise.domain.models import DEFAULT_SCAN_POINTS

logger = logging.getLogger(__name__)


class LogLevel(Enum):
    """Supported logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class EnsembleSettings:
    """Decision policy constants and whether feedback reweights the models."""
    thresholds: EnsembleThresholds = field(default_factory=EnsembleThresholds)
    use_feedback_accuracy: bool = False

    def validate(self) -> None:
        t = self.thresholds
        for name in ("model_a_weight", "model_b_weight"):
            if getattr(t, name) < 0:
                raise ConfigurationError(
                    f"{name} must be non-negative",
                    config_field=f"ensemble.{name}"
                )
        for name in ("ai_override_threshold", "human_override_confidence",
                     "tie_default_confidence", "model_a_agreement_floor",
                     "model_b_agreement_floor"):
            value = getattr(t, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(
                    f"{name} must be within [0, 1], got {value}",
                    config_field=f"ensemble.{name}"
                )
        if t.strong_signal_margin < 0:
            raise ConfigurationError(
                "strong_signal_margin must be non-negative",
                config_field="ensemble.strong_signal_margin"
            )

    def accuracy_enabled(self) -> bool:
        return self.use_feedback_accuracy


@dataclass
class DatabaseSettings:
    """Database-related configuration."""
    path: Optional[Path] = None
    use_wal: bool = False
    chunk_size: int = 500

    def validate(self) -> None:
        if self.chunk_size <= 0:
            raise ConfigurationError(
                "chunk_size must be positive",
                config_field="database.chunk_size"
            )
        if self.path is not None and self.path.exists() and self.path.is_dir():
            raise ConfigurationError(
                f"Database path is a directory: {self.path}",
                config_field="database.path"
            ).add_suggestion("Point --db at a file, e.g. scans.sqlite")


@dataclass
class StorageSettings:
    """Where uploaded images are written."""
    image_root: Optional[Path] = None

    def validate(self) -> None:
        if self.image_root is not None and self.image_root.exists() and not self.image_root.is_dir():
            raise ConfigurationError(
                f"Image root is not a directory: {self.image_root}",
                config_field="storage.image_root"
            )


@dataclass
class ReportSettings:
    """Statistics and dashboard parameters."""
    top_k: int = 5
    timeline_days: int = 14
    category_limit: int = 6
    points_per_scan: int = DEFAULT_SCAN_POINTS

    def validate(self) -> None:
        for name in ("top_k", "timeline_days", "category_limit"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(
                    f"{name} must be positive",
                    config_field=f"report.{name}"
                )
        if self.points_per_scan < 0:
            raise ConfigurationError(
                "points_per_scan must be non-negative",
                config_field="report.points_per_scan"
            )


@dataclass
class LoggingSettings:
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    log_dir: Optional[Path] = None
    console_output: bool = True
    quiet_console: bool = False

    def validate(self) -> None:
        if self.log_dir is not None and self.log_dir.exists() and not self.log_dir.is_dir():
            raise ConfigurationError(
                f"Log path is not a directory: {self.log_dir}",
                config_field="logging.log_dir"
            ).add_suggestion("Create the directory or use console logging only")


@dataclass
class Settings:
    """Main configuration settings for sortwise."""

    ensemble: EnsembleSettings = field(default_factory=EnsembleSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    report: ReportSettings = field(default_factory=ReportSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    owner_id: Optional[str] = None
    debug_mode: bool = False
    dry_run: bool = False

    def validate(self) -> None:
        """Validate all configuration settings."""
        try:
            self.ensemble.validate()
            self.database.validate()
            self.storage.validate()
            self.report.validate()
            self.logging.validate()

            if self.owner_id is not None and not self.owner_id.strip():
                raise ConfigurationError(
                    "owner_id must not be blank",
                    config_field="owner_id"
                ).add_suggestion("Pass --owner with a user identifier")

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Configuration validation failed: {str(e)}"
            ) from e

    def to_dict(self) -> dict:
        """Convert settings to dictionary for debugging."""
        return {
            'ensemble': {
                'use_feedback_accuracy': self.ensemble.use_feedback_accuracy,
                'ai_override_threshold': self.ensemble.thresholds.ai_override_threshold,
                'strong_signal_margin': self.ensemble.thresholds.strong_signal_margin,
            },
            'database': {
                'path': str(self.database.path) if self.database.path else None,
                'use_wal': self.database.use_wal,
                'chunk_size': self.database.chunk_size,
            },
            'storage': {
                'image_root': str(self.storage.image_root) if self.storage.image_root else None,
            },
            'report': {
                'top_k': self.report.top_k,
                'timeline_days': self.report.timeline_days,
            },
            'runtime': {
                'owner_id': self.owner_id,
                'debug_mode': self.debug_mode,
                'dry_run': self.dry_run,
            }
        }


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the current global settings instance."""
    if _settings is None:
        raise ConfigurationError(
            "Settings not initialized. Call set_settings() first."
        ).add_suggestion("Initialize settings in your application startup")
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    settings.validate()
    _settings = settings
    logger.debug("Configuration loaded and validated successfully")


def reset_settings() -> None:
    global _settings
    _settings = None
