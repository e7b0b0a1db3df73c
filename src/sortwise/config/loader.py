"""Configuration loading from CLI and programmatic sources."""

import logging
from pathlib import Path
from dataclasses import replace

from sortwise.classification.engine import EnsembleThresholds
from sortwise.config.settings import (
    Settings, EnsembleSettings, DatabaseSettings, StorageSettings,
    ReportSettings, LoggingSettings, LogLevel,
)
from sortwise.config.resolvers import resolve_db_path, resolve_image_root
from sortwise.domain.exceptions import ConfigurationError
from sortwise.domain.models import DEFAULT_SCAN_POINTS

logger = logging.getLogger(__name__)


class ConfigurationLoader:
    """Loads configuration from CLI args and system defaults."""

    def load_from_cli_args(self, args) -> Settings:
        """Load configuration from CLI arguments."""
        try:
            settings = self.load_defaults()

            ensemble_updates = {}
            if getattr(args, 'use_feedback', False):
                ensemble_updates['use_feedback_accuracy'] = True
            if getattr(args, 'override_threshold', None) is not None:
                ensemble_updates['thresholds'] = replace(
                    settings.ensemble.thresholds,
                    ai_override_threshold=args.override_threshold,
                )

            database_updates = {}
            if hasattr(args, 'db'):
                database_updates['path'] = resolve_db_path(args.db)
            if getattr(args, 'wal', False):
                database_updates['use_wal'] = True
            if getattr(args, 'chunk_size', None):
                database_updates['chunk_size'] = args.chunk_size

            storage_updates = {}
            if hasattr(args, 'image_root'):
                storage_updates['image_root'] = resolve_image_root(args.image_root)

            report_updates = {}
            if getattr(args, 'top_k', None):
                report_updates['top_k'] = args.top_k
            if getattr(args, 'days', None):
                report_updates['timeline_days'] = args.days

            logging_updates = {}
            if getattr(args, 'log_dir', None):
                logging_updates['log_dir'] = Path(args.log_dir)
            if getattr(args, 'debug', False):
                logging_updates['level'] = LogLevel.DEBUG
            if getattr(args, 'quiet', False):
                logging_updates['quiet_console'] = True

            updated_settings = replace(
                settings,
                ensemble=replace(settings.ensemble, **ensemble_updates),
                database=replace(settings.database, **database_updates),
                storage=replace(settings.storage, **storage_updates),
                report=replace(settings.report, **report_updates),
                logging=replace(settings.logging, **logging_updates),
                owner_id=getattr(args, 'owner', None),
                debug_mode=getattr(args, 'debug', False),
                dry_run=getattr(args, 'dry_run', False),
            )
            return updated_settings

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Failed to load configuration from CLI arguments: {str(e)}"
            ) from e

    def load_defaults(self) -> Settings:
        """Load default configuration settings."""
        return Settings(
            ensemble=EnsembleSettings(
                thresholds=EnsembleThresholds(),
                use_feedback_accuracy=False,
            ),
            database=DatabaseSettings(
                path=None,
                use_wal=False,
                chunk_size=500,
            ),
            storage=StorageSettings(image_root=None),
            report=ReportSettings(
                top_k=5,
                timeline_days=14,
                category_limit=6,
                points_per_scan=DEFAULT_SCAN_POINTS,
            ),
            logging=LoggingSettings(
                level=LogLevel.INFO,
                log_dir=None,
                console_output=True,
                quiet_console=False,
            ),
            owner_id=None,
            debug_mode=False,
            dry_run=False,
        )


def configure_from_cli(args) -> Settings:
    """Main entry point to configure settings from CLI args."""
    loader = ConfigurationLoader()
    settings = loader.load_from_cli_args(args)
    settings.validate()
    return settings
