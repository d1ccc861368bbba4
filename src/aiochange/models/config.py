"""Configuration model shared by every component."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ValidationError

from ..exceptions import ChangeValidationError

logger = logging.getLogger(__name__)

BackupScheme = Literal["sequential", "timestamped"]
MatchMode = Literal["literal", "regex"]

DEFAULT_BACKUP_DIR = Path("/var/tmp/file_bk")
DEFAULT_LOG_NAME = "file_activity.log"


class ChangeConfig(BaseModel):
    """Paths and policies for backups, the activity log and matching."""

    backup_dir: Path = DEFAULT_BACKUP_DIR
    log_file: Path | None = None
    tag: str = "CHG000"
    scheme: BackupScheme = "sequential"
    timestamp_format: str = "%Y%m%d_%H%M%S_%f"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    backup_dir_mode: int = 0o777
    encoding: str = "utf-8"
    backup_before_search: bool = True
    match_mode: MatchMode = "literal"

    @property
    def activity_log_path(self) -> Path:
        """Return the configured log path, defaulting into *backup_dir*."""
        return self.log_file if self.log_file is not None else self.backup_dir / DEFAULT_LOG_NAME


def load_config(path: Path | None = None, **overrides: object) -> ChangeConfig:
    """Load a :class:`ChangeConfig` from a YAML file.

    Keys given in *overrides* win over the file; ``None`` overrides are
    ignored so CLI flags that were not passed leave the file value alone.
    """
    data: dict[str, object] = {}
    if path is not None:
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ChangeValidationError(f"Cannot read config file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ChangeValidationError(f"Invalid YAML in config file {path}: {exc}") from exc

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ChangeValidationError(f"Config file {path} must contain a mapping")
        data.update(raw)

    data.update({key: value for key, value in overrides.items() if value is not None})

    try:
        config = ChangeConfig.model_validate(data)
    except ValidationError as exc:
        raise ChangeValidationError(f"Invalid configuration: {exc}") from exc

    logger.debug("Loaded configuration: %s", config)
    return config
