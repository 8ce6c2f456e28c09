"""Configuration loading for planlink.

A single optional file (planlink_config.yaml) holds scheduler and linking
settings. Every section is optional; a missing file means defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError
from .models import DependencyType
from .scheduler import ForwardPassScheduler, SchedulingConfig, create_calendar

CONFIG_FILENAME = "planlink_config.yaml"


class LinkingConfig(BaseModel):
    """Defaults for edges created by the bulk link operations."""

    default_type: DependencyType = DependencyType.FS
    default_lag: int = 0


class PlanlinkConfig(BaseModel):
    """Top-level configuration."""

    scheduler: SchedulingConfig = Field(default_factory=SchedulingConfig)
    linking: LinkingConfig = Field(default_factory=LinkingConfig)

    def create_scheduler(self) -> ForwardPassScheduler:
        """Build the forward-pass scheduler this configuration describes."""
        return ForwardPassScheduler(
            calendar=create_calendar(self.scheduler.calendar),
            project_start=self.scheduler.project_start_date,
        )


def load_config(config_path: Path | str) -> PlanlinkConfig:
    """Load configuration from a YAML file.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValidationError: If the config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open(encoding="utf-8") as f:
        data: Any = yaml.safe_load(f)

    if data is None:
        return PlanlinkConfig()
    if not isinstance(data, dict):
        raise ValidationError(f"Config {config_path} must contain a mapping at the root level")

    try:
        return PlanlinkConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid config {config_path}: {e}") from e


def discover_config(
    plan_path: Path | str | None = None,
    config_path: Path | None = None,
) -> PlanlinkConfig:
    """Find and load configuration, falling back to defaults.

    Search order:
    1. Explicit config_path argument (must exist)
    2. Plan file directory / planlink_config.yaml
    3. Current directory / planlink_config.yaml
    """
    if config_path is not None:
        return load_config(config_path)

    if plan_path is not None:
        dir_config = Path(plan_path).parent / CONFIG_FILENAME
        if dir_config.exists():
            return load_config(dir_config)

    cwd_config = Path(CONFIG_FILENAME)
    if cwd_config.exists():
        return load_config(cwd_config)

    return PlanlinkConfig()
