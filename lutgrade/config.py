"""Settings loaded from YAML with environment overrides.

Example ``lutgrade.yaml``::

    ffmpeg_path: /opt/homebrew/bin/ffmpeg
    use_hardware_acceleration: false
    grace_period: 5
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator

logger = logging.getLogger("lutgrade")

ENV_PREFIX = "LUTGRADE_"


class Settings(BaseModel):
    ffmpeg_path: Optional[str] = None
    ffprobe_path: Optional[str] = None
    grace_period: float = 3.0
    preview_dir: Optional[Path] = None
    use_hardware_acceleration: bool = True
    output_extension: str = "mp4"
    halt_on_probe_failure: bool = True
    halt_on_engine_failure: bool = False

    @field_validator("grace_period")
    @classmethod
    def _positive_grace(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("grace_period must be positive")
        return value

    @field_validator("output_extension")
    @classmethod
    def _bare_extension(cls, value: str) -> str:
        return value.lstrip(".").lower()


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except FileNotFoundError:
        logger.debug("No settings file at %s", path)
        return {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to read settings %s: %s", path, exc)
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Settings file %s must contain a mapping, ignoring", path)
        return {}
    return data


def _env_overrides() -> dict[str, str]:
    overrides = {}
    for name in Settings.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            overrides[name] = value
    return overrides


def load_settings(path: Optional[str | Path] = None) -> Settings:
    """Load settings from ``path`` (if given), then apply environment overrides.

    An unreadable or invalid file falls back to defaults with a warning.
    """
    data = _read_yaml(Path(path)) if path else {}
    data.update(_env_overrides())
    try:
        return Settings(**data)
    except ValidationError as exc:
        logger.warning("Invalid settings, using defaults: %s", exc)
        return Settings()
