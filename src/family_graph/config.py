"""Settings for loading and querying family graphs.

Loads settings from YAML and validates them with pydantic.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FAMILY_GRAPH_CONFIG"


class Settings(BaseModel):
    """Runtime settings."""
    model_config = ConfigDict(extra="forbid")

    max_generations: int = Field(default=10, ge=0)
    encoding: str = "utf-8-sig"
    accepted_extensions: list[str] = Field(default_factory=lambda: [".ged", ".gedcom"])

    # "male_spouse": one marriage per couple, attributed to the male spouse.
    # "per_family": one marriage per family record, whatever the spouses' sex.
    timeline_marriage_policy: Literal["male_spouse", "per_family"] = "male_spouse"

    log_level: str = "WARNING"

    @field_validator("accepted_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Lower-case extensions and ensure a leading dot."""
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v]

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    def accepts(self, path: str | Path) -> bool:
        """Check whether a file name has an accepted GEDCOM extension."""
        return Path(path).suffix.lower() in self.accepted_extensions


def load_settings(path: str | Path | None = None) -> Settings:
    """
    Load settings from a YAML file.

    A missing path or file gives the defaults; unknown keys and malformed
    YAML raise ValueError.
    """
    if path is None:
        return Settings()

    path = Path(path)
    if not path.exists():
        logger.debug("Config file %s not found, using defaults", path)
        return Settings()

    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Config file {path} is not valid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    return Settings(**data)
