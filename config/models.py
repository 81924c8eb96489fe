"""Pydantic configuration models for specreport."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from exceptions import ConfigFileNotFoundError, ConfigurationError
from reporters.formats import ReportFormat, parse_formats


# Load .env file if present
load_dotenv()

DEFAULT_CONFIG_FILE = Path("specreport.json")

REPORTING_ENV_VARS = {
    "report_dir": "SPECREPORT_REPORT_DIR",
    "report_formats": "SPECREPORT_FORMATS",
}
REPORTING_KEYS = {"report_dir", "report_formats", "title"}


class ReportingConfig(BaseModel):
    """Report output configuration."""

    report_dir: Optional[Path] = Field(
        default=None,
        description="Root directory for generated reports (no reports when unset)",
    )
    report_formats: List[ReportFormat] = Field(
        default_factory=lambda: [ReportFormat.HTML],
        description="Report formats to generate",
    )
    title: str = Field(
        default="Feature Report",
        min_length=1,
        description="Title shown on HTML reports",
    )

    @field_validator("report_dir", mode="before")
    @classmethod
    def convert_to_path(cls, v: Any) -> Optional[Path]:
        """Convert string to Path, treating blank values as unset."""
        if isinstance(v, str):
            return Path(v) if v.strip() else None
        return v

    @field_validator("report_formats", mode="before")
    @classmethod
    def parse_report_formats(cls, v: Any) -> List[ReportFormat]:
        """Accept comma separated strings and 'all'."""
        try:
            return parse_formats(v)
        except ConfigurationError as exc:
            raise ValueError(str(exc)) from exc

    @model_validator(mode="before")
    @classmethod
    def load_from_env(cls, data: Any) -> Any:
        """Fill values from environment variables when not explicitly set."""
        if not isinstance(data, dict):
            return data
        for field_name, env_var in REPORTING_ENV_VARS.items():
            if field_name not in data or data[field_name] is None:
                env_value = os.getenv(env_var)
                if env_value:
                    data[field_name] = env_value
        return data


class SpecReportConfig(BaseModel):
    """Root configuration model."""

    reporting: ReportingConfig = Field(default_factory=ReportingConfig)

    parallel_workers: int = Field(
        default=1,
        ge=1,
        le=16,
        description="Number of feature units reported concurrently",
    )
    verbose: bool = Field(
        default=False,
        description="Enable verbose logging",
    )

    @classmethod
    def from_flat_dict(cls, data: dict[str, Any]) -> "SpecReportConfig":
        """Create config from a flat dictionary."""
        return cls.model_validate(_nest_flat(data))


def _nest_flat(data: dict[str, Any]) -> dict[str, Any]:
    """Move flat reporting keys under 'reporting', dropping unknown keys."""
    nested: dict[str, Any] = {"reporting": {}}
    for key, value in data.items():
        if key in REPORTING_KEYS:
            nested["reporting"][key] = value
        elif key in ("parallel_workers", "verbose"):
            nested[key] = value
    return nested


def _apply_env(config_data: dict[str, Any]) -> None:
    """Let environment variables override values read from the config file."""
    reporting = dict(config_data.get("reporting") or {})
    for field_name, env_var in REPORTING_ENV_VARS.items():
        env_value = os.getenv(env_var)
        if env_value:
            reporting[field_name] = env_value
    config_data["reporting"] = reporting


def load_config(
    config_path: Optional[Path] = None,
    cli_overrides: Optional[dict[str, Any]] = None,
) -> SpecReportConfig:
    """
    Load configuration from file with CLI overrides.

    Priority (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. Config file
    4. Defaults
    """
    config_data: dict[str, Any] = {}

    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE
        required = False
    else:
        required = True

    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.suffix in {".yaml", ".yml"}:
                config_data = yaml.safe_load(f) or {}
            else:
                config_data = json.load(f)
    elif required:
        raise ConfigFileNotFoundError(str(config_path))

    is_flat = any(key in config_data for key in ["report_dir", "report_formats"])
    if is_flat:
        config_data = _nest_flat(config_data)

    _apply_env(config_data)
    config = SpecReportConfig.model_validate(config_data)

    if cli_overrides:
        config_dict = config.model_dump()
        _apply_overrides(config_dict, cli_overrides)
        config = SpecReportConfig.model_validate(config_dict)

    return config


def _apply_overrides(config_dict: dict[str, Any], overrides: dict[str, Any]) -> None:
    """Apply CLI overrides to config dictionary."""
    override_mapping = {
        "report_dir": ("reporting", "report_dir"),
        "formats": ("reporting", "report_formats"),
        "title": ("reporting", "title"),
        "parallel": ("parallel_workers", None),
        "verbose": ("verbose", None),
    }

    for key, value in overrides.items():
        if value is None:
            continue

        mapping = override_mapping.get(key)
        if mapping:
            section, field = mapping
            if field is None:
                config_dict[section] = value
            else:
                config_dict[section][field] = value
