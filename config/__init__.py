"""Configuration module for specreport."""
from config.models import (
    ReportingConfig,
    SpecReportConfig,
    load_config,
)

__all__ = [
    "ReportingConfig",
    "SpecReportConfig",
    "load_config",
]
