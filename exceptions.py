"""Custom exception hierarchy for specreport."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union


class SpecReportError(Exception):
    """Base exception for all specreport errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# Configuration exceptions
class ConfigurationError(SpecReportError):
    """Raised when configuration is invalid."""

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """Raised when a required config file is not found."""

    def __init__(self, file_path: str):
        super().__init__(f"Configuration file not found: {file_path}", {"file_path": file_path})
        self.file_path = file_path


# Evaluated results exceptions
class ResultsError(SpecReportError):
    """Base exception for loading evaluated run results."""

    pass


class ResultsLoadError(ResultsError):
    """Raised when a results file cannot be loaded or parsed."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        details = {"file_path": file_path} if file_path else {}
        super().__init__(message, details)
        self.file_path = file_path


class ResultsValidationError(ResultsError):
    """Raised when an evaluated results payload is invalid."""

    def __init__(self, message: str, field: Optional[str] = None, unit: Optional[int] = None):
        details: dict[str, Any] = {}
        if field:
            details["field"] = field
        if unit is not None:
            details["unit"] = unit
        super().__init__(message, details)
        self.field = field
        self.unit = unit


# Report output exceptions
class ReportWriteError(SpecReportError):
    """Raised when a report directory or file cannot be written."""

    def __init__(self, message: str, path: Union[str, Path, None] = None):
        details = {"path": str(path)} if path else {}
        super().__init__(message, details)
        self.path = Path(path) if path else None


class AttachmentCopyError(ReportWriteError):
    """Raised when an attachment cannot be copied into the report tree."""

    def __init__(self, message: str, source: Union[str, Path], path: Union[str, Path, None] = None):
        super().__init__(message, path)
        self.details["source"] = str(source)
        self.source = Path(source)
