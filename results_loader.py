"""Filesystem-backed loader for evaluated run results."""
from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from exceptions import ResultsLoadError, ResultsValidationError
from spec_types import (
    Attachment,
    DataRecord,
    EvalStatus,
    EvaluatedRun,
    FeatureSpec,
    FeatureUnit,
    RunInfo,
    Scenario,
    Step,
)

RESULT_SUFFIXES = {".yaml", ".yml", ".json"}


def _as_tuple(value: Any, field: str) -> Tuple[str, ...]:
    """Convert value to a tuple of strings."""
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value)
    if isinstance(value, str):
        return (value,)
    raise ResultsValidationError(f"Expected string or list, got {type(value).__name__}", field=field)


def _as_mapping(value: Any, field: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ResultsValidationError(f"'{field}' must be a mapping", field=field)
    return value


def _as_items(value: Any, field: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ResultsValidationError(f"'{field}' must be a list", field=field)
    return value


def _parse_status(value: Any) -> EvalStatus:
    if value is None:
        return EvalStatus.PASSED
    try:
        return EvalStatus(str(value).lower())
    except ValueError:
        valid = ", ".join(s.value for s in EvalStatus)
        raise ResultsValidationError(f"Unknown status '{value}' (expected one of: {valid})", field="status")


def _parse_datetime(value: Any, field: str) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as exc:
        raise ResultsValidationError(f"Invalid timestamp '{value}'", field=field) from exc


def _resolve(path: Any, base_dir: Path) -> Path:
    resolved = Path(str(path)).expanduser()
    if not resolved.is_absolute():
        resolved = base_dir / resolved
    return resolved


def _parse_attachment(data: Any, base_dir: Path) -> Attachment:
    if isinstance(data, str):
        path = _resolve(data, base_dir)
        return Attachment(name=path.name, path=path)
    data = _as_mapping(data, "attachments")
    if not data.get("path"):
        raise ResultsValidationError("Attachment is missing a 'path' field", field="attachments")
    path = _resolve(data["path"], base_dir)
    return Attachment(name=str(data.get("name") or path.name), path=path)


def _parse_step(data: Any, base_dir: Path) -> Step:
    data = _as_mapping(data, "steps")
    text = data.get("text") or data.get("name")
    if not text:
        raise ResultsValidationError("Step is missing a 'text' field", field="text")
    return Step(
        keyword=str(data.get("keyword") or "*"),
        text=str(text),
        status=_parse_status(data.get("status")),
        duration_ms=float(data.get("duration_ms") or 0.0),
        error_message=data.get("error_message") or data.get("error"),
        attachments=tuple(
            _parse_attachment(a, base_dir) for a in _as_items(data.get("attachments"), "attachments")
        ),
    )


def _parse_scenario(data: Any, base_dir: Path) -> Scenario:
    data = _as_mapping(data, "scenarios")
    return Scenario(
        name=str(data.get("name") or ""),
        steps=tuple(_parse_step(s, base_dir) for s in _as_items(data.get("steps"), "steps")),
        tags=_as_tuple(data.get("tags"), "tags"),
        description=data.get("description"),
    )


def _parse_spec(data: Any, base_dir: Path) -> FeatureSpec:
    data = _as_mapping(data, "specs")
    name = data.get("name") or data.get("feature")
    if not name:
        raise ResultsValidationError("Spec is missing a 'name' field", field="name")
    source_file = data.get("source_file")
    return FeatureSpec(
        name=str(name),
        scenarios=tuple(
            _parse_scenario(sc, base_dir) for sc in _as_items(data.get("scenarios"), "scenarios")
        ),
        # Source paths only name report directories, they are never read
        source_file=Path(str(source_file)) if source_file else None,
        description=data.get("description"),
        tags=_as_tuple(data.get("tags"), "tags"),
    )


def _parse_record(data: Any, base_dir: Path) -> Optional[DataRecord]:
    if data is None:
        return None
    data = _as_mapping(data, "data_record")
    try:
        number = int(data.get("number", data.get("record_no")))
    except (TypeError, ValueError):
        raise ResultsValidationError("Data record needs an integer 'number'", field="data_record")
    if number < 1:
        raise ResultsValidationError("Data record numbers start at 1", field="data_record")
    data_file = data.get("data_file")
    total = data.get("total")
    return DataRecord(
        number=number,
        data_file=_resolve(data_file, base_dir) if data_file else None,
        values={str(k): str(v) for k, v in _as_mapping(data.get("values"), "values").items()},
        total=int(total) if total is not None else None,
    )


def _parse_unit(data: Any, index: int, base_dir: Path) -> FeatureUnit:
    try:
        data = _as_mapping(data, "units")
        specs = _as_items(data.get("specs"), "specs")
        if not specs:
            raise ResultsValidationError("Unit must contain at least the feature spec", field="specs")
        return FeatureUnit(
            specs=tuple(_parse_spec(s, base_dir) for s in specs),
            data_record=_parse_record(data.get("data_record"), base_dir),
        )
    except ResultsValidationError as exc:
        raise ResultsValidationError(exc.message, field=exc.field, unit=index) from exc


def _parse_info(data: Any) -> RunInfo:
    data = _as_mapping(data, "info")
    info = RunInfo(
        started_at=_parse_datetime(data.get("started_at"), "started_at"),
        finished_at=_parse_datetime(data.get("finished_at"), "finished_at"),
    )
    if data.get("name"):
        info.name = str(data["name"])
    if data.get("version"):
        info.version = str(data["version"])
    return info


def parse_results(data: Any, base_dir: Path) -> EvaluatedRun:
    """Parse an evaluated run payload; relative attachment paths resolve against base_dir."""
    if not isinstance(data, dict):
        raise ResultsLoadError("Results payload must be a mapping")
    units = _as_items(data.get("units"), "units")
    return EvaluatedRun(
        info=_parse_info(data.get("info")),
        units=[_parse_unit(u, i, base_dir) for i, u in enumerate(units, start=1)],
    )


def load_results_file(path: Path) -> EvaluatedRun:
    """Load a single results file (YAML or JSON)."""
    try:
        raw = path.read_text(encoding="utf-8")
        if path.suffix.lower() in {".yml", ".yaml"}:
            data = yaml.safe_load(raw)
        else:
            data = json.loads(raw)
        return parse_results(data, base_dir=path.parent)
    except ResultsValidationError:
        raise
    except ResultsLoadError as exc:
        if exc.file_path:
            raise
        raise ResultsLoadError(exc.message, file_path=str(path)) from exc
    except Exception as exc:
        raise ResultsLoadError(f"Failed to load results file: {exc}", file_path=str(path)) from exc


def discover_results(results_path: Path) -> EvaluatedRun:
    """
    Load evaluated results from a file or every results file in a directory.

    Args:
        results_path: A YAML/JSON results file, or a directory of them

    Returns:
        A single run combining all loaded files, in file name order
    """
    results_path = results_path.expanduser()

    if not results_path.exists():
        raise ResultsLoadError(f"Results path does not exist: {results_path}")

    if results_path.is_file():
        return load_results_file(results_path)

    files = sorted(p for p in results_path.iterdir() if p.suffix.lower() in RESULT_SUFFIXES)
    return EvaluatedRun.merge(load_results_file(p) for p in files)


def validate_results(data: Any) -> List[str]:
    """
    Validate results data without loading.

    Returns list of validation errors (empty if valid).
    """
    if not isinstance(data, dict):
        return ["Results must be a dictionary/mapping"]

    errors = []
    units = data.get("units")
    if units is None:
        errors.append("Missing required field: units")
        return errors
    if not isinstance(units, list):
        return ["units must be a list"]

    for index, unit in enumerate(units, start=1):
        if not isinstance(unit, dict):
            errors.append(f"unit {index}: must be a mapping")
            continue
        specs = unit.get("specs")
        if not specs or not isinstance(specs, list):
            errors.append(f"unit {index}: specs must be a non-empty list")
        else:
            for spec_index, spec in enumerate(specs, start=1):
                if not isinstance(spec, dict) or not (spec.get("name") or spec.get("feature")):
                    errors.append(f"unit {index}: spec {spec_index} is missing a name")
        record = unit.get("data_record")
        if record is not None:
            number = record.get("number") if isinstance(record, dict) else None
            try:
                if int(number) < 1:
                    errors.append(f"unit {index}: data_record.number must be at least 1")
            except (TypeError, ValueError):
                errors.append(f"unit {index}: data_record.number must be an integer")

    return errors
