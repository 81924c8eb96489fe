"""Typed objects for evaluated feature specs and report results."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

if TYPE_CHECKING:
    from reporters.formats import ReportFormat


REPORTER_NAME = "specreport"
REPORTER_VERSION = "0.1.0"


class EvalStatus(str, Enum):
    """Outcome of an evaluated step, scenario or spec."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    PENDING = "pending"
    LOADED = "loaded"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def aggregate(cls, statuses: Iterable["EvalStatus"]) -> "EvalStatus":
        """Return the most severe status, or LOADED when there is nothing to aggregate."""
        return max(statuses, key=lambda s: s.severity, default=cls.LOADED)


_SEVERITY = {
    EvalStatus.LOADED: 0,
    EvalStatus.PASSED: 1,
    EvalStatus.SKIPPED: 2,
    EvalStatus.PENDING: 3,
    EvalStatus.FAILED: 4,
}


@dataclass(frozen=True)
class Attachment:
    """File captured by a step during execution."""

    name: str
    path: Path


@dataclass(frozen=True)
class Step:
    """Single evaluated step."""

    keyword: str
    text: str
    status: EvalStatus = EvalStatus.PASSED
    duration_ms: float = 0.0
    error_message: Optional[str] = None
    attachments: Tuple[Attachment, ...] = ()

    @property
    def expression(self) -> str:
        return f"{self.keyword} {self.text}"


@dataclass(frozen=True)
class Scenario:
    """Evaluated scenario: an ordered sequence of steps."""

    name: str
    steps: Tuple[Step, ...] = ()
    tags: Tuple[str, ...] = ()
    description: Optional[str] = None

    @property
    def status(self) -> EvalStatus:
        return EvalStatus.aggregate(step.status for step in self.steps)

    @property
    def duration_ms(self) -> float:
        return sum(step.duration_ms for step in self.steps)

    @property
    def attachments(self) -> List[Attachment]:
        return [att for step in self.steps for att in step.attachments]

    @property
    def failed_step(self) -> Optional[Step]:
        return next((s for s in self.steps if s.status == EvalStatus.FAILED), None)


@dataclass(frozen=True)
class FeatureSpec:
    """
    Evaluated unit of test content.

    The first spec of a chain is the feature; the rest are the support
    (meta) specs it loaded.
    """

    name: str
    scenarios: Tuple[Scenario, ...] = ()
    source_file: Optional[Path] = None
    description: Optional[str] = None
    tags: Tuple[str, ...] = ()

    @property
    def status(self) -> EvalStatus:
        return EvalStatus.aggregate(sc.status for sc in self.scenarios)

    @property
    def duration_ms(self) -> float:
        return sum(sc.duration_ms for sc in self.scenarios)

    @property
    def steps(self) -> List[Step]:
        return [step for sc in self.scenarios for step in sc.steps]

    @property
    def attachments(self) -> List[Attachment]:
        return [att for sc in self.scenarios for att in sc.attachments]

    @property
    def report_name(self) -> str:
        """Base name of this spec's report files and feature directory, unique per source file or name."""
        from reporters.naming import safe_name
        if self.source_file is not None:
            return safe_name(self.source_file.name)
        return safe_name(self.name)

    @property
    def report_stem(self) -> str:
        if self.source_file is not None:
            return self.source_file.stem
        return self.report_name


@dataclass(frozen=True)
class DataRecord:
    """One row of a data-driven run."""

    number: int
    data_file: Optional[Path] = None
    values: Dict[str, str] = field(default_factory=dict)
    total: Optional[int] = None

    def __post_init__(self) -> None:
        if self.number < 1:
            raise ValueError(f"Data record numbers are 1-based, got {self.number}")

    def __hash__(self) -> int:
        return hash((self.number, self.data_file))


@dataclass(frozen=True)
class FeatureUnit:
    """A feature's evaluated spec chain plus its optional data record."""

    specs: Tuple[FeatureSpec, ...]
    data_record: Optional[DataRecord] = None

    def __post_init__(self) -> None:
        if not self.specs:
            raise ValueError("A feature unit needs at least the feature spec")

    @property
    def feature(self) -> FeatureSpec:
        return self.specs[0]

    @property
    def support_specs(self) -> Tuple[FeatureSpec, ...]:
        return self.specs[1:]

    @property
    def label(self) -> str:
        if self.data_record is None:
            return self.feature.name
        return f"{self.feature.name} [record {self.data_record.number}]"


@dataclass
class ReportResult:
    """Outcome of rendering one spec across formats."""

    spec: FeatureSpec
    report_files: Dict["ReportFormat", Path] = field(default_factory=dict)
    support_results: List["ReportResult"] = field(default_factory=list)
    support: bool = False
    sequence: Optional[int] = None

    def report_file(self, report_format: "ReportFormat") -> Optional[Path]:
        return self.report_files.get(report_format)


@dataclass
class SummaryLine:
    """One evaluated unit as listed in the run summary."""

    spec: FeatureSpec
    data_record: Optional[DataRecord] = None
    report_files: Dict["ReportFormat", Path] = field(default_factory=dict)

    @property
    def status(self) -> EvalStatus:
        return self.spec.status

    @property
    def duration_ms(self) -> float:
        return self.spec.duration_ms

    @classmethod
    def for_unit(cls, unit: FeatureUnit) -> "SummaryLine":
        return cls(spec=unit.feature, data_record=unit.data_record)


@dataclass
class RunSummary:
    """Aggregated results for a whole run."""

    lines: List[SummaryLine] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def total(self) -> int:
        return len(self.lines)

    @property
    def passed(self) -> int:
        return sum(1 for line in self.lines if line.status == EvalStatus.PASSED)

    @property
    def failed(self) -> int:
        return sum(1 for line in self.lines if line.status == EvalStatus.FAILED)

    @property
    def status(self) -> EvalStatus:
        return EvalStatus.aggregate(line.status for line in self.lines)

    @property
    def status_counts(self) -> Dict[EvalStatus, int]:
        counts: Dict[EvalStatus, int] = {}
        for line in self.lines:
            counts[line.status] = counts.get(line.status, 0) + 1
        return counts

    @property
    def scenario_count(self) -> int:
        return sum(len(line.spec.scenarios) for line in self.lines)

    @property
    def step_count(self) -> int:
        return sum(len(line.spec.steps) for line in self.lines)

    @property
    def pass_rate(self) -> float:
        return (self.passed / self.total * 100) if self.total else 0.0

    @property
    def duration_ms(self) -> float:
        return sum(line.duration_ms for line in self.lines)


@dataclass
class RunInfo:
    """Identity of the reporting implementation and timing of the run."""

    name: str = REPORTER_NAME
    version: str = REPORTER_VERSION
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return max(0.0, (self.finished_at - self.started_at).total_seconds())


@dataclass
class EvaluatedRun:
    """Everything the execution engine produced for one run."""

    info: RunInfo = field(default_factory=RunInfo)
    units: List[FeatureUnit] = field(default_factory=list)

    @classmethod
    def merge(cls, runs: Iterable["EvaluatedRun"]) -> "EvaluatedRun":
        """Combine several runs; the first run's info wins, timing spans all of them."""
        runs = list(runs)
        if not runs:
            return cls()
        starts = [r.info.started_at for r in runs if r.info.started_at]
        ends = [r.info.finished_at for r in runs if r.info.finished_at]
        info = RunInfo(
            name=runs[0].info.name,
            version=runs[0].info.version,
            started_at=min(starts) if starts else None,
            finished_at=max(ends) if ends else None,
        )
        return cls(info=info, units=[unit for r in runs for unit in r.units])

    def with_record_totals(self) -> "EvaluatedRun":
        """
        Fill in missing data record totals from the run itself.

        Records of the same data file share one total, the highest record
        number seen for that file, so their encoded numbers have one width.
        """
        highest: Dict[Optional[Path], int] = {}
        for unit in self.units:
            record = unit.data_record
            if record is not None:
                highest[record.data_file] = max(highest.get(record.data_file, 0), record.number)

        units = []
        for unit in self.units:
            record = unit.data_record
            if record is not None and record.total is None:
                unit = replace(unit, data_record=replace(record, total=highest[record.data_file]))
            units.append(unit)
        return EvaluatedRun(info=self.info, units=units)
