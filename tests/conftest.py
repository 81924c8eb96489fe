"""Pytest fixtures for specreport tests."""
from __future__ import annotations

import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

import pytest

from config import ReportingConfig
from reporters import ReportFormat
from spec_types import (
    Attachment,
    DataRecord,
    EvalStatus,
    FeatureSpec,
    FeatureUnit,
    RunInfo,
    Scenario,
    Step,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer environment variables out of config defaults."""
    monkeypatch.delenv("SPECREPORT_REPORT_DIR", raising=False)
    monkeypatch.delenv("SPECREPORT_FORMATS", raising=False)


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def screenshot_file(temp_dir: Path) -> Path:
    """An attachment produced by a step."""
    source = temp_dir / "engine" / "screenshot.png"
    source.parent.mkdir(parents=True)
    source.write_bytes(b"fake_png_data")
    return source


@pytest.fixture
def feature_spec(screenshot_file: Path) -> FeatureSpec:
    """A feature with a passing and a failing scenario."""
    return FeatureSpec(
        name="User login",
        source_file=Path("features/auth/login.feature"),
        description="Users can sign in",
        tags=("@smoke",),
        scenarios=(
            Scenario(
                name="Valid credentials",
                steps=(
                    Step("Given", "I am on the login page", duration_ms=120.0),
                    Step(
                        "When",
                        "I sign in as alice",
                        duration_ms=850.0,
                        attachments=(Attachment("Screenshot", screenshot_file),),
                    ),
                    Step("Then", "the dashboard is shown", duration_ms=40.0),
                ),
            ),
            Scenario(
                name="Wrong password",
                steps=(
                    Step("Given", "I am on the login page", duration_ms=100.0),
                    Step(
                        "Then",
                        "an error is shown",
                        status=EvalStatus.FAILED,
                        duration_ms=30.0,
                        error_message="Expected error banner but found none",
                    ),
                ),
            ),
        ),
    )


@pytest.fixture
def support_specs() -> List[FeatureSpec]:
    """Support specs loaded by the feature, in dependency order."""
    return [
        FeatureSpec(
            name="Login steps",
            source_file=Path("features/auth/login.meta"),
            scenarios=(
                Scenario(
                    name="I sign in as <user>",
                    steps=(Step("Given", "the user is <user>", status=EvalStatus.LOADED),),
                ),
            ),
        ),
        FeatureSpec(
            name="Common steps",
            source_file=Path("features/common.meta"),
            scenarios=(
                Scenario(
                    name="I am on the <page> page",
                    steps=(Step("Given", "I navigate to <page>", status=EvalStatus.LOADED),),
                ),
            ),
        ),
    ]


@pytest.fixture
def feature_unit(feature_spec: FeatureSpec, support_specs: List[FeatureSpec]) -> FeatureUnit:
    return FeatureUnit(specs=(feature_spec, *support_specs))


@pytest.fixture
def data_record() -> DataRecord:
    return DataRecord(number=7, data_file=Path("data/users.csv"), values={"user": "alice"})


@pytest.fixture
def run_info() -> RunInfo:
    return RunInfo(
        started_at=datetime(2024, 1, 1, 10, 0, 0),
        finished_at=datetime(2024, 1, 1, 10, 0, 30),
    )


@pytest.fixture
def report_dir(temp_dir: Path) -> Path:
    return temp_dir / "reports"


@pytest.fixture
def reporting_config(report_dir: Path) -> ReportingConfig:
    return ReportingConfig(report_dir=report_dir, report_formats=[ReportFormat.HTML])


@pytest.fixture
def sample_results() -> Dict[str, Any]:
    """Evaluated run payload as dumped by an execution engine."""
    return {
        "info": {
            "name": "gwen",
            "version": "1.0.0",
            "started_at": "2024-01-01T10:00:00",
            "finished_at": "2024-01-01T10:00:30",
        },
        "units": [
            {
                "specs": [
                    {
                        "name": "User login",
                        "source_file": "features/auth/login.feature",
                        "tags": ["@smoke"],
                        "scenarios": [
                            {
                                "name": "Valid credentials",
                                "steps": [
                                    {"keyword": "Given", "text": "I am on the login page", "duration_ms": 120},
                                    {
                                        "keyword": "Then",
                                        "text": "the dashboard is shown",
                                        "status": "failed",
                                        "error_message": "Dashboard not found",
                                        "attachments": [{"name": "Screenshot", "path": "shots/login.png"}],
                                    },
                                ],
                            }
                        ],
                    },
                    {
                        "name": "Login steps",
                        "source_file": "features/auth/login.meta",
                        "scenarios": [],
                    },
                ],
            },
            {
                "data_record": {"number": 2, "data_file": "data/users.csv", "values": {"user": "bob"}},
                "specs": [{"name": "Search", "source_file": "features/search.feature"}],
            },
        ],
    }
