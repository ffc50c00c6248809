"""Pytest configuration and fixtures."""

import json
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from tsheets_report.config import Config
from tsheets_report.report.directory import JobcodeDirectory
from tsheets_report.tsheets import (
    File,
    JobCode,
    Project,
    ProjectNote,
    ProjectNotesBatch,
    ProjectReportTotals,
    Timesheet,
    TimesheetBatch,
    TokenStore,
    User,
)
from tsheets_report.tsheets.client import TSheetsClient
from tsheets_report.utils import StorageManager


def make_jobcode(jobcode_id: int, name: str, parent_id: int = 0, **kwargs: Any) -> JobCode:
    """Build a job code; parent_id 0 means top level."""
    return JobCode(id=jobcode_id, name=name, parent_id=parent_id, **kwargs)


def make_timesheet(
    timesheet_id: int,
    user_id: int = 1,
    jobcode_id: int = 1030,
    day: str = "2025-12-18",
    duration: int = 8 * 3600,
    **kwargs: Any,
) -> Timesheet:
    """Build a timesheet record as the API would return it."""
    return Timesheet(
        id=timesheet_id,
        user_id=user_id,
        jobcode_id=jobcode_id,
        date=day,
        duration=duration,
        **kwargs,
    )


def token_payload(expires_in: timedelta = timedelta(hours=1), **overrides: Any) -> dict[str, Any]:
    """Token JSON in the shape the authorization script writes."""
    expires = datetime.now(timezone.utc) + expires_in
    payload: dict[str, Any] = {
        "accessToken": "test_access_token",
        "refreshToken": "test_refresh_token",
        "expiresAt": int(expires.timestamp() * 1000),
        "userId": "42",
        "companyId": "7",
        "clientUrl": "https://example.tsheets.com",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def temp_config_dir() -> Path:
    """Create a temporary configuration directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def storage_manager(temp_config_dir: Path) -> StorageManager:
    """Create a storage manager with temporary directory."""
    return StorageManager(temp_config_dir)


@pytest.fixture
def config(temp_config_dir: Path) -> Config:
    """Create a config instance with temporary directory."""
    return Config(temp_config_dir)


@pytest.fixture
def token_file(temp_config_dir: Path) -> Path:
    """Write a valid token file and return its path."""
    path = temp_config_dir / "tokens.json"
    path.write_text(json.dumps(token_payload()))
    return path


@pytest.fixture
def token_store(token_file: Path) -> TokenStore:
    """Token store backed by a valid token file."""
    return TokenStore(token_file)


@pytest.fixture
def mmc_jobcodes() -> list[JobCode]:
    """MMC project with a general labor task beneath it."""
    return [
        make_jobcode(25839, "MMC"),
        make_jobcode(1030, "GENERAL LABOR", parent_id=25839),
    ]


@pytest.fixture
def nested_jobcodes() -> list[JobCode]:
    """Three-level tree plus an unrelated root."""
    return [
        make_jobcode(1, "Root"),
        make_jobcode(2, "Mid", parent_id=1),
        make_jobcode(3, "Leaf", parent_id=2),
        make_jobcode(9, "Other"),
    ]


@pytest.fixture
def mmc_directory(mmc_jobcodes: list[JobCode]) -> JobcodeDirectory:
    """Directory holding the MMC tree."""
    return JobcodeDirectory(mmc_jobcodes)


@pytest.fixture
def alice() -> User:
    """Create a sample user."""
    return User(id=1, first_name="Alice", last_name="Smith")


@pytest.fixture
def bob() -> User:
    """Create a second sample user."""
    return User(id=2, first_name="Bob", last_name="Jones")


@pytest.fixture
def photo() -> File:
    """Create a sample file attachment."""
    return File(id=500, file_name="site.jpg", file_size=1024)


@pytest.fixture
def mmc_project() -> Project:
    """Project record for the MMC job code."""
    return Project(id=77, jobcode_id=25839, name="MMC", status="in_progress")


@pytest.fixture
def mmc_notes(alice: User, photo: File) -> ProjectNotesBatch:
    """Two notes: an older one by Alice with a photo, a newer one by an unknown user."""
    return ProjectNotesBatch(
        notes=[
            ProjectNote(
                id=1,
                user_id=1,
                note="Footings poured",
                files=[500],
                created="2025-12-18T10:00:00+00:00",
            ),
            ProjectNote(
                id=2,
                user_id=3,
                note="Inspection passed",
                files=[999],
                created="2025-12-19T09:00:00+00:00",
            ),
        ],
        supplemental_users={1: alice},
        supplemental_files={500: photo},
    )


@pytest.fixture
def mock_client(
    mmc_jobcodes: list[JobCode],
    alice: User,
    bob: User,
    photo: File,
    mmc_project: Project,
    mmc_notes: ProjectNotesBatch,
) -> MagicMock:
    """Mock TSheetsClient serving the MMC tree, two timesheets and the MMC project."""
    client = MagicMock(spec=TSheetsClient)
    client.get_jobcodes = AsyncMock(return_value={jc.id: jc for jc in mmc_jobcodes})
    client.get_jobcodes_by_id = AsyncMock(return_value={})
    client.get_timesheets = AsyncMock(
        return_value=TimesheetBatch(
            entries=[
                make_timesheet(101, user_id=2, day="2025-12-19", attached_files=[500]),
                make_timesheet(100, user_id=1, day="2025-12-18", notes="Framing"),
            ],
            supplemental_users={1: alice},
        )
    )
    client.get_users = AsyncMock(return_value={2: bob})
    client.get_files = AsyncMock(return_value={500: photo})
    client.get_projects = AsyncMock(return_value={77: mmc_project})
    client.get_project_notes = AsyncMock(return_value=mmc_notes)
    client.get_project_report = AsyncMock(
        return_value=ProjectReportTotals(
            start_date="2025-12-18",
            end_date="2025-12-24",
            user_totals={1: 8.0, 2: 8.0},
            jobcode_totals={1030: 16.0},
            supplemental_users={1: alice, 2: bob},
            supplemental_jobcodes={1030: mmc_jobcodes[1]},
        )
    )
    return client
