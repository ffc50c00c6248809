"""Tests for project summaries, notes and details."""

import asyncio
from datetime import date
from unittest.mock import MagicMock

import pytest

from conftest import make_jobcode
from tsheets_report.errors import AmbiguousProjectError, ReportError
from tsheets_report.report.projects import (
    NO_PROJECT_MESSAGE,
    build_note_views,
    summarize_totals,
)
from tsheets_report.report.service import ReportService
from tsheets_report.tsheets.models import ProjectNote, ProjectNotesBatch, ProjectReportTotals


class TestSummarizeTotals:
    """Test summarize_totals()."""

    def test_unnamed_ids(self) -> None:
        """Test placeholders for ids without supplemental records."""
        totals = ProjectReportTotals(user_totals={9: 2.0}, jobcode_totals={4: 2.0})

        summary = summarize_totals(totals)

        assert summary.user_totals[0].user_name == "User 9"
        assert summary.jobcode_totals[0].jobcode_name == "Jobcode 4"

    def test_total_rounded_once(self) -> None:
        """Test that string hours are summed before rounding."""
        totals = ProjectReportTotals(user_totals={"1": "0.333", "2": "0.333", "3": "0.334"})

        summary = summarize_totals(totals)

        assert summary.total_hours == 1.0
        assert [u.hours for u in summary.user_totals] == [0.333, 0.333, 0.334]

    def test_empty_totals_as_list(self) -> None:
        """Test that TSheets' [] for no totals is accepted."""
        totals = ProjectReportTotals(user_totals=[], jobcode_totals=[])

        assert summarize_totals(totals).total_hours == 0


class TestProjectSummary:
    """Test ReportService.project_summary()."""

    def test_all_jobs(self, mock_client: MagicMock) -> None:
        """Test named per-employee and per-job code totals."""
        summary = asyncio.run(
            ReportService(mock_client).project_summary("2025-12-18", "2025-12-24")
        )

        assert summary.job_name == "All Jobs"
        assert [(u.user_name, u.hours) for u in summary.user_totals] == [
            ("Alice Smith", 8.0),
            ("Bob Jones", 8.0),
        ]
        assert [(j.jobcode_name, j.hours) for j in summary.jobcode_totals] == [
            ("GENERAL LABOR", 16.0)
        ]
        assert summary.total_hours == 16.0
        _, kwargs = mock_client.get_project_report.call_args
        assert kwargs["jobcode_ids"] is None
        mock_client.get_jobcodes.assert_not_awaited()

    def test_project_includes_children(self, mock_client: MagicMock) -> None:
        """Test that a parent job code asks for its sub-jobs' totals too."""
        summary = asyncio.run(
            ReportService(mock_client).project_summary("2025-12-18", "2025-12-24", project="MMC")
        )

        assert summary.job_name == "MMC"
        args, kwargs = mock_client.get_project_report.call_args
        assert args == (date(2025, 12, 18), date(2025, 12, 24))
        assert kwargs["jobcode_ids"] == {25839, 1030}

    def test_unknown_project(self, mock_client: MagicMock) -> None:
        """Test that an unmatched project says so without fetching totals."""
        summary = asyncio.run(
            ReportService(mock_client).project_summary("2025-12-18", project="nope")
        )

        assert summary.message == "No jobcode found matching: nope"
        assert summary.user_totals == []
        mock_client.get_project_report.assert_not_awaited()

    def test_camel_case(self, mock_client: MagicMock) -> None:
        """Test the serialized shape."""
        summary = asyncio.run(ReportService(mock_client).project_summary("2025-12-18"))

        data = summary.model_dump(mode="json", by_alias=True)

        assert data["totalHours"] == 16.0
        assert data["userTotals"][0] == {"userId": 1, "userName": "Alice Smith", "hours": 8.0}
        assert data["jobcodeTotals"][0]["jobcodeId"] == 1030


class TestBuildNoteViews:
    """Test build_note_views()."""

    def test_undated_notes_last(self) -> None:
        """Test newest-first order with undated notes at the end."""
        batch = ProjectNotesBatch(
            notes=[
                ProjectNote(id=3, user_id=1, note="undated", created=""),
                ProjectNote(id=1, user_id=1, note="old", created="2025-01-01T00:00:00Z"),
                ProjectNote(id=2, user_id=1, note="new", created="2025-02-01T00:00:00Z"),
            ]
        )

        assert [view.note for view in build_note_views(batch)] == ["new", "old", "undated"]


class TestProjectNotes:
    """Test ReportService.project_notes()."""

    def test_by_jobcode(self, mock_client: MagicMock) -> None:
        """Test notes for the project behind a job code."""
        result = asyncio.run(ReportService(mock_client).project_notes(jobcode_id=25839))

        mock_client.get_projects.assert_awaited_once_with(jobcode_ids=[25839])
        mock_client.get_project_notes.assert_awaited_once_with(77)
        assert result.project.name == "MMC"
        assert result.jobcode.full_path == "MMC"
        assert [n.id for n in result.notes] == [2, 1]
        assert result.total_notes == 2
        assert result.total_files == 2

    def test_authors_and_files(self, mock_client: MagicMock) -> None:
        """Test that authors and files come from supplemental data, with placeholders."""
        result = asyncio.run(ReportService(mock_client).project_notes(project_id=77))

        newest, oldest = result.notes
        assert newest.created_by.name == "User 3"
        assert newest.files[0].file_name == "(unknown)"
        assert oldest.created_by.name == "Alice Smith"
        assert oldest.files[0].file_name == "site.jpg"
        assert oldest.files[0].size == 1024
        mock_client.get_projects.assert_awaited_once_with(ids=[77])

    def test_jobcode_without_project(self, mock_client: MagicMock) -> None:
        """Test the message for a job code that has no project."""
        mock_client.get_projects.return_value = {}

        result = asyncio.run(ReportService(mock_client).project_notes(jobcode_id=1030))

        assert result.notes == []
        assert result.jobcode.full_path == "MMC › GENERAL LABOR"
        assert result.message == (
            "Jobcode 1030 has no associated project. Project notes are not available."
        )
        mock_client.get_project_notes.assert_not_awaited()

    def test_requires_an_id(self, mock_client: MagicMock) -> None:
        """Test that one of the ids must be given."""
        with pytest.raises(ReportError, match="project_id or jobcode_id"):
            asyncio.run(ReportService(mock_client).project_notes())


class TestProjectDetails:
    """Test ReportService.project_details()."""

    def test_by_name(self, mock_client: MagicMock) -> None:
        """Test details for a uniquely named job code."""
        details = asyncio.run(ReportService(mock_client).project_details(project="general"))

        assert details.found
        assert details.jobcode.id == 1030
        assert details.jobcode.full_path == "MMC › GENERAL LABOR"
        assert details.project.status == "in_progress"
        assert [(n.author, n.file_count) for n in details.notes] == [
            ("User 3", 1),
            ("Alice Smith", 1),
        ]
        assert details.total_files == 2
        mock_client.get_projects.assert_awaited_once_with(jobcode_ids=[1030])

    def test_several_matches(self, mock_client: MagicMock) -> None:
        """Test that a name matching several job codes lists the ids."""
        mock_client.get_jobcodes.return_value = {
            1: make_jobcode(1, "Labor East"),
            2: make_jobcode(2, "Labor West"),
        }

        with pytest.raises(AmbiguousProjectError, match="Please specify one by ID: 1: Labor East"):
            asyncio.run(ReportService(mock_client).project_details(project="labor"))

    def test_not_found(self, mock_client: MagicMock) -> None:
        """Test the message for an unmatched name."""
        details = asyncio.run(ReportService(mock_client).project_details(project="nope"))

        assert not details.found
        assert details.message == "No jobcode found matching: nope"
        mock_client.get_projects.assert_not_awaited()

    def test_without_project(self, mock_client: MagicMock) -> None:
        """Test a job code that has no project record."""
        mock_client.get_projects.return_value = {}

        details = asyncio.run(ReportService(mock_client).project_details(jobcode_id=25839))

        assert details.jobcode.id == 25839
        assert details.project is None
        assert details.message == NO_PROJECT_MESSAGE

    def test_requires_a_reference(self, mock_client: MagicMock) -> None:
        """Test that a job code id or name must be given."""
        with pytest.raises(ReportError):
            asyncio.run(ReportService(mock_client).project_details())
