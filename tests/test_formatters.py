"""Tests for report formatters."""

import csv
import io
import json
from datetime import date

import pytest

from tsheets_report.report.aggregator import ShiftReport, aggregate
from tsheets_report.report.formatters import ExportFormat, format_report
from tsheets_report.report.pipeline import EnrichedTimesheet
from tsheets_report.tsheets.models import User


@pytest.fixture
def report() -> ShiftReport:
    """A two-day report with one note containing a comma and quotes."""
    entries = [
        EnrichedTimesheet(
            id=1,
            user_id=1,
            jobcode_id=1030,
            date="2025-12-18",
            duration=8 * 3600,
            notes='Framing, "east" wall',
            user=User(id=1, first_name="Alice", last_name="Smith"),
            job_path="MMC › GENERAL LABOR",
        ),
        EnrichedTimesheet(
            id=2,
            user_id=2,
            jobcode_id=1030,
            date="2025-12-19",
            duration=4 * 3600 + 15 * 60,
            user=User(id=2, first_name="Bob", last_name="Jones"),
            job_path="MMC › GENERAL LABOR",
        ),
    ]
    return aggregate(
        entries, job_name="MMC", start_date=date(2025, 12, 18), end_date=date(2025, 12, 24)
    )


class TestFormatReport:
    """Test format_report()."""

    def test_text(self, report: ShiftReport) -> None:
        """Test the plain text layout."""
        text = format_report(report, ExportFormat.TEXT)

        assert text.startswith("JOB: MMC\nDATE RANGE: 2025-12-18 - 2025-12-24\nTOTAL HOURS: 12.25")
        assert "DATE: 2025-12-18" in text
        assert "Alice Smith - 8.00 hrs" in text
        assert '  Notes: Framing, "east" wall' in text
        assert text.endswith("Alice Smith: 8.00 hours\nBob Jones: 4.25 hours")

    def test_markdown(self, report: ShiftReport) -> None:
        """Test the markdown layout."""
        markdown = format_report(report, "markdown")

        assert markdown.startswith("# MMC\n")
        assert "**Total Entries:** 2" in markdown
        assert "### 2025-12-19" in markdown
        assert "- **Bob Jones** - 4.25 hrs" in markdown
        assert "- **Alice Smith:** 8.00 hours" in markdown

    def test_csv(self, report: ShiftReport) -> None:
        """Test that CSV rows are quoted and parse back to the entries."""
        text = format_report(report, ExportFormat.CSV)
        rows = list(csv.reader(io.StringIO(text)))

        assert text.splitlines()[0] == '"Date","Employee","Job","Hours","Notes"'
        assert rows[1] == [
            "2025-12-18",
            "Alice Smith",
            "MMC › GENERAL LABOR",
            "8.00",
            'Framing, "east" wall',
        ]
        assert rows[2][4] == ""
        assert len(rows) == 3

    def test_json(self, report: ShiftReport) -> None:
        """Test that JSON uses camelCase keys."""
        data = json.loads(format_report(report, ExportFormat.JSON))

        assert data["totalHours"] == 12.25
        assert data["totalEntries"] == 2
        assert [s["name"] for s in data["employeeSummaries"]] == ["Alice Smith", "Bob Jones"]
        assert data["entries"][1]["decimalHours"] == "4.25"

    def test_empty_report(self) -> None:
        """Test rendering a report with no entries."""
        text = format_report(ShiftReport(), ExportFormat.TEXT)

        assert "TOTAL HOURS: 0.00" in text
        assert "EMPLOYEE SUMMARIES" in text

    def test_unsupported_format(self, report: ShiftReport) -> None:
        """Test that unknown formats are rejected."""
        with pytest.raises(ValueError):
            format_report(report, "docx")
