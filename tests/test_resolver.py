"""Tests for project resolution and job code search."""

import pytest

from conftest import make_jobcode
from tsheets_report.report.directory import JobcodeDirectory
from tsheets_report.report.resolver import (
    Ambiguous,
    Matched,
    NoFilter,
    NotFound,
    ProjectReference,
    resolve,
    search_jobcodes,
)


@pytest.fixture
def directory() -> JobcodeDirectory:
    """Two projects that share the word 'Labor', one inactive task."""
    return JobcodeDirectory(
        [
            make_jobcode(25839, "MMC", short_code="25839-A"),
            make_jobcode(1030, "GENERAL LABOR", parent_id=25839),
            make_jobcode(1031, "Concrete", parent_id=1030),
            make_jobcode(400, "Harbor Labor Pool"),
            make_jobcode(401, "Old Task", parent_id=400, active=False),
        ]
    )


class TestProjectReference:
    """Test ProjectReference helpers."""

    def test_empty(self) -> None:
        """Test references that carry nothing."""
        assert ProjectReference().is_empty
        assert ProjectReference(name="   ").is_empty
        assert not ProjectReference(jobcode_id=5).is_empty

    def test_str_prefers_name(self) -> None:
        """Test the display form."""
        assert str(ProjectReference(jobcode_id=5, name=" MMC ")) == "MMC"
        assert str(ProjectReference(jobcode_id=5)) == "5"


class TestResolve:
    """Test resolve()."""

    def test_no_reference(self, directory: JobcodeDirectory) -> None:
        """Test that no reference means no filter."""
        assert isinstance(resolve(None, directory), NoFilter)
        assert isinstance(resolve(ProjectReference(name=""), directory), NoFilter)

    def test_numeric_text_includes_descendants(self, directory: JobcodeDirectory) -> None:
        """Test that a parent id picks up every job code beneath it."""
        resolved = resolve(ProjectReference(name="25839"), directory)

        assert isinstance(resolved, Matched)
        assert resolved.ids == {25839, 1030, 1031}
        assert resolved.display_name == "MMC 25839-A"

    def test_direct_id(self, directory: JobcodeDirectory) -> None:
        """Test a jobcode_id reference."""
        resolved = resolve(ProjectReference(jobcode_id=1030), directory)

        assert isinstance(resolved, Matched)
        assert resolved.ids == {1030, 1031}

    def test_direct_id_wins_over_name(self, directory: JobcodeDirectory) -> None:
        """Test that a known id is used even when a name is also given."""
        resolved = resolve(ProjectReference(jobcode_id=400, name="MMC"), directory)

        assert isinstance(resolved, Matched)
        assert resolved.ids == {400, 401}

    def test_unknown_id_falls_back_to_name(self, directory: JobcodeDirectory) -> None:
        """Test that an unknown id does not hide a valid name."""
        resolved = resolve(ProjectReference(jobcode_id=999, name="concrete"), directory)

        assert isinstance(resolved, Matched)
        assert resolved.ids == {1031}

    def test_name_is_case_insensitive(self, directory: JobcodeDirectory) -> None:
        """Test a substring match ignoring case."""
        resolved = resolve(ProjectReference(name="general"), directory)

        assert isinstance(resolved, Matched)
        assert resolved.ids == {1030, 1031}

    def test_short_code_match(self, directory: JobcodeDirectory) -> None:
        """Test that short codes are searched."""
        resolved = resolve(ProjectReference(name="25839-a"), directory)

        assert isinstance(resolved, Matched)
        assert 25839 in resolved.ids

    def test_multiple_matches_combined(self, directory: JobcodeDirectory) -> None:
        """Test that several name matches are all included by default."""
        resolved = resolve(ProjectReference(name="labor"), directory)

        assert isinstance(resolved, Matched)
        assert resolved.ids == {1030, 1031, 400, 401}
        assert [m.id for m in resolved.matches] == [400, 1030]

    def test_multiple_matches_ambiguous_when_single_required(
        self, directory: JobcodeDirectory
    ) -> None:
        """Test that require_single surfaces every candidate."""
        resolved = resolve(ProjectReference(name="labor"), directory, require_single=True)

        assert isinstance(resolved, Ambiguous)
        assert [c.full_path for c in resolved.candidates] == [
            "Harbor Labor Pool",
            "MMC 25839-A › GENERAL LABOR",
        ]

    def test_single_match_with_require_single(self, directory: JobcodeDirectory) -> None:
        """Test that one match is still resolved."""
        resolved = resolve(ProjectReference(name="concrete"), directory, require_single=True)

        assert isinstance(resolved, Matched)

    def test_not_found(self, directory: JobcodeDirectory) -> None:
        """Test a reference that matches nothing."""
        resolved = resolve(ProjectReference(name="nonexistent"), directory)

        assert isinstance(resolved, NotFound)
        assert str(resolved.reference) == "nonexistent"


class TestSearchJobcodes:
    """Test search_jobcodes()."""

    def test_all_sorted_by_path(self, directory: JobcodeDirectory) -> None:
        """Test that an empty search returns everything ordered by path."""
        results = search_jobcodes(directory)

        assert [r.id for r in results] == [400, 401, 25839, 1030, 1031]

    def test_matches_path(self, directory: JobcodeDirectory) -> None:
        """Test that ancestors' names match through the full path."""
        results = search_jobcodes(directory, search="mmc")

        assert {r.id for r in results} == {25839, 1030, 1031}
        assert results[-1].full_path == "MMC 25839-A › GENERAL LABOR › Concrete"

    def test_exact_id(self, directory: JobcodeDirectory) -> None:
        """Test searching by id."""
        results = search_jobcodes(directory, search="401")

        assert [r.id for r in results] == [401]

    def test_active_filter(self, directory: JobcodeDirectory) -> None:
        """Test filtering by active flag."""
        inactive = search_jobcodes(directory, active="no")
        active = search_jobcodes(directory, search="harbor", active="yes")

        assert [r.id for r in inactive] == [401]
        assert [r.id for r in active] == [400]
