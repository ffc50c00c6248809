"""Resolve user supplied project references to sets of job code ids."""

import logging
from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel

from tsheets_report.report.directory import JobcodeDirectory
from tsheets_report.report.hierarchy import build_path
from tsheets_report.tsheets.models import JobCode, JobCodeType

module_logger = logging.getLogger(__name__)

ActiveFilter = Literal["yes", "no", "both"]


@dataclass(frozen=True)
class ProjectReference:
    """A project as the user named it: a job code id, free text, or both."""

    jobcode_id: int | None = None
    name: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.jobcode_id is None and not (self.name or "").strip()

    def __str__(self) -> str:
        if self.name and self.name.strip():
            return self.name.strip()
        return str(self.jobcode_id) if self.jobcode_id is not None else ""


class JobcodeMatch(BaseModel):
    """A job code together with its full hierarchy path."""

    id: int
    name: str
    short_code: str | None = None
    type: JobCodeType
    active: bool
    parent_id: int | None = None
    has_children: bool
    full_path: str

    @classmethod
    def from_jobcode(cls, jobcode: JobCode, directory: JobcodeDirectory) -> "JobcodeMatch":
        return cls(
            id=jobcode.id,
            name=jobcode.name,
            short_code=jobcode.short_code,
            type=jobcode.type,
            active=jobcode.active,
            parent_id=jobcode.parent_id,
            has_children=jobcode.has_children,
            full_path=build_path(jobcode, directory, logger=directory.logger),
        )


@dataclass(frozen=True)
class NoFilter:
    """No project given: the report spans every job code."""


@dataclass(frozen=True)
class Matched:
    """Matched job codes plus all of their descendants."""

    ids: frozenset[int]
    matches: tuple[JobcodeMatch, ...] = field(default_factory=tuple)

    @property
    def display_name(self) -> str:
        return "; ".join(match.full_path for match in self.matches)


@dataclass(frozen=True)
class NotFound:
    """Nothing matched the reference."""

    reference: ProjectReference


@dataclass(frozen=True)
class Ambiguous:
    """Several job codes matched where the caller required exactly one."""

    reference: ProjectReference
    candidates: tuple[JobcodeMatch, ...]


ResolvedFilter = NoFilter | Matched | NotFound | Ambiguous


def _as_int(text: str) -> int | None:
    try:
        return int(text)
    except ValueError:
        return None


def _matches_text(jobcode: JobCode, needle: str) -> bool:
    if needle in jobcode.name.casefold():
        return True
    return bool(jobcode.short_code) and needle in jobcode.short_code.casefold()


def resolve(
    reference: ProjectReference | None,
    directory: JobcodeDirectory,
    require_single: bool = False,
    logger: logging.Logger | None = None,
) -> ResolvedFilter:
    """Resolve a project reference against the directory.

    A direct id, or free text that is a known id, is a single match. Otherwise
    the text is matched case-insensitively against names and short codes.
    Each match is expanded with all its descendants, because hours are
    usually logged against child tasks of the job the user names.

    Args:
        reference: What the user asked for; None or empty means no filter.
        directory: Loaded job code directory.
        require_single: Report several text matches as Ambiguous instead of
            including all of them.
        logger: Logger for diagnostics. Defaults to the module logger.

    Returns:
        NoFilter, Matched, NotFound or Ambiguous.
    """
    logger = logger or module_logger
    if reference is None or reference.is_empty:
        return NoFilter()

    matches: list[JobCode] = []
    direct = directory.get(reference.jobcode_id)
    text = (reference.name or "").strip()

    if direct is not None:
        matches = [direct]
    elif text:
        numeric = _as_int(text)
        by_id = directory.get(numeric) if numeric is not None else None
        if by_id is not None:
            matches = [by_id]
        else:
            needle = text.casefold()
            matches = sorted(
                (jc for jc in directory if _matches_text(jc, needle)),
                key=lambda jc: jc.id,
            )

    if not matches:
        logger.info(f'No jobcode found matching "{reference}"')
        return NotFound(reference)

    described = tuple(JobcodeMatch.from_jobcode(jc, directory) for jc in matches)
    if require_single and len(matches) > 1:
        logger.info(f'{len(matches)} jobcodes match "{reference}"; caller requires one')
        return Ambiguous(reference, described)

    ids: set[int] = set()
    for jobcode in matches:
        ids.add(jobcode.id)
        ids |= directory.descendants_of(jobcode.id)

    logger.info(
        f'Resolved "{reference}" to {len(matches)} jobcode(s), '
        f"{len(ids)} including descendants"
    )
    return Matched(frozenset(ids), described)


def search_jobcodes(
    directory: JobcodeDirectory,
    search: str | None = None,
    active: ActiveFilter = "both",
) -> list[JobcodeMatch]:
    """Search job codes by full path, name, short code, or exact id.

    Args:
        directory: Loaded job code directory.
        search: Case-insensitive search text; empty returns everything.
        active: "yes" for active only, "no" for inactive only, or "both".

    Returns:
        Matches sorted by full path.
    """
    candidates = list(directory)
    if active == "yes":
        candidates = [jc for jc in candidates if jc.active]
    elif active == "no":
        candidates = [jc for jc in candidates if not jc.active]

    results = [JobcodeMatch.from_jobcode(jc, directory) for jc in candidates]

    needle = (search or "").strip().casefold()
    if needle:
        results = [
            match
            for match in results
            if needle in match.full_path.casefold()
            or needle in match.name.casefold()
            or needle in (match.short_code or "").casefold()
            or needle == str(match.id)
        ]

    results.sort(key=lambda match: (match.full_path.casefold(), match.id))
    return results
