"""In-memory index of TSheets job codes."""

import logging
from collections import deque
from collections.abc import Iterable, Iterator
from typing import Protocol

from tsheets_report.tsheets.models import JobCode

module_logger = logging.getLogger(__name__)

# Cap on parent/child hops; upstream data has been seen with cycles.
MAX_HIERARCHY_DEPTH = 10


class JobcodeSource(Protocol):
    """The part of the API client the directory needs."""

    async def get_jobcodes(self, active: str = "both") -> dict[int, JobCode]: ...

    async def get_jobcodes_by_id(self, ids: Iterable[int]) -> dict[int, JobCode]: ...


class JobcodeDirectory:
    """Job codes keyed by id, with parent and child traversal.

    Built fresh for each report run and only ever grows: records already
    present are never replaced.
    """

    def __init__(
        self,
        jobcodes: Iterable[JobCode] = (),
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize directory.

        Args:
            jobcodes: Initial job codes.
            logger: Logger for diagnostics. Defaults to the module logger.
        """
        self.logger = logger or module_logger
        self._jobcodes: dict[int, JobCode] = {}
        self._children: dict[int, set[int]] = {}
        self.add(jobcodes)

    @classmethod
    async def load(
        cls, client: JobcodeSource, logger: logging.Logger | None = None
    ) -> "JobcodeDirectory":
        """Fetch every job code, active and inactive.

        Raises:
            TSheetsAPIError: If the listing call fails.
        """
        jobcodes = await client.get_jobcodes(active="both")
        directory = cls(jobcodes.values(), logger=logger)
        directory.logger.info(f"Loaded {len(directory)} jobcode(s)")
        return directory

    def __len__(self) -> int:
        return len(self._jobcodes)

    def __contains__(self, jobcode_id: object) -> bool:
        return jobcode_id in self._jobcodes

    def __iter__(self) -> Iterator[JobCode]:
        return iter(self._jobcodes.values())

    def get(self, jobcode_id: int | None) -> JobCode | None:
        """Look up a job code by id."""
        if jobcode_id is None:
            return None
        return self._jobcodes.get(jobcode_id)

    def add(self, jobcodes: Iterable[JobCode]) -> int:
        """Insert job codes that are not already present.

        Returns:
            Number of job codes inserted.
        """
        added = 0
        for jobcode in jobcodes:
            if jobcode.id in self._jobcodes:
                continue
            self._jobcodes[jobcode.id] = jobcode
            if jobcode.parent_id is not None:
                self._children.setdefault(jobcode.parent_id, set()).add(jobcode.id)
            added += 1
        return added

    async def ensure(self, ids: Iterable[int], client: JobcodeSource) -> set[int]:
        """Backfill job codes missing from the directory.

        All missing ids go out in one batched by-id lookup. Ids the API still
        does not return are left absent.

        Returns:
            The ids that could not be resolved.

        Raises:
            TSheetsAPIError: If the lookup call fails.
        """
        missing = {jobcode_id for jobcode_id in ids if jobcode_id not in self._jobcodes}
        if not missing:
            return set()

        self.logger.info(f"Fetching {len(missing)} jobcode(s) missing from bulk listing")
        fetched = await client.get_jobcodes_by_id(missing)
        self.add(fetched.values())

        unresolved = {jobcode_id for jobcode_id in missing if jobcode_id not in self._jobcodes}
        if unresolved:
            self.logger.warning(f"Could not resolve jobcode(s): {sorted(unresolved)}")
        return unresolved

    def missing_ancestors(self, ids: Iterable[int]) -> set[int]:
        """Ids referenced by the given job codes or their parent chains but not loaded."""
        missing: set[int] = set()
        for jobcode_id in ids:
            current_id: int | None = jobcode_id
            seen: set[int] = set()
            for _ in range(MAX_HIERARCHY_DEPTH + 1):
                if current_id is None or current_id in seen:
                    break
                seen.add(current_id)
                jobcode = self._jobcodes.get(current_id)
                if jobcode is None:
                    missing.add(current_id)
                    break
                current_id = jobcode.parent_id
        return missing

    def descendants_of(self, jobcode_id: int, max_depth: int = MAX_HIERARCHY_DEPTH) -> set[int]:
        """Every job code whose parent chain reaches ``jobcode_id``.

        Uses only loaded data. Descent stops at ``max_depth`` levels and never
        revisits a node, so cyclic parent links terminate with a partial result.
        The starting id is not included.
        """
        found: set[int] = set()
        visited = {jobcode_id}
        queue: deque[tuple[int, int]] = deque([(jobcode_id, 0)])

        while queue:
            current_id, depth = queue.popleft()
            if depth >= max_depth and self._children.get(current_id):
                self.logger.warning(
                    f"Jobcode hierarchy under {jobcode_id} exceeds {max_depth} levels; "
                    f"not descending below {current_id}"
                )
                continue
            for child_id in sorted(self._children.get(current_id, ())):
                if child_id in visited:
                    continue
                visited.add(child_id)
                found.add(child_id)
                queue.append((child_id, depth + 1))

        return found
