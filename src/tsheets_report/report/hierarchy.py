"""Hierarchical display paths for job codes."""

import logging

from tsheets_report.report.directory import MAX_HIERARCHY_DEPTH, JobcodeDirectory
from tsheets_report.tsheets.models import JobCode

module_logger = logging.getLogger(__name__)

PATH_SEPARATOR = " › "
UNKNOWN = "Unknown"


def build_path(
    jobcode: JobCode | None,
    directory: JobcodeDirectory,
    logger: logging.Logger | None = None,
) -> str:
    """Build the root-to-leaf path of a job code, e.g. "MMC 25839 › GENERAL LABOR".

    Walking stops quietly at a root, at a parent the directory does not hold,
    or after MAX_HIERARCHY_DEPTH hops.

    Args:
        jobcode: Leaf job code; None yields "Unknown".
        directory: Directory used to look up parents.
        logger: Logger for diagnostics. Defaults to the module logger.

    Returns:
        Fragments joined with " › ".
    """
    logger = logger or module_logger
    if jobcode is None:
        return UNKNOWN

    parts: list[str] = []
    current: JobCode | None = jobcode
    hops = 0
    while current is not None:
        parts.append(current.display_name)
        parent_id = current.parent_id
        if parent_id is None:
            break
        if hops >= MAX_HIERARCHY_DEPTH:
            logger.warning(
                f"Jobcode {jobcode.id} path exceeds {MAX_HIERARCHY_DEPTH} levels; truncated"
            )
            break
        current = directory.get(parent_id)
        if current is None:
            logger.warning(f"Missing parent jobcode {parent_id} for jobcode {jobcode.id}")
        hops += 1

    parts.reverse()
    return PATH_SEPARATOR.join(parts)
