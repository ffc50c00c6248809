"""Exception types raised by the report pipeline and the TSheets client."""

from typing import Any


class ReportError(Exception):
    """Base class for errors surfaced to the report caller."""


class TSheetsAPIError(ReportError):
    """An upstream TSheets call failed (transport, HTTP status, or payload)."""

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            operation: Name of the failing client call (e.g. "get_timesheets").
            message: Human readable failure description.
            status_code: HTTP status code, if a response was received.
        """
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"TSheets {operation} failed: {message}")


class AuthenticationError(TSheetsAPIError):
    """No usable access token is available."""


class MalformedResponseError(TSheetsAPIError):
    """A response envelope did not match the expected shape."""


class AmbiguousProjectError(ReportError):
    """A project reference matched several job codes where one was required."""

    def __init__(self, reference: str, candidates: list[Any]) -> None:
        self.reference = reference
        self.candidates = candidates
        options = "; ".join(f"{c.id}: {c.full_path}" for c in candidates)
        super().__init__(
            f'Multiple jobcodes match "{reference}". '
            f"Please specify one by ID: {options}"
        )


class InvalidDateRangeError(ReportError, ValueError):
    """Dates are not YYYY-MM-DD or the range is reversed."""
