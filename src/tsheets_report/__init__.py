"""TSheets shift report: MCP server and CLI for timesheet reporting."""

__version__ = "0.1.0"
