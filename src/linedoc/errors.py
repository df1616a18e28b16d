"""Fatal error types. Recoverable problems are reported as Diagnostics instead."""


class LinedocError(Exception):
    """Base class for errors that abort a run."""


class ConfigError(LinedocError):
    """Bad or missing settings, detected before scanning."""


class FatalIOError(LinedocError):
    """Scan root unreadable or work root unwritable."""
