from __future__ import annotations

"""Centralised error taxonomy for scraper failures.

Every failure that ends a run is tagged with one of the ``ErrorCode`` values.
The code is written to the run summary, included in structured logs and
mapped to a process exit code so calling automation can tell a transient
failure (navigation, readiness timeout) from one that needs a human
(checkpoint corruption, site layout change).
"""

from typing import Optional


class ErrorCode:
    NAVIGATION = "navigation_error"
    READINESS_TIMEOUT = "readiness_timeout"
    CHECKPOINT_PARSE = "checkpoint_parse_error"
    EXTRACTION_MISMATCH = "extraction_mismatch"
    STORAGE = "storage_error"
    CONFIG = "config_invalid"
    INTERNAL = "internal_error"


class ExitCode:
    OK = 0
    INTERNAL = 1
    USAGE = 2
    NAVIGATION = 3
    READINESS_TIMEOUT = 4
    CHECKPOINT_PARSE = 5
    EXTRACTION_MISMATCH = 6
    STORAGE = 7
    CONFIG = 8


EXIT_CODES: dict[str, int] = {
    ErrorCode.NAVIGATION: ExitCode.NAVIGATION,
    ErrorCode.READINESS_TIMEOUT: ExitCode.READINESS_TIMEOUT,
    ErrorCode.CHECKPOINT_PARSE: ExitCode.CHECKPOINT_PARSE,
    ErrorCode.EXTRACTION_MISMATCH: ExitCode.EXTRACTION_MISMATCH,
    ErrorCode.STORAGE: ExitCode.STORAGE,
    ErrorCode.CONFIG: ExitCode.CONFIG,
    ErrorCode.INTERNAL: ExitCode.INTERNAL,
}

# Worth an immediate rerun; the others need the site, the config or the
# checkpoint looked at first.
TRANSIENT_ERROR_CODES = {
    ErrorCode.NAVIGATION,
    ErrorCode.READINESS_TIMEOUT,
}


def exit_code_for(error_code: Optional[str]) -> int:
    """Return the process exit code for ``error_code`` (``None`` means success)."""

    if error_code is None:
        return ExitCode.OK
    return EXIT_CODES.get(error_code, ExitCode.INTERNAL)


class ScrapeError(Exception):
    """Base class for classified scraper failures."""

    error_code: str = ErrorCode.INTERNAL

    def __init__(self, message: str, *, error_code: str | None = None) -> None:
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code

    @property
    def exit_code(self) -> int:
        return exit_code_for(self.error_code)


class NavigationError(ScrapeError):
    error_code = ErrorCode.NAVIGATION


class ReadinessTimeout(ScrapeError):
    error_code = ErrorCode.READINESS_TIMEOUT


class CheckpointParseError(ScrapeError):
    error_code = ErrorCode.CHECKPOINT_PARSE


class ExtractionMismatchError(ScrapeError):
    error_code = ErrorCode.EXTRACTION_MISMATCH


class StorageError(ScrapeError):
    error_code = ErrorCode.STORAGE


class ConfigError(ScrapeError, ValueError):
    error_code = ErrorCode.CONFIG


__all__ = [
    "ErrorCode",
    "ExitCode",
    "EXIT_CODES",
    "TRANSIENT_ERROR_CODES",
    "exit_code_for",
    "ScrapeError",
    "NavigationError",
    "ReadinessTimeout",
    "CheckpointParseError",
    "ExtractionMismatchError",
    "StorageError",
    "ConfigError",
]
