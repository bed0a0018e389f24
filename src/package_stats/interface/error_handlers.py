"""Run-failure handling — translate exceptions into exit codes.

Each fatal exception maps to a ``sysexits``-style exit code.  The failure is
logged and echoed as a GitHub Actions ``::error::`` workflow command so the
step is marked failed with a single human-readable message.
"""

from __future__ import annotations

import logging

import typer

from package_stats.domain.exceptions import (
    AuthenticationError,
    ConfigurationError,
    PackageStatsError,
    ReportWriteError,
)

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1

_EXCEPTION_EXIT_CODES: list[tuple[type[PackageStatsError], int]] = [
    (ConfigurationError, 78),  # EX_CONFIG
    (AuthenticationError, 77),  # EX_NOPERM
    (ReportWriteError, 74),  # EX_IOERR
    (PackageStatsError, EXIT_FAILURE),
]


def exit_code_for(exc: BaseException) -> int:
    """Return the process exit code for *exc*."""
    for exc_type, code in _EXCEPTION_EXIT_CODES:
        if isinstance(exc, exc_type):
            return code
    return EXIT_FAILURE


def _escape_command_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def report_failure(exc: BaseException) -> int:
    """Log *exc*, emit the workflow error annotation, and return the exit code."""
    if isinstance(exc, PackageStatsError):
        logger.error("%s: %s", type(exc).__name__, exc)
        message = str(exc)
    else:
        logger.exception("Unhandled exception")
        message = f"An unexpected error occurred: {exc}"

    typer.echo(f"::error::{_escape_command_data(message)}")
    return exit_code_for(exc)
