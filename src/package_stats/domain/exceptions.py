"""Domain exception hierarchy.

Inner layers raise these; the collection use case swallows
:class:`RegistryError` per package type / per package, and the interface
layer translates everything else into a failed run.
"""

from __future__ import annotations


class PackageStatsError(Exception):
    """Base exception for the entire application."""


# ── Configuration ───────────────────────────────────────────────────────────


class ConfigurationError(PackageStatsError):
    """The run is misconfigured and cannot start."""


class MissingCredentialsError(ConfigurationError):
    """Neither a token nor a complete set of GitHub App credentials was given."""


class InvalidOrganizationError(ConfigurationError):
    """The organization name is empty or not a valid GitHub login."""


class InvalidPackageTypeError(ConfigurationError):
    """The package type is not one of the supported registry ecosystems."""


class AuthenticationError(PackageStatsError):
    """GitHub App credentials could not be exchanged for an installation token."""


# ── Registry API errors ─────────────────────────────────────────────────────


class RegistryError(PackageStatsError):
    """Any failure while reading from the package registry."""


class PackageNotFoundError(RegistryError):
    """The organization or package does not exist (404)."""


class RegistryAccessDeniedError(RegistryError):
    """The credentials lack access to the requested packages (401 / 403)."""


class GitHubRateLimitError(RegistryError):
    """The primary API rate limit is exhausted."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class SecondaryRateLimitError(GitHubRateLimitError):
    """GitHub's abuse-detection (secondary) rate limit was triggered."""


class TransientRegistryError(RegistryError):
    """Network fault or 5xx response that may succeed on retry."""


class MalformedResponseError(RegistryError):
    """The registry answered with a payload we could not interpret."""


# ── Output ──────────────────────────────────────────────────────────────────


class ReportWriteError(PackageStatsError):
    """The report could not be written to disk."""
