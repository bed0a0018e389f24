"""Value objects — self-validating domain primitives."""

from __future__ import annotations

import re
from dataclasses import dataclass

from package_stats.domain.exceptions import InvalidOrganizationError

_GITHUB_LOGIN_RE = re.compile(r"^[A-Za-z0-9-]{1,39}$")


@dataclass(frozen=True, slots=True)
class Organization:
    """Validated GitHub organization login.

    GitHub logins are 1-39 alphanumerics and hyphens.  Older accounts may
    carry doubled or trailing hyphens, so hyphen placement is not checked.
    """

    login: str

    @classmethod
    def from_string(cls, value: str) -> Organization:
        """Parse and validate a raw organization name."""
        login = (value or "").strip()
        if not login:
            raise InvalidOrganizationError("Organization name must not be empty.")
        if not _GITHUB_LOGIN_RE.match(login):
            raise InvalidOrganizationError(
                f"Invalid organization name: '{login}'. "
                "Expected a GitHub login such as 'octokit'."
            )
        return cls(login=login)

    def __str__(self) -> str:
        return self.login
