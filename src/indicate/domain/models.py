"""Records exposed through the query graph.

Each backend speaks its own identity scheme: packages are keyed by cargo
package id, GitHub repositories by (owner, name), users by login, advisories
by crate name, and unsafe-usage data by (name, version). The records below
are the normalized shapes the adapter hands to the engine.
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field, field_validator

from indicate.domain.cvss import parse_vector, severity
from indicate.domain.platforms import Severity


def unix_midnight_utc(day: dt.date) -> int:
    """Unix timestamp of *day* at 00:00 UTC.

    Advisory dates are date-only; this pins them to midnight UTC so they
    compare against instants such as ``GitHubUser.created_at``.
    """
    return int(dt.datetime.combine(day, dt.time(0, 0), tzinfo=dt.UTC).timestamp())


# --- Dependency graph ---


class Package(BaseModel):
    """A resolved package and its direct dependency ids, in declared order."""

    model_config = {"frozen": True}

    id: str
    name: str
    version: str
    license: str | None = None
    repository: str | None = None
    dependencies: tuple[str, ...] = ()


# --- Repository info (GitHub) ---


class SimpleUser(BaseModel):
    """Owner reference embedded in a repository payload."""

    model_config = {"frozen": True}

    login: str


class GitHubRepository(BaseModel):
    """Subset of the GitHub ``/repos/{owner}/{repo}`` payload."""

    model_config = {"frozen": True}

    name: str
    full_name: str = ""
    html_url: str = ""
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    has_issues: bool = False
    archived: bool = False
    fork: bool = False
    owner: SimpleUser | None = None


class GitHubUser(BaseModel):
    """Subset of the GitHub ``/users/{login}`` payload."""

    model_config = {"frozen": True}

    login: str
    created_at: dt.datetime
    followers: int = 0
    email: str | None = None


# --- Advisories ---


class AffectedFunction(BaseModel):
    """A function path and the version ranges in which it is vulnerable."""

    model_config = {"frozen": True}

    path: str
    versions: tuple[str, ...] = ()


class Affected(BaseModel):
    """The ``[affected]`` table of an advisory."""

    model_config = {"frozen": True}

    arch: tuple[str, ...] = ()
    os: tuple[str, ...] = ()
    functions: dict[str, tuple[str, ...]] = Field(default_factory=dict)

    @property
    def affected_functions(self) -> list[AffectedFunction]:
        return [AffectedFunction(path=p, versions=v) for p, v in self.functions.items()]


class Advisory(BaseModel):
    """A security advisory for one crate."""

    model_config = {"frozen": True}

    id: str
    package: str
    title: str
    description: str = ""
    date: dt.date
    withdrawn: dt.date | None = None
    url: str | None = None
    cvss: str | None = None
    informational: str | None = None
    aliases: tuple[str, ...] = ()
    affected: Affected | None = None
    patched: tuple[str, ...] = ()
    unaffected: tuple[str, ...] = ()

    @field_validator("cvss")
    @classmethod
    def _valid_cvss(cls, value: str | None) -> str | None:
        if value is not None:
            parse_vector(value)
        return value

    @property
    def severity(self) -> Severity | None:
        """Severity derived from the CVSS vector, None when unscored."""
        if self.cvss is None:
            return None
        return severity(self.cvss)

    @property
    def is_withdrawn(self) -> bool:
        return self.withdrawn is not None
