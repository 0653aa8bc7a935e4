"""Vertex — the tagged union of every entity the query graph exposes.

Each vertex carries a :class:`VertexKind` tag and the underlying record.
Narrowing is explicit: ``as_package()`` and friends return the record when
the tag matches and ``None`` otherwise. Coercion in the adapter is built on
the same narrowing, so ``Repository`` (generic URL) and ``GitHubRepository``
can never both hold for one vertex.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from indicate.domain.geiger import GeigerCategories, GeigerCount, GeigerUnsafety
from indicate.domain.models import (
    Advisory,
    AffectedFunction,
    GitHubRepository,
    GitHubUser,
    Package,
)


class VertexKind(StrEnum):
    """Schema type name of each vertex variant."""

    PACKAGE = "Package"
    REPOSITORY = "Repository"
    GITHUB_REPOSITORY = "GitHubRepository"
    GITHUB_USER = "GitHubUser"
    ADVISORY = "Advisory"
    AFFECTED_FUNCTION_VERSIONS = "AffectedFunctionVersions"
    GEIGER_UNSAFETY = "GeigerUnsafety"
    GEIGER_CATEGORIES = "GeigerCategories"
    GEIGER_COUNT = "GeigerCount"


@dataclass(frozen=True, slots=True)
class Vertex:
    """A single typed node value in the query graph."""

    kind: VertexKind
    value: Any

    # --- Constructors ---

    @classmethod
    def package(cls, package: Package) -> Vertex:
        return cls(VertexKind.PACKAGE, package)

    @classmethod
    def repository(cls, url: str) -> Vertex:
        """Generic repository: the raw URL, nothing else is known."""
        return cls(VertexKind.REPOSITORY, url)

    @classmethod
    def github_repository(cls, repo: GitHubRepository) -> Vertex:
        return cls(VertexKind.GITHUB_REPOSITORY, repo)

    @classmethod
    def github_user(cls, user: GitHubUser) -> Vertex:
        return cls(VertexKind.GITHUB_USER, user)

    @classmethod
    def advisory(cls, advisory: Advisory) -> Vertex:
        return cls(VertexKind.ADVISORY, advisory)

    @classmethod
    def affected_function(cls, function: AffectedFunction) -> Vertex:
        return cls(VertexKind.AFFECTED_FUNCTION_VERSIONS, function)

    @classmethod
    def geiger_unsafety(cls, unsafety: GeigerUnsafety) -> Vertex:
        return cls(VertexKind.GEIGER_UNSAFETY, unsafety)

    @classmethod
    def geiger_categories(cls, categories: GeigerCategories) -> Vertex:
        return cls(VertexKind.GEIGER_CATEGORIES, categories)

    @classmethod
    def geiger_count(cls, count: GeigerCount) -> Vertex:
        return cls(VertexKind.GEIGER_COUNT, count)

    # --- Narrowing ---

    def _narrow(self, kind: VertexKind) -> Any:
        return self.value if self.kind is kind else None

    def as_package(self) -> Package | None:
        return self._narrow(VertexKind.PACKAGE)

    def as_repository(self) -> str | None:
        return self._narrow(VertexKind.REPOSITORY)

    def as_github_repository(self) -> GitHubRepository | None:
        return self._narrow(VertexKind.GITHUB_REPOSITORY)

    def as_github_user(self) -> GitHubUser | None:
        return self._narrow(VertexKind.GITHUB_USER)

    def as_advisory(self) -> Advisory | None:
        return self._narrow(VertexKind.ADVISORY)

    def as_affected_function(self) -> AffectedFunction | None:
        return self._narrow(VertexKind.AFFECTED_FUNCTION_VERSIONS)

    def as_geiger_unsafety(self) -> GeigerUnsafety | None:
        return self._narrow(VertexKind.GEIGER_UNSAFETY)

    def as_geiger_categories(self) -> GeigerCategories | None:
        return self._narrow(VertexKind.GEIGER_CATEGORIES)

    def as_geiger_count(self) -> GeigerCount | None:
        return self._narrow(VertexKind.GEIGER_COUNT)

    def as_webpage(self) -> str | None:
        """URL of either repository variant; None for non-webpage vertices."""
        if self.kind is VertexKind.REPOSITORY:
            return self.value
        if self.kind is VertexKind.GITHUB_REPOSITORY:
            return self.value.html_url
        return None

    def __repr__(self) -> str:
        return f"Vertex({self.kind.value}, {self.value!r})"
