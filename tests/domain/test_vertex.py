"""Tests for the Vertex tagged union and its narrowing."""

from __future__ import annotations

from indicate.domain.geiger import GeigerCount
from indicate.domain.models import GitHubRepository, Package
from indicate.domain.vertex import Vertex, VertexKind


class TestNarrowing:
    def test_matching_kind_returns_record(self) -> None:
        package = Package(id="p 1.0.0", name="p", version="1.0.0")
        vertex = Vertex.package(package)
        assert vertex.kind is VertexKind.PACKAGE
        assert vertex.as_package() is package

    def test_other_kinds_return_none(self) -> None:
        vertex = Vertex.geiger_count(GeigerCount(safe=1))
        assert vertex.as_package() is None
        assert vertex.as_advisory() is None
        assert vertex.as_geiger_count() == GeigerCount(safe=1)

    def test_repository_variants_are_exclusive(self) -> None:
        generic = Vertex.repository("https://gitlab.com/a/b")
        github = Vertex.github_repository(
            GitHubRepository(name="b", html_url="https://github.com/a/b")
        )
        assert generic.as_repository() == "https://gitlab.com/a/b"
        assert generic.as_github_repository() is None
        assert github.as_github_repository() is not None
        assert github.as_repository() is None


class TestWebpage:
    def test_generic_url(self) -> None:
        assert Vertex.repository("https://example.org/x").as_webpage() == "https://example.org/x"

    def test_github_url_is_html_url(self) -> None:
        repo = GitHubRepository(name="b", html_url="https://github.com/a/b")
        assert Vertex.github_repository(repo).as_webpage() == "https://github.com/a/b"

    def test_non_webpage(self) -> None:
        assert Vertex.geiger_count(GeigerCount()).as_webpage() is None


def test_kind_values_are_schema_type_names() -> None:
    assert VertexKind.AFFECTED_FUNCTION_VERSIONS == "AffectedFunctionVersions"
    assert VertexKind.GITHUB_REPOSITORY == "GitHubRepository"
