"""IndicateAdapter — the bridge between the query engine and the backends.

The engine drives everything through four operations:

- ``resolve_starting_vertices``: ``RootPackage`` and ``Dependencies``.
- ``resolve_property``: one scalar per context, in input order.
- ``resolve_neighbors``: one lazy vertex stream per context, in input order.
- ``resolve_coercion``: whether each context's vertex narrows to a subtype.

Each operation validates its (type, field) combination against an explicit
dispatch table before returning, so a schema/adapter mismatch fails at the
call rather than halfway through a result stream. The streams themselves are
generators: backend clients are only created, and lookups only issued, when
the engine actually advances a stream that needs them.

Contexts follow the engine protocol: any object with an ``active_vertex``
attribute, which is ``None`` when an optional edge produced nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from enum import StrEnum
from typing import TYPE_CHECKING, Any, TypeAlias, TypeVar

from indicate.domain.geiger import CATEGORY_NAMES
from indicate.domain.models import unix_midnight_utc
from indicate.domain.platforms import OS, Arch, Severity
from indicate.domain.repository_url import resolve_repository
from indicate.domain.vertex import Vertex
from indicate.errors import (
    InvalidParameterError,
    InvariantViolation,
    MissingUnsafetyDataError,
    UnknownCoercionError,
    UnknownEdgeError,
    UnknownPropertyError,
)
from indicate.services.telemetry import trace_span

if TYPE_CHECKING:
    from indicate.infrastructure.backends import BackendClients, LazySlot
    from indicate.infrastructure.graph.index import DependencyIndex

logger = logging.getLogger(__name__)

_T = TypeVar("_T")
_E = TypeVar("_E", bound=StrEnum)

PropertyResolver: TypeAlias = Callable[[Vertex], Any]
NeighborResolver: TypeAlias = Callable[[Vertex], Iterator[Vertex]]


# ---------------------------------------------------------------------------
# Property dispatch table
# ---------------------------------------------------------------------------


def _field(narrow: Callable[[Vertex], _T | None], getter: Callable[[_T], Any]) -> PropertyResolver:
    """Resolver that narrows the vertex, then reads one field from it."""

    def resolve(vertex: Vertex) -> Any:
        value = narrow(vertex)
        if value is None:
            raise InvariantViolation(f"{vertex.kind} vertex has no such property")
        return getter(value)

    return resolve


def _optional_list(values: Iterable[str] | None) -> list[str] | None:
    return None if values is None else list(values)


_package = Vertex.as_package
_gh_repo = Vertex.as_github_repository
_gh_user = Vertex.as_github_user
_advisory = Vertex.as_advisory
_function = Vertex.as_affected_function
_count = Vertex.as_geiger_count
_webpage_url = _field(Vertex.as_webpage, lambda url: url)

PROPERTY_RESOLVERS: dict[tuple[str, str], PropertyResolver] = {
    ("Package", "id"): _field(_package, lambda p: p.id),
    ("Package", "name"): _field(_package, lambda p: p.name),
    ("Package", "version"): _field(_package, lambda p: p.version),
    ("Package", "license"): _field(_package, lambda p: p.license),
    ("Webpage", "url"): _webpage_url,
    ("Repository", "url"): _webpage_url,
    ("GitHubRepository", "url"): _webpage_url,
    ("GitHubRepository", "name"): _field(_gh_repo, lambda r: r.name),
    ("GitHubRepository", "starsCount"): _field(_gh_repo, lambda r: r.stargazers_count),
    ("GitHubRepository", "forksCount"): _field(_gh_repo, lambda r: r.forks_count),
    ("GitHubRepository", "openIssuesCount"): _field(_gh_repo, lambda r: r.open_issues_count),
    ("GitHubRepository", "hasIssues"): _field(_gh_repo, lambda r: r.has_issues),
    ("GitHubRepository", "archived"): _field(_gh_repo, lambda r: r.archived),
    ("GitHubRepository", "fork"): _field(_gh_repo, lambda r: r.fork),
    ("GitHubUser", "username"): _field(_gh_user, lambda u: u.login),
    ("GitHubUser", "createdAt"): _field(_gh_user, lambda u: int(u.created_at.timestamp())),
    ("GitHubUser", "followersCount"): _field(_gh_user, lambda u: u.followers),
    ("GitHubUser", "email"): _field(_gh_user, lambda u: u.email),
    ("Advisory", "id"): _field(_advisory, lambda a: a.id),
    ("Advisory", "title"): _field(_advisory, lambda a: a.title),
    ("Advisory", "description"): _field(_advisory, lambda a: a.description),
    ("Advisory", "disclosureDate"): _field(_advisory, lambda a: unix_midnight_utc(a.date)),
    ("Advisory", "withdrawalDate"): _field(
        _advisory, lambda a: unix_midnight_utc(a.withdrawn) if a.withdrawn else None
    ),
    ("Advisory", "affectedArch"): _field(
        _advisory, lambda a: _optional_list(a.affected.arch if a.affected else None)
    ),
    ("Advisory", "affectedOs"): _field(
        _advisory, lambda a: _optional_list(a.affected.os if a.affected else None)
    ),
    ("Advisory", "patchedVersions"): _field(_advisory, lambda a: list(a.patched)),
    ("Advisory", "unaffectedVersions"): _field(_advisory, lambda a: list(a.unaffected)),
    ("Advisory", "severity"): _field(
        _advisory, lambda a: a.severity.value if a.severity else None
    ),
    ("AffectedFunctionVersions", "functionPath"): _field(_function, lambda f: f.path),
    ("AffectedFunctionVersions", "versions"): _field(_function, lambda f: list(f.versions)),
    ("GeigerUnsafety", "forbidsUnsafe"): _field(
        Vertex.as_geiger_unsafety, lambda u: u.forbids_unsafe
    ),
    ("GeigerCount", "safe"): _field(_count, lambda c: c.safe),
    ("GeigerCount", "unsafe"): _field(_count, lambda c: c.unsafe),
    ("GeigerCount", "total"): _field(_count, lambda c: c.total),
    ("GeigerCount", "percentageUnsafe"): _field(_count, lambda c: c.percentage_unsafe),
}


# ---------------------------------------------------------------------------
# Structural (backend-free) neighbor edges
# ---------------------------------------------------------------------------


def _single(
    narrow: Callable[[Vertex], _T | None], step: Callable[[_T], Vertex]
) -> NeighborResolver:
    """Resolver for an edge that always has exactly one neighbor."""

    def resolve(vertex: Vertex) -> Iterator[Vertex]:
        value = narrow(vertex)
        if value is None:
            raise InvariantViolation(f"{vertex.kind} vertex has no such edge")
        yield step(value)

    return resolve


def _affected_functions(vertex: Vertex) -> Iterator[Vertex]:
    advisory = vertex.as_advisory()
    if advisory is None:
        raise InvariantViolation(f"{vertex.kind} vertex has no affectedFunctions edge")
    if advisory.affected is None:
        return
    for function in advisory.affected.affected_functions:
        yield Vertex.affected_function(function)


STRUCTURAL_EDGES: dict[tuple[str, str], NeighborResolver] = {
    ("Advisory", "affectedFunctions"): _affected_functions,
    ("GeigerUnsafety", "used"): _single(
        Vertex.as_geiger_unsafety, lambda u: Vertex.geiger_categories(u.used)
    ),
    ("GeigerUnsafety", "unused"): _single(
        Vertex.as_geiger_unsafety, lambda u: Vertex.geiger_categories(u.unused)
    ),
    ("GeigerUnsafety", "total"): _single(
        Vertex.as_geiger_unsafety, lambda u: Vertex.geiger_categories(u.total)
    ),
    **{
        ("GeigerCategories", name): _single(
            Vertex.as_geiger_categories,
            lambda c, name=name: Vertex.geiger_count(getattr(c, name)),
        )
        for name in (*CATEGORY_NAMES, "total")
    },
}

# Edges that need the dependency index or a backend client; resolved by
# IndicateAdapter methods of the same name.
ADAPTER_EDGES: dict[tuple[str, str], str] = {
    ("Package", "dependencies"): "_dependencies",
    ("Package", "repository"): "_repository",
    ("Package", "advisoryHistory"): "_advisory_history",
    ("Package", "geiger"): "_geiger",
    ("GitHubRepository", "owner"): "_owner",
}

COERCIONS: dict[str, Callable[[Vertex], Any]] = {
    "Repository": Vertex.as_repository,
    "GitHubRepository": Vertex.as_github_repository,
}

STARTING_EDGES = frozenset({"RootPackage", "Dependencies"})


# ---------------------------------------------------------------------------
# Parameter helpers
# ---------------------------------------------------------------------------


def _bool_param(parameters: Mapping[str, Any], name: str) -> bool:
    value = parameters.get(name)
    if not isinstance(value, bool):
        raise InvalidParameterError(f"{name} parameter required as a boolean, got {value!r}")
    return value


def _enum_param(parameters: Mapping[str, Any], name: str, enum: type[_E]) -> _E | None:
    value = parameters.get(name)
    if value is None:
        return None
    try:
        return enum(value)
    except ValueError:
        raise InvalidParameterError(f"unknown {name} parameter: {value!r}") from None


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


class IndicateAdapter:
    """Serve the dependency graph and its enrichments to the query engine."""

    def __init__(
        self,
        index: DependencyIndex,
        clients: BackendClients,
        *,
        sort_dependencies: bool = False,
    ) -> None:
        self._index = index
        self._clients = clients
        self._sort_dependencies = sort_dependencies

    @property
    def index(self) -> DependencyIndex:
        return self._index

    # ------------------------------------------------------------------
    # Engine protocol
    # ------------------------------------------------------------------

    def resolve_starting_vertices(
        self, edge_name: str, parameters: Mapping[str, Any], *args: Any, **kwargs: Any
    ) -> Iterator[Vertex]:
        if edge_name == "RootPackage":
            return iter([Vertex.package(self._index.root)])
        if edge_name == "Dependencies":
            include_root = _bool_param(parameters, "includeRoot")
            return self._all_packages(include_root)
        raise UnknownEdgeError("RootSchemaQuery", edge_name)

    def resolve_property(
        self,
        contexts: Iterable[Any],
        type_name: str,
        property_name: str,
        *args: Any,
        **kwargs: Any,
    ) -> Iterator[tuple[Any, Any]]:
        resolver = PROPERTY_RESOLVERS.get((type_name, property_name))
        if resolver is None:
            raise UnknownPropertyError(type_name, property_name)
        return (
            (ctx, None if ctx.active_vertex is None else resolver(ctx.active_vertex))
            for ctx in contexts
        )

    def resolve_neighbors(
        self,
        contexts: Iterable[Any],
        type_name: str,
        edge_name: str,
        parameters: Mapping[str, Any],
        *args: Any,
        **kwargs: Any,
    ) -> Iterator[tuple[Any, Iterator[Vertex]]]:
        key = (type_name, edge_name)
        resolver = STRUCTURAL_EDGES.get(key)
        if resolver is None:
            method = ADAPTER_EDGES.get(key)
            if method is None:
                raise UnknownEdgeError(type_name, edge_name)
            resolver = getattr(self, method)(parameters)
        return (
            (ctx, iter(()) if ctx.active_vertex is None else resolver(ctx.active_vertex))
            for ctx in contexts
        )

    def resolve_coercion(
        self,
        contexts: Iterable[Any],
        type_name: str,
        coerce_to_type: str,
        *args: Any,
        **kwargs: Any,
    ) -> Iterator[tuple[Any, bool]]:
        narrow = COERCIONS.get(coerce_to_type)
        if narrow is None:
            raise UnknownCoercionError(type_name, coerce_to_type)
        return (
            (ctx, ctx.active_vertex is not None and narrow(ctx.active_vertex) is not None)
            for ctx in contexts
        )

    # ------------------------------------------------------------------
    # Starting vertices
    # ------------------------------------------------------------------

    def _all_packages(self, include_root: bool) -> Iterator[Vertex]:
        ids = list(self._index.resolution_order)
        if not include_root:
            ids = [pid for pid in ids if pid != self._index.root_id]
        if self._sort_dependencies:
            ids.sort()
        return (Vertex.package(self._index.lookup(pid)) for pid in ids)

    # ------------------------------------------------------------------
    # Index- and backend-backed edges
    # ------------------------------------------------------------------

    def _client(self, slot: LazySlot[_T]) -> _T:
        if slot.initialized:
            return slot.get_or_create()
        with trace_span(f"backend.{slot.name}"):
            return slot.get_or_create()

    @staticmethod
    def _require_package(vertex: Vertex, edge: str) -> Any:
        package = vertex.as_package()
        if package is None:
            raise InvariantViolation(f"{vertex.kind} vertex has no {edge} edge")
        return package

    def _dependencies(self, parameters: Mapping[str, Any]) -> NeighborResolver:
        index = self._index

        def resolve(vertex: Vertex) -> Iterator[Vertex]:
            package = self._require_package(vertex, "dependencies")
            for dep_id in index.dependencies_of(package.id):
                yield Vertex.package(index.lookup(dep_id))

        return resolve

    def _repository(self, parameters: Mapping[str, Any]) -> NeighborResolver:
        slot = self._clients.github

        def resolve(vertex: Vertex) -> Iterator[Vertex]:
            package = self._require_package(vertex, "repository")
            if package.repository is None:
                return
            yield resolve_repository(package.repository, lambda: self._client(slot))

        return resolve

    def _advisory_history(self, parameters: Mapping[str, Any]) -> NeighborResolver:
        include_withdrawn = _bool_param(parameters, "includeWithdrawn")
        arch = _enum_param(parameters, "arch", Arch)
        os = _enum_param(parameters, "os", OS)
        min_severity = _enum_param(parameters, "minSeverity", Severity)
        slot = self._clients.advisories

        def resolve(vertex: Vertex) -> Iterator[Vertex]:
            package = self._require_package(vertex, "advisoryHistory")
            advisories = self._client(slot).query(
                package.name, include_withdrawn, arch, os, min_severity
            )
            for advisory in advisories:
                yield Vertex.advisory(advisory)

        return resolve

    def _geiger(self, parameters: Mapping[str, Any]) -> NeighborResolver:
        slot = self._clients.geiger

        def resolve(vertex: Vertex) -> Iterator[Vertex]:
            package = self._require_package(vertex, "geiger")
            unsafety = self._client(slot).unsafety(package.name, package.version)
            if unsafety is None:
                raise MissingUnsafetyDataError(package.name, package.version)
            yield Vertex.geiger_unsafety(unsafety)

        return resolve

    def _owner(self, parameters: Mapping[str, Any]) -> NeighborResolver:
        slot = self._clients.github

        def resolve(vertex: Vertex) -> Iterator[Vertex]:
            repo = vertex.as_github_repository()
            if repo is None:
                raise InvariantViolation(f"{vertex.kind} vertex has no owner edge")
            if repo.owner is None:
                return
            user = self._client(slot).get_user(repo.owner.login)
            if user is None:
                logger.debug("No GitHub user for login %s", repo.owner.login)
                return
            yield Vertex.github_user(user)

        return resolve
