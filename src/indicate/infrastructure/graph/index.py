"""DependencyIndex — immutable package maps over a frozen NetworkX graph.

Built once per adapter from a ``cargo metadata`` snapshot and never mutated
afterwards (the graph is frozen with :func:`networkx.freeze`, the maps are
read-only views). Every resolution step shares the same instance.

INVARIANT: every id referenced as a dependency target is a key of
``packages``, and the root id is always present.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, TypeAlias

import networkx as nx

from indicate.domain.models import Package
from indicate.errors import ConfigurationError, InvariantViolation, UnknownPackageError

if TYPE_CHECKING:
    from indicate.infrastructure.cargo import CargoMetadata

_Graph: TypeAlias = nx.DiGraph


class DependencyIndex:
    """Package records and direct dependency ids keyed by package id."""

    def __init__(
        self,
        graph: _Graph,
        packages: Mapping[str, Package],
        root_id: str,
    ) -> None:
        self._graph = graph
        self._packages = MappingProxyType(dict(packages))
        self._direct = MappingProxyType({pid: p.dependencies for pid, p in packages.items()})
        self._root_id = root_id
        self._order = tuple(graph.nodes)

    @classmethod
    def build(cls, metadata: CargoMetadata) -> DependencyIndex:
        """Build the index from a dependency-resolution snapshot.

        Nodes are added in resolution order so that iteration over the graph
        (and therefore the ``Dependencies`` starting edge) follows it.

        Raises:
            ConfigurationError: If the snapshot has no resolve data or no root.
            InvariantViolation: If the resolve graph references a package the
                snapshot does not describe.
        """
        resolve = metadata.resolve
        if resolve is None or not resolve.nodes:
            raise ConfigurationError("No nodes found in dependency resolution data")
        if resolve.root is None:
            raise ConfigurationError("Could not resolve root node (virtual workspace?)")

        records = {p.id: p for p in metadata.packages}
        node_ids = {node.id for node in resolve.nodes}

        g: _Graph = nx.DiGraph()
        packages: dict[str, Package] = {}
        for node in resolve.nodes:
            record = records.get(node.id)
            if record is None:
                raise InvariantViolation(f"resolve node {node.id} has no package entry")
            g.add_node(node.id)
            packages[node.id] = Package(
                id=record.id,
                name=record.name,
                version=record.version,
                license=record.license,
                repository=record.repository,
                dependencies=node.dependencies,
            )

        for node in resolve.nodes:
            for dep in node.dependencies:
                if dep not in node_ids:
                    raise InvariantViolation(
                        f"dependency {dep} of {node.id} is not a resolved package"
                    )
                g.add_edge(node.id, dep)

        if resolve.root not in packages:
            raise ConfigurationError(f"Root package {resolve.root} is not in the resolve graph")

        return cls(nx.freeze(g), packages, resolve.root)

    # --- Read-only views ---

    @property
    def graph(self) -> _Graph:
        """The frozen dependency graph (edges point at dependencies)."""
        return self._graph

    @property
    def packages(self) -> Mapping[str, Package]:
        return self._packages

    @property
    def direct_dependencies(self) -> Mapping[str, tuple[str, ...]]:
        return self._direct

    @property
    def root_id(self) -> str:
        return self._root_id

    @property
    def root(self) -> Package:
        return self.lookup(self._root_id)

    @property
    def resolution_order(self) -> tuple[str, ...]:
        return self._order

    # --- Lookups ---

    def lookup(self, package_id: str) -> Package:
        """Return the package for *package_id*.

        Raises:
            UnknownPackageError: The id was not produced by this index.
        """
        try:
            return self._packages[package_id]
        except KeyError:
            raise UnknownPackageError(package_id) from None

    def dependencies_of(self, package_id: str) -> tuple[str, ...]:
        """Direct dependency ids of *package_id*, in declared order."""
        try:
            return self._direct[package_id]
        except KeyError:
            raise UnknownPackageError(package_id) from None

    def __len__(self) -> int:
        return len(self._packages)

    def __contains__(self, package_id: object) -> bool:
        return package_id in self._packages
