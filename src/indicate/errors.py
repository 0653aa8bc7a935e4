"""Exception hierarchy for indicate.

Three classes of failure:
- Configuration/environment errors: the query cannot start or a backend
  cannot be created. Fatal, never retried.
- Invariant violations: the adapter and the schema disagree, or an index
  that should be complete is not. Fatal, always surfaced.
- Expected absences (no repository URL, no owner, no advisory) are not
  exceptions at all; they resolve to empty neighbor streams or ``None``.
"""

from __future__ import annotations


class IndicateError(Exception):
    """Base class for every error raised by indicate."""

    code = "INDICATE_ERROR"


class ConfigurationError(IndicateError):
    """Dependency metadata or environment is unusable."""

    code = "CONFIG_ERROR"


class BackendUnavailableError(ConfigurationError):
    """A backend client could not be created.

    Raised by every later access to the same slot as well: creation is an
    expensive remote or bulk fetch and is not retried within a session.
    """

    code = "BACKEND_UNAVAILABLE"

    def __init__(self, backend: str, reason: str) -> None:
        super().__init__(f"{backend} backend unavailable: {reason}")
        self.backend = backend
        self.reason = reason


class InvariantViolation(IndicateError):
    """Internal contract broken; indicates an adapter/schema mismatch."""

    code = "INTERNAL_ERROR"


class UnknownPackageError(InvariantViolation):
    def __init__(self, package_id: str) -> None:
        super().__init__(f"package id not present in dependency index: {package_id}")
        self.package_id = package_id


class UnknownEdgeError(InvariantViolation):
    def __init__(self, type_name: str, edge_name: str) -> None:
        super().__init__(f"unreachable neighbor combination: {type_name}, {edge_name}")
        self.type_name = type_name
        self.edge_name = edge_name


class UnknownPropertyError(InvariantViolation):
    def __init__(self, type_name: str, property_name: str) -> None:
        super().__init__(f"unreachable property combination: {type_name}, {property_name}")
        self.type_name = type_name
        self.property_name = property_name


class UnknownCoercionError(InvariantViolation):
    def __init__(self, type_name: str, coerce_to: str) -> None:
        super().__init__(f"the coercion from {type_name} to {coerce_to} is unhandled")
        self.type_name = type_name
        self.coerce_to = coerce_to


class InvalidParameterError(InvariantViolation):
    """An edge parameter is missing or outside its enumeration."""


class MissingUnsafetyDataError(InvariantViolation):
    def __init__(self, name: str, version: str) -> None:
        super().__init__(f"could not resolve unsafety for package {name} (v. {version})")
        self.name = name
        self.version = version


class QueryError(IndicateError):
    """The query engine rejected the query or its arguments."""

    code = "QUERY_ERROR"
