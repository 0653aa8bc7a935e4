"""Query-engine glue: query files in, result rows out.

The Trustfall engine is an optional dependency (``pip install
indicate[engine]``); it is imported on first use so the rest of the package
and its tests do not need it.
"""

from __future__ import annotations

import importlib
import json
import logging
import tomllib
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import ModuleType
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from indicate.errors import ConfigurationError, QueryError
from indicate.schema import load_schema_text

logger = logging.getLogger(__name__)

# Exceptions the engine raises for a bad query or bad arguments, as opposed
# to errors raised by the adapter while the query runs.
_ENGINE_QUERY_ERRORS = (
    "ParseError",
    "ValidationError",
    "FrontendError",
    "InvalidIRQueryError",
    "QueryArgumentsError",
)


class QueryFile(BaseModel):
    """A query and its arguments, as stored on disk."""

    model_config = {"frozen": True}

    query: str
    args: dict[str, Any] = Field(default_factory=dict)


def load_query_file(path: Path) -> QueryFile:
    """Read a ``.json`` or ``.toml`` query file.

    JSON: ``{"query": "...", "args": {...}}``. TOML: a ``query`` string and an
    optional ``[args]`` table.

    Raises:
        ConfigurationError: Unreadable file, unsupported suffix, bad syntax or
            missing ``query``.
    """
    suffix = path.suffix.lower()
    if suffix not in (".json", ".toml"):
        raise ConfigurationError(f"Unsupported query file type {suffix!r}: {path}")
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Could not read query file {path}: {exc}") from exc

    try:
        data: Any = json.loads(raw) if suffix == ".json" else tomllib.loads(raw)
        return QueryFile.model_validate(data)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError, ValidationError) as exc:
        raise ConfigurationError(f"Invalid query file {path}: {exc}") from exc


def _trustfall() -> ModuleType:
    try:
        return importlib.import_module("trustfall")
    except ModuleNotFoundError as exc:
        msg = "the Trustfall engine is not installed; install indicate[engine]"
        raise ConfigurationError(msg) from exc


def execute_query(
    adapter: Any, query: str, args: Mapping[str, Any] | None = None
) -> Iterator[dict[str, Any]]:
    """Run *query* against *adapter*; rows stream back lazily.

    Raises:
        ConfigurationError: The engine is not installed.
        QueryError: The engine rejected the query or its arguments.
    """
    trustfall = _trustfall()
    rejected = tuple(
        getattr(trustfall, name) for name in _ENGINE_QUERY_ERRORS if hasattr(trustfall, name)
    )
    logger.debug("Executing query with args %s", dict(args or {}))
    try:
        schema = trustfall.Schema(load_schema_text())
        return trustfall.execute_query(adapter, schema, query, dict(args or {}))
    except rejected as exc:
        raise QueryError(str(exc)) from exc
