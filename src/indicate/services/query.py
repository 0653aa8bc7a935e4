"""QueryService — run a query against a freshly built adapter.

The adapter raises for every failure; this is the layer that turns those
exceptions into a ServiceResult with a stable error code:

- ``CONFIG_ERROR``: metadata, settings or the engine install is unusable
- ``BACKEND_UNAVAILABLE``: a backend client could not be created
- ``QUERY_ERROR``: the engine rejected the query or its arguments
- ``INTERNAL_ERROR``: the adapter and the schema disagree
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from itertools import islice
from typing import TYPE_CHECKING, Any

from indicate import engine
from indicate.errors import BackendUnavailableError, IndicateError
from indicate.services.result import ServiceError, ServiceResult
from indicate.services.telemetry import get_current_span, traced

if TYPE_CHECKING:
    from indicate.adapter import IndicateAdapter

logger = logging.getLogger(__name__)


class QueryService:
    """Executes queries; the adapter is built only when a query runs."""

    def __init__(self, adapter_factory: Callable[[], IndicateAdapter]) -> None:
        self._adapter_factory = adapter_factory

    @traced
    def run(
        self,
        query: str,
        args: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
    ) -> ServiceResult:
        """Execute *query* and collect its rows.

        Args:
            query: Query text in the engine's GraphQL dialect.
            args: Values for the query's ``$variables``.
            limit: Stop after this many rows; the remaining rows are never
                computed.
        """
        op = "query"
        if not query.strip():
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(code="QUERY_ERROR", message="Query cannot be empty"),
            )

        try:
            adapter = self._adapter_factory()
            rows_iter = engine.execute_query(adapter, query, args or {})
            rows = list(rows_iter if limit is None else islice(rows_iter, limit))
        except IndicateError as exc:
            return self._failure(op, exc)

        span = get_current_span()
        if span is not None:
            span.annotate("rows", len(rows))
        logger.debug("Query returned %d rows", len(rows))
        return ServiceResult(ok=True, op=op, data={"count": len(rows), "rows": rows})

    @staticmethod
    def _failure(op: str, exc: IndicateError) -> ServiceResult:
        detail: dict[str, Any] = {"exception": type(exc).__name__}
        if isinstance(exc, BackendUnavailableError):
            detail["backend"] = exc.backend
        logger.debug("%s failed with %s: %s", op, exc.code, exc)
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(code=exc.code, message=str(exc), detail=detail),
        )
