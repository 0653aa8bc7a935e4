"""Tests for QueryService — engine execution and error mapping."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest

from indicate import engine
from indicate.adapter import IndicateAdapter
from indicate.errors import (
    BackendUnavailableError,
    ConfigurationError,
    QueryError,
    UnknownPropertyError,
)
from indicate.services.query import QueryService
from indicate.services.telemetry import enable_telemetry


def _rows(n: int, pulled: list[int]) -> Iterator[dict[str, Any]]:
    for i in range(n):
        pulled.append(i)
        yield {"name": f"crate-{i}"}


class TestRun:
    def test_collects_rows(
        self, adapter: IndicateAdapter, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        seen: dict[str, Any] = {}

        def fake_execute(adp: Any, query: str, args: Any) -> Iterator[dict[str, Any]]:
            seen.update(adapter=adp, query=query, args=args)
            return _rows(3, [])

        monkeypatch.setattr(engine, "execute_query", fake_execute)
        result = QueryService(lambda: adapter).run("{ RootPackage { name @output } }", {"x": 1})
        assert result.ok
        assert result.op == "query"
        assert result.data["count"] == 3
        assert result.data["rows"][0] == {"name": "crate-0"}
        assert seen["adapter"] is adapter
        assert seen["args"] == {"x": 1}

    def test_limit_stops_pulling(
        self, adapter: IndicateAdapter, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        pulled: list[int] = []
        monkeypatch.setattr(engine, "execute_query", lambda a, q, g: _rows(100, pulled))
        result = QueryService(lambda: adapter).run("{ x }", limit=2)
        assert result.data["count"] == 2
        assert pulled == [0, 1]

    def test_empty_query(self, adapter: IndicateAdapter) -> None:
        result = QueryService(lambda: adapter).run("   ")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "QUERY_ERROR"

    def test_telemetry_in_meta(
        self, adapter: IndicateAdapter, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        enable_telemetry()
        monkeypatch.setattr(engine, "execute_query", lambda a, q, g: _rows(2, []))
        result = QueryService(lambda: adapter).run("{ x }")
        assert result.meta is not None
        assert result.meta["telemetry"]["annotations"] == {"rows": 2}


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("exc", "code"),
        [
            (ConfigurationError("No nodes found"), "CONFIG_ERROR"),
            (BackendUnavailableError("geiger", "cargo geiger missing"), "BACKEND_UNAVAILABLE"),
            (UnknownPropertyError("Package", "downloads"), "INTERNAL_ERROR"),
            (QueryError("unexpected token"), "QUERY_ERROR"),
        ],
    )
    def test_codes(
        self,
        adapter: IndicateAdapter,
        monkeypatch: pytest.MonkeyPatch,
        exc: Exception,
        code: str,
    ) -> None:
        def fake_execute(a: Any, q: str, g: Any) -> Iterator[dict[str, Any]]:
            raise exc

        monkeypatch.setattr(engine, "execute_query", fake_execute)
        result = QueryService(lambda: adapter).run("{ x }")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == code
        assert result.error.detail["exception"] == type(exc).__name__

    def test_error_raised_while_streaming(
        self, adapter: IndicateAdapter, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def rows(a: Any, q: str, g: Any) -> Iterator[dict[str, Any]]:
            yield {"name": "ok"}
            raise BackendUnavailableError("advisories", "clone failed")

        monkeypatch.setattr(engine, "execute_query", rows)
        result = QueryService(lambda: adapter).run("{ x }")
        assert result.error is not None
        assert result.error.code == "BACKEND_UNAVAILABLE"
        assert result.error.detail["backend"] == "advisories"

    def test_adapter_build_failure(self) -> None:
        def factory() -> IndicateAdapter:
            raise ConfigurationError("cargo executable not found: cargo")

        result = QueryService(factory).run("{ x }")
        assert result.error is not None
        assert result.error.code == "CONFIG_ERROR"
