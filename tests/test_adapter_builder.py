"""Tests for wiring an adapter from settings."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from indicate import adapter_builder
from indicate.adapter_builder import build_adapter, build_clients
from indicate.config.settings import IndicateSettings
from indicate.errors import BackendUnavailableError, ConfigurationError
from indicate.infrastructure.advisories import AdvisoryClient
from indicate.infrastructure.github import GitHubClient
from tests.conftest import APP_ID


def _settings(tmp_path: Path, **kwargs: Any) -> IndicateSettings:
    return IndicateSettings.from_cli(cwd=tmp_path, **kwargs)


class TestBuildAdapter:
    def test_from_metadata_snapshot(self, tmp_path: Path, metadata_file: Path) -> None:
        adapter = build_adapter(_settings(tmp_path, metadata_path=metadata_file))
        assert adapter.index.root_id == APP_ID
        assert len(adapter.index) == 3

    def test_runs_cargo_without_snapshot(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, metadata_file: Path
    ) -> None:
        seen: dict[str, Any] = {}

        def fake_load(manifest_path: Path, **kwargs: Any) -> Any:
            seen.update(manifest_path=manifest_path, **kwargs)
            return adapter_builder.load_metadata_file(metadata_file)

        monkeypatch.setattr(adapter_builder, "load_metadata", fake_load)
        settings = _settings(tmp_path, manifest_path=tmp_path / "Cargo.toml")
        build_adapter(settings)
        assert seen["manifest_path"] == tmp_path / "Cargo.toml"
        assert seen["cargo"] == "cargo"

    def test_bad_metadata(self, tmp_path: Path) -> None:
        path = tmp_path / "metadata.json"
        path.write_text(json.dumps({"packages": [], "resolve": None}))
        with pytest.raises(ConfigurationError):
            build_adapter(_settings(tmp_path, metadata_path=path))


class TestBuildClients:
    def test_nothing_created_eagerly(self, tmp_path: Path) -> None:
        clients = build_clients(_settings(tmp_path))
        assert not clients.github.initialized
        assert not clients.advisories.initialized
        assert not clients.geiger.initialized

    def test_github_client(self, tmp_path: Path) -> None:
        clients = build_clients(_settings(tmp_path))
        assert isinstance(clients.github.get_or_create(), GitHubClient)

    def test_local_advisory_db(self, tmp_path: Path, advisory_db: Path) -> None:
        (tmp_path / "indicate.toml").write_text(f'[advisory]\ndb_path = "{advisory_db}"\n')
        client = build_clients(_settings(tmp_path)).advisories.get_or_create()
        assert isinstance(client, AdvisoryClient)
        assert len(client) == 2

    def test_missing_db_is_fetched(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        fetched: list[Path] = []

        def fake_fetch(dest: Path, **kwargs: Any) -> AdvisoryClient:
            fetched.append(dest)
            return AdvisoryClient([])

        monkeypatch.setattr(AdvisoryClient, "fetch", staticmethod(fake_fetch))
        (tmp_path / "indicate.toml").write_text('[advisory]\ndb_path = "missing-db"\n')
        build_clients(_settings(tmp_path)).advisories.get_or_create()
        assert fetched == [tmp_path / "missing-db"]

    def test_geiger_report_missing_is_unavailable(self, tmp_path: Path) -> None:
        (tmp_path / "indicate.toml").write_text('[geiger]\nreport_path = "absent.json"\n')
        slot = build_clients(_settings(tmp_path)).geiger
        with pytest.raises(BackendUnavailableError, match="geiger"):
            slot.get_or_create()
