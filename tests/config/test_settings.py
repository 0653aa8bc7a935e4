"""Tests for IndicateSettings — unified settings with TOML source."""

from __future__ import annotations

from pathlib import Path

import pytest

from indicate.config.settings import IndicateSettings
from indicate.errors import ConfigurationError
from indicate.infrastructure.github import DEFAULT_BASE_URL


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("INDICATE_CONFIG", raising=False)
    for var in ("INDICATE_GITHUB__TOKEN", "INDICATE_VERBOSE", "INDICATE_METADATA_PATH"):
        monkeypatch.delenv(var, raising=False)


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = IndicateSettings.from_cli(cwd=tmp_path)
        assert settings.config_path is None
        assert settings.manifest_path == Path("Cargo.toml")
        assert settings.metadata_path is None
        assert settings.json_output is False
        assert settings.github.base_url == DEFAULT_BASE_URL
        assert settings.github.token is None
        assert settings.advisory.fetch is False
        assert settings.geiger.report_path is None
        assert settings.metadata.features == []
        assert settings.query.sort_dependencies is False

    def test_frozen(self, tmp_path: Path) -> None:
        settings = IndicateSettings.from_cli(cwd=tmp_path)
        with pytest.raises(Exception):
            settings.verbose = True  # type: ignore[misc]


class TestTomlSource:
    def test_sections(self, tmp_path: Path) -> None:
        (tmp_path / "indicate.toml").write_text(
            "[github]\n"
            'user_agent = "ci-bot"\n'
            "[metadata]\n"
            'features = ["tls"]\n'
            "all_features = true\n"
            "[query]\n"
            "sort_dependencies = true\n"
        )
        settings = IndicateSettings.from_cli(cwd=tmp_path)
        assert settings.config_path == tmp_path / "indicate.toml"
        assert settings.github.user_agent == "ci-bot"
        assert settings.github.timeout == 20.0
        assert settings.metadata.features == ["tls"]
        assert settings.metadata.all_features is True
        assert settings.query.sort_dependencies is True

    def test_relative_paths_anchor_to_config_dir(self, tmp_path: Path) -> None:
        (tmp_path / "indicate.toml").write_text(
            'manifest_path = "rust/Cargo.toml"\n'
            "[advisory]\n"
            'db_path = "cache/advisory-db"\n'
            "[geiger]\n"
            'report_path = "/abs/geiger.json"\n'
        )
        child = tmp_path / "sub"
        child.mkdir()
        settings = IndicateSettings.from_cli(cwd=child)
        assert settings.manifest_path == tmp_path / "rust" / "Cargo.toml"
        assert settings.advisory.db_path == tmp_path / "cache" / "advisory-db"
        assert settings.geiger.report_path == Path("/abs/geiger.json")

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "conf" / "mine.toml"
        custom.parent.mkdir()
        custom.write_text("[advisory]\nfetch = true\n")
        settings = IndicateSettings.from_cli(config_path=str(custom), cwd=tmp_path)
        assert settings.advisory.fetch is True
        assert settings.config_path == custom

    def test_explicit_config_path_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            IndicateSettings.from_cli(config_path=str(tmp_path / "nope.toml"))

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "indicate.toml").write_text("[github\n")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            IndicateSettings.from_cli(cwd=tmp_path)


class TestPriority:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "indicate.toml").write_text('[github]\ntoken = "from-toml"\n')
        monkeypatch.setenv("INDICATE_GITHUB__TOKEN", "from-env")
        settings = IndicateSettings.from_cli(cwd=tmp_path)
        assert settings.github.token == "from-env"

    def test_cli_overrides_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INDICATE_METADATA_PATH", "/env/metadata.json")
        settings = IndicateSettings.from_cli(cwd=tmp_path, metadata_path=Path("/cli/m.json"))
        assert settings.metadata_path == Path("/cli/m.json")

    def test_none_flags_do_not_mask(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INDICATE_VERBOSE", "true")
        settings = IndicateSettings.from_cli(cwd=tmp_path, verbose=None)
        assert settings.verbose is True
