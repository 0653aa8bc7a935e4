"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, indicate.toml only contains
overrides. A project needs no config file at all; the defaults read the
Cargo.toml in the working directory and the local advisory database.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from indicate.infrastructure.advisories import DEFAULT_REPO_URL
from indicate.infrastructure.github import DEFAULT_BASE_URL


class GitHubConfig(BaseModel):
    """[github] section."""

    model_config = {"frozen": True}

    token: str | None = None
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = "indicate"
    timeout: float = 20.0


class AdvisoryConfig(BaseModel):
    """[advisory] section.

    ``db_path`` defaults to ``$CARGO_HOME/advisory-db``. With ``fetch`` the
    database is cloned (or fast-forwarded) before it is read; a missing
    database is fetched regardless.
    """

    model_config = {"frozen": True}

    db_path: Path | None = None
    repo_url: str = DEFAULT_REPO_URL
    fetch: bool = False


class GeigerConfig(BaseModel):
    """[geiger] section.

    With ``report_path`` a saved report is read; otherwise cargo-geiger runs
    against the manifest the first time a query touches unsafe-usage data.
    """

    model_config = {"frozen": True}

    report_path: Path | None = None
    cargo: str = "cargo"
    timeout: float | None = 600.0


class MetadataConfig(BaseModel):
    """[metadata] section — how ``cargo metadata`` (and cargo-geiger) is invoked."""

    model_config = {"frozen": True}

    features: list[str] = Field(default_factory=list)
    all_features: bool = False
    no_default_features: bool = False
    cargo: str = "cargo"


class QueryConfig(BaseModel):
    """[query] section."""

    model_config = {"frozen": True}

    sort_dependencies: bool = False
