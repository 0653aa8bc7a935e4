"""Shared pytest fixtures and test helpers for indicate tests."""

from __future__ import annotations

import datetime as dt
import json
from collections.abc import Generator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from indicate.adapter import IndicateAdapter
from indicate.domain.geiger import GeigerCategories, GeigerCount, GeigerUnsafety
from indicate.domain.models import Advisory, GitHubRepository, GitHubUser, SimpleUser
from indicate.infrastructure.advisories import AdvisoryClient
from indicate.infrastructure.backends import BackendClients, LazySlot
from indicate.infrastructure.cargo import parse_metadata
from indicate.infrastructure.geiger import GeigerClient
from indicate.infrastructure.graph.index import DependencyIndex
from indicate.services.telemetry import _current_span, disable_telemetry

APP_ID = "app 1.0.0 (path+file:///work/app)"
LIBFOO_ID = "libfoo 2.1.0 (registry+https://github.com/rust-lang/crates.io-index)"
BAR_ID = "bar 0.3.0 (registry+https://github.com/rust-lang/crates.io-index)"

CRITICAL_CVSS = "CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H"  # 9.8
MEDIUM_CVSS = "CVSS:3.1/AV:L/AC:L/PR:L/UI:N/S:U/C:H/I:N/A:N"  # 5.5
LOW_CVSS = "CVSS:3.1/AV:N/AC:H/PR:N/UI:R/S:U/C:L/I:N/A:N"  # 3.1


def sample_metadata() -> dict[str, Any]:
    """``cargo metadata`` for app -> {libfoo, bar}, libfoo -> bar."""
    return {
        "packages": [
            {
                "id": APP_ID,
                "name": "app",
                "version": "1.0.0",
                "license": None,
                "repository": "https://gitlab.com/acme/app",
                "manifest_path": "/work/app/Cargo.toml",
            },
            {
                "id": LIBFOO_ID,
                "name": "libfoo",
                "version": "2.1.0",
                "license": "MIT OR Apache-2.0",
                "repository": "https://github.com/acme/libfoo",
                "manifest_path": "/registry/libfoo-2.1.0/Cargo.toml",
            },
            {
                "id": BAR_ID,
                "name": "bar",
                "version": "0.3.0",
                "license": "MIT",
                "repository": None,
                "manifest_path": "/registry/bar-0.3.0/Cargo.toml",
            },
        ],
        "resolve": {
            "nodes": [
                {"id": APP_ID, "dependencies": [LIBFOO_ID, BAR_ID]},
                {"id": LIBFOO_ID, "dependencies": [BAR_ID]},
                {"id": BAR_ID, "dependencies": []},
            ],
            "root": APP_ID,
        },
        "workspace_members": [APP_ID],
    }


def sample_advisories() -> list[Advisory]:
    return [
        Advisory(
            id="RUSTSEC-2021-0001",
            package="libfoo",
            title="Buffer overflow in parse",
            description="parse() writes past the end of its buffer.",
            date=dt.date(2021, 1, 5),
            cvss=CRITICAL_CVSS,
            affected={
                "arch": ["x86_64"],
                "functions": {"libfoo::parse": [">= 2.0.0, < 2.2.0"]},
            },
            patched=[">= 2.2.0"],
            unaffected=["< 2.0.0"],
        ),
        Advisory(
            id="RUSTSEC-2020-0099",
            package="libfoo",
            title="Withdrawn: not a bug",
            description="",
            date=dt.date(2020, 5, 1),
            withdrawn=dt.date(2020, 6, 1),
        ),
        Advisory(
            id="RUSTSEC-2022-0010",
            package="libfoo",
            title="Path traversal on Windows",
            description="Paths are not normalized.",
            date=dt.date(2022, 3, 10),
            cvss=MEDIUM_CVSS,
            affected={"os": ["windows"]},
            patched=[">= 2.1.1"],
        ),
        Advisory(
            id="RUSTSEC-2023-0100",
            package="libfoo",
            title="Unmaintained",
            description="The crate is no longer maintained.",
            date=dt.date(2023, 7, 1),
            informational="unmaintained",
        ),
    ]


def make_unsafety(
    *, used_unsafe: int = 2, used_safe: int = 8, unused_unsafe: int = 1, forbids: bool = False
) -> GeigerUnsafety:
    return GeigerUnsafety(
        used=GeigerCategories(
            functions=GeigerCount(safe=used_safe, unsafe=used_unsafe),
            exprs=GeigerCount(safe=100, unsafe=10),
        ),
        unused=GeigerCategories(methods=GeigerCount(safe=0, unsafe=unused_unsafe)),
        forbids_unsafe=forbids,
    )


@dataclass
class FakeGitHub:
    """In-memory stand-in for GitHubClient that records its lookups."""

    repos: dict[tuple[str, str], GitHubRepository] = field(default_factory=dict)
    users: dict[str, GitHubUser] = field(default_factory=dict)
    calls: list[tuple[str, ...]] = field(default_factory=list)

    def get_repository(self, owner: str, name: str) -> GitHubRepository | None:
        self.calls.append(("repo", owner, name))
        return self.repos.get((owner, name))

    def get_user(self, login: str) -> GitHubUser | None:
        self.calls.append(("user", login))
        return self.users.get(login)


def sample_github() -> FakeGitHub:
    return FakeGitHub(
        repos={
            ("acme", "libfoo"): GitHubRepository(
                name="libfoo",
                full_name="acme/libfoo",
                html_url="https://github.com/acme/libfoo",
                stargazers_count=1200,
                forks_count=80,
                open_issues_count=14,
                has_issues=True,
                archived=False,
                fork=False,
                owner=SimpleUser(login="acme"),
            )
        },
        users={
            "acme": GitHubUser(
                login="acme",
                created_at=dt.datetime(2015, 3, 1, 12, 0, tzinfo=dt.UTC),
                followers=310,
                email=None,
            )
        },
    )


@dataclass
class Ctx:
    """Minimal engine context: the vertex currently being resolved."""

    active_vertex: Any


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _reset_telemetry_state() -> Generator[None]:
    """Ensure clean telemetry state for every test."""
    yield
    disable_telemetry()
    _current_span.set(None)


@pytest.fixture
def metadata_file(tmp_path: Path) -> Path:
    path = tmp_path / "metadata.json"
    path.write_text(json.dumps(sample_metadata()), encoding="utf-8")
    return path


@pytest.fixture
def index() -> DependencyIndex:
    return DependencyIndex.build(parse_metadata(json.dumps(sample_metadata())))


@pytest.fixture
def github() -> FakeGitHub:
    return sample_github()


@pytest.fixture
def advisory_client() -> AdvisoryClient:
    return AdvisoryClient(sample_advisories())


@pytest.fixture
def geiger_client() -> GeigerClient:
    return GeigerClient(
        {
            ("libfoo", "2.1.0"): make_unsafety(),
            ("app", "1.0.0"): make_unsafety(used_unsafe=0, unused_unsafe=0, forbids=True),
        }
    )


@pytest.fixture
def clients(
    github: FakeGitHub, advisory_client: AdvisoryClient, geiger_client: GeigerClient
) -> BackendClients:
    return BackendClients(
        github=LazySlot("github", lambda: github),  # type: ignore[arg-type,return-value]
        advisories=LazySlot("advisories", lambda: advisory_client),
        geiger=LazySlot("geiger", lambda: geiger_client),
    )


@pytest.fixture
def adapter(index: DependencyIndex, clients: BackendClients) -> IndicateAdapter:
    return IndicateAdapter(index, clients)


@pytest.fixture
def advisory_db(tmp_path: Path) -> Path:
    """A RustSec-format checkout with two libfoo advisories."""
    root = tmp_path / "advisory-db"
    crate_dir = root / "crates" / "libfoo"
    crate_dir.mkdir(parents=True)
    (crate_dir / "RUSTSEC-2021-0001.md").write_text(
        ADVISORY_MD.format(id="RUSTSEC-2021-0001", extra=f'cvss = "{CRITICAL_CVSS}"'),
        encoding="utf-8",
    )
    (crate_dir / "RUSTSEC-2020-0099.md").write_text(
        ADVISORY_MD.format(id="RUSTSEC-2020-0099", extra='withdrawn = "2020-06-01"'),
        encoding="utf-8",
    )
    return root


ADVISORY_MD = """\
```toml
[advisory]
id = "{id}"
package = "libfoo"
date = "2021-01-05"
url = "https://example.invalid/{id}"
{extra}

[affected]
arch = ["x86_64"]
functions = {{ "libfoo::parse" = [">= 2.0.0, < 2.2.0"] }}

[versions]
patched = [">= 2.2.0"]
```

# Buffer overflow in parse

parse() writes past the end of its buffer.

More detail follows.
"""
