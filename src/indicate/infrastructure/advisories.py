"""Advisory-database client over a RustSec-format checkout.

Layout: ``crates/<name>/<ID>.md`` (and ``rust/<component>/<ID>.md``), each
file a fenced TOML front-matter block followed by a Markdown body whose
first ``# `` heading is the title and whose remainder is the description.
Legacy ``.toml`` advisories (title and description inside ``[advisory]``)
are read as well.

The database is loaded once per client; query results are cached per
(crate name, filters) for the session.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tomllib
from collections import defaultdict
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TypeAlias

from pydantic import ValidationError

from indicate.domain.models import Advisory
from indicate.domain.platforms import OS, Arch, Severity
from indicate.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_REPO_URL = "https://github.com/rustsec/advisory-db.git"
_SECTIONS = ("crates", "rust")

_QueryKey: TypeAlias = tuple[str, bool, Arch | None, OS | None, Severity | None]


def default_db_path() -> Path:
    """``$CARGO_HOME/advisory-db``, falling back to ``~/.cargo/advisory-db``."""
    cargo_home = os.environ.get("CARGO_HOME")
    base = Path(cargo_home) if cargo_home else Path.home() / ".cargo"
    return base / "advisory-db"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _split_front_matter(text: str) -> tuple[str, str]:
    """Split a Markdown advisory into (toml, body)."""
    stripped = text.lstrip()
    if not stripped.startswith("```toml"):
        raise ValueError("advisory does not start with a ```toml block")
    after_fence = stripped[len("```toml") :]
    toml_part, sep, body = after_fence.partition("\n```")
    if not sep:
        raise ValueError("unterminated ```toml block")
    return toml_part, body


def _split_title(body: str) -> tuple[str, str]:
    lines = body.strip().splitlines()
    title = ""
    rest: list[str] = []
    for i, line in enumerate(lines):
        if line.startswith("# "):
            title = line[2:].strip()
            rest = lines[i + 1 :]
            break
    else:
        rest = lines
    return title, "\n".join(rest).strip()


def _advisory_from_tables(data: dict[str, Any], title: str, description: str) -> Advisory:
    meta = dict(data.get("advisory", {}))
    versions = data.get("versions", {})
    payload: dict[str, Any] = {
        "id": meta.get("id"),
        "package": meta.get("package"),
        "title": title or meta.get("title", ""),
        "description": description or meta.get("description", ""),
        "date": meta.get("date"),
        "withdrawn": meta.get("withdrawn"),
        "url": meta.get("url"),
        "cvss": meta.get("cvss"),
        "informational": meta.get("informational"),
        "aliases": meta.get("aliases", ()),
        "affected": data.get("affected"),
        "patched": versions.get("patched", ()),
        "unaffected": versions.get("unaffected", ()),
    }
    return Advisory.model_validate(payload)


def parse_advisory(text: str, *, legacy_toml: bool = False) -> Advisory:
    """Parse one advisory file.

    Raises:
        ValueError: Malformed front matter, TOML or advisory fields.
    """
    if legacy_toml:
        return _advisory_from_tables(tomllib.loads(text), "", "")
    toml_part, body = _split_front_matter(text)
    title, description = _split_title(body)
    return _advisory_from_tables(tomllib.loads(toml_part), title, description)


def load_database(path: Path) -> list[Advisory]:
    """Read every advisory under a database checkout.

    Malformed advisory files are skipped with a warning; a missing directory
    is a configuration error.
    """
    if not path.is_dir():
        raise ConfigurationError(f"Advisory database not found at {path}")

    advisories: list[Advisory] = []
    for section in _SECTIONS:
        root = path / section
        if not root.is_dir():
            continue
        for file in sorted(root.glob("*/*")):
            if file.suffix not in (".md", ".toml"):
                continue
            try:
                text = file.read_text(encoding="utf-8")
                advisories.append(parse_advisory(text, legacy_toml=file.suffix == ".toml"))
            except (OSError, ValueError) as exc:
                # ValidationError and TOMLDecodeError are both ValueErrors.
                logger.warning("Skipping advisory %s: %s", file, exc)
    logger.debug("Loaded %d advisories from %s", len(advisories), path)
    return advisories


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


def fetch_database(
    dest: Path,
    *,
    repo_url: str = DEFAULT_REPO_URL,
    git: str = "git",
    timeout: float | None = 300.0,
) -> Path:
    """Clone the advisory database into *dest*, or fast-forward an existing clone.

    Raises:
        ConfigurationError: If git is missing or the clone/pull fails.
    """
    if (dest / ".git").is_dir():
        cmd = [git, "-C", str(dest), "pull", "--ff-only", "--quiet"]
    else:
        dest.parent.mkdir(parents=True, exist_ok=True)
        cmd = [git, "clone", "--depth", "1", "--quiet", repo_url, str(dest)]

    logger.debug("Running %s", " ".join(cmd))
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"git executable not found: {git}") from exc
    except subprocess.TimeoutExpired as exc:
        raise ConfigurationError(f"Fetching advisory database timed out: {repo_url}") from exc
    if proc.returncode != 0:
        raise ConfigurationError(f"Could not fetch advisory database: {proc.stderr.strip()}")
    return dest


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class AdvisoryClient:
    """Query advisories for a crate, filtered by platform and severity."""

    def __init__(self, advisories: Iterable[Advisory]) -> None:
        by_package: dict[str, list[Advisory]] = defaultdict(list)
        for advisory in advisories:
            by_package[advisory.package].append(advisory)
        self._by_package = {
            name: tuple(sorted(items, key=lambda a: a.id)) for name, items in by_package.items()
        }
        self._cache: dict[_QueryKey, list[Advisory]] = {}

    @classmethod
    def from_path(cls, path: Path) -> AdvisoryClient:
        """Create a client from a local advisory database checkout."""
        return cls(load_database(path))

    @classmethod
    def fetch(
        cls,
        dest: Path | None = None,
        *,
        repo_url: str = DEFAULT_REPO_URL,
        timeout: float | None = 300.0,
    ) -> AdvisoryClient:
        """Fetch (or update) the database, then load it."""
        path = fetch_database(dest or default_db_path(), repo_url=repo_url, timeout=timeout)
        return cls.from_path(path)

    def __len__(self) -> int:
        return sum(len(items) for items in self._by_package.values())

    def query(
        self,
        name: str,
        include_withdrawn: bool,
        arch: Arch | None = None,
        os: OS | None = None,
        min_severity: Severity | None = None,
    ) -> list[Advisory]:
        """All advisories for *name* matching the filters, ordered by id.

        - Withdrawn advisories are returned only with *include_withdrawn*.
        - *arch* / *os* exclude advisories restricted to other platforms;
          advisories without a platform restriction always match.
        - *min_severity* is an inclusive floor; advisories without a CVSS
          score carry no severity and are not excluded by it.
        """
        key: _QueryKey = (name, include_withdrawn, arch, os, min_severity)
        if key not in self._cache:
            self._cache[key] = [
                a
                for a in self._by_package.get(name, ())
                if self._matches(a, include_withdrawn, arch, os, min_severity)
            ]
        return self._cache[key]

    @staticmethod
    def _matches(
        advisory: Advisory,
        include_withdrawn: bool,
        arch: Arch | None,
        os: OS | None,
        min_severity: Severity | None,
    ) -> bool:
        if advisory.is_withdrawn and not include_withdrawn:
            return False

        affected = advisory.affected
        if arch is not None and affected is not None and affected.arch:
            if arch.value not in affected.arch:
                return False
        if os is not None and affected is not None and affected.os:
            if os.value not in affected.os:
                return False

        if min_severity is not None:
            severity = advisory.severity
            if severity is not None and not severity.at_least(min_severity):
                return False
        return True
