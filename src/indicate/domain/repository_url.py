"""Classify a package's repository URL into a repository vertex.

Best-effort: only URLs that textually contain ``github.com`` and whose host
is exactly ``github.com`` are looked up through the repository-info client.
Every other outcome (other hosts, enterprise or differently-cased hosts,
unparseable URLs, a missing owner, a failed lookup) degrades to the generic
repository vertex carrying the raw URL unchanged.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlsplit

from indicate.domain.models import GitHubRepository
from indicate.domain.vertex import Vertex

logger = logging.getLogger(__name__)

GITHUB_HOST = "github.com"

# scp-like syntax: ``git@github.com:owner/name.git``
_SCP_RE = re.compile(r"^(?:(?P<user>[^@/]+)@)?(?P<host>[^:/]+):(?P<path>[^/].*)$")


class RepositoryInfoSource(Protocol):
    def get_repository(self, owner: str, name: str) -> GitHubRepository | None: ...


@dataclass(frozen=True, slots=True)
class GitUrl:
    """Host, owner and name extracted from a git remote URL."""

    host: str | None
    owner: str | None
    name: str


def _split_path(path: str) -> list[str]:
    path = path.split("#", 1)[0].split("?", 1)[0]
    segments = [s for s in path.strip("/").split("/") if s]
    if segments and segments[-1].endswith(".git"):
        segments[-1] = segments[-1].removesuffix(".git")
    return [s for s in segments if s]


def parse_git_url(url: str) -> GitUrl:
    """Parse a git remote URL.

    Accepts ``https://``, ``http://``, ``git://``, ``ssh://`` and
    ``git+https://`` URLs as well as scp-like ``user@host:owner/name``.
    For the first two path segments, the first is the owner and the second
    the repository name (``/owner/name/tree/main/sub`` keeps ``owner/name``);
    a single segment yields a name without an owner.

    Raises:
        ValueError: If no repository name can be extracted.
    """
    raw = url.strip()
    if not raw:
        raise ValueError("empty repository URL")

    if "://" in raw:
        parts = urlsplit(raw)
        # Keep the host exactly as written; urlsplit().hostname lowercases.
        host = parts.netloc.rpartition("@")[2].split(":", 1)[0] or None
        segments = _split_path(parts.path)
    else:
        match = _SCP_RE.match(raw)
        if match is None:
            raise ValueError(f"not a recognizable git URL: {url!r}")
        host = match.group("host")
        segments = _split_path(match.group("path"))

    if not segments:
        raise ValueError(f"no repository path in URL: {url!r}")
    if len(segments) == 1:
        return GitUrl(host=host, owner=None, name=segments[0])
    return GitUrl(host=host, owner=segments[0], name=segments[1])


def resolve_repository(url: str, client: Callable[[], RepositoryInfoSource]) -> Vertex:
    """Return a GitHub repository vertex when possible, else a generic one.

    *client* is only invoked for URLs that parse to ``github.com`` with an
    owner, so non-GitHub URLs never force the repository-info client to be
    created.
    """
    if GITHUB_HOST not in url:
        return Vertex.repository(url)

    try:
        parsed = parse_git_url(url)
    except ValueError:
        logger.debug("Unparseable repository URL %s", url)
        return Vertex.repository(url)

    if parsed.host != GITHUB_HOST or parsed.owner is None:
        return Vertex.repository(url)

    repo = client().get_repository(parsed.owner, parsed.name)
    if repo is None:
        return Vertex.repository(url)
    return Vertex.github_repository(repo)
