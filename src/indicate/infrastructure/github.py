"""GitHub repository-info client.

REST wrapper over httpx with:
- optional token auth (settings, then ``GITHUB_TOKEN`` / ``GH_TOKEN``)
- per-session caches keyed by (owner, name) and by login, negative results
  included, to keep the request volume of a query bounded
- rate-limit awareness: once the API reports an exhausted quota, lookups
  short-circuit to ``None`` until the reset time instead of hammering it

Lookups never raise for HTTP or payload problems; a repository or user that
cannot be retrieved is an expected absence and resolves to ``None``.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any

import httpx
from pydantic import ValidationError

from indicate.domain.models import GitHubRepository, GitHubUser

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.github.com"


def token_from_env() -> str | None:
    """First non-empty token among ``GITHUB_TOKEN`` and ``GH_TOKEN``."""
    for var in ("GITHUB_TOKEN", "GH_TOKEN"):
        value = (os.getenv(var) or "").strip()
        if value:
            return value
    return None


class GitHubClient:
    """Cached lookups of GitHub repositories and users."""

    def __init__(
        self,
        token: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = "indicate",
        timeout: float = 20.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": user_agent,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        token = token or token_from_env()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._repos: dict[tuple[str, str], GitHubRepository | None] = {}
        self._users: dict[str, GitHubUser | None] = {}
        self._rate_limit_reset: int | None = None

    # ------------------------------------------------------------------
    # Public lookups
    # ------------------------------------------------------------------

    def get_repository(self, owner: str, name: str) -> GitHubRepository | None:
        """Repository ``owner/name``, or None if it cannot be retrieved."""
        key = (owner, name)
        if key not in self._repos:
            data = self._get_json(f"/repos/{owner}/{name}")
            self._repos[key] = self._validate(GitHubRepository, data, f"{owner}/{name}")
        return self._repos[key]

    def get_user(self, login: str) -> GitHubUser | None:
        """Public profile of *login*, or None if it cannot be retrieved."""
        if login not in self._users:
            data = self._get_json(f"/users/{login}")
            self._users[login] = self._validate(GitHubUser, data, login)
        return self._users[login]

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(model: Any, data: Any, label: str) -> Any:
        if data is None:
            return None
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            logger.warning("Unexpected GitHub payload for %s: %s", label, exc)
            return None

    def _rate_limited(self) -> bool:
        if self._rate_limit_reset is None:
            return False
        if time.time() >= self._rate_limit_reset:
            self._rate_limit_reset = None
            return False
        return True

    def _note_rate_limit(self, response: httpx.Response) -> None:
        if response.headers.get("X-RateLimit-Remaining") != "0":
            return
        try:
            self._rate_limit_reset = int(response.headers.get("X-RateLimit-Reset", ""))
        except ValueError:
            self._rate_limit_reset = int(time.time()) + 60
        logger.warning(
            "GitHub rate limit exhausted; skipping lookups until %s", self._rate_limit_reset
        )

    def _get_json(self, path: str) -> Any | None:
        if self._rate_limited():
            logger.debug("Skipping GitHub lookup %s (rate limited)", path)
            return None

        logger.debug("GitHub GET %s", path)
        try:
            response = self._http.get(path)
        except httpx.HTTPError as exc:
            logger.warning("GitHub request %s failed: %s", path, exc)
            return None

        self._note_rate_limit(response)
        if response.status_code == 404:
            logger.debug("GitHub %s not found", path)
            return None
        if response.status_code >= 400:
            logger.warning(
                "GitHub API error %s for %s: %s",
                response.status_code,
                path,
                response.text[:200],
            )
            return None

        try:
            return response.json()
        except ValueError as exc:
            logger.warning("GitHub returned invalid JSON for %s: %s", path, exc)
            return None
