"""Unsafe-usage client backed by a cargo-geiger JSON report.

The report is produced once per session (``cargo geiger --output-format
Json``) or read from a saved file, then indexed by (name, version): the
identity scheme geiger uses, as opposed to the cargo package id the
dependency index uses.
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, TypeAlias

from pydantic import BaseModel, ValidationError

from indicate.domain.geiger import GeigerUnsafety
from indicate.errors import ConfigurationError

logger = logging.getLogger(__name__)

NameVersion: TypeAlias = tuple[str, str]


class _PackageId(BaseModel):
    name: str
    version: str


class _ReportPackage(BaseModel):
    id: _PackageId


class _ReportEntry(BaseModel):
    package: _ReportPackage
    unsafety: GeigerUnsafety


def parse_report(raw: str | bytes) -> dict[NameVersion, GeigerUnsafety]:
    """Index a cargo-geiger JSON report by (name, version).

    Raises:
        ConfigurationError: The report is not valid JSON or lacks ``packages``.
    """
    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid geiger report: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("packages"), list):
        raise ConfigurationError("Geiger report has no 'packages' list")

    entries: dict[NameVersion, GeigerUnsafety] = {}
    for raw_entry in data["packages"]:
        try:
            entry = _ReportEntry.model_validate(raw_entry)
        except ValidationError as exc:
            logger.warning("Skipping malformed geiger entry: %s", exc)
            continue
        key = (entry.package.id.name, entry.package.id.version)
        entries[key] = entry.unsafety
    return entries


def geiger_command(
    manifest_path: Path,
    *,
    cargo: str = "cargo",
    features: Sequence[str] = (),
    all_features: bool = False,
    no_default_features: bool = False,
) -> list[str]:
    cmd = [cargo, "geiger", "--output-format", "Json", "--manifest-path", str(manifest_path)]
    if all_features:
        cmd.append("--all-features")
    if no_default_features:
        cmd.append("--no-default-features")
    if features:
        cmd.extend(["--features", ",".join(features)])
    return cmd


class GeigerClient:
    """Lookup of unsafe usage by (name, version)."""

    def __init__(self, entries: Mapping[NameVersion, GeigerUnsafety]) -> None:
        self._entries = dict(entries)

    @classmethod
    def from_report(cls, path: Path) -> GeigerClient:
        """Load a saved ``cargo geiger --output-format Json`` report."""
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise ConfigurationError(f"Could not read geiger report {path}: {exc}") from exc
        return cls(parse_report(raw))

    @classmethod
    def from_manifest(
        cls,
        manifest_path: Path,
        *,
        cargo: str = "cargo",
        features: Sequence[str] = (),
        all_features: bool = False,
        no_default_features: bool = False,
        timeout: float | None = None,
    ) -> GeigerClient:
        """Run cargo-geiger on *manifest_path*.

        cargo-geiger exits non-zero when it finds unsafe code in some
        configurations, so the exit status alone does not decide failure:
        output that parses as a report is accepted.
        """
        cmd = geiger_command(
            manifest_path,
            cargo=cargo,
            features=features,
            all_features=all_features,
            no_default_features=no_default_features,
        )
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        except FileNotFoundError as exc:
            raise ConfigurationError(f"cargo executable not found: {cargo}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ConfigurationError(f"cargo geiger timed out for {manifest_path}") from exc

        if not proc.stdout.strip():
            msg = f"failed to create geiger data for {manifest_path}: {proc.stderr.strip()}"
            raise ConfigurationError(msg)
        return cls(parse_report(proc.stdout))

    def unsafety(self, name: str, version: str) -> GeigerUnsafety | None:
        return self._entries.get((name, version))

    def __len__(self) -> int:
        return len(self._entries)
