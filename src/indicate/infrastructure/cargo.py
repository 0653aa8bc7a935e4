"""Dependency snapshot loading via ``cargo metadata``.

The snapshot is the only structural input: the package list plus the
resolve graph (nodes with their direct dependency ids, and the root id).
It can be produced by running cargo against a manifest or read from a
previously saved ``cargo metadata --format-version 1`` JSON file.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, ValidationError

from indicate.errors import ConfigurationError

logger = logging.getLogger(__name__)


class MetadataPackage(BaseModel):
    """One entry of ``packages`` in cargo metadata output."""

    model_config = {"frozen": True}

    id: str
    name: str
    version: str
    license: str | None = None
    repository: str | None = None
    manifest_path: str = ""


class ResolveNode(BaseModel):
    model_config = {"frozen": True}

    id: str
    dependencies: tuple[str, ...] = ()


class Resolve(BaseModel):
    model_config = {"frozen": True}

    nodes: tuple[ResolveNode, ...] = ()
    root: str | None = None


class CargoMetadata(BaseModel):
    """The parts of ``cargo metadata`` output the index is built from."""

    model_config = {"frozen": True}

    packages: tuple[MetadataPackage, ...] = ()
    resolve: Resolve | None = None
    workspace_members: tuple[str, ...] = ()


def parse_metadata(raw: str | bytes) -> CargoMetadata:
    """Validate raw cargo metadata JSON."""
    try:
        return CargoMetadata.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid cargo metadata: {exc}") from exc


def load_metadata_file(path: Path) -> CargoMetadata:
    """Read a saved ``cargo metadata`` JSON snapshot."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ConfigurationError(f"Could not read metadata from {path}: {exc}") from exc
    return parse_metadata(raw)


def metadata_command(
    manifest_path: Path,
    *,
    cargo: str = "cargo",
    features: Sequence[str] = (),
    all_features: bool = False,
    no_default_features: bool = False,
) -> list[str]:
    """Build the ``cargo metadata`` argument vector."""
    cmd = [cargo, "metadata", "--format-version", "1", "--manifest-path", str(manifest_path)]
    if all_features:
        cmd.append("--all-features")
    if no_default_features:
        cmd.append("--no-default-features")
    if features:
        cmd.extend(["--features", ",".join(features)])
    return cmd


def load_metadata(
    manifest_path: Path,
    *,
    cargo: str = "cargo",
    features: Sequence[str] = (),
    all_features: bool = False,
    no_default_features: bool = False,
    timeout: float | None = None,
) -> CargoMetadata:
    """Run ``cargo metadata`` for *manifest_path* and parse its output.

    Raises:
        ConfigurationError: If cargo is missing, fails, or prints invalid JSON.
    """
    cmd = metadata_command(
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
        raise ConfigurationError(f"cargo metadata timed out for {manifest_path}") from exc

    if proc.returncode != 0:
        msg = f"Could not extract metadata from path {manifest_path}: {proc.stderr.strip()}"
        raise ConfigurationError(msg)

    return parse_metadata(proc.stdout)
