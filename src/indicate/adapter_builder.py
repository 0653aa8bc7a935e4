"""Wire an IndicateAdapter from settings.

The dependency graph is built eagerly (a query always needs it); the three
backend clients are only described here, as factories in lazy slots.
"""

from __future__ import annotations

import logging

from indicate.adapter import IndicateAdapter
from indicate.config.settings import IndicateSettings
from indicate.infrastructure.advisories import AdvisoryClient, default_db_path
from indicate.infrastructure.backends import BackendClients, LazySlot
from indicate.infrastructure.cargo import CargoMetadata, load_metadata, load_metadata_file
from indicate.infrastructure.geiger import GeigerClient
from indicate.infrastructure.github import GitHubClient
from indicate.infrastructure.graph.index import DependencyIndex

logger = logging.getLogger(__name__)


def load_cargo_metadata(settings: IndicateSettings) -> CargoMetadata:
    """Saved snapshot when ``metadata_path`` is set, otherwise ``cargo metadata``."""
    if settings.metadata_path is not None:
        logger.debug("Reading metadata snapshot %s", settings.metadata_path)
        return load_metadata_file(settings.metadata_path)
    meta = settings.metadata
    return load_metadata(
        settings.manifest_path,
        cargo=meta.cargo,
        features=meta.features,
        all_features=meta.all_features,
        no_default_features=meta.no_default_features,
    )


def _github_factory(settings: IndicateSettings) -> GitHubClient:
    cfg = settings.github
    return GitHubClient(
        token=cfg.token,
        base_url=cfg.base_url,
        user_agent=cfg.user_agent,
        timeout=cfg.timeout,
    )


def _advisory_factory(settings: IndicateSettings) -> AdvisoryClient:
    cfg = settings.advisory
    db_path = cfg.db_path or default_db_path()
    if cfg.fetch or not db_path.is_dir():
        logger.info("Fetching advisory database into %s", db_path)
        return AdvisoryClient.fetch(db_path, repo_url=cfg.repo_url)
    return AdvisoryClient.from_path(db_path)


def _geiger_factory(settings: IndicateSettings) -> GeigerClient:
    cfg = settings.geiger
    if cfg.report_path is not None:
        return GeigerClient.from_report(cfg.report_path)
    meta = settings.metadata
    return GeigerClient.from_manifest(
        settings.manifest_path,
        cargo=cfg.cargo,
        features=meta.features,
        all_features=meta.all_features,
        no_default_features=meta.no_default_features,
        timeout=cfg.timeout,
    )


def build_clients(settings: IndicateSettings) -> BackendClients:
    return BackendClients(
        github=LazySlot("github", lambda: _github_factory(settings)),
        advisories=LazySlot("advisories", lambda: _advisory_factory(settings)),
        geiger=LazySlot("geiger", lambda: _geiger_factory(settings)),
    )


def build_adapter(settings: IndicateSettings) -> IndicateAdapter:
    """Build the dependency index and backend slots described by *settings*.

    Raises:
        ConfigurationError: Metadata could not be loaded or has no resolve
            graph.
    """
    index = DependencyIndex.build(load_cargo_metadata(settings))
    logger.debug("Dependency index holds %d packages", len(index))
    return IndicateAdapter(
        index,
        build_clients(settings),
        sort_dependencies=settings.query.sort_dependencies,
    )
