"""Orchestrator — wires materialization, bundling and the post-build rewrite."""

from __future__ import annotations

import logging
import time
from typing import Optional

from pageforge.build.bundlers import Bundler, get_bundler
from pageforge.build.materializer import materialize_pages
from pageforge.build.rewriter import cleanup_artifacts, empty_out_dir, rewrite_build_output
from pageforge.config import ConfigTree, SiteConfig
from pageforge.models import BuildArtifactSet, BuildResult

logger = logging.getLogger(__name__)


def load_variables(site: SiteConfig) -> ConfigTree:
    return ConfigTree.from_file(site.variables_file)


def run_build(
    site: SiteConfig,
    tree: Optional[ConfigTree] = None,
    bundler: Optional[Bundler] = None,
) -> BuildResult:
    """Build every page into ``site.out_root``.

    The previous contents of ``out_root`` are removed first. Temporary
    pages are removed whatever happens; any other failure propagates to
    the caller.
    """
    t0 = time.time()
    if tree is None:
        tree = load_variables(site)
    if bundler is None:
        bundler = get_bundler(site.bundler)

    empty_out_dir(site)
    artifacts: Optional[BuildArtifactSet] = None
    try:
        artifacts = materialize_pages(site, tree)
        logger.info("Bundling %d page(s) with %s", len(artifacts.routes), bundler.name())
        bundler.bundle(artifacts, site)
        outputs = rewrite_build_output(site, site.base_url)
    finally:
        cleanup_artifacts(site, artifacts)

    result = BuildResult(
        routes=artifacts.routes,
        outputs=outputs,
        bundler=bundler.name(),
        base_url=site.base_url,
        elapsed_s=round(time.time() - t0, 3),
    )
    logger.info("Built %d page(s) in %.2fs", len(result.outputs), result.elapsed_s)
    return result
