"""
Bundle Pipeline Orchestrator

This module wires the bundle stages together for one extracted bootstrapper:
read the manifests, relocate the embedded payloads, select features, resolve
the content root and build the download plan. Each stage runs to completion
or raises; re-prompting on recoverable errors belongs to the caller.
"""

import os
from typing import Iterable, Optional, Union

from adkfetch.exceptions import AdkFetchError
from adkfetch.log_utils import logger
from adkfetch.setup_config import RunConfig

from .interfaces import BundleManifest, DownloadPlan, Pathish, SelectionSet, strip_option_prefix
from .manifest import read_burn_manifest, read_ux_manifest
from .plan import build_download_plan, write_descriptor
from .redirects import RedirectResolver, resolve_content_root
from .relocate import relocate_payloads
from .selection import FeatureGraph, format_feature_listing, select_features


class BundlePipeline:
    """
    Runs the bundle stages against one extracted bootstrapper directory.

    The resolved content root is kept after the first successful plan so that
    re-planning a different selection does not resolve the redirect again.
    """

    def __init__(
        self,
        run_config: RunConfig,
        extracted_dir: Pathish,
        resolver: Optional[RedirectResolver] = None,
    ):
        self.run_config = run_config
        self.extracted_dir = str(extracted_dir)
        self.resolver = resolver
        self.manifest: Optional[BundleManifest] = None
        self.content_root: Optional[str] = None

    @classmethod
    def for_version(
        cls,
        run_config: RunConfig,
        version: str,
        resolver: Optional[RedirectResolver] = None,
    ) -> "BundlePipeline":
        """
        Create a pipeline for a version previously downloaded into the work folder.

        Raises:
            AdkFetchError: If the version has no extracted installer directory.
        """
        installer_dir = run_config.installer_dir(version)
        if not os.path.isdir(installer_dir):
            raise AdkFetchError(
                f"{installer_dir} is not a valid directory",
                details="has this version been downloaded already?",
            )
        return cls(run_config, installer_dir, resolver=resolver)

    def load(self) -> BundleManifest:
        """
        Read the Burn manifest, move the embedded payloads into place, then
        read the user-experience manifest they contain.

        Safe to call again on an already relocated directory.
        """
        manifest = read_burn_manifest(self.extracted_dir)
        logger.info("Moving files...")
        relocate_payloads(manifest.ux_payloads.values(), self.extracted_dir)
        read_ux_manifest(self.extracted_dir, manifest)
        self.manifest = manifest
        return manifest

    def _require_manifest(self) -> BundleManifest:
        if self.manifest is None:
            return self.load()
        return self.manifest

    def list_features(self) -> str:
        """
        Return the ``<feature>:<dependencies>`` listing of the bundle.

        Dependencies on options the bundle does not declare are listed as-is
        and reported with a warning.
        """
        logger.info("Listing features...")
        features = self._require_manifest().features
        for feature_id, dependency_id in FeatureGraph(features).unknown_dependencies():
            logger.warning(
                f"{strip_option_prefix(feature_id)} depends on unknown feature "
                f"{strip_option_prefix(dependency_id)}"
            )
        return format_feature_listing(features)

    def select(self, raw_selection: Union[str, Iterable[str]]) -> SelectionSet:
        return select_features(
            self._require_manifest().features,
            raw_selection,
            include_dependencies=self.run_config.resolve_dependencies,
        )

    def plan(
        self,
        raw_selection: Union[str, Iterable[str]],
        cached_root: Optional[str] = None,
    ) -> DownloadPlan:
        """
        Build the download plan for a raw feature selection.

        Parameters:
            raw_selection: Comma-separated string or iterable of feature identifiers.
            cached_root (Optional[str]): Previously resolved content root; falls back to the root resolved by an earlier call.

        Raises:
            EmptySelection: If nothing was selected.
            UnknownFeature: If a feature is unknown or has no payloads.
            SourceUnavailable: If the content root cannot be resolved.
            ManifestMalformed, PayloadMissing: If the manifest tables are inconsistent.
        """
        manifest = self._require_manifest()
        selection = self.select(raw_selection)
        content_root = resolve_content_root(
            manifest,
            cached_root=cached_root or self.content_root,
            resolver=self.resolver,
        )
        self.content_root = content_root
        logger.info("Resolving packages...")
        return build_download_plan(selection, manifest, content_root)

    def write_plan(self, plan: DownloadPlan, path: Pathish) -> str:
        return write_descriptor(plan, path)
