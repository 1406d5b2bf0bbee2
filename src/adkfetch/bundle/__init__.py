"""
adkfetch Bundle Subsystem

This package turns an extracted ADK bootstrapper into a bulk download
descriptor.

Core Components:
- interfaces: Records and collaborator interfaces
- manifest: Burn and user-experience manifest parsing
- relocate: Embedded payload relocation
- selection: Feature selection and the dependency graph
- redirects: Redirect link resolution
- plan: Download plan and aria2c descriptor
- orchestrator: Stage coordination (import from adkfetch.bundle.orchestrator)
"""

from .interfaces import (
    ArchiveExtractor,
    BulkDownloader,
    BundleManifest,
    CatalogEntry,
    CatalogSource,
    ContentHash,
    DownloadJob,
    DownloadPlan,
    FeatureRecord,
    PackageRecord,
    PayloadRecord,
    PlanBlock,
    SelectionSet,
)
from .manifest import (
    parse_burn_manifest,
    parse_ux_manifest,
    read_bundle_manifest,
    read_burn_manifest,
    read_ux_manifest,
)
from .plan import build_download_plan, format_size, render_descriptor, write_descriptor
from .redirects import RedirectResolver, resolve_content_root
from .relocate import relocate_payloads
from .selection import (
    FeatureGraph,
    format_feature_listing,
    parse_feature_list,
    select_features,
)

__all__ = [
    # Records
    "ContentHash",
    "PayloadRecord",
    "PackageRecord",
    "FeatureRecord",
    "BundleManifest",
    "SelectionSet",
    "DownloadJob",
    "PlanBlock",
    "DownloadPlan",
    "CatalogEntry",
    # Interfaces
    "CatalogSource",
    "ArchiveExtractor",
    "BulkDownloader",
    # Stages
    "read_bundle_manifest",
    "read_burn_manifest",
    "read_ux_manifest",
    "parse_burn_manifest",
    "parse_ux_manifest",
    "relocate_payloads",
    "FeatureGraph",
    "parse_feature_list",
    "select_features",
    "format_feature_listing",
    "RedirectResolver",
    "resolve_content_root",
    "build_download_plan",
    "render_descriptor",
    "write_descriptor",
    "format_size",
]
