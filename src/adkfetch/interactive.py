"""
Interactive flow: pick a release, download and extract its installer, pick
features, confirm the size and run the bulk download.

Re-prompting lives here as explicit loops; the bundle stages never prompt.
"""

from typing import List, Optional

from adkfetch import menu_features, menu_versions
from adkfetch.bundle.interfaces import (
    ArchiveExtractor,
    BulkDownloader,
    CatalogEntry,
    CatalogSource,
    DownloadPlan,
)
from adkfetch.bundle.orchestrator import BundlePipeline
from adkfetch.catalog import DocsCatalogSource, save_catalog
from adkfetch.exceptions import AdkFetchError
from adkfetch.installer import (
    download_installer,
    extract_installer,
    is_bootstrapper,
    version_folder_name,
)
from adkfetch.log_utils import logger
from adkfetch.setup_config import RunConfig
from adkfetch.tools import Aria2Downloader, SevenZipExtractor


def choose_entry(entries: List[CatalogEntry]) -> CatalogEntry:
    """Prompt for a release until one is picked, saving the table on request."""
    while True:
        entry = menu_versions.select_version(entries)
        if entry is not None:
            logger.info(f"Picked ID: {entry.link_id}")
            return entry
        path = menu_versions.prompt_save_path()
        if path:
            save_catalog(entries, path)


def choose_plan(pipeline: BundlePipeline) -> DownloadPlan:
    """
    Prompt for features until a non-empty selection is confirmed.

    Recoverable errors (an empty selection) and declined confirmations show
    the feature menu again; the content root resolved on the first attempt
    is reused. Any other error propagates.
    """
    manifest = pipeline.manifest if pipeline.manifest is not None else pipeline.load()
    previous: List[str] = []
    while True:
        picked = menu_features.select_feature_ids(manifest.features, previous)
        previous = picked
        try:
            plan = pipeline.plan(picked)
        except AdkFetchError as e:
            if not e.recoverable:
                raise
            logger.error(str(e))
            continue
        if menu_features.confirm_plan(plan):
            return plan


def run_interactive(
    run_config: RunConfig,
    catalog_source: Optional[CatalogSource] = None,
    extractor: Optional[ArchiveExtractor] = None,
    downloader: Optional[BulkDownloader] = None,
) -> None:
    """
    Run the whole interactive download flow.

    Raises:
        AdkFetchError: On any fatal pipeline error.
    """
    catalog_source = catalog_source or DocsCatalogSource()
    extractor = extractor or SevenZipExtractor()
    downloader = downloader or Aria2Downloader(run_config.max_concurrent_downloads)

    logger.info("Extracting & resolving ADK downloads from Microsoft docs...")
    entries = catalog_source.fetch_entries()
    entry = choose_entry(entries)

    version = version_folder_name(entry)
    installer_path = download_installer(entry, run_config)
    if not menu_features.confirm_extract(run_config.version_dir(version)):
        return

    extracted_dir = extract_installer(installer_path, run_config, version, extractor)
    if extracted_dir is None or not is_bootstrapper(installer_path):
        return

    pipeline = BundlePipeline(run_config, extracted_dir)
    pipeline.load()
    plan = choose_plan(pipeline)
    descriptor = pipeline.write_plan(plan, run_config.descriptor_path(version))
    downloader.download(descriptor, run_config.payload_dir(version))
