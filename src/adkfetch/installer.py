# src/adkfetch/installer.py

import os
from typing import Optional, Tuple

import requests

from adkfetch.bundle.interfaces import ArchiveExtractor, CatalogEntry
from adkfetch.constants import BOOTSTRAPPER_FILE_NAME, ISO_EXTENSION
from adkfetch.exceptions import DownloadFailed
from adkfetch.log_utils import logger
from adkfetch.setup_config import RunConfig
from adkfetch.utils import download_file_with_retry


def version_folder_name(entry: CatalogEntry) -> str:
    """
    Name of the work-folder directory for a catalog entry.

    Entries without a known version fall back to their link identifier.
    """
    return entry.version or entry.link_id


def is_bootstrapper(path: str) -> bool:
    return os.path.basename(path).lower() == BOOTSTRAPPER_FILE_NAME


def is_iso_image(path: str) -> bool:
    return path.lower().endswith(ISO_EXTENSION)


def download_installer(
    entry: CatalogEntry,
    run_config: RunConfig,
    session: Optional[requests.Session] = None,
) -> str:
    """
    Download the installer of a catalog entry into its version folder.

    Returns:
        str: Path of the downloaded installer.

    Raises:
        DownloadFailed: If the installer could not be downloaded.
    """
    version_dir = run_config.version_dir(version_folder_name(entry))
    os.makedirs(version_dir, exist_ok=True)
    target = os.path.join(version_dir, entry.file_name)

    logger.info(f"Downloading {entry.url}...")
    if not download_file_with_retry(entry.url, target, session=session):
        raise DownloadFailed(f"Could not download {entry.file_name}", url=entry.url)
    logger.info(f"Downloaded to: {target}")
    return target


def prepare_version_folder(run_config: RunConfig, version: str) -> Tuple[str, str]:
    """
    Create the installer and payload directories of a version.

    Returns:
        Tuple[str, str]: (installer directory, payload directory)
    """
    installer_dir = run_config.installer_dir(version)
    payload_dir = run_config.payload_dir(version)
    os.makedirs(installer_dir, exist_ok=True)
    os.makedirs(payload_dir, exist_ok=True)
    return installer_dir, payload_dir


def extract_installer(
    installer_path: str,
    run_config: RunConfig,
    version: str,
    extractor: ArchiveExtractor,
) -> Optional[str]:
    """
    Extract a downloaded installer into its version folder.

    Bootstrappers are unpacked into the installer directory so their manifests
    can be read; ISO images already contain the full ADK and go straight into
    the payload directory.

    Returns:
        Optional[str]: The directory extracted into, or None if the file type is not supported.

    Raises:
        ExtractionError: If extraction fails.
    """
    installer_dir, payload_dir = prepare_version_folder(run_config, version)
    if is_bootstrapper(installer_path):
        logger.info("ADK setup found.")
        extractor.extract(installer_path, installer_dir)
        return installer_dir
    if is_iso_image(installer_path):
        logger.info("ISO found.")
        extractor.extract(installer_path, payload_dir)
        return payload_dir

    logger.warning(f"Extracting is not supported for file: {installer_path}")
    return None
