"""
Core Interfaces for the adkfetch bundle subsystem

This module defines the records parsed from a Burn bundle, the records the
download plan is made of, and the interfaces of the external collaborators
(version catalog, archive extraction, bulk downloading).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from adkfetch.constants import CHECKSUM_ALGORITHM, EMBEDDED_PACKAGING, OPTION_ID_PREFIX

Pathish = Union[str, Path]


def strip_option_prefix(feature_id: str) -> str:
    """Return a feature identifier without the ``OptionId.`` namespace prefix."""
    return feature_id.removeprefix(OPTION_ID_PREFIX)


def add_option_prefix(feature_id: str) -> str:
    """Return a feature identifier carrying the ``OptionId.`` namespace prefix exactly once."""
    if feature_id.startswith(OPTION_ID_PREFIX):
        return feature_id
    return f"{OPTION_ID_PREFIX}{feature_id}"


@dataclass(frozen=True)
class ContentHash:
    """Checksum declared for a payload."""

    digest: str
    """Hex digest as written in the manifest"""

    algorithm: str = CHECKSUM_ALGORITHM
    """Checksum algorithm name in aria2c notation"""

    def __str__(self) -> str:
        return f"{self.algorithm}={self.digest}"


@dataclass(frozen=True)
class PayloadRecord:
    """One embedded or remote file declared by the Burn manifest."""

    payload_id: str
    """Identifier, unique within the manifest"""

    source_path: str
    """Path as packaged, with forward-slash separators"""

    destination_path: str
    """Final relative path, with forward-slash separators"""

    content_hash: Optional[ContentHash] = None
    """Declared checksum (always present for chain payloads)"""

    size: int = 0
    """Declared size in bytes"""

    packaging: Optional[str] = None
    """Raw Packaging attribute (embedded, external or None)"""

    @property
    def is_embedded(self) -> bool:
        return self.packaging == EMBEDDED_PACKAGING


@dataclass(frozen=True)
class PackageRecord:
    """A named installable unit from the Burn chain."""

    package_id: str
    payload_ids: Tuple[str, ...] = ()
    """Referenced payload identifiers in declaration order"""


@dataclass(frozen=True)
class FeatureRecord:
    """A user-selectable option from the user-experience manifest."""

    feature_id: str
    """Identifier including the OptionId. prefix"""

    package_ids: Tuple[str, ...] = ()
    dependency_ids: Tuple[str, ...] = ()
    """Identifiers (with prefix) of features this one depends on"""

    @property
    def display_id(self) -> str:
        return strip_option_prefix(self.feature_id)

    @property
    def display_dependencies(self) -> List[str]:
        return [strip_option_prefix(dep) for dep in self.dependency_ids]


@dataclass
class BundleManifest:
    """Everything read from an extracted bootstrapper."""

    payloads: Dict[str, PayloadRecord] = field(default_factory=dict)
    """Chain payloads keyed by identifier, in declaration order"""

    ux_payloads: Dict[str, PayloadRecord] = field(default_factory=dict)
    """Payloads of the bootstrapper UI container, relocated after extraction"""

    packages: Dict[str, PackageRecord] = field(default_factory=dict)
    features: Dict[str, FeatureRecord] = field(default_factory=dict)

    download_root: Optional[str] = None
    """Unresolved content root (usually a go.microsoft.com redirect)"""

    product_version: Optional[str] = None


@dataclass(frozen=True)
class SelectionSet:
    """Deduplicated feature identifiers chosen for download."""

    feature_ids: Tuple[str, ...]

    def __iter__(self):
        return iter(self.feature_ids)

    def __len__(self) -> int:
        return len(self.feature_ids)


@dataclass(frozen=True)
class DownloadJob:
    """One entry of the bulk download descriptor."""

    url: str
    output_path: str
    content_hash: ContentHash
    size: int
    package_id: str
    feature_id: str


@dataclass
class PlanBlock:
    """Jobs of one package, as requested by one feature."""

    feature_id: str
    package_id: str
    jobs: List[DownloadJob] = field(default_factory=list)


@dataclass
class DownloadPlan:
    """Ordered download jobs for a selection, with size totals."""

    content_root: str
    blocks: List[PlanBlock] = field(default_factory=list)
    """One block per (feature, package) in emission order, including empty packages"""

    feature_sizes: Dict[str, int] = field(default_factory=dict)
    """Aggregated size per feature, in selection order"""

    total_size: int = 0

    @property
    def jobs(self) -> List[DownloadJob]:
        return [job for block in self.blocks for job in block.jobs]


@dataclass(frozen=True)
class CatalogEntry:
    """One downloadable ADK release from the documentation page."""

    url: str
    link_id: str
    name: str
    version: str = ""

    @property
    def file_name(self) -> str:
        """Last path segment of the download URL."""
        return self.url.rstrip("/").rsplit("/", 1)[-1]


class CatalogSource(ABC):
    """
    Abstract base class for version catalog sources.

    A CatalogSource provides the table of downloadable ADK releases.
    """

    @abstractmethod
    def fetch_entries(self, resolve_links: bool = True) -> List[CatalogEntry]:
        """
        Retrieve the catalog of downloadable releases.

        Parameters:
            resolve_links (bool): Replace redirect links with their final URL.

        Returns:
            List[CatalogEntry]: Entries in page order.
        """


class ArchiveExtractor(ABC):
    """
    Abstract base class for installer container extraction.
    """

    @abstractmethod
    def extract(self, archive_path: Pathish, destination: Pathish) -> None:
        """
        Extract the archive into the destination directory.

        Raises:
            ExtractionError: If the archive could not be extracted.
        """


class BulkDownloader(ABC):
    """
    Abstract base class for resumable, checksum-verifying bulk downloaders.
    """

    @abstractmethod
    def download(self, descriptor_path: Pathish, output_dir: Pathish) -> None:
        """
        Download every job listed in the descriptor into output_dir.

        Raises:
            DownloadFailed: If the bulk download did not complete.
        """
