"""
Burn Manifest Reader

Parses the two descriptors found in an extracted ADK bootstrapper: the Burn
manifest (payloads and the package chain) and the user-experience manifest
(selectable options and the download root).
"""

import os
import xml.etree.ElementTree as ET
from typing import Dict, Optional

from adkfetch.constants import (
    BURN_MANIFEST_FILE,
    BURN_NAMESPACE,
    UX_MANIFEST_FILE,
    UX_NAMESPACE,
)
from adkfetch.exceptions import ManifestMalformed, SourceUnavailable
from adkfetch.log_utils import logger

from .files import is_safe_relative_path, normalize_manifest_path
from .interfaces import (
    BundleManifest,
    ContentHash,
    FeatureRecord,
    PackageRecord,
    PayloadRecord,
    Pathish,
)

BURN_NS = {"b": BURN_NAMESPACE}
UX_NS = {"ux": UX_NAMESPACE}


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _parse_xml(data: bytes, document: str, root_tag: str) -> ET.Element:
    """
    Parse an XML document and check its root element.

    Raises:
        ManifestMalformed: If the XML cannot be parsed or the root element is not `root_tag`.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise ManifestMalformed(
            f"Could not parse {document}", document=document, details=str(exc)
        ) from exc
    if root.tag != root_tag:
        raise ManifestMalformed(
            f"Unexpected root element in {document}",
            document=document,
            details=f"expected {root_tag}, found {root.tag}",
        )
    return root


def _require_attr(element: ET.Element, name: str, document: str, context: str) -> str:
    value = (element.get(name) or "").strip()
    if not value:
        raise ManifestMalformed(
            f"{context} is missing the {name} attribute", document=document
        )
    return value


def _parse_size(value: str, document: str, context: str) -> int:
    try:
        size = int(value)
    except ValueError:
        raise ManifestMalformed(
            f"{context} has an invalid FileSize", document=document, details=value
        ) from None
    if size < 0:
        raise ManifestMalformed(
            f"{context} has a negative FileSize", document=document, details=value
        )
    return size


def _parse_payload(
    element: ET.Element, document: str, require_checksum: bool
) -> PayloadRecord:
    """
    Build a PayloadRecord from a ``Payload`` element.

    Chain payloads must declare ``Hash`` and ``FileSize``; bootstrapper UI
    payloads only need identifier and paths.
    """
    payload_id = _require_attr(element, "Id", document, "Payload")
    context = f"Payload '{payload_id}'"
    source_path = normalize_manifest_path(
        _require_attr(element, "SourcePath", document, context)
    )
    destination_path = normalize_manifest_path(
        _require_attr(element, "FilePath", document, context)
    )
    for path in (source_path, destination_path):
        if not is_safe_relative_path(path):
            raise ManifestMalformed(
                f"{context} declares an unsafe path", document=document, details=path
            )

    if require_checksum:
        digest = _require_attr(element, "Hash", document, context)
        size = _parse_size(
            _require_attr(element, "FileSize", document, context), document, context
        )
    else:
        digest = (element.get("Hash") or "").strip()
        raw_size = (element.get("FileSize") or "").strip()
        size = _parse_size(raw_size, document, context) if raw_size else 0

    return PayloadRecord(
        payload_id=payload_id,
        source_path=source_path,
        destination_path=destination_path,
        content_hash=ContentHash(digest) if digest else None,
        size=size,
        packaging=element.get("Packaging"),
    )


def _add_unique(table: Dict, key: str, value, document: str, kind: str) -> None:
    if key in table:
        raise ManifestMalformed(
            f"Duplicate {kind} identifier '{key}'", document=document
        )
    table[key] = value


def parse_burn_manifest(data: bytes, manifest: Optional[BundleManifest] = None) -> BundleManifest:
    """
    Parse the Burn manifest (file ``0`` of the extracted bootstrapper).

    Fills the payload table from ``BurnManifest/Payload``, the UI payload table
    from ``BurnManifest/UX/Payload`` and the package table from the
    ``*Package`` elements of ``BurnManifest/Chain``.

    Parameters:
        data (bytes): Raw XML of the Burn manifest.
        manifest (Optional[BundleManifest]): Manifest to fill; a new one is created when omitted.

    Returns:
        BundleManifest: The filled manifest.

    Raises:
        ManifestMalformed: On XML errors, missing attributes, duplicate identifiers or a missing chain.
    """
    document = BURN_MANIFEST_FILE
    manifest = manifest if manifest is not None else BundleManifest()
    root = _parse_xml(data, document, f"{{{BURN_NAMESPACE}}}BurnManifest")

    for element in root.findall("b:UX/b:Payload", BURN_NS):
        payload = _parse_payload(element, document, require_checksum=False)
        _add_unique(manifest.ux_payloads, payload.payload_id, payload, document, "UX payload")

    for element in root.findall("b:Payload", BURN_NS):
        payload = _parse_payload(element, document, require_checksum=True)
        _add_unique(manifest.payloads, payload.payload_id, payload, document, "payload")

    chain = root.find("b:Chain", BURN_NS)
    if chain is None:
        raise ManifestMalformed("Burn manifest has no Chain element", document=document)

    for element in chain:
        if not _local_name(element.tag).endswith("Package"):
            continue
        package_id = _require_attr(element, "Id", document, _local_name(element.tag))
        payload_ids = tuple(
            _require_attr(ref, "Id", document, f"PayloadRef of package '{package_id}'")
            for ref in element.findall("b:PayloadRef", BURN_NS)
        )
        _add_unique(
            manifest.packages,
            package_id,
            PackageRecord(package_id, payload_ids),
            document,
            "package",
        )

    logger.debug(
        f"Burn manifest: {len(manifest.payloads)} payloads, "
        f"{len(manifest.ux_payloads)} UX payloads, {len(manifest.packages)} packages"
    )
    return manifest


def parse_ux_manifest(data: bytes, manifest: Optional[BundleManifest] = None) -> BundleManifest:
    """
    Parse the user-experience manifest (``UserExperienceManifest.xml``).

    Fills the feature table from ``Options/Option`` together with each option's
    package references and dependency identifiers, and records the unresolved
    download root and the product version from ``Settings``.

    Raises:
        ManifestMalformed: On XML errors, missing identifiers or duplicate options.
    """
    document = UX_MANIFEST_FILE
    manifest = manifest if manifest is not None else BundleManifest()
    root = _parse_xml(data, document, f"{{{UX_NAMESPACE}}}UserExperienceManifest")

    download_root = root.findtext("ux:Settings/ux:SourceResolution/ux:DownloadRoot", namespaces=UX_NS)
    manifest.download_root = (download_root or "").strip() or None
    product_version = root.findtext("ux:Settings/ux:ProductVersion", namespaces=UX_NS)
    manifest.product_version = (product_version or "").strip() or None

    for element in root.findall("ux:Options/ux:Option", UX_NS):
        feature_id = _require_attr(element, "Id", document, "Option")
        context = f"Option '{feature_id}'"
        package_ids = tuple(
            _require_attr(pkg, "Id", document, f"Package of {context}")
            for pkg in element.findall("ux:Packages/ux:Package", UX_NS)
        )
        dependency_ids = tuple(
            _require_attr(dep, "Id", document, f"Dependency of {context}")
            for dep in element.findall("ux:Dependencies/ux:Dependency", UX_NS)
        )
        _add_unique(
            manifest.features,
            feature_id,
            FeatureRecord(feature_id, package_ids, dependency_ids),
            document,
            "option",
        )

    logger.debug(f"User experience manifest: {len(manifest.features)} options")
    return manifest


def _read_document(path: str) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise SourceUnavailable(
            f"Could not read manifest {os.path.basename(path)}",
            resource=path,
            details=str(e),
        ) from e


def read_burn_manifest(extracted_dir: Pathish) -> BundleManifest:
    """
    Read the Burn manifest ``0`` from a directory produced by extracting a bootstrapper.

    Raises:
        SourceUnavailable: If the directory is missing or holds no extracted setup files.
        ManifestMalformed: If the manifest is malformed.
    """
    extracted_dir = str(extracted_dir)
    if not os.path.isdir(extracted_dir):
        raise SourceUnavailable(
            f"Given path '{extracted_dir}' is not a directory", resource=extracted_dir
        )
    burn_path = os.path.join(extracted_dir, BURN_MANIFEST_FILE)
    if not os.path.isfile(burn_path):
        raise SourceUnavailable(
            f"Given path '{extracted_dir}' doesn't contain the extracted setup files",
            resource=burn_path,
        )
    return parse_burn_manifest(_read_document(burn_path))


def read_ux_manifest(extracted_dir: Pathish, manifest: BundleManifest) -> BundleManifest:
    """
    Read ``UserExperienceManifest.xml`` into `manifest`.

    The file only carries this name once the UX payloads have been relocated.
    """
    return parse_ux_manifest(
        _read_document(os.path.join(str(extracted_dir), UX_MANIFEST_FILE)), manifest
    )


def read_bundle_manifest(extracted_dir: Pathish) -> BundleManifest:
    """
    Read both manifests from an extracted bootstrapper whose payloads are already in place.

    Parameters:
        extracted_dir (Pathish): Directory containing ``0`` and ``UserExperienceManifest.xml``.

    Returns:
        BundleManifest: Payload, package and feature tables plus the unresolved download root.

    Raises:
        SourceUnavailable: If the directory or either manifest cannot be read.
        ManifestMalformed: If either manifest is malformed.
    """
    return read_ux_manifest(extracted_dir, read_burn_manifest(extracted_dir))
