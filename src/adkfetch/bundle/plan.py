"""
Download Plan Builder

Walks the selected features through the package chain and the payload table
and produces an ordered, checksum-annotated aria2c input file.
"""

import math
import os
from typing import List

from adkfetch.exceptions import (
    AdkFetchError,
    ManifestMalformed,
    PayloadMissing,
    UnknownFeature,
)
from adkfetch.log_utils import logger

from .files import atomic_write_text
from .interfaces import (
    BundleManifest,
    DownloadJob,
    DownloadPlan,
    Pathish,
    PlanBlock,
    SelectionSet,
    strip_option_prefix,
)

_SIZE_UNITS = "KMGTPEZY"


def format_size(size: int) -> str:
    """
    Render a byte count in IEC units the way ``numfmt --to iec --suffix B`` does.

    Values below 1024 are shown as plain bytes; scaled values below 10 get one
    decimal. Rounding is away from zero, so the shown size never understates
    the required disk space.

    Examples:
        512 -> "512B", 1024 -> "1.0KB", 1536 -> "1.5KB", 10240 -> "10KB"
    """
    if size < 1024:
        return f"{size}B"
    value = float(size)
    unit_index = -1
    while value >= 1024 and unit_index < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit_index += 1

    if value < 10:
        rounded = math.ceil(value * 10) / 10
        if rounded < 10:
            return f"{rounded:.1f}{_SIZE_UNITS[unit_index]}B"
        value = rounded
    rounded_int = math.ceil(value)
    if rounded_int >= 1024 and unit_index < len(_SIZE_UNITS) - 1:
        return f"1.0{_SIZE_UNITS[unit_index + 1]}B"
    return f"{rounded_int}{_SIZE_UNITS[unit_index]}B"


def build_payload_url(content_root: str, source_path: str) -> str:
    """Join a payload source path onto the content root, encoding spaces."""
    return f"{content_root.rstrip('/')}/{source_path.replace(' ', '%20')}"


def build_download_plan(
    selection: SelectionSet, manifest: BundleManifest, content_root: str
) -> DownloadPlan:
    """
    Build the ordered download plan for a selection.

    Features are visited in selection order, their packages in the order the
    option declares them, and each package's payloads in chain order. The same
    inputs always give the same plan.

    Parameters:
        selection (SelectionSet): Validated feature identifiers.
        manifest (BundleManifest): Parsed payload, package and feature tables.
        content_root (str): Resolved base URL for payload source paths.

    Returns:
        DownloadPlan: Blocks of jobs with per-feature and total sizes.

    Raises:
        UnknownFeature: If a feature is missing or its payloads add up to zero bytes.
        ManifestMalformed: If a feature references a package that is not in the chain.
        PayloadMissing: If a package references a payload that is not declared.
    """
    plan = DownloadPlan(content_root=content_root)
    for feature_id in selection:
        feature = manifest.features.get(feature_id)
        if feature is None:
            raise UnknownFeature(
                f"Feature with name '{strip_option_prefix(feature_id)}' doesn't exist",
                feature_id=feature_id,
            )

        feature_size = 0
        for package_id in feature.package_ids:
            package = manifest.packages.get(package_id)
            if package is None:
                raise ManifestMalformed(
                    f"Option '{feature_id}' references unknown package '{package_id}'"
                )
            block = PlanBlock(feature_id=feature_id, package_id=package_id)
            for payload_id in package.payload_ids:
                payload = manifest.payloads.get(payload_id)
                if payload is None or payload.content_hash is None:
                    raise PayloadMissing(
                        f"Package '{package_id}' references unknown payload '{payload_id}'",
                        payload_id=payload_id,
                    )
                block.jobs.append(
                    DownloadJob(
                        url=build_payload_url(content_root, payload.source_path),
                        output_path=payload.destination_path,
                        content_hash=payload.content_hash,
                        size=payload.size,
                        package_id=package_id,
                        feature_id=feature_id,
                    )
                )
                feature_size += payload.size
            plan.blocks.append(block)

        if feature_size == 0:
            raise UnknownFeature(
                f"Feature with name '{strip_option_prefix(feature_id)}' doesn't exist",
                feature_id=feature_id,
            )
        logger.info(f"{strip_option_prefix(feature_id)} - {format_size(feature_size)}")
        plan.feature_sizes[feature_id] = feature_size
        plan.total_size += feature_size

    return plan


def render_descriptor(plan: DownloadPlan) -> str:
    """
    Render the plan as an aria2c input file.

    Each package block starts with a ``#`` comment header naming the package and
    the feature that requested it; each job is its URL followed by indented
    ``out=`` and ``checksum=`` options and a blank line.
    """
    lines: List[str] = []
    for block in plan.blocks:
        lines.extend(
            [
                "#",
                f"# Package: {block.package_id}",
                f"# Requested by: {block.feature_id}",
                "#",
                "",
            ]
        )
        for job in block.jobs:
            lines.extend(
                [
                    job.url,
                    f"  out={job.output_path}",
                    f"  checksum={job.content_hash}",
                    "",
                ]
            )
    return "".join(f"{line}\n" for line in lines)


def write_descriptor(plan: DownloadPlan, path: Pathish) -> str:
    """
    Atomically write the rendered descriptor to `path`.

    The file only appears once fully written, so a failed run never leaves a
    partial descriptor behind.

    Returns:
        str: The path written.

    Raises:
        AdkFetchError: If the file could not be written.
    """
    path = str(path)
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
    if not atomic_write_text(path, render_descriptor(plan)):
        raise AdkFetchError(f"Could not write download descriptor to {path}")
    logger.info(f"Created ARIA2 file to: {path}")
    return path


def summarize_plan(plan: DownloadPlan) -> str:
    """Return one ``<feature> - <size>`` line per feature."""
    return "\n".join(
        f"{strip_option_prefix(feature_id)} - {format_size(size)}"
        for feature_id, size in plan.feature_sizes.items()
    )
