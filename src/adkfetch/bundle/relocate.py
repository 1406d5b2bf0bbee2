"""
Payload Relocator

Moves the files of an extracted bootstrapper container from their packaged
names to the paths declared by the Burn manifest.
"""

import os
from typing import Iterable, List, Tuple

from adkfetch.exceptions import ManifestMalformed, PayloadMissing
from adkfetch.log_utils import logger

from .files import safe_join
from .interfaces import PayloadRecord, Pathish


def _resolve(extraction_root: str, relative_path: str, payload_id: str) -> str:
    try:
        return safe_join(extraction_root, relative_path)
    except ValueError as e:
        raise ManifestMalformed(
            f"Payload '{payload_id}' resolves outside the extraction directory",
            details=str(e),
        ) from e


def relocate_payloads(
    payloads: Iterable[PayloadRecord], extraction_root: Pathish
) -> List[Tuple[str, str]]:
    """
    Move every embedded payload from its source path to its destination path.

    Runs in manifest order. Entries whose source is gone but whose destination
    already exists are treated as relocated by an earlier run, so running the
    relocator twice is a no-op the second time. Payloads that are not embedded
    are ignored.

    Parameters:
        payloads (Iterable[PayloadRecord]): Payload table, usually the UX payloads of the manifest.
        extraction_root (Pathish): Directory the bootstrapper container was unpacked into.

    Returns:
        List[Tuple[str, str]]: (source, destination) relative paths of the moves performed.

    Raises:
        PayloadMissing: If neither the source nor the destination of a payload exists.
        ManifestMalformed: If a payload path escapes the extraction directory.
    """
    root = str(extraction_root)
    moved: List[Tuple[str, str]] = []
    for payload in payloads:
        if not payload.is_embedded:
            continue
        source = _resolve(root, payload.source_path, payload.payload_id)
        destination = _resolve(root, payload.destination_path, payload.payload_id)

        if os.path.isfile(source):
            if source == destination:
                continue
            os.makedirs(os.path.dirname(destination), exist_ok=True)
            # Overwrites a stale destination, like mv --force
            os.replace(source, destination)
            logger.debug(f"{payload.source_path} -> {payload.destination_path}")
            moved.append((payload.source_path, payload.destination_path))
        elif not os.path.isfile(destination):
            raise PayloadMissing(
                f"Cannot locate {payload.source_path}",
                payload_id=payload.payload_id,
            )

    if moved:
        logger.info(f"Moved {len(moved)} payload file(s) into place")
    return moved
