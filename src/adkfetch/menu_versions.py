# src/adkfetch/menu_versions.py

from typing import List, Optional, Sequence

from packaging.version import InvalidVersion, Version
from pick import pick

from adkfetch.bundle.interfaces import CatalogEntry
from adkfetch.constants import VERSIONS_TABLE_FILE_NAME

SAVE_TABLE_OPTION = "Save versions table to disk..."


def _parse_version(value: str) -> Optional[Version]:
    try:
        return Version(value)
    except InvalidVersion:
        return None


def sort_entries(entries: Sequence[CatalogEntry]) -> List[CatalogEntry]:
    """
    Order entries newest version first.

    Entries without a parseable version keep their page order after the
    versioned ones.
    """
    versioned, unversioned = [], []
    for entry in entries:
        parsed = _parse_version(entry.version)
        if parsed is None:
            unversioned.append(entry)
        else:
            versioned.append((parsed, entry))
    versioned.sort(key=lambda item: item[0], reverse=True)
    return [entry for _, entry in versioned] + unversioned


def format_entry(entry: CatalogEntry) -> str:
    version = entry.version or "unknown version"
    return f"{entry.name} ({version}) - link id {entry.link_id} - {entry.file_name}"


def select_version(
    entries: Sequence[CatalogEntry], picked_version: Optional[str] = None
) -> Optional[CatalogEntry]:
    """
    Present a single-select menu of ADK releases.

    The first option saves the versions table instead of picking a release.

    Parameters:
        entries: Catalog entries to choose from.
        picked_version (str | None): Version to highlight initially.

    Returns:
        CatalogEntry | None: The chosen entry, or None when saving the table was chosen.
    """
    ordered = sort_entries(entries)
    options = [SAVE_TABLE_OPTION] + [format_entry(entry) for entry in ordered]
    default_index = 0
    for index, entry in enumerate(ordered, start=1):
        if picked_version and entry.version == picked_version:
            default_index = index
            break

    title = "Select an ADK version to download (press ENTER to confirm):"
    _, index = pick(options, title, indicator="*", default_index=default_index)
    if index == 0:
        return None
    return ordered[index - 1]


def prompt_save_path(default: str = VERSIONS_TABLE_FILE_NAME) -> Optional[str]:
    """
    Ask where to save the versions table.

    Returns:
        str | None: The entered path, the default when left blank, or None if the user typed "cancel".
    """
    answer = input(f"Save versions table to [{default}] (type 'cancel' to go back): ").strip()
    if answer.lower() == "cancel":
        print("Cancelled to save.")
        return None
    return answer or default
