"""
Version Catalog

Builds the table of downloadable ADK releases from the Microsoft
documentation page. There is no machine-readable index, so the page HTML is
scanned for go.microsoft.com links and their link texts are normalized into
comparable release names.
"""

import html
import re
from typing import Iterable, List, Optional

import requests

from adkfetch.bundle.files import atomic_write_text
from adkfetch.bundle.interfaces import CatalogEntry, CatalogSource
from adkfetch.bundle.redirects import RedirectResolver
from adkfetch.constants import ADK_DOWNLOADS_PAGE_URL, DOCS_PAGE_TIMEOUT, VERSION_MAPPINGS
from adkfetch.exceptions import CatalogError, SourceUnavailable
from adkfetch.log_utils import logger
from adkfetch.utils import create_session

# Equivalent to grep -oP 'https://go\.microsoft\.com/fwlink/p?/?\?[lL]ink[Ii]d=([0-9]+)" data-linktype="external">(.*?)</a>'
FWLINK_PATTERN = re.compile(
    r'(https://go\.microsoft\.com/fwlink/p?/?\?[lL]ink[Ii]d=([0-9]+))"'
    r' data-linktype="external">(.*?)</a>'
)
_EMBEDDED_VERSION = re.compile(r"\bADK ([0-9]+(?:\.[0-9]+)+)\b")


def normalize_link_name(text: str) -> Optional[str]:
    """
    Normalize the text of a download link into a release name.

    Returns None for links that are neither ADK nor PE add-on downloads.

    Examples:
        "Download the Windows ADK for Windows 11, version 22H2" -> "ADK for Windows 11 22H2"
        "Download the Windows PE add-on for ADK, version 2004" -> "PE add-on for the ADK for Windows 10 2004"
    """
    # Tags and entities are dropped first; the rewrites below follow the sed chain run on the grep matches
    name = html.unescape(re.sub(r"<[^>]+>", "", text)).strip()
    name = re.sub(r"^Download the Windows ", "", name)
    name = re.sub(r"^(.*)Windows (PE|ADK) ", r"\1\2 ", name)
    if not re.match(r"^(PE|ADK)", name):
        return None
    name = name.replace(", version ", " ")
    name = name.replace("for ADK", "for the ADK")
    name = re.sub(r"(for the ADK )([0-9]+)$", r"\1for Windows 10 \2", name)
    return name


def version_for_name(name: str) -> str:
    """
    Return the ADK version a release name refers to, or an empty string.

    Names carrying an ``ADK x.y.z`` version use it directly; older releases
    are looked up by their trailing ``for <Windows release>`` phrase.
    """
    match = _EMBEDDED_VERSION.search(name)
    if match:
        return match.group(1)
    for display_name, version in VERSION_MAPPINGS.items():
        if name.endswith(f"for {display_name}"):
            return version
    return ""


def parse_docs_page(page: str) -> List[CatalogEntry]:
    """Extract catalog entries, in page order, from the documentation page HTML."""
    entries: List[CatalogEntry] = []
    for url, link_id, text in FWLINK_PATTERN.findall(page):
        name = normalize_link_name(text)
        if name is None:
            continue
        entries.append(
            CatalogEntry(url=url, link_id=link_id, name=name, version=version_for_name(name))
        )
    return entries


class DocsCatalogSource(CatalogSource):
    """Catalog source scraping the ADK install page on learn.microsoft.com."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        resolver: Optional[RedirectResolver] = None,
        page_url: str = ADK_DOWNLOADS_PAGE_URL,
    ):
        self.session = session
        self.resolver = resolver
        self.page_url = page_url

    def _fetch_page(self) -> str:
        session = self.session if self.session is not None else create_session()
        try:
            response = session.get(self.page_url, timeout=DOCS_PAGE_TIMEOUT)
            response.raise_for_status()
            return response.text
        except requests.RequestException as e:
            raise SourceUnavailable(
                "Couldn't retrieve the list of ADK downloads",
                resource=self.page_url,
                details=str(e),
            ) from e
        finally:
            if self.session is None:
                session.close()

    def fetch_entries(self, resolve_links: bool = True) -> List[CatalogEntry]:
        """
        Download the documentation page and build the catalog.

        Parameters:
            resolve_links (bool): Replace each go.microsoft.com link with its redirect target.

        Raises:
            SourceUnavailable: If the page cannot be fetched, lists no downloads, or a link is dead.
        """
        logger.info("Obtaining a list of ADK downloads...")
        entries = parse_docs_page(self._fetch_page())
        if not entries:
            raise SourceUnavailable(
                "No ADK downloads were found on the documentation page",
                resource=self.page_url,
            )
        logger.debug(f"Found {len(entries)} ADK downloads")

        if resolve_links:
            resolver = self.resolver if self.resolver is not None else RedirectResolver()
            try:
                final_urls = resolver.resolve_many(entry.url for entry in entries)
            finally:
                if self.resolver is None:
                    resolver.close()
            entries = [
                CatalogEntry(url=final_url, link_id=entry.link_id, name=entry.name, version=entry.version)
                for entry, final_url in zip(entries, final_urls)
            ]
        return entries


def format_catalog_tsv(entries: Iterable[CatalogEntry]) -> str:
    """Render entries as ``url<TAB>link id<TAB>name<TAB>version`` lines."""
    return "\n".join(
        "\t".join((entry.url, entry.link_id, entry.name, entry.version))
        for entry in entries
    )


def parse_catalog_tsv(text: str) -> List[CatalogEntry]:
    """
    Parse a tab-separated catalog table.

    The version column may be missing or empty.

    Raises:
        CatalogError: If a non-empty line has fewer than three columns.
    """
    entries: List[CatalogEntry] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        fields = line.split("\t")
        if len(fields) < 3:
            raise CatalogError(
                f"Malformed catalog line {line_number}", details=line
            )
        version = fields[3] if len(fields) > 3 else ""
        entries.append(
            CatalogEntry(url=fields[0], link_id=fields[1], name=fields[2], version=version)
        )
    return entries


def load_catalog(path: str) -> List[CatalogEntry]:
    """
    Read a versions table previously written by `save_catalog` or ``--versions``.

    Raises:
        CatalogError: If the file cannot be read or a line is malformed.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise CatalogError(f"Could not read versions table {path}", details=str(e)) from e
    entries = parse_catalog_tsv(text)
    logger.debug(f"Loaded {len(entries)} ADK downloads from {path}")
    return entries


def save_catalog(entries: Iterable[CatalogEntry], path: str) -> str:
    """
    Write the catalog table to `path`.

    Raises:
        CatalogError: If the file could not be written.
    """
    if not atomic_write_text(path, format_catalog_tsv(entries) + "\n"):
        raise CatalogError(f"Could not save versions table to {path}")
    logger.info(f"Saved to: {path}")
    return path


def find_entry(entries: Iterable[CatalogEntry], link_id: str) -> CatalogEntry:
    """
    Return the entry with the given link identifier.

    Raises:
        CatalogError: If no entry matches.
    """
    for entry in entries:
        if entry.link_id == link_id:
            return entry
    raise CatalogError(
        "Couldn't find the version info based on the selection", details=link_id
    )
