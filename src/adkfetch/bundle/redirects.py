"""
Redirect Resolver

Follows go.microsoft.com style redirect links to their final location and
rejects links that end on the dead-link fallback (a Bing search page).
"""

from typing import Iterable, List, Optional
from urllib.parse import urlparse

import requests

from adkfetch.constants import (
    DEAD_LINK_FALLBACK_DOMAIN,
    MAX_REDIRECT_HOPS,
    REDIRECT_TIMEOUT,
    REDIRECT_USER_AGENT,
)
from adkfetch.exceptions import ManifestMalformed, SourceUnavailable
from adkfetch.log_utils import logger
from adkfetch.utils import create_session

from .interfaces import BundleManifest


def is_dead_link_target(url: str, fallback_domain: str = DEAD_LINK_FALLBACK_DOMAIN) -> bool:
    """
    Return True when `url` is hosted on the fallback domain or one of its subdomains.
    """
    host = (urlparse(url).hostname or "").lower()
    return host == fallback_domain or host.endswith(f".{fallback_domain}")


class RedirectResolver:
    """
    Resolves short-lived vendor redirect links with HEAD requests.

    Every request identifies itself with the bootstrapper's own user agent and
    each call ends in a definite success or SourceUnavailable. Without a
    `session` the resolver opens its own, limited to `max_hops` redirects, and
    closes it in `close()` or on leaving a ``with`` block.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        max_hops: int = MAX_REDIRECT_HOPS,
        timeout: float = REDIRECT_TIMEOUT,
    ):
        # A caller's session keeps its own redirect limit and lifetime
        self._owns_session = session is None
        if session is None:
            session = create_session(REDIRECT_USER_AGENT)
            session.max_redirects = max_hops
        self.session = session
        self.timeout = timeout

    def close(self) -> None:
        """Close the session this resolver created; a passed-in session stays open."""
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "RedirectResolver":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def resolve(self, url: str) -> str:
        """
        Follow the redirect chain of `url` and return the last URL.

        Raises:
            SourceUnavailable: On network errors, too many redirects, a non-HTTP final URL, or a final URL on the dead-link fallback domain.
        """
        logger.debug(f"Resolving redirect link: {url}")
        try:
            response = self.session.head(
                url,
                allow_redirects=True,
                timeout=self.timeout,
                headers={"User-Agent": REDIRECT_USER_AGENT},
            )
        except requests.TooManyRedirects as e:
            raise SourceUnavailable(
                f"Couldn't retrieve the link: {url}", resource=url, details="too many redirects"
            ) from e
        except requests.RequestException as e:
            raise SourceUnavailable(
                f"Couldn't retrieve the link: {url}", resource=url, details=str(e)
            ) from e

        final_url = response.url or url
        response.close()

        if urlparse(final_url).scheme not in ("http", "https"):
            raise SourceUnavailable(
                f"Couldn't retrieve the link: {url}", resource=url, details=final_url
            )
        if is_dead_link_target(final_url):
            raise SourceUnavailable(
                f"Couldn't retrieve the link: {url}",
                resource=url,
                details=f"redirected to {final_url}",
            )
        logger.debug(f"{url} -> {final_url}")
        return final_url

    def resolve_many(self, urls: Iterable[str]) -> List[str]:
        """
        Resolve every link in order; the first dead link aborts the whole batch.
        """
        return [self.resolve(url) for url in urls]


def resolve_content_root(
    manifest: BundleManifest,
    cached_root: Optional[str] = None,
    resolver: Optional[RedirectResolver] = None,
) -> str:
    """
    Return the content root payload paths are joined against.

    Parameters:
        manifest (BundleManifest): Manifest carrying the unresolved download root.
        cached_root (Optional[str]): Root resolved by an earlier run; skips resolution when given.
        resolver (Optional[RedirectResolver]): Resolver to use; a default one is created when omitted.

    Raises:
        ManifestMalformed: If no cached root is given and the manifest declares no download root.
        SourceUnavailable: If the download root cannot be resolved.
    """
    if cached_root:
        logger.info("Using cached download URL.")
        return cached_root
    if not manifest.download_root:
        raise ManifestMalformed(
            "User experience manifest declares no DownloadRoot",
            document="UserExperienceManifest.xml",
        )
    logger.info("Resolving download URL...")
    if resolver is not None:
        return resolver.resolve(manifest.download_root)
    resolver = RedirectResolver()
    try:
        return resolver.resolve(manifest.download_root)
    finally:
        resolver.close()
