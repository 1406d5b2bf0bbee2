import importlib.metadata
import os
import time
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry  # type: ignore

from adkfetch.constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONNECT_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
)
from adkfetch.log_utils import logger

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `adkfetch/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version("adkfetch")
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"adkfetch/{app_version}"

    return _USER_AGENT_CACHE


def create_session(user_agent: Optional[str] = None) -> requests.Session:
    """
    Create a requests Session with a retrying HTTP adapter mounted for http and https.

    Parameters:
        user_agent (Optional[str]): User-Agent header to send; defaults to `get_user_agent()`.

    Returns:
        requests.Session: Session retrying connection errors and 408/429/5xx responses with backoff.
    """
    retry_strategy: Retry = Retry(
        total=DEFAULT_CONNECT_RETRIES,
        connect=DEFAULT_CONNECT_RETRIES,
        read=DEFAULT_CONNECT_RETRIES,
        status=DEFAULT_CONNECT_RETRIES,
        backoff_factor=DEFAULT_BACKOFF_FACTOR,
        status_forcelist=[408, 429, 500, 502, 503, 504],
        allowed_methods=frozenset({"GET", "HEAD"}),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers["User-Agent"] = user_agent or get_user_agent()
    return session


def download_file_with_retry(
    url: str,
    download_path: str,
    session: Optional[requests.Session] = None,
) -> bool:
    """
    Download a remote file to disk and atomically install it.

    Streams the URL to a temporary file next to the destination using a retrying
    session, then replaces the destination with `os.replace`. A non-empty file
    already present at `download_path` is left in place. Temporary files are
    removed on failure.

    Parameters:
        url (str): The HTTP(S) URL of the remote file to download.
        download_path (str): Final filesystem path where the downloaded file will be installed.
        session (Optional[requests.Session]): Session to use; a retrying session is created and closed when omitted.

    Returns:
        bool: `True` if the destination file is present or was downloaded successfully, `False` otherwise.
    """
    if os.path.exists(download_path):
        try:
            if os.path.getsize(download_path) > 0:
                logger.info(f"Skipped: {os.path.basename(download_path)} (already present)")
                return True
            logger.debug(f"Removing empty file: {download_path}")
            os.remove(download_path)
        except OSError as e_rm_empty:
            logger.error(f"Error with existing file {download_path}: {e_rm_empty}")
            return False

    temp_path = f"{download_path}.tmp.{os.getpid()}.{int(time.time() * 1000)}"
    owns_session = session is None
    if session is None:
        session = create_session()
    response = None
    try:
        logger.debug(f"Attempting to download file from URL: {url} to temp path: {temp_path}")
        start_time = time.time()
        response = session.get(url, stream=True, timeout=DEFAULT_REQUEST_TIMEOUT)
        logger.debug(
            f"Received HTTP response status code: {response.status_code} for URL: {url}"
        )
        # Status-based retries have already been applied by urllib3's Retry
        response.raise_for_status()

        downloaded_bytes = 0
        parent_dir = os.path.dirname(download_path)
        if parent_dir:
            os.makedirs(parent_dir, exist_ok=True)
        with open(temp_path, "wb") as file:
            for chunk in response.iter_content(chunk_size=DEFAULT_CHUNK_SIZE):
                if chunk:
                    file.write(chunk)
                    downloaded_bytes += len(chunk)

        logger.debug("Download elapsed time: %.2fs for %s", time.time() - start_time, url)
        os.replace(temp_path, download_path)

        file_size_mb = downloaded_bytes / (1024 * 1024)
        if file_size_mb >= 1.0:
            logger.info(
                f"Downloaded: {os.path.basename(download_path)} ({file_size_mb:.1f} MB)"
            )
        else:
            logger.info(
                f"Downloaded: {os.path.basename(download_path)} ({downloaded_bytes} bytes)"
            )
        return True
    except requests.exceptions.RequestException as e_req:
        logger.error(f"Network error downloading {url}: {e_req}")
    except OSError as e_io:
        logger.error(
            f"File I/O error during download process for {url} (temp path: {temp_path}): {e_io}"
        )
    finally:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as e_rm_final_tmp:
                logger.warning(
                    f"Error removing temporary file {temp_path} after failure: {e_rm_final_tmp}"
                )
        if response is not None:
            response.close()
        if owns_session:
            session.close()
    return False
