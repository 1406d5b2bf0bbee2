"""
External tool wrappers: 7-Zip for installer extraction and aria2c for the
bulk payload download.
"""

import os
import re
import shutil
import subprocess
from typing import List

from adkfetch.bundle.interfaces import ArchiveExtractor, BulkDownloader, Pathish
from adkfetch.constants import (
    ARIA2_EXECUTABLE,
    DEFAULT_MAX_CONCURRENT_DOWNLOADS,
    REDIRECT_USER_AGENT,
    SEVEN_ZIP_EXECUTABLE,
)
from adkfetch.exceptions import DownloadFailed, ExtractionError, ToolUnavailable
from adkfetch.log_utils import logger

_DOWNLOAD_COMPLETE = re.compile(r"\[NOTICE\] Download complete: (.*)$")
_URL_LINE = re.compile(r"^https?://\S+")


def find_missing_tools(*names: str) -> List[str]:
    return [name for name in names if not shutil.which(name)]


def require_tools(*names: str) -> None:
    """
    Check that every named executable is on PATH.

    Raises:
        ToolUnavailable: Naming every missing executable.
    """
    missing = find_missing_tools(*names)
    if missing:
        raise ToolUnavailable(missing)


class SevenZipExtractor(ArchiveExtractor):
    """
    Extracts installers with ``7z``.

    Bootstrapper executables are Burn bundles whose payloads sit in a CAB
    container, so ``.exe`` files are opened with ``-tCAB``.
    """

    def __init__(self, executable: str = SEVEN_ZIP_EXECUTABLE):
        self.executable = executable

    def build_command(self, archive_path: str, destination: str) -> List[str]:
        command = [self.executable, "x", "-y", "-aoa"]
        if archive_path.lower().endswith(".exe"):
            command.append("-tCAB")
        command.extend(["-bb0", "-bso0", "-bse1", "-bsp1", f"-o{destination}", archive_path])
        return command

    def extract(self, archive_path: Pathish, destination: Pathish) -> None:
        archive_path, destination = str(archive_path), str(destination)
        if not os.path.isfile(archive_path):
            raise ExtractionError(
                f"File couldn't be found at: {archive_path}", archive_path=archive_path
            )
        if not os.path.isdir(destination):
            raise ExtractionError(
                f"Directory couldn't be found at: {destination}", archive_path=archive_path
            )

        logger.info(f"Extracting files to: {destination}")
        try:
            subprocess.run(
                self.build_command(archive_path, destination),
                check=True,
                capture_output=True,
                text=True,
            )
        except subprocess.CalledProcessError as exc:
            raise ExtractionError(
                f"Could not extract {os.path.basename(archive_path)}",
                archive_path=archive_path,
                details=(exc.stderr or exc.stdout or str(exc)).strip(),
            ) from exc
        except OSError as exc:
            raise ExtractionError(
                f"Could not run {self.executable}",
                archive_path=archive_path,
                details=str(exc),
            ) from exc


def count_descriptor_urls(descriptor_path: str) -> int:
    """Count the distinct payload URLs listed in an aria2c input file."""
    with open(descriptor_path, "r", encoding="utf-8") as f:
        return len({line.strip() for line in f if _URL_LINE.match(line)})


class Aria2Downloader(BulkDownloader):
    """
    Runs ``aria2c`` against a descriptor with resumable, checksum-verified transfers.
    """

    def __init__(
        self,
        max_concurrent_downloads: int = DEFAULT_MAX_CONCURRENT_DOWNLOADS,
        executable: str = ARIA2_EXECUTABLE,
    ):
        self.max_concurrent_downloads = max_concurrent_downloads
        self.executable = executable

    def build_command(self, descriptor_path: str, output_dir: str) -> List[str]:
        return [
            self.executable,
            f"--input-file={descriptor_path}",
            f"--max-concurrent-downloads={self.max_concurrent_downloads}",
            "--check-integrity=true",
            "--continue=true",
            "--max-connection-per-server=2",
            "--split=5",
            f"--dir={output_dir}",
            "--retry-wait=1",
            "--uri-selector=inorder",
            f"--user-agent={REDIRECT_USER_AGENT}",
            "--use-head=true",
            "--http-no-cache=true",
            "--enable-http-keep-alive=true",
            "--file-allocation=none",
            "--auto-file-renaming=false",
            "--allow-overwrite=false",
            "--enable-color=false",
            "--human-readable=false",
            "--show-console-readout=true",
            "--truncate-console-readout=false",
        ]

    def download(self, descriptor_path: Pathish, output_dir: Pathish) -> None:
        descriptor_path, output_dir = str(descriptor_path), str(output_dir)
        if not os.path.isdir(output_dir):
            raise DownloadFailed(
                f"Output path '{output_dir}' is not a directory", url=descriptor_path
            )

        total = count_descriptor_urls(descriptor_path)
        completed = 0
        logger.info("Downloading, it might take a while...")
        env = dict(os.environ, LC_ALL="C")
        try:
            process = subprocess.Popen(
                self.build_command(descriptor_path, output_dir),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                env=env,
            )
        except OSError as exc:
            raise DownloadFailed(
                f"Could not run {self.executable}", url=descriptor_path, details=str(exc)
            ) from exc

        with process:
            for line in process.stdout:
                match = _DOWNLOAD_COMPLETE.search(line.rstrip())
                if match:
                    completed += 1
                    percent = (completed / total * 100) if total else 100.0
                    logger.info(f"Downloading... {percent:.2f}% - {match.group(1)}")
                else:
                    logger.debug(line.rstrip())
            return_code = process.wait()

        if return_code != 0:
            raise DownloadFailed(
                "Bulk download did not complete",
                url=descriptor_path,
                details=f"{self.executable} exited with status {return_code}",
            )
        logger.info(f"Downloaded {completed} file(s) into {output_dir}")
