"""
File Operations for the adkfetch bundle subsystem

This module provides file operation utilities: atomic writes, separator
normalisation for manifest paths and traversal-safe path resolution.
"""

import os
import tempfile
from typing import Any, Callable

from adkfetch.log_utils import logger


def normalize_manifest_path(path: str) -> str:
    """
    Convert a manifest path with backslash separators into a forward-slash relative path.

    Parameters:
        path (str): Path as written in the manifest (e.g. ``files\\a.cab``).

    Returns:
        str: The same path using ``/`` separators with surrounding whitespace removed.
    """
    return path.strip().replace("\\", "/")


def is_safe_relative_path(path: str) -> bool:
    """
    Determine whether a normalised manifest path is a safe relative path.

    Returns:
        bool: `False` for empty or absolute paths, paths containing a null byte, drive letters or ``..`` segments; `True` otherwise.
    """
    if not path or "\x00" in path:
        return False
    if path.startswith("/") or os.path.isabs(path):
        return False
    first = path.split("/", 1)[0]
    if len(first) == 2 and first[1] == ":":
        return False
    return ".." not in path.split("/")


def _is_within_base(real_base_dir: str, candidate: str) -> bool:
    """
    Determine whether the candidate path resides within the given base directory.

    Returns:
        True if the candidate path is inside `real_base_dir`, False otherwise.
    """
    try:
        return os.path.commonpath([real_base_dir, candidate]) == real_base_dir
    except ValueError:
        return False


def safe_join(base_dir: str, relative_path: str) -> str:
    """
    Resolve a relative manifest path inside base_dir and prevent directory traversal.

    Parameters:
        base_dir (str): Base directory the path must stay within.
        relative_path (str): Forward-slash relative path from the manifest.

    Returns:
        str: Absolute, normalized path inside base_dir.

    Raises:
        ValueError: If the resolved path is outside base_dir.
    """
    real_base_dir = os.path.realpath(base_dir)
    prospective_path = os.path.join(real_base_dir, *relative_path.split("/"))
    normalized_path = os.path.realpath(prospective_path)

    if not _is_within_base(real_base_dir, normalized_path):
        raise ValueError(
            f"Unsafe path '{relative_path}' is outside base '{base_dir}'"
        )

    return normalized_path


def _atomic_write(
    file_path: str, writer_func: Callable[[Any], None], suffix: str = ".tmp"
) -> bool:
    """
    Write data to a file atomically by writing to a temporary file and atomically replacing the target on success.

    Parameters:
        file_path (str): Destination file path to be written.
        writer_func (Callable[[Any], None]): Callable that receives an open text file-like object and writes the desired content to it.
        suffix (str): Suffix to use for the temporary file name (default ".tmp").

    Returns:
        bool: `True` if the temporary write and atomic replace succeeded, `False` on any error.
    """
    try:
        temp_fd, temp_path = tempfile.mkstemp(
            dir=os.path.dirname(os.path.abspath(file_path)), prefix="tmp-", suffix=suffix
        )
    except OSError as e:
        logger.error(f"Could not create temporary file for {file_path}: {e}")
        return False

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8", newline="\n") as temp_f:
            writer_func(temp_f)
        os.replace(temp_path, file_path)
    except (UnicodeEncodeError, OSError) as e:
        logger.error(f"Could not write to {file_path}: {e}")
        return False
    finally:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as e:
                logger.debug(f"Could not remove temporary file {temp_path}: {e}")
    return True


def atomic_write_text(file_path: str, content: str) -> bool:
    """
    Atomically write text content to the given file path.

    Returns:
        bool: `True` if the write and atomic replacement succeeded, `False` on error.
    """
    return _atomic_write(file_path, lambda f: f.write(content), suffix=".txt")
