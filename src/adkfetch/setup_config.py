# src/adkfetch/setup_config.py

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import platformdirs
import yaml

from adkfetch.constants import (
    APP_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_MAX_CONCURRENT_DOWNLOADS,
    DESCRIPTOR_FILE_NAME,
    INSTALLER_DIR_NAME,
    PAYLOAD_DIR_NAME,
)
from adkfetch.env_utils import get_env_work_folder, is_force_cli_set
from adkfetch.exceptions import ConfigurationError
from adkfetch.log_utils import logger

# Get the config directory using platformdirs
CONFIG_DIR = platformdirs.user_config_dir(APP_NAME)

# Config file location using platformdirs
CONFIG_FILE = os.path.join(CONFIG_DIR, CONFIG_FILE_NAME)

# Keys understood in adkfetch.yaml
CONFIG_KEYS = (
    "WORK_FOLDER",
    "FORCE_CLI",
    "LOG_LEVEL",
    "RESOLVE_DEPENDENCIES",
    "MAX_CONCURRENT_DOWNLOADS",
    "LOG_TO_FILE",
    "LOG_DIR",
)

_TRUE_STRINGS = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RunConfig:
    """
    Settings for one pipeline run.

    Passed explicitly into every stage that places files, so two runs against
    different work folders never share state.
    """

    work_folder: str
    """Directory holding one sub-folder per downloaded ADK version"""

    non_interactive: bool = False
    """Never prompt; print listings and fail on empty selections"""

    resolve_dependencies: bool = False
    """Add every transitive option dependency to a selection"""

    max_concurrent_downloads: int = DEFAULT_MAX_CONCURRENT_DOWNLOADS

    def version_dir(self, version: str) -> str:
        return os.path.join(self.work_folder, version)

    def installer_dir(self, version: str) -> str:
        """Directory the bootstrapper is extracted into."""
        return os.path.join(self.version_dir(version), INSTALLER_DIR_NAME)

    def payload_dir(self, version: str) -> str:
        """Directory the ADK payloads are downloaded into."""
        return os.path.join(self.version_dir(version), PAYLOAD_DIR_NAME)

    def descriptor_path(self, version: str) -> str:
        return os.path.join(self.version_dir(version), DESCRIPTOR_FILE_NAME)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_STRINGS


def config_exists(directory: Optional[str] = None):
    """
    Check whether a configuration file exists.

    Parameters:
        directory (str | None): Directory to look in; the platformdirs location is used when omitted.

    Returns:
        tuple[bool, str | None]: Whether the file exists and its path when it does.
    """
    config_path = os.path.join(directory, CONFIG_FILE_NAME) if directory else CONFIG_FILE
    if os.path.exists(config_path):
        return True, config_path
    return False, None


def load_config(directory: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Load the adkfetch configuration YAML.

    Parameters:
        directory (str | None): Directory to load the config from; the platformdirs location is used when omitted.

    Returns:
        dict | None: The parsed configuration, or None if no configuration file was found.

    Raises:
        ConfigurationError: If the file cannot be read or is not a YAML mapping.
    """
    exists, config_path = config_exists(directory)
    if not exists:
        return None

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Could not read configuration file {config_path}", details=str(e)
        ) from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Configuration file {config_path} must contain a mapping"
        )

    unknown = sorted(key for key in config if key not in CONFIG_KEYS)
    if unknown:
        logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")
    logger.debug(f"Loaded configuration from {config_path}")
    return config


def forces_cli(config: Optional[Dict[str, Any]] = None) -> bool:
    """Return True when FORCE_CLI is set in the environment or in `config`."""
    return is_force_cli_set() or _as_bool((config or {}).get("FORCE_CLI"))


def file_log_dir(config: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """
    Return the directory for the rotating log file, or None when file logging is off.

    File logging is enabled by LOG_TO_FILE or by an explicit LOG_DIR; without
    LOG_DIR the platformdirs user log directory is used.
    """
    config = config or {}
    log_dir = str(config.get("LOG_DIR") or "").strip()
    if log_dir:
        return os.path.abspath(os.path.expanduser(log_dir))
    if _as_bool(config.get("LOG_TO_FILE")):
        return platformdirs.user_log_dir(APP_NAME)
    return None


def build_run_config(
    config: Optional[Dict[str, Any]] = None, force_cli: bool = False
) -> RunConfig:
    """
    Validate configuration values and build a RunConfig.

    The WORK_FOLDER and FORCE_CLI environment variables take precedence over the
    configuration file.

    Parameters:
        config (dict | None): Values loaded from adkfetch.yaml.
        force_cli (bool): Force non-interactive behaviour regardless of other settings.

    Raises:
        ConfigurationError: If the work folder is not set, is not a directory, or a value is invalid.
    """
    config = dict(config or {})

    work_folder = get_env_work_folder() or str(config.get("WORK_FOLDER") or "").strip()
    if not work_folder:
        raise ConfigurationError(
            "Work directory is not set",
            details="set the work directory with the WORK_FOLDER variable",
        )
    work_folder = os.path.abspath(os.path.expanduser(work_folder))
    if not os.path.isdir(work_folder):
        raise ConfigurationError(
            "Work directory is not a directory", details=work_folder
        )

    raw_concurrency = config.get(
        "MAX_CONCURRENT_DOWNLOADS", DEFAULT_MAX_CONCURRENT_DOWNLOADS
    )
    try:
        max_concurrent_downloads = int(raw_concurrency)
    except (TypeError, ValueError):
        raise ConfigurationError(
            "MAX_CONCURRENT_DOWNLOADS must be an integer", details=str(raw_concurrency)
        ) from None
    if max_concurrent_downloads < 1:
        raise ConfigurationError(
            "MAX_CONCURRENT_DOWNLOADS must be at least 1",
            details=str(max_concurrent_downloads),
        )

    non_interactive = force_cli or forces_cli(config)

    logger.debug(f"Work directory: {work_folder}")
    return RunConfig(
        work_folder=work_folder,
        non_interactive=non_interactive,
        resolve_dependencies=_as_bool(config.get("RESOLVE_DEPENDENCIES")),
        max_concurrent_downloads=max_concurrent_downloads,
    )
