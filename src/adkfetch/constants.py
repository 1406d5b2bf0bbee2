"""
Constants and configuration values for adkfetch.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

# Documentation page listing the ADK downloads
ADK_DOWNLOADS_PAGE_URL = (
    "https://learn.microsoft.com/en-us/windows-hardware/get-started/adk-install"
)

# Previous ADK releases don't carry their version in the link text, so the
# display names are mapped to the corresponding ADK version.
# https://learn.microsoft.com/en-us/mem/configmgr/core/plan-design/configs/support-for-windows-adk#windows-adk-versions
VERSION_MAPPINGS = {
    "Windows 11 22H2": "10.1.22621.1",
    "Windows 11": "10.1.22000.1",
    "Windows Server 2022": "10.1.20348.1",
    "Windows 10 2004": "10.1.19041.1",
    "Windows 10 1903": "10.1.18362.1",
    "Windows 10 1809": "10.1.17763.1",
    "Windows 10 1803": "10.1.17134.1",
    "Windows 10 1709": "10.1.16299.15",
    "Windows 10 1703": "10.1.15063.0",
    "Windows 10 1607": "10.1.14393.0",
}

# Redirect handling
REDIRECT_USER_AGENT = "Burn"
# A dead go.microsoft.com link falls back to a Bing search page
DEAD_LINK_FALLBACK_DOMAIN = "bing.com"
MAX_REDIRECT_HOPS = 10

# Network timeouts (in seconds)
DOCS_PAGE_TIMEOUT = 30
REDIRECT_TIMEOUT = 15

# Download configuration defaults
DEFAULT_CONNECT_RETRIES = 5
DEFAULT_BACKOFF_FACTOR = 0.3
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_CHUNK_SIZE = 8192
DEFAULT_MAX_CONCURRENT_DOWNLOADS = 5

# Burn bundle layout
BURN_MANIFEST_FILE = "0"
UX_MANIFEST_FILE = "UserExperienceManifest.xml"
BURN_NAMESPACE = "http://schemas.microsoft.com/wix/2008/Burn"
UX_NAMESPACE = "http://schemas.microsoft.com/Setup/2010/01/Burn/UserExperience"
OPTION_ID_PREFIX = "OptionId."
EMBEDDED_PACKAGING = "embedded"
CHECKSUM_ALGORITHM = "sha-1"

# Work folder layout, per downloaded version
INSTALLER_DIR_NAME = "_installer"
PAYLOAD_DIR_NAME = "ADK"
DESCRIPTOR_FILE_NAME = "aria2c"
VERSIONS_TABLE_FILE_NAME = "versions.tsv"
BOOTSTRAPPER_FILE_NAME = "adksetup.exe"
ISO_EXTENSION = ".iso"

# External tools
SEVEN_ZIP_EXECUTABLE = "7z"
ARIA2_EXECUTABLE = "aria2c"

# Logging configuration
LOGGER_NAME = "adkfetch"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5
LOG_FILE_NAME = "adkfetch.log"

# Configuration file names
CONFIG_FILE_NAME = "adkfetch.yaml"
APP_NAME = "adkfetch"

# Environment variable names
LOG_LEVEL_ENV_VAR = "ADKFETCH_LOG_LEVEL"
WORK_FOLDER_ENV_VAR = "WORK_FOLDER"
FORCE_CLI_ENV_VAR = "FORCE_CLI"
