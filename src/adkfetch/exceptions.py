"""
Custom exceptions for the adkfetch application.

This module defines domain-specific exceptions that provide better error
categorization and more informative error messages for users and developers.
"""


class AdkFetchError(Exception):
    """
    Base exception for all adkfetch errors.

    All custom exceptions in adkfetch should inherit from this class
    to allow for easy catching of all application-specific errors.
    """

    # Interactive callers may re-prompt instead of aborting when this is True
    recoverable = False

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Pipeline Errors
# =============================================================================


class SourceUnavailable(AdkFetchError):
    """
    Exception raised when a required network or file resource cannot be reached.

    This includes:
    - The documentation page listing the ADK versions
    - Redirect links that end on the dead-link fallback domain
    - Manifest documents that cannot be read

    Attributes:
        resource: The URL or path that could not be reached.
    """

    def __init__(
        self,
        message: str,
        resource: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.resource = resource


class ManifestMalformed(AdkFetchError):
    """
    Exception raised when a manifest document is missing required elements or attributes.

    Attributes:
        document: Name of the manifest document being parsed.
    """

    def __init__(
        self,
        message: str,
        document: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.document = document


class PayloadMissing(AdkFetchError):
    """
    Exception raised when a declared payload cannot be found.

    Attributes:
        payload_id: Identifier of the missing payload.
    """

    def __init__(
        self,
        message: str,
        payload_id: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.payload_id = payload_id


class EmptySelection(AdkFetchError):
    """
    Exception raised when no feature was selected.

    Interactive callers re-prompt instead of aborting the run.
    """

    recoverable = True

    def __init__(self, message: str = "At least select one feature to download!") -> None:
        super().__init__(message)


class UnknownFeature(AdkFetchError):
    """
    Exception raised when a requested feature does not resolve to any package.

    Attributes:
        feature_id: The requested feature identifier.
    """

    def __init__(
        self,
        message: str,
        feature_id: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.feature_id = feature_id


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(AdkFetchError):
    """
    Exception raised when configuration is invalid or missing.

    This includes:
    - A work folder that is not set or is not a directory
    - Invalid configuration values
    - Configuration file parsing errors
    """

    pass


# =============================================================================
# Catalog Errors
# =============================================================================


class CatalogError(AdkFetchError):
    """Exception raised when a version cannot be located in the catalog."""

    pass


# =============================================================================
# External Tool Errors
# =============================================================================


class ToolUnavailable(AdkFetchError):
    """
    Exception raised when required external executables are missing.

    Attributes:
        tools: Names of the missing executables.
    """

    def __init__(self, tools: list[str]) -> None:
        super().__init__(
            "Missing dependencies were detected", details=", ".join(tools)
        )
        self.tools = list(tools)


class ExtractionError(AdkFetchError):
    """
    Exception raised when an installer archive cannot be extracted.

    Attributes:
        archive_path: Path to the problematic archive.
    """

    def __init__(
        self,
        message: str,
        archive_path: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.archive_path = archive_path


class DownloadFailed(AdkFetchError):
    """
    Exception raised when a file download or bulk download run fails.

    Attributes:
        url: The URL or descriptor that was being downloaded.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url
