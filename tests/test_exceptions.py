"""
Tests for the adkfetch exceptions module.

Tests the custom exception hierarchy including:
- Base AdkFetchError and error message formatting
- Pipeline errors (SourceUnavailable, ManifestMalformed, PayloadMissing, EmptySelection, UnknownFeature)
- Configuration, catalog and external tool errors
"""

import pytest

from adkfetch.exceptions import (
    AdkFetchError,
    CatalogError,
    ConfigurationError,
    DownloadFailed,
    EmptySelection,
    ExtractionError,
    ManifestMalformed,
    PayloadMissing,
    SourceUnavailable,
    ToolUnavailable,
    UnknownFeature,
)

pytestmark = [pytest.mark.unit]


class TestAdkFetchError:
    """Test base AdkFetchError exception."""

    def test_basic_message(self):
        error = AdkFetchError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.details is None

    def test_message_with_details(self):
        error = AdkFetchError("Operation failed", details="Connection timeout")
        assert str(error) == "Operation failed - Connection timeout"

    def test_can_be_caught_as_exception(self):
        with pytest.raises(Exception):
            raise AdkFetchError("Test error")


class TestPipelineErrors:
    """Test the error kinds raised by the bundle stages."""

    @pytest.mark.parametrize(
        "error",
        [
            SourceUnavailable("x", resource="https://go.example"),
            ManifestMalformed("x", document="0"),
            PayloadMissing("x", payload_id="A"),
            EmptySelection(),
            UnknownFeature("x", feature_id="OptionId.Nope"),
            ConfigurationError("x"),
            CatalogError("x"),
            ToolUnavailable(["7z"]),
            ExtractionError("x", archive_path="adksetup.exe"),
            DownloadFailed("x", url="https://go.example"),
        ],
    )
    def test_all_inherit_from_base(self, error):
        assert isinstance(error, AdkFetchError)

    def test_source_unavailable_keeps_resource(self):
        error = SourceUnavailable(
            "Couldn't retrieve the link: https://go.example",
            resource="https://go.example",
            details="redirected to https://www.bing.com/",
        )
        assert error.resource == "https://go.example"
        assert str(error).endswith("redirected to https://www.bing.com/")

    def test_manifest_malformed_keeps_document(self):
        error = ManifestMalformed("Could not parse 0", document="0")
        assert error.document == "0"

    def test_payload_missing_keeps_payload_id(self):
        error = PayloadMissing("Cannot locate u1", payload_id="ux1")
        assert error.payload_id == "ux1"
        assert str(error) == "Cannot locate u1"

    def test_empty_selection_is_recoverable(self):
        error = EmptySelection()
        assert error.recoverable is True
        assert str(error) == "At least select one feature to download!"

    def test_other_errors_are_not_recoverable(self):
        assert AdkFetchError("x").recoverable is False
        assert UnknownFeature("x").recoverable is False

    def test_unknown_feature_keeps_feature_id(self):
        error = UnknownFeature(
            "Feature with name 'Nope' doesn't exist", feature_id="OptionId.Nope"
        )
        assert error.feature_id == "OptionId.Nope"


class TestToolUnavailable:
    """Test the missing executable error."""

    def test_lists_every_missing_tool(self):
        error = ToolUnavailable(["7z", "aria2c"])
        assert error.tools == ["7z", "aria2c"]
        assert str(error) == "Missing dependencies were detected - 7z, aria2c"
