import pytest

from adkfetch import menu_features, menu_versions
from adkfetch.bundle.interfaces import (
    CatalogEntry,
    ContentHash,
    DownloadJob,
    DownloadPlan,
    FeatureRecord,
    PlanBlock,
)

pytestmark = [pytest.mark.user_interface]

ENTRIES = [
    CatalogEntry("https://d.example/old/adksetup.exe", "1", "ADK for Windows 10 2004", "10.1.19041.1"),
    CatalogEntry("https://d.example/new/adksetup.exe", "2", "ADK 10.1.25398.1", "10.1.25398.1"),
    CatalogEntry("https://d.example/x/adkwinpesetup.exe", "3", "PE add-on for the ADK for Windows 12", ""),
    CatalogEntry("https://d.example/mid/adksetup.exe", "4", "ADK for Windows 11", "10.1.22000.1"),
]

FEATURES = {
    "OptionId.DeploymentTools": FeatureRecord("OptionId.DeploymentTools", ("Tools",)),
    "OptionId.WindowsPreinstallationEnvironment": FeatureRecord(
        "OptionId.WindowsPreinstallationEnvironment", ("PE",), ("OptionId.DeploymentTools",)
    ),
}


class TestVersionMenu:
    def test_sort_newest_first_unversioned_last(self):
        assert [entry.link_id for entry in menu_versions.sort_entries(ENTRIES)] == ["2", "4", "1", "3"]

    def test_format_entry(self):
        assert menu_versions.format_entry(ENTRIES[2]) == (
            "PE add-on for the ADK for Windows 12 (unknown version) - link id 3 - adkwinpesetup.exe"
        )

    def test_select_version(self, mocker):
        pick = mocker.patch("adkfetch.menu_versions.pick", return_value=("", 2))

        entry = menu_versions.select_version(ENTRIES)

        assert entry.link_id == "4"
        options = pick.call_args.args[0]
        assert options[0] == menu_versions.SAVE_TABLE_OPTION
        assert len(options) == 5
        assert pick.call_args.kwargs["default_index"] == 0

    def test_select_save_table(self, mocker):
        mocker.patch("adkfetch.menu_versions.pick", return_value=("", 0))
        assert menu_versions.select_version(ENTRIES) is None

    def test_picked_version_is_highlighted(self, mocker):
        pick = mocker.patch("adkfetch.menu_versions.pick", return_value=("", 3))
        menu_versions.select_version(ENTRIES, picked_version="10.1.19041.1")
        assert pick.call_args.kwargs["default_index"] == 3

    @pytest.mark.parametrize(
        "answer, expected",
        [("", "versions.tsv"), ("  out.tsv ", "out.tsv"), ("cancel", None), ("CANCEL", None)],
    )
    def test_prompt_save_path(self, mocker, answer, expected):
        mocker.patch("builtins.input", return_value=answer)
        assert menu_versions.prompt_save_path() == expected


class TestFeatureMenu:
    def test_format_feature_option(self):
        assert menu_features.format_feature_option(FEATURES["OptionId.DeploymentTools"]) == "DeploymentTools"
        assert menu_features.format_feature_option(
            FEATURES["OptionId.WindowsPreinstallationEnvironment"]
        ) == "WindowsPreinstallationEnvironment  (depends on: DeploymentTools)"

    def test_select_feature_ids(self, mocker):
        pick = mocker.patch(
            "adkfetch.menu_features.pick",
            return_value=[("WindowsPreinstallationEnvironment", 1)],
        )

        assert menu_features.select_feature_ids(FEATURES) == ["WindowsPreinstallationEnvironment"]
        assert pick.call_args.kwargs["multiselect"] is True
        assert pick.call_args.kwargs["min_selection_count"] == 0

    def test_select_nothing(self, mocker):
        mocker.patch("adkfetch.menu_features.pick", return_value=[])
        assert menu_features.select_feature_ids(FEATURES) == []

    def test_previous_selection_in_title(self, mocker):
        pick = mocker.patch("adkfetch.menu_features.pick", return_value=[])
        menu_features.select_feature_ids(FEATURES, previous=["DeploymentTools"])
        assert "Previously selected: DeploymentTools" in pick.call_args.args[1]

    @pytest.mark.parametrize("answer, expected", [("y", True), ("YES", True), ("", False), ("n", False)])
    def test_confirm_plan(self, mocker, capsys, answer, expected):
        mocker.patch("builtins.input", return_value=answer)
        job = DownloadJob("u", "a.cab", ContentHash("aa"), 2048, "Tools", "OptionId.DeploymentTools")
        plan = DownloadPlan(
            content_root="https://d.example/",
            blocks=[PlanBlock("OptionId.DeploymentTools", "Tools", [job])],
            feature_sizes={"OptionId.DeploymentTools": 2048},
            total_size=2048,
        )

        assert menu_features.confirm_plan(plan) is expected

        out = capsys.readouterr().out
        assert "DeploymentTools - 2.0KB" in out
        assert "This will require a total of 2.0KB of disk space." in out

    @pytest.mark.parametrize("answer, expected", [("", True), ("y", True), ("n", False), ("no", False)])
    def test_confirm_extract(self, mocker, answer, expected):
        mocker.patch("builtins.input", return_value=answer)
        assert menu_features.confirm_extract("/w/v") is expected
