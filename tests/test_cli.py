import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from adkfetch import cli
from adkfetch.bundle.interfaces import CatalogEntry
from tests.bundle_data import FULL_BURN, FULL_UX, SCENARIO_BURN, SCENARIO_UX, write_extracted_bundle

pytestmark = [pytest.mark.user_interface, pytest.mark.unit]

VERSION = "10.1.22000.1"
ENTRIES = [
    CatalogEntry("https://go.example/?linkid=2196127", "2196127", "Windows 11", VERSION),
]


@pytest.fixture
def catalog(mocker):
    source = mocker.patch("adkfetch.cli.DocsCatalogSource")
    source.return_value.fetch_entries.return_value = ENTRIES
    return source


@pytest.fixture
def resolver(mocker):
    resolver = MagicMock()
    resolver.resolve.return_value = "https://download.example/ADK/"
    mocker.patch("adkfetch.bundle.redirects.RedirectResolver", return_value=resolver)
    return resolver


@pytest.fixture
def downloaded_version(work_folder):
    """A version whose bootstrapper was already extracted into the work folder."""
    return write_extracted_bundle(work_folder / VERSION / "_installer", SCENARIO_BURN, SCENARIO_UX)


def _exit_code(argv):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv)
    return exc_info.value.code


def test_versions_prints_table(catalog, capsys):
    cli.main(["--versions"])

    out = capsys.readouterr().out
    assert "https://go.example/?linkid=2196127\t2196127\tWindows 11\t10.1.22000.1" in out.splitlines()


def test_versions_does_not_need_work_folder(catalog, capsys):
    assert "WORK_FOLDER" not in os.environ
    cli.main(["--versions"])
    assert capsys.readouterr().out


def test_packages_requires_pick(capsys):
    assert _exit_code(["--packages", "Core"]) == 1
    assert "--pick also must be set" in capsys.readouterr().err


def test_missing_work_folder(capsys):
    assert _exit_code(["--pick", VERSION]) == 1
    assert "adkfetch: Work directory is not set" in capsys.readouterr().err


def test_pick_unknown_version(work_folder, capsys):
    assert _exit_code(["--pick", "0.0"]) == 1
    assert "is not a valid directory" in capsys.readouterr().err


def test_pick_lists_features(work_folder, capsys):
    write_extracted_bundle(work_folder / VERSION / "_installer", FULL_BURN, FULL_UX)

    cli.main(["--pick", VERSION])

    assert capsys.readouterr().out.splitlines() == [
        "DeploymentTools:",
        "WindowsPreinstallationEnvironment:DeploymentTools",
        "Hollow:",
        "NoPackages:",
    ]


def test_pick_packages_prints_descriptor(downloaded_version, resolver, capsys):
    cli.main(["--pick", VERSION, "--packages", "Core"])

    out = capsys.readouterr().out
    assert out == (
        "#\n# Package: P1\n# Requested by: OptionId.Core\n#\n\n"
        "https://download.example/ADK/files/a.cab\n"
        "  out=ADK/a.cab\n"
        "  checksum=sha-1=deadbeef\n\n"
    )


def test_pick_packages_with_output_file(downloaded_version, resolver, work_folder, capsys):
    target = work_folder / VERSION / "aria2c"

    cli.main(["--pick", VERSION, "--packages", "Core", "--output", str(target)])

    assert "checksum=sha-1=deadbeef" in target.read_text(encoding="utf-8")
    assert capsys.readouterr().out == ""


def test_pick_packages_with_cached_root(downloaded_version, resolver, capsys):
    cli.main(["--pick", VERSION, "--packages", "Core", "--root", "https://cache.example/ADK"])

    assert "https://cache.example/ADK/files/a.cab\n" in capsys.readouterr().out
    resolver.resolve.assert_not_called()


def test_unknown_feature_is_one_line_error(downloaded_version, resolver, work_folder, capsys):
    target = work_folder / VERSION / "aria2c"

    code = _exit_code(["--pick", VERSION, "--packages", "Typo", "--output", str(target)])

    captured = capsys.readouterr()
    assert code == 1
    errors = [line for line in captured.err.splitlines() if line.startswith("adkfetch: ")]
    assert errors == ["adkfetch: Feature with name 'Typo' doesn't exist"]
    assert captured.out == ""
    assert not target.exists()


def test_with_dependencies(work_folder, resolver, capsys):
    write_extracted_bundle(work_folder / VERSION / "_installer", FULL_BURN, FULL_UX)

    cli.main(["--pick", VERSION, "--packages", "WindowsPreinstallationEnvironment", "--with-dependencies"])

    out = capsys.readouterr().out
    assert "# Requested by: OptionId.DeploymentTools\n" in out
    assert "Installers/Windows%20PE.msi" in out


def test_download(work_folder, catalog, mocker):
    mocker.patch("adkfetch.cli.require_tools")
    download = mocker.patch(
        "adkfetch.cli.download_installer", return_value=str(work_folder / VERSION / "adksetup.exe")
    )
    extract = mocker.patch("adkfetch.cli.extract_installer")

    cli.main(["--download", "2196127"])

    assert download.call_args.args[0] is ENTRIES[0]
    assert extract.call_args.args[2] == VERSION


def test_download_unknown_id(work_folder, catalog, mocker, capsys):
    mocker.patch("adkfetch.cli.require_tools")
    assert _exit_code(["--download", "1"]) == 1
    assert "Couldn't find the version info" in capsys.readouterr().err


def test_download_requires_7z(work_folder, mocker, capsys):
    mocker.patch("adkfetch.tools.shutil.which", return_value=None)
    assert _exit_code(["--download", "1"]) == 1
    assert "adkfetch: Missing dependencies were detected - 7z" in capsys.readouterr().err


class TestNoArguments:
    def test_help_without_terminal(self, mocker, capsys):
        mocker.patch("adkfetch.cli.is_interactive_terminal", return_value=False)
        run = mocker.patch("adkfetch.cli.run_interactive")

        assert _exit_code([]) == 1

        assert "usage: adkfetch" in capsys.readouterr().out
        run.assert_not_called()

    def test_force_cli_shows_help(self, mocker, monkeypatch, capsys):
        monkeypatch.setenv("FORCE_CLI", "1")
        mocker.patch("adkfetch.cli.is_interactive_terminal", return_value=True)
        run = mocker.patch("adkfetch.cli.run_interactive")

        assert _exit_code([]) == 1
        run.assert_not_called()

    def test_interactive_with_terminal(self, work_folder, mocker):
        mocker.patch("adkfetch.cli.is_interactive_terminal", return_value=True)
        mocker.patch("adkfetch.cli.require_tools")
        run = mocker.patch("adkfetch.cli.run_interactive")

        cli.main([])

        run_config = run.call_args.args[0]
        assert run_config.work_folder == str(work_folder)
        assert run_config.non_interactive is False

    def test_keyboard_interrupt(self, work_folder, mocker, capsys):
        mocker.patch("adkfetch.cli.is_interactive_terminal", return_value=True)
        mocker.patch("adkfetch.cli.require_tools")
        mocker.patch("adkfetch.cli.run_interactive", side_effect=KeyboardInterrupt)

        assert _exit_code([]) == 1
        assert "Operation was cancelled." in capsys.readouterr().err


def test_log_level_from_config(work_folder, mocker, capsys):
    from adkfetch import setup_config

    Path(setup_config.CONFIG_FILE).write_text("LOG_LEVEL: DEBUG\n", encoding="utf-8")
    set_level = mocker.patch("adkfetch.cli.log_utils.set_log_level")

    _exit_code(["--pick", "0.0"])

    set_level.assert_called_once_with("DEBUG")


def _write_config(content):
    from adkfetch import setup_config

    Path(setup_config.CONFIG_FILE).write_text(content, encoding="utf-8")


class TestConfigFile:
    def test_force_cli_in_config_shows_help(self, work_folder, mocker, capsys):
        _write_config("FORCE_CLI: true\n")
        mocker.patch("adkfetch.cli.is_interactive_terminal", return_value=True)
        mocker.patch("adkfetch.cli.require_tools")
        run = mocker.patch("adkfetch.cli.run_interactive")

        assert _exit_code([]) == 1

        assert "usage: adkfetch" in capsys.readouterr().out
        run.assert_not_called()

    def test_log_level_applies_to_interactive_flow(self, work_folder, mocker):
        _write_config("LOG_LEVEL: WARNING\n")
        mocker.patch("adkfetch.cli.is_interactive_terminal", return_value=True)
        mocker.patch("adkfetch.cli.require_tools")
        run = mocker.patch("adkfetch.cli.run_interactive")
        set_level = mocker.patch("adkfetch.cli.log_utils.set_log_level")

        cli.main([])

        set_level.assert_called_once_with("WARNING")
        run.assert_called_once()

    def test_environment_log_level_wins(self, work_folder, monkeypatch, mocker):
        _write_config("LOG_LEVEL: DEBUG\n")
        monkeypatch.setenv("ADKFETCH_LOG_LEVEL", "ERROR")
        set_level = mocker.patch("adkfetch.cli.log_utils.set_log_level")

        _exit_code(["--pick", "0.0"])

        set_level.assert_not_called()

    def test_log_dir_enables_file_logging(self, work_folder, tmp_path, mocker):
        log_dir = tmp_path / "logs"
        _write_config(f"LOG_DIR: {log_dir}\n")
        add_file_logging = mocker.patch("adkfetch.cli.log_utils.add_file_logging")

        _exit_code(["--pick", "0.0"])

        add_file_logging.assert_called_once_with(str(log_dir))

    def test_file_logging_off_by_default(self, work_folder, mocker):
        add_file_logging = mocker.patch("adkfetch.cli.log_utils.add_file_logging")
        _exit_code(["--pick", "0.0"])
        add_file_logging.assert_not_called()


class TestSavedCatalog:
    def test_download_from_saved_table(self, work_folder, tmp_path, mocker):
        table = tmp_path / "versions.tsv"
        table.write_text(
            "https://download.example/adksetup.exe\t2196127\tWindows 11\t10.1.22000.1\n",
            encoding="utf-8",
        )
        source = mocker.patch("adkfetch.cli.DocsCatalogSource")
        mocker.patch("adkfetch.cli.require_tools")
        download = mocker.patch(
            "adkfetch.cli.download_installer", return_value=str(work_folder / VERSION / "adksetup.exe")
        )
        mocker.patch("adkfetch.cli.extract_installer")

        cli.main(["--download", "2196127", "--catalog", str(table)])

        source.assert_not_called()
        assert download.call_args.args[0] == CatalogEntry(
            "https://download.example/adksetup.exe", "2196127", "Windows 11", VERSION
        )

    def test_missing_saved_table(self, work_folder, tmp_path, mocker, capsys):
        mocker.patch("adkfetch.cli.require_tools")
        assert _exit_code(["--download", "1", "--catalog", str(tmp_path / "nope.tsv")]) == 1
        assert "adkfetch: Could not read versions table" in capsys.readouterr().err

    def test_catalog_requires_download(self, capsys):
        assert _exit_code(["--catalog", "versions.tsv"]) == 1
        assert "--catalog option can only be used with --download" in capsys.readouterr().err
