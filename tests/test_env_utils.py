import pytest

from adkfetch import env_utils

pytestmark = [pytest.mark.unit]


@pytest.mark.parametrize("value, expected", [("1", True), ("yes", True), ("  ", False), ("", False)])
def test_is_force_cli_set(monkeypatch, value, expected):
    monkeypatch.setenv("FORCE_CLI", value)
    assert env_utils.is_force_cli_set() is expected


def test_force_cli_unset():
    assert env_utils.is_force_cli_set() is False


def test_get_env_work_folder(monkeypatch):
    assert env_utils.get_env_work_folder() is None
    monkeypatch.setenv("WORK_FOLDER", "  /srv/adk ")
    assert env_utils.get_env_work_folder() == "/srv/adk"


def test_is_interactive_terminal(mocker):
    fake_sys = mocker.patch("adkfetch.env_utils.sys")
    fake_sys.stdin.isatty.return_value = True
    fake_sys.stdout.isatty.return_value = False
    assert env_utils.is_interactive_terminal() is False

    fake_sys.stdout.isatty.return_value = True
    assert env_utils.is_interactive_terminal() is True
