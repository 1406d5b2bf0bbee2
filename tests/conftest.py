import time
from pathlib import Path

import platformdirs
import pytest
import requests

from tests.bundle_data import (
    FULL_BURN,
    FULL_UX,
    SCENARIO_BURN,
    SCENARIO_UX,
    write_extracted_bundle,
)

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """
    Register the markers used to group the adkfetch tests.
    """
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "core: bundle pipeline tests")
    config.addinivalue_line("markers", "configuration: configuration loading tests")
    config.addinivalue_line("markers", "user_interface: menu and CLI tests")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs and the adkfetch configuration location at temporary directories.

    Also clears the environment variables adkfetch reads so a developer's
    shell settings never leak into a test.
    """
    base = tmp_path_factory.mktemp("adkfetch")
    config_dir = base / "config"
    log_dir = base / "log"
    for path in (config_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    for name in ("WORK_FOLDER", "FORCE_CLI", "ADKFETCH_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )

    import adkfetch.setup_config as setup_config

    monkeypatch.setattr(setup_config, "CONFIG_DIR", str(config_dir))
    monkeypatch.setattr(
        setup_config,
        "CONFIG_FILE",
        str(Path(config_dir) / setup_config.CONFIG_FILE_NAME),
    )


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.head = _block_network
    requests.Session.request = _block_network


@pytest.fixture(autouse=True)
def _drop_file_logging():
    """
    Detach a rotating log file a test enabled so later tests log to the console only.
    """
    yield
    from adkfetch import log_utils

    if log_utils._file_handler is not None:
        log_utils.logger.removeHandler(log_utils._file_handler)
        log_utils._file_handler.close()
        log_utils._file_handler = None


@pytest.fixture(autouse=True)
def _mock_time_sleep(monkeypatch):
    """
    Make time.sleep instant for all tests to prevent delays.
    """
    monkeypatch.setattr(time, "sleep", lambda *_args, **_kwargs: None)


# =============================================================================
# Bundle Fixtures
# =============================================================================


@pytest.fixture
def scenario_bundle(tmp_path):
    """Extracted bootstrapper declaring payload A in package P1 for feature Core."""
    return write_extracted_bundle(tmp_path / "_installer", SCENARIO_BURN, SCENARIO_UX)


@pytest.fixture
def full_bundle(tmp_path):
    """Extracted bootstrapper with two real features, an empty one and a dependency."""
    return write_extracted_bundle(tmp_path / "_installer", FULL_BURN, FULL_UX)


@pytest.fixture
def work_folder(tmp_path, monkeypatch):
    """A work folder exported through the WORK_FOLDER variable."""
    folder = tmp_path / "work"
    folder.mkdir()
    monkeypatch.setenv("WORK_FOLDER", str(folder))
    return folder


@pytest.fixture
def run_config(work_folder):
    from adkfetch.setup_config import RunConfig

    return RunConfig(work_folder=str(work_folder), non_interactive=True)
