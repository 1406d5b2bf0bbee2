"""
Environment detection helpers.
"""

from __future__ import annotations

import os
import sys

from adkfetch.constants import FORCE_CLI_ENV_VAR, WORK_FOLDER_ENV_VAR


def is_force_cli_set() -> bool:
    """
    Check if the FORCE_CLI environment variable requests non-interactive behaviour.
    """
    return bool(os.environ.get(FORCE_CLI_ENV_VAR, "").strip())


def is_interactive_terminal() -> bool:
    """
    Check if both stdin and stdout are attached to a terminal.
    """
    return sys.stdin.isatty() and sys.stdout.isatty()


def get_env_work_folder() -> str | None:
    """
    Return the WORK_FOLDER environment variable, or None when unset or blank.
    """
    value = os.environ.get(WORK_FOLDER_ENV_VAR, "").strip()
    return value or None
