# src/adkfetch/cli.py

import argparse
import os
import sys
from typing import Any, Dict, List, Optional

from adkfetch import log_utils, setup_config
from adkfetch.bundle.orchestrator import BundlePipeline
from adkfetch.bundle.plan import render_descriptor
from adkfetch.catalog import DocsCatalogSource, find_entry, format_catalog_tsv, load_catalog
from adkfetch.constants import (
    ARIA2_EXECUTABLE,
    LOG_LEVEL_ENV_VAR,
    SEVEN_ZIP_EXECUTABLE,
)
from adkfetch.env_utils import is_interactive_terminal
from adkfetch.exceptions import AdkFetchError
from adkfetch.installer import download_installer, extract_installer, version_folder_name
from adkfetch.interactive import run_interactive
from adkfetch.tools import SevenZipExtractor, require_tools


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="adkfetch",
        description=(
            "adkfetch - download the Windows ADK without running its installer. "
            "Picks features from a downloaded bootstrapper and writes an aria2c input file."
        ),
    )
    parser.add_argument(
        "--versions",
        action="store_true",
        help=(
            "Retrieve the list of ADK versions and print a tab-separated table: "
            "download link, download ID, name and version"
        ),
    )
    parser.add_argument(
        "--download",
        metavar="ID",
        help=(
            "Download the ADK installer with the given download ID (listed in --versions) and "
            "extract it. Only the setup file is downloaded; use --pick to choose features"
        ),
    )
    parser.add_argument(
        "--pick",
        metavar="VERSION",
        help=(
            "List the features and their dependencies of a downloaded version, "
            "or pick the version for --packages"
        ),
    )
    parser.add_argument(
        "--packages",
        metavar="FEATURES",
        help="Create an aria2c input file for the given comma-separated feature names (requires --pick)",
    )
    parser.add_argument(
        "--with-dependencies",
        action="store_true",
        help="Also download every feature the selected features depend on",
    )
    parser.add_argument(
        "--root",
        metavar="URL",
        help="Previously resolved download root; skips resolving the redirect link",
    )
    parser.add_argument(
        "--output",
        metavar="FILE",
        help="Write the aria2c input file to FILE instead of printing it",
    )
    parser.add_argument(
        "--catalog",
        metavar="FILE",
        help=(
            "Look up the --download ID in a versions table saved earlier "
            "(by --versions or the interactive menu) instead of fetching it again"
        ),
    )
    return parser


def _apply_logging_config(config: Dict[str, Any]) -> None:
    """Apply LOG_LEVEL (unless the environment sets one) and optional file logging."""
    if config.get("LOG_LEVEL") and not os.environ.get(LOG_LEVEL_ENV_VAR):
        log_utils.set_log_level(str(config["LOG_LEVEL"]))
    log_dir = setup_config.file_log_dir(config)
    if log_dir:
        log_utils.add_file_logging(log_dir)


def _load_run_config(
    args: argparse.Namespace, config: Dict[str, Any]
) -> setup_config.RunConfig:
    config = dict(config)
    if args.with_dependencies:
        config["RESOLVE_DEPENDENCIES"] = True
    run_config = setup_config.build_run_config(config, force_cli=True)
    log_utils.logger.info(f"Work directory: {run_config.work_folder}")
    return run_config


def run_versions() -> None:
    entries = DocsCatalogSource().fetch_entries()
    print(format_catalog_tsv(entries))


def run_download(
    link_id: str,
    run_config: setup_config.RunConfig,
    catalog_path: Optional[str] = None,
) -> None:
    require_tools(SEVEN_ZIP_EXECUTABLE)
    log_utils.logger.info(f"Trying to download version: {link_id}")
    if catalog_path:
        entries = load_catalog(catalog_path)
    else:
        entries = DocsCatalogSource().fetch_entries()
    entry = find_entry(entries, link_id)
    installer_path = download_installer(entry, run_config)
    extract_installer(
        installer_path, run_config, version_folder_name(entry), SevenZipExtractor()
    )


def run_pick(args: argparse.Namespace, run_config: setup_config.RunConfig) -> None:
    pipeline = BundlePipeline.for_version(run_config, args.pick)
    pipeline.load()
    if not args.packages:
        print(pipeline.list_features())
        return

    plan = pipeline.plan(args.packages, cached_root=args.root)
    if args.output:
        pipeline.write_plan(plan, args.output)
    else:
        sys.stdout.write(render_descriptor(plan))


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the adkfetch command-line interface.

    Without arguments the interactive flow runs when a terminal is attached;
    otherwise, or when FORCE_CLI is set in the environment or adkfetch.yaml,
    the help is shown and the exit status is 1. Any argument forces
    non-interactive behaviour. The configuration file is read once up front
    so its logging settings apply to every mode. Every adkfetch error is reported as one line on
    stderr with exit status 1.
    """
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else argv
    args = parser.parse_args(argv)

    try:
        config = setup_config.load_config() or {}
        _apply_logging_config(config)

        if not argv:
            if setup_config.forces_cli(config) or not is_interactive_terminal():
                parser.print_help()
                sys.exit(1)
            require_tools(SEVEN_ZIP_EXECUTABLE, ARIA2_EXECUTABLE)
            run_interactive(setup_config.build_run_config(config))
            return

        if args.versions:
            run_versions()
            return

        if args.packages and not args.pick:
            print(
                "--packages option cannot be used alone, --pick also must be set "
                "for specifying which ADK version to use.",
                file=sys.stderr,
            )
            print("See --help for help", file=sys.stderr)
            sys.exit(1)

        if args.catalog and not args.download:
            print("--catalog option can only be used with --download.", file=sys.stderr)
            print("See --help for help", file=sys.stderr)
            sys.exit(1)

        run_config = _load_run_config(args, config)
        if args.download:
            run_download(args.download, run_config, args.catalog)
            return
        if args.pick:
            run_pick(args, run_config)
            return

        parser.print_help()
        sys.exit(1)
    except AdkFetchError as e:
        log_utils.logger.debug("Fatal error", exc_info=True)
        print(f"adkfetch: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("Operation was cancelled.", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
