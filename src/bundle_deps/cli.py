"""Command line entry point."""
import argparse
import asyncio
import dataclasses
import sys
from pathlib import Path
from typing import List, Optional

from bundle_deps.config import LOG_LEVELS, FetchSettings, load_versions
from bundle_deps.errors import FetchError, log_error
from bundle_deps.fetcher import download_dependencies
from bundle_deps.logging import configure_logging, get_logger
from bundle_deps.platforms import ARCH_MAPPINGS, get_host_platform
from bundle_deps.types import DependencyPlatform

logger = get_logger("bundle_deps.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bundle-deps",
        description="Download and verify the third-party binaries bundled with the application.",
    )
    parser.add_argument(
        "--platform",
        choices=[p.value for p in DependencyPlatform],
        help="platform to fetch for (default: this machine)",
    )
    parser.add_argument("--arch", choices=sorted(ARCH_MAPPINGS), help="CPU architecture")
    parser.add_argument("--versions", type=Path, help="TOML file with a [versions] table")
    parser.add_argument("--resources-dir", type=Path, help="root of the bundled resources tree")
    parser.add_argument(
        "--force",
        action="store_true",
        help="re-download binaries that are already present",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="log verbosity (default: INFO)",
    )
    return parser


def resolve_settings(args: argparse.Namespace) -> FetchSettings:
    settings = FetchSettings.from_env()
    overrides = {}
    if args.arch:
        overrides["arch"] = args.arch
    if args.resources_dir:
        overrides["resources_dir"] = args.resources_dir
    if args.force:
        overrides["overwrite"] = True
    if args.log_level:
        overrides["log_level"] = args.log_level
    return dataclasses.replace(settings, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = resolve_settings(args)
        configure_logging(settings.log_level)
        platform = args.platform or get_host_platform().value
        versions = load_versions(args.versions)
        asyncio.run(download_dependencies(platform, versions, settings))
    except FetchError as e:
        log_error(e, logger=logger)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
