"""
Entry point for the geoip_updater component.
"""

import argparse
import logging
import sys
from typing import List, Optional

from dependency_injector import providers
from tqdm.contrib.logging import logging_redirect_tqdm

from .application.domain import Edition
from .application.exceptions import GeoipUpdaterError
from .infrastructure.containers import Container
from .infrastructure.decorators import retry_on_transport_error
from .settings import LOG_LEVELS, AppSettings

logger = logging.getLogger(__name__)


def setup_logging(level: str):
    """Applies basic logging configuration."""
    logging.basicConfig(level=level.upper())


def apply_overrides(settings: AppSettings, args: argparse.Namespace) -> AppSettings:
    """Return settings with the command line options taking precedence."""
    paths = {}
    if args.work_dir:
        paths["work_dir"] = args.work_dir
    if args.download_dir:
        paths["download_dir"] = args.download_dir

    updater = {}
    if args.editions:
        updater["editions"] = args.editions

    logging_level = {"level": args.log_level} if args.log_level else {}

    return settings.model_copy(update={
        "paths": settings.paths.model_copy(update=paths),
        "updater": settings.updater.model_copy(update=updater),
        "logging": settings.logging.model_copy(update=logging_level),
    })


def run_application(args: argparse.Namespace) -> int:
    """Wires and runs the application using the DI container."""

    container = Container()
    container.cli_args.from_dict({
        "trust_marker": args.trust_marker,
        "show_progress": args.progress,
    })

    try:
        settings = apply_overrides(container.settings(), args)
        container.settings.override(providers.Object(settings))
        setup_logging(level=settings.logging.level)

        updater_service = container.updater_service()
        run = retry_on_transport_error(settings.updater.retry_attempts)(
            updater_service.run
        )

        with logging_redirect_tqdm():
            results = run(settings.updater.editions)
    except GeoipUpdaterError as e:
        logger.error(f"An application error occurred: {e}")
        return 1
    finally:
        container.shutdown_resources()

    for edition, entries in results.items():
        for entry in entries:
            logger.info(
                f"{edition}: {entry.name} "
                f"(modified {entry.modified.isoformat()}, md5 {entry.checksum})"
            )

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="GeoIP database updater")

    parser.add_argument(
        "--edition",
        dest="editions",
        nargs="+",
        type=Edition,
        metavar="EDITION_ID",
        help="Editions to update, e.g. GeoLite2-City. "
             "Defaults to updater.editions from the settings.",
    )

    parser.add_argument(
        "--download-dir",
        help="Directory receiving the extracted databases.",
    )

    parser.add_argument(
        "--work-dir",
        help="Directory keeping the downloaded archives.",
    )

    parser.add_argument(
        "--trust-marker",
        action="store_true",
        help="Skip rehashing archives whose checksum marker matches.",
    )

    parser.add_argument(
        "--no-progress",
        dest="progress",
        action="store_false",
        help="Hide the download progress bar.",
    )

    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level, overrides logging.level from the settings.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    cli_args = build_parser().parse_args(argv)
    return run_application(cli_args)


if __name__ == "__main__":
    sys.exit(main())
