"""Main CLI entry point for l10nsync.

Usage:
    l10nsync [--platform {ios,android,both}] [--project-root PATH] [-c CONFIG]
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from l10nsync import __version__
from l10nsync.cli.sync import sync_command
from l10nsync.runtime.orchestrator import PLATFORM_CHOICES

logger = logging.getLogger("l10nsync.cli")

EPILOG = """\
Example:
  l10nsync
  l10nsync --platform ios
  l10nsync --platform android --project-root ./my-app
"""


def setup_logging(
    verbose: bool = False,
    console: Optional[Console] = None,
    log_file: Optional[str] = None,
) -> None:
    """Setup logging configuration with Rich integration.

    Args:
        verbose: Enable verbose logging.
        console: Rich Console instance for coordinated output (optional).
        log_file: Also write plain log lines to this file (optional).
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        log_time_format="[%H:%M:%S]",
    )
    handlers: List[logging.Handler] = [handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(name)s] [%(levelname)s] %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="[%(name)s] %(message)s",
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="l10nsync",
        description="l10nsync - Sync localization files into Android and iOS projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    parser.add_argument(
        "--platform",
        type=str.lower,
        choices=PLATFORM_CHOICES,
        default="both",
        help="Specify platform (ios, android, or both; default: both)",
    )
    parser.add_argument(
        "--project-root",
        help="Application project root holding 'localizations/' (default: current directory)",
    )
    parser.add_argument(
        "-c",
        "--config",
        help=(
            "Optional configuration. Can be a path to a TOML/JSON file "
            "(e.g. l10nsync.toml) or an inline TOML/JSON string. When omitted, "
            "built-in defaults are used."
        ),
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute all changes without writing any file",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with non-zero status when a platform update failed",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-file",
        help="Also write the log to this file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    console = Console(stderr=True)
    setup_logging(args.verbose, console=console, log_file=args.log_file)

    return sync_command(args, console=console)


if __name__ == "__main__":
    sys.exit(main())
