"""
Command-line interface for devloop.

This module parses command-line arguments, layers them over devloop.toml,
and runs the controller until it is interrupted.
"""

import argparse
import logging
import shlex
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import __version__
from ..config import configure, get_config
from ..orchestration import Controller, SignalHandler
from ..validation import ValidationError, WatchRegistrationError, handle_cli_error

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devloop",
        description="Rebuild and rerun a program when its source changes.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    watch = subparsers.add_parser(
        "watch",
        help="Watch a source tree and its local imports, rerunning a command on change.",
    )
    watch.add_argument("-c", "--config", type=Path,
                       help="Configuration file (default: ./devloop.toml if present).")
    watch.add_argument("--shell", help="Shell used to run commands (default: $SHELL, then sh).")
    watch.add_argument("-r", "--run",
                       help="Shell command to run, e.g. 'python -m app'. Arguments after '--' are used otherwise.")
    watch.add_argument("-b", "--build", help="Shell command run to completion before every start.")
    watch.add_argument("-d", "--dir", action="append", dest="dirs",
                       help="Directory to watch and scan for imports. Can be given multiple times. Default: .")
    watch.add_argument("-i", "--include", action="append", dest="include_dirs",
                       help=r"Regexp of dirs to include for watching, matched against the absolute "
                            r"directory path. Can be given multiple times. Default: .*")
    watch.add_argument("-e", "--exclude", action="append", dest="exclude_dirs",
                       help=r"Regexp of dirs to exclude from watching, matched against the absolute "
                            r"directory path (use '/vendor(/|$)', not '^vendor'). "
                            r"Can be given multiple times. Default: ^\.*$")
    watch.add_argument("-f", "--files", action="append", dest="include_files",
                       help="Regexp of files that, if changed, cause a rerun. Can be given multiple times.")
    watch.add_argument("-x", "--exclude-files", action="append", dest="exclude_files",
                       help=r"Regexp of files whose changes are ignored. Can be given multiple times. Default: ^\.*$")
    watch.add_argument("--search-path", action="append", dest="search_path",
                       help="Root searched when resolving imports. Can be given multiple times. Default: $PYTHONPATH")
    watch.add_argument("--search-subdir",
                       help="Subdirectory of each search root that holds packages (e.g. 'src').")
    watch.add_argument("--list-dirs", action="store_true",
                       help="Print the directories that would be watched and exit.")
    watch.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    watch.add_argument("program", nargs=argparse.REMAINDER,
                       help="Program and arguments to run (after '--'), instead of --run.")
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Dict[str, Any]]:
    """Map parsed arguments onto configuration tables; unset options stay None."""
    run = args.run
    program: List[str] = list(args.program or [])
    if program and program[0] == "--":
        program = program[1:]
    if program:
        if run:
            raise ValidationError("give either --run or a program after '--', not both",
                                  field_name="process.run", value=program)
        run = shlex.join(program)

    return {
        "process": {
            "shell": args.shell,
            "run": run,
            "build": args.build,
        },
        "watch": {
            "dirs": args.dirs,
            "include_dirs": args.include_dirs,
            "exclude_dirs": args.exclude_dirs,
            "include_files": args.include_files,
            "exclude_files": args.exclude_files,
        },
        "discovery": {
            "search_path": args.search_path,
            "search_subdir": args.search_subdir,
        },
    }


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for devloop.

    Configuration errors and watch-registration failures exit with status 1;
    otherwise the loop runs until SIGINT/SIGTERM.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        configure(args.config, overrides_from_args(args))
        app_config = get_config()
    except (FileNotFoundError, ValidationError, ValueError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            logger=logger,
        )

    signal_handler = SignalHandler()
    controller = Controller(app_config, shutdown_requested=signal_handler.shutdown_requested)

    if args.list_dirs:
        for directory in controller.walker.build_watch_set(app_config.watch.roots):
            print(directory)
        return

    with signal_handler:
        try:
            controller.setup()
        except WatchRegistrationError as e:
            controller.shutdown()
            handle_cli_error(
                error=e,
                context="watch registration",
                exit_code=1,
                logger=logger,
            )

        controller.run()

    logger.info(f"Stopped after {controller.restart_count} restart(s)")


if __name__ == "__main__":
    main_cli()
